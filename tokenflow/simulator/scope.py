from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional

from ..graph import GraphNode

if TYPE_CHECKING:
    from .behaviors import ElementBehavior


class ScopeState(str, Enum):
    idle = "idle"
    entered = "entered"
    waiting = "waiting"
    exited = "exited"


@dataclass
class Scope:
    """Runtime activation record of one element instance.

    ``parent`` and ``children`` are arena indices; ``pending`` is the
    single-shot continuation slot filled while the scope waits.
    """
    id: int
    element: GraphNode
    behavior: "ElementBehavior"
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    state: ScopeState = ScopeState.idle
    destroyed: bool = False
    pending: Optional[str] = None

    @property
    def waiting(self) -> bool:
        return self.state == ScopeState.waiting and self.pending is not None


class ScopeArena:
    """Owns every scope of a simulation; relations are plain indices."""

    def __init__(self):
        self._scopes: List[Scope] = []

    def create(self, element: GraphNode, behavior: "ElementBehavior", parent: Optional[Scope] = None) -> Scope:
        scope = Scope(
            id=len(self._scopes),
            element=element,
            behavior=behavior,
            parent=parent.id if parent else None,
        )
        self._scopes.append(scope)
        if parent is not None:
            parent.children.append(scope.id)
        return scope

    def get(self, scope_id: int) -> Scope:
        return self._scopes[scope_id]

    def parent(self, scope: Scope) -> Optional[Scope]:
        return self._scopes[scope.parent] if scope.parent is not None else None

    def children(self, scope: Scope, live_only: bool = True) -> List[Scope]:
        kids = [self._scopes[i] for i in scope.children]
        return [k for k in kids if not k.destroyed] if live_only else kids

    def destroy(self, scope: Scope) -> None:
        scope.destroyed = True
        scope.pending = None
        if scope.state != ScopeState.exited:
            scope.state = ScopeState.exited

    def find(self, element_id: str, state: Optional[ScopeState] = None) -> List[Scope]:
        return [
            s for s in self._scopes
            if not s.destroyed and s.element.id == element_id and (state is None or s.state == state)
        ]

    def roots(self) -> List[Scope]:
        return [s for s in self._scopes if s.parent is None]

    def clear(self) -> None:
        self._scopes.clear()

    def __iter__(self) -> Iterator[Scope]:
        return iter(self._scopes)

    def __len__(self) -> int:
        return len(self._scopes)
