from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional

from loguru import logger

from ..errors import TriggerFailure, UnknownElementError
from ..graph import GraphNode, ProcessGraph
from ..types import ElementKind
from .behaviors import Context, ElementBehavior, build_behaviors
from .config import ConfigView, ElementConfig
from .scope import Scope, ScopeArena, ScopeState

CONTINUE_EVENT = "continue"


@dataclass
class SimulationEvent:
    kind: str  # enter | wait | signal | exit | merge | stall
    element_id: str
    scope_id: int


class Simulator:
    """Token simulation over a tree of runtime scopes.

    Behaviors run from a FIFO agenda, so long chains of elements never
    recurse. Configuration is read through a ``ConfigView``; the simulator
    never writes it.
    """

    def __init__(self, graph: ProcessGraph, config: ConfigView):
        self.graph = graph
        self.config = config
        self.scopes = ScopeArena()
        self.events: List[SimulationEvent] = []
        self.console: List[str] = []
        self._agenda: Deque[Callable[[], None]] = deque()
        self._draining = False
        self._exit_counts: Dict[str, int] = {}
        self._behaviors: Dict[ElementKind, ElementBehavior] = build_behaviors(self)

    def log(self, msg: str):
        self.console.append(msg)
        logger.debug(msg)

    def get_config(self, element: GraphNode) -> ElementConfig:
        return self.config.get(element)

    def behavior_for(self, element: GraphNode) -> ElementBehavior:
        return self._behaviors.get(element.kind, self._behaviors[ElementKind.Unknown])

    # ---------- Scope protocol ----------
    def enter(self, element: GraphNode, parent: Optional[Scope]) -> Scope:
        scope = self.scopes.create(element, self.behavior_for(element), parent)
        scope.state = ScopeState.entered
        self._record("enter", scope)
        self._schedule(lambda: scope.behavior.enter(Context(element, scope)))
        return scope

    def suspend(self, context: Context) -> None:
        scope = context.scope
        scope.state = ScopeState.waiting
        scope.pending = CONTINUE_EVENT
        self._record("wait", scope)

    def signal(self, scope: Scope, initiator: Optional[object] = None) -> None:
        if scope.destroyed or scope.pending is None:
            raise TriggerFailure(scope.element.id, "scope is not waiting")
        # single shot: the continuation is consumed before it runs
        scope.pending = None
        scope.state = ScopeState.entered
        self._record("signal", scope)
        self._schedule(lambda: scope.behavior.signal(Context(scope.element, scope, initiator)))

    def exit(self, context: Context) -> None:
        scope = context.scope
        if scope.destroyed or scope.state == ScopeState.exited:
            return
        scope.state = ScopeState.exited
        scope.pending = None
        self._exit_counts[scope.element.id] = self._exit_counts.get(scope.element.id, 0) + 1
        self._record("exit", scope)
        self._schedule(lambda: self._finish_exit(context))

    def stall(self, context: Context) -> None:
        """Non-productive exit: nothing is entered, the parent may complete."""
        self._record("stall", context.scope)
        logger.warning(f"[sim] No active outgoing flow configured for {context.element.id}; token stalled")

    def merge(self, scope: Scope) -> None:
        self._record("merge", scope)
        self.scopes.destroy(scope)

    def try_exit(self, scope: Scope) -> None:
        if scope.destroyed or scope.state != ScopeState.entered:
            return
        if self.scopes.children(scope):
            return
        self.exit(Context(scope.element, scope))

    def _finish_exit(self, context: Context) -> None:
        scope = context.scope
        scope.behavior.exit(context)
        self.scopes.destroy(scope)
        parent = self.scopes.parent(scope)
        if parent is not None:
            self.try_exit(parent)

    # ---------- Triggers ----------
    def start(self, start_event: Optional[GraphNode] = None) -> Scope:
        """Put a token on a start event, creating its process scope when needed."""
        start_event = start_event or self._root_start()
        container = self.graph.get(start_event.parent)

        if container.kind == ElementKind.SubProcess:
            running = self.scopes.find(container.id, ScopeState.entered)
            if not running:
                raise TriggerFailure(start_event.id, f"subprocess '{container.id}' is not running")
            parent = running[0]
        else:
            parent = self.scopes.create(container, self.behavior_for(container))
            parent.state = ScopeState.entered
            self._record("enter", parent)

        self.log(f"[sim] start {start_event.id} in {container.id}")
        return self.enter(start_event, parent)

    def trigger(self, element_id: str) -> Scope:
        """Signal a waiting token at ``element_id`` or start a fresh one on a start event."""
        element = self.graph.get(element_id)
        if element is None:
            raise UnknownElementError([element_id])
        waiting = self.waiting_scope(element_id)
        if waiting is not None:
            self.signal(waiting)
            return waiting
        if element.kind == ElementKind.StartEvent:
            return self.start(element)
        raise TriggerFailure(element_id, "no token is waiting there")

    def _root_start(self) -> GraphNode:
        root = self.graph.root
        scopes = [root] if root.kind == ElementKind.Process else [
            n for n in self.graph.nodes if n.kind == ElementKind.Participant
        ]
        for scope in scopes:
            starts = [n for n in self.graph.children(scope) if n.kind == ElementKind.StartEvent]
            if starts:
                return starts[0]
        raise TriggerFailure(root.id, "diagram has no start event")

    # ---------- Queries ----------
    def waiting_scope(self, element_id: str) -> Optional[Scope]:
        waiting = [s for s in self.scopes.find(element_id, ScopeState.waiting) if s.pending]
        return waiting[0] if waiting else None

    def active_scopes(self) -> List[Scope]:
        return [s for s in self.scopes if not s.destroyed]

    def exit_count(self, element_id: str) -> int:
        return self._exit_counts.get(element_id, 0)

    def has_exited(self, element_id: str) -> bool:
        return self.exit_count(element_id) > 0 and not self.scopes.find(element_id)

    @property
    def finished(self) -> bool:
        roots = self.scopes.roots()
        return bool(roots) and all(s.destroyed for s in roots)

    def reset(self) -> None:
        self.scopes.clear()
        self.events.clear()
        self.console.clear()
        self._agenda.clear()
        self._exit_counts.clear()

    # ---------- Agenda ----------
    def _record(self, kind: str, scope: Scope) -> None:
        self.events.append(SimulationEvent(kind=kind, element_id=scope.element.id, scope_id=scope.id))
        self.log(f"[sim] {kind} {scope.element.id}#{scope.id}")

    def _schedule(self, fn: Callable[[], None]) -> None:
        self._agenda.append(fn)
        if self._draining:
            return
        self._draining = True
        try:
            while self._agenda:
                self._agenda.popleft()()
        except Exception:
            self._agenda.clear()
            raise
        finally:
            self._draining = False
