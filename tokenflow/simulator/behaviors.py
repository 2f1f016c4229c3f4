from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from loguru import logger

from ..graph import Flow, GraphNode
from ..types import ElementKind
from .scope import Scope, ScopeState

if TYPE_CHECKING:
    from .engine import Simulator


@dataclass
class Context:
    element: GraphNode
    scope: Scope
    initiator: Optional[Any] = None


class ElementBehavior:
    """Default enter/signal/exit protocol: wait if configured, then pass on."""

    def __init__(self, simulator: "Simulator"):
        self._simulator = simulator

    def enter(self, context: Context) -> None:
        if self.wait_at_element(context.element):
            return self._simulator.suspend(context)
        self._simulator.exit(context)

    def signal(self, context: Context) -> None:
        self._simulator.exit(context)

    def exit(self, context: Context) -> None:
        self._enter_all(context, self._simulator.graph.outgoing(context.element))

    def wait_at_element(self, element: GraphNode) -> bool:
        return self._simulator.get_config(element).wait

    def _enter_all(self, context: Context, flows: List[Flow]) -> None:
        parent = self._simulator.scopes.parent(context.scope)
        for flow in flows:
            self._simulator.enter(flow.target, parent)


class StartEventBehavior(ElementBehavior):
    def enter(self, context: Context) -> None:
        self._simulator.exit(context)


class EndEventBehavior(ElementBehavior):
    def enter(self, context: Context) -> None:
        self._simulator.exit(context)

    def exit(self, context: Context) -> None:
        self._simulator.log(f"[sim] token consumed at {context.element.id}")


class IntermediateCatchEventBehavior(ElementBehavior):
    # catch events hold the token until triggered
    def enter(self, context: Context) -> None:
        self._simulator.suspend(context)


class ExclusiveGatewayBehavior(ElementBehavior):
    def exit(self, context: Context) -> None:
        element = context.element
        outgoings = self._simulator.graph.outgoing(element)

        if len(outgoings) == 1:
            return self._enter_all(context, outgoings)

        # depends on the replay driver (or a user) to pick the branch upfront
        active = self._simulator.get_config(element).active_outgoing
        outgoing = next((o for o in outgoings if o == active), None)
        if outgoing is None:
            self._simulator.stall(context)
            return
        self._enter_all(context, [outgoing])


class ParallelGatewayBehavior(ElementBehavior):
    def enter(self, context: Context) -> None:
        element = context.element
        required = len(self._simulator.graph.incoming(element))
        if context.scope.destroyed:
            # merged into an earlier arrival
            return

        if required > 1:
            parent = self._simulator.scopes.parent(context.scope)
            arrived = [
                s for s in self._simulator.scopes.children(parent)
                if s.element.id == element.id and s.state == ScopeState.entered
            ]
            if len(arrived) < required:
                self._simulator.log(f"[sim] join {element.id} waiting ({len(arrived)}/{required})")
                return
            for sibling in arrived[:required]:
                if sibling is not context.scope:
                    self._simulator.merge(sibling)

        super().enter(context)


class SubProcessBehavior(ElementBehavior):
    def enter(self, context: Context) -> None:
        if self.wait_at_element(context.element):
            return self._simulator.suspend(context)
        self._start_inner(context)

    def signal(self, context: Context) -> None:
        self._start_inner(context)

    def _start_inner(self, context: Context) -> None:
        starts = [
            c for c in self._simulator.graph.children(context.element)
            if c.kind == ElementKind.StartEvent
        ]
        if not starts:
            logger.warning(f"[sim] Subprocess {context.element.id} has no start event")
            return self._simulator.exit(context)
        self._simulator.enter(starts[0], context.scope)


class ContainerBehavior(ElementBehavior):
    """Process and pool scopes: started explicitly, finish when drained."""

    def enter(self, context: Context) -> None:
        pass

    def exit(self, context: Context) -> None:
        self._simulator.log(f"[sim] {context.element.id} finished")


def build_behaviors(simulator: "Simulator") -> Dict[ElementKind, ElementBehavior]:
    passthrough = ElementBehavior(simulator)
    container = ContainerBehavior(simulator)
    return {
        ElementKind.Task: passthrough,
        ElementKind.Unknown: passthrough,
        ElementKind.StartEvent: StartEventBehavior(simulator),
        ElementKind.EndEvent: EndEventBehavior(simulator),
        ElementKind.IntermediateCatchEvent: IntermediateCatchEventBehavior(simulator),
        ElementKind.ExclusiveGateway: ExclusiveGatewayBehavior(simulator),
        ElementKind.ParallelGateway: ParallelGatewayBehavior(simulator),
        ElementKind.SubProcess: SubProcessBehavior(simulator),
        ElementKind.Process: container,
        ElementKind.Participant: container,
    }
