from __future__ import annotations
import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from loguru import logger
from opentelemetry import trace

from .errors import TriggerFailure, UnknownElementError
from .graph import Flow, GraphNode
from .settings import Settings
from .simulator.scope import ScopeState
from .simulator.session import SimulationSession
from .trace import Snapshot, TargetTrace
from .types import ElementKind, ElementStatus

_tracer = trace.get_tracer(__name__)

COMPLETE = "complete"
ACTIVATE = "activate"


class ReplayDriver:
    """Drives a simulation session through a target trace, one step at a time.

    Before each step every exclusive gateway is locked onto the branch the
    trace takes next, so gateway exits never have to guess. Only one step
    runs at a time; overlapping requests are rejected, not queued.
    """

    def __init__(self, session: SimulationSession, target: TargetTrace,
                 settings: Optional[Settings] = None,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None):
        self.session = session
        self.graph = session.graph
        self.trace = target
        self.settings = settings or Settings.from_env()
        self._sleep = sleep or asyncio.sleep
        self._in_flight = False
        self._started = False
        self.current_state_index = 0
        self.failures: List[TriggerFailure] = []

        unknown = [i for i in target.element_ids() if i not in self.graph]
        if unknown:
            raise UnknownElementError(unknown)
        self.reset()

    @property
    def simulator(self):
        return self.session.simulator

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def done(self) -> bool:
        return self.current_state_index >= len(self.trace) - 1

    def reset(self) -> None:
        self.session.reset()
        for element_id in sorted(self.trace.element_ids()):
            element = self.graph.get(element_id)
            if element.kind.is_activity:
                self.session.config.set(element, wait=True)
        self.current_state_index = 0
        self._started = False
        self.failures = []

    # ---------- Stepping ----------
    async def advance(self) -> bool:
        """Take one step of the trace; False when rejected or already at the end."""
        if self._in_flight:
            logger.warning("[replay] Step already in flight; ignoring advance request")
            return False
        self._in_flight = True
        try:
            return await self._step()
        finally:
            self._in_flight = False

    async def play(self) -> int:
        """Replay the whole trace from the beginning; returns the final index."""
        if self._in_flight:
            logger.warning("[replay] Playback already in flight; ignoring play request")
            return self.current_state_index
        self._in_flight = True
        try:
            self.reset()
            if not len(self.trace):
                logger.warning("[replay] No state snapshots to play")
                return 0
            self._ensure_started()
            while await self._step():
                pass
            logger.info(f"[replay] Finished at state {self.current_state_index} ({len(self.failures)} failed triggers)")
            return self.current_state_index
        finally:
            self._in_flight = False

    async def _step(self) -> bool:
        index = self.current_state_index
        if index >= len(self.trace) - 1:
            return False

        with _tracer.start_as_current_span(f"replay.step:{index}"):
            self.preconfigure_gateways(index)
            await self._sleep(self.settings.step_delay_s)
            self._ensure_started()

            prev, nxt = self.trace[index], self.trace[index + 1]
            triggers = self.step_triggers(prev, nxt)
            logger.info(f"[replay] Step {index} -> {index + 1}: {[t[0] for t in triggers]}")
            await self._trigger_all(triggers)
            self.current_state_index = index + 1
        return True

    def _ensure_started(self) -> None:
        if not self._started:
            self.simulator.start()
            self._started = True

    # ---------- Trigger selection ----------
    def step_triggers(self, prev: Snapshot, nxt: Snapshot) -> List[Tuple[str, str]]:
        """Elements to act on between two snapshots, in horizontal diagram order."""
        actions: Dict[str, str] = {}
        for element_id, status in nxt.states.items():
            kind = self.graph.get(element_id).kind
            if kind == ElementKind.StartEvent:
                continue
            was = prev.status(element_id)
            if status == ElementStatus.completed and was == ElementStatus.active:
                # subprocesses complete through their content
                if kind != ElementKind.SubProcess:
                    actions[element_id] = COMPLETE
            elif status == ElementStatus.active and was != ElementStatus.active:
                if kind in (ElementKind.SubProcess, ElementKind.IntermediateCatchEvent):
                    actions[element_id] = ACTIVATE

        ordered = sorted(actions, key=lambda i: (self.graph.get(i).x, i))
        return [(i, actions[i]) for i in ordered]

    async def _trigger_all(self, triggers: List[Tuple[str, str]]) -> None:
        pending = list(triggers)
        errors: Dict[str, TriggerFailure] = {}
        attempts = max(1, self.settings.trigger_attempts)

        for attempt in range(1, attempts + 1):
            failed = []
            for element_id, action in pending:
                try:
                    self._apply(element_id, action)
                except TriggerFailure as e:
                    errors[element_id] = e
                    failed.append((element_id, action))
            pending = failed
            if not pending:
                return
            if attempt < attempts:
                logger.debug(f"[replay] Retrying {[p[0] for p in pending]} (attempt {attempt + 1}/{attempts})")
                await self._sleep(self.settings.trigger_delay_s)

        for element_id, _ in pending:
            logger.warning(f"[replay] Giving up on {element_id} after {attempts} attempts: {errors[element_id]}")
            self.failures.append(errors[element_id])

    def _apply(self, element_id: str, action: str) -> None:
        element = self.graph.get(element_id)
        waiting = self.simulator.waiting_scope(element_id)

        if action == COMPLETE:
            if waiting is not None:
                self.simulator.signal(waiting)
            elif self.simulator.has_exited(element_id):
                logger.debug(f"[replay] {element_id} already passed")
            else:
                raise TriggerFailure(element_id, "no token is waiting there")
            return

        if element.kind == ElementKind.SubProcess:
            if waiting is not None:
                self.simulator.signal(waiting)
            elif not self.simulator.scopes.find(element_id, ScopeState.entered):
                raise TriggerFailure(element_id, "subprocess has not been reached")
        elif waiting is None:
            # a catch event is active once a token is parked on it
            raise TriggerFailure(element_id, "no token has reached the catch event")

    # ---------- Gateway look-ahead ----------
    def preconfigure_gateways(self, start: int) -> None:
        config = self.session.config
        for gateway in self.graph.nodes:
            if gateway.kind != ElementKind.ExclusiveGateway:
                continue
            choice = self.infer_branch(gateway, start)
            if choice is not None:
                flow, wait = choice
                config.set(gateway, locked=True, active_outgoing=flow, wait=wait)
            elif config.get(gateway).locked:
                config.unlock(gateway)

    def infer_branch(self, gateway: GraphNode, start: int) -> Optional[Tuple[Flow, bool]]:
        """Branch the trace takes at the gateway's next exit at or after ``start``.

        Returns the flow and whether the token should wait at the gateway
        (it does when the trace shows the gateway active before it exits).
        """
        outgoing = self.graph.outgoing(gateway)
        for k in range(start, len(self.trace) - 1):
            before, after = self.trace[k], self.trace[k + 1]
            was, now = before.status(gateway.id), after.status(gateway.id)
            left_active = was == ElementStatus.active and now != ElementStatus.active
            passed = was == ElementStatus.absent and now == ElementStatus.completed
            if not (left_active or passed):
                continue
            for snap in (self.trace[j] for j in range(k + 1, len(self.trace))):
                for flow in outgoing:
                    target = flow.target.id
                    status = snap.status(target)
                    if status != ElementStatus.absent and status != before.status(target):
                        return flow, left_active
            return None
        return None
