from __future__ import annotations
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from loguru import logger
from opentelemetry import trace

from .errors import JoinNotFoundError, StructuralError
from .graph import GraphNode, ProcessGraph
from .ids import IdMapper
from .joins import find_join
from .region import ChoiceRegion, ParallelRegion, RegionNode, TaskRegion, fold, region_to_dict
from .sese import ensure_sese
from .types import ElementKind

_tracer = trace.get_tracer(__name__)


@dataclass
class CompiledProcess:
    region: RegionNode
    id_map: Dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region": region_to_dict(self.region),
            "idMap": {str(k): v for k, v in self.id_map.items()},
        }


class SequenceCompiler:
    """Walks a SESE process graph and emits region items.

    Tasks and subprocesses become unit-cost task regions, splits become
    choice/parallel regions whose branches are folded into one child each,
    and everything else is passed through.
    """

    def __init__(self, graph: ProcessGraph, ids: Optional[IdMapper] = None):
        self.graph = graph
        self.ids = ids or IdMapper()
        # synthetic ids sit above every possible native id
        self._synthetic: Iterator[int] = count(graph.node_count + 1)
        self._open: Set[str] = set()

    def compile_sequence(self, start: Optional[GraphNode], stop: Optional[GraphNode] = None) -> List[RegionNode]:
        items: List[RegionNode] = []
        seen: Set[str] = set()
        current = start

        while current is not None and current is not stop:
            if current.kind == ElementKind.EndEvent:
                break
            if current.id in seen:
                raise StructuralError([f"Cycle without split detected at '{current.id}'"])
            seen.add(current.id)

            kind = current.kind
            outgoing = self.graph.outgoing(current)

            if kind in (ElementKind.Task, ElementKind.SubProcess):
                items.append(TaskRegion(
                    id=self.ids.intern(current.id),
                    label=current.name,
                    duration=1,
                    impacts=[1],
                ))
                current = self._next(current)

            elif kind == ElementKind.StartEvent:
                current = self._next(current)

            elif kind.is_gateway and len(outgoing) > 1:
                region, join = self._compile_split(current)
                items.append(region)
                if join is stop or len(self.graph.outgoing(join)) > 1:
                    # a join that splits again starts the next construct itself
                    current = join
                else:
                    current = self._next(join)

            elif kind.is_gateway:
                current = self._next(current)

            else:
                logger.warning(f"[compile] Skipping unsupported element {current.id} ({kind.value})")
                current = self._next(current)

        return items

    def _compile_split(self, split: GraphNode) -> Tuple[RegionNode, GraphNode]:
        if split.id in self._open:
            raise StructuralError([f"Cycle through split '{split.id}'"])
        join = find_join(self.graph, split)
        if join is None:
            raise JoinNotFoundError(split.id)

        self._open.add(split.id)
        try:
            children: List[RegionNode] = []
            for index, flow in enumerate(self.graph.outgoing(split)):
                logger.debug(f"[compile] Gateway {split.id} branch {index} -> {flow.target.id} ({flow.target.label})")
                branch = self.compile_sequence(flow.target, join)
                children.append(fold(branch, self._synthetic))
        finally:
            self._open.discard(split.id)

        # branches are numbered before the split itself
        region_id = self.ids.intern(split.id)

        if split.kind == ElementKind.ExclusiveGateway:
            region = ChoiceRegion(id=region_id, label=split.label or "choice", children=children, max_delay=0)
        else:
            region = ParallelRegion(id=region_id, label=split.label or "parallel", children=children)
        return region, join

    def _next(self, node: GraphNode) -> Optional[GraphNode]:
        outgoing = self.graph.outgoing(node)
        if not outgoing:
            return None
        if len(outgoing) > 1:
            logger.warning(f"[compile] {node.id} has {len(outgoing)} outgoing flows; following the first")
        return outgoing[0].target

    def fold(self, items: List[RegionNode]) -> RegionNode:
        return fold(items, self._synthetic)


def compile_process(graph: ProcessGraph, scope: Optional[GraphNode] = None, validate: bool = True) -> CompiledProcess:
    """Compile one process scope into a region tree plus its reverse id map.

    ``scope`` defaults to the root process, or to the first pool when the root
    is a collaboration.
    """
    if validate:
        ensure_sese(graph)
    scope = scope or _default_scope(graph)

    with _tracer.start_as_current_span(f"compile:{scope.id}"):
        starts = [n for n in graph.children(scope) if n.kind == ElementKind.StartEvent]
        if len(starts) != 1:
            raise StructuralError([
                f"Scope '{scope.name}' must have exactly one Start Event (SESE constraint), found {len(starts)}."
            ])

        compiler = SequenceCompiler(graph)
        items = compiler.compile_sequence(starts[0])
        region = compiler.fold(items)
        logger.info(f"[compile] {scope.id}: {len(compiler.ids)} mapped elements")
        return CompiledProcess(region=region, id_map=compiler.ids.reverse())


def _default_scope(graph: ProcessGraph) -> GraphNode:
    if graph.root.kind == ElementKind.Process:
        return graph.root
    pools = [n for n in graph.nodes if n.kind == ElementKind.Participant]
    if not pools:
        raise StructuralError([f"Collaboration '{graph.root.name}' has no participants."])
    return pools[0]
