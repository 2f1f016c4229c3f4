"""
ProcessGraph: in-memory graph model adapter for process diagrams.

This module provides the read interface the compiler and the simulator
consume:
- Flow nodes with their kind, label, containing scope and position
- Ordered outgoing / incoming flow lists
- Root element and element lookup by id
- Reachability over outgoing flows

Flows are stored as keyed edges of a networkx MultiDiGraph, so two flows
between the same pair of nodes stay distinct and edge insertion order is the
diagram's outgoing order.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set

import networkx as nx

from .errors import GraphError
from .types import ElementKind


@dataclass(frozen=True)
class GraphNode:
    id: str
    kind: ElementKind
    label: str = ""
    parent: Optional[str] = None  # id of the containing scope element
    x: float = 0.0
    y: float = 0.0

    @property
    def name(self) -> str:
        return self.label or self.id


@dataclass(frozen=True)
class Flow:
    id: str
    source: GraphNode
    target: GraphNode


class ProcessGraph:
    """Process diagram: flow nodes nested in scopes, connected by flows."""

    def __init__(self, root_id: str = "Process_1",
                 root_kind: ElementKind = ElementKind.Process,
                 root_label: str = ""):
        if root_kind not in (ElementKind.Process, ElementKind.Collaboration):
            raise GraphError(f"Root element must be a Process or Collaboration, got {root_kind.value}")
        self.graph: nx.MultiDiGraph = nx.MultiDiGraph()
        self._elements: Dict[str, GraphNode] = {}
        self._flows: Dict[str, Flow] = {}
        self._root = GraphNode(id=root_id, kind=root_kind, label=root_label)
        self._elements[root_id] = self._root

    # ─── Construction ────────────────────────────────────────────

    def add_node(self, id: str, kind: ElementKind, label: str = "",
                 parent: Optional[str] = None, x: float = 0.0, y: float = 0.0) -> GraphNode:
        if id in self._elements:
            raise GraphError(f"Duplicate element id '{id}'")
        parent = parent or self._root.id
        container = self._elements.get(parent)
        if container is None:
            raise GraphError(f"Unknown parent '{parent}' for element '{id}'")
        if kind == ElementKind.Participant and container.kind != ElementKind.Collaboration:
            raise GraphError(f"Participant '{id}' must be placed in a Collaboration")
        node = GraphNode(id=id, kind=ElementKind(kind), label=label, parent=parent, x=x, y=y)
        self._elements[id] = node
        if kind != ElementKind.Participant:
            self.graph.add_node(id, data=node)
        return node

    def add_flow(self, source_id: str, target_id: str, id: Optional[str] = None) -> Flow:
        for endpoint in (source_id, target_id):
            if endpoint not in self.graph.nodes:
                raise GraphError(f"Flow endpoint '{endpoint}' is not a flow node")
        flow_id = id or f"Flow_{len(self._flows) + 1}"
        if flow_id in self._flows:
            raise GraphError(f"Duplicate flow id '{flow_id}'")
        flow = Flow(id=flow_id, source=self._elements[source_id], target=self._elements[target_id])
        self._flows[flow_id] = flow
        self.graph.add_edge(source_id, target_id, key=flow_id, flow=flow)
        return flow

    # ─── Lookup ──────────────────────────────────────────────────

    @property
    def root(self) -> GraphNode:
        return self._root

    def get(self, element_id: str) -> Optional[GraphNode]:
        return self._elements.get(element_id)

    def flow(self, flow_id: str) -> Optional[Flow]:
        return self._flows.get(flow_id)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self.nodes)

    @property
    def nodes(self) -> List[GraphNode]:
        """All elements except the root, in insertion (diagram) order."""
        return [n for n in self._elements.values() if n is not self._root]

    @property
    def node_count(self) -> int:
        return len(self._elements) - 1

    def children(self, scope: GraphNode) -> List[GraphNode]:
        return [n for n in self.nodes if n.parent == scope.id]

    def outgoing(self, node: GraphNode) -> List[Flow]:
        if node.id not in self.graph.nodes:
            return []
        return [data["flow"] for _, _, data in self.graph.out_edges(node.id, data=True)]

    def incoming(self, node: GraphNode) -> List[Flow]:
        if node.id not in self.graph.nodes:
            return []
        return [data["flow"] for _, _, data in self.graph.in_edges(node.id, data=True)]

    def process_scopes(self) -> List[GraphNode]:
        """Scopes that must be SESE: the root process (or each pool), then every subprocess."""
        scopes: List[GraphNode] = []
        if self._root.kind == ElementKind.Process:
            scopes.append(self._root)
        else:
            scopes.extend(n for n in self.nodes if n.kind == ElementKind.Participant)
        scopes.extend(n for n in self.nodes if n.kind == ElementKind.SubProcess)
        return scopes


def reachable_from(graph: ProcessGraph, node: GraphNode) -> Set[GraphNode]:
    """All nodes reachable from ``node`` over outgoing flows, ``node`` included."""
    ids = nx.descendants(graph.graph, node.id) | {node.id}
    return {graph.get(i) for i in ids}
