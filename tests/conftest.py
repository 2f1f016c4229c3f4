"""
Test configuration and shared diagrams for the tokenflow test suite.
"""
import sys
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tokenflow.graph import ProcessGraph
from tokenflow.settings import Settings
from tokenflow.types import ElementKind

K = ElementKind


def make_graph(nodes: Iterable[Tuple], flows: Iterable[Tuple[str, str]],
               root_kind: ElementKind = ElementKind.Process) -> ProcessGraph:
    """Build a graph from ``(id, kind[, parent])`` tuples and ``(source, target)`` pairs.

    Nodes get increasing x positions in the order given.
    """
    graph = ProcessGraph(root_kind=root_kind)
    for x, spec in enumerate(nodes):
        node_id, kind = spec[0], spec[1]
        parent: Optional[str] = spec[2] if len(spec) > 2 else None
        graph.add_node(node_id, kind, label=node_id, parent=parent, x=float(x * 100))
    for source, target in flows:
        graph.add_flow(source, target)
    return graph


@pytest.fixture
def linear_graph() -> ProcessGraph:
    """S -> A -> B -> E"""
    return make_graph(
        [("S", K.StartEvent), ("A", K.Task), ("B", K.Task), ("E", K.EndEvent)],
        [("S", "A"), ("A", "B"), ("B", "E")],
    )


@pytest.fixture
def diamond_graph() -> ProcessGraph:
    """S -> Fork -> (A | B) -> Join -> E"""
    return make_graph(
        [("S", K.StartEvent), ("Fork", K.ParallelGateway), ("A", K.Task), ("B", K.Task),
         ("Join", K.ParallelGateway), ("E", K.EndEvent)],
        [("S", "Fork"), ("Fork", "A"), ("Fork", "B"), ("A", "Join"), ("B", "Join"), ("Join", "E")],
    )


@pytest.fixture
def choice_graph() -> ProcessGraph:
    """S -> A -> G -> (B | C) -> J -> D -> E"""
    return make_graph(
        [("S", K.StartEvent), ("A", K.Task), ("G", K.ExclusiveGateway), ("B", K.Task),
         ("C", K.Task), ("J", K.ExclusiveGateway), ("D", K.Task), ("E", K.EndEvent)],
        [("S", "A"), ("A", "G"), ("G", "B"), ("G", "C"), ("B", "J"), ("C", "J"),
         ("J", "D"), ("D", "E")],
    )


@pytest.fixture
def subprocess_graph() -> ProcessGraph:
    """S -> Sub[S2 -> T -> E2] -> E"""
    return make_graph(
        [("S", K.StartEvent), ("Sub", K.SubProcess), ("S2", K.StartEvent, "Sub"),
         ("T", K.Task, "Sub"), ("E2", K.EndEvent, "Sub"), ("E", K.EndEvent)],
        [("S", "Sub"), ("Sub", "E"), ("S2", "T"), ("T", "E2")],
    )


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(trigger_attempts=3, trigger_delay_s=0.0, step_delay_s=0.0)
