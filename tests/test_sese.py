import pytest

from tokenflow.errors import StructuralError
from tokenflow.graph import ProcessGraph
from tokenflow.sese import ensure_sese, validate_sese
from tokenflow.types import ElementKind

from conftest import make_graph

K = ElementKind


def test_well_formed_diagrams_are_valid(linear_graph, diamond_graph, subprocess_graph):
    for graph in (linear_graph, diamond_graph, subprocess_graph):
        result = validate_sese(graph)
        assert result.valid
        assert result.errors == []


def test_one_message_per_violating_scope():
    graph = make_graph(
        [("S1", K.StartEvent), ("S2", K.StartEvent), ("A", K.Task)],
        [("S1", "A"), ("S2", "A")],
    )
    result = validate_sese(graph)
    assert not result.valid
    assert len(result.errors) == 1
    assert "2 Start Events" in result.errors[0]
    assert "0 End Events" in result.errors[0]
    assert result.scopes == [graph.root.id]


def test_all_violations_are_collected():
    graph = make_graph(
        [("S", K.StartEvent), ("Sub", K.SubProcess), ("T", K.Task, "Sub"),
         ("E2", K.EndEvent, "Sub"), ("Other", K.SubProcess), ("E", K.EndEvent)],
        [("S", "Sub"), ("Sub", "Other"), ("Other", "E"), ("T", "E2")],
    )
    result = validate_sese(graph)
    assert result.scopes == ["Sub", "Other"]
    assert len(result.errors) == 2
    with pytest.raises(StructuralError) as exc:
        ensure_sese(graph)
    assert exc.value.errors == result.errors


def test_each_pool_is_checked():
    graph = ProcessGraph(root_id="Collab", root_kind=K.Collaboration)
    graph.add_node("Pool_1", K.Participant, label="Sales")
    graph.add_node("Pool_2", K.Participant, label="Billing")
    graph.add_node("S", K.StartEvent, parent="Pool_1")
    graph.add_node("E", K.EndEvent, parent="Pool_1")
    graph.add_node("S_b", K.StartEvent, parent="Pool_2")
    result = validate_sese(graph)
    assert result.scopes == ["Pool_2"]
    assert result.errors == ["Scope 'Billing' has 0 End Events (must be 1)."]
