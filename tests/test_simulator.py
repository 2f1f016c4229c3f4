import pytest

from tokenflow.errors import ConfigLockedError, TriggerFailure, UnknownElementError
from tokenflow.simulator import SimulationSession
from tokenflow.simulator.scope import ScopeState
from tokenflow.types import ElementKind

from conftest import make_graph

K = ElementKind


def entered(session):
    return [e.element_id for e in session.simulator.events if e.kind == "enter"]


def test_linear_process_runs_to_the_end(linear_graph):
    session = SimulationSession(linear_graph)
    session.simulator.start()
    assert entered(session) == ["Process_1", "S", "A", "B", "E"]
    assert session.simulator.finished
    assert session.simulator.active_scopes() == []


def test_token_waits_until_triggered(linear_graph):
    session = SimulationSession(linear_graph)
    session.config.set(linear_graph.get("A"), wait=True)
    sim = session.simulator

    sim.start()
    scope = sim.waiting_scope("A")
    assert scope is not None and scope.waiting
    assert "B" not in entered(session)
    assert not sim.finished

    sim.trigger("A")
    assert sim.waiting_scope("A") is None
    assert sim.has_exited("A")
    assert sim.finished


def test_exclusive_gateway_without_branch_stalls(choice_graph):
    session = SimulationSession(choice_graph)
    session.simulator.start()
    kinds = [(e.kind, e.element_id) for e in session.simulator.events]
    assert ("stall", "G") in kinds
    assert "B" not in entered(session) and "C" not in entered(session)


def test_sequence_flow_selects_branch(choice_graph):
    session = SimulationSession(choice_graph)
    gateway = choice_graph.get("G")
    to_c = choice_graph.outgoing(gateway)[1]
    session.config.set_sequence_flow(gateway, to_c)

    session.simulator.start()
    assert entered(session) == ["Process_1", "S", "A", "G", "C", "J", "D", "E"]
    assert session.simulator.finished


def test_locked_gateway_refuses_manual_choice(choice_graph):
    session = SimulationSession(choice_graph)
    gateway = choice_graph.get("G")
    to_b, to_c = choice_graph.outgoing(gateway)
    session.config.lock(gateway, to_b)
    with pytest.raises(ConfigLockedError):
        session.config.set_sequence_flow(gateway, to_c)

    session.config.unlock(gateway)
    with pytest.raises(ValueError):
        session.config.set_sequence_flow(gateway, choice_graph.outgoing(choice_graph.get("A"))[0])


def test_engine_cannot_write_config(linear_graph):
    session = SimulationSession(linear_graph)
    view = session.simulator.config
    assert not hasattr(view, "set")
    session.config.set(linear_graph.get("A"), wait=True)
    assert view.get(linear_graph.get("A")).wait


def test_parallel_join_merges_tokens(diamond_graph):
    session = SimulationSession(diamond_graph)
    sim = session.simulator
    sim.start()
    assert entered(session).count("Join") == 2
    assert entered(session).count("E") == 1
    assert sim.exit_count("Join") == 1
    assert any(e.kind == "merge" for e in sim.events)
    assert sim.finished


def test_join_waits_for_all_branches(diamond_graph):
    session = SimulationSession(diamond_graph)
    session.config.set(diamond_graph.get("B"), wait=True)
    sim = session.simulator
    sim.start()
    assert sim.scopes.find("Join", ScopeState.entered)
    assert "E" not in entered(session)

    sim.trigger("B")
    assert entered(session).count("E") == 1
    assert sim.finished


def test_subprocess_waits_then_runs_inner_flow(subprocess_graph):
    session = SimulationSession(subprocess_graph)
    session.config.set(subprocess_graph.get("Sub"), wait=True)
    sim = session.simulator

    sim.start()
    assert sim.waiting_scope("Sub") is not None
    assert "S2" not in entered(session)

    sim.trigger("Sub")
    assert entered(session)[-4:] == ["S2", "T", "E2", "E"]
    assert sim.finished


def test_subprocess_exits_after_its_content(subprocess_graph):
    session = SimulationSession(subprocess_graph)
    session.config.set(subprocess_graph.get("T"), wait=True)
    sim = session.simulator

    sim.start()
    sub = sim.scopes.find("Sub")[0]
    assert sub.state == ScopeState.entered
    assert [c.element.id for c in sim.scopes.children(sub)] == ["T"]

    sim.trigger("T")
    assert sim.has_exited("Sub")
    assert sim.finished


def test_inner_start_requires_running_subprocess(subprocess_graph):
    sim = SimulationSession(subprocess_graph).simulator
    with pytest.raises(TriggerFailure):
        sim.trigger("S2")


def test_catch_event_holds_token():
    graph = make_graph(
        [("S", K.StartEvent), ("Msg", K.IntermediateCatchEvent), ("E", K.EndEvent)],
        [("S", "Msg"), ("Msg", "E")],
    )
    sim = SimulationSession(graph).simulator
    sim.start()
    assert sim.waiting_scope("Msg") is not None
    sim.trigger("Msg")
    assert sim.finished


def test_trigger_errors(linear_graph):
    sim = SimulationSession(linear_graph).simulator
    with pytest.raises(UnknownElementError):
        sim.trigger("Nope")
    with pytest.raises(TriggerFailure):
        sim.trigger("B")

    sim.start()
    done = sim.scopes.get(0)
    with pytest.raises(TriggerFailure):
        sim.signal(done)


def test_continuation_is_single_shot(linear_graph):
    session = SimulationSession(linear_graph)
    session.config.set(linear_graph.get("A"), wait=True)
    session.config.set(linear_graph.get("B"), wait=True)
    sim = session.simulator
    sim.start()
    scope = sim.waiting_scope("A")
    sim.signal(scope)
    with pytest.raises(TriggerFailure):
        sim.signal(scope)
    assert sim.waiting_scope("B") is not None


def test_start_event_trigger_starts_new_instance(linear_graph):
    session = SimulationSession(linear_graph)
    session.config.set(linear_graph.get("A"), wait=True)
    sim = session.simulator
    sim.trigger("S")
    sim.trigger("S")
    assert len(sim.scopes.find("A", ScopeState.waiting)) == 2


def test_long_chain_does_not_recurse():
    n = 2000
    nodes = [("S", K.StartEvent)] + [(f"T{i}", K.Task) for i in range(n)] + [("E", K.EndEvent)]
    ids = [node[0] for node in nodes]
    graph = make_graph(nodes, list(zip(ids, ids[1:])))
    sim = SimulationSession(graph).simulator
    sim.start()
    assert sim.finished
    assert sim.exit_count(f"T{n - 1}") == 1


def test_reset_clears_runtime_and_config(linear_graph):
    session = SimulationSession(linear_graph)
    session.config.set(linear_graph.get("A"), wait=True)
    session.simulator.start()
    session.reset()
    assert len(session.simulator.scopes) == 0
    assert session.simulator.events == []
    assert len(session.config) == 0
