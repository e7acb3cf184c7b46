import pytest

from packet_sim.core.buffer import Segment
from packet_sim.core.enums import Direction, SimulatorState, TerminationReason
from packet_sim.core.graph import GraphEdge, GraphNode, PathGraph
from packet_sim.core.mutation import Pull, Push
from packet_sim.core.simulator import Simulator, simulate


def _chain(*ids, mutations=None):
    mutations = mutations or {}
    nodes = [GraphNode(i, mutations[i]) if i in mutations else GraphNode(i) for i in ids]
    edges = [GraphEdge(a, b) for a, b in zip(ids, ids[1:])]
    return PathGraph(nodes, edges)


def test_linear_chain_ends_at_dead_end():
    graph = _chain("a", "b", "c", mutations={"b": Push("tcp", 20)})
    sim = Simulator(graph, "a", 2048, 1000)
    steps = sim.run()

    assert [s.node.id for s in steps] == ["a", "b", "c"]
    assert [s.step_number for s in steps] == [1, 2, 3]
    assert steps[0].edge_taken is None
    assert steps[1].edge_taken == GraphEdge("a", "b")
    assert steps[0].buffer.data == 1048
    assert steps[1].buffer.data == 1028
    assert sim.termination_reason == TerminationReason.DEAD_END
    assert sim.state == SimulatorState.TERMINATED


def test_revisit_terminates_after_first_visit():
    nodes = [GraphNode("A"), GraphNode("B")]
    edges = [GraphEdge("A", "B"), GraphEdge("B", "A")]
    sim = Simulator(PathGraph(nodes, edges), "A", 2048, 1000)
    steps = sim.run()

    assert [s.node.id for s in steps] == ["A", "B"]
    assert sim.termination_reason == TerminationReason.REVISITED


def test_self_loop_is_revisit():
    graph = PathGraph([GraphNode("a")], [GraphEdge("a", "a")])
    sim = Simulator(graph, "a", 2048, 1000)
    assert len(sim.run()) == 1
    assert sim.termination_reason == TerminationReason.REVISITED


def test_missing_node_keeps_partial_steps():
    graph = PathGraph([GraphNode("a"), GraphNode("b")], [GraphEdge("a", "b"), GraphEdge("b", "ghost")])
    sim = Simulator(graph, "a", 2048, 1000)
    steps = sim.run()

    assert [s.node.id for s in steps] == ["a", "b"]
    assert sim.termination_reason == TerminationReason.NODE_MISSING


def test_undefined_entry_point():
    sim = Simulator(_chain("a"), "nope", 2048, 1000)
    assert sim.run() == []
    assert sim.termination_reason == TerminationReason.NODE_MISSING


def test_empty_entry_point():
    sim = Simulator(_chain("a"), "", 2048, 1000)
    assert sim.run() == []
    assert sim.termination_reason == TerminationReason.DEAD_END


def test_error_edges_are_never_followed():
    nodes = [GraphNode(n) for n in ("a", "drop", "ok")]
    edges = [
        GraphEdge("a", "drop", order=1, is_error_path=True, condition="Drop"),
        GraphEdge("a", "ok", order=2),
    ]
    steps = simulate(PathGraph(nodes, edges), "a", 2048, 1000)
    assert [s.node.id for s in steps] == ["a", "ok"]


def test_only_error_edges_is_dead_end():
    nodes = [GraphNode("a"), GraphNode("drop")]
    edges = [GraphEdge("a", "drop", is_error_path=True)]
    sim = Simulator(PathGraph(nodes, edges), "a", 2048, 1000)
    assert len(sim.run()) == 1
    assert sim.termination_reason == TerminationReason.DEAD_END


def test_lowest_order_wins_with_definition_tie_break():
    nodes = [GraphNode(n) for n in ("a", "x", "y", "z")]
    edges = [
        GraphEdge("a", "x", order=5),
        GraphEdge("a", "y", order=2),
        GraphEdge("a", "z", order=2),
    ]
    steps = simulate(PathGraph(nodes, edges), "a", 2048, 1000)
    assert steps[1].node.id == "y"


def test_failed_mutation_is_recorded_and_run_continues(caplog):
    graph = _chain("a", "b", "c", mutations={"b": Push("huge", 100)})
    sim = Simulator(graph, "a", 120, 100)
    failed = []
    sim.register_hook("mutation_failed", lambda node, buf: failed.append((node.id, buf.data)))

    with caplog.at_level("WARNING"):
        steps = sim.run()

    assert len(steps) == 3
    assert steps[1].buffer == steps[0].buffer
    assert sim.failed_mutations == ["b"]
    assert failed == [("b", 20)]
    assert sim.termination_reason == TerminationReason.DEAD_END
    assert "'b'" in caplog.text


def test_runs_are_deterministic_and_restartable():
    graph = _chain("a", "b", mutations={"a": Push("tcp", 20), "b": Push("ip", 20)})
    sim = Simulator(graph, "a", 2048, 1000)
    first = sim.run()
    second = sim.run()

    assert first == second
    assert second[-1].buffer.data == 1008
    assert len(sim.steps) == 2


def test_step_count_bounded_by_node_count():
    ids = [f"n{i}" for i in range(6)]
    nodes = [GraphNode(i) for i in ids]
    edges = [GraphEdge(a, b) for a in ids for b in ids]
    steps = simulate(PathGraph(nodes, edges), "n3", 2048, 1000)
    assert len(steps) <= len(ids)
    assert len({s.node.id for s in steps}) == len(steps)


def test_snapshots_are_independent():
    graph = _chain("a", "b", mutations={"a": Push("tcp", 20), "b": Push("ip", 20)})
    steps = simulate(graph, "a", 2048, 1000)

    assert steps[0].buffer.segments == [Segment("tcp", 0, 20)]
    assert steps[0].buffer is not steps[1].buffer
    steps[1].buffer.pull(20)
    assert steps[0].buffer.data == 1028


def test_ingress_run_pulls_headers():
    graph = _chain(
        "rx", "ip", "tcp",
        mutations={"rx": Pull(14, "ethernet"), "ip": Pull(20, "ip"), "tcp": Pull(20, "tcp")},
    )
    steps = simulate(graph, "rx", 2048, 1000, Direction.INGRESS)

    assert [s.buffer.data for s in steps] == [14, 34, 54]
    assert steps[-1].buffer.segments == []
    assert steps[-1].buffer.length() == 1000


def test_sidecar_prefers_node_annotation():
    nodes = [GraphNode("a"), GraphNode("b", sidecar="node-state")]
    graph = PathGraph(nodes, [GraphEdge("a", "b")])
    steps = simulate(graph, "a", 2048, 1000, default_sidecar="run-state")

    assert [s.sidecar for s in steps] == ["run-state", "node-state"]
    assert simulate(graph, "a", 2048, 1000)[0].sidecar is None


def test_hooks():
    sim = Simulator(_chain("a", "b"), "a", 2048, 1000)
    seen = []
    ended = []
    sim.register_hook("step", lambda step: seen.append(step.node.id))
    sim.register_hook("sim_end", lambda reason, steps: ended.append((reason, len(steps))))
    sim.run()

    assert seen == ["a", "b"]
    assert ended == [(TerminationReason.DEAD_END, 2)]
    with pytest.raises(ValueError):
        sim.register_hook("packet_arrival", print)


def test_iter_steps_yields_incrementally():
    sim = Simulator(_chain("a", "b", "c"), "a", 2048, 1000)
    assert sim.state == SimulatorState.NOT_STARTED

    it = sim.iter_steps()
    first = next(it)
    assert first.node.id == "a"
    assert sim.state == SimulatorState.VISITING
    assert sim.current == "a"

    rest = list(it)
    assert [s.node.id for s in rest] == ["b", "c"]
    assert sim.state == SimulatorState.TERMINATED


def test_step_wire_form():
    graph = PathGraph([GraphNode("a"), GraphNode("b")], [GraphEdge("a", "b", order=1)])
    steps = simulate(graph, "a", 2048, 1000)

    first = steps[0].to_dict()
    assert first["stepNumber"] == 1
    assert first["function"] == {"id": "a"}
    assert first["skbuffState"]["data"] == 1048
    assert "edgeTaken" not in first
    assert "conntrackState" not in first
    assert steps[1].to_dict()["edgeTaken"] == {"from": "a", "to": "b", "order": 1}


def test_failed_mutation_is_flagged_on_the_step():
    graph = _chain("a", "b", mutations={"a": Push("tcp", 20), "b": Push("ip", 20)})
    steps = simulate(graph, "a", 1030, 1000)

    assert steps[0].mutation_applied
    assert "mutationFailed" not in steps[0].to_dict()
    assert not steps[1].mutation_applied
    assert steps[1].to_dict()["mutationFailed"] is True
