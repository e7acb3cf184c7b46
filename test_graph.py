import pytest

from packet_sim.core.graph import GraphEdge, GraphNode, PathGraph
from packet_sim.core.mutation import NO_MUTATION, Push


def _diamond() -> PathGraph:
    nodes = [
        GraphNode("a"),
        GraphNode("b", Push("tcp", 20)),
        GraphNode("c"),
        GraphNode("d"),
    ]
    edges = [
        GraphEdge("a", "c", order=2),
        GraphEdge("a", "b", order=1),
        GraphEdge("b", "d"),
        GraphEdge("c", "d"),
    ]
    return PathGraph(nodes, edges)


def test_lookup():
    graph = _diamond()
    assert graph.lookup("b").mutation == Push("tcp", 20)
    assert graph.lookup("a").mutation is NO_MUTATION
    assert graph.lookup("zz") is None
    assert "a" in graph
    assert "zz" not in graph
    assert len(graph) == 4


def test_outgoing_edges_keep_definition_order():
    graph = _diamond()
    assert [e.target for e in graph.outgoing_edges("a")] == ["c", "b"]
    assert graph.next_nodes("a") == ["c", "b"]
    assert graph.outgoing_edges("d") == []


def test_ordered_edges_sort_by_order_then_definition():
    nodes = [GraphNode(n) for n in "abcd"]
    edges = [
        GraphEdge("a", "b", order=3),
        GraphEdge("a", "c", order=1),
        GraphEdge("a", "d", order=1),
    ]
    graph = PathGraph(nodes, edges)
    assert [e.target for e in graph.ordered_edges("a")] == ["c", "d", "b"]


def test_returned_edge_lists_are_copies():
    graph = _diamond()
    graph.outgoing_edges("a").clear()
    graph.ordered_edges("a").clear()
    assert len(graph.outgoing_edges("a")) == 2
    assert len(graph.ordered_edges("a")) == 2


def test_duplicate_node_ids_raise():
    with pytest.raises(ValueError):
        PathGraph([GraphNode("a"), GraphNode("a")], [])


def test_dangling_edges_and_cycles_are_allowed():
    nodes = [GraphNode("a"), GraphNode("b")]
    edges = [
        GraphEdge("a", "b"),
        GraphEdge("b", "a"),
        GraphEdge("b", "ghost"),
    ]
    graph = PathGraph(nodes, edges)

    assert graph.has_cycle()
    assert graph.lookup("ghost") is None
    assert graph.next_nodes("b") == ["a", "ghost"]
    assert graph.reachable_from("a") == {"a", "b", "ghost"}


def test_acyclic_graph():
    graph = _diamond()
    assert not graph.has_cycle()
    assert graph.reachable_from("b") == {"b", "d"}
    assert graph.reachable_from("nowhere") == set()


def test_nodes_and_edges_in_definition_order():
    graph = _diamond()
    assert [n.id for n in graph.nodes] == ["a", "b", "c", "d"]
    assert [(e.source, e.target) for e in graph.edges] == [
        ("a", "c"),
        ("a", "b"),
        ("b", "d"),
        ("c", "d"),
    ]


def test_parallel_edges_are_kept():
    nodes = [GraphNode("a"), GraphNode("b")]
    edges = [
        GraphEdge("a", "b", order=1, is_error_path=True, condition="Drop"),
        GraphEdge("a", "b", order=2),
    ]
    graph = PathGraph(nodes, edges)
    assert len(graph.outgoing_edges("a")) == 2
    assert graph.graph.number_of_edges("a", "b") == 2


def test_edge_wire_form():
    edge = GraphEdge("a", "b", order=1, is_error_path=True, condition="No route")
    assert edge.to_dict() == {
        "from": "a",
        "to": "b",
        "condition": "No route",
        "isErrorPath": True,
        "order": 1,
    }
    assert GraphEdge("a", "b").to_dict() == {"from": "a", "to": "b"}
    assert GraphEdge.from_dict(edge.to_dict()) == edge
