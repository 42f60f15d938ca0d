"""
Tests for Graph construction, wiring checks and dependency resolution.
"""

import pytest

from nodeflow.contracts import any_value
from nodeflow.dag import Connection, DependencyResolver, Graph, Node, NodeKind
from nodeflow.errors import CycleError, GraphConfigError


def make_node(name: str, kind: NodeKind = NodeKind.PURE) -> Node:
    return Node(
        name=name,
        kind=kind,
        input_schema=any_value(),
        output_schema=any_value(),
        execute=lambda value: value,
    )


def make_graph(names, edges) -> Graph:
    return Graph(
        nodes=[make_node(n) for n in names],
        connections=[Connection(a, b) for a, b in edges],
    )


# ---- Construction ----
def test_graph_from_mapping_and_list():
    node = make_node("a")

    assert Graph({"a": node}).nodes["a"] is node
    assert "a" in Graph([node])


def test_mapping_key_must_match_node_name():
    with pytest.raises(GraphConfigError):
        Graph({"b": make_node("a")})


def test_duplicate_node_names_rejected():
    with pytest.raises(GraphConfigError):
        Graph([make_node("a"), make_node("a")])


def test_connection_to_unknown_node_rejected():
    with pytest.raises(GraphConfigError, match="unknown node"):
        make_graph(["a"], [("a", "missing")])


def test_graph_nodes_are_read_only():
    graph = make_graph(["a"], [])

    with pytest.raises(TypeError):
        graph.nodes["b"] = make_node("b")


def test_neighbourhood_helpers():
    graph = make_graph(["a", "b", "c", "d"], [("a", "b"), ("b", "c"), ("a", "c")])

    assert graph.upstream("c") == {"a", "b"}
    assert graph.downstream("a") == {"b", "c"}
    assert graph.descendants("a") == {"b", "c"}
    assert graph.sources() == ["a", "d"]
    assert graph.terminals() == ["c", "d"]


def test_node_kind_from_string():
    node = Node(name="x", kind="io", input_schema=None, output_schema=str, execute=lambda _: "x")

    assert node.kind is NodeKind.IO
    assert not node.is_pure


def test_connection_str():
    assert str(Connection("gen", "echo", "completion", "text")) == "gen.completion -> echo.text"
    assert str(Connection("a", "b")) == "a -> b"


# ---- Wiring ----
def test_duplicate_input_channel_rejected():
    graph = Graph(
        nodes=[make_node("a"), make_node("b"), make_node("c")],
        connections=[Connection("a", "c", to_input="x"), Connection("b", "c", to_input="x")],
    )

    with pytest.raises(GraphConfigError, match="wired twice"):
        graph.validate_wiring()


def test_whole_input_plus_named_input_rejected():
    graph = Graph(
        nodes=[make_node("a"), make_node("b"), make_node("c")],
        connections=[Connection("a", "c"), Connection("b", "c", to_input="x")],
    )

    with pytest.raises(GraphConfigError):
        graph.validate_wiring()


def test_distinct_channels_accepted():
    graph = Graph(
        nodes=[make_node("a"), make_node("b"), make_node("c")],
        connections=[Connection("a", "c", to_input="x"), Connection("b", "c", to_input="y")],
    )

    graph.validate_wiring()


# ---- Resolution ----
def test_independent_nodes_ordered_lexically():
    graph = make_graph(["c", "a", "b"], [])

    assert DependencyResolver(graph).resolve() == ["a", "b", "c"]


def test_dependencies_come_first():
    graph = make_graph(["a", "b", "z"], [("z", "a"), ("a", "b")])

    assert DependencyResolver(graph).resolve() == ["z", "a", "b"]


def test_tie_break_among_newly_ready_nodes():
    graph = make_graph(["root", "y", "x", "m"], [("root", "y"), ("root", "x")])

    assert DependencyResolver(graph).resolve() == ["m", "root", "x", "y"]


def test_parallel_connections_count_once():
    graph = Graph(
        nodes=[make_node("a"), make_node("b")],
        connections=[Connection("a", "b", "x", "x"), Connection("a", "b", "y", "y")],
    )

    assert DependencyResolver(graph).resolve() == ["a", "b"]


def test_stages_group_independent_nodes():
    graph = make_graph(["a", "b", "c", "d"], [("a", "c"), ("b", "c"), ("c", "d")])

    assert DependencyResolver(graph).stages() == [["a", "b"], ["c"], ["d"]]


def test_cycle_detected():
    graph = make_graph(["a", "b", "c"], [("a", "b"), ("b", "a"), ("b", "c")])

    with pytest.raises(CycleError) as exc:
        DependencyResolver(graph).resolve()

    assert exc.value.involved_nodes == ["a", "b"]


def test_self_loop_is_a_cycle():
    graph = make_graph(["a"], [("a", "a")])

    with pytest.raises(CycleError) as exc:
        DependencyResolver(graph).resolve()

    assert exc.value.involved_nodes == ["a"]
