from __future__ import annotations

import math

import pytest

from textgraph.graph.layout import LayoutEngine
from textgraph.graph.models import GraphNode, InteractiveGraph, NodeType


def _node(node_id: str, node_type: NodeType) -> GraphNode:
    return GraphNode(
        id=node_id, label=node_id, node_type=node_type, color="#000000", shape="box", size=10.0
    )


def _graph(*nodes: GraphNode) -> InteractiveGraph:
    return InteractiveGraph(nodes=list(nodes))


def test_hierarchical_bands_are_centered() -> None:
    graph = _graph(
        _node("e1", NodeType.ENTITY),
        _node("c1", NodeType.CONCEPT),
        _node("e2", NodeType.ENTITY),
        _node("a1", NodeType.ATTRIBUTE),
        _node("e3", NodeType.ENTITY),
    )

    LayoutEngine(spacing=200.0).apply(graph, "hierarchical")

    positions = {node.id: (node.x, node.y) for node in graph.nodes}
    assert positions["e1"] == (-200.0, -200.0)
    assert positions["e2"] == (0.0, -200.0)
    assert positions["e3"] == (200.0, -200.0)
    assert positions["c1"] == (0.0, 0.0)
    assert positions["a1"] == (0.0, 200.0)


def test_hierarchical_even_band_is_symmetric() -> None:
    graph = _graph(_node("e1", NodeType.ENTITY), _node("e2", NodeType.ENTITY))

    LayoutEngine(spacing=100.0).hierarchical(graph)

    assert [node.x for node in graph.nodes] == [-50.0, 50.0]


def test_circular_spreads_nodes_on_radius() -> None:
    graph = _graph(*[_node(f"n{i}", NodeType.ENTITY) for i in range(4)])

    LayoutEngine().apply(graph, "circular")

    expected = [(300.0, 0.0), (0.0, 300.0), (-300.0, 0.0), (0.0, -300.0)]
    for node, (x, y) in zip(graph.nodes, expected):
        assert node.x == pytest.approx(x, abs=1e-9)
        assert node.y == pytest.approx(y, abs=1e-9)
        assert math.hypot(node.x, node.y) == pytest.approx(300.0)


def test_circular_on_empty_graph_is_noop() -> None:
    graph = _graph()

    LayoutEngine().apply(graph, "circular")

    assert graph.nodes == []


@pytest.mark.parametrize("algorithm", ["force", "spring-magic"])
def test_force_and_unknown_leave_positions_unset(algorithm: str) -> None:
    graph = _graph(_node("e1", NodeType.ENTITY))

    LayoutEngine().apply(graph, algorithm)

    assert graph.nodes[0].x is None
    assert graph.nodes[0].y is None
