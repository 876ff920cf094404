"""Graph construction and layout."""

from textgraph.graph.graph_builder import GraphBuilder
from textgraph.graph.layout import LayoutEngine
from textgraph.graph.models import (
    EdgeMetadata,
    EdgeType,
    GraphEdge,
    GraphMetadata,
    GraphNode,
    InteractiveGraph,
    NodeMetadata,
    NodeType,
)

__all__ = [
    "EdgeMetadata",
    "EdgeType",
    "GraphBuilder",
    "GraphEdge",
    "GraphMetadata",
    "GraphNode",
    "InteractiveGraph",
    "LayoutEngine",
    "NodeMetadata",
    "NodeType",
]
