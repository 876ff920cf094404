"""Deterministic 2-D node placement."""

from __future__ import annotations

import math
from typing import Callable, Dict, List

from loguru import logger

from textgraph.graph.models import GraphNode, InteractiveGraph, NodeType

CIRCULAR_RADIUS = 300.0

# Vertical band per node type for the hierarchical layout.
HIERARCHY_BANDS: Dict[NodeType, float] = {
    NodeType.ENTITY: -200.0,
    NodeType.CONCEPT: 0.0,
    NodeType.ATTRIBUTE: 200.0,
}


class LayoutEngine:
    """Assigns ``x``/``y`` to graph nodes in place.

    ``hierarchical`` stacks entities, concepts and attributes in horizontal
    bands, ``circular`` spreads all nodes over a circle, and ``force`` leaves
    placement to the renderer's physics simulation.
    """

    def __init__(self, spacing: float = 200.0) -> None:
        self.spacing = spacing
        self._algorithms: Dict[str, Callable[[InteractiveGraph], None]] = {
            "hierarchical": self.hierarchical,
            "circular": self.circular,
            "force": self.force,
        }

    def apply(self, graph: InteractiveGraph, algorithm: str) -> None:
        layout = self._algorithms.get(algorithm)
        if layout is None:
            logger.warning(f"Unknown layout algorithm '{algorithm}', using force layout")
            layout = self.force
        layout(graph)
        logger.debug(f"Applied {algorithm} layout to {len(graph.nodes)} nodes")

    def hierarchical(self, graph: InteractiveGraph) -> None:
        for node_type, y in HIERARCHY_BANDS.items():
            band: List[GraphNode] = [node for node in graph.nodes if node.node_type == node_type]
            center = (len(band) - 1) / 2.0
            for i, node in enumerate(band):
                node.x = (i - center) * self.spacing
                node.y = y

    def circular(self, graph: InteractiveGraph) -> None:
        count = len(graph.nodes)
        if count == 0:
            return
        step = 2.0 * math.pi / count
        for i, node in enumerate(graph.nodes):
            angle = i * step
            node.x = CIRCULAR_RADIUS * math.cos(angle)
            node.y = CIRCULAR_RADIUS * math.sin(angle)

    def force(self, graph: InteractiveGraph) -> None:
        # Positions are computed by the renderer's physics simulation.
        return None
