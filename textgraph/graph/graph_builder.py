"""Builds an :class:`InteractiveGraph` from an extraction result.

Entities and concepts become nodes, non-name entity attributes become
attribute nodes hanging off their entity, and relationships become directed
edges. Concepts are additionally linked to the entities mentioned near them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from loguru import logger

from textgraph.errors import GraphBuildingError
from textgraph.extraction.models import Attribute, Concept, Entity, ExtractionResult, Relationship
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
from textgraph.utils.config import Config

ENTITY_BASE_SIZE = 30.0
CONCEPT_BASE_SIZE = 25.0
ATTRIBUTE_NODE_SIZE = 20.0

ATTRIBUTE_EDGE_COLOR = "#888888"
CONCEPT_EDGE_COLOR = "#CCCCCC"
CONCEPT_EDGE_WEIGHT = 0.5
# Concepts link to entities at most this many sentences away.
CONCEPT_SENTENCE_WINDOW = 1


class _GraphAccumulator:
    """Collects nodes and edges and keeps the type histograms in step with them."""

    def __init__(self) -> None:
        self.nodes: List[GraphNode] = []
        self.edges: List[GraphEdge] = []
        self.node_types: Dict[str, int] = {}
        self.edge_types: Dict[str, int] = {}

    def add_node(self, node: GraphNode, kind: str) -> None:
        self.nodes.append(node)
        self.node_types[kind] = self.node_types.get(kind, 0) + 1

    def add_edge(self, edge: GraphEdge, kind: str) -> None:
        self.edges.append(edge)
        self.edge_types[kind] = self.edge_types.get(kind, 0) + 1


class GraphBuilder:
    """Turns extracted facts into a styled node/edge graph.

    Example:
        >>> builder = GraphBuilder(Config())
        >>> graph = builder.build_graph(result, text)
        >>> builder.apply_layout(graph)
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self.layout_engine = LayoutEngine(spacing=self.config.layout.spacing)

    def build_graph(self, result: ExtractionResult, source_text: str) -> InteractiveGraph:
        """Build the graph for ``result``.

        Raises:
            GraphBuildingError: If an edge references a node that was not emitted
        """
        acc = _GraphAccumulator()

        for entity in result.entities:
            acc.add_node(self._entity_node(entity), "entity")
            for attribute in entity.attributes:
                # The name attribute is already the entity label.
                if attribute.name == "name":
                    continue
                acc.add_node(self._attribute_node(attribute), "attribute")
                acc.add_edge(self._attribute_edge(entity, attribute), "entity_attribute")

        for concept in result.concepts:
            acc.add_node(self._concept_node(concept), "concept")

        for relationship in result.relationships:
            acc.add_edge(self._relationship_edge(relationship), "relationship")

        for concept in result.concepts:
            for entity in result.entities:
                if self._should_connect(concept, entity):
                    acc.add_edge(self._concept_entity_edge(concept, entity), "concept_entity")

        graph = InteractiveGraph(
            nodes=acc.nodes,
            edges=acc.edges,
            config=self.config.model_copy(deep=True),
            metadata=GraphMetadata(
                total_nodes=len(acc.nodes),
                total_edges=len(acc.edges),
                node_types=acc.node_types,
                edge_types=acc.edge_types,
                creation_timestamp=datetime.now(timezone.utc).isoformat(),
                source_text_length=len(source_text.encode("utf-8")),
            ),
        )
        self._validate_edges(graph)
        logger.info(
            f"Built graph with {graph.metadata.total_nodes} nodes and "
            f"{graph.metadata.total_edges} edges"
        )
        return graph

    def apply_layout(self, graph: InteractiveGraph) -> None:
        """Position nodes with the configured layout algorithm."""
        self.layout_engine.apply(graph, self.config.layout.algorithm)

    # -----------------------
    # Nodes
    # -----------------------
    def _entity_node(self, entity: Entity) -> GraphNode:
        metadata = NodeMetadata(
            confidence=entity.confidence,
            original_text=entity.name,
            entity_type=str(entity.entity_type),
            attributes={attr.name: attr.value for attr in entity.attributes},
            position_in_text=(
                (entity.position.start, entity.position.end) if entity.position else None
            ),
        )
        return GraphNode(
            id=entity.id,
            label=entity.name,
            node_type=NodeType.ENTITY,
            color=self.config.node_colors.entity,
            shape=self.config.node_shapes.entity,
            size=entity_node_size(entity.confidence, len(entity.attributes)),
            metadata=metadata,
        )

    def _concept_node(self, concept: Concept) -> GraphNode:
        metadata = NodeMetadata(
            confidence=concept.confidence,
            original_text=concept.name,
            attributes={"description": concept.description},
            position_in_text=(
                (concept.position.start, concept.position.end) if concept.position else None
            ),
        )
        return GraphNode(
            id=concept.id,
            label=concept.name,
            node_type=NodeType.CONCEPT,
            color=self.config.node_colors.concept,
            shape=self.config.node_shapes.concept,
            size=concept_node_size(concept.confidence, len(concept.related_entities)),
            metadata=metadata,
        )

    def _attribute_node(self, attribute: Attribute) -> GraphNode:
        return GraphNode(
            id=attribute.id,
            label=f"{attribute.name}: {attribute.value}",
            node_type=NodeType.ATTRIBUTE,
            color=self.config.node_colors.attribute,
            shape=self.config.node_shapes.attribute,
            size=ATTRIBUTE_NODE_SIZE,
            metadata=NodeMetadata(
                confidence=attribute.confidence,
                original_text=attribute.value,
                entity_type=str(attribute.attribute_type),
            ),
        )

    # -----------------------
    # Edges
    # -----------------------
    def _relationship_edge(self, relationship: Relationship) -> GraphEdge:
        return GraphEdge(
            id=relationship.id,
            from_id=relationship.source_id,
            to_id=relationship.target_id,
            label=relationship.label,
            color=self.config.node_colors.relationship,
            width=1.0 + relationship.confidence * 2.0,
            edge_type=EdgeType.ENTITY_RELATIONSHIP,
            metadata=EdgeMetadata(
                confidence=relationship.confidence,
                relationship_type=str(relationship.relationship_type),
                bidirectional=False,
                weight=relationship.confidence,
            ),
        )

    @staticmethod
    def _attribute_edge(entity: Entity, attribute: Attribute) -> GraphEdge:
        return GraphEdge(
            id=f"{entity.id}-{attribute.id}",
            from_id=entity.id,
            to_id=attribute.id,
            label="has",
            color=ATTRIBUTE_EDGE_COLOR,
            width=1.0,
            edge_type=EdgeType.ENTITY_ATTRIBUTE,
            metadata=EdgeMetadata(
                confidence=attribute.confidence,
                relationship_type="has_attribute",
                weight=attribute.confidence,
            ),
        )

    @staticmethod
    def _concept_entity_edge(concept: Concept, entity: Entity) -> GraphEdge:
        return GraphEdge(
            id=f"{concept.id}-{entity.id}",
            from_id=concept.id,
            to_id=entity.id,
            label="relates to",
            color=CONCEPT_EDGE_COLOR,
            width=1.0,
            edge_type=EdgeType.CONCEPT_ENTITY,
            metadata=EdgeMetadata(
                confidence=(concept.confidence + entity.confidence) / 2.0,
                relationship_type="related_to",
                bidirectional=True,
                weight=CONCEPT_EDGE_WEIGHT,
            ),
        )

    @staticmethod
    def _should_connect(concept: Concept, entity: Entity) -> bool:
        if concept.position is not None and entity.position is not None:
            distance = abs(concept.position.sentence_index - entity.position.sentence_index)
            return distance <= CONCEPT_SENTENCE_WINDOW
        entity_name = entity.name.lower()
        return (
            entity_name in concept.description.lower()
            or concept.name.lower() in entity_name
        )

    @staticmethod
    def _validate_edges(graph: InteractiveGraph) -> None:
        node_ids = graph.node_ids()
        for edge in graph.edges:
            for endpoint in (edge.from_id, edge.to_id):
                if endpoint not in node_ids:
                    raise GraphBuildingError(
                        f"Edge {edge.id} ({edge.label!r}) references unknown node {endpoint}"
                    )


def entity_node_size(confidence: float, attribute_count: int) -> float:
    return ENTITY_BASE_SIZE * (1.0 + confidence * 0.5) * (1.0 + attribute_count * 0.1)


def concept_node_size(confidence: float, related_entity_count: int) -> float:
    return CONCEPT_BASE_SIZE * (1.0 + confidence * 0.3) * (1.0 + related_entity_count * 0.15)
