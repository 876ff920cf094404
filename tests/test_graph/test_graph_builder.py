from __future__ import annotations

from datetime import datetime

import pytest

from textgraph.errors import GraphBuildingError
from textgraph.extraction.entity_extractor import EntityExtractor
from textgraph.extraction.models import (
    Concept,
    Entity,
    EntityKind,
    EntityType,
    ExtractionResult,
    Relationship,
    RelationshipKind,
    RelationshipType,
    TextPosition,
)
from textgraph.graph.graph_builder import GraphBuilder
from textgraph.graph.models import EdgeType, InteractiveGraph, NodeType
from textgraph.ingestion.text_processor import TextProcessor
from textgraph.utils.config import Config


def _result(entities=(), relationships=(), concepts=()) -> ExtractionResult:
    return ExtractionResult.build(
        list(entities),
        list(relationships),
        list(concepts),
        processing_time_ms=0,
        confidence_threshold=0.5,
        extraction_method="pattern-based",
    )


def _extract(text: str) -> ExtractionResult:
    return EntityExtractor().extract_sync(TextProcessor().process(text))


def _assert_invariants(graph: InteractiveGraph) -> None:
    node_ids = graph.node_ids()
    for edge in graph.edges:
        assert edge.from_id in node_ids
        assert edge.to_id in node_ids
    assert graph.metadata.total_nodes == len(graph.nodes)
    assert graph.metadata.total_edges == len(graph.edges)
    assert sum(graph.metadata.node_types.values()) == len(graph.nodes)
    assert sum(graph.metadata.edge_types.values()) == len(graph.edges)


def test_entities_and_attributes_become_nodes() -> None:
    text = "Alice, a software engineer, works at TechCorp."
    graph = GraphBuilder(Config()).build_graph(_extract(text), text)

    _assert_invariants(graph)
    assert graph.metadata.node_types == {"entity": 2, "attribute": 1}
    assert graph.metadata.edge_types == {"entity_attribute": 1}

    alice = next(n for n in graph.nodes if n.label == "Alice")
    assert alice.node_type == NodeType.ENTITY
    assert alice.color == "#FF6B6B"
    assert alice.shape == "ellipse"
    assert alice.size == pytest.approx(30 * 1.35 * 1.2)
    assert alice.metadata.entity_type == "Person"
    assert alice.metadata.attributes == {"name": "Alice", "description": "software engineer"}
    assert alice.metadata.position_in_text == (0, 5)

    attribute = next(n for n in graph.nodes if n.node_type == NodeType.ATTRIBUTE)
    assert attribute.label == "description: software engineer"
    assert attribute.size == 20.0
    assert attribute.color == "#FFA07A"

    edge = graph.edges[0]
    assert edge.id == f"{alice.id}-{attribute.id}"
    assert edge.label == "has"
    assert edge.color == "#888888"
    assert edge.edge_type == EdgeType.ENTITY_ATTRIBUTE
    assert edge.metadata.weight == pytest.approx(0.7)


def test_relationship_edge_styling() -> None:
    text = "Alice uses Python."
    graph = GraphBuilder(Config()).build_graph(_extract(text), text)

    _assert_invariants(graph)
    edge = next(e for e in graph.edges if e.edge_type == EdgeType.ENTITY_RELATIONSHIP)
    assert edge.label == "Alice uses Python"
    assert edge.width == pytest.approx(2.2)
    assert edge.color == "#4ECDC4"
    assert edge.arrows == "to"
    assert edge.metadata.relationship_type == "Uses"
    assert edge.metadata.bidirectional is False
    assert edge.metadata.weight == pytest.approx(0.6)


def test_concept_links_to_entity_in_adjacent_sentence() -> None:
    concept = Concept(
        name="process",
        description="d",
        confidence=0.6,
        position=TextPosition(start=0, end=7, sentence_index=1),
    )
    near = Entity(
        name="Alice",
        entity_type=EntityType.of(EntityKind.PERSON),
        confidence=0.8,
        position=TextPosition(start=0, end=5, sentence_index=2),
    )
    far = Entity(
        name="Bob",
        entity_type=EntityType.of(EntityKind.PERSON),
        confidence=0.8,
        position=TextPosition(start=0, end=3, sentence_index=3),
    )

    graph = GraphBuilder(Config()).build_graph(_result([near, far], [], [concept]), "x")

    _assert_invariants(graph)
    links = [e for e in graph.edges if e.edge_type == EdgeType.CONCEPT_ENTITY]
    assert [(e.from_id, e.to_id) for e in links] == [(concept.id, near.id)]
    link = links[0]
    assert link.label == "relates to"
    assert link.color == "#CCCCCC"
    assert link.metadata.confidence == pytest.approx(0.7)
    assert link.metadata.bidirectional is True
    assert link.metadata.weight == pytest.approx(0.5)

    concept_node = next(n for n in graph.nodes if n.id == concept.id)
    assert concept_node.size == pytest.approx(25 * 1.18)
    assert concept_node.color == "#45B7D1"


def test_concept_links_by_text_without_positions() -> None:
    concept = Concept(name="Corp", description="mentions alice somewhere", confidence=0.6)
    alice = Entity(name="Alice", entity_type=EntityType.of(EntityKind.PERSON), confidence=0.6)
    techcorp = Entity(name="TechCorp", entity_type=EntityType.of(EntityKind.ORGANIZATION))
    bob = Entity(name="Bob", entity_type=EntityType.of(EntityKind.PERSON))

    graph = GraphBuilder(Config()).build_graph(_result([alice, techcorp, bob], [], [concept]), "x")

    linked = {e.to_id for e in graph.edges if e.edge_type == EdgeType.CONCEPT_ENTITY}
    assert linked == {alice.id, techcorp.id}


def test_dangling_relationship_raises() -> None:
    alice = Entity(name="Alice", entity_type=EntityType.of(EntityKind.PERSON))
    dangling = Relationship(
        source_id=alice.id,
        target_id="missing",
        relationship_type=RelationshipType.of(RelationshipKind.HAS),
        label="Alice has ghost",
        confidence=0.6,
    )

    with pytest.raises(GraphBuildingError):
        GraphBuilder(Config()).build_graph(_result([alice], [dangling]), "Alice")


def test_graph_metadata_and_config_copy() -> None:
    config = Config()
    graph = GraphBuilder(config).build_graph(_result(), "café")

    assert graph.metadata.source_text_length == 5
    assert graph.metadata.total_nodes == 0
    assert graph.metadata.node_types == {}
    assert datetime.fromisoformat(graph.metadata.creation_timestamp).tzinfo is not None
    assert graph.config == config
    assert graph.config is not config


def test_edges_serialize_with_from_and_to() -> None:
    text = "Alice uses Python."
    graph = GraphBuilder(Config()).build_graph(_extract(text), text)

    dumped = graph.edges[0].model_dump(by_alias=True)
    assert "from" in dumped and "to" in dumped
    assert "from_id" not in dumped


def test_apply_layout_uses_configured_algorithm() -> None:
    config = Config()
    config.layout.algorithm = "circular"
    builder = GraphBuilder(config)
    text = "Alice uses Python."
    graph = builder.build_graph(_extract(text), text)

    builder.apply_layout(graph)

    assert all(node.x is not None and node.y is not None for node in graph.nodes)
    assert graph.nodes[0].x == pytest.approx(300.0)
    assert graph.nodes[0].y == pytest.approx(0.0)


def test_node_ids_cover_every_edge_endpoint() -> None:
    graph = GraphBuilder(Config()).build_graph(
        _extract("Alice works at TechCorp. TechCorp builds software."),
        "Alice works at TechCorp. TechCorp builds software.",
    )

    ids = graph.node_ids()

    assert len(ids) == len(graph.nodes)
    assert {edge.from_id for edge in graph.edges} <= ids
    assert {edge.to_id for edge in graph.edges} <= ids
