from __future__ import annotations

import pytest
from pydantic import ValidationError

from textgraph.extraction.models import (
    Attribute,
    AttributeKind,
    AttributeType,
    Entity,
    EntityKind,
    EntityType,
    ExtractionResult,
    RelationshipKind,
    RelationshipType,
    clamp_confidence,
)


def test_tagged_type_renders_kind_or_other_label() -> None:
    assert str(EntityType.of(EntityKind.PERSON)) == "Person"
    assert str(RelationshipType.of(RelationshipKind.IS_A)) == "IsA"
    assert str(EntityType.other("System")) == "Other(System)"
    assert EntityType.other("System").is_other


def test_other_kind_requires_label() -> None:
    with pytest.raises(ValidationError):
        EntityType(kind=EntityKind.OTHER)


def test_named_kind_rejects_label() -> None:
    with pytest.raises(ValidationError):
        AttributeType(kind=AttributeKind.NAME, label="x")


def test_tagged_types_compare_by_value() -> None:
    assert EntityType.of(EntityKind.PLACE) == EntityType.of(EntityKind.PLACE)
    assert RelationshipType.other("manages") != RelationshipType.other("requires")


@pytest.mark.parametrize("raw,expected", [(-0.5, 0.0), (0.4, 0.4), (1.7, 1.0)])
def test_clamp_confidence(raw: float, expected: float) -> None:
    assert clamp_confidence(raw) == pytest.approx(expected)


def test_entity_ids_are_unique_and_attribute_lookup_works() -> None:
    attr = Attribute(
        name="description",
        value="engineer",
        attribute_type=AttributeType.of(AttributeKind.DESCRIPTION),
        confidence=0.7,
    )
    first = Entity(name="Alice", entity_type=EntityType.of(EntityKind.PERSON), attributes=[attr])
    second = Entity(name="Alice", entity_type=EntityType.of(EntityKind.PERSON))

    assert first.id != second.id
    assert first.attribute("description") is attr
    assert second.attribute("description") is None


def test_result_build_fills_metadata_totals() -> None:
    entity = Entity(name="Alice", entity_type=EntityType.of(EntityKind.PERSON))
    result = ExtractionResult.build(
        [entity],
        [],
        [],
        processing_time_ms=3,
        confidence_threshold=0.5,
        extraction_method="pattern-based",
    )

    assert result.metadata.total_entities == 1
    assert result.metadata.total_relationships == 0
    assert result.metadata.total_concepts == 0
    assert result.metadata.fallbacks == []
    assert result.metadata.extraction_method == "pattern-based"
