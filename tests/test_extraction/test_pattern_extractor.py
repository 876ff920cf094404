from __future__ import annotations

import pytest

from textgraph.errors import ConfigurationError, EntityExtractionError, PatternCompileError
from textgraph.extraction.models import (
    AttributeKind,
    EntityKind,
    EntityType,
    RelationshipKind,
)
from textgraph.extraction.pattern_extractor import PatternExtractor
from textgraph.ingestion.text_processor import ProcessedText, TextProcessor
from textgraph.utils.config import ExtractionConfig


def _process(text: str) -> ProcessedText:
    return TextProcessor().process(text)


@pytest.fixture
def extractor() -> PatternExtractor:
    return PatternExtractor(ExtractionConfig())


def test_organization_entity(extractor: PatternExtractor) -> None:
    entities = extractor.extract_entities(_process("TechCorp is a company."))

    assert [e.name for e in entities] == ["TechCorp"]
    entity = entities[0]
    assert entity.entity_type == EntityType.of(EntityKind.ORGANIZATION)
    assert entity.confidence == pytest.approx(0.7)
    assert entity.position is not None
    assert entity.position.sentence_index == 0
    assert entity.position.start == 0


def test_name_attribute_always_first(extractor: PatternExtractor) -> None:
    entity = extractor.extract_entities(_process("TechCorp is a company."))[0]

    name = entity.attributes[0]
    assert name.name == "name"
    assert name.value == "TechCorp"
    assert name.attribute_type.kind == AttributeKind.NAME
    assert name.confidence == 1.0


def test_appositive_description(extractor: PatternExtractor) -> None:
    entities = extractor.extract_entities(
        _process("Alice, a software engineer, works at TechCorp.")
    )

    alice = next(e for e in entities if e.name == "Alice")
    description = alice.attribute("description")
    assert description is not None
    assert description.value == "software engineer"
    assert description.attribute_type.kind == AttributeKind.DESCRIPTION
    assert description.confidence == pytest.approx(0.7)
    assert alice.entity_type == EntityType.of(EntityKind.PERSON)


def test_entities_are_deduplicated_by_literal_name(extractor: PatternExtractor) -> None:
    entities = extractor.extract_entities(_process("Alice met Bob. Alice left."))

    names = [e.name for e in entities]
    assert names.count("Alice") == 1
    alice = next(e for e in entities if e.name == "Alice")
    # First occurrence fixes the position.
    assert alice.position.sentence_index == 0


def test_role_noun_pattern(extractor: PatternExtractor) -> None:
    entities = extractor.extract_entities(_process("every customer pays"))

    customer = next(e for e in entities if e.name == "customer")
    assert customer.entity_type == EntityType.other("customer")


def test_uses_relationship(extractor: PatternExtractor) -> None:
    processed = _process("Alice uses Python.")
    entities = extractor.extract_entities(processed)

    relationships = extractor.extract_relationships(processed, entities)

    assert len(relationships) == 1
    rel = relationships[0]
    by_id = {e.id: e.name for e in entities}
    assert by_id[rel.source_id] == "Alice"
    assert by_id[rel.target_id] == "Python"
    assert rel.relationship_type.kind == RelationshipKind.USES
    assert rel.label == "Alice uses Python"
    assert rel.confidence == pytest.approx(0.6)


def test_has_relationship_label(extractor: PatternExtractor) -> None:
    processed = _process("Bob has Rex.")
    relationships = extractor.extract_relationships(
        processed, extractor.extract_entities(processed)
    )

    assert [r.label for r in relationships] == ["Bob has Rex"]
    assert relationships[0].relationship_type.kind == RelationshipKind.HAS


def test_no_relationship_without_pattern_in_span(extractor: PatternExtractor) -> None:
    processed = _process("Alice, a software engineer, works at TechCorp.")
    relationships = extractor.extract_relationships(
        processed, extractor.extract_entities(processed)
    )

    assert relationships == []


def test_relationships_stay_within_sentences(extractor: PatternExtractor) -> None:
    processed = _process("Alice sleeps. Bob has Rex.")
    entities = extractor.extract_entities(processed)
    relationships = extractor.extract_relationships(processed, entities)

    by_id = {e.id: e.name for e in entities}
    pairs = {(by_id[r.source_id], by_id[r.target_id]) for r in relationships}
    assert pairs == {("Bob", "Rex")}


def test_concept_extraction(extractor: PatternExtractor) -> None:
    concepts = extractor.extract_concepts(_process("The system works well."))

    assert [c.name for c in concepts] == ["system"]
    concept = concepts[0]
    assert concept.confidence == pytest.approx(0.6)
    assert concept.description == "Concept 'system' mentioned in context: The system works well"
    assert concept.related_entities == []


def test_concept_context_is_truncated(extractor: PatternExtractor) -> None:
    sentence = "The process " + "x" * 200
    concept = extractor.extract_concepts(_process(sentence + "."))[0]

    context = concept.description.split("mentioned in context: ", 1)[1]
    assert context == sentence[:100]


def test_invalid_pattern_raises_compile_error() -> None:
    config = ExtractionConfig.model_construct(
        use_llm=False,
        entity_patterns=["("],
        relationship_patterns=[],
        concept_patterns=[],
    )

    with pytest.raises(PatternCompileError) as excinfo:
        PatternExtractor(config)

    assert excinfo.value.pattern == "("
    assert isinstance(excinfo.value, EntityExtractionError)
    assert isinstance(excinfo.value, ConfigurationError)


def test_extraction_is_deterministic_apart_from_ids(extractor: PatternExtractor) -> None:
    text = "Alice, a software engineer, uses Python. The system is connected to TechCorp."

    def _shape(processed: ProcessedText):
        entities = extractor.extract_entities(processed)
        names = {e.id: e.name for e in entities}
        relationships = extractor.extract_relationships(processed, entities)
        return (
            [(e.name, str(e.entity_type), e.confidence, e.position) for e in entities],
            [(names[r.source_id], names[r.target_id], r.label) for r in relationships],
        )

    assert _shape(_process(text)) == _shape(_process(text))
