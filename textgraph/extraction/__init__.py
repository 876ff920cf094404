"""Extraction package exports."""

from textgraph.extraction.entity_extractor import EntityExtractor
from textgraph.extraction.llm_extractor import LLMExtractor
from textgraph.extraction.models import (
    Attribute,
    AttributeKind,
    AttributeType,
    Concept,
    Entity,
    EntityKind,
    EntityType,
    ExtractionMetadata,
    ExtractionResult,
    Relationship,
    RelationshipKind,
    RelationshipType,
    TextPosition,
)
from textgraph.extraction.pattern_extractor import PatternExtractor

__all__ = [
    "Attribute",
    "AttributeKind",
    "AttributeType",
    "Concept",
    "Entity",
    "EntityKind",
    "EntityType",
    "EntityExtractor",
    "ExtractionMetadata",
    "ExtractionResult",
    "LLMExtractor",
    "PatternExtractor",
    "Relationship",
    "RelationshipKind",
    "RelationshipType",
    "TextPosition",
]
