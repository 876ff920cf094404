"""Regex-based entity, relationship and concept extractor."""

from __future__ import annotations

import re
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from loguru import logger

from textgraph.errors import PatternCompileError
from textgraph.extraction.classifier import (
    classify_entity_type,
    classify_relationship_type,
    extract_description,
    relationship_label,
)
from textgraph.extraction.models import (
    CONCEPT_CONFIDENCE,
    DESCRIPTION_CONFIDENCE,
    ENTITY_CONFIDENCE,
    NAME_ATTRIBUTE_CONFIDENCE,
    RELATIONSHIP_CONFIDENCE,
    Attribute,
    AttributeKind,
    AttributeType,
    Concept,
    Entity,
    Relationship,
    TextPosition,
)
from textgraph.ingestion.text_processor import ProcessedText
from textgraph.utils.config import ExtractionConfig

MIN_ENTITY_LENGTH = 2
MIN_CONCEPT_LENGTH = 3
CONCEPT_CONTEXT_CHARS = 100


class PatternExtractor:
    """Extracts facts using the regex patterns defined in configuration."""

    def __init__(self, config: Optional[ExtractionConfig] = None) -> None:
        self.config = config or ExtractionConfig()
        self.entity_patterns = self._compile(self.config.entity_patterns)
        self.relationship_patterns = self._compile(self.config.relationship_patterns)
        self.concept_patterns = self._compile(self.config.concept_patterns)

        logger.info(
            "Initialized PatternExtractor with "
            f"{len(self.entity_patterns)} entity, "
            f"{len(self.relationship_patterns)} relationship and "
            f"{len(self.concept_patterns)} concept patterns"
        )

    def extract_entities(self, processed: ProcessedText) -> List[Entity]:
        """Create one entity per unique literal match, in sentence then pattern order."""
        entities: List[Entity] = []
        for text, position, sentence in self._unique_matches(
            processed.sentences, self.entity_patterns, MIN_ENTITY_LENGTH
        ):
            entities.append(
                Entity(
                    name=text,
                    entity_type=classify_entity_type(text),
                    attributes=self._entity_attributes(text, sentence),
                    confidence=ENTITY_CONFIDENCE,
                    position=position,
                )
            )
        return entities

    def extract_relationships(
        self, processed: ProcessedText, entities: Sequence[Entity]
    ) -> List[Relationship]:
        """Relate entity pairs that share a sentence.

        For each pair the span between the two mentions is tested against the
        relationship patterns in configured order; the first pattern matching
        anywhere in the span decides, and its type comes from the keyword cascade.
        """
        relationships: List[Relationship] = []
        for sentence_index, sentence in enumerate(processed.sentences):
            in_sentence = [
                entity
                for entity in entities
                if (
                    entity.position.sentence_index == sentence_index
                    if entity.position is not None
                    else entity.name in sentence
                )
            ]
            for i, first in enumerate(in_sentence):
                for second in in_sentence[i + 1:]:
                    relationship = self._relate(first, second, sentence, sentence_index)
                    if relationship is not None:
                        relationships.append(relationship)
        return relationships

    def extract_concepts(self, processed: ProcessedText) -> List[Concept]:
        concepts: List[Concept] = []
        for text, position, sentence in self._unique_matches(
            processed.sentences, self.concept_patterns, MIN_CONCEPT_LENGTH
        ):
            concepts.append(
                Concept(
                    name=text,
                    description=(
                        f"Concept '{text}' mentioned in context: "
                        f"{sentence[:CONCEPT_CONTEXT_CHARS]}"
                    ),
                    confidence=CONCEPT_CONFIDENCE,
                    position=position,
                )
            )
        return concepts

    def _unique_matches(
        self,
        sentences: Sequence[str],
        patterns: Sequence[re.Pattern],
        min_length: int,
    ) -> Iterator[Tuple[str, TextPosition, str]]:
        seen: Set[str] = set()
        for sentence_index, sentence in enumerate(sentences):
            for pattern in patterns:
                for match in pattern.finditer(sentence):
                    text = match.group(0).strip()
                    if len(text) < min_length or text in seen:
                        continue
                    seen.add(text)
                    yield text, TextPosition(
                        start=match.start(), end=match.end(), sentence_index=sentence_index
                    ), sentence

    def _relate(
        self, first: Entity, second: Entity, sentence: str, sentence_index: int
    ) -> Optional[Relationship]:
        first_pos = sentence.find(first.name)
        second_pos = sentence.find(second.name)
        if first_pos < 0 or second_pos < 0:
            return None

        start = min(first_pos, second_pos)
        end = max(first_pos + len(first.name), second_pos + len(second.name))
        span = sentence[start:end]

        for pattern in self.relationship_patterns:
            if pattern.search(span):
                relationship_type = classify_relationship_type(span)
                return Relationship(
                    source_id=first.id,
                    target_id=second.id,
                    relationship_type=relationship_type,
                    label=relationship_label(relationship_type, first.name, second.name),
                    confidence=RELATIONSHIP_CONFIDENCE,
                    position=TextPosition(start=start, end=end, sentence_index=sentence_index),
                )
        return None

    @staticmethod
    def _entity_attributes(name: str, sentence: str) -> List[Attribute]:
        attributes = [
            Attribute(
                name="name",
                value=name,
                attribute_type=AttributeType.of(AttributeKind.NAME),
                confidence=NAME_ATTRIBUTE_CONFIDENCE,
            )
        ]
        description = extract_description(name, sentence)
        if description:
            attributes.append(
                Attribute(
                    name="description",
                    value=description,
                    attribute_type=AttributeType.of(AttributeKind.DESCRIPTION),
                    confidence=DESCRIPTION_CONFIDENCE,
                )
            )
        return attributes

    @staticmethod
    def _compile(patterns: Sequence[str]) -> List[re.Pattern]:
        compiled: List[re.Pattern] = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as exc:
                raise PatternCompileError(pattern, str(exc)) from exc
        return compiled
