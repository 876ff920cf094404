"""Deep-analysis enrichment stages.

Each stage takes the accumulated :class:`FactSet` and the cleaned source text
and returns a new :class:`FactSet`; inputs are never mutated. The stages run
in the order of :data:`DEEP_ANALYSIS_STAGES` because later stages read the
entities and concepts produced by earlier ones.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from loguru import logger

from textgraph.extraction.models import (
    CONCEPT_ENTITY_CONFIDENCE,
    CONTEXT_ATTRIBUTE_CONFIDENCE,
    ENHANCED_RELATIONSHIP_CONFIDENCE,
    Attribute,
    AttributeType,
    Concept,
    Entity,
    Relationship,
    RelationshipKind,
    RelationshipType,
    clamp_confidence,
)

ENHANCED_RELATIONSHIP_PATTERNS: Sequence[Tuple[re.Pattern, str]] = (
    (re.compile(r"(\w+)\s+manages?\s+(\w+)"), "manages"),
    (re.compile(r"(\w+)\s+depends?\s+on\s+(\w+)"), "depends_on"),
    (re.compile(r"(\w+)\s+implements?\s+(\w+)"), "implements"),
    (re.compile(r"(\w+)\s+inherits?\s+from\s+(\w+)"), "inherits_from"),
    (re.compile(r"(\w+)\s+communicates?\s+with\s+(\w+)"), "communicates_with"),
    (re.compile(r"(\w+)\s+provides?\s+(\w+)"), "provides"),
    (re.compile(r"(\w+)\s+requires?\s+(\w+)"), "requires"),
)

ROLE_KEYWORDS: Sequence[Tuple[str, str]] = (
    ("manager", "management_role"),
    ("developer", "technical_role"),
    ("customer", "business_role"),
    ("user", "user_role"),
    ("system", "system_component"),
    ("process", "business_process"),
)

DOMAIN_KEYWORDS: Sequence[Tuple[str, str]] = (
    ("database", "data_management"),
    ("server", "infrastructure"),
    ("application", "software"),
    ("network", "networking"),
    ("security", "cybersecurity"),
)

# Entities with more non-name attributes than this get a confidence boost.
RICH_CONTEXT_ATTRIBUTE_COUNT = 2
RICH_CONTEXT_BOOST = 1.2


class FactSet(NamedTuple):
    entities: List[Entity]
    relationships: List[Relationship]
    concepts: List[Concept]


Stage = Callable[[FactSet, str], FactSet]


def mine_enhanced_relationships(facts: FactSet, text: str) -> FactSet:
    """Add verb-phrase relationships ("x manages y") between known entities."""
    lowered = text.lower()
    by_name: Dict[str, Entity] = {entity.name.lower(): entity for entity in facts.entities}

    mined: List[Relationship] = []
    for pattern, verb in ENHANCED_RELATIONSHIP_PATTERNS:
        for match in pattern.finditer(lowered):
            source = by_name.get(match.group(1))
            target = by_name.get(match.group(2))
            if source is None or target is None:
                continue
            mined.append(
                Relationship(
                    source_id=source.id,
                    target_id=target.id,
                    relationship_type=RelationshipType.other(verb),
                    label=verb,
                    confidence=ENHANCED_RELATIONSHIP_CONFIDENCE,
                )
            )

    logger.debug(f"Enhanced patterns produced {len(mined)} relationships")
    return facts._replace(relationships=[*facts.relationships, *mined])


def enrich_entity_context(facts: FactSet, text: str) -> FactSet:
    """Attach contextual role and domain attributes to entities.

    A role or domain applies when its keyword sits directly next to the
    entity name in the text. Entities that end up with more than
    ``RICH_CONTEXT_ATTRIBUTE_COUNT`` non-name attributes are boosted.
    """
    lowered = text.lower()
    enriched: List[Entity] = []
    for entity in facts.entities:
        name = entity.name.lower()
        attributes = list(entity.attributes)

        role = _adjacent_keyword(lowered, name, ROLE_KEYWORDS)
        if role is not None:
            attributes.append(_context_attribute("contextual_role", role, "role"))

        domain = _adjacent_keyword(lowered, name, DOMAIN_KEYWORDS)
        if domain is not None:
            attributes.append(_context_attribute("domain", domain, "domain"))

        confidence = entity.confidence
        context_count = sum(1 for attr in attributes if attr.name != "name")
        if context_count > RICH_CONTEXT_ATTRIBUTE_COUNT:
            confidence = clamp_confidence(confidence * RICH_CONTEXT_BOOST)

        enriched.append(
            entity.model_copy(update={"attributes": attributes, "confidence": confidence})
        )
    return facts._replace(entities=enriched)


def link_concepts_to_entities(facts: FactSet, text: str) -> FactSet:
    """Relate each concept to the entities named in its description."""
    linked: List[Relationship] = []
    for concept in facts.concepts:
        description = concept.description.lower()
        for entity in facts.entities:
            if entity.name.lower() in description:
                linked.append(
                    Relationship(
                        source_id=concept.id,
                        target_id=entity.id,
                        relationship_type=RelationshipType.of(RelationshipKind.RELATED_TO),
                        label="relates to",
                        confidence=CONCEPT_ENTITY_CONFIDENCE,
                    )
                )
    return facts._replace(relationships=[*facts.relationships, *linked])


DEEP_ANALYSIS_STAGES: Sequence[Stage] = (
    mine_enhanced_relationships,
    enrich_entity_context,
    link_concepts_to_entities,
)


def _adjacent_keyword(
    text: str, name: str, rules: Sequence[Tuple[str, str]]
) -> Optional[str]:
    for keyword, value in rules:
        if f"{name} {keyword}" in text or f"{keyword} {name}" in text:
            return value
    return None


def _context_attribute(name: str, value: str, label: str) -> Attribute:
    return Attribute(
        name=name,
        value=value,
        attribute_type=AttributeType.other(label),
        confidence=CONTEXT_ATTRIBUTE_CONFIDENCE,
    )
