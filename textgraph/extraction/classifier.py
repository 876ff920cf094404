"""Keyword heuristics that assign types, labels and descriptions to matches."""

from __future__ import annotations

import re
from typing import Optional, Sequence, Tuple

from textgraph.extraction.models import (
    EntityKind,
    EntityType,
    RelationshipKind,
    RelationshipType,
)

# Ordered cascade; the first rule with a keyword present in the span wins.
RELATIONSHIP_RULES: Sequence[Tuple[Tuple[str, ...], RelationshipKind]] = (
    (("has", "have", "owns"), RelationshipKind.HAS),
    (("is", "are", "was", "were"), RelationshipKind.IS_A),
    (("part of", "belongs"), RelationshipKind.PART_OF),
    (("connected", "linked"), RelationshipKind.CONNECTED_TO),
    (("uses", "utilizes"), RelationshipKind.USES),
    (("creates", "generates"), RelationshipKind.CREATES),
    (("influences", "affects"), RelationshipKind.INFLUENCES),
)

_LABEL_TEMPLATES = {
    RelationshipKind.HAS: "{source} has {target}",
    RelationshipKind.IS_A: "{source} is a {target}",
    RelationshipKind.PART_OF: "{source} is part of {target}",
    RelationshipKind.CONNECTED_TO: "{source} connected to {target}",
    RelationshipKind.RELATED_TO: "{source} related to {target}",
    RelationshipKind.CONTAINS: "{source} contains {target}",
    RelationshipKind.OWNS: "{source} owns {target}",
    RelationshipKind.USES: "{source} uses {target}",
    RelationshipKind.CREATES: "{source} creates {target}",
    RelationshipKind.INFLUENCES: "{source} influences {target}",
}

_ORGANIZATION_KEYWORDS = ("corp", "inc", "company")
_CONCEPT_KEYWORDS = ("system", "process", "method")


def classify_entity_type(text: str) -> EntityType:
    """Classify a matched entity span.

    Organization keywords win over the proper-noun rule, which wins over the
    concept keywords; anything else becomes ``Other(<lowercased text>)``.
    """
    lower = text.lower()
    if any(keyword in lower for keyword in _ORGANIZATION_KEYWORDS):
        return EntityType.of(EntityKind.ORGANIZATION)
    if text[:1].isupper() and len(text.split()) <= 3:
        return EntityType.of(EntityKind.PERSON)
    if any(keyword in lower for keyword in _CONCEPT_KEYWORDS):
        return EntityType.of(EntityKind.CONCEPT)
    return EntityType.other(lower)


def classify_relationship_type(span: str) -> RelationshipType:
    lower = span.lower()
    for keywords, kind in RELATIONSHIP_RULES:
        if any(keyword in lower for keyword in keywords):
            return RelationshipType.of(kind)
    return RelationshipType.of(RelationshipKind.RELATED_TO)


def relationship_label(relationship_type: RelationshipType, source: str, target: str) -> str:
    if relationship_type.is_other:
        return f"{source} {relationship_type.label} {target}"
    return _LABEL_TEMPLATES[relationship_type.kind].format(source=source, target=target)


def extract_description(entity: str, sentence: str) -> Optional[str]:
    """Find an appositive or determiner description of ``entity`` in ``sentence``.

    Matches ``"Alice, a software engineer"`` (-> ``"software engineer"``) or
    ``"the red Car"`` (-> ``"red"``).
    """
    escaped = re.escape(entity)
    patterns = (
        rf"{escaped},?\s+(?:a|an|the)\s+([^,.]+)",
        rf"(?:a|an|the)\s+([^,\s]+)\s+{escaped}",
    )
    for pattern in patterns:
        match = re.search(pattern, sentence)
        if match:
            description = match.group(1).strip()
            if description:
                return description
    return None
