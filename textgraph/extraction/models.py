"""Shared data models for extraction modules."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, List, Optional, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Fixed confidence policy for rule-based facts.
ENTITY_CONFIDENCE = 0.7
DESCRIPTION_CONFIDENCE = 0.7
RELATIONSHIP_CONFIDENCE = 0.6
CONCEPT_CONFIDENCE = 0.6
ENHANCED_RELATIONSHIP_CONFIDENCE = 0.75
CONCEPT_ENTITY_CONFIDENCE = 0.65
CONTEXT_ATTRIBUTE_CONFIDENCE = 0.7
NAME_ATTRIBUTE_CONFIDENCE = 1.0

# Confidence thresholds reported in extraction metadata.
DEFAULT_CONFIDENCE_THRESHOLD = 0.5
DEEP_ANALYSIS_CONFIDENCE_THRESHOLD = 0.6


def new_id() -> str:
    return str(uuid4())


def clamp_confidence(value: float) -> float:
    return max(0.0, min(float(value), 1.0))


class EntityKind(str, Enum):
    """Entity categories."""

    PERSON = "Person"
    PLACE = "Place"
    ORGANIZATION = "Organization"
    EVENT = "Event"
    PRODUCT = "Product"
    CONCEPT = "Concept"
    OTHER = "Other"


class RelationshipKind(str, Enum):
    """Relationship categories."""

    HAS = "Has"
    IS_A = "IsA"
    PART_OF = "PartOf"
    CONNECTED_TO = "ConnectedTo"
    RELATED_TO = "RelatedTo"
    CONTAINS = "Contains"
    OWNS = "Owns"
    USES = "Uses"
    CREATES = "Creates"
    INFLUENCES = "Influences"
    OTHER = "Other"


class AttributeKind(str, Enum):
    """Attribute categories."""

    NAME = "Name"
    DESCRIPTION = "Description"
    LOCATION = "Location"
    DATE = "Date"
    NUMBER = "Number"
    CATEGORY = "Category"
    PROPERTY = "Property"
    OTHER = "Other"


_T = TypeVar("_T", bound="_TaggedType")


class _TaggedType(BaseModel):
    """A closed set of kinds plus an ``OTHER`` kind carrying a free-form label."""

    model_config = ConfigDict(frozen=True)

    kind_enum: ClassVar[Type[Enum]]

    label: Optional[str] = None

    @model_validator(mode="after")
    def _check_label(self) -> "_TaggedType":
        if self.kind.value == "Other":
            if self.label is None:
                raise ValueError("Other kind requires a label")
        elif self.label is not None:
            raise ValueError(f"{self.kind.value} kind does not take a label")
        return self

    @classmethod
    def of(cls: Type[_T], kind: Enum) -> _T:
        return cls(kind=kind)

    @classmethod
    def other(cls: Type[_T], label: str) -> _T:
        return cls(kind=cls.kind_enum("Other"), label=label)

    @property
    def is_other(self) -> bool:
        return self.kind.value == "Other"

    def __str__(self) -> str:
        if self.is_other:
            return f"Other({self.label})"
        return self.kind.value


class EntityType(_TaggedType):
    kind_enum: ClassVar[Type[Enum]] = EntityKind

    kind: EntityKind


class RelationshipType(_TaggedType):
    kind_enum: ClassVar[Type[Enum]] = RelationshipKind

    kind: RelationshipKind


class AttributeType(_TaggedType):
    kind_enum: ClassVar[Type[Enum]] = AttributeKind

    kind: AttributeKind


class TextPosition(BaseModel):
    """Character span of a match inside a sentence."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    sentence_index: int


class Attribute(BaseModel):
    """Named value attached to an entity."""

    id: str = Field(default_factory=new_id)
    name: str
    value: str
    attribute_type: AttributeType
    confidence: float = 0.0


class Entity(BaseModel):
    """A detected person, place, organization or other named thing."""

    id: str = Field(default_factory=new_id)
    name: str
    entity_type: EntityType
    attributes: List[Attribute] = Field(default_factory=list)
    confidence: float = 0.0
    position: Optional[TextPosition] = None

    def attribute(self, name: str) -> Optional[Attribute]:
        return next((attr for attr in self.attributes if attr.name == name), None)


class Relationship(BaseModel):
    """Directed, labelled connection between two entity or concept ids."""

    id: str = Field(default_factory=new_id)
    source_id: str
    target_id: str
    relationship_type: RelationshipType
    label: str
    confidence: float = 0.0
    position: Optional[TextPosition] = None


class Concept(BaseModel):
    """Abstract idea, process or system mention."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    # Informational only; concept-entity links become graph edges instead.
    related_entities: List[str] = Field(default_factory=list)
    confidence: float = 0.0
    position: Optional[TextPosition] = None


class ExtractionMetadata(BaseModel):
    total_entities: int = 0
    total_relationships: int = 0
    total_concepts: int = 0
    processing_time_ms: int = 0
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    extraction_method: str = "pattern-based"
    fallbacks: List[str] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Entities, relationships and concepts found in one extraction run."""

    entities: List[Entity] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)
    concepts: List[Concept] = Field(default_factory=list)
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

    @classmethod
    def build(
        cls,
        entities: List[Entity],
        relationships: List[Relationship],
        concepts: List[Concept],
        *,
        processing_time_ms: int,
        confidence_threshold: float,
        extraction_method: str,
        fallbacks: Optional[List[str]] = None,
    ) -> "ExtractionResult":
        return cls(
            entities=entities,
            relationships=relationships,
            concepts=concepts,
            metadata=ExtractionMetadata(
                total_entities=len(entities),
                total_relationships=len(relationships),
                total_concepts=len(concepts),
                processing_time_ms=processing_time_ms,
                confidence_threshold=confidence_threshold,
                extraction_method=extraction_method,
                fallbacks=list(fallbacks or []),
            ),
        )
