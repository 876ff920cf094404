"""Pydantic models for the interactive entity-relationship graph."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from textgraph.utils.config import Config


class NodeType(str, Enum):
    """Kinds of graph nodes."""

    ENTITY = "Entity"
    CONCEPT = "Concept"
    ATTRIBUTE = "Attribute"
    # Reserved; the builder represents relationships as edges.
    RELATIONSHIP = "Relationship"


class EdgeType(str, Enum):
    """Kinds of graph edges."""

    ENTITY_RELATIONSHIP = "EntityRelationship"
    ENTITY_ATTRIBUTE = "EntityAttribute"
    CONCEPT_ENTITY = "ConceptEntity"
    CONCEPT_CONCEPT = "ConceptConcept"
    HIERARCHY = "Hierarchy"


class NodeMetadata(BaseModel):
    """Provenance carried by a node."""

    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Source fact confidence")
    original_text: str = Field(default="", description="Matched or generated text")
    entity_type: Optional[str] = Field(default=None, description="Rendered entity type")
    attributes: Dict[str, str] = Field(default_factory=dict, description="Attribute name to value")
    position_in_text: Optional[Tuple[int, int]] = Field(
        default=None, description="(start, end) offsets within the source sentence"
    )


class EdgeMetadata(BaseModel):
    """Provenance carried by an edge."""

    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Edge confidence")
    relationship_type: str = Field(..., description="Rendered relationship type")
    bidirectional: bool = Field(default=False, description="Whether the edge reads both ways")
    weight: float = Field(default=1.0, description="Layout weight")


class GraphNode(BaseModel):
    """A renderable node."""

    id: str
    label: str
    node_type: NodeType
    color: str
    shape: str
    size: float
    x: Optional[float] = None
    y: Optional[float] = None
    physics: bool = True
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)


class GraphEdge(BaseModel):
    """A renderable directed edge; endpoints dump as ``from``/``to`` with ``by_alias=True``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    label: str
    color: str
    width: float = 1.0
    arrows: str = "to"
    edge_type: EdgeType
    metadata: EdgeMetadata


class GraphMetadata(BaseModel):
    """Totals and histograms describing a built graph."""

    total_nodes: int = 0
    total_edges: int = 0
    node_types: Dict[str, int] = Field(default_factory=dict)
    edge_types: Dict[str, int] = Field(default_factory=dict)
    creation_timestamp: str = ""
    source_text_length: int = Field(default=0, description="UTF-8 byte length of the source text")


class InteractiveGraph(BaseModel):
    """Nodes, edges, the configuration they were styled with, and metadata."""

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
    config: Config = Field(default_factory=Config)
    metadata: GraphMetadata = Field(default_factory=GraphMetadata)

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}
