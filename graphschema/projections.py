"""
In-memory graph projection declarations for GDS.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from graphschema.base import MapMixin, apply_class_declarations, is_declaration_subclass


class ProjectionType(str, Enum):
    NATIVE = "Native"
    CYPHER = "Cypher"
    DATAFRAME = "DataFrame"

    def __str__(self) -> str:
        return self.value


class Orientation(str, Enum):
    NATURAL = "NATURAL"
    REVERSE = "REVERSE"
    UNDIRECTED = "UNDIRECTED"

    def __str__(self) -> str:
        return self.value


class Aggregation(str, Enum):
    NONE = "NONE"
    MIN = "MIN"
    MAX = "MAX"
    SUM = "SUM"
    SINGLE = "SINGLE"
    COUNT = "COUNT"

    def __str__(self) -> str:
        return self.value


NATURAL = Orientation.NATURAL
REVERSE = Orientation.REVERSE
UNDIRECTED = Orientation.UNDIRECTED


@dataclass
class NodeProjection(MapMixin):
    label: str = field(default="", metadata={"keep": True})
    properties: list[str] = field(default_factory=list)
    default_value: Any = None


@dataclass
class RelationshipProjection(MapMixin):
    type: str = field(default="", metadata={"keep": True})
    orientation: Orientation | None = None
    aggregation: Aggregation | None = None
    properties: list[str] = field(default_factory=list)
    default_value: Any = None


@dataclass
class NodeDataFrame(MapMixin):
    label: str = field(default="", metadata={"keep": True})
    properties: list[str] = field(default_factory=list)
    id_column: str = ""


@dataclass
class RelationshipDataFrame(MapMixin):
    type: str = field(default="", metadata={"keep": True})
    source_column: str = ""
    target_column: str = ""
    properties: list[str] = field(default_factory=list)


@dataclass
class Projection(MapMixin):
    projection_type: ClassVar[ProjectionType] = ProjectionType.NATIVE

    name: str = ""
    graph_name: str = field(default="", metadata={"keep": True})
    read_concurrency: int = 0

    def __post_init__(self) -> None:
        apply_class_declarations(self, Projection)
        if not self.name and is_declaration_subclass(self):
            self.name = type(self).__name__
        if not self.graph_name:
            self.graph_name = self.name

    def map_header(self) -> dict[str, Any]:
        return {"name": self.name, "projectionType": self.projection_type.value}

    def node_projections(self) -> list[NodeProjection]:
        return []

    def relationship_projections(self) -> list[RelationshipProjection]:
        return []


@dataclass
class NativeProjection(Projection):
    projection_type: ClassVar[ProjectionType] = ProjectionType.NATIVE

    node_labels: list[str] = field(default_factory=list)
    relationship_types: list[str] = field(default_factory=list)
    node_projections_config: list[NodeProjection] = field(
        default_factory=list, metadata={"key": "nodeProjections"}
    )
    relationship_projections_config: list[RelationshipProjection] = field(
        default_factory=list, metadata={"key": "relationshipProjections"}
    )

    def is_simple(self) -> bool:
        """True when only labels and types are given."""
        return not self.node_projections_config and not self.relationship_projections_config

    def node_projections(self) -> list[NodeProjection]:
        if self.node_projections_config:
            return list(self.node_projections_config)
        return [NodeProjection(label=label) for label in self.node_labels]

    def relationship_projections(self) -> list[RelationshipProjection]:
        if self.relationship_projections_config:
            return list(self.relationship_projections_config)
        return [RelationshipProjection(type=t) for t in self.relationship_types]


@dataclass
class CypherProjection(Projection):
    projection_type: ClassVar[ProjectionType] = ProjectionType.CYPHER

    node_query: str = ""
    relationship_query: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    validate_relationships: bool = False


@dataclass
class DataFrameProjection(Projection):
    projection_type: ClassVar[ProjectionType] = ProjectionType.DATAFRAME

    node_data_frames: list[NodeDataFrame] = field(default_factory=list)
    relationship_data_frames: list[RelationshipDataFrame] = field(default_factory=list)

    def node_projections(self) -> list[NodeProjection]:
        return [NodeProjection(label=df.label, properties=list(df.properties))
                for df in self.node_data_frames]

    def relationship_projections(self) -> list[RelationshipProjection]:
        return [RelationshipProjection(type=df.type, properties=list(df.properties))
                for df in self.relationship_data_frames]


PROJECTION_CLASSES: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        NativeProjection, CypherProjection, DataFrameProjection,
        NodeProjection, RelationshipProjection, NodeDataFrame, RelationshipDataFrame,
    )
}
