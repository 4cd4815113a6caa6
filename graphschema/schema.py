"""
Core schema declarations: node types, relationship types and the schema wrapper.

Example:
    >>> person = NodeType(
    ...     label="Person",
    ...     properties=[Property(name="id", type=STRING, unique=True)],
    ... )
    >>> person.to_map()["label"]
    'Person'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from graphschema.base import MapMixin, apply_class_declarations


class PropertyType(str, Enum):
    """Value type of a node or relationship property."""

    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    DATETIME = "DATETIME"
    POINT = "POINT"
    LIST_STRING = "LIST_STRING"
    LIST_INTEGER = "LIST_INTEGER"
    LIST_FLOAT = "LIST_FLOAT"

    def __str__(self) -> str:
        return self.value


class Cardinality(str, Enum):
    ONE_TO_ONE = "ONE_TO_ONE"
    ONE_TO_MANY = "ONE_TO_MANY"
    MANY_TO_ONE = "MANY_TO_ONE"
    MANY_TO_MANY = "MANY_TO_MANY"

    def __str__(self) -> str:
        return self.value


class ConstraintType(str, Enum):
    UNIQUE = "UNIQUE"
    EXISTS = "EXISTS"
    NODE_KEY = "NODE_KEY"
    REL_KEY = "REL_KEY"

    def __str__(self) -> str:
        return self.value


class IndexType(str, Enum):
    BTREE = "BTREE"
    TEXT = "TEXT"
    FULLTEXT = "FULLTEXT"
    POINT = "POINT"
    VECTOR = "VECTOR"

    def __str__(self) -> str:
        return self.value


@dataclass
class Property(MapMixin):
    """A typed property on a node or relationship."""

    name: str = field(default="", metadata={"keep": True})
    type: PropertyType = field(default=PropertyType.STRING, metadata={"keep": True})
    required: bool = False
    unique: bool = False
    description: str = ""
    default_value: Any = None


@dataclass
class Constraint(MapMixin):
    """An explicit constraint over one or more properties."""

    type: ConstraintType = field(default=ConstraintType.UNIQUE)
    properties: list[str] = field(default_factory=list, metadata={"keep": True})
    name: str = ""

    def map_header(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass
class Index(MapMixin):
    """An explicit index; ``options`` carries vector settings and the like."""

    type: IndexType = IndexType.BTREE
    properties: list[str] = field(default_factory=list, metadata={"keep": True})
    name: str = ""
    options: dict[str, Any] = field(default_factory=dict)

    def map_header(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass
class NodeType(MapMixin):
    """A node label with its properties, constraints and indexes.

    Declared either by construction (``NodeType(label="Person", ...)``) or by
    subclassing (``class Person(NodeType): ...``), in which case the label
    defaults to the class name.
    """

    label: str = field(default="", metadata={"keep": True})
    properties: list[Property] = field(default_factory=list)
    constraints: list[Constraint] = field(default_factory=list)
    indexes: list[Index] = field(default_factory=list)
    description: str = ""

    def __post_init__(self) -> None:
        apply_class_declarations(self, NodeType)
        if not self.label and type(self) is not NodeType:
            self.label = type(self).__name__

    def to_map(self) -> dict[str, Any]:
        result: dict[str, Any] = {"label": self.label}
        if self.description:
            result["description"] = self.description
        if self.properties:
            result["properties"] = [p.to_map() for p in self.properties]
        if self.constraints:
            result["constraints"] = [c.to_map() for c in self.constraints]
        if self.indexes:
            result["indexes"] = [i.to_map() for i in self.indexes]
        return result


@dataclass
class RelationshipType(MapMixin):
    """A relationship type connecting a source label to a target label."""

    label: str = field(default="", metadata={"keep": True})
    source: str = field(default="", metadata={"keep": True})
    target: str = field(default="", metadata={"keep": True})
    cardinality: Optional[Cardinality] = None
    properties: list[Property] = field(default_factory=list)
    constraints: list[Constraint] = field(default_factory=list)
    description: str = ""

    def __post_init__(self) -> None:
        apply_class_declarations(self, RelationshipType)
        if not self.label and type(self) is not RelationshipType:
            self.label = type(self).__name__

    def to_map(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "label": self.label,
            "source": self.source,
            "target": self.target,
        }
        if self.cardinality:
            result["cardinality"] = Cardinality(self.cardinality).value
        if self.description:
            result["description"] = self.description
        if self.properties:
            result["properties"] = [p.to_map() for p in self.properties]
        if self.constraints:
            result["constraints"] = [c.to_map() for c in self.constraints]
        return result


@dataclass
class Schema(MapMixin):
    """Wrapper collecting node and relationship types plus agent guidance."""

    name: str = ""
    nodes: list[NodeType] = field(default_factory=list)
    relationships: list[RelationshipType] = field(default_factory=list)
    agent_context: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        apply_class_declarations(self, Schema)
        if not self.name and type(self) is not Schema:
            self.name = type(self).__name__


# Module-level constants so declarations read ``type=STRING``.
STRING = PropertyType.STRING
INTEGER = PropertyType.INTEGER
INT = PropertyType.INTEGER
FLOAT = PropertyType.FLOAT
BOOLEAN = PropertyType.BOOLEAN
BOOL = PropertyType.BOOLEAN
DATE = PropertyType.DATE
DATETIME = PropertyType.DATETIME
POINT = PropertyType.POINT
LIST_STRING = PropertyType.LIST_STRING
LIST_INTEGER = PropertyType.LIST_INTEGER
LIST_INT = PropertyType.LIST_INTEGER
LIST_FLOAT = PropertyType.LIST_FLOAT

ONE_TO_ONE = Cardinality.ONE_TO_ONE
ONE_TO_MANY = Cardinality.ONE_TO_MANY
MANY_TO_ONE = Cardinality.MANY_TO_ONE
MANY_TO_MANY = Cardinality.MANY_TO_MANY

UNIQUE = ConstraintType.UNIQUE
EXISTS = ConstraintType.EXISTS
NODE_KEY = ConstraintType.NODE_KEY
REL_KEY = ConstraintType.REL_KEY

BTREE = IndexType.BTREE
RANGE = IndexType.BTREE
TEXT = IndexType.TEXT
FULLTEXT = IndexType.FULLTEXT
POINT_INDEX = IndexType.POINT
VECTOR = IndexType.VECTOR
