"""
Data models for discovered declarations.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ResourceKind(str, Enum):
    """Closed set of resource kinds the scanner recognises."""

    NODE_TYPE = "NodeType"
    RELATIONSHIP_TYPE = "RelationshipType"
    ALGORITHM = "Algorithm"
    PIPELINE = "Pipeline"
    RETRIEVER = "Retriever"
    SCHEMA = "Schema"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SymbolRef:
    """A statically unresolved name in a declaration (``Mode.WRITE``, ``person``).

    ``name`` is the last identifier; ``qualified`` the full dotted text.
    """

    name: str
    qualified: str = ""


@dataclass(frozen=True)
class CallLiteral:
    """A nested constructor call captured from a declaration literal."""

    type_name: str
    kwargs: Dict[str, Any] = field(default_factory=dict)
    args: tuple = ()


@dataclass
class PropertyInfo:
    name: str
    type: str = "STRING"
    required: bool = False
    unique: bool = False
    description: str = ""


@dataclass
class ConstraintInfo:
    type: str
    properties: List[str] = field(default_factory=list)
    name: str = ""


@dataclass
class IndexInfo:
    type: str
    properties: List[str] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)
    name: str = ""


@dataclass
class DiscoveredResource:
    """One declaration found in source.

    Attributes:
        name: Domain identifier (graph label or algorithm name). Falls back to
            the declaring identifier only when no label/name literal exists.
        kind: Resource kind from the alias table.
        file: Path of the declaring file.
        line: 1-indexed line of the declaration.
        package: Module name derived from the file name.
        declared_as: Identifier used in source (class or variable name).
        type_name: Alias that matched (``NodeType``, ``PageRank``, ...).
        dependencies: Ordered, de-duplicated names this resource references.
        properties: Property metadata (node and relationship types).
        constraints: Explicit constraint metadata.
        indexes: Explicit index metadata.
        source: Source label (relationship types only).
        target: Target label (relationship types only).
        agent_context: Free-text guidance (schema wrappers only).
        description: Free-text description, when declared.
        attributes: Statically evaluated keyword values of the declaration.
    """

    name: str
    kind: ResourceKind
    file: str = ""
    line: int = 0
    package: str = ""
    declared_as: str = ""
    type_name: str = ""
    dependencies: List[str] = field(default_factory=list)
    properties: List[PropertyInfo] = field(default_factory=list)
    constraints: List[ConstraintInfo] = field(default_factory=list)
    indexes: List[IndexInfo] = field(default_factory=list)
    source: str = ""
    target: str = ""
    agent_context: str = ""
    description: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple:
        """Identity used by synthesis and diffing."""
        return (self.kind.value, self.name)

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}"

    def property_map(self) -> Dict[str, PropertyInfo]:
        return {p.name: p for p in self.properties}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary (attributes excluded)."""
        data = asdict(self)
        data["kind"] = self.kind.value
        data.pop("attributes", None)
        return data
