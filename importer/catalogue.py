"""
Catalogue snapshots: constraints, indexes and labels of an existing database.

A snapshot is produced either by reading a Cypher script
(``importer.cypher_script``) or by querying a live database
(:func:`fetch_catalogue`), and is turned into ``graphschema`` models by
:func:`snapshot_to_model`.
"""

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from neo4j import Driver, GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError
from neo4j.spatial import Point
from neo4j.time import Date, DateTime

from core.settings import Neo4jSettings
from graphschema.schema import (
    Constraint,
    ConstraintType,
    Index,
    IndexType,
    NodeType,
    Property,
    PropertyType,
    RelationshipType,
    Schema,
)

logger = logging.getLogger(__name__)

NODE = "NODE"
RELATIONSHIP = "RELATIONSHIP"

# SHOW CONSTRAINTS / script keywords -> ConstraintType.
CONSTRAINT_TYPE_NAMES: Dict[str, ConstraintType] = {
    "UNIQUE": ConstraintType.UNIQUE,
    "UNIQUENESS": ConstraintType.UNIQUE,
    "NODE_PROPERTY_UNIQUENESS": ConstraintType.UNIQUE,
    "RELATIONSHIP_UNIQUENESS": ConstraintType.UNIQUE,
    "RELATIONSHIP_PROPERTY_UNIQUENESS": ConstraintType.UNIQUE,
    "EXISTS": ConstraintType.EXISTS,
    "NOT_NULL": ConstraintType.EXISTS,
    "NODE_PROPERTY_EXISTENCE": ConstraintType.EXISTS,
    "RELATIONSHIP_PROPERTY_EXISTENCE": ConstraintType.EXISTS,
    "NODE_KEY": ConstraintType.NODE_KEY,
    "REL_KEY": ConstraintType.REL_KEY,
    "RELATIONSHIP_KEY": ConstraintType.REL_KEY,
}

# SHOW INDEXES / script keywords -> IndexType. LOOKUP indexes are skipped.
INDEX_TYPE_NAMES: Dict[str, IndexType] = {
    "RANGE": IndexType.BTREE,
    "BTREE": IndexType.BTREE,
    "TEXT": IndexType.TEXT,
    "FULLTEXT": IndexType.FULLTEXT,
    "POINT": IndexType.POINT,
    "VECTOR": IndexType.VECTOR,
}

_REQUIRED_BY = (ConstraintType.EXISTS, ConstraintType.NODE_KEY, ConstraintType.REL_KEY)
_UNIQUE_BY = (ConstraintType.UNIQUE, ConstraintType.NODE_KEY)

# Single-property constraints that a property flag regenerates.
_FLAG_SUFFIX = {
    ConstraintType.EXISTS: "not_null",
    ConstraintType.UNIQUE: "unique",
}


@dataclass
class CatalogueConstraint:
    name: str
    type: ConstraintType
    entity: str
    label: str
    properties: List[str] = field(default_factory=list)


@dataclass
class CatalogueIndex:
    name: str
    type: IndexType
    entity: str
    label: str
    properties: List[str] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CatalogueSnapshot:
    """Pre-fetched catalogue of one database.

    Attributes:
        labels: Node labels in discovery order.
        relationship_types: Relationship types in discovery order.
        constraints: Constraint definitions.
        indexes: Index definitions (constraint-backing indexes excluded).
        node_properties: Sampled property types per node label.
        relationship_properties: Sampled property types per relationship type.
        relationship_endpoints: Sampled ``(source, target)`` labels per
            relationship type.
    """

    labels: List[str] = field(default_factory=list)
    relationship_types: List[str] = field(default_factory=list)
    constraints: List[CatalogueConstraint] = field(default_factory=list)
    indexes: List[CatalogueIndex] = field(default_factory=list)
    node_properties: Dict[str, Dict[str, str]] = field(default_factory=dict)
    relationship_properties: Dict[str, Dict[str, str]] = field(default_factory=dict)
    relationship_endpoints: Dict[str, Tuple[str, str]] = field(default_factory=dict)

    def add_label(self, label: str) -> None:
        if label and label not in self.labels:
            self.labels.append(label)

    def add_relationship_type(self, rel_type: str) -> None:
        if rel_type and rel_type not in self.relationship_types:
            self.relationship_types.append(rel_type)

    def add_constraint(self, constraint: CatalogueConstraint) -> None:
        if constraint.entity == RELATIONSHIP:
            self.add_relationship_type(constraint.label)
        else:
            self.add_label(constraint.label)
        self.constraints.append(constraint)

    def add_index(self, index: CatalogueIndex) -> None:
        if index.entity == RELATIONSHIP:
            self.add_relationship_type(index.label)
        else:
            self.add_label(index.label)
        self.indexes.append(index)


def constraint_type_from_name(raw: Any) -> Optional[ConstraintType]:
    key = str(raw or "").strip().upper().replace(" ", "_")
    return CONSTRAINT_TYPE_NAMES.get(key)


def index_type_from_name(raw: Any) -> Optional[IndexType]:
    key = str(raw or "").strip().upper()
    return INDEX_TYPE_NAMES.get(key)


# ---------------------------------------------------------------------------
# Snapshot -> model
# ---------------------------------------------------------------------------


class _TypeBuilder:
    """Accumulates properties and explicit definitions for one label."""

    def __init__(self, label: str, sampled: Optional[Dict[str, str]] = None, relationship: bool = False):
        self.label = label
        self.relationship = relationship
        self.properties: Dict[str, Property] = {}
        self.constraints: List[Constraint] = []
        self.indexes: List[Index] = []
        for name, type_name in (sampled or {}).items():
            self.prop(name).type = _property_type(type_name)

    def prop(self, name: str) -> Property:
        if name not in self.properties:
            self.properties[name] = Property(name=name, type=PropertyType.STRING)
        return self.properties[name]

    def add_constraint(self, constraint: CatalogueConstraint) -> None:
        if self.relationship and constraint.type == ConstraintType.UNIQUE:
            logger.warning(
                "Skipping uniqueness constraint %s on relationship %s",
                constraint.name or "(unnamed)", self.label,
            )
            return
        properties = list(constraint.properties)
        for name in properties:
            prop = self.prop(name)
            if constraint.type in _REQUIRED_BY:
                prop.required = True
        single = properties[0] if len(properties) == 1 else None
        if single and constraint.type in _UNIQUE_BY:
            self.properties[single].unique = True
        # An unnamed or default-named single-property constraint is fully
        # regenerated from the flag it set.
        flag_suffix = _FLAG_SUFFIX.get(constraint.type)
        if single and flag_suffix and constraint.name in ("", f"{self.label.lower()}_{single}_{flag_suffix}"):
            return
        self.constraints.append(Constraint(
            type=constraint.type,
            properties=properties,
            name=constraint.name,
        ))

    def add_index(self, index: CatalogueIndex) -> None:
        for name in index.properties:
            self.prop(name)
        self.indexes.append(Index(
            type=index.type,
            properties=list(index.properties),
            name=index.name,
            options=dict(index.options),
        ))


def _property_type(name: str) -> PropertyType:
    try:
        return PropertyType(str(name).upper())
    except ValueError:
        return PropertyType.STRING


def snapshot_to_model(snapshot: CatalogueSnapshot, name: str = "") -> Schema:
    """Group a snapshot's definitions by label into node and relationship types.

    Properties referenced by EXISTS, NODE_KEY or REL_KEY constraints are
    required; a property that a single-property UNIQUE or NODE_KEY constraint
    covers is unique. Composite uniqueness sets no per-property flag.

    An unnamed or default-named single-property EXISTS/UNIQUE constraint is
    carried by the flag alone. Every other constraint is also kept explicitly
    under its own name, so rebuilding the model reproduces the original
    statements. Relationship indexes are skipped.
    Property types default to STRING unless sampled.
    """
    nodes: Dict[str, _TypeBuilder] = {}
    rels: Dict[str, _TypeBuilder] = {}
    for label in snapshot.labels:
        nodes[label] = _TypeBuilder(label, snapshot.node_properties.get(label))
    for rel_type in snapshot.relationship_types:
        rels[rel_type] = _TypeBuilder(
            rel_type, snapshot.relationship_properties.get(rel_type), relationship=True
        )

    def builder_for(entity: str, label: str) -> _TypeBuilder:
        table = rels if entity == RELATIONSHIP else nodes
        if label not in table:
            table[label] = _TypeBuilder(label, relationship=entity == RELATIONSHIP)
        return table[label]

    for constraint in snapshot.constraints:
        builder_for(constraint.entity, constraint.label).add_constraint(constraint)
    for index in snapshot.indexes:
        if index.entity == RELATIONSHIP:
            logger.debug("Skipping relationship index %s on %s", index.name, index.label)
            continue
        builder_for(index.entity, index.label).add_index(index)

    node_types = [
        NodeType(
            label=b.label,
            properties=list(b.properties.values()),
            constraints=b.constraints,
            indexes=b.indexes,
        )
        for b in nodes.values()
    ]
    relationship_types = []
    for b in rels.values():
        source, target = snapshot.relationship_endpoints.get(b.label, ("", ""))
        relationship_types.append(RelationshipType(
            label=b.label,
            source=source,
            target=target,
            properties=list(b.properties.values()),
            constraints=b.constraints,
        ))
    logger.info(
        "Imported %d node types and %d relationship types",
        len(node_types), len(relationship_types),
    )
    return Schema(name=name, nodes=node_types, relationships=relationship_types)


# ---------------------------------------------------------------------------
# Live catalogue
# ---------------------------------------------------------------------------


def infer_property_type(value: Any) -> str:
    """Property type name for a sampled driver value."""
    if isinstance(value, bool):
        return PropertyType.BOOLEAN.value
    if isinstance(value, int):
        return PropertyType.INTEGER.value
    if isinstance(value, float):
        return PropertyType.FLOAT.value
    if isinstance(value, (DateTime, datetime.datetime)):
        return PropertyType.DATETIME.value
    if isinstance(value, (Date, datetime.date)):
        return PropertyType.DATE.value
    if isinstance(value, Point):
        return PropertyType.POINT.value
    if isinstance(value, (list, tuple)):
        element = infer_property_type(value[0]) if value else PropertyType.STRING.value
        if element == PropertyType.INTEGER.value:
            return PropertyType.LIST_INTEGER.value
        if element == PropertyType.FLOAT.value:
            return PropertyType.LIST_FLOAT.value
        return PropertyType.LIST_STRING.value
    return PropertyType.STRING.value


def _first(values: Any) -> str:
    if isinstance(values, (list, tuple)) and values:
        return str(values[0])
    return ""


def _escape_label(label: str) -> str:
    return "`" + label.replace("`", "``") + "`"


def _sample_properties(session: Any, query: str) -> Dict[str, str]:
    for record in session.run(query):
        props = record["props"] or {}
        return {key: infer_property_type(value) for key, value in dict(props).items()}
    return {}


def fetch_catalogue(driver: Driver, database: Optional[str] = None, sample: bool = True) -> CatalogueSnapshot:
    """Read labels, relationship types, constraints and indexes from a database.

    Args:
        driver: Connected Neo4j driver.
        database: Database name (driver default when None).
        sample: Also sample one node/relationship per label to infer
            property types and relationship endpoints.

    Returns:
        A populated ``CatalogueSnapshot``.
    """
    snapshot = CatalogueSnapshot()
    with driver.session(database=database) as session:
        for record in session.run("CALL db.labels()"):
            snapshot.add_label(record["label"])
        for record in session.run("CALL db.relationshipTypes()"):
            snapshot.add_relationship_type(record["relationshipType"])
        logger.info(
            "Found %d labels and %d relationship types",
            len(snapshot.labels), len(snapshot.relationship_types),
        )

        for record in session.run("SHOW CONSTRAINTS"):
            ctype = constraint_type_from_name(record["type"])
            if ctype is None:
                logger.debug("Skipping constraint %s of type %s", record["name"], record["type"])
                continue
            snapshot.add_constraint(CatalogueConstraint(
                name=record["name"] or "",
                type=ctype,
                entity=str(record["entityType"] or NODE).upper(),
                label=_first(record["labelsOrTypes"]),
                properties=[str(p) for p in record["properties"] or []],
            ))

        for record in session.run("SHOW INDEXES"):
            if record["owningConstraint"]:
                continue
            itype = index_type_from_name(record["type"])
            if itype is None:
                logger.debug("Skipping index %s of type %s", record["name"], record["type"])
                continue
            options = {}
            config = (record["options"] or {}).get("indexConfig") or {}
            if "vector.dimensions" in config:
                options["dimensions"] = int(config["vector.dimensions"])
            if "vector.similarity_function" in config:
                options["similarity_function"] = str(config["vector.similarity_function"]).lower()
            snapshot.add_index(CatalogueIndex(
                name=record["name"] or "",
                type=itype,
                entity=str(record["entityType"] or NODE).upper(),
                label=_first(record["labelsOrTypes"]),
                properties=[str(p) for p in record["properties"] or []],
                options=options,
            ))

        if sample:
            for label in snapshot.labels:
                snapshot.node_properties[label] = _sample_properties(
                    session, f"MATCH (n:{_escape_label(label)}) RETURN properties(n) AS props LIMIT 1"
                )
            for rel_type in snapshot.relationship_types:
                query = (
                    f"MATCH (a)-[r:{_escape_label(rel_type)}]->(b) "
                    "RETURN labels(a) AS source, labels(b) AS target, properties(r) AS props LIMIT 1"
                )
                for record in session.run(query):
                    snapshot.relationship_endpoints[rel_type] = (
                        _first(record["source"]), _first(record["target"]),
                    )
                    snapshot.relationship_properties[rel_type] = {
                        key: infer_property_type(value)
                        for key, value in dict(record["props"] or {}).items()
                    }
                    break

    logger.info(
        "Fetched %d constraints and %d indexes",
        len(snapshot.constraints), len(snapshot.indexes),
    )
    return snapshot


def get_neo4j_driver(settings: Neo4jSettings) -> Driver:
    """Connect to Neo4j.

    Raises:
        ConnectionError: If the database cannot be reached.

    Example:
        >>> driver = get_neo4j_driver(load_settings().neo4j)
    """
    logger.info("Connecting to Neo4j at %s...", settings.uri)
    try:
        driver = GraphDatabase.driver(settings.uri, auth=(settings.username, settings.password))
        driver.verify_connectivity()
    except (DriverError, Neo4jError) as e:
        raise ConnectionError(f"Failed to connect to Neo4j at {settings.uri}: {e}") from e
    logger.info("Connected to Neo4j at %s", settings.uri)
    return driver
