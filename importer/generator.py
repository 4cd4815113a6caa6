"""
Source generation for imported schemas.

Emits a declaration module in the literal-construction form the scanner
recognises, so an imported schema can be re-scanned and rebuilt.
"""

import json
import keyword
import logging
import re
from typing import Any, Dict, List, Set, Union

from graphschema.schema import (
    Cardinality,
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
from importer.catalogue import CatalogueSnapshot, snapshot_to_model

logger = logging.getLogger(__name__)

SCHEMA_VARIABLE = "SCHEMA"
RELATIONSHIP_SUFFIX = "_rel"

# Import names for enum values; POINT means the property type, so the
# index type is imported under its own alias.
_INDEX_CONSTANTS: Dict[IndexType, str] = {
    IndexType.BTREE: "BTREE",
    IndexType.TEXT: "TEXT",
    IndexType.FULLTEXT: "FULLTEXT",
    IndexType.POINT: "POINT_INDEX",
    IndexType.VECTOR: "VECTOR",
}

_RESERVED_NAMES = frozenset({
    "NodeType", "RelationshipType", "Schema", "Property", "Constraint", "Index",
    SCHEMA_VARIABLE,
}) | frozenset(t.value for t in PropertyType) | frozenset(t.value for t in ConstraintType) \
    | frozenset(_INDEX_CONSTANTS.values())


def to_identifier(label: str) -> str:
    """Python identifier for a label or relationship type.

    ``Person`` -> ``person``, ``WORKS_FOR`` -> ``works_for``, ``HasTag`` ->
    ``hasTag``. Labels that cannot start an identifier get an ``n`` prefix:
    ``5122Node`` -> ``n5122Node``.
    """
    ident = re.sub(r"\W", "_", label.strip())
    if not ident:
        return "n_"
    if ident.upper() == ident:
        ident = ident.lower()
    else:
        ident = ident[0].lower() + ident[1:]
    if not (ident[0].isalpha() or ident[0] == "_") or not ident.isidentifier():
        ident = "n" + ident
    if keyword.iskeyword(ident) or ident in _RESERVED_NAMES:
        ident += "_"
    return ident


def _unique(ident: str, used: Set[str], suffix: str = "") -> str:
    candidate = ident
    if candidate in used and suffix:
        candidate = ident + suffix
    counter = 2
    base = candidate
    while candidate in used:
        candidate = f"{base}_{counter}"
        counter += 1
    used.add(candidate)
    return candidate


def _q(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def python_literal(value: Any) -> str:
    """Render a plain value as Python source."""
    if isinstance(value, bool) or value is None:
        return repr(value)
    if isinstance(value, str):
        return _q(value)
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(python_literal(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{_q(str(k))}: {python_literal(v)}" for k, v in value.items()) + "}"
    return _q(str(value))


class _Emitter:
    """Collects lines and the graphschema names they reference."""

    def __init__(self):
        self.lines: List[str] = []
        self.imports: Set[str] = set()

    def use(self, name: str) -> str:
        self.imports.add(name)
        return name

    def property(self, prop: Property) -> str:
        args = [f"name={_q(prop.name)}", f"type={self.use(PropertyType(prop.type).value)}"]
        if prop.required:
            args.append("required=True")
        if prop.unique:
            args.append("unique=True")
        if prop.description:
            args.append(f"description={_q(prop.description)}")
        return f"{self.use('Property')}({', '.join(args)})"

    def constraint(self, constraint: Constraint) -> str:
        args = [
            f"type={self.use(ConstraintType(constraint.type).value)}",
            f"properties={python_literal(constraint.properties)}",
        ]
        if constraint.name:
            args.append(f"name={_q(constraint.name)}")
        return f"{self.use('Constraint')}({', '.join(args)})"

    def index(self, index: Index) -> str:
        args = [
            f"type={self.use(_INDEX_CONSTANTS[IndexType(index.type)])}",
            f"properties={python_literal(index.properties)}",
        ]
        if index.name:
            args.append(f"name={_q(index.name)}")
        if index.options:
            args.append(f"options={python_literal(index.options)}")
        return f"{self.use('Index')}({', '.join(args)})"

    def list_field(self, name: str, items: List[str]) -> None:
        if not items:
            return
        self.lines.append(f"    {name}=[")
        for item in items:
            self.lines.append(f"        {item},")
        self.lines.append("    ],")

    def node(self, ident: str, node: NodeType) -> None:
        self.lines.append(f"{ident} = {self.use('NodeType')}(")
        self.lines.append(f"    label={_q(node.label)},")
        if node.description:
            self.lines.append(f"    description={_q(node.description)},")
        self.list_field("properties", [self.property(p) for p in node.properties])
        self.list_field("constraints", [self.constraint(c) for c in node.constraints])
        self.list_field("indexes", [self.index(i) for i in node.indexes])
        self.lines.append(")")
        self.lines.append("")

    def relationship(self, ident: str, rel: RelationshipType) -> None:
        self.lines.append(f"{ident} = {self.use('RelationshipType')}(")
        self.lines.append(f"    label={_q(rel.label)},")
        self.lines.append(f"    source={_q(rel.source)},")
        self.lines.append(f"    target={_q(rel.target)},")
        if rel.cardinality:
            self.lines.append(f"    cardinality={self.use(Cardinality(rel.cardinality).value)},")
        if rel.description:
            self.lines.append(f"    description={_q(rel.description)},")
        self.list_field("properties", [self.property(p) for p in rel.properties])
        self.list_field("constraints", [self.constraint(c) for c in rel.constraints])
        self.lines.append(")")
        self.lines.append("")


def assign_identifiers(schema: Schema) -> Dict[str, List[str]]:
    """Identifiers for every node and relationship type, collision-free.

    A relationship whose identifier collides with a node's gets the ``_rel``
    suffix.
    """
    used: Set[str] = set()
    nodes = [_unique(to_identifier(n.label), used) for n in schema.nodes]
    rels = [_unique(to_identifier(r.label), used, RELATIONSHIP_SUFFIX) for r in schema.relationships]
    return {"nodes": nodes, "relationships": rels}


def generate(source: Union[Schema, CatalogueSnapshot], package: str) -> str:
    """Generate a declaration module for an imported schema.

    Args:
        source: Imported schema, or a snapshot to convert first.
        package: Package name recorded in the module docstring and used as
            the schema wrapper's name.

    Returns:
        Python source text.
    """
    schema = snapshot_to_model(source, name=package) if isinstance(source, CatalogueSnapshot) else source
    name = package or schema.name or "schema"
    idents = assign_identifiers(schema)

    body = _Emitter()
    for ident, node in zip(idents["nodes"], schema.nodes):
        body.node(ident, node)
    for ident, rel in zip(idents["relationships"], schema.relationships):
        body.relationship(ident, rel)

    body.use("Schema")
    body.lines.append("# Edit agent_context to describe conventions for agents querying this graph.")
    body.lines.append(f"{SCHEMA_VARIABLE} = Schema(")
    body.lines.append(f"    name={_q(name)},")
    body.list_field("nodes", idents["nodes"])
    body.list_field("relationships", idents["relationships"])
    body.lines.append(f"    agent_context={_q(schema.agent_context)},")
    body.lines.append(")")

    header = [
        '"""',
        f"Graph schema for {name}.",
        "",
        "Generated by schemagen import from an existing database schema.",
        '"""',
        "",
        "from graphschema import (",
    ]
    header.extend(f"    {imported}," for imported in sorted(body.imports))
    header.extend([")", "", ""])

    logger.info(
        "Generated %d node and %d relationship declarations for %s",
        len(schema.nodes), len(schema.relationships), name,
    )
    return "\n".join(header + body.lines) + "\n"
