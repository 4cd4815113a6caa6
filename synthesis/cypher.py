"""
Cypher constraint and index generation for node and relationship types.

One template per (entity, constraint/index type) pair, selected by enum
member. Implicit constraints are derived from property flags:

    required -> {label}_{property}_not_null   (existence)
    unique   -> {label}_{property}_unique     (uniqueness, nodes only)

Example:
    >>> print(node_type_to_cypher(NodeType(
    ...     label="Person", properties=[Property(name="id", unique=True)])))
    CREATE CONSTRAINT person_id_unique IF NOT EXISTS FOR (n:Person) REQUIRE (n.id) IS UNIQUE;
"""

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Set, Tuple

from core.errors import UnsupportedConstructError
from graphschema.schema import (
    Constraint,
    ConstraintType,
    Index,
    IndexType,
    NodeType,
    RelationshipType,
)

logger = logging.getLogger(__name__)

DEFAULT_VECTOR_DIMENSIONS = 384
DEFAULT_SIMILARITY_FUNCTION = "cosine"

STATEMENT_SEPARATOR = ";\n"
BLOCK_SEPARATOR = "\n\n"

_PLAIN_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_name(name: str) -> str:
    """Backquote a label, type or schema object name that is not a plain identifier."""
    if _PLAIN_NAME.match(name):
        return name
    return "`" + name.replace("`", "``") + "`"


def _props(alias: str, properties: List[str]) -> str:
    return ", ".join(f"{alias}.{quote_name(p)}" for p in properties)


def _first(properties: List[str], what: str) -> str:
    if not properties:
        raise UnsupportedConstructError(f"{what} requires at least one property")
    return quote_name(properties[0])


# ---------------------------------------------------------------------------
# Constraint templates
# ---------------------------------------------------------------------------


def _unique_constraint(name: str, label: str, properties: List[str]) -> str:
    return (
        f"CREATE CONSTRAINT {name} IF NOT EXISTS FOR (n:{label}) "
        f"REQUIRE ({_props('n', properties)}) IS UNIQUE"
    )


def _exists_constraint(name: str, label: str, properties: List[str]) -> str:
    prop = _first(properties, "existence constraint")
    return f"CREATE CONSTRAINT {name} IF NOT EXISTS FOR (n:{label}) REQUIRE n.{prop} IS NOT NULL"


def _node_key_constraint(name: str, label: str, properties: List[str]) -> str:
    return (
        f"CREATE CONSTRAINT {name} IF NOT EXISTS FOR (n:{label}) "
        f"REQUIRE ({_props('n', properties)}) IS NODE KEY"
    )


def _rel_exists_constraint(name: str, label: str, properties: List[str]) -> str:
    prop = _first(properties, "existence constraint")
    return f"CREATE CONSTRAINT {name} IF NOT EXISTS FOR ()-[r:{label}]-() REQUIRE r.{prop} IS NOT NULL"


def _rel_key_constraint(name: str, label: str, properties: List[str]) -> str:
    return (
        f"CREATE CONSTRAINT {name} IF NOT EXISTS FOR ()-[r:{label}]-() "
        f"REQUIRE ({_props('r', properties)}) IS RELATIONSHIP KEY"
    )


NODE_CONSTRAINT_TEMPLATES: Dict[ConstraintType, Callable[[str, str, List[str]], str]] = {
    ConstraintType.UNIQUE: _unique_constraint,
    ConstraintType.EXISTS: _exists_constraint,
    ConstraintType.NODE_KEY: _node_key_constraint,
}

RELATIONSHIP_CONSTRAINT_TEMPLATES: Dict[ConstraintType, Callable[[str, str, List[str]], str]] = {
    ConstraintType.EXISTS: _rel_exists_constraint,
    ConstraintType.REL_KEY: _rel_key_constraint,
}


# ---------------------------------------------------------------------------
# Index templates
# ---------------------------------------------------------------------------


def _btree_index(name: str, label: str, properties: List[str], options: Dict[str, Any]) -> str:
    return f"CREATE INDEX {name} IF NOT EXISTS FOR (n:{label}) ON ({_props('n', properties)})"


def _text_index(name: str, label: str, properties: List[str], options: Dict[str, Any]) -> str:
    prop = _first(properties, "text index")
    return f"CREATE TEXT INDEX {name} IF NOT EXISTS FOR (n:{label}) ON (n.{prop})"


def _fulltext_index(name: str, label: str, properties: List[str], options: Dict[str, Any]) -> str:
    return (
        f"CREATE FULLTEXT INDEX {name} IF NOT EXISTS FOR (n:{label}) "
        f"ON EACH [{_props('n', properties)}]"
    )


def _point_index(name: str, label: str, properties: List[str], options: Dict[str, Any]) -> str:
    prop = _first(properties, "point index")
    return f"CREATE POINT INDEX {name} IF NOT EXISTS FOR (n:{label}) ON (n.{prop})"


def vector_settings(options: Dict[str, Any]) -> tuple:
    """``(dimensions, similarity_function)`` with defaults for unset options."""
    dimensions = options.get("dimensions")
    if not isinstance(dimensions, int) or isinstance(dimensions, bool):
        dimensions = DEFAULT_VECTOR_DIMENSIONS
    similarity = options.get("similarity_function", options.get("similarityFunction"))
    if not isinstance(similarity, str) or not similarity:
        similarity = DEFAULT_SIMILARITY_FUNCTION
    return dimensions, similarity


def _vector_index(name: str, label: str, properties: List[str], options: Dict[str, Any]) -> str:
    prop = _first(properties, "vector index")
    dimensions, similarity = vector_settings(options)
    return (
        f"CREATE VECTOR INDEX {name} IF NOT EXISTS FOR (n:{label}) ON (n.{prop}) "
        f"OPTIONS {{indexConfig: {{`vector.dimensions`: {dimensions}, "
        f"`vector.similarity_function`: '{similarity}'}}}}"
    )


INDEX_TEMPLATES: Dict[IndexType, Callable[[str, str, List[str], Dict[str, Any]], str]] = {
    IndexType.BTREE: _btree_index,
    IndexType.TEXT: _text_index,
    IndexType.FULLTEXT: _fulltext_index,
    IndexType.POINT: _point_index,
    IndexType.VECTOR: _vector_index,
}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _constraint_type(value: Any) -> ConstraintType:
    try:
        return ConstraintType(value)
    except ValueError:
        raise UnsupportedConstructError(f"unsupported constraint type: {value}") from None


def _index_type(value: Any) -> IndexType:
    try:
        return IndexType(value)
    except ValueError:
        raise UnsupportedConstructError(f"unsupported index type: {value}") from None


def default_constraint_name(label: str, constraint_type: ConstraintType, properties: List[str]) -> str:
    parts = [label.lower(), *properties, constraint_type.value.lower()]
    return "_".join(parts)


def default_index_name(label: str, index_type: IndexType, properties: List[str]) -> str:
    parts = [label.lower(), *properties, index_type.value.lower(), "index"]
    return "_".join(parts)


def constraint_to_cypher(label: str, constraint: Constraint, relationship: bool = False) -> str:
    """Render one explicit constraint.

    Raises:
        UnsupportedConstructError: If the type has no template for the entity.
    """
    ctype = _constraint_type(constraint.type)
    templates = RELATIONSHIP_CONSTRAINT_TEMPLATES if relationship else NODE_CONSTRAINT_TEMPLATES
    template = templates.get(ctype)
    if template is None:
        entity = "relationship" if relationship else "node"
        raise UnsupportedConstructError(f"unsupported {entity} constraint type: {ctype.value}")
    properties = list(constraint.properties)
    name = constraint.name or default_constraint_name(label, ctype, properties)
    return template(quote_name(name), quote_name(label), properties)


def index_to_cypher(label: str, index: Index) -> str:
    """Render one index.

    Raises:
        UnsupportedConstructError: If the index type is unknown.
    """
    itype = _index_type(index.type)
    properties = list(index.properties)
    name = index.name or default_index_name(label, itype, properties)
    return INDEX_TEMPLATES[itype](quote_name(name), quote_name(label), properties, dict(index.options or {}))


def _join(statements: List[str]) -> str:
    if not statements:
        return ""
    return STATEMENT_SEPARATOR.join(statements) + ";"


def _covered(constraints: Iterable[Constraint]) -> Tuple[Set[str], Set[str]]:
    """Properties whose existence and uniqueness explicit constraints already enforce."""
    required: Set[str] = set()
    unique: Set[str] = set()
    for c in constraints:
        try:
            ctype = ConstraintType(c.type)
        except ValueError:
            continue
        properties = list(c.properties)
        if ctype in (ConstraintType.NODE_KEY, ConstraintType.REL_KEY):
            required.update(properties)
        if ctype == ConstraintType.EXISTS and len(properties) == 1:
            required.add(properties[0])
        if ctype in (ConstraintType.UNIQUE, ConstraintType.NODE_KEY) and len(properties) == 1:
            unique.add(properties[0])
    return required, unique


def node_type_to_cypher(node: NodeType) -> str:
    """Constraint and index statements for a node type.

    Explicit constraints come first, then implicit ones from property flags,
    then indexes. A flag already enforced by an explicit constraint adds no
    statement. A node type with nothing to create renders ``""``.
    """
    label = node.label
    statements = [constraint_to_cypher(label, c) for c in node.constraints]
    covered_required, covered_unique = _covered(node.constraints)
    for prop in node.properties:
        if prop.required and prop.name not in covered_required:
            statements.append(_exists_constraint(
                quote_name(f"{label.lower()}_{prop.name}_not_null"), quote_name(label), [prop.name]
            ))
        if prop.unique and prop.name not in covered_unique:
            statements.append(_unique_constraint(
                quote_name(f"{label.lower()}_{prop.name}_unique"), quote_name(label), [prop.name]
            ))
    statements.extend(index_to_cypher(label, idx) for idx in node.indexes)
    return _join(statements)


def relationship_type_to_cypher(rel: RelationshipType) -> str:
    """Constraint statements for a relationship type.

    Returns ``""`` when the relationship has no constraints and no required
    properties; callers treat that as nothing to emit.
    """
    label = rel.label
    statements = [constraint_to_cypher(label, c, relationship=True) for c in rel.constraints]
    covered_required, _ = _covered(rel.constraints)
    for prop in rel.properties:
        if prop.required and prop.name not in covered_required:
            statements.append(
                _rel_exists_constraint(
                    quote_name(f"{label.lower()}_{prop.name}_not_null"), quote_name(label), [prop.name]
                )
            )
    return _join(statements)


def render_all(nodes: Iterable[NodeType], relationships: Iterable[RelationshipType]) -> str:
    """Render node types, then relationship types, one headed block each."""
    blocks: List[str] = []
    for node in nodes:
        stmt = node_type_to_cypher(node)
        if stmt:
            blocks.append(f"// {node.label} constraints and indexes")
            blocks.append(stmt)
        else:
            logger.debug("Node type %s has no constraints or indexes", node.label)
    for rel in relationships:
        stmt = relationship_type_to_cypher(rel)
        if stmt:
            blocks.append(f"// {rel.label} constraints")
            blocks.append(stmt)
        else:
            logger.debug("Relationship type %s has no constraints", rel.label)
    return BLOCK_SEPARATOR.join(blocks)
