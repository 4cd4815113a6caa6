"""
High-level orchestrator for declaration discovery.

This module provides the entry points for scanning a single declaration
module or an entire directory tree. Two declaration forms are recognised:

1. Structural composition: a class whose bases include a resource alias::

       class Person(NodeType):
           properties = [Property(name="id", unique=True)]
           employer: Company

2. Literal construction: a module-level value built from a resource alias::

       works_for = RelationshipType(label="WORKS_FOR", source="Person", target="Company")

Nothing is imported or executed; all metadata is read from the syntax tree.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from tree_sitter import Node

from core.errors import ScanError, UsageError
from discovery.config import (
    AGENT_CONTEXT_FIELD,
    ASSIGNMENT,
    CALL,
    CLASS_DEFINITION,
    CONSTRAINT_TYPE_ALIASES,
    CONSTRAINTS_FIELD,
    CONTAINER_STATEMENTS,
    DECORATED_DEFINITION,
    DEFAULT_PROPERTY_TYPE,
    DESCRIPTION_FIELD,
    EXPRESSION_STATEMENT,
    IDENTIFIER,
    INDEX_TYPE_ALIASES,
    INDEXES_FIELD,
    NAME_FIELDS,
    POSITIONAL_FIELDS,
    PROPERTIES_FIELD,
    PROPERTY_TYPE_ALIASES,
    SKIP_DIRS,
    SOURCE_EXTENSIONS,
    SOURCE_FIELD,
    TARGET_FIELD,
    TEST_FILE_NAMES,
    TEST_FILE_PREFIXES,
    TEST_FILE_SUFFIXES,
)
from discovery.models import (
    CallLiteral,
    ConstraintInfo,
    DiscoveredResource,
    IndexInfo,
    PropertyInfo,
    ResourceKind,
    SymbolRef,
)
from discovery.parser import parse_checked
from discovery.traversal import (
    call_arguments,
    collect_dependencies,
    literal_value,
    named_children,
    node_text,
    resolve_node_kind,
    string_value,
    symbol_name,
    unwrap,
)

logger = logging.getLogger(__name__)


class ScanStats:
    """Statistics for a directory scan."""

    def __init__(self):
        self.files_processed = 0
        self.files_failed = 0
        self.resources_found = 0
        self.duplicates = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert stats to dictionary."""
        return {
            "files_processed": self.files_processed,
            "files_failed": self.files_failed,
            "resources_found": self.resources_found,
            "duplicates": self.duplicates,
        }

    def __str__(self) -> str:
        return (
            f"ScanStats(processed={self.files_processed}, "
            f"failed={self.files_failed}, resources={self.resources_found}, "
            f"duplicates={self.duplicates})"
        )


@dataclass
class _Declaration:
    """Intermediate view of one declaration, shared by both forms."""

    identifier: str
    alias: str
    kind: ResourceKind
    line: int
    fields: Dict[str, Node]
    dependency_roots: List[Node]
    annotation_roots: List[Node]
    docstring: str = ""


# ---------------------------------------------------------------------------
# Metadata extraction
# ---------------------------------------------------------------------------


def _call_fields(value: Any) -> Dict[str, Any]:
    """Merge positional and keyword arguments of a helper constructor call."""
    if isinstance(value, dict):
        return dict(value)
    if not isinstance(value, CallLiteral):
        return {}
    merged: Dict[str, Any] = {}
    order = POSITIONAL_FIELDS.get(value.type_name, ())
    for name, arg in zip(order, value.args):
        merged[name] = arg
    merged.update(value.kwargs)
    return merged


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _string_list(value: Any) -> List[str]:
    return [v for v in _as_list(value) if isinstance(v, str)]


def normalize_property_type(value: Any) -> str:
    """Resolve a type constant (``STRING``, ``PropertyType.INT``, ``"INTEGER"``)."""
    raw = symbol_name(value)
    if raw is None:
        return DEFAULT_PROPERTY_TYPE
    resolved = PROPERTY_TYPE_ALIASES.get(raw) or PROPERTY_TYPE_ALIASES.get(raw.upper())
    if resolved is None:
        logger.debug("Unknown property type %r; defaulting to %s", raw, DEFAULT_PROPERTY_TYPE)
        return DEFAULT_PROPERTY_TYPE
    return resolved


def _normalize_enum_name(value: Any, aliases: Dict[str, str]) -> str:
    """Resolve a constraint/index type; unknown names are kept verbatim."""
    raw = symbol_name(value)
    if raw is None:
        return ""
    key = raw.upper()
    return aliases.get(key, key)


def extract_properties(value: Any) -> List[PropertyInfo]:
    properties: List[PropertyInfo] = []
    for element in _as_list(value):
        data = _call_fields(element)
        name = data.get("name")
        if not isinstance(name, str) or not name:
            continue
        description = data.get("description")
        properties.append(PropertyInfo(
            name=name,
            type=normalize_property_type(data.get("type")),
            required=data.get("required") is True,
            unique=data.get("unique") is True,
            description=description if isinstance(description, str) else "",
        ))
    return properties


def extract_constraints(value: Any) -> List[ConstraintInfo]:
    constraints: List[ConstraintInfo] = []
    for element in _as_list(value):
        data = _call_fields(element)
        if not data:
            continue
        name = data.get("name")
        constraints.append(ConstraintInfo(
            type=_normalize_enum_name(data.get("type", "UNIQUE"), CONSTRAINT_TYPE_ALIASES),
            properties=_string_list(data.get("properties")),
            name=name if isinstance(name, str) else "",
        ))
    return constraints


def extract_indexes(value: Any) -> List[IndexInfo]:
    indexes: List[IndexInfo] = []
    for element in _as_list(value):
        data = _call_fields(element)
        if not data:
            continue
        name = data.get("name")
        options = data.get("options")
        indexes.append(IndexInfo(
            type=_normalize_enum_name(data.get("type", "BTREE"), INDEX_TYPE_ALIASES),
            properties=_string_list(data.get("properties")),
            options=options if isinstance(options, dict) else {},
            name=name if isinstance(name, str) else "",
        ))
    return indexes


def _label_value(value: Any) -> str:
    """A source/target endpoint: a label string or a class reference."""
    if isinstance(value, str):
        return value
    if isinstance(value, SymbolRef):
        return value.name
    return ""


def _module_name(file_path: str) -> str:
    base, _ = os.path.splitext(os.path.basename(file_path))
    if base == "__init__":
        return os.path.basename(os.path.dirname(os.path.abspath(file_path)))
    return base


def _build_resource(decl: _Declaration, file_path: str, source_bytes: bytes) -> DiscoveredResource:
    attributes = {k: literal_value(v, source_bytes) for k, v in decl.fields.items()}

    name = ""
    for field_name in NAME_FIELDS:
        candidate = attributes.get(field_name)
        if isinstance(candidate, str) and candidate:
            name = candidate
            break
    if not name:
        name = decl.identifier

    resource = DiscoveredResource(
        name=name,
        kind=decl.kind,
        file=file_path,
        line=decl.line,
        package=_module_name(file_path),
        declared_as=decl.identifier,
        type_name=decl.alias,
        attributes=attributes,
    )

    resource.properties = extract_properties(attributes.get(PROPERTIES_FIELD))
    resource.constraints = extract_constraints(attributes.get(CONSTRAINTS_FIELD))
    resource.indexes = extract_indexes(attributes.get(INDEXES_FIELD))
    if decl.kind == ResourceKind.RELATIONSHIP_TYPE:
        resource.source = _label_value(attributes.get(SOURCE_FIELD))
        resource.target = _label_value(attributes.get(TARGET_FIELD))

    agent_context = attributes.get(AGENT_CONTEXT_FIELD)
    if isinstance(agent_context, str):
        resource.agent_context = agent_context
    description = attributes.get(DESCRIPTION_FIELD)
    if isinstance(description, str):
        resource.description = description
    elif decl.docstring:
        resource.description = decl.docstring

    exclude = {decl.identifier, name}
    dependencies = collect_dependencies(decl.annotation_roots, source_bytes, exclude, in_annotation=True)
    for dep in collect_dependencies(decl.dependency_roots, source_bytes, exclude):
        if dep not in dependencies:
            dependencies.append(dep)
    resource.dependencies = dependencies
    return resource


# ---------------------------------------------------------------------------
# Declaration recognition
# ---------------------------------------------------------------------------


def _class_declaration(node: Node, source_bytes: bytes) -> Optional[_Declaration]:
    """Recognise ``class X(<alias>): ...``."""
    name_node = node.child_by_field_name("name")
    bases = node.child_by_field_name("superclasses")
    if name_node is None or bases is None:
        return None

    alias: Optional[str] = None
    kind: Optional[ResourceKind] = None
    other_bases: List[Node] = []
    for base in named_children(bases):
        if base.type == "keyword_argument":
            continue
        base_alias, base_kind = resolve_node_kind(base, source_bytes)
        if base_kind is not None and kind is None:
            alias, kind = base_alias, base_kind
        else:
            other_bases.append(base)
    if kind is None or alias is None:
        return None

    fields: Dict[str, Node] = {}
    annotations: List[Node] = []
    values: List[Node] = []
    docstring = ""
    body = node.child_by_field_name("body")
    statements = named_children(body) if body is not None else []
    for index, stmt in enumerate(statements):
        if stmt.type != EXPRESSION_STATEMENT:
            continue
        for expr in named_children(stmt):
            if index == 0 and expr.type in ("string", "concatenated_string"):
                docstring = (string_value(expr, source_bytes) or "").strip()
                continue
            if expr.type != ASSIGNMENT:
                continue
            left = expr.child_by_field_name("left")
            annotation = expr.child_by_field_name("type")
            right = expr.child_by_field_name("right")
            if annotation is not None:
                annotations.append(annotation)
            if right is not None:
                values.append(right)
                if left is not None and left.type == IDENTIFIER:
                    fields[node_text(left, source_bytes)] = right

    return _Declaration(
        identifier=node_text(name_node, source_bytes),
        alias=alias,
        kind=kind,
        line=node.start_point[0] + 1,
        fields=fields,
        dependency_roots=other_bases + values,
        annotation_roots=annotations,
        docstring=docstring,
    )


def _assignment_targets(assignment: Node, source_bytes: bytes) -> List[Tuple[str, Node]]:
    """Pair assigned identifiers with their value expressions.

    Handles ``x = V``, ``x: T = V``, ``x = y = V`` and ``a, b = V1, V2``.
    """
    left = assignment.child_by_field_name("left")
    right = assignment.child_by_field_name("right")
    if left is None or right is None:
        return []
    while right.type == ASSIGNMENT:
        right = right.child_by_field_name("right")
        if right is None:
            return []

    if left.type == IDENTIFIER:
        return [(node_text(left, source_bytes), right)]

    if left.type in ("pattern_list", "tuple_pattern", "list_pattern"):
        right = unwrap(right)
        if right.type not in ("expression_list", "tuple", "list"):
            return []
        names = named_children(left)
        values = named_children(right)
        if len(names) != len(values):
            return []
        return [
            (node_text(n, source_bytes), v)
            for n, v in zip(names, values)
            if n.type == IDENTIFIER
        ]
    return []


def _literal_declarations(stmt: Node, source_bytes: bytes) -> Iterator[_Declaration]:
    """Recognise module-level ``x = <Alias>(...)`` constructions."""
    for expr in named_children(stmt):
        if expr.type != ASSIGNMENT:
            continue
        for identifier, value in _assignment_targets(expr, source_bytes):
            value = unwrap(value)
            if value.type != CALL:
                continue
            function = value.child_by_field_name("function")
            if function is None:
                continue
            alias, kind = resolve_node_kind(function, source_bytes)
            if kind is None or alias is None:
                continue
            _, keywords = call_arguments(value, source_bytes)
            arguments = value.child_by_field_name("arguments")
            yield _Declaration(
                identifier=identifier,
                alias=alias,
                kind=kind,
                line=stmt.start_point[0] + 1,
                fields=keywords,
                dependency_roots=[arguments] if arguments is not None else [],
                annotation_roots=[],
            )


def _iter_statements(node: Node) -> Iterator[Node]:
    """Module-level statements, descending into if/try/with blocks."""
    for child in named_children(node):
        if child.type in CONTAINER_STATEMENTS:
            yield from _iter_statements(child)
        else:
            yield child


def scan_source(source_bytes: bytes, file_path: str = "<memory>") -> List[DiscoveredResource]:
    """Discover resources declared in Python source.

    Args:
        source_bytes: UTF-8 encoded module source.
        file_path: Path used for diagnostics and resource locations.

    Returns:
        Resources in declaration order.

    Raises:
        ScanError: If the source contains syntax errors.
    """
    tree = parse_checked(source_bytes, file_path)
    resources: List[DiscoveredResource] = []

    for stmt in _iter_statements(tree.root_node):
        if stmt.type == DECORATED_DEFINITION:
            stmt = stmt.child_by_field_name("definition") or stmt
        if stmt.type == CLASS_DEFINITION:
            decl = _class_declaration(stmt, source_bytes)
            if decl is not None:
                resources.append(_build_resource(decl, file_path, source_bytes))
        elif stmt.type == EXPRESSION_STATEMENT:
            for decl in _literal_declarations(stmt, source_bytes):
                resources.append(_build_resource(decl, file_path, source_bytes))

    for resource in resources:
        logger.debug(
            "Discovered %s %s (%s) at %s",
            resource.kind.value, resource.name, resource.declared_as, resource.location,
        )
    return resources


def find_duplicates(resources: Iterable[DiscoveredResource]) -> List[Tuple[DiscoveredResource, DiscoveredResource]]:
    """Return ``(first, later)`` pairs sharing a ``(kind, name)`` identity.

    Each duplicate is logged as a warning; the later declaration wins wherever
    resources are keyed by identity.
    """
    seen: Dict[tuple, DiscoveredResource] = {}
    duplicates: List[Tuple[DiscoveredResource, DiscoveredResource]] = []
    for resource in resources:
        first = seen.get(resource.key)
        if first is not None:
            logger.warning(
                "Duplicate %s %r declared at %s and %s; the later declaration wins",
                resource.kind.value, resource.name, first.location, resource.location,
            )
            duplicates.append((first, resource))
        seen[resource.key] = resource
    return duplicates


def scan_file(file_path: str) -> List[DiscoveredResource]:
    """Discover resources in a single declaration module.

    Raises:
        FileNotFoundError: If the file does not exist.
        UsageError: If the file is not a Python source file.
        ScanError: If the file contains syntax errors.
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")
    ext = os.path.splitext(file_path)[1]
    if ext not in SOURCE_EXTENSIONS:
        raise UsageError(
            f"File {file_path} is not a declaration module. "
            f"Expected one of: {sorted(SOURCE_EXTENSIONS)}"
        )
    with open(file_path, "rb") as f:
        source_bytes = f.read()
    resources = scan_source(source_bytes, file_path)
    find_duplicates(resources)
    return resources


def is_test_file(filename: str) -> bool:
    if filename in TEST_FILE_NAMES:
        return True
    return filename.startswith(TEST_FILE_PREFIXES) or filename.endswith(TEST_FILE_SUFFIXES)


def discover_source_files(directory: str, exclude_dirs: Iterable[str] = ()) -> List[str]:
    """Depth-first listing of declaration modules under ``directory``.

    Skips hidden, vendored, virtualenv and cache directories as well as
    test modules. Directory entries are visited in sorted order.

    Example:
        >>> files = discover_source_files("schema/")
        >>> files[0]
        'schema/nodes.py'
    """
    skip = SKIP_DIRS | frozenset(exclude_dirs)
    found: List[str] = []
    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(
            d for d in dirs
            if not d.startswith(".") and d not in skip
        )
        for filename in sorted(files):
            if os.path.splitext(filename)[1] not in SOURCE_EXTENSIONS:
                continue
            if is_test_file(filename):
                continue
            found.append(os.path.join(root, filename))
    return found


def scan_directory(
    directory: str,
    exclude_dirs: Iterable[str] = (),
    continue_on_error: bool = True,
) -> Tuple[List[DiscoveredResource], ScanStats]:
    """Discover resources in every declaration module under ``directory``.

    Args:
        directory: Root directory to scan.
        exclude_dirs: Extra directory names to skip.
        continue_on_error: If True, a malformed file is logged and skipped.
            If False, the first failure is raised.

    Returns:
        A tuple of (resources, stats).

    Raises:
        FileNotFoundError: If directory does not exist.
    """
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Directory not found: {directory}")

    stats = ScanStats()
    resources: List[DiscoveredResource] = []

    files = discover_source_files(directory, exclude_dirs)
    if not files:
        logger.warning("No declaration modules found in %s", directory)
        return resources, stats

    logger.info("Scanning %d declaration modules in %s", len(files), directory)
    for file_path in files:
        try:
            with open(file_path, "rb") as f:
                source_bytes = f.read()
            found = scan_source(source_bytes, file_path)
        except ScanError as e:
            logger.warning("Skipping %s: %s", file_path, e)
            stats.files_failed += 1
            if not continue_on_error:
                raise
            continue
        except OSError as e:
            logger.warning("Could not read %s: %s", file_path, e)
            stats.files_failed += 1
            if not continue_on_error:
                raise
            continue
        resources.extend(found)
        stats.files_processed += 1
        stats.resources_found += len(found)

    stats.duplicates = len(find_duplicates(resources))
    logger.info("Scan complete: %s", stats)
    return resources, stats


def scan_path(path: str, exclude_dirs: Iterable[str] = ()) -> List[DiscoveredResource]:
    """Scan a file or a directory.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    if os.path.isdir(path):
        resources, _ = scan_directory(path, exclude_dirs=exclude_dirs)
        return resources
    if os.path.isfile(path):
        return scan_file(path)
    raise FileNotFoundError(f"Path not found: {path}")
