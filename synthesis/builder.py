"""
Build orchestration: scan, order, convert, render, write.

Discovered resources carry statically evaluated attributes; this module turns
them into ``graphschema`` model objects without importing the declaration
modules, then renders the models as Cypher or as the JSON document.

Example:
    >>> text = build("schema/", output="schema.cypher")
"""

import importlib.util
import inspect
import logging
import os
from dataclasses import fields, is_dataclass
from typing import Any, Dict, Iterable, List, Optional

import graphschema
from core.errors import UnsupportedConstructError, UsageError
from discovery.config import POSITIONAL_FIELDS
from discovery.graph import DependencyGraph
from discovery.models import CallLiteral, DiscoveredResource, ResourceKind, SymbolRef
from discovery.scanner import discover_source_files, scan_path
from graphschema.algorithms import ALGORITHM_CLASSES, Algorithm
from graphschema.kg import KG_PART_CLASSES, KG_PIPELINE_CLASSES, KGPipeline
from graphschema.pipelines import PIPELINE_CLASSES, PIPELINE_PART_CLASSES, Pipeline
from graphschema.projections import PROJECTION_CLASSES, Projection
from graphschema.retrievers import RETRIEVER_CLASSES, RETRIEVER_PART_CLASSES, Retriever
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
from synthesis.cypher import render_all
from synthesis.document import render_document
from synthesis.gds import algorithm_to_cypher, pipeline_to_cypher, projection_to_cypher

logger = logging.getLogger(__name__)

FORMAT_CYPHER = "cypher"
FORMAT_JSON = "json"
SUPPORTED_FORMATS = (FORMAT_CYPHER, FORMAT_JSON)

FORMAT_EXTENSIONS: Dict[str, str] = {
    ".json": FORMAT_JSON,
    ".cypher": FORMAT_CYPHER,
    ".cql": FORMAT_CYPHER,
}

SCHEMA_SECTION_HEADER = "// Schema Constraints and Indexes"

# Every constructor a nested declaration literal may name.
_PART_CLASSES: Dict[str, type] = {
    "Property": Property,
    "Constraint": Constraint,
    "Index": Index,
    **PIPELINE_PART_CLASSES,
    **RETRIEVER_PART_CLASSES,
    **KG_PART_CLASSES,
    **PROJECTION_CLASSES,
}

_MODEL_CLASSES: Dict[ResourceKind, Dict[str, type]] = {
    ResourceKind.ALGORITHM: ALGORITHM_CLASSES,
    ResourceKind.PIPELINE: PIPELINE_CLASSES,
    ResourceKind.RETRIEVER: RETRIEVER_CLASSES,
}

# Declaration base classes collected by load_declarations().
DECLARATION_TYPES = (
    NodeType, RelationshipType, Schema, Algorithm, Pipeline, Projection, Retriever, KGPipeline,
)


def detect_format(output: Optional[str]) -> str:
    """Output format implied by the output file's extension (default cypher)."""
    if not output:
        return FORMAT_CYPHER
    ext = os.path.splitext(output)[1].lower()
    return FORMAT_EXTENSIONS.get(ext, FORMAT_CYPHER)


def check_format(fmt: str) -> str:
    if fmt not in SUPPORTED_FORMATS:
        raise UsageError(f"unsupported format: {fmt} (supported: {', '.join(SUPPORTED_FORMATS)})")
    return fmt


# ---------------------------------------------------------------------------
# Discovered resource -> model conversion
# ---------------------------------------------------------------------------


def _resolve_symbol(ref: SymbolRef, symbols: Dict[str, Any]) -> Any:
    """Resolve a name against declared resources, then the graphschema namespace."""
    if ref.qualified in symbols:
        return symbols[ref.qualified]
    if ref.name in symbols:
        return symbols[ref.name]
    target: Any = graphschema
    for part in (ref.qualified or ref.name).split("."):
        target = getattr(target, part, None)
        if target is None:
            break
    if target is not None and target is not graphschema:
        return target
    resolved = getattr(graphschema, ref.name, None)
    if resolved is None:
        logger.debug("Unresolved reference %s", ref.qualified or ref.name)
    return resolved


def _coerce(value: Any, symbols: Dict[str, Any]) -> Any:
    if isinstance(value, SymbolRef):
        return _resolve_symbol(value, symbols)
    if isinstance(value, CallLiteral):
        cls = _PART_CLASSES.get(value.type_name)
        if cls is None:
            logger.debug("No model class for nested call %s(...)", value.type_name)
            return None
        return instantiate(cls, value.kwargs, symbols, args=value.args)
    if isinstance(value, list):
        return [v for v in (_coerce(item, symbols) for item in value) if v is not None]
    if isinstance(value, dict):
        return {k: _coerce(v, symbols) for k, v in value.items()}
    return value


def instantiate(cls: type, kwargs: Dict[str, Any], symbols: Optional[Dict[str, Any]] = None,
                args: tuple = ()) -> Any:
    """Construct a declaration dataclass from statically evaluated arguments.

    Keywords that are not fields of ``cls`` are dropped with a debug log;
    values that evaluate to None are left at the field default.
    """
    symbols = symbols or {}
    init_fields = [f.name for f in fields(cls) if f.init]
    order = POSITIONAL_FIELDS.get(cls.__name__, tuple(init_fields))
    merged: Dict[str, Any] = dict(zip(order, args))
    merged.update(kwargs)

    accepted: Dict[str, Any] = {}
    for key, raw in merged.items():
        if key not in init_fields:
            logger.debug("%s: ignoring unknown field %r", cls.__name__, key)
            continue
        value = _coerce(raw, symbols)
        if value is not None:
            accepted[key] = value
    return cls(**accepted)


def _constraint_type(value: str, resource: DiscoveredResource) -> ConstraintType:
    try:
        return ConstraintType(value)
    except ValueError:
        raise UnsupportedConstructError(
            f"{resource.location}: unsupported constraint type {value!r} on {resource.name}"
        ) from None


def _index_type(value: str, resource: DiscoveredResource) -> IndexType:
    try:
        return IndexType(value)
    except ValueError:
        raise UnsupportedConstructError(
            f"{resource.location}: unsupported index type {value!r} on {resource.name}"
        ) from None


def _properties(resource: DiscoveredResource) -> List[Property]:
    return [
        Property(
            name=p.name,
            type=PropertyType(p.type),
            required=p.required,
            unique=p.unique,
            description=p.description,
        )
        for p in resource.properties
    ]


def _constraints(resource: DiscoveredResource) -> List[Constraint]:
    return [
        Constraint(type=_constraint_type(c.type, resource), properties=list(c.properties), name=c.name)
        for c in resource.constraints
    ]


def _cardinality(value: Any) -> Optional[Cardinality]:
    name = value.name if isinstance(value, SymbolRef) else value
    if isinstance(name, str):
        try:
            return Cardinality(name.upper())
        except ValueError:
            logger.debug("Unknown cardinality %r", name)
    return None


def resource_to_model(resource: DiscoveredResource, symbols: Optional[Dict[str, Any]] = None) -> Any:
    """Convert one discovered resource into its ``graphschema`` model object.

    Raises:
        UnsupportedConstructError: For unknown constraint or index types.
    """
    symbols = symbols or {}
    kind = resource.kind

    if kind == ResourceKind.NODE_TYPE:
        return NodeType(
            label=resource.name,
            properties=_properties(resource),
            constraints=_constraints(resource),
            indexes=[
                Index(
                    type=_index_type(i.type, resource),
                    properties=list(i.properties),
                    name=i.name,
                    options=dict(i.options),
                )
                for i in resource.indexes
            ],
            description=resource.description,
        )

    if kind == ResourceKind.RELATIONSHIP_TYPE:
        return RelationshipType(
            label=resource.name,
            source=resource.source,
            target=resource.target,
            cardinality=_cardinality(resource.attributes.get("cardinality")),
            properties=_properties(resource),
            constraints=_constraints(resource),
            description=resource.description,
        )

    if kind == ResourceKind.SCHEMA:
        attrs = resource.attributes
        nodes = _coerce(attrs.get("nodes") or [], symbols)
        relationships = _coerce(attrs.get("relationships") or [], symbols)
        return Schema(
            name=resource.name,
            nodes=[n for n in nodes if isinstance(n, NodeType)],
            relationships=[r for r in relationships if isinstance(r, RelationshipType)],
            agent_context=resource.agent_context,
            description=resource.description,
        )

    cls = _MODEL_CLASSES.get(kind, {}).get(resource.type_name)
    if cls is None:
        raise UnsupportedConstructError(
            f"{resource.location}: no model class for {kind.value} {resource.type_name!r}"
        )
    kwargs = dict(resource.attributes)
    kwargs["name"] = resource.name
    return instantiate(cls, kwargs, symbols)


def resources_to_models(resources: Iterable[DiscoveredResource]) -> List[Any]:
    """Convert resources in order.

    Schema wrappers are converted last so their member references resolve
    to the models built for the other declarations.
    """
    resources = list(resources)
    symbols: Dict[str, Any] = {}
    models: List[Any] = [None] * len(resources)
    wrappers: List[int] = []
    for index, resource in enumerate(resources):
        if resource.kind == ResourceKind.SCHEMA:
            wrappers.append(index)
            continue
        models[index] = resource_to_model(resource, symbols)
        if resource.declared_as:
            symbols[resource.declared_as] = models[index]
    for index in wrappers:
        models[index] = resource_to_model(resources[index], symbols)
    return models


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def flatten_declarations(declarations: Iterable[Any]) -> List[Any]:
    """Declarations plus node/relationship types held only by schema wrappers."""
    result: List[Any] = []
    seen = set()
    for declaration in declarations:
        members = [declaration]
        if isinstance(declaration, Schema):
            members.extend(declaration.nodes)
            members.extend(declaration.relationships)
        for member in members:
            if id(member) not in seen:
                seen.add(id(member))
                result.append(member)
    return result


def _render_cypher(declarations: List[Any]) -> str:
    nodes = [d for d in declarations if isinstance(d, NodeType)]
    relationships = [d for d in declarations if isinstance(d, RelationshipType)]

    sections: List[str] = []
    schema_cypher = render_all(nodes, relationships)
    if schema_cypher:
        sections.append(f"{SCHEMA_SECTION_HEADER}\n{schema_cypher}")
    sections.extend(algorithm_to_cypher(d) for d in declarations if isinstance(d, Algorithm))
    sections.extend(pipeline_to_cypher(d) for d in declarations if isinstance(d, Pipeline))
    sections.extend(projection_to_cypher(d) for d in declarations if isinstance(d, Projection))

    skipped = [d for d in declarations if isinstance(d, (Retriever, KGPipeline))]
    if skipped:
        logger.info("%d retriever/KG pipeline declarations have no Cypher form", len(skipped))
    return "\n\n".join(sections)


def render_models(declarations: Iterable[Any], fmt: str = FORMAT_CYPHER) -> str:
    """Render already constructed model objects.

    Raises:
        UsageError: If ``fmt`` is not a supported format.
        UnsupportedConstructError: If a declaration has no template.
    """
    check_format(fmt)
    flat = flatten_declarations(declarations)
    if fmt == FORMAT_JSON:
        return render_document(flat)
    return _render_cypher(flat)


def render(resources: Iterable[DiscoveredResource], fmt: str = FORMAT_CYPHER) -> str:
    """Render discovered resources in dependency order.

    Raises:
        UsageError: If ``fmt`` is not a supported format.
        CycleError: If the resources' dependencies contain a cycle.
        UnsupportedConstructError: For unknown constraint or index types.
    """
    check_format(fmt)
    ordered = DependencyGraph(resources).topological_sort()
    return render_models(resources_to_models(ordered), fmt)


def build(
    path: str,
    fmt: Optional[str] = None,
    output: Optional[str] = None,
    exclude_dirs: Iterable[str] = (),
) -> str:
    """Scan ``path``, render its resources and optionally write the result.

    Args:
        path: Declaration module or directory.
        fmt: ``cypher`` or ``json``; detected from ``output`` when omitted.
        output: File to write. Nothing is written when omitted.
        exclude_dirs: Extra directory names to skip while scanning.

    Returns:
        The rendered text.
    """
    fmt = check_format(fmt or detect_format(output))
    resources = scan_path(path, exclude_dirs=exclude_dirs)
    if not resources:
        logger.warning("No resources found in %s", path)
    else:
        logger.info("Rendering %d resources as %s", len(resources), fmt)

    text = render(resources, fmt)

    if output:
        parent = os.path.dirname(output)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
            if text and not text.endswith("\n"):
                f.write("\n")
        logger.info("Wrote %s output to %s", fmt, output)
    return text


# ---------------------------------------------------------------------------
# Runtime loading
# ---------------------------------------------------------------------------


def _module_declarations(module: Any) -> List[Any]:
    found: List[Any] = []
    for value in list(vars(module).values()):
        if isinstance(value, DECLARATION_TYPES):
            found.append(value)
        elif (
            inspect.isclass(value)
            and issubclass(value, DECLARATION_TYPES)
            and value.__module__ == module.__name__
            and is_dataclass(value)
        ):
            found.append(value())
    return found


def load_declarations(path: str) -> List[Any]:
    """Import declaration modules and collect their model instances.

    Unlike scanning, this executes the modules; use it for declarations that
    cannot be evaluated statically (projections, KG pipelines, computed
    values).

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        UsageError: If a module cannot be imported.
    """
    if os.path.isdir(path):
        files = discover_source_files(path)
    elif os.path.isfile(path):
        files = [path]
    else:
        raise FileNotFoundError(f"Path not found: {path}")

    declarations: List[Any] = []
    for index, file_path in enumerate(files):
        module_name = f"_graphschema_decl_{index}_{os.path.splitext(os.path.basename(file_path))[0]}"
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise UsageError(f"Cannot import {file_path}")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise UsageError(f"Failed to import {file_path}: {e}") from e
        found = _module_declarations(module)
        logger.debug("Loaded %d declarations from %s", len(found), file_path)
        declarations.extend(found)
    return declarations
