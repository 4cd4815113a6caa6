"""
Cypher generation for Graph Data Science declarations.

Algorithms become ``CALL gds.<procedure>.<mode>(...)`` statements, pipelines
become a create/addNodeProperty/addModel/configureSplit/train sequence, and
projections become ``gds.graph.project`` calls.
"""

import logging
from enum import Enum
from typing import Any, Dict, List

from core.errors import UnsupportedConstructError
from graphschema.algorithms import Algorithm, Category, Mode
from graphschema.pipelines import Pipeline
from graphschema.projections import (
    CypherProjection,
    DataFrameProjection,
    NativeProjection,
    NodeProjection,
    Projection,
    RelationshipProjection,
)

logger = logging.getLogger(__name__)

DEFAULT_TEST_FRACTION = 0.2
DEFAULT_VALIDATION_FOLDS = 5
DEFAULT_GRAPH_NAME = "graph"

_MODE_YIELDS: Dict[Mode, str] = {
    Mode.STATS: "nodeCount, relationshipCount, computeMillis",
    Mode.WRITE: "nodePropertiesWritten, computeMillis",
    Mode.MUTATE: "nodePropertiesWritten, computeMillis",
}

_STREAM_YIELDS: Dict[Category, str] = {
    Category.CENTRALITY: "nodeId, score",
    Category.COMMUNITY: "nodeId, communityId",
    Category.SIMILARITY: "node1, node2, similarity",
    Category.EMBEDDINGS: "nodeId, embedding",
    Category.PATH_FINDING: "sourceNode, targetNode, path, totalCost",
}

PROJECTION_YIELD = "YIELD graphName, nodeCount, relationshipCount"


def format_value(value: Any) -> str:
    """Render a Python value as a Cypher literal.

    Example:
        >>> format_value(["Person", "Company"])
        "['Person', 'Company']"
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f"'{value}'"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{k}: {format_value(v)}" for k, v in value.items()) + "}"
    if value is None:
        return "null"
    return str(value)


def format_labels(labels: List[str]) -> str:
    """``'*'`` for none, ``'X'`` for one, a list literal otherwise."""
    if not labels:
        return "'*'"
    if len(labels) == 1:
        return f"'{labels[0]}'"
    return format_value(list(labels))


def escape_string(value: str) -> str:
    return value.replace("'", "\\'")


# ---------------------------------------------------------------------------
# Algorithms
# ---------------------------------------------------------------------------


def yield_fields(algorithm: Algorithm) -> str:
    mode = algorithm.effective_mode()
    if mode in _MODE_YIELDS:
        return _MODE_YIELDS[mode]
    return _STREAM_YIELDS.get(algorithm.category, "*")


def algorithm_to_cypher(algorithm: Algorithm) -> str:
    """Render an algorithm as a procedure call.

    Raises:
        UnsupportedConstructError: If the algorithm has no procedure.
    """
    if not algorithm.procedure:
        raise UnsupportedConstructError(f"algorithm {algorithm.name!r} has no GDS procedure")
    procedure = f"{algorithm.procedure}.{algorithm.effective_mode().value}"
    config = algorithm.config()
    body = f"CALL {procedure}(\n  '{algorithm.graph_name}'"
    if config:
        lines = ",\n".join(f"    {k}: {format_value(v)}" for k, v in config.items())
        body += f",\n  {{\n{lines}\n  }}"
    return f"{body}\n)\nYIELD {yield_fields(algorithm)}"


def algorithms_to_cypher(algorithms: List[Algorithm]) -> str:
    statements = [
        f"// {a.name} - {a.algorithm_type}\n{algorithm_to_cypher(a)}"
        for a in algorithms
    ]
    return "\n\n".join(statements)


# ---------------------------------------------------------------------------
# Pipelines
# ---------------------------------------------------------------------------


def _config_block(params: Dict[str, Any], leading: str = "") -> str:
    lines = [leading] if leading else []
    lines.extend(f"{k}: {format_value(v)}" for k, v in params.items())
    return "{\n    " + ",\n    ".join(lines) + "\n  }"


def pipeline_to_cypher(pipeline: Pipeline, graph_name: str = "", model_name: str = "") -> str:
    """Render the statements that create, configure and train a pipeline.

    Args:
        pipeline: Pipeline declaration.
        graph_name: Graph to train on; falls back to the pipeline's own
            ``graph_name`` and then to ``"graph"``.
        model_name: Trained model name; defaults to ``"<pipeline>-model"``.
    """
    prefix = pipeline.procedure_prefix
    name = pipeline.name
    graph = graph_name or pipeline.graph_name or DEFAULT_GRAPH_NAME
    model = model_name or pipeline.model_name or f"{name}-model"

    statements = [f"CALL {prefix}.create('{name}')"]

    for step in pipeline.feature_steps:
        block = _config_block(step.params(), leading=f"mutateProperty: '{step.property}'")
        statements.append(
            f"CALL {prefix}.addNodeProperty(\n  '{name}',\n  '{step.step_type}',\n  {block}\n)"
        )

    for candidate in pipeline.models:
        params = candidate.params()
        block = _config_block(params) if params else "{}"
        statements.append(
            f"CALL {prefix}.add{candidate.model_type}(\n  '{name}',\n  {block}\n)"
        )

    split = pipeline.split_config
    if split.test_fraction or split.validation_folds:
        test_fraction = split.test_fraction or DEFAULT_TEST_FRACTION
        folds = split.validation_folds or DEFAULT_VALIDATION_FOLDS
        statements.append(
            f"CALL {prefix}.configureSplit(\n  '{name}',\n  {{\n"
            f"    testFraction: {test_fraction},\n    validationFolds: {folds}\n  }}\n)"
        )

    train = {"pipeline": name, "targetProperty": pipeline.target(), "modelName": model}
    train.update(pipeline.train_config())
    statements.append(
        f"CALL {prefix}.train(\n  '{graph}',\n  {_config_block(train)}\n) YIELD modelInfo\nRETURN modelInfo"
    )
    return ";\n\n".join(statements) + ";"


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


def _native_config(projection: Projection) -> str:
    if projection.read_concurrency > 0:
        return f"{{\n    readConcurrency: {projection.read_concurrency}\n  }}"
    return ""


def _cypher_config(projection: CypherProjection) -> str:
    parts = []
    if projection.read_concurrency > 0:
        parts.append(f"readConcurrency: {projection.read_concurrency}")
    if projection.validate_relationships:
        parts.append("validateRelationships: true")
    if projection.parameters:
        params = ",\n      ".join(f"{k}: {format_value(v)}" for k, v in projection.parameters.items())
        parts.append("parameters: {\n      " + params + "\n    }")
    if not parts:
        return ""
    return "{\n    " + ",\n    ".join(parts) + "\n  }"


def format_node_projections(projections: List[NodeProjection]) -> str:
    if not projections:
        return "'*'"
    if len(projections) == 1 and not projections[0].properties:
        return f"'{projections[0].label}'"
    parts = []
    for np in projections:
        if np.properties:
            parts.append(
                f"{np.label}: {{\n      label: '{np.label}',\n"
                f"      properties: {format_labels(np.properties)}\n    }}"
            )
        else:
            parts.append(f"{np.label}: {{label: '{np.label}'}}")
    return "{\n    " + ",\n    ".join(parts) + "\n  }"


def format_relationship_projections(projections: List[RelationshipProjection]) -> str:
    if not projections:
        return "'*'"
    first = projections[0]
    if len(projections) == 1 and not first.properties and not first.orientation:
        return f"'{first.type}'"
    parts = []
    for rp in projections:
        config = [f"type: '{rp.type}'"]
        if rp.orientation:
            config.append(f"orientation: {format_value(rp.orientation)}")
        if rp.aggregation:
            config.append(f"aggregation: {format_value(rp.aggregation)}")
        if rp.properties:
            config.append(f"properties: {format_labels(rp.properties)}")
        parts.append(f"{rp.type}: {{\n      " + ",\n      ".join(config) + "\n    }")
    return "{\n    " + ",\n    ".join(parts) + "\n  }"


def _project_call(procedure: str, graph_name: str, args: List[str], config: str) -> str:
    lines = [f"  '{graph_name}'"] + [f"  {a}" for a in args]
    if config:
        lines.append(f"  {config}")
    return f"CALL {procedure}(\n" + ",\n".join(lines) + f"\n)\n{PROJECTION_YIELD}"


def projection_to_cypher(projection: Projection) -> str:
    """Render a projection declaration.

    Raises:
        UnsupportedConstructError: For projection classes with no template.
    """
    if isinstance(projection, NativeProjection):
        if projection.is_simple():
            args = [format_labels(projection.node_labels), format_labels(projection.relationship_types)]
        else:
            args = [
                format_node_projections(projection.node_projections()),
                format_relationship_projections(projection.relationship_projections()),
            ]
        return _project_call("gds.graph.project", projection.graph_name, args, _native_config(projection))
    if isinstance(projection, CypherProjection):
        args = [
            f"'{escape_string(projection.node_query)}'",
            f"'{escape_string(projection.relationship_query)}'",
        ]
        return _project_call("gds.graph.project.cypher", projection.graph_name, args, _cypher_config(projection))
    if isinstance(projection, DataFrameProjection):
        return (
            f"// DataFrame projection '{projection.name}' - use with GDS Python client\n"
            f"// gds.graph.construct(\n"
            f"//   '{projection.graph_name}',\n"
            f"//   nodes_df,\n"
            f"//   relationships_df\n"
            f"// )"
        )
    raise UnsupportedConstructError(f"unknown projection type: {type(projection).__name__}")


def drop_graph(graph_name: str) -> str:
    return f"CALL gds.graph.drop('{graph_name}') YIELD graphName"


def graph_exists(graph_name: str) -> str:
    return f"RETURN gds.graph.exists('{graph_name}') AS exists"


def list_graphs() -> str:
    return "CALL gds.graph.list() YIELD graphName, nodeCount, relationshipCount"
