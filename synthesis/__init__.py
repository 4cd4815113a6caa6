"""
Synthesis: Cypher statements and JSON documents from schema declarations.
"""

from synthesis.cypher import (
    node_type_to_cypher,
    relationship_type_to_cypher,
    render_all,
)
from synthesis.document import build_document, render_document
from synthesis.gds import algorithm_to_cypher, pipeline_to_cypher, projection_to_cypher
from synthesis.builder import (
    build,
    detect_format,
    load_declarations,
    render,
    render_models,
    resources_to_models,
)
from synthesis.lint import format_issues, has_errors, lint_models
from synthesis.reports import format_dependencies, list_resources, render_graph

__all__ = [
    # Cypher templates
    "node_type_to_cypher",
    "relationship_type_to_cypher",
    "render_all",
    # JSON document
    "build_document",
    "render_document",
    # GDS
    "algorithm_to_cypher",
    "pipeline_to_cypher",
    "projection_to_cypher",
    # Orchestration
    "build",
    "detect_format",
    "load_declarations",
    "render",
    "render_models",
    "resources_to_models",
    # Lint
    "format_issues",
    "has_errors",
    "lint_models",
    # Reports
    "format_dependencies",
    "list_resources",
    "render_graph",
]
