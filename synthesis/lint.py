"""
Static checks over built declaration models.

Rules carry a ``WN4xxx`` code:

- WN4001-WN4007: GDS algorithm settings (damping factor, iterations,
  tolerance, embedding dimension, top-k)
- WN4030-WN4032: ML pipelines (split fractions, model candidates)
- WN4040-WN4043: knowledge-graph pipelines (entity types, resolver threshold)
- WN4050-WN4056: node and relationship types (labels, naming, endpoints,
  property and constraint references)

Errors describe declarations that would fail or misbehave once applied;
warnings flag settings worth reviewing.

Example:
    >>> issues = lint_models(resources_to_models(resources))
    >>> has_errors(issues)
    False
"""

import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Set

from graphschema.algorithms import KNN, Algorithm, ArticleRank, FastRP, Node2Vec, NodeSimilarity, PageRank
from graphschema.kg import FuzzyMatchResolver, KGPipeline, SemanticMatchResolver, SimpleKGPipeline
from graphschema.pipelines import Pipeline
from graphschema.schema import Cardinality, NodeType, PropertyType, RelationshipType
from synthesis.builder import flatten_declarations

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"

PASCAL_CASE_RE = re.compile(r"^[A-Z][a-zA-Z0-9]*[a-z][a-zA-Z0-9]*$")
SCREAMING_SNAKE_RE = re.compile(r"^[A-Z][A-Z0-9]*(_[A-Z0-9]+)*$")

MAX_TOLERANCE = 1e-5
MAX_TOP_K = 1000
MIN_RESOLVER_THRESHOLD = 0.8

_PROPERTY_TYPES = {t.value for t in PropertyType}
_CARDINALITIES = {c.value for c in Cardinality}


@dataclass
class LintIssue:
    """One finding: rule code, severity, message and where it applies."""

    rule: str
    severity: str
    message: str
    location: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return f"[{self.rule}] {self.severity}: {self.message} ({self.location})"


def _where(declaration: Any, attribute: str) -> str:
    name = getattr(declaration, "name", "") or getattr(declaration, "label", "")
    return f"{type(declaration).__name__}({name}).{attribute}"


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


# ---------------------------------------------------------------------------
# GDS algorithms
# ---------------------------------------------------------------------------


def lint_algorithm(algo: Algorithm) -> List[LintIssue]:
    issues: List[LintIssue] = []

    if isinstance(algo, (PageRank, ArticleRank)):
        if not 0 <= algo.damping_factor < 1:
            issues.append(LintIssue(
                "WN4001", ERROR, f"dampingFactor must be in [0, 1), got {algo.damping_factor}",
                _where(algo, "damping_factor"),
            ))
        if algo.max_iterations < 0:
            issues.append(LintIssue(
                "WN4002", ERROR, f"maxIterations must be positive, got {algo.max_iterations}",
                _where(algo, "max_iterations"),
            ))
    if isinstance(algo, PageRank) and algo.tolerance > MAX_TOLERANCE:
        issues.append(LintIssue(
            "WN4005", WARNING, f"tolerance {algo.tolerance} may be too loose for convergence",
            _where(algo, "tolerance"),
        ))

    if isinstance(algo, (FastRP, Node2Vec)):
        if algo.embedding_dimension > 0 and not is_power_of_two(algo.embedding_dimension):
            issues.append(LintIssue(
                "WN4006", WARNING, f"embeddingDimension {algo.embedding_dimension} is not a power of 2",
                _where(algo, "embedding_dimension"),
            ))

    if isinstance(algo, (KNN, NodeSimilarity)) and algo.top_k > MAX_TOP_K:
        issues.append(LintIssue(
            "WN4007", WARNING, f"topK {algo.top_k} may cause performance issues",
            _where(algo, "top_k"),
        ))
    return issues


# ---------------------------------------------------------------------------
# Pipelines
# ---------------------------------------------------------------------------


def lint_pipeline(pipeline: Pipeline) -> List[LintIssue]:
    issues: List[LintIssue] = []
    fraction = pipeline.split_config.test_fraction
    if not 0 <= fraction < 1:
        issues.append(LintIssue(
            "WN4031", ERROR, f"testFraction must be in [0, 1), got {fraction}",
            _where(pipeline, "split_config.test_fraction"),
        ))
    if not pipeline.models:
        issues.append(LintIssue(
            "WN4032", ERROR, "pipeline must have at least one model candidate",
            _where(pipeline, "models"),
        ))
    return issues


def lint_kg_pipeline(pipeline: KGPipeline) -> List[LintIssue]:
    if not isinstance(pipeline, SimpleKGPipeline):
        return []
    issues: List[LintIssue] = []
    if not pipeline.entity_types:
        issues.append(LintIssue(
            "WN4040", ERROR, "pipeline must have at least one entity type",
            _where(pipeline, "entity_types"),
        ))
    resolver = pipeline.entity_resolver
    if isinstance(resolver, (FuzzyMatchResolver, SemanticMatchResolver)):
        if 0 < resolver.threshold < MIN_RESOLVER_THRESHOLD:
            kind = "fuzzy" if isinstance(resolver, FuzzyMatchResolver) else "semantic"
            issues.append(LintIssue(
                "WN4043", WARNING, f"{kind} match threshold {resolver.threshold} may be too low",
                _where(pipeline, "entity_resolver.threshold"),
            ))
    return issues


# ---------------------------------------------------------------------------
# Node and relationship types
# ---------------------------------------------------------------------------


def _value(member: Any) -> Any:
    return getattr(member, "value", member)


def _lint_members(declaration: Any) -> List[LintIssue]:
    """Property names and types, plus constraint/index references to them."""
    issues: List[LintIssue] = []
    seen: Set[str] = set()
    for i, prop in enumerate(declaration.properties):
        if not prop.name:
            issues.append(LintIssue(
                "WN4054", ERROR, "property name is required", _where(declaration, f"properties[{i}]"),
            ))
        elif prop.name in seen:
            issues.append(LintIssue(
                "WN4054", ERROR, f"duplicate property name: {prop.name}",
                _where(declaration, f"properties[{i}]"),
            ))
        seen.add(prop.name)
        if _value(prop.type) not in _PROPERTY_TYPES:
            issues.append(LintIssue(
                "WN4056", ERROR, f"invalid property type: {prop.type}",
                _where(declaration, f"properties[{i}].type"),
            ))

    for attribute, what in (("constraints", "constraint"), ("indexes", "index")):
        for position, item in enumerate(getattr(declaration, attribute, [])):
            for name in item.properties:
                if name not in seen:
                    issues.append(LintIssue(
                        "WN4055", ERROR, f"{what} references unknown property: {name}",
                        _where(declaration, f"{attribute}[{position}]"),
                    ))
    return issues


def lint_node_type(node: NodeType) -> List[LintIssue]:
    issues: List[LintIssue] = []
    if not node.label:
        issues.append(LintIssue("WN4050", ERROR, "label is required", _where(node, "label")))
    elif not PASCAL_CASE_RE.match(node.label):
        issues.append(LintIssue(
            "WN4052", WARNING, f"node label '{node.label}' should be PascalCase", _where(node, "label"),
        ))
    issues.extend(_lint_members(node))
    return issues


def lint_relationship_type(rel: RelationshipType, node_labels: Iterable[str] = ()) -> List[LintIssue]:
    """Check one relationship type.

    ``source`` and ``target`` are looked up in ``node_labels`` only when it
    is non-empty, so a relationship linted on its own is not flagged.
    """
    issues: List[LintIssue] = []
    if not rel.label:
        issues.append(LintIssue("WN4050", ERROR, "label is required", _where(rel, "label")))
    elif not SCREAMING_SNAKE_RE.match(rel.label):
        issues.append(LintIssue(
            "WN4053", WARNING, f"relationship type '{rel.label}' should be SCREAMING_SNAKE_CASE",
            _where(rel, "label"),
        ))

    known = set(node_labels)
    for end in ("source", "target"):
        value = getattr(rel, end)
        if not value:
            issues.append(LintIssue("WN4051", ERROR, f"{end} node type is required", _where(rel, end)))
        elif known and value not in known:
            issues.append(LintIssue(
                "WN4051", ERROR, f"{end} node type not found: {value}", _where(rel, end),
            ))

    if rel.cardinality is not None and _value(rel.cardinality) not in _CARDINALITIES:
        issues.append(LintIssue(
            "WN4056", ERROR, f"invalid cardinality: {rel.cardinality}", _where(rel, "cardinality"),
        ))
    issues.extend(_lint_members(rel))
    return issues


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def lint_models(declarations: Iterable[Any]) -> List[LintIssue]:
    """Run every rule over ``declarations``.

    Node and relationship types held by schema wrappers are checked once,
    and relationship endpoints are resolved against every node label seen.
    """
    flat = flatten_declarations(declarations)
    node_labels = [d.label for d in flat if isinstance(d, NodeType) and d.label]

    issues: List[LintIssue] = []
    for declaration in flat:
        if isinstance(declaration, NodeType):
            issues.extend(lint_node_type(declaration))
        elif isinstance(declaration, RelationshipType):
            issues.extend(lint_relationship_type(declaration, node_labels))
        elif isinstance(declaration, Algorithm):
            issues.extend(lint_algorithm(declaration))
        elif isinstance(declaration, Pipeline):
            issues.extend(lint_pipeline(declaration))
        elif isinstance(declaration, KGPipeline):
            issues.extend(lint_kg_pipeline(declaration))

    errors = len(filter_by_severity(issues, ERROR))
    logger.info("Lint: %d declarations, %d errors, %d warnings",
                len(flat), errors, len(issues) - errors)
    return issues


def has_errors(issues: Iterable[LintIssue]) -> bool:
    return any(issue.severity == ERROR for issue in issues)


def filter_by_severity(issues: Iterable[LintIssue], severity: str) -> List[LintIssue]:
    return [issue for issue in issues if issue.severity == severity]


def format_issues(issues: List[LintIssue], fmt: str = "text") -> str:
    if fmt == "json":
        return json.dumps([issue.to_dict() for issue in issues], indent=2)
    if not issues:
        return "No issues found"
    return "\n".join(str(issue) for issue in issues)
