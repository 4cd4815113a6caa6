"""
Listing and dependency-graph reports over discovered resources.
"""

import json
import logging
import os
from typing import Dict, Iterable, List, Optional

from core.errors import CycleError, UsageError
from discovery.graph import DependencyGraph
from discovery.models import DiscoveredResource, ResourceKind

logger = logging.getLogger(__name__)

LIST_FORMATS = ("table", "json")
GRAPH_FORMATS = ("dot", "mermaid")

KIND_COLORS: Dict[ResourceKind, str] = {
    ResourceKind.NODE_TYPE: "lightblue",
    ResourceKind.RELATIONSHIP_TYPE: "lightgreen",
    ResourceKind.ALGORITHM: "lightyellow",
    ResourceKind.PIPELINE: "lightpink",
    ResourceKind.RETRIEVER: "lavender",
}


def _sorted_by_kind(resources: Iterable[DiscoveredResource]) -> List[DiscoveredResource]:
    return sorted(resources, key=lambda r: (r.kind.value, r.name))


def kind_counts(resources: Iterable[DiscoveredResource]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for r in resources:
        counts[r.kind.value] = counts.get(r.kind.value, 0) + 1
    return dict(sorted(counts.items()))


def shorten_path(path: str, base: Optional[str] = None) -> str:
    """Path relative to ``base`` (default: cwd) when it lies beneath it."""
    base = os.path.abspath(base or os.getcwd())
    absolute = os.path.abspath(path)
    if absolute == base:
        return "."
    if absolute.startswith(base + os.sep):
        return os.path.relpath(absolute, base)
    return path


def format_table(resources: Iterable[DiscoveredResource]) -> str:
    """Aligned TYPE/NAME/FILE/LINE table followed by per-kind totals."""
    rows = [("TYPE", "NAME", "FILE", "LINE"), ("----", "----", "----", "----")]
    ordered = _sorted_by_kind(resources)
    for r in ordered:
        rows.append((r.kind.value, r.name, shorten_path(r.file), str(r.line)))

    widths = [max(len(row[i]) for row in rows) for i in range(3)]
    lines = [
        "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row[:3])) + "  " + row[3]
        for row in rows
    ]
    lines.append("")
    lines.append(f"Total: {len(ordered)} definitions")
    for kind, count in kind_counts(ordered).items():
        lines.append(f"  {kind}: {count}")
    return "\n".join(lines)


def format_json(resources: Iterable[DiscoveredResource]) -> str:
    """Resources grouped by kind, with a ``_summary`` entry."""
    ordered = _sorted_by_kind(resources)
    output: Dict[str, list] = {}
    for r in ordered:
        entry = {"name": r.name, "file": r.file, "line": r.line, "package": r.package}
        if r.dependencies:
            entry["dependencies"] = list(r.dependencies)
        output.setdefault(r.kind.value, []).append(entry)
    output["_summary"] = [{"counts": kind_counts(ordered), "total": len(ordered)}]
    return json.dumps(output, indent=2)


def list_resources(
    resources: Iterable[DiscoveredResource],
    fmt: str = "table",
    kind: Optional[ResourceKind] = None,
) -> str:
    """Render a resource listing, optionally restricted to one kind.

    Raises:
        UsageError: If ``fmt`` is not ``table`` or ``json``.
    """
    if fmt not in LIST_FORMATS:
        raise UsageError(f"unsupported format: {fmt} (supported: {', '.join(LIST_FORMATS)})")
    selected = [r for r in resources if kind is None or r.kind == kind]
    if not selected:
        return f"No {kind.value} definitions found" if kind else "No definitions found"
    if fmt == "json":
        return format_json(selected)
    return format_table(selected)


def format_dependencies(resources: Iterable[DiscoveredResource]) -> str:
    """Direct dependencies per resource plus the build order.

    A cycle does not fail the report; it is reported in place of the order.
    """
    resources = list(resources)
    if not resources:
        return "No definitions found"
    graph = DependencyGraph(resources)
    lines = ["Dependency Graph:", "-----------------"]
    for r in resources:
        deps = graph.dependencies_of(r.name)
        if deps:
            lines.append(f"{r.name} -> {', '.join(deps)}")

    try:
        ordered = graph.topological_sort()
    except CycleError as e:
        lines.append("")
        lines.append("Warning: Circular dependencies detected!")
        if e.remaining:
            lines.append(f"  involved: {', '.join(e.remaining)}")
        return "\n".join(lines)

    lines.append("")
    lines.append("Build order:")
    for position, r in enumerate(ordered, start=1):
        lines.append(f"  {position}. {r.name} ({r.kind.value})")
    return "\n".join(lines)


def _quote(value: str) -> str:
    return json.dumps(value)


def sanitize_mermaid_id(name: str) -> str:
    return name.replace("-", "_").replace(" ", "_")


def graph_dot(resources: Iterable[DiscoveredResource]) -> str:
    resources = list(resources)
    graph = DependencyGraph(resources)
    ordered = sorted(resources, key=lambda r: r.name)

    lines = ["digraph dependencies {", "  rankdir=TB;", "  node [shape=box];", ""]
    for r in ordered:
        color = KIND_COLORS.get(r.kind, "white")
        label = f"{r.name}\\n[{r.kind.value}]"
        lines.append(f"  {_quote(r.name)} [label=\"{label}\", style=filled, fillcolor={color}];")
    lines.append("")
    for r in ordered:
        for dep in graph.dependencies_of(r.name):
            lines.append(f"  {_quote(r.name)} -> {_quote(dep)};")
    lines.append("}")
    return "\n".join(lines)


def graph_mermaid(resources: Iterable[DiscoveredResource]) -> str:
    resources = list(resources)
    graph = DependencyGraph(resources)
    ordered = sorted(resources, key=lambda r: r.name)

    lines = ["graph TD"]
    for r in ordered:
        lines.append(f"  {sanitize_mermaid_id(r.name)}[{_quote(f'{r.name} [{r.kind.value}]')}]")
    lines.append("")
    for r in ordered:
        for dep in graph.dependencies_of(r.name):
            lines.append(f"  {sanitize_mermaid_id(r.name)} --> {sanitize_mermaid_id(dep)}")
    return "\n".join(lines)


def render_graph(resources: Iterable[DiscoveredResource], fmt: str = "dot") -> str:
    """Dependency graph as Graphviz DOT or Mermaid.

    Raises:
        UsageError: For any other format.
    """
    fmt = fmt.lower()
    if fmt in ("dot", "graphviz"):
        return graph_dot(resources)
    if fmt == "mermaid":
        return graph_mermaid(resources)
    raise UsageError(f"unsupported format: {fmt} (use 'dot' or 'mermaid')")
