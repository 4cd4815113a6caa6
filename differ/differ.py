"""
Structural diff between two schema snapshots.

A snapshot is a scanned directory, a single declaration module, or a JSON
document written by ``schemagen build --format json``. Resources are matched
on ``(kind, name)``; each difference is described in a change string, and
changes that can invalidate or orphan stored data carry a ``[BREAKING...]``
tag.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List

from core.errors import UsageError
from discovery.models import (
    ConstraintInfo,
    DiscoveredResource,
    IndexInfo,
    PropertyInfo,
    ResourceKind,
)
from discovery.scanner import scan_directory, scan_file
from synthesis.document import load_document

logger = logging.getLogger(__name__)

ADDED = "added"
MODIFIED = "modified"
REMOVED = "removed"
ACTION_ORDER = {ADDED: 0, MODIFIED: 1, REMOVED: 2}

BREAKING_TAG = "[BREAKING"
ADDED_REQUIRED = "[BREAKING: requires data population]"
ORPHANED = "[BREAKING: existing data will be orphaned]"

JSON_EXTENSIONS = (".json",)

# Document sections compared structurally, and the kind each one holds.
_STRUCTURAL_SECTIONS = (
    ("nodeTypes", ResourceKind.NODE_TYPE),
    ("relationshipTypes", ResourceKind.RELATIONSHIP_TYPE),
)
# Document sections compared key by key.
_OPAQUE_SECTIONS = (
    ("algorithms", "Algorithm"),
    ("pipelines", "Pipeline"),
    ("projections", "Projection"),
    ("retrievers", "Retriever"),
    ("kgPipelines", "KGPipeline"),
)


@dataclass
class DiffEntry:
    """Changes to one resource."""

    resource: str
    kind: str
    action: str
    changes: List[str] = field(default_factory=list)

    @property
    def breaking(self) -> bool:
        return any(BREAKING_TAG in change for change in self.changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DiffSummary:
    added: int = 0
    modified: int = 0
    removed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.modified + self.removed

    def to_dict(self) -> Dict[str, int]:
        return {
            "added": self.added,
            "modified": self.modified,
            "removed": self.removed,
            "total": self.total,
        }


@dataclass
class DiffResult:
    entries: List[DiffEntry] = field(default_factory=list)
    summary: DiffSummary = field(default_factory=DiffSummary)

    @property
    def has_changes(self) -> bool:
        return bool(self.entries)

    @property
    def has_breaking_changes(self) -> bool:
        return any(entry.breaking for entry in self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "summary": self.summary.to_dict(),
        }


def _finish(entries: Iterable[DiffEntry]) -> DiffResult:
    """Sort entries and their change lists, and count them."""
    ordered = sorted(entries, key=lambda e: (ACTION_ORDER[e.action], e.resource, e.kind))
    summary = DiffSummary()
    for entry in ordered:
        entry.changes = sorted(entry.changes)
        setattr(summary, entry.action, getattr(summary, entry.action) + 1)
    return DiffResult(entries=ordered, summary=summary)


# ---------------------------------------------------------------------------
# Resource comparison
# ---------------------------------------------------------------------------


def _key_map(resources: Iterable[DiscoveredResource]) -> Dict[tuple, DiscoveredResource]:
    return {r.key: r for r in resources}


def describe_resource(resource: DiscoveredResource) -> List[str]:
    """Short description of a newly added resource."""
    description = []
    if resource.properties:
        description.append(f"{len(resource.properties)} properties")
    if resource.constraints:
        description.append(f"{len(resource.constraints)} constraints")
    if resource.indexes:
        description.append(f"{len(resource.indexes)} indexes")
    if resource.source and resource.target:
        description.append(f"({resource.source})-[]->({resource.target})")
    return description


def has_breaking_addition(resource: DiscoveredResource) -> bool:
    """New required properties have no value on existing data."""
    return any(p.required for p in resource.properties)


def compare_properties(old: List[PropertyInfo], new: List[PropertyInfo]) -> List[str]:
    changes = []
    before = {p.name: p for p in old}
    after = {p.name: p for p in new}

    for name, prop in after.items():
        if name in before:
            continue
        if prop.required:
            changes.append(f'property "{name}" added (required) [BREAKING: requires data migration]')
        else:
            changes.append(f'property "{name}" added')

    for name in before:
        if name not in after:
            changes.append(f'property "{name}" removed [BREAKING: data loss]')

    for name, p1 in before.items():
        p2 = after.get(name)
        if p2 is None:
            continue
        if p1.type != p2.type:
            changes.append(f'property "{name}" type changed: {p1.type} -> {p2.type} [BREAKING]')
        if p1.required != p2.required:
            if p2.required:
                changes.append(f'property "{name}" now required [BREAKING: existing null values invalid]')
            else:
                changes.append(f'property "{name}" now optional')
        if p1.unique != p2.unique:
            if p2.unique:
                changes.append(f'property "{name}" now unique [may fail if existing data violates]')
            else:
                changes.append(f'property "{name}" no longer unique [BREAKING: requires migration]')
    return changes


def _signature(type_name: str, properties: List[str]) -> str:
    return f"{type_name}({', '.join(properties)})"


def compare_constraints(old: List[ConstraintInfo], new: List[ConstraintInfo]) -> List[str]:
    before = {_signature(c.type, c.properties) for c in old}
    after = {_signature(c.type, c.properties) for c in new}
    changes = [f"constraint {sig} added [may fail if existing data violates]" for sig in after - before]
    changes.extend(f"constraint {sig} removed [BREAKING: requires migration]" for sig in before - after)
    return changes


def compare_indexes(old: List[IndexInfo], new: List[IndexInfo]) -> List[str]:
    before = {_signature(i.type, i.properties) for i in old}
    after = {_signature(i.type, i.properties) for i in new}
    changes = [f"index {sig} added" for sig in after - before]
    changes.extend(f"index {sig} removed [performance impact]" for sig in before - after)
    return changes


def compare_resources(old: DiscoveredResource, new: DiscoveredResource) -> List[str]:
    """Change strings for one resource present in both snapshots."""
    changes = compare_properties(old.properties, new.properties)
    changes.extend(compare_constraints(old.constraints, new.constraints))
    changes.extend(compare_indexes(old.indexes, new.indexes))

    if old.kind == ResourceKind.RELATIONSHIP_TYPE:
        if old.source != new.source:
            changes.append(f"source changed: {old.source} -> {new.source} [BREAKING]")
        if old.target != new.target:
            changes.append(f"target changed: {old.target} -> {new.target} [BREAKING]")

    if old.kind == ResourceKind.SCHEMA and old.agent_context != new.agent_context:
        changes.append("agentContext changed")
    return sorted(changes)


def _resource_entries(old: Iterable[DiscoveredResource], new: Iterable[DiscoveredResource]) -> List[DiffEntry]:
    before = _key_map(old)
    after = _key_map(new)
    entries = []

    for key, resource in after.items():
        if key in before:
            continue
        changes = describe_resource(resource)
        if has_breaking_addition(resource):
            changes.append(ADDED_REQUIRED)
        entries.append(DiffEntry(resource.name, resource.kind.value, ADDED, changes))

    for key, resource in before.items():
        if key not in after:
            entries.append(DiffEntry(resource.name, resource.kind.value, REMOVED, [ORPHANED]))

    for key, resource in before.items():
        other = after.get(key)
        if other is None:
            continue
        changes = compare_resources(resource, other)
        if changes:
            entries.append(DiffEntry(resource.name, resource.kind.value, MODIFIED, changes))
    return entries


def diff_resources(old: Iterable[DiscoveredResource], new: Iterable[DiscoveredResource]) -> DiffResult:
    """Diff two scanned resource lists.

    Example:
        >>> result = diff_resources(scan_file("v1.py"), scan_file("v2.py"))
        >>> [e.action for e in result.entries]
        ['added', 'modified']
    """
    return _finish(_resource_entries(old, new))


# ---------------------------------------------------------------------------
# JSON documents
# ---------------------------------------------------------------------------


def resource_from_map(kind: ResourceKind, data: Dict[str, Any]) -> DiscoveredResource:
    """Rebuild the comparable view of a node or relationship document entry."""
    return DiscoveredResource(
        name=str(data.get("label") or data.get("name") or ""),
        kind=kind,
        properties=[
            PropertyInfo(
                name=str(p.get("name", "")),
                type=str(p.get("type", "STRING")),
                required=bool(p.get("required", False)),
                unique=bool(p.get("unique", False)),
            )
            for p in data.get("properties") or []
        ],
        constraints=[
            ConstraintInfo(type=str(c.get("type", "")), properties=list(c.get("properties") or []))
            for c in data.get("constraints") or []
        ],
        indexes=[
            IndexInfo(type=str(i.get("type", "")), properties=list(i.get("properties") or []))
            for i in data.get("indexes") or []
        ],
        source=str(data.get("source") or ""),
        target=str(data.get("target") or ""),
    )


def _entries_by_name(items: Any) -> Dict[str, Dict[str, Any]]:
    result = {}
    for item in items or []:
        if isinstance(item, dict) and isinstance(item.get("name"), str):
            result[item["name"]] = item
    return result


def find_map_changes(old: Dict[str, Any], new: Dict[str, Any]) -> List[str]:
    changes = []
    for key, value in new.items():
        if key not in old:
            changes.append(f"{key} added")
        elif old[key] != value:
            changes.append(f"{key} changed")
    changes.extend(f"{key} removed" for key in old if key not in new)
    return sorted(changes)


def _opaque_entries(kind: str, old_items: Any, new_items: Any) -> List[DiffEntry]:
    before = _entries_by_name(old_items)
    after = _entries_by_name(new_items)
    entries = []
    for name in after:
        if name not in before:
            entries.append(DiffEntry(name, kind, ADDED))
    for name, item in before.items():
        if name not in after:
            entries.append(DiffEntry(name, kind, REMOVED, ["[BREAKING]"]))
        elif item != after[name]:
            entries.append(DiffEntry(name, kind, MODIFIED, find_map_changes(item, after[name])))
    return entries


def diff_documents(old: Dict[str, Any], new: Dict[str, Any]) -> DiffResult:
    """Diff two JSON documents.

    Node and relationship entries follow the same rules as scanned
    resources; other sections are compared key by key.
    """
    entries: List[DiffEntry] = []
    old_resources: List[DiscoveredResource] = []
    new_resources: List[DiscoveredResource] = []
    for section, kind in _STRUCTURAL_SECTIONS:
        old_resources.extend(resource_from_map(kind, d) for d in old.get(section) or [] if isinstance(d, dict))
        new_resources.extend(resource_from_map(kind, d) for d in new.get(section) or [] if isinstance(d, dict))
    entries.extend(_resource_entries(old_resources, new_resources))

    for section, kind in _OPAQUE_SECTIONS:
        entries.extend(_opaque_entries(kind, old.get(section), new.get(section)))
    return _finish(entries)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _is_json(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in JSON_EXTENSIONS


def snapshot_kind(path: str) -> str:
    """``directory``, ``document`` or ``source`` for an existing path.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    if os.path.isdir(path):
        return "directory"
    if os.path.isfile(path):
        return "document" if _is_json(path) else "source"
    raise FileNotFoundError(f"Path not found: {path}")


def _scan(path: str, exclude_dirs: Iterable[str]) -> List[DiscoveredResource]:
    if os.path.isdir(path):
        resources, _ = scan_directory(path, exclude_dirs=exclude_dirs)
        return resources
    return scan_file(path)


def diff(path_a: str, path_b: str, exclude_dirs: Iterable[str] = ()) -> DiffResult:
    """Diff two snapshots of the same kind.

    Args:
        path_a: Old snapshot.
        path_b: New snapshot.
        exclude_dirs: Extra directory names to skip when scanning.

    Raises:
        FileNotFoundError: If either path does not exist.
        UsageError: If the two paths are not the same kind of snapshot.
    """
    kind_a = snapshot_kind(path_a)
    kind_b = snapshot_kind(path_b)
    if kind_a != kind_b:
        raise UsageError(f"cannot compare {kind_a} {path_a} with {kind_b} {path_b}")

    logger.info("Comparing %s %s with %s", kind_a, path_a, path_b)
    if kind_a == "document":
        result = diff_documents(load_document(path_a), load_document(path_b))
    else:
        result = diff_resources(_scan(path_a, exclude_dirs), _scan(path_b, exclude_dirs))
    logger.info(
        "Diff complete: %d added, %d modified, %d removed",
        result.summary.added, result.summary.modified, result.summary.removed,
    )
    return result


def format_text(result: DiffResult) -> str:
    """Human-readable rendering of a diff result."""
    if not result.entries:
        return "No differences found"
    symbols = {ADDED: "+", MODIFIED: "~", REMOVED: "-"}
    lines = []
    for entry in result.entries:
        lines.append(f"{symbols[entry.action]} {entry.kind} {entry.resource} ({entry.action})")
        for change in entry.changes:
            lines.append(f"    {change}")
    summary = result.summary
    lines.append("")
    lines.append(
        f"Summary: {summary.added} added, {summary.modified} modified, "
        f"{summary.removed} removed ({summary.total} total)"
    )
    if result.has_breaking_changes:
        lines.append("Warning: breaking changes detected")
    return "\n".join(lines)


def format_json(result: DiffResult) -> str:
    return json.dumps(result.to_dict(), indent=2)
