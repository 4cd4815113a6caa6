"""Structural diff of schema snapshots with breaking-change classification."""

from differ.differ import (
    ADDED,
    MODIFIED,
    REMOVED,
    DiffEntry,
    DiffResult,
    DiffSummary,
    compare_resources,
    diff,
    diff_documents,
    diff_resources,
    format_json,
    format_text,
)

__all__ = [
    "ADDED",
    "MODIFIED",
    "REMOVED",
    "DiffEntry",
    "DiffResult",
    "DiffSummary",
    "compare_resources",
    "diff",
    "diff_documents",
    "diff_resources",
    "format_json",
    "format_text",
]
