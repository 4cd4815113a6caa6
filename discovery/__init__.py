"""
Declaration discovery.

Tree-sitter-based scanner for Python schema modules and the dependency
graph that orders what it finds.
"""

from discovery.models import (
    CallLiteral,
    ConstraintInfo,
    DiscoveredResource,
    IndexInfo,
    PropertyInfo,
    ResourceKind,
    SymbolRef,
)
from discovery.parser import create_parser, parse_bytes, parse_file, count_error_nodes
from discovery.traversal import resolve_kind
from discovery.scanner import (
    ScanStats,
    discover_source_files,
    find_duplicates,
    scan_directory,
    scan_file,
    scan_path,
    scan_source,
)
from discovery.graph import DependencyGraph, build_graph

__all__ = [
    # Data models
    "CallLiteral",
    "ConstraintInfo",
    "DiscoveredResource",
    "IndexInfo",
    "PropertyInfo",
    "ResourceKind",
    "SymbolRef",
    "ScanStats",
    # Low-level parsing
    "create_parser",
    "parse_bytes",
    "parse_file",
    "count_error_nodes",
    "resolve_kind",
    # Scanning
    "discover_source_files",
    "find_duplicates",
    "scan_directory",
    "scan_file",
    "scan_path",
    "scan_source",
    # Ordering
    "DependencyGraph",
    "build_graph",
]
