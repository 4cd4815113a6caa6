"""Exception taxonomy shared by the scanner, synthesizer, importer and differ.

Missing files surface as the builtin ``FileNotFoundError``; everything the
toolchain itself rejects derives from ``SchemaGenError`` so the CLI can map
it to an exit code without catching unrelated failures.
"""

from __future__ import annotations

from typing import Optional


class SchemaGenError(Exception):
    """Base class for all graphschema-synth failures."""


class ScanError(SchemaGenError):
    """Raised when a declaration file cannot be parsed."""

    def __init__(self, message: str, file_path: str = "", line: Optional[int] = None):
        self.file_path = file_path
        self.line = line
        location = file_path
        if file_path and line is not None:
            location = f"{file_path}:{line}"
        super().__init__(f"{location}: {message}" if location else message)


class CycleError(SchemaGenError):
    """Raised when resource dependencies cannot be ordered."""

    def __init__(self, message: str = "circular dependency detected", remaining=None):
        self.remaining = sorted(remaining or [])
        super().__init__(message)


class UnsupportedConstructError(SchemaGenError):
    """Raised for constraint, index, or format values with no template."""


class UsageError(SchemaGenError, ValueError):
    """Raised when an operation is invoked with incompatible inputs."""
