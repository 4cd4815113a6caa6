"""Core shared contracts and utilities."""

from core.errors import (
    CycleError,
    ScanError,
    SchemaGenError,
    UnsupportedConstructError,
    UsageError,
)
from core.structured_logging import (
    configure_structured_logging,
    get_run_id,
    level_from_verbosity,
    phase_scope,
    set_run_id,
)
from core.settings import (
    ConfigValidationError,
    Neo4jSettings,
    ProjectSettings,
    load_project_config,
    load_settings,
    resolve_neo4j_settings,
    resolve_strict_config_validation,
)

__all__ = [
    "CycleError",
    "ScanError",
    "SchemaGenError",
    "UnsupportedConstructError",
    "UsageError",
    "configure_structured_logging",
    "get_run_id",
    "level_from_verbosity",
    "phase_scope",
    "set_run_id",
    "ConfigValidationError",
    "Neo4jSettings",
    "ProjectSettings",
    "load_project_config",
    "load_settings",
    "resolve_neo4j_settings",
    "resolve_strict_config_validation",
]
