"""Project and connection settings.

Settings resolve in three layers: built-in defaults, environment variables
(a ``.env`` file is loaded at import time via python-dotenv), and an optional
``graphschema.yaml`` project file. Strict mode turns every malformed value
into a ``ConfigValidationError``; non-strict mode logs and falls back.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Idempotent; does nothing if already loaded or missing.
load_dotenv()

DEFAULT_PROJECT_FILE: str = "graphschema.yaml"
DEFAULT_NEO4J_URI: str = "bolt://127.0.0.1:7687"
DEFAULT_NEO4J_USERNAME: str = "neo4j"
DEFAULT_NEO4J_PASSWORD: str = "neo4j"
DEFAULT_NEO4J_DATABASE: str = "neo4j"


class ConfigValidationError(RuntimeError):
    """Raised when strict configuration validation fails."""


@dataclass
class Neo4jSettings:
    """Connection settings for the live catalogue reader."""

    uri: str = DEFAULT_NEO4J_URI
    username: str = DEFAULT_NEO4J_USERNAME
    password: str = DEFAULT_NEO4J_PASSWORD
    database: str = DEFAULT_NEO4J_DATABASE

    def redacted(self) -> dict[str, str]:
        return {
            "uri": self.uri,
            "username": self.username,
            "password": "***" if self.password else "",
            "database": self.database,
        }


@dataclass
class ProjectSettings:
    """Resolved project configuration."""

    neo4j: Neo4jSettings = field(default_factory=Neo4jSettings)
    build_output: Optional[str] = None
    exclude_dirs: list[str] = field(default_factory=list)
    strict: bool = False


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def resolve_strict_config_validation(default: bool = False) -> bool:
    """Resolve strict validation mode from ``STRICT_CONFIG_VALIDATION`` env."""
    return _env_flag("STRICT_CONFIG_VALIDATION", default=default)


def _fail(msg: str, strict: bool) -> None:
    if strict:
        raise ConfigValidationError(msg)
    logger.warning("%s; continuing with defaults", msg)


def load_project_config(path: str, strict: bool = False) -> dict[str, Any]:
    """Load and parse a YAML project file.

    A missing file is not an error unless ``strict`` is set: most projects
    run on defaults and environment variables alone.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f)
    except FileNotFoundError as exc:
        if strict:
            raise ConfigValidationError(f"Project file not found: {path}") from exc
        logger.debug("No project file at %s", path)
        return {}
    except yaml.YAMLError as exc:
        _fail(f"Failed to parse project YAML at {path}: {exc}", strict)
        return {}

    if payload is None:
        return {}

    if not isinstance(payload, dict):
        _fail(f"Unexpected project file payload type: {type(payload).__name__}", strict)
        return {}

    return payload


def parse_neo4j_auth(value: str) -> Optional[tuple[str, str]]:
    """Parse a ``user/password`` auth string."""
    text = str(value).strip().strip('"').strip("'")
    if "/" not in text:
        return None
    username, password = text.split("/", 1)
    if not username:
        return None
    return username, password


def resolve_neo4j_settings(
    project_data: dict[str, Any],
    strict: bool = False,
) -> Neo4jSettings:
    """Resolve Neo4j settings from env vars, then the project ``neo4j`` block."""
    settings = Neo4jSettings(
        uri=os.getenv("NEO4J_URI", DEFAULT_NEO4J_URI),
        username=os.getenv("NEO4J_USERNAME", DEFAULT_NEO4J_USERNAME),
        password=os.getenv("NEO4J_PASSWORD", DEFAULT_NEO4J_PASSWORD),
        database=os.getenv("NEO4J_DATABASE", DEFAULT_NEO4J_DATABASE),
    )

    env_auth = os.getenv("NEO4J_AUTH")
    if env_auth:
        parsed = parse_neo4j_auth(env_auth)
        if parsed is None:
            _fail("NEO4J_AUTH is not in 'user/password' form", strict)
        else:
            settings.username, settings.password = parsed

    section = project_data.get("neo4j")
    if section is None:
        return settings
    if not isinstance(section, dict):
        _fail("Project file 'neo4j' section must be a mapping", strict)
        return settings

    for key in ("uri", "username", "password", "database"):
        value = section.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            _fail(f"Project file 'neo4j.{key}' must be a string", strict)
            continue
        setattr(settings, key, value)

    auth = section.get("auth")
    if auth is not None:
        parsed = parse_neo4j_auth(auth)
        if parsed is None:
            _fail("Project file 'neo4j.auth' is not in 'user/password' form", strict)
        else:
            settings.username, settings.password = parsed

    logger.debug("Resolved Neo4j settings: %s", settings.redacted())
    return settings


def load_settings(
    project_file: Optional[str] = None,
    strict: Optional[bool] = None,
) -> ProjectSettings:
    """Resolve full project settings.

    Args:
        project_file: Path to the YAML project file. Defaults to
            ``graphschema.yaml`` in the working directory.
        strict: Override for ``STRICT_CONFIG_VALIDATION``.

    Returns:
        A populated ``ProjectSettings``.

    Raises:
        ConfigValidationError: In strict mode, for any invalid value.
    """
    if strict is None:
        strict = resolve_strict_config_validation(default=False)
    path = project_file or DEFAULT_PROJECT_FILE
    data = load_project_config(path, strict=strict and project_file is not None)

    result = ProjectSettings(
        neo4j=resolve_neo4j_settings(data, strict=strict),
        strict=strict,
    )

    build = data.get("build") or {}
    if isinstance(build, dict):
        output = build.get("output")
        if output is not None:
            if isinstance(output, str):
                result.build_output = output
            else:
                _fail("Project file 'build.output' must be a string", strict)
    else:
        _fail("Project file 'build' section must be a mapping", strict)

    scan = data.get("scan") or {}
    if isinstance(scan, dict):
        excludes = scan.get("exclude_dirs") or []
        if isinstance(excludes, list) and all(isinstance(d, str) for d in excludes):
            result.exclude_dirs = list(excludes)
        else:
            _fail("Project file 'scan.exclude_dirs' must be a list of strings", strict)
    else:
        _fail("Project file 'scan' section must be a mapping", strict)

    return result
