#!/usr/bin/env python3
"""
Command-line entry point for schema synthesis.

Scans Python declaration modules for graph schema resources and turns them
into Cypher or JSON, reports on them, diffs two snapshots, or imports an
existing database schema back into declaration source.

Usage:
    python run_schema.py build schema/ -o schema.cypher
    python run_schema.py build schema/ --format json
    python run_schema.py list schema/ --kind NodeType
    python run_schema.py graph schema/ --format mermaid
    python run_schema.py lint schema/ --fail-on-warning
    python run_schema.py diff old_schema/ new_schema/
    python run_schema.py import --script schema.cypher --package myschema -o myschema.py
    python run_schema.py import --live --package myschema
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from core.errors import SchemaGenError, UsageError
from core.settings import ConfigValidationError, ProjectSettings, load_settings
from core.structured_logging import (
    configure_structured_logging,
    level_from_verbosity,
    phase_scope,
    set_run_id,
)
from discovery.models import ResourceKind
from discovery.scanner import scan_path

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="schemagen",
        description="Neo4j schema-as-code: build, inspect, diff and import graph schemas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  schemagen build schema/ -o schema.cypher\n"
            "  schemagen diff old_schema/ new_schema/ --fail-on-breaking\n"
            "  schemagen import --script schema.cypher --package myschema\n"
        ),
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity (-v info, -vv debug).")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only log errors.")
    parser.add_argument("--config", default=None,
                        help="Project file (default: graphschema.yaml if present).")
    parser.add_argument("--strict-config", action="store_true", default=None,
                        help="Fail on invalid configuration instead of falling back to defaults.")

    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Generate Cypher or JSON from declarations.")
    build.add_argument("path", help="Declaration module or directory.")
    build.add_argument("--format", choices=("cypher", "json"), default=None,
                       help="Output format (default: from the output extension, else cypher).")
    build.add_argument("-o", "--output", default=None,
                       help="Write to this file instead of stdout.")
    build.add_argument("--exec", dest="execute", action="store_true",
                       help="Import the modules instead of scanning them statically.")

    lister = sub.add_parser("list", help="List discovered resources.")
    lister.add_argument("path", help="Declaration module or directory.")
    lister.add_argument("--format", choices=("table", "json"), default="table")
    lister.add_argument("--kind", choices=[k.value for k in ResourceKind], default=None,
                        help="Only list resources of this kind.")

    graph = sub.add_parser("graph", help="Show the resource dependency graph.")
    graph.add_argument("path", help="Declaration module or directory.")
    graph.add_argument("--format", choices=("text", "dot", "graphviz", "mermaid"), default="text")

    linter = sub.add_parser("lint", help="Check declarations for invalid or suspicious settings.")
    linter.add_argument("path", help="Declaration module or directory.")
    linter.add_argument("--format", choices=("text", "json"), default="text")
    linter.add_argument("--exec", dest="execute", action="store_true",
                        help="Import the modules instead of scanning them statically.")
    linter.add_argument("--fail-on-warning", action="store_true",
                        help="Exit with status 1 on warnings as well as errors.")

    diff = sub.add_parser("diff", help="Compare two schema snapshots.")
    diff.add_argument("old", help="Old directory, module or JSON document.")
    diff.add_argument("new", help="New directory, module or JSON document.")
    diff.add_argument("--format", choices=("text", "json"), default="text")
    diff.add_argument("--fail-on-breaking", action="store_true",
                      help="Exit with status 1 when breaking changes are found.")

    importer = sub.add_parser("import", help="Generate declaration source from an existing schema.")
    source = importer.add_mutually_exclusive_group(required=True)
    source.add_argument("--script", help="Cypher script with CREATE CONSTRAINT/INDEX statements.")
    source.add_argument("--live", action="store_true", help="Read the catalogue of the configured database.")
    importer.add_argument("--package", default="schema", help="Package name for the generated module.")
    importer.add_argument("--database", default=None, help="Database to read (default: from settings).")
    importer.add_argument("--no-sample", action="store_true",
                          help="Do not sample data to infer property types.")
    importer.add_argument("-o", "--output", default=None,
                          help="Write to this file instead of stdout.")

    return parser.parse_args(argv)


def _emit(text: str, output: Optional[str] = None) -> None:
    if output:
        parent = os.path.dirname(output)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            f.write(text if text.endswith("\n") else text + "\n")
        logger.info("Wrote %s", output)
        return
    sys.stdout.write(text if text.endswith("\n") else text + "\n")


def cmd_build(args: argparse.Namespace, settings: ProjectSettings) -> int:
    from synthesis.builder import build, detect_format, load_declarations, render_models

    output = args.output or settings.build_output
    if args.execute:
        fmt = args.format or detect_format(output)
        with phase_scope("load"):
            declarations = load_declarations(args.path)
        with phase_scope("render"):
            _emit(render_models(declarations, fmt), output)
        return EXIT_OK

    with phase_scope("build"):
        text = build(args.path, fmt=args.format, output=output, exclude_dirs=settings.exclude_dirs)
    if not output:
        _emit(text)
    return EXIT_OK


def cmd_list(args: argparse.Namespace, settings: ProjectSettings) -> int:
    from synthesis.reports import list_resources

    with phase_scope("scan"):
        resources = scan_path(args.path, exclude_dirs=settings.exclude_dirs)
    kind = ResourceKind(args.kind) if args.kind else None
    _emit(list_resources(resources, fmt=args.format, kind=kind))
    return EXIT_OK


def cmd_graph(args: argparse.Namespace, settings: ProjectSettings) -> int:
    from synthesis.reports import format_dependencies, render_graph

    with phase_scope("scan"):
        resources = scan_path(args.path, exclude_dirs=settings.exclude_dirs)
    if args.format == "text":
        _emit(format_dependencies(resources))
    else:
        _emit(render_graph(resources, args.format))
    return EXIT_OK


def cmd_lint(args: argparse.Namespace, settings: ProjectSettings) -> int:
    from discovery.graph import DependencyGraph
    from synthesis.builder import load_declarations, resources_to_models
    from synthesis.lint import format_issues, has_errors, lint_models

    if args.execute:
        with phase_scope("load"):
            declarations = load_declarations(args.path)
    else:
        with phase_scope("scan"):
            resources = scan_path(args.path, exclude_dirs=settings.exclude_dirs)
        declarations = resources_to_models(DependencyGraph(resources).topological_sort())

    with phase_scope("lint"):
        issues = lint_models(declarations)
    _emit(format_issues(issues, args.format))
    if has_errors(issues) or (args.fail_on_warning and issues):
        return EXIT_FAILURE
    return EXIT_OK


def cmd_diff(args: argparse.Namespace, settings: ProjectSettings) -> int:
    from differ.differ import diff, format_json, format_text

    with phase_scope("diff"):
        result = diff(args.old, args.new, exclude_dirs=settings.exclude_dirs)
    _emit(format_json(result) if args.format == "json" else format_text(result))
    if args.fail_on_breaking and result.has_breaking_changes:
        return EXIT_FAILURE
    return EXIT_OK


def cmd_import(args: argparse.Namespace, settings: ProjectSettings) -> int:
    from importer.catalogue import fetch_catalogue, get_neo4j_driver
    from importer.cypher_script import read_script
    from importer.generator import generate

    if args.script:
        with phase_scope("read_script"):
            snapshot = read_script(args.script)
    else:
        database = args.database or settings.neo4j.database
        driver = get_neo4j_driver(settings.neo4j)
        try:
            with phase_scope("fetch_catalogue"):
                snapshot = fetch_catalogue(driver, database=database, sample=not args.no_sample)
        finally:
            driver.close()

    with phase_scope("generate"):
        _emit(generate(snapshot, args.package), args.output)
    return EXIT_OK


COMMANDS = {
    "build": cmd_build,
    "list": cmd_list,
    "graph": cmd_graph,
    "lint": cmd_lint,
    "diff": cmd_diff,
    "import": cmd_import,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit status."""
    args = parse_args(argv)
    configure_structured_logging(level=level_from_verbosity(args.verbose, args.quiet))
    run_id = set_run_id()
    logger.debug("Run %s: %s", run_id, args.command)

    try:
        settings = load_settings(args.config, strict=args.strict_config)
        return COMMANDS[args.command](args, settings)
    except UsageError as e:
        logger.error("Usage error: %s", e)
        return EXIT_USAGE
    except ConfigValidationError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_FAILURE
    except FileNotFoundError as e:
        logger.error("File error: %s", e)
        return EXIT_FAILURE
    except ConnectionError as e:
        logger.error("Neo4j connection error: %s", e)
        return EXIT_FAILURE
    except (SchemaGenError, OSError, ValueError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
