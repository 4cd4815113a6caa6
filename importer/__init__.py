"""Round-trip import of an existing database schema into declaration source."""

from importer.catalogue import (
    CatalogueConstraint,
    CatalogueIndex,
    CatalogueSnapshot,
    fetch_catalogue,
    get_neo4j_driver,
    infer_property_type,
    snapshot_to_model,
)
from importer.cypher_script import parse_script, read_script, split_statements
from importer.generator import assign_identifiers, generate, to_identifier

__all__ = [
    "CatalogueConstraint",
    "CatalogueIndex",
    "CatalogueSnapshot",
    "assign_identifiers",
    "fetch_catalogue",
    "generate",
    "get_neo4j_driver",
    "infer_property_type",
    "parse_script",
    "read_script",
    "snapshot_to_model",
    "split_statements",
    "to_identifier",
]
