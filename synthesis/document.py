"""
Structured JSON document rendering.

The document is a mapping keyed by pluralized kind name; each entry is the
declaration's ``to_map()`` projection, which already omits empty optional
fields. Empty sections are omitted as well.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from graphschema.algorithms import Algorithm
from graphschema.kg import KGPipeline
from graphschema.pipelines import Pipeline
from graphschema.projections import Projection
from graphschema.retrievers import Retriever
from graphschema.schema import NodeType, RelationshipType

logger = logging.getLogger(__name__)

# Section order of the rendered document.
SECTION_KEYS = (
    "nodeTypes",
    "relationshipTypes",
    "algorithms",
    "pipelines",
    "projections",
    "retrievers",
    "kgPipelines",
)

_SECTION_TYPES = (
    ("nodeTypes", NodeType),
    ("relationshipTypes", RelationshipType),
    ("algorithms", Algorithm),
    ("pipelines", Pipeline),
    ("projections", Projection),
    ("retrievers", Retriever),
    ("kgPipelines", KGPipeline),
)


def section_for(declaration: Any) -> Optional[str]:
    """Document section a declaration belongs to, or None."""
    for key, cls in _SECTION_TYPES:
        if isinstance(declaration, cls):
            return key
    return None


def build_document(declarations: Iterable[Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Project declarations into the document mapping.

    Declarations with no section (schema wrappers, helper objects) are
    skipped.
    """
    sections: Dict[str, List[Dict[str, Any]]] = {key: [] for key in SECTION_KEYS}
    for declaration in declarations:
        key = section_for(declaration)
        if key is None:
            logger.debug("No document section for %s", type(declaration).__name__)
            continue
        sections[key].append(declaration.to_map())
    return {key: entries for key, entries in sections.items() if entries}


def to_json(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def render_document(declarations: Iterable[Any]) -> str:
    return to_json(build_document(declarations))


def load_document(path: str) -> Dict[str, Any]:
    """Read a document written by :func:`render_document`.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON object.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at the top level")
    return data
