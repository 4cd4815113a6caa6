"""
Reader for Cypher schema scripts.

Recognises ``CREATE CONSTRAINT`` and ``CREATE ... INDEX`` statements (Neo4j 5
``FOR ... REQUIRE`` syntax and the older ``ON ... ASSERT`` form) and collects
them into a :class:`CatalogueSnapshot`. Other statements are skipped.
"""

import logging
import re
from typing import List, Optional

from importer.catalogue import (
    NODE,
    RELATIONSHIP,
    CatalogueConstraint,
    CatalogueIndex,
    CatalogueSnapshot,
    constraint_type_from_name,
    index_type_from_name,
)

logger = logging.getLogger(__name__)

COMMENT_PREFIXES = ("//", "--")

_IDENT = r"(?:`[^`]+`|\w+)"
_NAME = r"(?:(?!(?:IF|FOR|ON)\b)(?P<name>" + _IDENT + r")\s+)?"
_IF_NOT_EXISTS = r"(?:IF\s+NOT\s+EXISTS\s+)?"
_NODE_PATTERN = r"\(\s*\w+\s*:\s*(?P<node_label>" + _IDENT + r")\s*\)"
_REL_PATTERN = (
    r"\(\s*\w*\s*\)\s*<?-\s*\[\s*\w+\s*:\s*(?P<rel_type>" + _IDENT + r")\s*\]\s*->?\s*\(\s*\w*\s*\)"
)
_TARGET = r"(?:" + _NODE_PATTERN + r"|" + _REL_PATTERN + r")"

CONSTRAINT_RE = re.compile(
    r"^CREATE\s+CONSTRAINT\s+" + _NAME + _IF_NOT_EXISTS + r"(?:FOR|ON)\s+" + _TARGET
    + r"\s*(?:REQUIRE|ASSERT)\s+(?P<props>\([^)]*\)|[\w.`]+)\s+IS\s+"
    r"(?P<kind>UNIQUE|NODE\s+KEY|REL(?:ATIONSHIP)?\s+KEY|NOT\s+NULL)\b",
    re.IGNORECASE | re.DOTALL,
)

INDEX_RE = re.compile(
    r"^CREATE\s+(?:(?P<type>RANGE|BTREE|FULLTEXT|TEXT|POINT|VECTOR)\s+)?INDEX\s+"
    + _NAME + _IF_NOT_EXISTS + r"FOR\s+" + _TARGET
    + r"\s*ON\s+(?:EACH\s+)?(?P<props>\[[^\]]*\]|\([^)]*\)|[\w.`]+)(?P<rest>.*)$",
    re.IGNORECASE | re.DOTALL,
)

_CONSTRAINT_START = re.compile(r"^CREATE\s+CONSTRAINT\b", re.IGNORECASE)
_INDEX_START = re.compile(r"^CREATE\s+(?:\w+\s+)?INDEX\b", re.IGNORECASE)
_DIMENSIONS_RE = re.compile(r"`?vector\.dimensions`?\s*:\s*(\d+)", re.IGNORECASE)
_SIMILARITY_RE = re.compile(r"`?vector\.similarity_function`?\s*:\s*['\"](\w+)['\"]", re.IGNORECASE)


def strip_trailing_comment(line: str) -> str:
    """Drop a ``//`` comment that follows code on ``line``, outside any quotes."""
    quote = ""
    for i, char in enumerate(line):
        if quote:
            if char == quote:
                quote = ""
        elif char in "'\"`":
            quote = char
        elif line.startswith("//", i):
            return line[:i].rstrip()
    return line


def split_statements(text: str) -> List[str]:
    """Split a script into statements.

    Lines are trimmed; blank lines and ``//`` / ``--`` comment lines are
    dropped, as is a ``//`` comment trailing code. Lines accumulate until one
    ends with ``;``. A trailing statement without a terminator is kept.
    """
    statements: List[str] = []
    current: List[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue
        line = strip_trailing_comment(line)
        current.append(line)
        if line.endswith(";"):
            statements.append(" ".join(current)[:-1].strip())
            current = []
    if current:
        statements.append(" ".join(current).strip())
    return [s for s in statements if s]


def _unquote(identifier: str) -> str:
    identifier = identifier.strip()
    if len(identifier) >= 2 and identifier.startswith("`") and identifier.endswith("`"):
        return identifier[1:-1].replace("``", "`")
    return identifier


def parse_property_list(raw: str) -> List[str]:
    """``(n.a, n.b)`` / ``[n.a]`` / ``n.a`` -> ``["a", "b"]``."""
    raw = raw.strip().strip("()[]")
    names = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if "." in part:
            part = part.split(".", 1)[1]
        names.append(_unquote(part))
    return names


def _target(match: "re.Match") -> tuple:
    if match.group("rel_type"):
        return RELATIONSHIP, _unquote(match.group("rel_type"))
    return NODE, _unquote(match.group("node_label"))


def parse_constraint(statement: str) -> Optional[CatalogueConstraint]:
    match = CONSTRAINT_RE.match(statement)
    if match is None:
        return None
    entity, label = _target(match)
    kind = re.sub(r"\s+", "_", match.group("kind").upper())
    if kind == "RELATIONSHIP_KEY":
        kind = "REL_KEY"
    constraint_type = constraint_type_from_name(kind)
    if constraint_type is None:
        return None
    return CatalogueConstraint(
        name=_unquote(match.group("name") or ""),
        type=constraint_type,
        entity=entity,
        label=label,
        properties=parse_property_list(match.group("props")),
    )


def parse_index(statement: str) -> Optional[CatalogueIndex]:
    match = INDEX_RE.match(statement)
    if match is None:
        return None
    index_type = index_type_from_name(match.group("type") or "RANGE")
    if index_type is None:
        return None
    entity, label = _target(match)

    options = {}
    rest = match.group("rest") or ""
    dimensions = _DIMENSIONS_RE.search(rest)
    if dimensions:
        options["dimensions"] = int(dimensions.group(1))
    similarity = _SIMILARITY_RE.search(rest)
    if similarity:
        options["similarity_function"] = similarity.group(1).lower()

    return CatalogueIndex(
        name=_unquote(match.group("name") or ""),
        type=index_type,
        entity=entity,
        label=label,
        properties=parse_property_list(match.group("props")),
        options=options,
    )


def parse_script(text: str) -> CatalogueSnapshot:
    """Parse a Cypher schema script into a catalogue snapshot.

    Example:
        >>> snap = parse_script("CREATE CONSTRAINT FOR (n:Person) REQUIRE n.id IS UNIQUE;")
        >>> snap.labels
        ['Person']
    """
    snapshot = CatalogueSnapshot()
    skipped = 0
    for statement in split_statements(text):
        if _CONSTRAINT_START.match(statement):
            constraint = parse_constraint(statement)
            if constraint is not None:
                snapshot.add_constraint(constraint)
                continue
        elif _INDEX_START.match(statement):
            index = parse_index(statement)
            if index is not None:
                snapshot.add_index(index)
                continue
        skipped += 1
        logger.debug("Skipping unrecognised statement: %s", statement[:80])

    logger.info(
        "Parsed %d constraints and %d indexes (%d statements skipped)",
        len(snapshot.constraints), len(snapshot.indexes), skipped,
    )
    return snapshot


def read_script(path: str) -> CatalogueSnapshot:
    """Read and parse a Cypher script file.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    with open(path, "r", encoding="utf-8") as f:
        return parse_script(f.read())
