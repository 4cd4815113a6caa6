"""
Tree-sitter access to schema declaration modules.

Declaration files are parsed, never imported: the scanner works on the
syntax tree alone, and a file with syntax errors is rejected as a whole.
"""

import logging
from typing import Iterator, Tuple

import tree_sitter_python as tspython
from tree_sitter import Language, Node, Parser, Tree

from core.errors import ScanError

logger = logging.getLogger(__name__)

PY_LANGUAGE = Language(tspython.language())


def create_parser() -> Parser:
    """Return a fresh tree-sitter parser bound to the Python grammar."""
    parser = Parser(PY_LANGUAGE)
    logger.debug("Created tree-sitter Python parser")
    return parser


def parse_bytes(source: bytes) -> Tree:
    """Parse declaration source without checking for syntax errors.

    The returned tree may contain ERROR or MISSING nodes; see
    :func:`iter_error_nodes` and :func:`parse_checked`.

    Raises:
        TypeError: If source is not bytes.

    Example:
        >>> tree = parse_bytes(b"class Person(NodeType): pass")
        >>> tree.root_node.type
        'module'
    """
    if not isinstance(source, bytes):
        raise TypeError(f"Source must be bytes, got {type(source).__name__}")

    parser = create_parser()
    tree = parser.parse(source)
    logger.debug("Parsed %d bytes of Python code", len(source))
    return tree


def iter_error_nodes(node: Node) -> Iterator[Node]:
    """Yield ERROR and MISSING nodes in document order."""
    if node.type == "ERROR" or node.is_missing:
        yield node
        return
    if not node.has_error:
        return
    for child in node.children:
        yield from iter_error_nodes(child)


def count_error_nodes(tree: Tree) -> int:
    return sum(1 for _ in iter_error_nodes(tree.root_node))


def parse_checked(source: bytes, file_path: str = "<memory>") -> Tree:
    """Parse source and reject it if tree-sitter reports syntax errors.

    Raises:
        ScanError: If the source contains syntax errors.
    """
    tree = parse_bytes(source)
    if tree.root_node.has_error:
        first = next(iter_error_nodes(tree.root_node), None)
        line = first.start_point[0] + 1 if first is not None else None
        raise ScanError("syntax error in declaration source", file_path, line)
    return tree


def parse_file(file_path: str) -> Tuple[Tree, bytes]:
    """Parse a Python declaration file from disk.

    Args:
        file_path: Path to the ``.py`` file.

    Returns:
        A tuple of (Tree, source_bytes).

    Raises:
        FileNotFoundError: If the file does not exist.
        ScanError: If the file contains syntax errors.
    """
    try:
        with open(file_path, "rb") as f:
            source_bytes = f.read()
    except FileNotFoundError:
        logger.error("File not found: %s", file_path)
        raise

    tree = parse_checked(source_bytes, file_path)
    logger.debug("Successfully parsed file: %s", file_path)
    return tree, source_bytes
