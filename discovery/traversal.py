"""
AST traversal helpers for declaration discovery.

Pure functions over tree-sitter nodes: type-name resolution against the
alias table, static evaluation of literal values, and the over-approximating
dependency walk.
"""

import ast
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tree_sitter import Node

from discovery.config import (
    ATTRIBUTE,
    BUILTIN_TYPE_NAMES,
    CALL,
    IDENTIFIER,
    KEYWORD_ARGUMENT,
    NUMBER_NODES,
    RESOURCE_KIND_ALIASES,
    SCHEMA_VOCABULARY,
    SEQUENCE_NODES,
    STRING_NODES,
    TRANSPARENT_WRAPPERS,
)
from discovery.models import CallLiteral, ResourceKind, SymbolRef

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_SUBSCRIPT_RE = re.compile(r"\[.*\]$", re.DOTALL)


def node_text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def named_children(node: Node) -> List[Node]:
    """Named children without comments."""
    return [c for c in node.named_children if c.type != "comment"]


def unwrap(node: Node) -> Node:
    """Strip parentheses around an expression."""
    while node.type in TRANSPARENT_WRAPPERS:
        inner = named_children(node)
        if len(inner) != 1:
            break
        node = inner[0]
    return node


# ---------------------------------------------------------------------------
# Type-name resolution
# ---------------------------------------------------------------------------


def resolve_kind(type_expression: str) -> Optional[ResourceKind]:
    """Map a (possibly qualified) type expression to a resource kind.

    Strips parentheses and subscripts, then looks up the last dotted
    component in the alias table.

    Example:
        >>> resolve_kind("graphschema.NodeType")
        <ResourceKind.NODE_TYPE: 'NodeType'>
        >>> resolve_kind("dict") is None
        True
    """
    text = type_expression.strip().strip("()").strip()
    text = _SUBSCRIPT_RE.sub("", text).strip()
    if not text:
        return None
    return RESOURCE_KIND_ALIASES.get(text.rsplit(".", 1)[-1])


def last_identifier(node: Node, source_bytes: bytes) -> Optional[str]:
    """Return the rightmost identifier of a name-like expression.

    ``NodeType`` -> ``NodeType``; ``gs.NodeType`` -> ``NodeType``;
    ``List[NodeType]`` -> ``List``; ``(NodeType)`` -> ``NodeType``.
    """
    node = unwrap(node)
    if node.type == IDENTIFIER:
        return node_text(node, source_bytes)
    if node.type == ATTRIBUTE:
        attr = node.child_by_field_name("attribute")
        return node_text(attr, source_bytes) if attr is not None else None
    if node.type == "subscript":
        value = node.child_by_field_name("value")
        return last_identifier(value, source_bytes) if value is not None else None
    return None


def resolve_node_kind(node: Node, source_bytes: bytes) -> Tuple[Optional[str], Optional[ResourceKind]]:
    """Resolve a type-expression node to ``(alias, kind)``."""
    name = last_identifier(node, source_bytes)
    if name is None:
        return None, None
    kind = RESOURCE_KIND_ALIASES.get(name)
    return (name, kind) if kind is not None else (None, None)


# ---------------------------------------------------------------------------
# Literal evaluation
# ---------------------------------------------------------------------------


def string_value(node: Node, source_bytes: bytes) -> Optional[str]:
    """Decode a string literal, including raw, triple-quoted and concatenated forms.

    Returns None for f-strings with interpolations, byte strings and
    non-string nodes.
    """
    node = unwrap(node)
    if node.type not in STRING_NODES:
        return None
    try:
        value = ast.literal_eval(node_text(node, source_bytes))
    except (ValueError, SyntaxError):
        return None
    return value if isinstance(value, str) else None


def call_arguments(call: Node, source_bytes: bytes) -> Tuple[List[Node], Dict[str, Node]]:
    """Split a call's argument list into positional nodes and keyword nodes."""
    positional: List[Node] = []
    keywords: Dict[str, Node] = {}
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return positional, keywords
    for arg in named_children(arguments):
        if arg.type == KEYWORD_ARGUMENT:
            name = arg.child_by_field_name("name")
            value = arg.child_by_field_name("value")
            if name is not None and value is not None:
                keywords[node_text(name, source_bytes)] = value
        elif arg.type not in ("list_splat", "dictionary_splat"):
            positional.append(arg)
    return positional, keywords


def literal_value(node: Node, source_bytes: bytes) -> Any:
    """Statically evaluate a literal sub-expression.

    Strings, numbers, booleans, None, lists, tuples, sets and dicts become
    Python values; names become ``SymbolRef``; constructor calls become
    ``CallLiteral``. Anything else evaluates to None.
    """
    node = unwrap(node)
    kind = node.type

    if kind in STRING_NODES:
        return string_value(node, source_bytes)
    if kind in NUMBER_NODES:
        try:
            return ast.literal_eval(node_text(node, source_bytes))
        except (ValueError, SyntaxError):
            return None
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind == "none":
        return None
    if kind == "unary_operator":
        operand = node.child_by_field_name("argument")
        if operand is not None and unwrap(operand).type in NUMBER_NODES:
            try:
                return ast.literal_eval(node_text(node, source_bytes))
            except (ValueError, SyntaxError):
                return None
        return None
    if kind in SEQUENCE_NODES:
        return [literal_value(child, source_bytes) for child in named_children(node)
                if child.type not in ("list_splat", "dictionary_splat")]
    if kind == "dictionary":
        result: Dict[Any, Any] = {}
        for pair in named_children(node):
            if pair.type != "pair":
                continue
            key = literal_value(pair.child_by_field_name("key"), source_bytes)
            if isinstance(key, (str, int, float, bool)):
                result[key] = literal_value(pair.child_by_field_name("value"), source_bytes)
        return result
    if kind == IDENTIFIER:
        text = node_text(node, source_bytes)
        return SymbolRef(name=text, qualified=text)
    if kind == ATTRIBUTE:
        return SymbolRef(
            name=last_identifier(node, source_bytes) or "",
            qualified=node_text(node, source_bytes),
        )
    if kind == CALL:
        function = node.child_by_field_name("function")
        type_name = last_identifier(function, source_bytes) if function is not None else None
        if type_name is None:
            return None
        positional, keywords = call_arguments(node, source_bytes)
        return CallLiteral(
            type_name=type_name,
            kwargs={k: literal_value(v, source_bytes) for k, v in keywords.items()},
            args=tuple(literal_value(a, source_bytes) for a in positional),
        )
    return None


def symbol_name(value: Any) -> Optional[str]:
    """Name of a constant reference or string literal (``UNIQUE``, ``"UNIQUE"``)."""
    if isinstance(value, SymbolRef):
        return value.name
    if isinstance(value, str):
        return value
    return None


# ---------------------------------------------------------------------------
# Dependency inference
# ---------------------------------------------------------------------------


def is_dependency_candidate(name: str) -> bool:
    """Capitalised identifiers that are not builtins, vocabulary or aliases."""
    if not name or not name[0].isupper():
        return False
    if name in BUILTIN_TYPE_NAMES or name in SCHEMA_VOCABULARY:
        return False
    return name not in RESOURCE_KIND_ALIASES


def _walk_dependencies(
    node: Node,
    source_bytes: bytes,
    found: List[str],
    in_annotation: bool,
) -> None:
    kind = node.type
    if kind == "comment":
        return
    if kind == IDENTIFIER:
        name = node_text(node, source_bytes)
        if is_dependency_candidate(name) and name not in found:
            found.append(name)
        return
    if kind in STRING_NODES:
        # Forward references in annotations: ``manager: "Person"``.
        if in_annotation:
            value = string_value(node, source_bytes)
            if value and _IDENTIFIER_RE.match(value.strip()):
                name = value.strip().rsplit(".", 1)[-1]
                if is_dependency_candidate(name) and name not in found:
                    found.append(name)
        return
    if kind == ATTRIBUTE:
        obj = node.child_by_field_name("object")
        if obj is not None:
            _walk_dependencies(obj, source_bytes, found, in_annotation)
        return
    if kind == KEYWORD_ARGUMENT:
        value = node.child_by_field_name("value")
        if value is not None:
            _walk_dependencies(value, source_bytes, found, in_annotation)
        return
    if kind == "type":
        in_annotation = True
    for child in node.named_children:
        _walk_dependencies(child, source_bytes, found, in_annotation)


def collect_dependencies(
    nodes: Iterable[Node],
    source_bytes: bytes,
    exclude: Iterable[str] = (),
    in_annotation: bool = False,
) -> List[str]:
    """Collect candidate dependency names from expression nodes.

    The walk recurses into every call, argument, container, subscript,
    operator and attribute object so that no nested reference is missed;
    false positives are filtered later against the discovered names.

    Args:
        nodes: Expression roots to walk.
        source_bytes: Source the nodes were parsed from.
        exclude: Names never reported (e.g. the declaring resource itself).
        in_annotation: Treat string literals as forward references.

    Returns:
        Names in first-seen order, without duplicates.
    """
    found: List[str] = []
    for node in nodes:
        _walk_dependencies(node, source_bytes, found, in_annotation)
    excluded = set(exclude)
    return [name for name in found if name not in excluded]
