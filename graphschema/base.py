"""Shared plumbing for the declaration dataclasses.

Every declaration type projects itself to a camelCase mapping with empty
fields omitted, and supports the class-body declaration form where a
subclass assigns field values as class attributes.
"""

from __future__ import annotations

import copy
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any


def to_camel_case(name: str) -> str:
    """Convert ``snake_case`` to ``camelCase``.

    Example:
        >>> to_camel_case("relationship_weight_property")
        'relationshipWeightProperty'
    """
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def is_empty(value: Any) -> bool:
    """True for values the mapping projection omits (None, zero, empty)."""
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    return False


def to_plain(value: Any) -> Any:
    """Convert enums, declarations and containers to JSON-ready values."""
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_map"):
        return value.to_map()
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    return value


class MapMixin:
    """Generic ``to_map`` for declaration dataclasses.

    Field metadata may carry ``key`` (explicit output key), ``exclude``
    (never emitted) or ``keep`` (emitted even when empty).
    """

    def map_header(self) -> dict[str, Any]:
        return {}

    def to_map(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.map_header())
        for f in fields(self):  # type: ignore[arg-type]
            if f.metadata.get("exclude"):
                continue
            value = getattr(self, f.name)
            if is_empty(value) and not f.metadata.get("keep"):
                continue
            key = f.metadata.get("key") or to_camel_case(f.name)
            result[key] = to_plain(value)
        return result


def apply_class_declarations(obj: Any, base: type) -> None:
    """Copy class-attribute field values from subclasses onto ``obj``.

    Supports ``class Person(NodeType): properties = [...]``. Only fields that
    are still empty after ``__init__`` are filled; the most derived class wins.
    """
    if not is_dataclass(obj):
        return
    field_names = [f.name for f in fields(obj)]
    for klass in type(obj).__mro__:
        if klass is base or "__dataclass_fields__" in vars(klass):
            break
        namespace = vars(klass)
        for name in field_names:
            if name in namespace and is_empty(getattr(obj, name)):
                setattr(obj, name, copy.deepcopy(namespace[name]))


def is_declaration_subclass(obj: Any) -> bool:
    """True when ``obj`` is an instance of an undecorated user subclass."""
    return "__dataclass_fields__" not in vars(type(obj))
