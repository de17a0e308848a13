"""
Field path access for opaque row records.

Rows may be mappings or plain objects; a path such as ``"address.city"``
walks one key or attribute per segment.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any, Mapping as MappingType

_MISSING = object()


def get_nested_value(obj: Any, path: str) -> Any:
    """
    Read a value from a row by dot-separated path.

    Args:
        obj: Mapping or object to read from
        path: Dot-separated field path

    Returns:
        The value at the path, or None if any segment is missing
    """
    current = obj
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key, _MISSING)
        else:
            current = getattr(current, key, _MISSING)
        if current is _MISSING:
            return None
    return current


def assign_fields(row: Any, changes: MappingType[str, Any]) -> None:
    """Shallow-assign top-level members of a row in place."""
    if isinstance(row, MutableMapping):
        row.update(changes)
        return
    for key, value in changes.items():
        setattr(row, key, value)
