from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

MAX_FLATTEN_DEPTH = 64


class FlattenDepthError(ValueError):
    pass


def flatten_properties(document: Optional[Mapping[Any, Any]]) -> dict[str, Any]:
    """Flatten a nested mapping into dotted keys.

    `{"a": {"b": {"c": 1}}}` becomes `{"a.b.c": 1}`. Leaf values (scalars and
    sequences) are kept as they are; empty nested mappings contribute nothing.

    Raises:
        FlattenDepthError: the document nests deeper than MAX_FLATTEN_DEPTH.
    """

    result: dict[str, Any] = {}
    if not document:
        return result
    _flatten_into(document, "", result, depth=1)
    return result


def _flatten_into(properties: Mapping[Any, Any], prefix: str, result: dict[str, Any], *, depth: int) -> None:
    if depth > MAX_FLATTEN_DEPTH:
        raise FlattenDepthError(f"Document nesting exceeds {MAX_FLATTEN_DEPTH} levels (at '{prefix}')")

    for raw_key, value in properties.items():
        key = f"{prefix}.{raw_key}" if prefix else str(raw_key)
        if isinstance(value, Mapping):
            _flatten_into(value, key, result, depth=depth + 1)
        else:
            result[key] = value
