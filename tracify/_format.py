"""Rendering of values for diagnostic messages."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from typing import Any


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseException):
        return f"{type(value).__name__}({', '.join(repr(arg) for arg in value.args)})"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: getattr(value, field.name) for field in dataclasses.fields(value)
        }
    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, bytes):
        return repr(value)
    return repr(value)


def serialize(value: Any) -> str:
    """Render ``value`` as compact JSON, falling back to ``repr`` for the rest.

    Tuples render as JSON arrays, so ``(1,)`` and ``[1]`` both read ``[1]``.
    """

    try:
        return json.dumps(value, default=_to_jsonable, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(value)


__all__ = ["serialize"]
