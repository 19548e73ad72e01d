"""Structural deep equality used by the verifier."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from numbers import Number
from typing import Any


def _category(value: Any) -> str:
    # bool before Number: True must not equal 1.
    if value is None:
        return "none"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, Number):
        return "number"
    if isinstance(value, str):
        return "str"
    if isinstance(value, (bytes, bytearray)):
        return "bytes"
    if isinstance(value, (list, tuple)):
        return "sequence"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, BaseException):
        return "exception"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return "dataclass"
    if isinstance(value, (set, frozenset)):
        return "set"
    return "object"


def _sequences_equal(a: Any, b: Any) -> bool:
    if len(a) != len(b):
        return False
    return all(deep_equal(x, y) for x, y in zip(a, b))


def _mappings_equal(a: Mapping, b: Mapping) -> bool:
    if len(a) != len(b):
        return False
    # Hash lookup conflates 1 and True; compare the stored keys' categories.
    b_keys = {key: key for key in b}
    for key in a:
        if key not in b_keys or _category(key) != _category(b_keys[key]):
            return False
        if not deep_equal(a[key], b[key]):
            return False
    return True


def _fields(value: Any) -> dict[str, Any]:
    return {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}


def deep_equal(a: Any, b: Any) -> bool:
    """Return ``True`` when ``a`` and ``b`` are structurally equal.

    Lists and tuples are both ordered sequences and compare element-wise.
    Mappings compare by key set and per-key value, ignoring order; a ``True``
    key never matches a ``1`` key. Dataclass
    instances and exceptions compare like keyed containers but must also share
    their exact type. Values of other types are equal only when identical.
    Cyclic structures are not supported and recurse without bound.
    """

    if a is b:
        return True
    category = _category(a)
    if category != _category(b):
        return False
    if category in ("none", "bool", "number", "str", "bytes", "set"):
        return a == b
    if category == "sequence":
        return _sequences_equal(a, b)
    if category == "mapping":
        return _mappings_equal(a, b)
    if category == "exception":
        return type(a) is type(b) and _sequences_equal(a.args, b.args)
    if category == "dataclass":
        return type(a) is type(b) and _mappings_equal(_fields(a), _fields(b))
    return False


__all__ = ["deep_equal"]
