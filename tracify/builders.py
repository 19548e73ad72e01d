"""
Declaration surface for programs.

Example:
    >>> sql = tag("sql")
    >>> fetch = fn("fetch")
    >>> IO = program([
    ...     trace([
    ...         yields(sql.takes(1, "Alice").returns([])),
    ...         throws(LookupError("no users")),
    ...     ]),
    ...     trace([
    ...         yields(sql.takes(1, "Alice").returns([{"id": 1}])),
    ...         yields(fetch.takes("stripe/customers", {"userId": 1}).returns([])),
    ...         returns(None),
    ...     ]),
    ... ])
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from tracify.computation import Computation, ComputationGenerator
from tracify.model import (
    EffectDescriptor,
    EffectKind,
    Program,
    Returns,
    Step,
    Throws,
    Trace,
    Yield,
)

T = TypeVar("T")


@dataclass(frozen=True)
class _Takes:
    kind: EffectKind
    name: str
    arguments: tuple[Any, ...]

    def returns(self, result: Any) -> EffectDescriptor:
        return EffectDescriptor(
            kind=self.kind, name=self.name, arguments=self.arguments, result=result
        )


@dataclass(frozen=True)
class EffectBuilder:
    """``tag(name)`` / ``fn(name)``; finish with ``.takes(...).returns(...)``."""

    kind: EffectKind
    name: str

    def takes(self, *arguments: Any) -> _Takes:
        return _Takes(self.kind, self.name, arguments)


def tag(name: str) -> EffectBuilder:
    """An effect invoked as a template: fragments first, then the values.

    ``takes`` lists only the substituted values.
    """

    return EffectBuilder("tag", name)


def fn(name: str) -> EffectBuilder:
    """An effect invoked with a plain positional argument list."""

    return EffectBuilder("fn", name)


def yields(effect: EffectDescriptor) -> Yield:
    if not isinstance(effect, EffectDescriptor):
        raise TypeError(f"yields() takes an EffectDescriptor, got {type(effect).__name__}")
    return Yield(effect)


def throws(error: Any) -> Throws:
    return Throws(error)


def returns(value: Any) -> Returns:
    return Returns(value)


def trace(steps: Iterable[Step]) -> Trace:
    return Trace(tuple(steps))


def program(traces: Iterable[Trace]) -> Program:
    return Program(tuple(traces))


def implementation(
    expected: Program,
    func: Callable[..., ComputationGenerator[T]],
) -> Computation[T]:
    """Bind a generator function to the effect names ``expected`` declares.

    Requesting any other effect fails with ``UndeclaredEffectError``.
    """

    if isinstance(func, Computation):
        return Computation(func.func, program=expected, args=func.args, kwargs=func.kwargs)
    return Computation(func, program=expected)


__all__ = [
    "EffectBuilder",
    "fn",
    "implementation",
    "program",
    "returns",
    "tag",
    "throws",
    "trace",
    "yields",
]
