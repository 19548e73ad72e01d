"""Effect descriptors, steps, traces and programs.

A ``Program`` is the static oracle a computation is verified against: a set of
``Trace`` objects, each an ordered run of ``Step`` values built from
``EffectDescriptor`` records.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from tracify._vendor import FrozenDict
from tracify.errors import InvalidTraceError

EffectKind: TypeAlias = Literal["tag", "fn"]
EFFECT_KINDS: tuple[EffectKind, ...] = ("tag", "fn")


def _ensure_kind(kind: object) -> None:
    if kind not in EFFECT_KINDS:
        raise ValueError(f"kind must be one of {EFFECT_KINDS}, got {kind!r}")


def _ensure_name(name: object) -> None:
    if not isinstance(name, str) or not name:
        raise TypeError(f"effect name must be a non-empty str, got {name!r}")


@dataclass(frozen=True)
class EffectDescriptor:
    """One expected effect invocation and the value it resolves to.

    For ``tag`` effects ``arguments`` holds only the substituted values; the
    literal template fragments are not part of the expectation.
    """

    kind: EffectKind
    name: str
    arguments: tuple[Any, ...] = ()
    result: Any = None

    def __post_init__(self) -> None:
        _ensure_kind(self.kind)
        _ensure_name(self.name)
        if not isinstance(self.arguments, tuple):
            object.__setattr__(self, "arguments", tuple(self.arguments))


@dataclass(frozen=True)
class EffectRequest:
    """What a computation yields to ask for an effect."""

    name: str
    kind: EffectKind
    arguments: tuple[Any, ...] = ()
    fragments: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        _ensure_kind(self.kind)
        _ensure_name(self.name)
        if (self.kind == "tag") != (self.fragments is not None):
            raise ValueError("fragments must be given for tag requests and only for them")

    def handler_args(self) -> tuple[Any, ...]:
        """Positional arguments a handler for this request is called with."""

        if self.kind == "tag":
            return (self.fragments, *self.arguments)
        return self.arguments


class Step:
    """Base for the expected interaction at one point of a trace."""

    __slots__ = ()

    terminal: bool = False


@dataclass(frozen=True)
class Yield(Step):
    effect: EffectDescriptor


@dataclass(frozen=True)
class Throws(Step):
    error: Any
    terminal = True


@dataclass(frozen=True)
class Returns(Step):
    value: Any
    terminal = True


@dataclass(frozen=True)
class Trace:
    """One complete scripted run: effect steps, then at most one terminal step."""

    steps: tuple[Step, ...]

    def __post_init__(self) -> None:
        steps = tuple(self.steps)
        object.__setattr__(self, "steps", steps)
        if not steps:
            raise InvalidTraceError("a trace needs at least one step")
        for index, step in enumerate(steps):
            if not isinstance(step, Step):
                raise InvalidTraceError(
                    f"step {index} must be a Step, got {type(step).__name__}"
                )
            if step.terminal and index != len(steps) - 1:
                raise InvalidTraceError(
                    f"terminal step {type(step).__name__} at index {index} must be the last step"
                )

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def effects(self) -> tuple[EffectDescriptor, ...]:
        return tuple(step.effect for step in self.steps if isinstance(step, Yield))

    @property
    def outcome(self) -> Throws | Returns | None:
        last = self.steps[-1]
        return last if isinstance(last, (Throws, Returns)) else None


@dataclass(frozen=True)
class Program:
    """A set of traces, each one possible behaviour of the computation."""

    traces: tuple[Trace, ...]
    _index: FrozenDict = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        traces = tuple(self.traces)
        object.__setattr__(self, "traces", traces)
        if not traces:
            raise InvalidTraceError("a program needs at least one trace")
        for index, trace in enumerate(traces):
            if not isinstance(trace, Trace):
                raise InvalidTraceError(
                    f"trace {index} must be a Trace, got {type(trace).__name__}"
                )
        index: dict[str, list[EffectDescriptor]] = {}
        for trace in traces:
            for descriptor in trace.effects:
                index.setdefault(descriptor.name, []).append(descriptor)
        object.__setattr__(
            self, "_index", FrozenDict({name: tuple(ds) for name, ds in index.items()})
        )

    def __iter__(self) -> Iterator[Trace]:
        return iter(self.traces)

    def __len__(self) -> int:
        return len(self.traces)

    def effect_names(self) -> tuple[str, ...]:
        """Every effect name declared anywhere in the program, first-seen order."""

        return tuple(self._index)

    def effects_by_name(self) -> FrozenDict:
        """Map each declared name to every descriptor carrying it."""

        return self._index

    @classmethod
    def of(cls, traces: Iterable[Trace]) -> Program:
        return cls(tuple(traces))


__all__ = [
    "EFFECT_KINDS",
    "EffectDescriptor",
    "EffectKind",
    "EffectRequest",
    "Program",
    "Returns",
    "Step",
    "Throws",
    "Trace",
    "Yield",
]
