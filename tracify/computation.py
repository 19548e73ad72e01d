"""
Cooperatively suspending computations.

A computation is a generator function whose first parameter is a capability
set. Every effect it needs is requested by yielding the request built by a
capability, and the value sent back is the effect's result::

    @computation
    def load_users(ctx):
        users = yield ctx.sql(("select * from users where id = ", ""), 1)
        if not users:
            raise LookupError("no users")
        return users

Driving a computation is an explicit state machine: ``start()`` returns a
``Suspended``, ``Completed`` or ``Failed`` state, and ``Suspended.resume()``
produces the next one. Exceptions raised by the generator never escape
``resume()``; they come back as ``Failed``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Generator, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeAlias, TypeVar

from tracify.errors import ContinuationReusedError, UndeclaredEffectError
from tracify.model import EffectKind, EffectRequest

if TYPE_CHECKING:
    from tracify.model import Program

T = TypeVar("T")

Capability: TypeAlias = Callable[..., EffectRequest]
ComputationGenerator: TypeAlias = Generator[EffectRequest, Any, T]


def classify_call(
    args: Sequence[Any],
) -> tuple[EffectKind, tuple[str, ...] | None, tuple[Any, ...]]:
    """Split a capability call into ``(kind, fragments, values)``.

    A call is ``tag`` shaped when its first argument is a non-empty tuple or
    list of ``str`` fragments with exactly one more fragment than there are
    remaining arguments, the way a template interleaves text and values.
    Everything else, including a call with no arguments, is ``fn``.
    The fragment count is checked on purpose, so ``f(["a", "b"])`` stays
    ``fn`` even though every element is a string.
    """

    if args:
        head, rest = args[0], tuple(args[1:])
        if (
            isinstance(head, (tuple, list))
            and head
            and all(isinstance(fragment, str) for fragment in head)
            and len(head) == len(rest) + 1
        ):
            return "tag", tuple(head), rest
    return "fn", None, tuple(args)


def _capability(name: str) -> Capability:
    def request(*args: Any, **kwargs: Any) -> EffectRequest:
        if kwargs:
            raise TypeError(
                f"effect {name!r} takes positional arguments only, got {sorted(kwargs)}"
            )
        kind, fragments, values = classify_call(args)
        return EffectRequest(name=name, kind=kind, arguments=values, fragments=fragments)

    request.__name__ = name
    request.__qualname__ = f"Capabilities.{name}"
    return request


class Capabilities:
    """Dispatch table from effect name to a request-building closure.

    With ``declared`` names the table is fixed up front and any other name
    raises ``UndeclaredEffectError``. Without it, closures are created the
    first time a name is used. ``ctx.sql`` is shorthand for ``ctx["sql"]``
    and works for every name not starting with an underscore, ``get``
    included.
    """

    def __init__(self, declared: Iterable[str] | None = None) -> None:
        self._declared = None if declared is None else tuple(declared)
        self._table: dict[str, Capability] = {
            name: _capability(name) for name in self._declared or ()
        }

    def __getitem__(self, name: str) -> Capability:
        capability = self._table.get(name)
        if capability is not None:
            return capability
        if self._declared is not None:
            raise UndeclaredEffectError(name, self._declared)
        capability = self._table[name] = _capability(name)
        return capability

    def __getattr__(self, name: str) -> Capability:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __contains__(self, name: object) -> bool:
        return name in self._table

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        mode = "declared" if self._declared is not None else "lazy"
        return f"Capabilities({mode}, {list(self._table)!r})"


@dataclass(frozen=True)
class Completed:
    """Terminal: the computation returned ``value``."""

    value: Any


@dataclass(frozen=True)
class Failed:
    """Terminal: the computation raised ``error``."""

    error: BaseException


@dataclass
class _Continuation:
    """Single-shot handle on a suspended generator."""

    generator: Generator[Any, Any, Any]
    used: bool = False

    def _claim(self) -> None:
        if self.used:
            raise ContinuationReusedError("Continuation already used (single-shot)")
        self.used = True

    def resume(self, value: Any) -> State:
        self._claim()
        return _advance(self.generator, lambda: self.generator.send(value))

    def throw(self, error: BaseException) -> State:
        self._claim()
        return _advance(self.generator, lambda: self.generator.throw(error))


@dataclass(frozen=True)
class Suspended:
    """The computation is blocked on ``request`` until a value is supplied."""

    request: EffectRequest
    _continuation: _Continuation = field(repr=False, compare=False)

    @property
    def name(self) -> str:
        return self.request.name

    @property
    def kind(self) -> EffectKind:
        return self.request.kind

    @property
    def arguments(self) -> tuple[Any, ...]:
        return self.request.arguments

    def resume(self, value: Any) -> State:
        """Send ``value`` as the effect's result and run to the next state."""

        return self._continuation.resume(value)

    def throw(self, error: BaseException) -> State:
        """Raise ``error`` at the suspension point and run to the next state."""

        return self._continuation.throw(error)

    def close(self) -> None:
        """Abandon the computation, running its ``finally`` blocks."""

        self._continuation.used = True
        self._continuation.generator.close()


State: TypeAlias = Suspended | Completed | Failed


def _advance(generator: Generator[Any, Any, Any], step: Callable[[], Any]) -> State:
    try:
        yielded = step()
    except StopIteration as stop:
        return Completed(stop.value)
    except Exception as exc:
        return Failed(exc)
    if not isinstance(yielded, EffectRequest):
        generator.close()
        return Failed(
            TypeError(
                f"computations must yield effect requests, got {type(yielded).__name__}"
            )
        )
    return Suspended(yielded, _Continuation(generator))


class Computation(Generic[T]):
    """A generator function plus the arguments it is started with."""

    def __init__(
        self,
        func: Callable[..., ComputationGenerator[T] | T],
        *,
        program: Program | None = None,
        args: tuple[Any, ...] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> None:
        if not callable(func):
            raise TypeError(f"computation must be callable, got {type(func).__name__}")
        self.func = func
        self.program = program
        self.args = args
        self.kwargs = dict(kwargs or {})
        for attr in ("__doc__", "__module__", "__name__", "__qualname__"):
            value = getattr(func, attr, None)
            if value is not None:
                setattr(self, attr, value)

    def __call__(self, *args: Any, **kwargs: Any) -> Computation[T]:
        """Bind extra arguments passed after the capability set."""

        return Computation(
            self.func,
            program=self.program,
            args=self.args + args,
            kwargs={**self.kwargs, **kwargs},
        )

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"Computation({name})"

    def capabilities(self) -> Capabilities:
        """A fresh capability set, fixed to the program's names when bound to one."""

        if self.program is not None:
            return Capabilities(self.program.effect_names())
        return Capabilities()

    def start(self, capabilities: Capabilities | None = None) -> State:
        ctx = self.capabilities() if capabilities is None else capabilities
        try:
            result = self.func(ctx, *self.args, **self.kwargs)
        except Exception as exc:
            return Failed(exc)
        if not inspect.isgenerator(result):
            return Completed(result)
        return _advance(result, lambda: next(result))


def computation(func: Callable[..., ComputationGenerator[T]]) -> Computation[T]:
    """Decorator turning a generator function into a ``Computation``."""

    return Computation(func)


def as_computation(subject: Computation[T] | Callable[..., Any]) -> Computation[T]:
    if isinstance(subject, Computation):
        return subject
    return Computation(subject)


def raise_if_failure(value: T) -> T:
    """Return ``value``, or raise it when a handler failure was resumed with it."""

    if isinstance(value, BaseException):
        raise value
    return value


__all__ = [
    "Capabilities",
    "Capability",
    "Completed",
    "Computation",
    "ComputationGenerator",
    "Failed",
    "State",
    "Suspended",
    "as_computation",
    "classify_call",
    "computation",
    "raise_if_failure",
]
