"""Shared runtime machinery and result types."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeAlias, TypeVar

from tracify._vendor import Err, FrozenDict, Ok, Result
from tracify.computation import Completed, Failed, State, Suspended
from tracify.config import TracifyConfig, resolve_config
from tracify.errors import MissingHandlerError
from tracify.model import EffectRequest
from tracify.observe import Observer

logger = logging.getLogger(__name__)

T = TypeVar("T")

Handler: TypeAlias = Callable[..., Any]
HandlerTable: TypeAlias = Mapping[str, Handler]


@dataclass(frozen=True)
class HandledRequest:
    """A request whose handler produced ``result``."""

    request: EffectRequest
    result: Any


@dataclass(frozen=True)
class HandlerFailure:
    """A request whose handler raised ``error``.

    The error is not propagated: it becomes the computation's resumption value
    (or, under the ``"throw"`` policy, is raised at the suspension point).
    """

    request: EffectRequest
    error: Exception


RequestRecord: TypeAlias = HandledRequest | HandlerFailure


@dataclass(frozen=True)
class RuntimeResult(Generic[T]):
    """Result from runtime execution. Used by run_safe()."""

    result: Result[T]
    requests: tuple[RequestRecord, ...] = ()

    @property
    def is_ok(self) -> bool:
        return self.result.is_ok()

    @property
    def is_err(self) -> bool:
        return self.result.is_err()

    @property
    def value(self) -> T:
        """Get value or raise if error."""
        return self.result.unwrap()

    @property
    def error(self) -> BaseException:
        """Get error or raise if ok."""
        return self.result.unwrap_err()

    @property
    def failures(self) -> tuple[HandlerFailure, ...]:
        return tuple(record for record in self.requests if isinstance(record, HandlerFailure))

    def display(self) -> str:
        names = ", ".join(record.request.name for record in self.requests) or "<none>"
        if self.is_ok:
            return f"Ok({self.result.ok()!r}) after [{names}]"
        return f"Err({self.result.err()!r}) after [{names}]"


class RuntimeMixin:
    """Handler lookup, observer notification and resumption shared by runtimes.

    Does NOT define run(); each runtime drives the loop with its own signature.
    """

    _handlers: FrozenDict
    _observer: Observer | None
    _config: TracifyConfig

    def _init_runtime(
        self,
        handlers: HandlerTable | None,
        observer: Observer | None,
        config: TracifyConfig | None,
    ) -> None:
        table = FrozenDict(handlers or {})
        for name, handler in table.items():
            if not isinstance(name, str):
                raise TypeError(f"handler names must be str, got {type(name).__name__}")
            if not callable(handler):
                raise TypeError(
                    f"handler for {name!r} must be callable, got {type(handler).__name__}"
                )
        self._handlers = table
        self._observer = observer
        self._config = resolve_config(config)

    @property
    def handlers(self) -> FrozenDict:
        return self._handlers

    def _enter(self, request: EffectRequest) -> Handler:
        """Notify the observer, then resolve the handler for ``request``."""

        if self._observer is not None:
            self._observer.enter(request.name, request.handler_args())
        handler = self._handlers.get(request.name)
        if handler is None:
            raise MissingHandlerError(request.name, self._handlers)
        return handler

    def _leave(
        self,
        request: EffectRequest,
        outcome: Result[Any],
        requests: list[RequestRecord],
    ) -> None:
        if isinstance(outcome, Ok):
            value: Any = outcome.value
            requests.append(HandledRequest(request, value))
        else:
            value = outcome.unwrap_err()
            requests.append(HandlerFailure(request, value))  # type: ignore[arg-type]
        logger.log(
            self._config.step_log_level,
            "effect %s %s -> %r",
            request.name,
            request.kind,
            value,
        )
        if self._observer is not None:
            self._observer.leave(request.name, value)

    def _resume(self, suspended: Suspended, outcome: Result[Any]) -> State:
        match outcome:
            case Ok(value=value):
                return suspended.resume(value)
            case Err(error=error) if self._config.handler_failures == "throw":
                return suspended.throw(error)
            case Err(error=error):
                return suspended.resume(error)
        raise TypeError(f"Unknown handler outcome: {outcome!r}")

    @staticmethod
    def _finish(state: Completed | Failed) -> Any:
        if isinstance(state, Completed):
            return state.value
        raise state.error


__all__ = [
    "HandledRequest",
    "Handler",
    "HandlerFailure",
    "HandlerTable",
    "RequestRecord",
    "RuntimeMixin",
    "RuntimeResult",
]
