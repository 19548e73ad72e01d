"""SyncRuntime - Runtime for plain synchronous handlers."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from tracify._vendor import Err, Ok, Result
from tracify.computation import Computation, Suspended, as_computation
from tracify.errors import AsyncHandlerInSyncRuntimeError
from tracify.runtimes.base import (
    HandlerTable,
    RequestRecord,
    RuntimeMixin,
    RuntimeResult,
)

if TYPE_CHECKING:
    from tracify.config import TracifyConfig
    from tracify.observe import Observer

T = TypeVar("T")


class SyncRuntime(RuntimeMixin):
    def __init__(
        self,
        handlers: HandlerTable | None = None,
        *,
        observer: "Observer | None" = None,
        config: "TracifyConfig | None" = None,
    ):
        self._init_runtime(handlers, observer, config)

    def _drive(
        self,
        computation: Computation[T],
        requests: list[RequestRecord],
    ) -> T:
        state = computation.start()
        try:
            while isinstance(state, Suspended):
                request = state.request
                handler = self._enter(request)

                outcome: Result[Any]
                try:
                    value = handler(*request.handler_args())
                except Exception as ex:
                    outcome = Err(ex)
                else:
                    if inspect.isawaitable(value):
                        if inspect.iscoroutine(value):
                            value.close()
                        raise AsyncHandlerInSyncRuntimeError(request.name)
                    outcome = Ok(value)

                self._leave(request, outcome, requests)
                state = self._resume(state, outcome)

            return self._finish(state)
        finally:
            # Abandoned mid-request; close so its finally blocks run.
            if isinstance(state, Suspended):
                state.close()

    def run(self, computation: "Computation[T] | Callable[..., Any]") -> T:
        return self._drive(as_computation(computation), [])

    def run_safe(
        self, computation: "Computation[T] | Callable[..., Any]"
    ) -> RuntimeResult[T]:
        requests: list[RequestRecord] = []
        try:
            value = self._drive(as_computation(computation), requests)
        except Exception as e:
            return RuntimeResult(Err(e), tuple(requests))
        return RuntimeResult(Ok(value), tuple(requests))


__all__ = ["SyncRuntime", "AsyncHandlerInSyncRuntimeError"]
