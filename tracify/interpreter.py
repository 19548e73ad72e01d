"""
Runtime interpreter entry points.

``handle`` drives a computation to completion against a table of real handler
functions, one per effect name. Handlers run strictly one at a time in the
order the computation requests them; an awaitable result is awaited before the
computation is resumed.

A handler that raises does not abort the run. Its exception object becomes the
resumption value, and the computation decides whether to treat it as an error
(see ``raise_if_failure``). ``TracifyConfig(handler_failures="throw")`` raises
it at the suspension point instead.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from tracify.computation import Computation
from tracify.config import TracifyConfig
from tracify.observe import Observer
from tracify.runtimes import AsyncioRuntime, HandlerTable, SyncRuntime

T = TypeVar("T")


async def handle(
    computation: Computation[T] | Callable[..., Any],
    handlers: HandlerTable,
    *,
    observer: Observer | None = None,
    config: TracifyConfig | None = None,
) -> T:
    """Run ``computation`` with ``handlers`` and return its result.

    Raises:
        MissingHandlerError: The computation requested an effect with no handler.
        Exception: Whatever the computation itself raised.
    """

    runtime = AsyncioRuntime(handlers, observer=observer, config=config)
    return await runtime.run(computation)


def handle_sync(
    computation: Computation[T] | Callable[..., Any],
    handlers: HandlerTable,
    *,
    observer: Observer | None = None,
    config: TracifyConfig | None = None,
) -> T:
    """Synchronous ``handle`` for handlers that never return awaitables."""

    runtime = SyncRuntime(handlers, observer=observer, config=config)
    return runtime.run(computation)


__all__ = ["handle", "handle_sync"]
