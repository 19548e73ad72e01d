"""Runtime implementations driving a computation against real handlers.

- AsyncioRuntime: handlers may return awaitables, each awaited before resuming
- SyncRuntime: plain synchronous handlers only
"""

from tracify.runtimes.base import (
    HandledRequest,
    Handler,
    HandlerFailure,
    HandlerTable,
    RuntimeMixin,
    RuntimeResult,
)
from tracify.runtimes.asyncio_runtime import AsyncioRuntime
from tracify.runtimes.sync import SyncRuntime, AsyncHandlerInSyncRuntimeError

__all__ = [
    "AsyncHandlerInSyncRuntimeError",
    "AsyncioRuntime",
    "HandledRequest",
    "Handler",
    "HandlerFailure",
    "HandlerTable",
    "RuntimeMixin",
    "RuntimeResult",
    "SyncRuntime",
]
