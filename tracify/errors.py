"""Exception taxonomy for tracify.

Runtime errors (``MissingHandlerError`` and friends) abort a ``handle`` call.
Verifier faults derive from ``VerificationError``, an ``AssertionError``, so a
failed ``verify`` reads as an ordinary assertion failure under pytest.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from tracify._format import serialize


class TracifyError(Exception):
    """Base class for every error raised by tracify itself."""


class MissingHandlerError(TracifyError, KeyError):
    """Raised when the interpreter has no handler for a requested effect."""

    def __init__(self, name: str, available: Iterable[str] = ()) -> None:
        self.name = name
        self.available = tuple(available)
        known = ", ".join(repr(key) for key in self.available) or "<none>"
        super().__init__(
            f"No handler for effect {name!r} (known handlers: {known})\n"
            f"Hint: pass it in the handler table, e.g. `handle(io, {{{name!r}: ...}})`"
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0])


class AsyncHandlerInSyncRuntimeError(TracifyError):
    """Raised when a handler returns an awaitable under ``SyncRuntime``."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Handler for effect {name!r} returned an awaitable. "
            "SyncRuntime cannot wait for it; use handle() / AsyncioRuntime."
        )


class ContinuationReusedError(TracifyError, RuntimeError):
    """Raised when a suspended state is resumed more than once."""


class UndeclaredEffectError(TracifyError, AttributeError):
    """Raised when a computation bound to a program requests an unknown effect."""

    def __init__(self, name: str, declared: Iterable[str]) -> None:
        declared = tuple(declared)
        super().__init__(
            f"Effect {name!r} is not declared by the program "
            f"(declared: {', '.join(repr(key) for key in declared) or '<none>'})"
        )
        # AttributeError.__init__ resets ``name``.
        self.name = name
        self.declared = declared


class InvalidTraceError(TracifyError, ValueError):
    """Raised when a trace or program violates its structural invariants."""


class VerificationError(TracifyError, AssertionError):
    """A computation diverged from the trace it was verified against."""

    summary = "verification failed"

    def __init__(
        self,
        *,
        trace_index: int,
        step_index: int,
        expected: Any,
        observed: Any,
        detail: str | None = None,
    ) -> None:
        self.trace_index = trace_index
        self.step_index = step_index
        self.expected = expected
        self.observed = observed
        message = f"trace {trace_index}, step {step_index}: {self.summary}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnexpectedTerminationError(VerificationError):
    summary = "expected an effect request but the computation terminated"


class EffectNameMismatchError(VerificationError):
    summary = "effect name mismatch"


class EffectKindMismatchError(VerificationError):
    summary = "effect kind mismatch"


class ArgumentMismatchError(VerificationError):
    summary = "argument mismatch"


class ExpectedFailureButCompletedError(VerificationError):
    summary = "expected the computation to raise but it returned"


class ExpectedFailureButSuspendedError(VerificationError):
    summary = "expected the computation to raise but it requested an effect"


class ExpectedReturnButFailedError(VerificationError):
    summary = "expected the computation to return but it raised"


class ExpectedReturnButSuspendedError(VerificationError):
    summary = "expected the computation to return but it requested an effect"


class ErrorMismatchError(VerificationError):
    summary = "raised error mismatch"


class ReturnMismatchError(VerificationError):
    summary = "return value mismatch"


def mismatch_detail(expected: Any, observed: Any) -> str:
    """Format the expected/observed pair the way every verifier fault reports it."""

    return f"expected {serialize(expected)}, got {serialize(observed)}"


__all__ = [
    "ArgumentMismatchError",
    "AsyncHandlerInSyncRuntimeError",
    "ContinuationReusedError",
    "EffectKindMismatchError",
    "EffectNameMismatchError",
    "ErrorMismatchError",
    "ExpectedFailureButCompletedError",
    "ExpectedFailureButSuspendedError",
    "ExpectedReturnButFailedError",
    "ExpectedReturnButSuspendedError",
    "InvalidTraceError",
    "MissingHandlerError",
    "ReturnMismatchError",
    "TracifyError",
    "UndeclaredEffectError",
    "UnexpectedTerminationError",
    "VerificationError",
    "mismatch_detail",
]
