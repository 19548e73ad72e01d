"""
tracify - effect-tracing test oracle.

Describe an effectful computation as a generator requesting named effects,
run it against real handlers with ``handle``, and check it against a
hand-written program of expected traces with ``verify``.

Example:
    >>> from tracify import fn, handle, implementation, program, raise_if_failure
    >>> from tracify import returns, trace, verify, yields
    >>>
    >>> RANDOM = program([trace([yields(fn("random").takes().returns(4)), returns(4)])])
    >>>
    >>> def _roll(ctx):
    ...     value = yield ctx.random()
    ...     return raise_if_failure(value)
    >>> roll = implementation(RANDOM, _roll)
    >>>
    >>> verify(RANDOM, roll)
    >>> await handle(roll, {"random": lambda: 4})
    4
"""

from tracify._vendor import Err, FrozenDict, Ok, Result
from tracify.builders import (
    EffectBuilder,
    fn,
    implementation,
    program,
    returns,
    tag,
    throws,
    trace,
    yields,
)
from tracify.computation import (
    Capabilities,
    Completed,
    Computation,
    Failed,
    State,
    Suspended,
    classify_call,
    computation,
    raise_if_failure,
)
from tracify.config import TracifyConfig
from tracify.equality import deep_equal
from tracify.errors import (
    ArgumentMismatchError,
    AsyncHandlerInSyncRuntimeError,
    ContinuationReusedError,
    EffectKindMismatchError,
    EffectNameMismatchError,
    ErrorMismatchError,
    ExpectedFailureButCompletedError,
    ExpectedFailureButSuspendedError,
    ExpectedReturnButFailedError,
    ExpectedReturnButSuspendedError,
    InvalidTraceError,
    MissingHandlerError,
    ReturnMismatchError,
    TracifyError,
    UndeclaredEffectError,
    UnexpectedTerminationError,
    VerificationError,
)
from tracify.interpreter import handle, handle_sync
from tracify.model import (
    EffectDescriptor,
    EffectKind,
    EffectRequest,
    Program,
    Returns,
    Step,
    Throws,
    Trace,
    Yield,
)
from tracify.observe import Observer, ObservedCall, RecordingObserver, loguru_observer
from tracify.runtimes import (
    AsyncioRuntime,
    HandledRequest,
    HandlerFailure,
    RuntimeResult,
    SyncRuntime,
)
from tracify.verifier import verify, verify_trace

__version__ = "0.1.0"

__all__ = [
    "ArgumentMismatchError",
    "AsyncHandlerInSyncRuntimeError",
    "AsyncioRuntime",
    "Capabilities",
    "Completed",
    "Computation",
    "ContinuationReusedError",
    "EffectBuilder",
    "EffectDescriptor",
    "EffectKind",
    "EffectKindMismatchError",
    "EffectNameMismatchError",
    "EffectRequest",
    "Err",
    "ErrorMismatchError",
    "ExpectedFailureButCompletedError",
    "ExpectedFailureButSuspendedError",
    "ExpectedReturnButFailedError",
    "ExpectedReturnButSuspendedError",
    "Failed",
    "FrozenDict",
    "HandledRequest",
    "HandlerFailure",
    "InvalidTraceError",
    "MissingHandlerError",
    "ObservedCall",
    "Observer",
    "Ok",
    "Program",
    "RecordingObserver",
    "Result",
    "ReturnMismatchError",
    "Returns",
    "RuntimeResult",
    "State",
    "Step",
    "Suspended",
    "SyncRuntime",
    "Throws",
    "Trace",
    "TracifyConfig",
    "TracifyError",
    "UndeclaredEffectError",
    "UnexpectedTerminationError",
    "VerificationError",
    "Yield",
    "classify_call",
    "computation",
    "deep_equal",
    "fn",
    "handle",
    "handle_sync",
    "implementation",
    "loguru_observer",
    "program",
    "raise_if_failure",
    "returns",
    "tag",
    "throws",
    "trace",
    "verify",
    "verify_trace",
    "yields",
]
