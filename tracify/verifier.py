"""
Trace verifier.

``verify`` replays a computation against every trace of a program. Effect
requests are not handled: each one is compared with the trace's next ``Yield``
step and the computation is resumed with the result that step declares. The
first divergence raises a ``VerificationError`` subclass naming the trace, the
step, and what was expected versus observed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from tracify.computation import (
    Completed,
    Computation,
    Failed,
    State,
    Suspended,
    as_computation,
)
from tracify.config import TracifyConfig, resolve_config
from tracify.equality import deep_equal
from tracify.errors import (
    ArgumentMismatchError,
    EffectKindMismatchError,
    EffectNameMismatchError,
    ErrorMismatchError,
    ExpectedFailureButCompletedError,
    ExpectedFailureButSuspendedError,
    ExpectedReturnButFailedError,
    ExpectedReturnButSuspendedError,
    ReturnMismatchError,
    UnexpectedTerminationError,
    mismatch_detail,
)
from tracify.model import EffectDescriptor, Program, Returns, Step, Throws, Trace, Yield

logger = logging.getLogger(__name__)


def _describe(state: State) -> str:
    if isinstance(state, Suspended):
        return f"requested {state.kind} effect {state.name!r}"
    if isinstance(state, Completed):
        return f"returned {state.value!r}"
    return f"raised {state.error!r}"


def _observed(state: State) -> Any:
    if isinstance(state, Suspended):
        return state.request
    if isinstance(state, Completed):
        return state.value
    return state.error


def _cause(state: State) -> BaseException | None:
    return state.error if isinstance(state, Failed) else None


def _check_yield(
    state: State,
    expected: EffectDescriptor,
    trace_index: int,
    step_index: int,
) -> State:
    where = {"trace_index": trace_index, "step_index": step_index}
    if not isinstance(state, Suspended):
        raise UnexpectedTerminationError(
            expected=expected,
            observed=_observed(state),
            detail=f"expected effect {expected.name!r}, but the computation {_describe(state)}",
            **where,
        ) from _cause(state)
    if state.name != expected.name:
        raise EffectNameMismatchError(
            expected=expected.name,
            observed=state.name,
            detail=f"expected {expected.name!r}, got {state.name!r}",
            **where,
        )
    if state.kind != expected.kind:
        raise EffectKindMismatchError(
            expected=expected.kind,
            observed=state.kind,
            detail=f"effect {expected.name!r} expected as {expected.kind!r}, called as {state.kind!r}",
            **where,
        )
    if not deep_equal(state.arguments, expected.arguments):
        raise ArgumentMismatchError(
            expected=expected.arguments,
            observed=state.arguments,
            detail=f"effect {expected.name!r}: "
            + mismatch_detail(expected.arguments, state.arguments),
            **where,
        )
    return state.resume(expected.result)


def _check_throws(state: State, expected: Any, trace_index: int, step_index: int) -> None:
    where = {"trace_index": trace_index, "step_index": step_index}
    if isinstance(state, Completed):
        raise ExpectedFailureButCompletedError(
            expected=expected,
            observed=state.value,
            detail=mismatch_detail(expected, state.value),
            **where,
        )
    if isinstance(state, Suspended):
        raise ExpectedFailureButSuspendedError(
            expected=expected,
            observed=state.request,
            detail=f"the computation {_describe(state)}",
            **where,
        )
    if not deep_equal(state.error, expected):
        raise ErrorMismatchError(
            expected=expected,
            observed=state.error,
            detail=mismatch_detail(expected, state.error),
            **where,
        ) from state.error


def _check_returns(state: State, expected: Any, trace_index: int, step_index: int) -> None:
    where = {"trace_index": trace_index, "step_index": step_index}
    if isinstance(state, Failed):
        raise ExpectedReturnButFailedError(
            expected=expected,
            observed=state.error,
            detail=mismatch_detail(expected, state.error),
            **where,
        ) from state.error
    if isinstance(state, Suspended):
        raise ExpectedReturnButSuspendedError(
            expected=expected,
            observed=state.request,
            detail=f"the computation {_describe(state)}",
            **where,
        )
    if not deep_equal(state.value, expected):
        raise ReturnMismatchError(
            expected=expected,
            observed=state.value,
            detail=mismatch_detail(expected, state.value),
            **where,
        )


def _check_step(state: State, step: Step, trace_index: int, step_index: int) -> State:
    match step:
        case Yield(effect=expected):
            return _check_yield(state, expected, trace_index, step_index)
        case Throws(error=expected):
            _check_throws(state, expected, trace_index, step_index)
            return state
        case Returns(value=expected):
            _check_returns(state, expected, trace_index, step_index)
            return state
    raise TypeError(f"Unknown step: {step!r}")


def verify_trace(
    trace: Trace,
    computation: Computation[Any] | Callable[..., Any],
    *,
    trace_index: int = 0,
    config: TracifyConfig | None = None,
) -> None:
    """Check one trace against a fresh run of ``computation``.

    Stops at the first divergence. A trace without a terminal step passes once
    its last step matched, whether or not the computation has terminated.
    """

    cfg = resolve_config(config)
    subject = as_computation(computation)
    state = subject.start()
    try:
        for step_index, step in enumerate(trace.steps):
            logger.log(
                cfg.step_log_level,
                "trace %d step %d: %s (computation %s)",
                trace_index,
                step_index,
                type(step).__name__,
                _describe(state),
            )
            state = _check_step(state, step, trace_index, step_index)
    finally:
        if isinstance(state, Suspended):
            state.close()
    logger.debug("trace %d passed (%d steps)", trace_index, len(trace.steps))


def verify(
    program: Program | Iterable[Trace],
    computation: Computation[Any] | Callable[..., Any],
    *,
    config: TracifyConfig | None = None,
) -> None:
    """Check every trace of ``program`` against ``computation``.

    Raises the first ``VerificationError`` encountered; later traces are not
    checked once one fails. Wrap ``verify_trace`` per trace to check them all.
    """

    if not isinstance(program, Program):
        program = Program.of(program)
    cfg = resolve_config(config)
    subject = as_computation(computation)
    for trace_index, trace in enumerate(program.traces):
        verify_trace(trace, subject, trace_index=trace_index, config=cfg)
    logger.log(
        cfg.step_log_level,
        "verified %s against %d trace(s)",
        subject,
        len(program.traces),
    )


__all__ = ["verify", "verify_trace"]
