"""Tests for handle(), handle_sync() and the runtimes behind them."""

from __future__ import annotations

import asyncio
import logging

import pytest

from tracify import (
    AsyncHandlerInSyncRuntimeError,
    AsyncioRuntime,
    HandledRequest,
    HandlerFailure,
    MissingHandlerError,
    RecordingObserver,
    SyncRuntime,
    TracifyConfig,
    computation,
    handle,
    handle_sync,
    raise_if_failure,
)


@computation
def roll(ctx):
    return (yield ctx.random())


@computation
def strict_roll(ctx):
    value = yield ctx.random()
    return raise_if_failure(value)


# ============================================================================
# Reference scenarios
# ============================================================================


@pytest.mark.asyncio
async def test_handler_value_is_returned():
    assert await handle(roll, {"random": lambda: 42}) == 42


@pytest.mark.asyncio
async def test_handler_failure_reraised_by_computation():
    boom = ValueError("boom")

    def failing():
        raise boom

    with pytest.raises(ValueError, match="boom") as excinfo:
        await handle(strict_roll, {"random": failing})

    assert excinfo.value is boom


# ============================================================================
# Sequencing
# ============================================================================


@pytest.mark.asyncio
async def test_handlers_run_in_program_order_regardless_of_delay():
    started: list[str] = []
    finished: list[str] = []

    def delayed(name: str, delay: float):
        async def handler():
            started.append(name)
            await asyncio.sleep(delay)
            finished.append(name)
            return name

        return handler

    @computation
    def abc(ctx):
        a = yield ctx.a()
        b = yield ctx.b()
        c = yield ctx.c()
        return [a, b, c]

    result = await handle(
        abc,
        {"a": delayed("a", 0.03), "b": delayed("b", 0.0), "c": delayed("c", 0.01)},
    )

    assert result == ["a", "b", "c"]
    assert started == ["a", "b", "c"]
    assert finished == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_no_handler_call_for_unrequested_effects():
    calls: list[str] = []

    @computation
    def only_first(ctx):
        return (yield ctx.first())

    await handle(
        only_first,
        {"first": lambda: calls.append("first"), "second": lambda: calls.append("second")},
    )

    assert calls == ["first"]


@pytest.mark.asyncio
async def test_tag_handler_receives_fragments_then_values(customers_io):
    seen = {}

    def sql(strings, *params):
        seen["sql"] = (strings, params)
        return [{"id": 1, "name": "Alice"}]

    def fetch(url, options):
        seen["fetch"] = (url, options)
        return []

    assert await handle(customers_io, {"sql": sql, "fetch": fetch}) is None
    assert seen["sql"] == (
        ('select * from users where "id" = ', ' and "name" = ', ""),
        (1, "Alice"),
    )
    assert seen["fetch"] == ("stripe/customers", {"query": {"userId": 1}})


# ============================================================================
# Failures
# ============================================================================


class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_handler_names_the_effect(self):
        with pytest.raises(MissingHandlerError, match="'random'") as excinfo:
            await handle(roll, {"clock": lambda: 0})

        assert excinfo.value.name == "random"
        assert excinfo.value.available == ("clock",)
        assert isinstance(excinfo.value, KeyError)

    @pytest.mark.asyncio
    async def test_missing_handler_closes_the_computation(self):
        closed = []

        @computation
        def guarded(ctx):
            try:
                return (yield ctx.nope())
            finally:
                closed.append(True)

        with pytest.raises(MissingHandlerError):
            await handle(guarded, {})

        assert closed == [True]

    @pytest.mark.asyncio
    async def test_cancelled_handler_closes_the_computation(self):
        closed = []

        @computation
        def guarded(ctx):
            try:
                return (yield ctx.wait())
            finally:
                closed.append(True)

        async def cancelled():
            raise asyncio.CancelledError

        with pytest.raises(asyncio.CancelledError):
            await handle(guarded, {"wait": cancelled})

        assert closed == [True]

    @pytest.mark.asyncio
    async def test_handler_failure_is_resumed_as_value(self):
        error = RuntimeError("down")

        def failing():
            raise error

        assert await handle(roll, {"random": failing}) is error

    @pytest.mark.asyncio
    async def test_async_handler_failure_is_resumed_as_value(self):
        async def failing():
            raise RuntimeError("down")

        result = await handle(roll, {"random": failing})
        assert isinstance(result, RuntimeError)

    @pytest.mark.asyncio
    async def test_computation_may_recover_from_failure_value(self):
        @computation
        def fallback(ctx):
            value = yield ctx.random()
            if isinstance(value, Exception):
                return 0
            return value

        def failing():
            raise RuntimeError("down")

        assert await handle(fallback, {"random": failing}) == 0

    @pytest.mark.asyncio
    async def test_throw_policy_raises_at_suspension_point(self):
        @computation
        def guarded(ctx):
            try:
                yield ctx.random()
            except RuntimeError as exc:
                return f"caught {exc}"
            return "not raised"

        def failing():
            raise RuntimeError("down")

        result = await handle(
            guarded,
            {"random": failing},
            config=TracifyConfig(handler_failures="throw"),
        )
        assert result == "caught down"

    @pytest.mark.asyncio
    async def test_computation_failure_propagates(self):
        @computation
        def broken(ctx):
            yield ctx.random()
            raise LookupError("missing")

        with pytest.raises(LookupError, match="missing"):
            await handle(broken, {"random": lambda: 1})


# ============================================================================
# Observers and run_safe
# ============================================================================


class TestObservation:
    @pytest.mark.asyncio
    async def test_observer_sees_enter_and_leave(self):
        observer = RecordingObserver()

        @computation
        def add(ctx):
            a = yield ctx.number(1)
            b = yield ctx.number(2)
            return a + b

        result = await handle(add, {"number": lambda n: n * 10}, observer=observer)

        assert result == 30
        assert [(c.action, c.name, c.payload) for c in observer.calls] == [
            ("enter", "number", (1,)),
            ("leave", "number", 10),
            ("enter", "number", (2,)),
            ("leave", "number", 20),
        ]
        assert observer.names == ["number", "number"]

    @pytest.mark.asyncio
    async def test_run_safe_records_requests(self):
        def failing():
            raise RuntimeError("down")

        result = await AsyncioRuntime({"random": failing}).run_safe(strict_roll)

        assert result.is_err
        assert isinstance(result.error, RuntimeError)
        assert len(result.requests) == 1
        assert isinstance(result.requests[0], HandlerFailure)
        assert result.failures == result.requests

    @pytest.mark.asyncio
    async def test_run_safe_ok(self):
        result = await AsyncioRuntime({"random": lambda: 7}).run_safe(roll)

        assert result.is_ok
        assert result.value == 7
        assert result.requests == (HandledRequest(result.requests[0].request, 7),)
        assert result.display() == "Ok(7) after [random]"

    @pytest.mark.asyncio
    async def test_debug_logging(self, caplog):
        with caplog.at_level(logging.INFO, logger="tracify.runtimes"):
            await handle(roll, {"random": lambda: 3}, config=TracifyConfig(debug=True))

        assert any("effect random fn -> 3" in r.getMessage() for r in caplog.records)


# ============================================================================
# SyncRuntime
# ============================================================================


class TestSyncRuntime:
    def test_handle_sync(self):
        assert handle_sync(roll, {"random": lambda: 4}) == 4

    def test_rejects_awaitable_handlers(self):
        async def later():
            return 1

        with pytest.raises(AsyncHandlerInSyncRuntimeError, match="'random'"):
            handle_sync(roll, {"random": later})

    def test_aborted_run_closes_the_computation(self):
        closed = []

        @computation
        def guarded(ctx):
            try:
                return (yield ctx.wait())
            finally:
                closed.append(True)

        async def later():
            return 1

        with pytest.raises(MissingHandlerError):
            handle_sync(guarded, {})
        with pytest.raises(AsyncHandlerInSyncRuntimeError):
            handle_sync(guarded, {"wait": later})

        assert closed == [True, True]

    def test_effect_named_get(self):
        @computation
        def fetch_users(ctx):
            return (yield ctx.get("/users"))

        assert handle_sync(fetch_users, {"get": lambda path: [path]}) == ["/users"]

    def test_run_safe_missing_handler(self):
        result = SyncRuntime({}).run_safe(roll)

        assert result.is_err
        assert isinstance(result.error, MissingHandlerError)

    def test_rejects_non_callable_handler(self):
        with pytest.raises(TypeError, match="must be callable"):
            SyncRuntime({"random": 42})

    def test_handler_table_is_frozen(self):
        table = {"random": lambda: 1}
        runtime = SyncRuntime(table)
        table["random"] = lambda: 2

        assert runtime.run(roll) == 1

    def test_bound_arguments(self):
        @computation
        def scaled(ctx, factor, *, offset=0):
            value = yield ctx.random()
            return value * factor + offset

        assert handle_sync(scaled(3, offset=1), {"random": lambda: 2}) == 7
