"""
Pytest configuration for tracify tests.

Provides the users/stripe program used across interpreter and verifier tests,
and keeps ``TRACIFY_*`` variables from the outer environment out of the runs.
"""

from __future__ import annotations

import pytest

from tracify import Computation, computation, fn, program, returns, tag, throws, trace, yields
from tracify.model import Program

USER_QUERY = ('select * from users where "id" = ', ' and "name" = ', "")
ALICE = {"id": 1, "name": "Alice"}
ALICE_CUSTOMER = {"id": 1, "name": "Alice", "stripeCustomerId": "cus_1234567890"}


@pytest.fixture(autouse=True)
def _clean_tracify_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TRACIFY_DEBUG", raising=False)
    monkeypatch.delenv("TRACIFY_HANDLER_FAILURES", raising=False)


@pytest.fixture
def users_program() -> Program:
    """Three runs: empty result, missing result, one user with a stripe lookup."""

    sql = tag("sql")
    fetch = fn("fetch")
    return program(
        [
            trace(
                [
                    yields(sql.takes(1, "Alice").returns([])),
                    throws(LookupError("no users")),
                ]
            ),
            trace(
                [
                    yields(sql.takes(1, "Alice").returns(None)),
                    throws(LookupError("no users")),
                ]
            ),
            trace(
                [
                    yields(sql.takes(1, "Alice").returns([ALICE])),
                    yields(
                        fetch.takes("stripe/customers", {"query": {"userId": 1}}).returns(
                            [ALICE_CUSTOMER]
                        )
                    ),
                    returns(None),
                ]
            ),
        ]
    )


def load_customers(ctx):
    users = yield ctx.sql(USER_QUERY, 1, "Alice")
    if not users:
        raise LookupError("no users")

    for user in users:
        yield ctx.fetch("stripe/customers", {"query": {"userId": user["id"]}})


@pytest.fixture
def customers_io() -> Computation:
    return computation(load_customers)
