"""Verify and run one computation against a declared program.

The computation looks users up with a templated SQL query, then fetches the
stripe customer of each user. The program declares three runs: no users, a
missing result, and one user with a customer record.

Key concepts:
- Declare effects with tag()/fn() and script runs with trace()/program()
- verify() checks the computation against every trace without real handlers
- handle() runs the same computation against real (here: in-memory) handlers

Run with: uv run python examples/users_and_stripe.py
"""

import asyncio

from tracify import (
    fn,
    handle,
    implementation,
    loguru_observer,
    program,
    raise_if_failure,
    returns,
    tag,
    throws,
    trace,
    verify,
    yields,
)

# ============================================================================
# Step 1: Declare the expected runs
# ============================================================================

sql = tag("sql")
fetch = fn("fetch")

ALICE = {"id": 1, "name": "Alice"}
CUSTOMER = {"id": 1, "name": "Alice", "stripeCustomerId": "cus_1234567890"}

IO = program(
    [
        trace([yields(sql.takes(1, "Alice").returns([])), throws(LookupError("no users"))]),
        trace([yields(sql.takes(1, "Alice").returns(None)), throws(LookupError("no users"))]),
        trace(
            [
                yields(sql.takes(1, "Alice").returns([ALICE])),
                yields(
                    fetch.takes("stripe/customers", {"query": {"userId": 1}}).returns([CUSTOMER])
                ),
                returns([CUSTOMER]),
            ]
        ),
    ]
)


# ============================================================================
# Step 2: Write the computation
# ============================================================================


def _customers(ctx):
    users = raise_if_failure(
        (yield ctx.sql(('select * from users where "id" = ', ' and "name" = ', ""), 1, "Alice"))
    )
    if not users:
        raise LookupError("no users")

    customers = []
    for user in users:
        found = yield ctx.fetch("stripe/customers", {"query": {"userId": user["id"]}})
        customers.extend(raise_if_failure(found))
    return customers


customers = implementation(IO, _customers)


# ============================================================================
# Step 3: Verify, then run against handlers
# ============================================================================

TABLE = {"users": [ALICE], "stripe/customers": [CUSTOMER]}


def run_sql(fragments, *params):
    print(f"sql: {'?'.join(fragments).strip()} {params}")
    return [row for row in TABLE["users"] if (row["id"], row["name"]) == params]


async def run_fetch(url, options):
    await asyncio.sleep(0.01)
    user_id = options["query"]["userId"]
    return [row for row in TABLE[url] if row["id"] == user_id]


async def main():
    verify(IO, customers)
    print("verify: all traces conform")

    result = await handle(
        customers,
        {"sql": run_sql, "fetch": run_fetch},
        observer=loguru_observer(level="INFO"),
    )
    print(f"handle: {result}")


if __name__ == "__main__":
    asyncio.run(main())
