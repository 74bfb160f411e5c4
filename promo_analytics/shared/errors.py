"""Error taxonomy shared by repositories, services and routers."""

from __future__ import annotations

import asyncpg


class ValidationError(ValueError):
    """Client input is malformed, oversized or missing a required field.

    Routers answer with 400 and the message. Never retried.
    """


class StoreError(RuntimeError):
    """The event store failed to read or commit.

    Raised by repositories in place of driver exceptions; routers answer
    with 500. A failed batch write is never partially committed.
    """


# Driver-level failures translated into StoreError by the repositories
DB_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)
