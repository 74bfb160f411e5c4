"""Repository for the registrations table."""

from __future__ import annotations

import logging
from datetime import datetime

import asyncpg

from promo_analytics.shared.errors import DB_ERRORS, StoreError
from promo_analytics.shared.models.registrations import NewRegistration, Registration

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, created_at, session_id, campaign_id, game_id, name, email, phone, score, duration_ms"
)


class RegistrationRepository:
    """Pure SQL operations for registrations."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def create(self, created_at: datetime, entry: NewRegistration) -> Registration:
        """Insert one registration and return the stored row."""
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO registrations
                        (created_at, session_id, campaign_id, game_id,
                         name, email, phone, score, duration_ms)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    RETURNING {_COLUMNS}
                    """,
                    created_at,
                    entry.session_id,
                    entry.campaign_id,
                    entry.game_id,
                    entry.name,
                    entry.email,
                    entry.phone,
                    entry.score,
                    entry.duration_ms,
                )
        except DB_ERRORS as e:
            logger.exception("Registration insert failed")
            raise StoreError(f"Failed to store registration: {type(e).__name__}") from e
        return Registration(**dict(row))

    async def list_recent(self, limit: int = 1000) -> list[Registration]:
        """Newest registrations first, capped at ``limit``."""
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {_COLUMNS} FROM registrations "
                    "ORDER BY created_at DESC, id DESC "
                    "LIMIT $1",
                    limit,
                )
        except DB_ERRORS as e:
            raise StoreError(f"Failed to read registrations: {type(e).__name__}") from e
        return [Registration(**dict(row)) for row in rows]

    async def list_created_since(
        self,
        since: datetime,
        campaign_id: str | None = None,
        game_id: str | None = None,
    ) -> list[datetime]:
        """Creation timestamps of registrations at or after ``since`` (exact-match filters)."""
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT created_at
                    FROM registrations
                    WHERE created_at >= $1
                      AND ($2::text IS NULL OR campaign_id = $2)
                      AND ($3::text IS NULL OR game_id = $3)
                    """,
                    since,
                    campaign_id,
                    game_id,
                )
        except DB_ERRORS as e:
            raise StoreError(f"Failed to read registrations: {type(e).__name__}") from e
        return [row["created_at"] for row in rows]
