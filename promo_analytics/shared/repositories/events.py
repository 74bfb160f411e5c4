"""Repository for the append-only events table."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

import asyncpg

from promo_analytics.shared.errors import DB_ERRORS, StoreError
from promo_analytics.shared.models.events import MetricEvent, NewEvent

logger = logging.getLogger(__name__)


class EventRepository:
    """Pure SQL operations for events.

    Rows are never updated or deleted here; the table is append-only.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    # ==================== Writes ====================

    async def insert_events(self, received_at: datetime, events: Sequence[NewEvent]) -> int:
        """Insert a whole batch in one transaction. Returns the number of rows written."""
        if not events:
            return 0
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    await conn.executemany(
                        """
                        INSERT INTO events
                            (received_at, client_ts, campaign_id, game_id, session_id,
                             anonymous_user_id, event_name, props)
                        VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                        """,
                        [
                            (
                                received_at,
                                e.client_ts,
                                e.campaign_id,
                                e.game_id,
                                e.session_id,
                                e.anonymous_user_id,
                                e.event_name,
                                e.props,
                            )
                            for e in events
                        ],
                    )
        except DB_ERRORS as e:
            logger.exception(f"Event batch insert failed ({len(events)} rows)")
            raise StoreError(f"Failed to store events: {type(e).__name__}") from e
        return len(events)

    # ==================== Reads ====================

    async def list_metric_events(
        self,
        since: datetime,
        event_names: Iterable[str],
        campaign_id: str | None = None,
        game_id: str | None = None,
    ) -> list[MetricEvent]:
        """Events with a client timestamp at or after ``since``, narrowed to ``event_names``.

        ``campaign_id`` / ``game_id`` are exact-match filters; NULL columns never match.
        """
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT event_name, client_ts
                    FROM events
                    WHERE client_ts IS NOT NULL
                      AND client_ts >= $1
                      AND event_name = ANY($2::text[])
                      AND ($3::text IS NULL OR campaign_id = $3)
                      AND ($4::text IS NULL OR game_id = $4)
                    """,
                    since,
                    list(event_names),
                    campaign_id,
                    game_id,
                )
        except DB_ERRORS as e:
            raise StoreError(f"Failed to read events: {type(e).__name__}") from e
        return [
            MetricEvent(event_name=row["event_name"], client_ts=row["client_ts"]) for row in rows
        ]

    async def list_campaigns(self) -> list[str]:
        """Distinct non-empty campaign ids, sorted."""
        return await self._distinct("campaign_id")

    async def list_games(self) -> list[str]:
        """Distinct non-empty game ids, sorted."""
        return await self._distinct("game_id")

    async def _distinct(self, column: str) -> list[str]:
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT DISTINCT {column} AS value FROM events "  # noqa: S608
                    f"WHERE {column} IS NOT NULL AND {column} <> '' "
                    "ORDER BY value"
                )
        except DB_ERRORS as e:
            raise StoreError(f"Failed to read {column} values: {type(e).__name__}") from e
        return [row["value"] for row in rows]
