"""PostgreSQL connection pool lifecycle for the event store.

The pool is opened once at process start, handed explicitly to the
repositories, and closed at shutdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import asyncpg

logger = logging.getLogger(__name__)


@dataclass
class PoolConfig:
    """Database pool configuration with sensible defaults."""

    min_size: int = 1
    max_size: int = 10
    timeout: float = 10.0
    command_timeout: float = 15.0
    max_inactive_connection_lifetime: float = 300.0
    ssl: str | None = None  # e.g. "require" for managed Postgres


class DatabaseManager:
    """Manages the asyncpg pool backing the event store."""

    def __init__(self, database_url: str, config: PoolConfig | None = None):
        self.database_url = database_url
        self.config = config or PoolConfig()
        self._pool: asyncpg.Pool | None = None

    def _pool_kwargs(self) -> dict[str, Any]:
        """Build asyncpg.create_pool kwargs.

        ``command_timeout`` bounds every query, so no request can hang on
        the store indefinitely.
        """
        cfg = self.config
        kwargs: dict[str, Any] = {
            "dsn": self.database_url,
            "min_size": cfg.min_size,
            "max_size": cfg.max_size,
            "timeout": cfg.timeout,
            "command_timeout": cfg.command_timeout,
            "max_inactive_connection_lifetime": cfg.max_inactive_connection_lifetime,
        }
        if cfg.ssl:
            kwargs["ssl"] = cfg.ssl
        return kwargs

    # ── Lifecycle ────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Create the pool and verify it can run a query."""
        if self._pool is not None:
            logger.warning("Database pool already initialized")
            return

        try:
            self._pool = await asyncpg.create_pool(**self._pool_kwargs())
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
        except Exception as e:
            logger.exception(f"Failed to create database pool: {type(e).__name__}: {e}")
            if self._pool is not None:
                await self._pool.close()
                self._pool = None
            raise

        cfg = self.config
        logger.info(f"Database pool created (size={cfg.min_size}-{cfg.max_size})")

    async def disconnect(self) -> None:
        """Close the pool."""
        if self._pool is None:
            return

        try:
            await self._pool.close()
            logger.info("Database pool closed")
        except Exception as e:
            logger.exception(f"Error closing database pool: {e}")
        finally:
            self._pool = None

    async def check_health(self) -> bool:
        """Test if the pool can actually execute a query."""
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire(timeout=2.0) as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception:
            return False

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool. Raises if not initialized."""
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self._pool
