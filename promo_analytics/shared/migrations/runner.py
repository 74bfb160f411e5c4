"""Plain-SQL migration runner with a tracking table."""

from __future__ import annotations

import logging
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

VERSIONS_DIR = Path(__file__).resolve().parent / "versions"

# Session-level advisory lock key shared by every process migrating this database
MIGRATION_LOCK_KEY = 0x70726F6D6F5F6D67


def discover(migrations_dir: Path | None = None) -> list[Path]:
    """Return migration files in apply order (the ``NNN_`` prefix sorts them)."""
    migrations_dir = migrations_dir or VERSIONS_DIR
    return sorted(migrations_dir.glob("*.sql"))


class MigrationRunner:
    """Bring the event store schema up to date.

    Migrations are SQL files in ``versions/`` named ``NNN_description.sql``
    and are recorded in ``schema_migrations`` once applied. Several workers
    may start against the same database at once: the whole run holds a
    Postgres advisory lock, and the applied set is read only after the
    lock is granted, so exactly one worker applies each version and the
    rest find nothing pending.
    """

    TRACKING_TABLE = "schema_migrations"

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def run_pending(self, migrations_dir: Path | None = None) -> list[str]:
        """Apply every pending migration in order. Returns the newly applied versions."""
        sql_files = discover(migrations_dir)
        if not sql_files:
            logger.info(f"No migration files found in {migrations_dir or VERSIONS_DIR}")
            return []

        async with self.pool.acquire() as conn:
            await conn.execute("SELECT pg_advisory_lock($1)", MIGRATION_LOCK_KEY)
            try:
                newly_applied = await self._apply_missing(conn, sql_files)
            finally:
                await conn.execute("SELECT pg_advisory_unlock($1)", MIGRATION_LOCK_KEY)

        if newly_applied:
            logger.info(f"Applied {len(newly_applied)} migration(s): {', '.join(newly_applied)}")
        else:
            logger.info("Database schema is up to date")
        return newly_applied

    async def _apply_missing(
        self, conn: asyncpg.Connection, sql_files: list[Path]
    ) -> list[str]:
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.TRACKING_TABLE} (
                version    TEXT PRIMARY KEY,
                name       TEXT NOT NULL,
                applied_at TIMESTAMPTZ DEFAULT NOW()
            )
            """
        )
        rows = await conn.fetch(f"SELECT version FROM {self.TRACKING_TABLE}")  # noqa: S608
        applied = {row["version"] for row in rows}

        newly_applied: list[str] = []
        for sql_path in sql_files:
            version = sql_path.stem
            if version in applied:
                continue
            logger.info(f"Applying migration: {version}")
            # A version and its tracking row commit together
            async with conn.transaction():
                await conn.execute(sql_path.read_text(encoding="utf-8"))
                await conn.execute(
                    f"INSERT INTO {self.TRACKING_TABLE} (version, name) VALUES ($1, $2)",
                    version,
                    sql_path.name,
                )
            newly_applied.append(version)
        return newly_applied
