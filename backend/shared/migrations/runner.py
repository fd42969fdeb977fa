"""Apply versioned SQL migrations and record them in a tracking table."""

from __future__ import annotations

import logging
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

VERSIONS_DIR = Path(__file__).resolve().parent / "versions"


class MigrationRunner:
    """Run ``versions/NNN_description.sql`` files in filename order.

    Each file runs in its own transaction together with its row in
    ``schema_migrations``, so a failed migration leaves no partial record.
    """

    TRACKING_TABLE = "schema_migrations"

    def __init__(self, pool: asyncpg.Pool, migrations_dir: Path | None = None) -> None:
        self.pool = pool
        self.migrations_dir = migrations_dir or VERSIONS_DIR

    async def ensure_table(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.TRACKING_TABLE} (
                    version    TEXT PRIMARY KEY,
                    name       TEXT NOT NULL,
                    applied_at TIMESTAMPTZ DEFAULT NOW()
                )
                """
            )

    async def get_applied(self) -> set[str]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT version FROM {self.TRACKING_TABLE}"  # noqa: S608
            )
        return {row["version"] for row in rows}

    def discover(self) -> list[Path]:
        return sorted(self.migrations_dir.glob("*.sql"))

    async def pending(self) -> list[str]:
        """Versions present on disk but not yet applied."""
        await self.ensure_table()
        applied = await self.get_applied()
        return [path.stem for path in self.discover() if path.stem not in applied]

    async def run_pending(self) -> list[str]:
        """Apply every pending migration. Returns the versions applied."""
        await self.ensure_table()
        applied = await self.get_applied()

        newly_applied: list[str] = []
        for sql_path in self.discover():
            version = sql_path.stem
            if version in applied:
                continue
            await self._apply_one(version, sql_path.name, sql_path.read_text(encoding="utf-8"))
            newly_applied.append(version)

        if newly_applied:
            logger.info("Applied %d migration(s): %s", len(newly_applied), ", ".join(newly_applied))
        else:
            logger.info("Database schema is up to date")
        return newly_applied

    async def _apply_one(self, version: str, name: str, sql: str) -> None:
        logger.info("Applying migration: %s", version)
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    f"INSERT INTO {self.TRACKING_TABLE} (version, name) VALUES ($1, $2)",
                    version,
                    name,
                )
