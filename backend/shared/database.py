"""PostgreSQL connection pool management for StreamLens services."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, fields
from typing import Any, ClassVar

import asyncpg

logger = logging.getLogger(__name__)


@dataclass
class PoolConfig:
    """Connection pool settings."""

    min_size: int = 1
    max_size: int = 5
    timeout: float = 5.0
    command_timeout: float = 15.0
    max_inactive_connection_lifetime: float = 60.0
    max_retries: int = 3
    retry_delay: float = 2.0
    ssl: str | None = None

    # api: bursty reads from the comparison endpoints
    # scripts: one-off maintenance jobs
    _SERVICE_PRESETS: ClassVar[dict[str, dict]] = {
        "api": {"min_size": 1, "max_size": 10},
        "scripts": {"min_size": 1, "max_size": 2, "max_retries": 1},
    }

    @classmethod
    def for_service(cls, service: str, **overrides) -> PoolConfig:
        """Build a config from the service preset plus explicit overrides.

        Unknown keys are ignored so callers can pass settings through blindly.
        """
        valid_keys = {f.name for f in fields(cls) if not f.name.startswith("_")}
        preset = dict(cls._SERVICE_PRESETS.get(service, {}))
        preset.update(overrides)
        return cls(**{k: v for k, v in preset.items() if k in valid_keys})

    def pool_kwargs(self, dsn: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "dsn": dsn,
            "min_size": self.min_size,
            "max_size": self.max_size,
            "timeout": self.timeout,
            "command_timeout": self.command_timeout,
            "max_inactive_connection_lifetime": self.max_inactive_connection_lifetime,
        }
        if self.ssl:
            kwargs["ssl"] = self.ssl
        return kwargs


class DatabaseManager:
    """Owns the asyncpg pool: connect with retry, health check, shutdown."""

    def __init__(self, database_url: str, config: PoolConfig | None = None):
        self.database_url = database_url
        self.config = config or PoolConfig()
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Create the pool, retrying with exponential backoff."""
        if self._pool is not None:
            logger.warning("Database pool already initialized")
            return

        cfg = self.config
        for attempt in range(1, cfg.max_retries + 1):
            try:
                self._pool = await asyncpg.create_pool(**cfg.pool_kwargs(self.database_url))
                async with self._pool.acquire() as conn:
                    await conn.fetchval("SELECT 1")
                logger.info(f"Database pool ready (size={cfg.min_size}-{cfg.max_size})")
                return
            except Exception as e:
                await self._discard_pool()
                if attempt < cfg.max_retries:
                    delay = cfg.retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Database connection attempt {attempt}/{cfg.max_retries} failed: "
                        f"{type(e).__name__}: {e or repr(e)}, retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.exception(
                        f"Database connection failed after {cfg.max_retries} attempts: "
                        f"{type(e).__name__}: {e or repr(e)}"
                    )
                    raise

    async def _discard_pool(self) -> None:
        if self._pool is None:
            return
        try:
            await self._pool.close()
        except Exception as e:
            logger.debug(f"Ignoring error while closing failed pool: {e}")
        self._pool = None

    async def disconnect(self) -> None:
        if self._pool is None:
            return

        try:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")
        except Exception as e:
            logger.exception(f"Error closing database pool: {e}")

    async def check_health(self) -> bool:
        """Return True when the pool can run a trivial query."""
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
        """The connection pool. Raises if ``connect()`` has not succeeded."""
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self._pool
