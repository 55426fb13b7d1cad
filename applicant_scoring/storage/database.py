"""
asyncpg pool shared by the score store and the candidate queries.

Every query borrows a pooled connection for exactly one statement; nothing
here spans transactions. Query calls are the only points where a
generation task waits on storage.
"""

import logging
from typing import Any

import asyncpg

from applicant_scoring.config.settings import get_settings

logger = logging.getLogger(__name__)


class Database:
    """
    Lazily-connected PostgreSQL pool.

    Args:
        database_url: DSN; defaults to settings.database_url.
        min_size: Minimum pooled connections.
        max_size: Maximum pooled connections.

    Usage:
        async with Database() as db:
            row = await db.fetchrow("SELECT ... WHERE candidate_id = $1", 42)
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ):
        settings = get_settings()
        self._dsn = database_url or str(settings.database_url)
        self._pool_bounds = (
            min_size or settings.db_pool_min_size,
            max_size or settings.db_pool_max_size,
        )
        self._command_timeout = settings.db_command_timeout
        self._pool: asyncpg.Pool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected; call connect() first")
        return self._pool

    async def connect(self) -> None:
        """Open the pool. Safe to call when already connected."""
        if self.is_connected:
            return
        min_size, max_size = self._pool_bounds
        try:
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=min_size,
                max_size=max_size,
                command_timeout=self._command_timeout,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Could not open database pool: %s", e)
            raise
        logger.info("Database pool open (%d-%d connections)", min_size, max_size)

    async def close(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()
            logger.info("Database pool closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _run(self, method: str, query: str, args: tuple) -> Any:
        async with self.pool.acquire() as conn:
            return await getattr(conn, method)(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        return await self._run("execute", query, args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        return await self._run("fetch", query, args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        return await self._run("fetchrow", query, args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return await self._run("fetchval", query, args)

    async def health_check(self) -> bool:
        """True when a trivial query round-trips."""
        if not self.is_connected:
            logger.warning("Database health check skipped: pool not open")
            return False
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning("Database health check failed: %s", e)
            return False
