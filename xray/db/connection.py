"""
PostgreSQL access for X-Ray.

A Database owns one asyncpg pool. Create it once at process start, pass it
to whatever needs storage, and close it on shutdown:

    async with Database(settings.database_url) as db:
        store = ExecutionStore(db)
        await store.ensure_schema()
        ...

Each unit of work borrows a connection for its duration only:

    async with db.connection() as conn:
        await conn.execute(...)
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import asyncpg

from xray.config import settings
from xray.utils.logger import get_logger

logger = get_logger(__name__)


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode json/jsonb columns to Python objects on every pooled connection."""
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=_dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )


class Database:
    """Explicitly owned asyncpg pool."""

    def __init__(
        self,
        dsn: Optional[str] = None,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        command_timeout: Optional[float] = None,
    ):
        self.dsn = dsn or settings.database_url
        self.min_size = min_size if min_size is not None else settings.db_min_pool_size
        self.max_size = max_size if max_size is not None else settings.db_max_pool_size
        self.command_timeout = (
            command_timeout if command_timeout is not None else settings.db_command_timeout
        )
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> "Database":
        """Create the pool. Calling connect() on a connected Database is a no-op."""
        if self._pool is not None:
            return self
        if not self.dsn:
            raise RuntimeError("XRAY_DATABASE_URL is not set")

        self._pool = await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self.command_timeout,
            init=_init_connection,
        )
        logger.info(f"Database pool opened (min={self.min_size}, max={self.max_size})")
        return self

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Database pool closed")

    async def __aenter__(self) -> "Database":
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a pooled connection; it is released when the block exits."""
        if self._pool is None:
            raise RuntimeError("Database is not connected; call connect() first")
        async with self._pool.acquire() as conn:
            yield conn

    async def execute(self, query: str, *args: Any) -> str:
        async with self.connection() as conn:
            return await conn.execute(query, *args)

    async def fetch_all(self, query: str, *args: Any) -> List[asyncpg.Record]:
        async with self.connection() as conn:
            return await conn.fetch(query, *args)

    async def fetch_one(self, query: str, *args: Any) -> Optional[asyncpg.Record]:
        async with self.connection() as conn:
            return await conn.fetchrow(query, *args)

    async def fetch_val(self, query: str, *args: Any) -> Any:
        async with self.connection() as conn:
            return await conn.fetchval(query, *args)
