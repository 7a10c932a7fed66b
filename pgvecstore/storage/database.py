"""
PostgreSQL connection management.

Uses asyncpg for async database operations. Owns the single connection
pool a vector store talks through, and translates driver exceptions into
the pgvecstore error taxonomy.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from types import TracebackType
from typing import Any

import asyncpg
from asyncpg.exceptions._base import DataError as ArgumentEncodeError

from pgvecstore.exceptions import QueryError, SerializationError, StoreConnectionError
from pgvecstore.storage.config import ConnectionConfig

logger = logging.getLogger(__name__)

# Rows pulled per round trip when streaming through a server-side cursor
DEFAULT_PREFETCH = 100


@contextmanager
def translate_errors() -> Iterator[None]:
    """
    Re-raise asyncpg and socket failures as pgvecstore errors.

    DataError from the server and ArgumentEncodeError from the client (a
    bad bound value either way) become SerializationError, anything that
    means the connection is gone becomes StoreConnectionError, and any other
    server-side error becomes QueryError.
    """
    try:
        yield
    except (asyncpg.DataError, ArgumentEncodeError) as e:
        raise SerializationError(str(e)) from e
    except (
        asyncpg.PostgresConnectionError,
        asyncpg.InterfaceError,
        asyncio.TimeoutError,
        OSError,
    ) as e:
        raise StoreConnectionError(str(e) or type(e).__name__) from e
    except asyncpg.PostgresError as e:
        raise QueryError(str(e), sqlstate=getattr(e, "sqlstate", None)) from e


class Database:
    """
    Async PostgreSQL connection manager.

    Wraps one asyncpg pool. The pool is safe for concurrent use, so a
    single Database can be shared by any number of callers.

    Usage:
        db = Database(ConnectionConfig(host="localhost"))
        await db.connect()

        rows = await db.fetch("SELECT id FROM vector_store WHERE id = $1", 1)

        async with db.stream("SELECT * FROM vector_store") as rows:
            async for row in rows:
                ...

        await db.close()
    """

    def __init__(self, config: ConnectionConfig | None = None):
        """
        Initialize database connection manager.

        Args:
            config: Connection settings (read from PGVECTOR_* env vars if omitted)
        """
        self._config = config or ConnectionConfig()
        self._pool: asyncpg.Pool | None = None

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """
        Establish the connection pool.

        Raises:
            StoreConnectionError: If the server cannot be reached
        """
        if self._pool is not None:
            return

        try:
            with translate_errors():
                self._pool = await asyncpg.create_pool(**self._config.connect_kwargs())
        except StoreConnectionError as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

        logger.info(
            f"Database connected to {self._config.host}:{self._config.port}/"
            f"{self._config.database} "
            f"(pool: {self._config.pool_min_size}-{self._config.pool_max_size})"
        )

    async def close(self) -> None:
        """Close the connection pool. Safe to call more than once."""
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()
        logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        """Get connection pool, raising if not connected."""
        if self._pool is None:
            raise StoreConnectionError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Acquire a connection from the pool.

        Usage:
            async with db.acquire() as conn:
                await conn.execute("...")
        """
        with translate_errors():
            async with self.pool.acquire() as conn:
                yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Start a transaction.

        Usage:
            async with db.transaction() as conn:
                await conn.execute("UPDATE ...")
                await conn.execute("UPDATE ...")
        """
        with translate_errors():
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    yield conn

    @asynccontextmanager
    async def stream(
        self,
        query: str,
        *args: Any,
        prefetch: int = DEFAULT_PREFETCH,
    ) -> AsyncIterator[AsyncIterator[asyncpg.Record]]:
        """
        Stream rows through a server-side cursor.

        The cursor lives inside a transaction on a dedicated connection; both
        are released when the block exits, whether the rows were drained,
        abandoned, or an error was raised.

        Usage:
            async with db.stream(sql, *params) as rows:
                records = [row async for row in rows]
        """
        with translate_errors():
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    yield conn.cursor(query, *args, prefetch=prefetch)

    async def execute(self, query: str, *args: Any) -> str:
        """
        Execute a query without returning results.

        Args:
            query: SQL query
            *args: Query parameters

        Returns:
            Status string from PostgreSQL (e.g. "UPDATE 3")
        """
        with translate_errors():
            async with self.pool.acquire() as conn:
                return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        """
        Execute a query and fetch all results.

        Args:
            query: SQL query
            *args: Query parameters

        Returns:
            List of records
        """
        with translate_errors():
            async with self.pool.acquire() as conn:
                return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        """
        Execute a query and fetch one result.

        Args:
            query: SQL query
            *args: Query parameters

        Returns:
            Single record or None
        """
        with translate_errors():
            async with self.pool.acquire() as conn:
                return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        """
        Execute a query and fetch a single value.

        Args:
            query: SQL query
            *args: Query parameters

        Returns:
            Single value
        """
        with translate_errors():
            async with self.pool.acquire() as conn:
                return await conn.fetchval(query, *args)

    async def health_check(self) -> bool:
        """
        Check if database is healthy.

        Returns:
            True if database is accessible
        """
        try:
            result = await self.fetchval("SELECT 1")
            return result == 1
        except (StoreConnectionError, QueryError):
            return False
