"""
Database connection factory utilities for the PostgreSQL document store.

Provides centralized management of the async psycopg pool backing
``PostgresDataStore`` plus a plain sync connection used by the seed loader.
The PoolManager singleton keeps one pool per process and closes it on demand.

Connection acquisition is retried with tenacity for transient failures; query
and update errors are never retried here.
"""

from __future__ import annotations

import threading
from typing import Optional

import psycopg
from psycopg import Connection
from psycopg_pool import AsyncConnectionPool
from tenacity import RetryCallState, retry, retry_if_exception_type, wait_exponential

from magnate.config import get_settings
from magnate.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS public.documents (
    seq BIGSERIAL,
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    body JSONB NOT NULL,
    PRIMARY KEY (collection, id)
);
CREATE INDEX IF NOT EXISTS documents_collection_seq_idx ON public.documents (collection, seq);
"""


def build_dsn() -> str:
    """Compose a DSN string from settings."""
    settings = get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


class PoolManager:
    """
    Thread-safe singleton for managing the async connection pool.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._async_pool = None
            return cls._instance

    async def get_async_pool(
        self,
        min_size: int = 1,
        max_size: int = 10,
        dsn: Optional[str] = None,
    ) -> AsyncConnectionPool:
        """
        Get or create (and open) the asynchronous connection pool.

        Parameters
        ----------
        min_size : int
            Minimum number of idle connections to keep.
        max_size : int
            Maximum total connections in the pool.
        dsn : str, optional
            Override the DSN composed from settings.
        """
        if self._async_pool is None:
            pool = AsyncConnectionPool(
                conninfo=dsn or build_dsn(),
                min_size=min_size,
                max_size=max_size,
                open=False,
            )
            await _open_pool(pool)
            self._async_pool = pool
        return self._async_pool

    async def close_all(self) -> None:
        """
        Close the managed pool and release resources.
        """
        pool, self._async_pool = self._async_pool, None
        if pool is not None:
            await pool.close()


def _stop_after_configured_attempts(retry_state: RetryCallState) -> bool:
    """Stop once DB_CONNECT_RETRIES attempts have been made."""
    return retry_state.attempt_number >= max(1, get_settings().db_connect_retries)


@retry(
    stop=_stop_after_configured_attempts,
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, OSError)),
    reraise=True,
)
async def _open_pool(pool: AsyncConnectionPool) -> None:
    log.info("Opening document store pool", extra={"min_size": pool.min_size, "max_size": pool.max_size})
    await pool.open(wait=True, timeout=10.0)


@retry(
    stop=_stop_after_configured_attempts,
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to DB_CONNECT_RETRIES times with exponential backoff for transient connection errors.
    Used by the seed loader; the view pipeline goes through the async pool.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def ensure_schema(conn: Connection) -> None:
    """Create the documents table if needed."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)
    conn.commit()


__all__ = [
    "SCHEMA_SQL",
    "PoolManager",
    "build_dsn",
    "ensure_schema",
    "get_sync_connection",
]
