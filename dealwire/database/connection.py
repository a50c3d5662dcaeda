from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool, PoolTimeout

from dealwire.config.settings import Settings
from dealwire.logging.logger import Log

_pool: ConnectionPool | None = None


def build_conninfo(settings: Settings) -> str:
    """libpq connection string; values are quoted, so passwords may contain spaces."""
    return make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        dbname=settings.db_database,
        user=settings.db_username,
        password=settings.db_password,
        connect_timeout=settings.db_connect_timeout_seconds,
        application_name="dealwire",
    )


def init_pool(settings: Settings) -> None:
    """Open the global pool and wait until its minimum connections are ready.

    Raises:
        PoolTimeout: if the database cannot be reached within the connect timeout.
    """
    global _pool  # noqa: PLW0603
    pool = ConnectionPool(
        build_conninfo(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        check=ConnectionPool.check_connection,
        name="dealwire",
        open=True,
    )
    try:
        pool.wait(timeout=settings.db_connect_timeout_seconds)
    except PoolTimeout:
        pool.close()
        raise
    _pool = pool
    Log.info(
        "Connection pool ready",
        db_host=settings.db_host,
        db_name=settings.db_database,
        pool_max=settings.db_pool_max_size,
    )


def close_pool() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Borrow a pooled connection. Callers commit; the pool rolls back leftovers."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn
