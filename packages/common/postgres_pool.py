"""PostgreSQL connection pool for Chatter.

Provides a thread-safe connection pool for PostgreSQL using psycopg2.
Manages connection lifecycle with proper pooling and resource cleanup.
"""

from collections.abc import Generator
from contextlib import contextmanager

import psycopg2
from psycopg2.extensions import connection as PgConnection  # noqa: N812
from psycopg2.pool import PoolError, ThreadedConnectionPool

from packages.common.config import ChatterConfig
from packages.common.logging import get_logger
from packages.common.resilience import resilient_external_call

logger = get_logger(__name__)


class PostgresPoolError(Exception):
    """Exception raised when PostgreSQL pool operations fail."""

    pass


@resilient_external_call(max_attempts=5, min_wait=1, max_wait=10, retry_on=(psycopg2.OperationalError,))
def _open_pool(config: ChatterConfig) -> ThreadedConnectionPool:
    return ThreadedConnectionPool(
        minconn=config.postgres_min_pool_size,
        maxconn=config.postgres_max_pool_size,
        host=config.postgres_host,
        port=config.postgres_port,
        database=config.postgres_db,
        user=config.postgres_user,
        password=config.postgres_password.get_secret_value(),
    )


class PostgresPool:
    """Thread-safe PostgreSQL connection pool.

    Manages a pool of PostgreSQL connections with configurable min/max sizes.
    Provides connection checkout/release and automatic cleanup on shutdown.
    Opening the pool is retried with exponential backoff so the worker can
    start before the database container is ready.

    Example:
        >>> with PostgresPool(config) as pool:
        ...     with pool.get_connection() as conn:
        ...         store = PostgresChatStore(conn)
    """

    def __init__(self, config: ChatterConfig) -> None:
        """Initialize PostgreSQL connection pool.

        Args:
            config: ChatterConfig instance with PostgreSQL connection parameters.

        Raises:
            PostgresPoolError: If pool initialization fails.
        """
        self._config = config

        try:
            self.pool = _open_pool(config)
            logger.info(
                "PostgreSQL connection pool initialized",
                extra={
                    "host": config.postgres_host,
                    "database": config.postgres_db,
                    "min_pool_size": config.postgres_min_pool_size,
                    "max_pool_size": config.postgres_max_pool_size,
                },
            )
        except psycopg2.Error as e:
            logger.exception(
                "Failed to initialize PostgreSQL connection pool",
                extra={"host": config.postgres_host, "error": str(e)},
            )
            raise PostgresPoolError(f"Failed to initialize PostgreSQL pool: {e}") from e

    @contextmanager
    def get_connection(self) -> Generator[PgConnection, None, None]:
        """Get a connection from the pool.

        Yields a connection and automatically releases it back to the pool
        when the context exits. Connection-level psycopg2 errors are wrapped
        in PostgresPoolError; domain errors raised by stores pass through.

        Yields:
            Connection: PostgreSQL connection from the pool.

        Raises:
            PostgresPoolError: If connection checkout fails.
        """
        conn = None
        try:
            conn = self.pool.getconn()
            if conn is None:
                raise PostgresPoolError("Failed to get connection from pool")
            yield conn
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            logger.exception("PostgreSQL connection error", extra={"error": str(e)})
            raise PostgresPoolError(f"PostgreSQL connection error: {e}") from e
        finally:
            if conn is not None:
                try:
                    if not conn.closed:
                        conn.rollback()
                    self.pool.putconn(conn)
                except psycopg2.Error as e:
                    logger.exception("Failed to release connection", extra={"error": str(e)})

    def close_all(self) -> None:
        """Close all connections in the pool.

        Safe to call even if pool is already closed.
        """
        try:
            self.pool.closeall()
            logger.info(
                "PostgreSQL connection pool closed",
                extra={
                    "host": self._config.postgres_host,
                    "database": self._config.postgres_db,
                },
            )
        except PoolError as e:
            logger.warning("PostgreSQL pool already closed", extra={"error": str(e)})

    def __enter__(self) -> "PostgresPool":
        """Enter context manager (pool already initialized in __init__)."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit context manager and close all connections."""
        self.close_all()


# Export public API
__all__ = ["PostgresPool", "PostgresPoolError"]
