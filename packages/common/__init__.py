"""Common utilities for Chatter.

This package provides reusable utilities like logging, config, tracing,
connection pooling and the job retry policy.
"""

from packages.common.postgres_pool import PostgresPool, PostgresPoolError

__all__ = [
    "PostgresPool",
    "PostgresPoolError",
]
