"""PostgreSQL schema creation and verification for Chatter.

Applies the idempotent DDL for the three tables (applications, chats,
messages) with version tracking in ``schema_versions``. Used by
``chatter init``; Alembic migrations under ``alembic/`` carry the same
structure for managed deployments.
"""

import hashlib
import re
from datetime import datetime
from pathlib import Path

import psycopg2
import psycopg2.errors
from psycopg2.extensions import connection
from psycopg2.extensions import cursor as Cursor  # noqa: N812

from packages.common.config import ChatterConfig
from packages.common.logging import get_logger
from packages.common.tracing import TracingContext

logger = get_logger(__name__)

# Must match the "THIS VERSION:" comment in SCHEMA_SQL
CURRENT_SCHEMA_VERSION = "1.0.0"

EXPECTED_TABLES = ("applications", "chats", "messages")

SCHEMA_SQL = """
-- THIS VERSION: 1.0.0
CREATE TABLE IF NOT EXISTS schema_versions (
    version VARCHAR(32) PRIMARY KEY,
    description TEXT,
    checksum VARCHAR(64),
    execution_time_ms INTEGER,
    status VARCHAR(16) NOT NULL DEFAULT 'success',
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS applications (
    id BIGSERIAL PRIMARY KEY,
    token VARCHAR(36) NOT NULL,
    name VARCHAR(255) NOT NULL CHECK (name <> ''),
    chats_count INTEGER NOT NULL DEFAULT 0 CHECK (chats_count >= 0),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS index_applications_on_token ON applications (token);

CREATE TABLE IF NOT EXISTS chats (
    id BIGSERIAL PRIMARY KEY,
    application_id BIGINT NOT NULL REFERENCES applications (id) ON DELETE CASCADE,
    number INTEGER NOT NULL,
    messages_count INTEGER NOT NULL DEFAULT 0 CHECK (messages_count >= 0),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS index_chats_on_application_id_and_number
    ON chats (application_id, number);

CREATE TABLE IF NOT EXISTS messages (
    id BIGSERIAL PRIMARY KEY,
    chat_id BIGINT NOT NULL REFERENCES chats (id) ON DELETE CASCADE,
    number INTEGER NOT NULL,
    body TEXT NOT NULL CHECK (body <> ''),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS index_messages_on_chat_id_and_number
    ON messages (chat_id, number);
"""


def get_schema_checksum(sql_content: str) -> str:
    """Calculate SHA-256 checksum of schema SQL.

    Example:
        >>> len(get_schema_checksum("CREATE TABLE t (id INT);"))
        64
    """
    return hashlib.sha256(sql_content.encode("utf-8")).hexdigest()


def extract_schema_version(sql_content: str) -> str | None:
    """Extract schema version from the ``-- THIS VERSION: X.Y.Z`` comment.

    Example:
        >>> extract_schema_version("-- THIS VERSION: 1.0.0\\nCREATE TABLE t (id INT);")
        '1.0.0'
    """
    match = re.search(r"--\s*THIS\s+VERSION:\s*(\S+)", sql_content, re.IGNORECASE)
    return match.group(1) if match else None


def get_current_version(cursor: Cursor) -> str | None:
    """Get the currently applied schema version, None on first run."""
    try:
        cursor.execute(
            "SELECT version FROM schema_versions "
            "WHERE status = 'success' "
            "ORDER BY applied_at DESC LIMIT 1"
        )
    except psycopg2.errors.UndefinedTable:
        cursor.connection.rollback()
        return None
    result = cursor.fetchone()
    return result[0] if result else None


def get_connection(config: ChatterConfig) -> connection:
    """Create a standalone PostgreSQL connection.

    Raises:
        ConnectionError: On connection failure.
    """
    try:
        return psycopg2.connect(config.postgres_connection_string)
    except psycopg2.Error as e:
        raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e


def create_schema(config: ChatterConfig, schema_path: str | None = None) -> bool:
    """Apply the schema DDL inside one transaction with version tracking.

    The statements are idempotent, so rerunning against an initialized
    database is harmless; when the recorded version and checksum already
    match, nothing is executed.

    Args:
        config: Chatter configuration.
        schema_path: Optional SQL file overriding the built-in DDL.

    Returns:
        bool: True if the DDL was executed, False if it was already current.

    Raises:
        FileNotFoundError: If schema_path does not exist.
        ConnectionError: If database connection fails.
        RuntimeError: If SQL execution fails (transaction rolled back).
    """
    with TracingContext() as correlation_id:
        if schema_path is None:
            sql_content = SCHEMA_SQL
        else:
            path = Path(schema_path)
            if not path.exists():
                raise FileNotFoundError(f"Schema file not found: {path}")
            sql_content = path.read_text(encoding="utf-8")

        file_version = extract_schema_version(sql_content) or CURRENT_SCHEMA_VERSION
        checksum = get_schema_checksum(sql_content)

        logger.info(
            "Loaded schema SQL",
            extra={
                "correlation_id": correlation_id,
                "version": file_version,
                "checksum": checksum[:16] + "...",
            },
        )

        conn = get_connection(config)
        try:
            with conn.cursor() as cursor:
                current_version = get_current_version(cursor)

                if current_version == file_version:
                    cursor.execute(
                        "SELECT checksum FROM schema_versions WHERE version = %s",
                        (current_version,),
                    )
                    result = cursor.fetchone()
                    if result and result[0] == checksum:
                        logger.info(
                            "Schema already at current version with matching checksum - skipping",
                            extra={"version": current_version},
                        )
                        return False

                start_time = datetime.now()
                cursor.execute(sql_content)
                execution_time = int((datetime.now() - start_time).total_seconds() * 1000)

                cursor.execute(
                    """
                    INSERT INTO schema_versions (version, description, checksum, execution_time_ms)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (version) DO UPDATE
                    SET applied_at = NOW(),
                        checksum = EXCLUDED.checksum,
                        execution_time_ms = EXCLUDED.execution_time_ms,
                        status = 'success'
                    """,
                    (file_version, f"Applied schema version {file_version}", checksum, execution_time),
                )

            conn.commit()
            logger.info(
                "Schema creation completed successfully",
                extra={
                    "from_version": current_version or "none",
                    "to_version": file_version,
                    "execution_time_ms": execution_time,
                },
            )
            return True
        except psycopg2.Error as e:
            conn.rollback()
            logger.exception("Schema creation failed, rolling back", extra={"version": file_version})
            raise RuntimeError("Schema creation failed") from e
        finally:
            conn.close()


def verify_schema(config: ChatterConfig) -> list[str]:
    """Return which of the expected tables are missing (empty when complete)."""
    conn = get_connection(config)
    try:
        with conn.cursor() as cursor:
            cursor.execute(
                """
                SELECT table_name FROM information_schema.tables
                WHERE table_schema = current_schema() AND table_name = ANY(%s)
                """,
                (list(EXPECTED_TABLES),),
            )
            present = {row[0] for row in cursor.fetchall()}
    finally:
        conn.close()

    missing = [table for table in EXPECTED_TABLES if table not in present]
    logger.info("Schema verification completed", extra={"missing_tables": missing})
    return missing


__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "EXPECTED_TABLES",
    "SCHEMA_SQL",
    "create_schema",
    "extract_schema_version",
    "get_connection",
    "get_current_version",
    "get_schema_checksum",
    "verify_schema",
]
