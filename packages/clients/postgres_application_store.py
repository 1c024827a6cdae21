"""PostgreSQL implementation of ApplicationRepository."""

from collections.abc import Iterator, Sequence

import psycopg2.errors
from psycopg2.extensions import connection
from psycopg2.extras import RealDictCursor, execute_values

from packages.common.logging import get_logger
from packages.core.errors import DuplicateTokenError
from packages.core.ports.repositories import ApplicationRepository
from packages.schemas.models import Application, CountRecord

logger = get_logger(__name__)

_COLUMNS = "id, token, name, chats_count, created_at, updated_at"


class PostgresApplicationStore(ApplicationRepository):
    """Application rows in the ``applications`` table.

    Every write commits on success and rolls back on failure, so the
    connection is always left outside a transaction.
    """

    def __init__(self, conn: connection) -> None:
        """Initialize with PostgreSQL connection.

        Args:
            conn: psycopg2 connection object.
        """
        self.conn = conn

    def find_by_token(self, token: str) -> Application | None:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM applications WHERE token = %s", (token,))
            row = cur.fetchone()
        return Application.model_validate(dict(row)) if row else None

    def exists_token(self, token: str) -> bool:
        with self.conn.cursor() as cur:
            cur.execute("SELECT 1 FROM applications WHERE token = %s LIMIT 1", (token,))
            return cur.fetchone() is not None

    def create(self, application: Application) -> Application:
        """Insert an Application.

        Raises:
            DuplicateTokenError: If the token is already taken.
        """
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"""
                    INSERT INTO applications (token, name, chats_count, created_at, updated_at)
                    VALUES (%s, %s, %s, COALESCE(%s, NOW()), COALESCE(%s, NOW()))
                    RETURNING {_COLUMNS}
                    """,
                    (
                        application.token,
                        application.name,
                        application.chats_count,
                        application.created_at,
                        application.updated_at,
                    ),
                )
                row = cur.fetchone()
        except psycopg2.errors.UniqueViolation as e:
            self.conn.rollback()
            raise DuplicateTokenError(f"Application token {application.token} already taken") from e
        except Exception:
            self.conn.rollback()
            raise

        self.conn.commit()
        logger.debug("Inserted application", extra={"application_id": row["id"]})
        return Application.model_validate(dict(row))

    def delete(self, application_id: int) -> bool:
        with self.conn.cursor() as cur:
            cur.execute("DELETE FROM applications WHERE id = %s", (application_id,))
            deleted = cur.rowcount > 0
        self.conn.commit()
        return deleted

    def iter_batches(self, batch_size: int) -> Iterator[list[Application]]:
        """Keyset-paginate over applications by id."""
        last_id = 0
        while True:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM applications WHERE id > %s ORDER BY id LIMIT %s",
                    (last_id, batch_size),
                )
                rows = cur.fetchall()
            self.conn.commit()

            if not rows:
                return
            yield [Application.model_validate(dict(row)) for row in rows]
            if len(rows) < batch_size:
                return
            last_id = rows[-1]["id"]

    def bulk_update_chats_count(self, records: Sequence[CountRecord]) -> int:
        """Overwrite chats_count with one UPDATE ... FROM (VALUES ...).

        Rows deleted since they were read are simply not matched.
        """
        if not records:
            return 0

        try:
            with self.conn.cursor() as cur:
                execute_values(
                    cur,
                    """
                    UPDATE applications AS a SET chats_count = v.count
                    FROM (VALUES %s) AS v (id, count)
                    WHERE a.id = v.id
                    """,
                    [(record.row_id, record.count) for record in records],
                    page_size=len(records),
                )
                updated = cur.rowcount
        except Exception:
            self.conn.rollback()
            raise

        self.conn.commit()
        return updated


__all__ = ["PostgresApplicationStore"]
