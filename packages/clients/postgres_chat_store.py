"""PostgreSQL implementation of ChatRepository."""

from collections.abc import Iterator, Sequence

import psycopg2.errors
from psycopg2.extensions import connection
from psycopg2.extras import RealDictCursor, execute_values

from packages.common.logging import get_logger
from packages.core.errors import DuplicateNumberError
from packages.core.ports.repositories import ChatRepository
from packages.schemas.models import Chat, CountRecord

logger = get_logger(__name__)

_COLUMNS = "id, application_id, number, messages_count, created_at, updated_at"

_INSERT = """
    INSERT INTO chats (application_id, number, messages_count, created_at, updated_at)
    VALUES (%s, %s, %s, COALESCE(%s, NOW()), COALESCE(%s, NOW()))
"""


def _params(chat: Chat) -> tuple:
    return (chat.application_id, chat.number, chat.messages_count, chat.created_at, chat.updated_at)


class PostgresChatStore(ChatRepository):
    """Chat rows in the ``chats`` table.

    The unique index on (application_id, number) is the only guard against
    duplicate numbers; a violation is rolled back and surfaced as
    DuplicateNumberError.
    """

    def __init__(self, conn: connection) -> None:
        self.conn = conn

    def find_by_number(self, application_id: int, number: int) -> Chat | None:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM chats WHERE application_id = %s AND number = %s",
                (application_id, number),
            )
            row = cur.fetchone()
        return Chat.model_validate(dict(row)) if row else None

    def create(self, chat: Chat) -> Chat:
        """Insert a Chat.

        Raises:
            DuplicateNumberError: If the number is taken within the application.
        """
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(_INSERT + f" RETURNING {_COLUMNS}", _params(chat))
                row = cur.fetchone()
        except psycopg2.errors.UniqueViolation as e:
            self.conn.rollback()
            raise DuplicateNumberError(
                f"Chat number {chat.number} already exists for application {chat.application_id}",
                parent_id=chat.application_id,
                number=chat.number,
            ) from e
        except Exception:
            self.conn.rollback()
            raise

        self.conn.commit()
        return Chat.model_validate(dict(row))

    def create_if_absent(self, chat: Chat) -> Chat | None:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    _INSERT
                    + f" ON CONFLICT (application_id, number) DO NOTHING RETURNING {_COLUMNS}",
                    _params(chat),
                )
                row = cur.fetchone()
        except Exception:
            self.conn.rollback()
            raise

        self.conn.commit()
        return Chat.model_validate(dict(row)) if row else None

    def delete(self, chat_id: int) -> bool:
        with self.conn.cursor() as cur:
            cur.execute("DELETE FROM chats WHERE id = %s", (chat_id,))
            deleted = cur.rowcount > 0
        self.conn.commit()
        return deleted

    def list_numbers(self, application_id: int) -> list[int]:
        with self.conn.cursor() as cur:
            cur.execute(
                "SELECT number FROM chats WHERE application_id = %s ORDER BY number",
                (application_id,),
            )
            return [row[0] for row in cur.fetchall()]

    def iter_batches_with_token(self, batch_size: int) -> Iterator[list[tuple[Chat, str]]]:
        """Keyset-paginate over chats joined with their application token."""
        last_id = 0
        while True:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    """
                    SELECT c.id, c.application_id, c.number, c.messages_count,
                           c.created_at, c.updated_at, a.token AS application_token
                    FROM chats c
                    JOIN applications a ON a.id = c.application_id
                    WHERE c.id > %s
                    ORDER BY c.id
                    LIMIT %s
                    """,
                    (last_id, batch_size),
                )
                rows = cur.fetchall()
            self.conn.commit()

            if not rows:
                return
            batch = []
            for row in rows:
                data = dict(row)
                token = data.pop("application_token")
                batch.append((Chat.model_validate(data), token))
            yield batch
            if len(rows) < batch_size:
                return
            last_id = rows[-1]["id"]

    def bulk_update_messages_count(self, records: Sequence[CountRecord]) -> int:
        if not records:
            return 0

        try:
            with self.conn.cursor() as cur:
                execute_values(
                    cur,
                    """
                    UPDATE chats AS c SET messages_count = v.count
                    FROM (VALUES %s) AS v (id, count)
                    WHERE c.id = v.id
                    """,
                    [(record.row_id, record.count) for record in records],
                    page_size=len(records),
                )
                updated = cur.rowcount
        except Exception:
            self.conn.rollback()
            raise

        self.conn.commit()
        logger.debug("Updated chat message counts", extra={"rows": updated})
        return updated


__all__ = ["PostgresChatStore"]
