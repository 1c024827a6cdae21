"""PostgreSQL implementation of MessageRepository."""

import psycopg2.errors
from psycopg2.extensions import connection
from psycopg2.extras import RealDictCursor

from packages.core.errors import DuplicateNumberError
from packages.core.ports.repositories import MessageRepository
from packages.schemas.models import Message

_COLUMNS = "id, chat_id, number, body, created_at, updated_at"

_INSERT = """
    INSERT INTO messages (chat_id, number, body, created_at, updated_at)
    VALUES (%s, %s, %s, COALESCE(%s, NOW()), COALESCE(%s, NOW()))
"""


class PostgresMessageStore(MessageRepository):
    """Message rows in the ``messages`` table."""

    def __init__(self, conn: connection) -> None:
        self.conn = conn

    def find_by_number(self, chat_id: int, number: int) -> Message | None:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM messages WHERE chat_id = %s AND number = %s",
                (chat_id, number),
            )
            row = cur.fetchone()
        return Message.model_validate(dict(row)) if row else None

    def create(self, message: Message) -> Message:
        """Insert a Message.

        Raises:
            DuplicateNumberError: If the number is taken within the chat.
        """
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(_INSERT + f" RETURNING {_COLUMNS}", self._params(message))
                row = cur.fetchone()
        except psycopg2.errors.UniqueViolation as e:
            self.conn.rollback()
            raise DuplicateNumberError(
                f"Message number {message.number} already exists in chat {message.chat_id}",
                parent_id=message.chat_id,
                number=message.number,
            ) from e
        except Exception:
            self.conn.rollback()
            raise

        self.conn.commit()
        return Message.model_validate(dict(row))

    def create_if_absent(self, message: Message) -> Message | None:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    _INSERT + f" ON CONFLICT (chat_id, number) DO NOTHING RETURNING {_COLUMNS}",
                    self._params(message),
                )
                row = cur.fetchone()
        except Exception:
            self.conn.rollback()
            raise

        self.conn.commit()
        return Message.model_validate(dict(row)) if row else None

    def delete(self, message_id: int) -> bool:
        with self.conn.cursor() as cur:
            cur.execute("DELETE FROM messages WHERE id = %s", (message_id,))
            deleted = cur.rowcount > 0
        self.conn.commit()
        return deleted

    @staticmethod
    def _params(message: Message) -> tuple:
        return (
            message.chat_id,
            message.number,
            message.body,
            message.created_at,
            message.updated_at,
        )


__all__ = ["PostgresMessageStore"]
