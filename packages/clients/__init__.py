"""Client adapters for external systems.

Heavy dependencies (psycopg2, redis) belong here, not in packages/core.
"""

from packages.clients.postgres_application_store import PostgresApplicationStore
from packages.clients.postgres_chat_store import PostgresChatStore
from packages.clients.postgres_message_store import PostgresMessageStore
from packages.clients.redis_counter_store import RedisCounterStore

__all__ = [
    "PostgresApplicationStore",
    "PostgresChatStore",
    "PostgresMessageStore",
    "RedisCounterStore",
]
