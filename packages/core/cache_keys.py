"""Counter Store key derivation.

The formats are shared with the external gateway that increments the same
keys, so they must not change:

    application:<token>                    chats count of an Application
    application:<token>:chat:<number>      messages count of a Chat

A Chat key is built from its Application key, but evicting the Application
key does not evict Chat keys; callers evict each Chat key explicitly.
"""

APPLICATION_KEY_PREFIX = "application"


def application_key(token: str) -> str:
    """Counter key holding the cached chats count of an Application."""
    return f"{APPLICATION_KEY_PREFIX}:{token}"


def chat_key(token: str, number: int) -> str:
    """Counter key holding the cached messages count of a Chat."""
    return f"{application_key(token)}:chat:{number}"


def last_chat_number_key(token: str) -> str:
    """Sequence key the gateway increments to assign Chat numbers."""
    return f"{application_key(token)}:last_chat_number"


def last_message_number_key(token: str, chat_number: int) -> str:
    """Sequence key the gateway increments to assign Message numbers."""
    return f"{chat_key(token, chat_number)}:last_message_number"


__all__ = [
    "APPLICATION_KEY_PREFIX",
    "application_key",
    "chat_key",
    "last_chat_number_key",
    "last_message_number_key",
]
