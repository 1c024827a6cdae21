"""Pydantic data models for Chatter.

Defines the durable entities (Application, Chat, Message), the queued
creation events produced by the gateway, the Sidekiq-compatible job envelope
carried on Redis lists, and the summaries returned by the worker and the
reconciliation jobs.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.common.config import APPLICATION_TOKEN_LENGTH

# ========== Enums ==========


class CountedKind(str, Enum):
    """Entity kinds whose child count is cached and reconciled."""

    APPLICATION = "application"
    CHAT = "chat"


class CreationOutcome(str, Enum):
    """Result of processing one creation event."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    PARENT_MISSING = "parent_missing"


# ========== Durable Entities ==========


class Application(BaseModel):
    """Application row. Identified externally by its opaque token."""

    id: int | None = Field(default=None, description="Surrogate primary key")
    token: str = Field(
        ...,
        min_length=APPLICATION_TOKEN_LENGTH,
        max_length=APPLICATION_TOKEN_LENGTH,
        description="Opaque immutable token",
    )
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    chats_count: int = Field(default=0, ge=0, description="Reconciled chat count")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("name")
    @classmethod
    def validate_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v


class Chat(BaseModel):
    """Chat row, numbered uniquely within its Application."""

    id: int | None = None
    application_id: int = Field(..., description="Owning application id")
    number: int = Field(..., description="Producer-assigned number, unique per application")
    messages_count: int = Field(default=0, ge=0, description="Reconciled message count")
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Message(BaseModel):
    """Message row, numbered uniquely within its Chat."""

    id: int | None = None
    chat_id: int = Field(..., description="Owning chat id")
    number: int = Field(..., description="Producer-assigned number, unique per chat")
    body: str = Field(..., min_length=1, description="Message text")
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ========== Queued Events ==========


class ChatCreatedEvent(BaseModel):
    """Payload of a ChatsCreatorJob.

    The timestamp is producer-defined and kept untyped; the worker falls back to its
    own clock when it is not parseable text.
    """

    model_config = ConfigDict(extra="ignore")

    application_token: str = Field(..., min_length=1)
    number: int
    timestamp: Any = None


class MessageCreatedEvent(BaseModel):
    """Payload of a MessageCreatorJob."""

    model_config = ConfigDict(extra="ignore")

    application_token: str = Field(..., min_length=1)
    chat_number: int
    number: int
    body: str = Field(..., min_length=1)
    timestamp: Any = None


# ========== Job Envelope ==========


class JobEnvelope(BaseModel):
    """Sidekiq-compatible job envelope stored as JSON on ``queue:<name>`` lists.

    Field names match what the Go gateway writes (``class``, ``jid``,
    ``enqueued_at`` ...) so both sides can share the same Redis.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    job_class: str = Field(..., alias="class")
    args: list[Any] = Field(default_factory=list)
    queue: str
    jid: str = Field(..., min_length=1)
    retry: bool = True
    created_at: float | str = Field(default_factory=time.time)
    enqueued_at: float | str = Field(default_factory=time.time)
    retry_count: int | None = Field(default=None, ge=0)
    error_message: str | None = None
    error_class: str | None = None
    failed_at: float | None = None
    retried_at: float | None = None

    @property
    def payload(self) -> dict[str, Any]:
        """Event payload (first positional argument)."""
        if not self.args or not isinstance(self.args[0], dict):
            raise ValueError(f"Job {self.jid} has no payload argument")
        return self.args[0]

    @property
    def failures(self) -> int:
        """Number of failed attempts recorded so far."""
        return self.retry_count or 0

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


# ========== Reconciliation ==========


class CountRecord(BaseModel):
    """Staged (row id, cached count) pair awaiting the batch write."""

    row_id: int
    count: int = Field(..., ge=0)


class ReconcileSummary(BaseModel):
    """Outcome of one reconciliation run."""

    kind: CountedKind
    rows_scanned: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    rows_updated: int = 0
    batches_flushed: int = 0
    aborted: bool = False
    error: str | None = None


__all__ = [
    "Application",
    "Chat",
    "ChatCreatedEvent",
    "CountRecord",
    "CountedKind",
    "CreationOutcome",
    "JobEnvelope",
    "Message",
    "MessageCreatedEvent",
    "ReconcileSummary",
]
