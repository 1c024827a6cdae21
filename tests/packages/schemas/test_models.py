"""Tests for the Chatter data models."""

import pytest
from pydantic import ValidationError

from packages.schemas.models import Application, JobEnvelope, Message, MessageCreatedEvent
from tests.utils.fakes import TOKEN

pytestmark = pytest.mark.unit


def test_application_token_must_be_36_characters() -> None:
    with pytest.raises(ValidationError):
        Application(token="short", name="Support")


def test_application_name_must_not_be_blank() -> None:
    with pytest.raises(ValidationError):
        Application(token=TOKEN, name="   ")


def test_counts_cannot_go_negative() -> None:
    with pytest.raises(ValidationError):
        Application(token=TOKEN, name="Support", chats_count=-1)


def test_message_body_required() -> None:
    with pytest.raises(ValidationError):
        Message(chat_id=1, number=1, body="")


def test_event_ignores_unknown_fields() -> None:
    event = MessageCreatedEvent.model_validate(
        {"application_token": TOKEN, "chat_number": 1, "number": 2, "body": "hi", "extra": 1}
    )

    assert not hasattr(event, "extra")


def test_envelope_payload_requires_dict_argument() -> None:
    envelope = JobEnvelope(job_class="ChatsCreatorJob", args=[], queue="q", jid="j")

    with pytest.raises(ValueError):
        _ = envelope.payload


def test_envelope_keeps_unknown_gateway_fields() -> None:
    envelope = JobEnvelope.model_validate(
        {"class": "ChatsCreatorJob", "args": [{}], "queue": "q", "jid": "j", "bt": 5}
    )

    assert '"bt":5' in envelope.to_json()
