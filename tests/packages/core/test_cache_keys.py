"""Tests for Counter Store key derivation."""

import pytest

from packages.core.cache_keys import (
    application_key,
    chat_key,
    last_chat_number_key,
    last_message_number_key,
)

pytestmark = pytest.mark.unit


def test_application_key_format() -> None:
    assert application_key("tok") == "application:tok"


def test_chat_key_nests_under_application_key() -> None:
    assert chat_key("tok", 7) == "application:tok:chat:7"


def test_sequence_keys_match_gateway_layout() -> None:
    assert last_chat_number_key("tok") == "application:tok:last_chat_number"
    assert last_message_number_key("tok", 2) == "application:tok:chat:2:last_message_number"
