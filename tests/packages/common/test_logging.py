"""Tests for JSON logging and correlation ID propagation."""

import json
import logging

import pytest

from packages.common.logging import CorrelationIdFilter, CustomJsonFormatter
from packages.common.tracing import (
    TracingContext,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _reset_correlation_id():
    clear_correlation_id()
    yield
    clear_correlation_id()


def _format(message: str, **extra) -> dict:
    record = logging.LogRecord("chatter.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    CorrelationIdFilter().filter(record)
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(module)s %(function)s %(message)s")
    return json.loads(formatter.format(record))


def test_formatter_emits_structured_fields() -> None:
    payload = _format("Created chat", number=7)

    assert payload["message"] == "Created chat"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "chatter.test"
    assert payload["number"] == 7
    assert payload.get("correlation_id") is None


def test_formatter_includes_bound_correlation_id() -> None:
    with TracingContext("0123456789abcdef01234567"):
        payload = _format("Created chat")

    assert payload["correlation_id"] == "0123456789abcdef01234567"


def test_tracing_context_generates_and_restores() -> None:
    set_correlation_id("outer")

    with TracingContext() as inner:
        assert len(inner) == 24
        assert get_correlation_id() == inner

    assert get_correlation_id() == "outer"


def test_tracing_context_clears_when_nothing_was_bound() -> None:
    with TracingContext("jid"):
        pass

    assert get_correlation_id() is None
