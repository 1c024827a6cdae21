"""Parsing of producer-supplied event timestamps."""

import re
from datetime import UTC, datetime
from typing import Any

from packages.common.logging import get_logger

logger = get_logger(__name__)

# Producers emit RFC 3339 with nanoseconds; datetime keeps microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_event_timestamp(value: Any, *, now: datetime | None = None) -> datetime:
    """Parse an event timestamp, falling back to the processing time.

    Accepts ISO 8601 / RFC 3339 text (``Z`` suffix, nanosecond fractions and
    a space separator included). Naive values are taken as UTC. Anything
    unparseable returns ``now`` (or the current UTC time); this never raises.

    Args:
        value: Timestamp from the event payload; non-string values fall back.
        now: Fallback instant, injectable for tests.

    Returns:
        datetime: Timezone-aware timestamp.
    """
    fallback = now or datetime.now(UTC)
    if not value or not isinstance(value, str):
        return fallback

    text = _FRACTION_RE.sub(r"\1", value.strip().replace("Z", "+00:00"))
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable event timestamp, using processing time", extra={"timestamp": value})
        return fallback

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


__all__ = ["parse_event_timestamp"]
