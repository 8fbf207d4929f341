"""ISO-8601 timestamp helpers used by factories, validation, and queries."""

from __future__ import annotations

import re
from datetime import UTC, datetime

_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?(Z|[+-]\d{2}:\d{2})?$"
)


def now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_iso_datetime(value: object) -> bool:
    """Check that *value* is an ISO-8601 datetime string (date and time)."""
    if not isinstance(value, str) or not _ISO_DATETIME.match(value):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware datetime (naive values are UTC)."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
