"""Millisecond UTC instants and their ISO-8601 wire form."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_NS_PER_MS = 1_000_000
_NS_PER_US = 1_000


def truncate_to_millis(instant: datetime) -> datetime:
    """Drop sub-millisecond precision from an aware datetime."""
    return instant.replace(microsecond=instant.microsecond - instant.microsecond % 1000)


def from_mtime_ns(mtime_ns: int) -> datetime:
    """Convert a stat mtime in nanoseconds to a millisecond UTC instant."""
    return EPOCH + timedelta(milliseconds=mtime_ns // _NS_PER_MS)


def to_ns(instant: datetime) -> int:
    """Convert an aware datetime to integer nanoseconds since the epoch."""
    delta = instant - EPOCH
    seconds = delta.days * 86_400 + delta.seconds
    return seconds * 1_000_000_000 + delta.microseconds * _NS_PER_US


def format_instant(instant: datetime) -> str:
    """Render an instant as ISO-8601 with milliseconds and a Z suffix."""
    if instant.tzinfo is None:
        raise ValueError("Timestamp must be timezone-aware.")
    utc = truncate_to_millis(instant.astimezone(UTC))
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_instant(text: str) -> datetime:
    """Parse an ISO-8601 timestamp carrying an explicit offset into UTC."""
    raw = text.strip()
    if not raw:
        raise ValueError("Timestamp is empty.")
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as error:
        raise ValueError(f"Timestamp {text!r} is not ISO-8601.") from error
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise ValueError(f"Timestamp {text!r} has no UTC offset.")
    return truncate_to_millis(parsed.astimezone(UTC))
