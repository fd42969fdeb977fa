"""Timestamp helpers shared by the comparison engine."""

from __future__ import annotations

from datetime import UTC, datetime


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 string (or pass a datetime through) as aware UTC.

    Naive values are taken as UTC. Returns ``None`` when the value cannot be
    parsed, so callers can filter corrupt rows without try/except.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def from_epoch_ms(ms: int) -> str:
    """Format epoch milliseconds as an ISO-8601 UTC string with a ``Z`` suffix."""
    dt = datetime.fromtimestamp(ms / 1000, tz=UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(UTC)


def truncate_text(text: str | None, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, appending ``...`` when cut."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
