"""Live vs. ended classification from sample staleness."""

from __future__ import annotations

from datetime import datetime, timedelta

from shared.models import StreamRecord

from .timeutil import parse_timestamp, utc_now

# Twice the shortest poll interval (60s), so poll jitter never reads as "ended".
LIVE_STALENESS_THRESHOLD = timedelta(minutes=2)


def is_stream_live(stream: StreamRecord, now: datetime | None = None) -> bool:
    """Return True when the stream has not ended and was sampled recently."""
    if stream.ended_at:
        return False

    last_collected = parse_timestamp(stream.last_collected_at)
    if last_collected is None:
        return False

    now = parse_timestamp(now) if now is not None else utc_now()
    return now - last_collected < LIVE_STALENESS_THRESHOLD
