"""Merge category/title change events of several streams onto one time axis."""

from __future__ import annotations

from shared.models import ComparisonEvent, EventSource

from .timeutil import parse_timestamp, to_epoch_ms, truncate_text

TITLE_DESCRIPTION_LENGTH = 40


def merge_events(sources: list[EventSource]) -> list[ComparisonEvent]:
    """Merge every stream's change events into one list sorted by time.

    Events with unparseable timestamps are skipped. Simultaneous events from
    different streams stay separate entries.
    """
    events: list[ComparisonEvent] = []

    for source in sources:
        for change in source.category_changes:
            ts = parse_timestamp(change.timestamp)
            if ts is None:
                continue
            events.append(
                ComparisonEvent(
                    timestamp=change.timestamp,
                    timestamp_ms=to_epoch_ms(ts),
                    event_type="category",
                    stream_id=source.stream_id,
                    stream_label=source.label,
                    description=f"{change.from_category or '(none)'} → {change.to_category}",
                    color=source.color,
                )
            )

        for change in source.title_changes:
            ts = parse_timestamp(change.timestamp)
            if ts is None:
                continue
            events.append(
                ComparisonEvent(
                    timestamp=change.timestamp,
                    timestamp_ms=to_epoch_ms(ts),
                    event_type="title",
                    stream_id=source.stream_id,
                    stream_label=source.label,
                    description=(
                        f"Title changed: {truncate_text(change.to_title, TITLE_DESCRIPTION_LENGTH)}"
                    ),
                    color=source.color,
                )
            )

    events.sort(key=lambda e: e.timestamp_ms)
    return events
