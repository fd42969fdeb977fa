"""Data models for streams, timeline samples, and metadata change events."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StreamRecord:
    """A single broadcast with its aggregate metrics.

    Timestamps are ISO-8601 strings as returned by the store. ``ended_at`` is
    ``None`` while the broadcast is ongoing; ``last_collected_at`` is the time
    of the most recent sample, if any.
    """

    id: int
    channel_name: str
    started_at: str
    stream_id: str = ""
    channel_id: int | None = None
    platform: str = ""
    title: str = ""
    category: str = ""
    ended_at: str | None = None
    last_collected_at: str | None = None
    peak_viewers: int = 0
    avg_viewers: int = 0
    duration_minutes: int = 0
    minutes_watched: int = 0
    follower_gain: int = 0
    total_chat_messages: int = 0
    engagement_rate: float = 0.0


@dataclass
class TimelineSample:
    """One periodic sample of a stream."""

    collected_at: str
    viewer_count: int | None = None
    chat_rate_1min: int | None = 0
    category: str | None = None
    title: str | None = None
    follower_count: int | None = None


@dataclass
class CategoryChangeEvent:
    """Category switch detected between two samples."""

    timestamp: str
    to_category: str
    from_category: str | None = None


@dataclass
class TitleChangeEvent:
    """Title edit detected between two samples."""

    timestamp: str
    to_title: str
    from_title: str | None = None


@dataclass
class StreamTimeline:
    """Everything needed to chart one stream."""

    stream_info: StreamRecord
    samples: list[TimelineSample] = field(default_factory=list)
    category_changes: list[CategoryChangeEvent] = field(default_factory=list)
    title_changes: list[TitleChangeEvent] = field(default_factory=list)
