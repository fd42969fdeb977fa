"""Derived, in-memory models produced by the comparison engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .stream import CategoryChangeEvent, StreamRecord, TitleChangeEvent

EventKind = Literal["category", "title"]


@dataclass
class NormalizedPoint:
    """A sample placed on the absolute time axis."""

    timestamp: str
    timestamp_ms: int
    stream_id: int
    stream_label: str
    viewer_count: int = 0
    chat_rate_1min: int = 0


@dataclass
class StreamSeries:
    """Normalized points of one selected stream plus its display attributes."""

    stream_id: int
    label: str
    color: str
    points: list[NormalizedPoint] = field(default_factory=list)


@dataclass
class SeriesRow:
    """One 60-second bin of the merged chart table.

    ``values`` is sparse: only streams with a sample inside the bin appear.
    """

    timestamp: str
    timestamp_ms: int
    values: dict[int, int] = field(default_factory=dict)


@dataclass
class LegendEntry:
    stream_id: int
    label: str
    color: str


@dataclass
class EventSource:
    """Change events of one selected stream plus its display attributes."""

    stream_id: int
    label: str
    color: str
    category_changes: list[CategoryChangeEvent] = field(default_factory=list)
    title_changes: list[TitleChangeEvent] = field(default_factory=list)


@dataclass
class ComparisonEvent:
    """A category or title change placed on the shared time axis."""

    timestamp: str
    timestamp_ms: int
    event_type: EventKind
    stream_id: int
    stream_label: str
    description: str
    color: str


@dataclass
class SelectedStream:
    """An entry of the comparison selection."""

    stream_id: int
    channel_name: str
    stream_title: str
    started_at: str
    color: str


@dataclass
class SimilarityScore:
    """A suggestion candidate with its score and matched criteria."""

    stream: StreamRecord
    score: int
    reasons: list[str] = field(default_factory=list)
