"""Shared data models for the StreamLens backend services."""

from .comparison import (
    ComparisonEvent,
    EventSource,
    LegendEntry,
    NormalizedPoint,
    SelectedStream,
    SeriesRow,
    SimilarityScore,
    StreamSeries,
)
from .stream import (
    CategoryChangeEvent,
    StreamRecord,
    StreamTimeline,
    TimelineSample,
    TitleChangeEvent,
)

__all__ = [
    "CategoryChangeEvent",
    "ComparisonEvent",
    "EventSource",
    "LegendEntry",
    "NormalizedPoint",
    "SelectedStream",
    "SeriesRow",
    "SimilarityScore",
    "StreamRecord",
    "StreamSeries",
    "StreamTimeline",
    "TimelineSample",
    "TitleChangeEvent",
]
