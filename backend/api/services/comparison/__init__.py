"""Multi-stream timeline comparison engine.

Pure building blocks (normalizer, series/event mergers, similarity scorer)
plus ``ComparisonSession``, which drives them from a bounded selection.
"""

from .errors import (
    ComparisonError,
    DuplicateStreamError,
    SelectionFullError,
    StreamNotSelectedError,
)
from .events import merge_events
from .live_state import LIVE_STALENESS_THRESHOLD, is_stream_live
from .normalizer import normalize_timeline, stream_label
from .palette import STREAM_COLORS, stream_color
from .series import MAX_SERIES_ROWS, build_legend, downsample, merge_series
from .session import (
    MAX_SELECTION,
    ComparisonSession,
    ComparisonSnapshot,
    SessionState,
)
from .similarity import has_time_overlap, score_candidates, score_stream
from .source import TimelineSource

__all__ = [
    "LIVE_STALENESS_THRESHOLD",
    "MAX_SELECTION",
    "MAX_SERIES_ROWS",
    "STREAM_COLORS",
    "ComparisonError",
    "ComparisonSession",
    "ComparisonSnapshot",
    "DuplicateStreamError",
    "SelectionFullError",
    "SessionState",
    "StreamNotSelectedError",
    "TimelineSource",
    "build_legend",
    "downsample",
    "has_time_overlap",
    "is_stream_live",
    "merge_events",
    "merge_series",
    "normalize_timeline",
    "score_candidates",
    "score_stream",
    "stream_color",
    "stream_label",
]
