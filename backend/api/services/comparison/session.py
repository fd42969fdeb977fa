"""Comparison session: bounded stream selection and its derived views.

The session is a small state machine driven by discrete commands
(``add_stream``, ``remove_stream``, ``clear``, ``refresh_timelines``). After
every command the chart table, event list and suggestions are recomputed
from the current selection, so readers never see views built from a
selection that no longer exists.

Timeline fetches carry a generation number. Each command bumps the
generation; a fetch that completes after a newer command is discarded
instead of overwriting the newer state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from shared.models import (
    ComparisonEvent,
    EventSource,
    LegendEntry,
    SelectedStream,
    SeriesRow,
    SimilarityScore,
    StreamRecord,
    StreamSeries,
    StreamTimeline,
)

from .errors import DuplicateStreamError, SelectionFullError, StreamNotSelectedError
from .events import merge_events
from .normalizer import normalize_timeline, stream_label
from .palette import stream_color
from .series import build_legend, merge_series
from .similarity import MAX_SUGGESTIONS, score_candidates
from .source import TimelineSource
from .timeutil import utc_now

logger = logging.getLogger(__name__)

MAX_SELECTION = 10
SUGGESTION_POOL_LIMIT = 50


class SessionState(str, Enum):
    EMPTY = "empty"
    HAS_BASELINE = "has_baseline"
    COMPARING = "comparing"


@dataclass
class ComparisonSnapshot:
    """Everything a client needs to render the comparison view."""

    state: SessionState
    selection: list[SelectedStream] = field(default_factory=list)
    legend: list[LegendEntry] = field(default_factory=list)
    series: list[SeriesRow] = field(default_factory=list)
    chat_series: list[SeriesRow] = field(default_factory=list)
    events: list[ComparisonEvent] = field(default_factory=list)
    suggestions: list[SimilarityScore] = field(default_factory=list)
    failed_count: int = 0
    notice: str | None = None


class ComparisonSession:
    """Owns one operator's comparison selection.

    Only one logical owner mutates a session; the generation counter is what
    keeps overlapping refreshes from clobbering each other.
    """

    def __init__(
        self,
        source: TimelineSource,
        *,
        max_selection: int = MAX_SELECTION,
        suggestion_pool_limit: int = SUGGESTION_POOL_LIMIT,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._source = source
        self.max_selection = max_selection
        self.suggestion_pool_limit = suggestion_pool_limit
        self._clock = clock

        self._selected: list[StreamRecord] = []
        self._timelines: dict[int, StreamTimeline] = {}
        self._ranked: list[SimilarityScore] = []
        self._generation = 0

        self.failed_count = 0
        self.selection: list[SelectedStream] = []
        self.legend: list[LegendEntry] = []
        self.series: list[SeriesRow] = []
        self.chat_series: list[SeriesRow] = []
        self.events: list[ComparisonEvent] = []
        self.suggestions: list[SimilarityScore] = []

    # ==================== State ====================

    @property
    def state(self) -> SessionState:
        if not self._selected:
            return SessionState.EMPTY
        if len(self._selected) == 1:
            return SessionState.HAS_BASELINE
        return SessionState.COMPARING

    @property
    def source(self) -> TimelineSource:
        return self._source

    @property
    def baseline(self) -> StreamRecord | None:
        return self._selected[0] if self._selected else None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def selected_ids(self) -> list[int]:
        return [s.id for s in self._selected]

    @property
    def notice(self) -> str | None:
        if self.failed_count:
            return f"Failed to load {self.failed_count} timeline(s)"
        return None

    def snapshot(self) -> ComparisonSnapshot:
        return ComparisonSnapshot(
            state=self.state,
            selection=list(self.selection),
            legend=list(self.legend),
            series=list(self.series),
            chat_series=list(self.chat_series),
            events=list(self.events),
            suggestions=list(self.suggestions),
            failed_count=self.failed_count,
            notice=self.notice,
        )

    # ==================== Commands ====================

    async def add_stream(self, stream: StreamRecord) -> None:
        """Append ``stream`` to the selection and refresh timelines.

        Raises ``SelectionFullError`` when the selection is full and
        ``DuplicateStreamError`` when the stream is already selected; the
        selection is left untouched in both cases.
        """
        if len(self._selected) >= self.max_selection:
            raise SelectionFullError(self.max_selection)
        if stream.id in self.selected_ids:
            raise DuplicateStreamError(stream.id)

        became_baseline = not self._selected
        self._selected.append(stream)
        self._generation += 1
        self._recompute()

        if became_baseline:
            await self._load_suggestions(stream)

        await self.refresh_timelines()

    async def remove_stream(self, stream_id: int) -> None:
        """Drop a stream from the selection and refresh timelines."""
        if stream_id not in self.selected_ids:
            raise StreamNotSelectedError(stream_id)

        self._selected = [s for s in self._selected if s.id != stream_id]
        self._timelines.pop(stream_id, None)
        if not self._selected:
            self._ranked = []
        self._generation += 1
        self._recompute()

        await self.refresh_timelines()

    def clear(self) -> None:
        """Empty the selection and every derived view."""
        self._selected = []
        self._timelines = {}
        self._ranked = []
        self.failed_count = 0
        self._generation += 1
        self._recompute()

    async def refresh_timelines(self) -> bool:
        """Fetch every selected stream's timeline concurrently.

        Waits for all fetches to settle. Failures are counted, not raised, and
        the views are rebuilt from whatever succeeded. Returns ``False`` when
        the result was discarded because a newer command superseded it.
        """
        self._generation += 1
        generation = self._generation
        selected = list(self._selected)

        results = await asyncio.gather(
            *(self._source.get_stream_timeline(stream.id) for stream in selected),
            return_exceptions=True,
        )

        if generation != self._generation:
            logger.debug(
                f"Discarding timeline refresh (generation {generation}, "
                f"current {self._generation})"
            )
            return False

        timelines: dict[int, StreamTimeline] = {}
        failed = 0
        for stream, result in zip(selected, results, strict=True):
            if isinstance(result, BaseException):
                failed += 1
                logger.debug(f"Timeline fetch for stream {stream.id} failed: {result!r}")
                continue
            timelines[stream.id] = result

        if failed:
            logger.warning(f"{failed} of {len(selected)} timeline fetches failed")

        self._timelines = timelines
        self.failed_count = failed
        self._recompute()
        return True

    # ==================== Internals ====================

    async def _load_suggestions(self, baseline: StreamRecord) -> None:
        try:
            pool = await self._source.get_suggested_candidates(
                baseline.id, self.suggestion_pool_limit
            )
        except Exception as e:
            logger.warning(f"Failed to fetch suggestion candidates for stream {baseline.id}: {e}")
            pool = None

        if self.baseline is None or self.baseline.id != baseline.id:
            # Baseline was replaced while the pool was loading
            return

        if pool is None:
            self._ranked = []
            self._recompute()
            return

        self._ranked = score_candidates(
            baseline,
            pool,
            exclude_ids=self.selected_ids,
            now=self._clock(),
            limit=None,
        )
        self._recompute()

    def _recompute(self) -> None:
        self.selection = []
        stream_series: list[StreamSeries] = []
        event_sources: list[EventSource] = []

        for index, stream in enumerate(self._selected):
            color = stream_color(index)
            self.selection.append(
                SelectedStream(
                    stream_id=stream.id,
                    channel_name=stream.channel_name,
                    stream_title=stream.title,
                    started_at=stream.started_at,
                    color=color,
                )
            )

            timeline = self._timelines.get(stream.id)
            if timeline is None:
                continue
            info = timeline.stream_info
            stream_series.append(
                StreamSeries(
                    stream_id=stream.id,
                    label=stream_label(info),
                    color=color,
                    points=normalize_timeline(info, timeline.samples),
                )
            )
            event_sources.append(
                EventSource(
                    stream_id=stream.id,
                    label=info.channel_name,
                    color=color,
                    category_changes=timeline.category_changes,
                    title_changes=timeline.title_changes,
                )
            )

        self.legend = build_legend(stream_series)
        self.series = merge_series(stream_series)
        self.chat_series = merge_series(stream_series, metric="chat_rate_1min")
        self.events = merge_events(event_sources)

        selected = set(self.selected_ids)
        self.suggestions = [s for s in self._ranked if s.stream.id not in selected][
            :MAX_SUGGESTIONS
        ]
