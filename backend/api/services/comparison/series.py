"""Merge per-stream points into one binned, bounded chart table."""

from __future__ import annotations

import math
from typing import Literal

from shared.models import LegendEntry, SeriesRow, StreamSeries

from .timeutil import from_epoch_ms

BIN_MS = 60_000
MAX_SERIES_ROWS = 1000

Metric = Literal["viewer_count", "chat_rate_1min"]


def downsample(rows: list[SeriesRow], max_rows: int = MAX_SERIES_ROWS) -> list[SeriesRow]:
    """Keep every Nth row (N = ceil(len / max_rows)) so at most ``max_rows`` remain."""
    if len(rows) <= max_rows:
        return rows
    step = math.ceil(len(rows) / max_rows)
    return rows[::step]


def merge_series(
    series: list[StreamSeries],
    metric: Metric = "viewer_count",
    max_rows: int = MAX_SERIES_ROWS,
) -> list[SeriesRow]:
    """Bin all streams' points into 60-second rows keyed by stream id.

    Rows come out in ascending bin order with unique bin times. When a stream
    has two samples in one bin the later one wins. An empty result means there
    is nothing to render, even if streams are selected.
    """
    points = [point for entry in series for point in entry.points]
    if not points:
        return []

    points.sort(key=lambda p: p.timestamp_ms)

    bins: dict[int, SeriesRow] = {}
    for point in points:
        bin_ms = (point.timestamp_ms // BIN_MS) * BIN_MS
        row = bins.get(bin_ms)
        if row is None:
            row = bins[bin_ms] = SeriesRow(timestamp=from_epoch_ms(bin_ms), timestamp_ms=bin_ms)
        row.values[point.stream_id] = getattr(point, metric)

    rows = [bins[key] for key in sorted(bins)]
    return downsample(rows, max_rows)


def build_legend(series: list[StreamSeries]) -> list[LegendEntry]:
    return [LegendEntry(stream_id=s.stream_id, label=s.label, color=s.color) for s in series]
