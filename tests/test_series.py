"""Tests for binning, merging and downsampling of chart rows."""

from shared.models import NormalizedPoint, SeriesRow, StreamSeries

from services.comparison import MAX_SERIES_ROWS, build_legend, downsample, merge_series
from services.comparison.timeutil import parse_timestamp, to_epoch_ms

T0 = to_epoch_ms(parse_timestamp("2024-01-01T00:00:00Z"))


def _point(stream_id: int, offset_s: int, viewers: int, chat: int = 0) -> NormalizedPoint:
    return NormalizedPoint(
        timestamp="",
        timestamp_ms=T0 + offset_s * 1000,
        stream_id=stream_id,
        stream_label=f"s{stream_id}",
        viewer_count=viewers,
        chat_rate_1min=chat,
    )


def _series(stream_id: int, points: list[NormalizedPoint]) -> StreamSeries:
    return StreamSeries(stream_id=stream_id, label=f"s{stream_id}", color="#000000", points=points)


# ---------------------------------------------------------------------------
# merge_series
# ---------------------------------------------------------------------------


class TestMergeSeries:
    def test_points_in_same_minute_share_a_bin(self) -> None:
        rows = merge_series(
            [
                _series(1, [_point(1, 10, 100), _point(1, 65, 110)]),
                _series(2, [_point(2, 45, 200)]),
            ]
        )

        assert [r.timestamp_ms for r in rows] == [T0, T0 + 60_000]
        assert rows[0].timestamp == "2024-01-01T00:00:00.000Z"
        assert rows[0].values == {1: 100, 2: 200}
        assert rows[1].values == {1: 110}

    def test_bins_are_unique_and_ascending(self) -> None:
        rows = merge_series(
            [
                _series(1, [_point(1, 300, 1), _point(1, 0, 2), _point(1, 120, 3)]),
                _series(2, [_point(2, 130, 4), _point(2, 5, 5)]),
            ]
        )
        bins = [r.timestamp_ms for r in rows]
        assert bins == sorted(set(bins))

    def test_later_sample_wins_within_bin(self) -> None:
        rows = merge_series([_series(1, [_point(1, 50, 9), _point(1, 10, 1)])])
        assert rows[0].values == {1: 9}

    def test_chat_metric(self) -> None:
        rows = merge_series([_series(1, [_point(1, 0, 100, chat=7)])], metric="chat_rate_1min")
        assert rows[0].values == {1: 7}

    def test_empty_input(self) -> None:
        assert merge_series([]) == []
        assert merge_series([_series(1, [])]) == []

    def test_large_input_is_bounded(self) -> None:
        points = [_point(1, i * 60, i) for i in range(2500)]
        rows = merge_series([_series(1, points)])
        assert len(rows) <= MAX_SERIES_ROWS
        assert rows[1].values == {1: 3}


# ---------------------------------------------------------------------------
# downsample
# ---------------------------------------------------------------------------


class TestDownsample:
    def _rows(self, n: int) -> list[SeriesRow]:
        return [SeriesRow(timestamp="", timestamp_ms=i * 60_000, values={1: i}) for i in range(n)]

    def test_stride_of_three_for_2500_rows(self) -> None:
        result = downsample(self._rows(2500))
        assert len(result) == 834
        assert [r.values[1] for r in result[:4]] == [0, 3, 6, 9]

    def test_small_input_untouched(self) -> None:
        rows = self._rows(MAX_SERIES_ROWS)
        assert downsample(rows) is rows

    def test_custom_bound(self) -> None:
        result = downsample(self._rows(10), max_rows=4)
        assert [r.values[1] for r in result] == [0, 3, 6, 9]


def test_build_legend_follows_series_order() -> None:
    legend = build_legend([_series(3, []), _series(1, [])])
    assert [(e.stream_id, e.label) for e in legend] == [(3, "s3"), (1, "s1")]
