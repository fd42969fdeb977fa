"""Tests for row mapping and change detection in the stream repository."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime

import pytest
from conftest import NOW

from services.comparison import ComparisonSession
from shared.models import TimelineSample
from shared.repositories import StreamRepository, detect_category_changes, detect_title_changes
from shared.repositories.stream import (
    _SAMPLES_QUERY,
    _row_to_record,
    _row_to_sample,
    _stream_cache,
    _stream_list_cache,
    _timeline_cache,
)


def _sample(minute: int, category=None, title=None) -> TimelineSample:
    return TimelineSample(
        collected_at=f"2024-01-01T00:{minute:02d}:00+00:00", category=category, title=title
    )


class TestDetectCategoryChanges:
    def test_emits_on_change(self) -> None:
        changes = detect_category_changes(
            [_sample(0, "Just Chatting"), _sample(1, "Just Chatting"), _sample(2, "VALORANT")]
        )
        assert len(changes) == 1
        assert changes[0].from_category == "Just Chatting"
        assert changes[0].to_category == "VALORANT"
        assert changes[0].timestamp == "2024-01-01T00:02:00+00:00"

    def test_first_value_is_not_a_change(self) -> None:
        assert detect_category_changes([_sample(0, None), _sample(1, "Minecraft")]) == []

    def test_gaps_are_skipped(self) -> None:
        changes = detect_category_changes([_sample(0, "A"), _sample(1, ""), _sample(2, "A")])
        assert changes == []


class TestDetectTitleChanges:
    def test_emits_each_change(self) -> None:
        changes = detect_title_changes([_sample(0, title="a"), _sample(1, title="b"), _sample(2, title="a")])
        assert [(c.from_title, c.to_title) for c in changes] == [("a", "b"), ("b", "a")]


class TestRowMapping:
    def test_record_from_row(self) -> None:
        row = {
            "id": 5,
            "stream_id": "abc",
            "channel_id": 2,
            "channel_name": "niko",
            "platform": None,
            "title": "Chill",
            "category": "",
            "started_at": datetime(2024, 1, 1, 10, 0),
            "ended_at": None,
            "last_collected_at": datetime(2024, 1, 1, 11, 0, tzinfo=UTC),
            "peak_viewers": 120,
            "avg_viewers": 80.6,
            "duration_minutes": 60.9,
            "minutes_watched": 4800,
            "follower_gain": None,
            "total_chat_messages": 10,
            "engagement_rate": None,
        }

        record = _row_to_record(row)

        assert record.started_at == "2024-01-01T10:00:00+00:00"
        assert record.ended_at is None
        assert record.platform == ""
        assert record.avg_viewers == 80
        assert record.duration_minutes == 60
        assert record.follower_gain == 0
        assert record.engagement_rate == 0.0

    def test_sample_from_row(self) -> None:
        row = {
            "collected_at": datetime(2024, 1, 1, 10, 0, tzinfo=UTC),
            "viewer_count": 50,
            "chat_rate_1min": None,
            "category": "Minecraft",
            "title": "t",
            "follower_count": 1000,
        }
        sample = _row_to_sample(row)
        assert sample.collected_at == "2024-01-01T10:00:00+00:00"
        assert sample.chat_rate_1min == 0


class TestDateRangeValidation:
    async def test_bad_date(self) -> None:
        repo = StreamRepository(pool=None)
        with pytest.raises(ValueError):
            await repo.get_streams_by_date_range("yesterday", "2024-01-01")

    async def test_reversed_range(self) -> None:
        repo = StreamRepository(pool=None)
        with pytest.raises(ValueError):
            await repo.get_streams_by_date_range("2024-01-05", "2024-01-01")


# ---------------------------------------------------------------------------
# Timeline reads during an outage
# ---------------------------------------------------------------------------


class FakeConnection:
    def __init__(self, pool: "FakePool") -> None:
        self.pool = pool

    def _query(self) -> None:
        self.pool.queries += 1
        if self.pool.fail:
            raise ConnectionError("connection refused")

    async def fetchrow(self, query: str, stream_id: int):
        self._query()
        return _stream_row(stream_id) if stream_id in self.pool.stream_ids else None

    async def fetch(self, query: str, *args):
        self._query()
        if query == _SAMPLES_QUERY:
            return [
                {
                    "collected_at": datetime(2024, 3, 1, 10, minute, tzinfo=UTC),
                    "viewer_count": 100 + minute,
                    "chat_rate_1min": 3,
                    "category": "Just Chatting",
                    "title": "Chill",
                    "follower_count": 1000,
                }
                for minute in range(3)
            ]
        return []


class FakePool:
    def __init__(self, *stream_ids: int) -> None:
        self.stream_ids = set(stream_ids)
        self.fail = False
        self.queries = 0

    @asynccontextmanager
    async def acquire(self):
        yield FakeConnection(self)


def _stream_row(stream_id: int) -> dict:
    return {
        "id": stream_id,
        "stream_id": f"s{stream_id}",
        "channel_id": 1,
        "channel_name": "niko",
        "platform": "twitch",
        "title": "Chill",
        "category": "Just Chatting",
        "started_at": datetime(2024, 3, 1, 10, 0, tzinfo=UTC),
        "ended_at": datetime(2024, 3, 1, 11, 0, tzinfo=UTC),
        "last_collected_at": datetime(2024, 3, 1, 10, 2, tzinfo=UTC),
        "peak_viewers": 102,
        "avg_viewers": 101,
        "duration_minutes": 60,
        "minutes_watched": 202,
        "follower_gain": 0,
        "total_chat_messages": 9,
        "engagement_rate": 44.5,
    }


@pytest.fixture
def fresh_caches():
    for cache in (_stream_cache, _stream_list_cache, _timeline_cache):
        cache.clear()
    yield
    for cache in (_stream_cache, _stream_list_cache, _timeline_cache):
        cache.clear()


@pytest.mark.usefixtures("fresh_caches")
class TestTimelineOutage:
    async def test_refresh_counts_failure_without_retry(self) -> None:
        pool = FakePool(701)
        repo = StreamRepository(pool)
        session = ComparisonSession(repo, clock=lambda: NOW)

        await session.add_stream(await repo.get_stream(701))
        assert session.failed_count == 0
        assert [e.stream_id for e in session.legend] == [701]

        _timeline_cache.clear()
        _stream_cache.clear()
        pool.fail = True
        pool.queries = 0

        assert await session.refresh_timelines() is True

        assert session.failed_count == 1
        assert pool.queries == 1
        assert session.legend == []
        assert session.series == []

    async def test_timeline_does_not_serve_stale_data(self) -> None:
        pool = FakePool(702)
        repo = StreamRepository(pool)
        await repo.get_stream_timeline(702)

        _timeline_cache.clear()
        pool.fail = True

        with pytest.raises(ConnectionError):
            await repo.get_stream_timeline(702)

    async def test_missing_stream(self) -> None:
        repo = StreamRepository(FakePool())
        with pytest.raises(LookupError):
            await repo.get_stream_timeline(703)
