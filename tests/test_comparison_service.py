"""Tests for the in-memory session registry."""

import pytest
from conftest import FakeTimelineSource, make_stream

from services import ComparisonService, SessionNotFoundError, StreamNotFoundError
from services.comparison import SessionState


@pytest.fixture
def service() -> ComparisonService:
    return ComparisonService(ttl=600, maxsize=2, suggestion_pool_limit=5)


class TestComparisonService:
    def test_sessions_are_independent(
        self, service: ComparisonService, source: FakeTimelineSource
    ) -> None:
        first_id, first = service.create_session(source)
        second_id, second = service.create_session(source)

        assert first_id != second_id
        assert first is not second
        assert first.suggestion_pool_limit == 5
        assert service.session_count == 2

    def test_oldest_session_evicted_at_capacity(
        self, service: ComparisonService, source: FakeTimelineSource
    ) -> None:
        ids = [service.create_session(source)[0] for _ in range(3)]
        assert service.session_count == 2
        with pytest.raises(SessionNotFoundError):
            service.get_session(ids[0])

    def test_delete(self, service: ComparisonService, source: FakeTimelineSource) -> None:
        session_id, _ = service.create_session(source)
        service.delete_session(session_id)
        with pytest.raises(SessionNotFoundError):
            service.delete_session(session_id)

    async def test_add_stream_resolves_record(
        self, service: ComparisonService, source: FakeTimelineSource
    ) -> None:
        source.add(make_stream(1))
        session_id, _ = service.create_session(source)

        snapshot = await service.add_stream(session_id, 1)

        assert snapshot.state is SessionState.HAS_BASELINE
        assert [s.stream_id for s in snapshot.selection] == [1]

    async def test_add_unknown_stream(
        self, service: ComparisonService, source: FakeTimelineSource
    ) -> None:
        session_id, _ = service.create_session(source)
        with pytest.raises(StreamNotFoundError):
            await service.add_stream(session_id, 42)
