"""Queries the comparison engine needs from the data store."""

from __future__ import annotations

from typing import Protocol

from shared.models import StreamRecord, StreamTimeline


class TimelineSource(Protocol):
    """Read-only access to stored streams.

    Implemented by ``shared.repositories.StreamRepository``; tests use an
    in-memory fake.
    """

    async def list_streams_for_channel(
        self, channel_id: int, limit: int = 50, offset: int = 0
    ) -> list[StreamRecord]: ...

    async def get_streams_by_date_range(
        self, date_from: str, date_to: str, limit: int = 100, offset: int = 0
    ) -> list[StreamRecord]: ...

    async def get_stream(self, stream_id: int) -> StreamRecord | None: ...

    async def get_stream_timeline(self, stream_id: int) -> StreamTimeline: ...

    async def get_suggested_candidates(
        self, baseline_stream_id: int, limit: int = 50
    ) -> list[StreamRecord]: ...
