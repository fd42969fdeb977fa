"""In-memory registry of comparison sessions"""

import logging
import uuid

from cachetools import TTLCache  # type: ignore[import-untyped]

from services.comparison import ComparisonSession, ComparisonSnapshot, TimelineSource

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Comparison session {session_id} not found")
        self.session_id = session_id


class StreamNotFoundError(LookupError):
    def __init__(self, stream_id: int):
        super().__init__(f"Stream {stream_id} not found")
        self.stream_id = stream_id


class ComparisonService:
    """Create, look up and drive comparison sessions.

    Sessions are kept in a bounded TTL cache; a session expires after
    ``ttl`` seconds without being touched. Nothing is persisted.
    """

    def __init__(self, ttl: float = 3600, maxsize: int = 256, suggestion_pool_limit: int = 50):
        self._sessions: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self.suggestion_pool_limit = suggestion_pool_limit

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def create_session(self, source: TimelineSource) -> tuple[str, ComparisonSession]:
        session_id = uuid.uuid4().hex
        session = ComparisonSession(source, suggestion_pool_limit=self.suggestion_pool_limit)
        self._sessions[session_id] = session
        logger.info(f"Created comparison session {session_id}")
        return session_id, session

    def get_session(self, session_id: str) -> ComparisonSession:
        """Return the session and restart its idle timer"""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        self._sessions[session_id] = session
        return session

    def delete_session(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        logger.info(f"Deleted comparison session {session_id}")

    async def add_stream(self, session_id: str, stream_id: int) -> ComparisonSnapshot:
        session = self.get_session(session_id)
        stream = await session.source.get_stream(stream_id)
        if stream is None:
            raise StreamNotFoundError(stream_id)
        await session.add_stream(stream)
        return session.snapshot()

    async def remove_stream(self, session_id: str, stream_id: int) -> ComparisonSnapshot:
        session = self.get_session(session_id)
        await session.remove_stream(stream_id)
        return session.snapshot()

    def clear(self, session_id: str) -> ComparisonSnapshot:
        session = self.get_session(session_id)
        session.clear()
        return session.snapshot()

    async def refresh(self, session_id: str) -> ComparisonSnapshot:
        session = self.get_session(session_id)
        await session.refresh_timelines()
        return session.snapshot()
