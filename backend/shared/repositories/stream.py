"""Repository for streams, stream_stats, and chat_messages tables."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta

import asyncpg

from shared.cache import AsyncTTLCache, cached
from shared.models import (
    CategoryChangeEvent,
    StreamRecord,
    StreamTimeline,
    TimelineSample,
    TitleChangeEvent,
)

logger = logging.getLogger(__name__)

# --- In-process caches ---
# Short TTLs: live streams gain a sample every poll interval.
_stream_cache = AsyncTTLCache(maxsize=256, ttl=30)
_stream_list_cache = AsyncTTLCache(maxsize=64, ttl=30)
_timeline_cache = AsyncTTLCache(maxsize=64, ttl=15)

# Aggregate metrics per stream. ``{where}`` filters ``streams s`` and
# ``{order}`` sorts the final projection.
_STREAM_QUERY = """
    WITH stream_metrics AS (
        SELECT
            s.id,
            s.stream_id,
            s.channel_id,
            s.title,
            s.category,
            s.started_at,
            s.ended_at,
            COALESCE(MAX(ss.viewer_count), 0) AS peak_viewers,
            COALESCE(AVG(ss.viewer_count), 0) AS avg_viewers,
            EXTRACT(EPOCH FROM (COALESCE(s.ended_at, NOW()) - s.started_at)) / 60 AS duration_minutes,
            MAX(ss.collected_at) AS last_collected_at
        FROM streams s
        LEFT JOIN stream_stats ss ON ss.stream_id = s.id
        WHERE {where}
        GROUP BY s.id
    ),
    stats_with_next AS (
        SELECT
            ss.stream_id,
            ss.viewer_count,
            ss.collected_at,
            LEAD(ss.collected_at) OVER (PARTITION BY ss.stream_id ORDER BY ss.collected_at) AS next_collected_at
        FROM stream_stats ss
        JOIN stream_metrics sm ON sm.id = ss.stream_id
    ),
    mw_calc AS (
        SELECT
            stream_id,
            COALESCE(SUM(
                COALESCE(viewer_count, 0)
                * EXTRACT(EPOCH FROM (next_collected_at - collected_at)) / 60
            ), 0)::BIGINT AS minutes_watched
        FROM stats_with_next
        WHERE next_collected_at IS NOT NULL
        GROUP BY stream_id
    ),
    follower_calc AS (
        SELECT
            ss.stream_id,
            MAX(ss.follower_count) - MIN(ss.follower_count) AS follower_gain
        FROM stream_stats ss
        JOIN stream_metrics sm ON sm.id = ss.stream_id
        WHERE ss.follower_count IS NOT NULL
        GROUP BY ss.stream_id
    ),
    chat_calc AS (
        SELECT cm.stream_id, COUNT(*)::BIGINT AS total_chat_messages
        FROM chat_messages cm
        JOIN stream_metrics sm ON sm.id = cm.stream_id
        GROUP BY cm.stream_id
    )
    SELECT
        sm.id,
        sm.stream_id,
        sm.channel_id,
        c.channel_name,
        c.platform,
        COALESCE(sm.title, '') AS title,
        COALESCE(sm.category, '') AS category,
        sm.started_at,
        sm.ended_at,
        sm.last_collected_at,
        sm.peak_viewers,
        sm.avg_viewers,
        sm.duration_minutes,
        COALESCE(mw.minutes_watched, 0) AS minutes_watched,
        COALESCE(fc.follower_gain, 0) AS follower_gain,
        COALESCE(cc.total_chat_messages, 0) AS total_chat_messages,
        CASE
            WHEN COALESCE(mw.minutes_watched, 0) > 0
            THEN COALESCE(cc.total_chat_messages, 0)::DOUBLE PRECISION / mw.minutes_watched * 1000.0
            ELSE 0.0
        END AS engagement_rate
    FROM stream_metrics sm
    JOIN channels c ON c.id = sm.channel_id
    LEFT JOIN mw_calc mw ON mw.stream_id = sm.id
    LEFT JOIN follower_calc fc ON fc.stream_id = sm.id
    LEFT JOIN chat_calc cc ON cc.stream_id = sm.id
    {order}
"""

_SAMPLES_QUERY = """
    SELECT
        ss.collected_at,
        ss.viewer_count,
        COALESCE((
            SELECT COUNT(*)
            FROM chat_messages cm
            WHERE cm.stream_id = ss.stream_id
              AND cm.timestamp >= ss.collected_at - INTERVAL '1 minute'
              AND cm.timestamp < ss.collected_at
        ), 0) AS chat_rate_1min,
        ss.category,
        ss.title,
        ss.follower_count
    FROM stream_stats ss
    WHERE ss.stream_id = $1
    ORDER BY ss.collected_at ASC
"""


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def _row_to_record(row: asyncpg.Record) -> StreamRecord:
    return StreamRecord(
        id=row["id"],
        stream_id=row["stream_id"],
        channel_id=row["channel_id"],
        channel_name=row["channel_name"],
        platform=row["platform"] or "",
        title=row["title"],
        category=row["category"],
        started_at=_iso(row["started_at"]) or "",
        ended_at=_iso(row["ended_at"]),
        last_collected_at=_iso(row["last_collected_at"]),
        peak_viewers=int(row["peak_viewers"] or 0),
        avg_viewers=int(row["avg_viewers"] or 0),
        duration_minutes=int(row["duration_minutes"] or 0),
        minutes_watched=int(row["minutes_watched"] or 0),
        follower_gain=int(row["follower_gain"] or 0),
        total_chat_messages=int(row["total_chat_messages"] or 0),
        engagement_rate=float(row["engagement_rate"] or 0.0),
    )


def _row_to_sample(row: asyncpg.Record) -> TimelineSample:
    return TimelineSample(
        collected_at=_iso(row["collected_at"]) or "",
        viewer_count=row["viewer_count"],
        chat_rate_1min=int(row["chat_rate_1min"] or 0),
        category=row["category"],
        title=row["title"],
        follower_count=row["follower_count"],
    )


def detect_category_changes(samples: list[TimelineSample]) -> list[CategoryChangeEvent]:
    """Emit an event whenever a non-empty category differs from the previous one."""
    changes: list[CategoryChangeEvent] = []
    previous: str | None = None
    for sample in samples:
        if not sample.category:
            continue
        if previous is not None and previous != sample.category:
            changes.append(
                CategoryChangeEvent(
                    timestamp=sample.collected_at,
                    from_category=previous,
                    to_category=sample.category,
                )
            )
        previous = sample.category
    return changes


def detect_title_changes(samples: list[TimelineSample]) -> list[TitleChangeEvent]:
    """Emit an event whenever a non-empty title differs from the previous one."""
    changes: list[TitleChangeEvent] = []
    previous: str | None = None
    for sample in samples:
        if not sample.title:
            continue
        if previous is not None and previous != sample.title:
            changes.append(
                TitleChangeEvent(
                    timestamp=sample.collected_at,
                    from_title=previous,
                    to_title=sample.title,
                )
            )
        previous = sample.title
    return changes


async def _fetch_stream(conn: asyncpg.Connection, stream_id: int) -> StreamRecord | None:
    query = _STREAM_QUERY.format(where="s.id = $1", order="")
    row = await conn.fetchrow(query, stream_id)
    return _row_to_record(row) if row else None


def _parse_day(value: str) -> datetime:
    """Parse ``YYYY-MM-DD`` to UTC midnight. Raises ValueError on bad input."""
    return datetime.combine(date.fromisoformat(value), time.min, tzinfo=UTC)


class StreamRepository:
    """Read-only SQL access to recorded streams and their samples."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    # ==================== Stream Lists ====================

    @cached(
        cache=_stream_list_cache,
        key_func=lambda self, channel_id, limit=50, offset=0: (
            f"channel:{channel_id}:{limit}:{offset}"
        ),
    )
    async def list_streams_for_channel(
        self, channel_id: int, limit: int = 50, offset: int = 0
    ) -> list[StreamRecord]:
        """List a channel's streams, newest first."""
        query = _STREAM_QUERY.format(
            where="s.channel_id = $1",
            order="ORDER BY sm.started_at DESC LIMIT $2 OFFSET $3",
        )
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, channel_id, limit, offset)
        return [_row_to_record(r) for r in rows]

    async def get_streams_by_date_range(
        self, date_from: str, date_to: str, limit: int = 100, offset: int = 0
    ) -> list[StreamRecord]:
        """List streams of every channel started within ``[date_from, date_to]``.

        Dates are ``YYYY-MM-DD``; both ends are inclusive.
        """
        start = _parse_day(date_from)
        end = _parse_day(date_to) + timedelta(days=1)
        if end <= start:
            raise ValueError("date_to must not be before date_from")

        query = _STREAM_QUERY.format(
            where="s.started_at >= $1 AND s.started_at < $2",
            order="ORDER BY sm.started_at DESC LIMIT $3 OFFSET $4",
        )
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, start, end, limit, offset)
        return [_row_to_record(r) for r in rows]

    # ==================== Single Stream ====================

    @cached(cache=_stream_cache, key_func=lambda self, stream_id: f"stream:{stream_id}")
    async def get_stream(self, stream_id: int) -> StreamRecord | None:
        """Get one stream with its aggregate metrics."""
        async with self.pool.acquire() as conn:
            return await _fetch_stream(conn, stream_id)

    @cached(
        cache=_timeline_cache,
        key_func=lambda self, stream_id: f"timeline:{stream_id}",
        retry=1,
        stale_fallback=False,
    )
    async def get_stream_timeline(self, stream_id: int) -> StreamTimeline:
        """Get a stream with its ordered samples and detected metadata changes.

        Single attempt, no stale fallback: a failure here is reported to the
        caller. Raises ``LookupError`` when the stream does not exist.
        """
        async with self.pool.acquire() as conn:
            info = await _fetch_stream(conn, stream_id)
            if info is None:
                raise LookupError(f"Stream {stream_id} not found")
            rows = await conn.fetch(_SAMPLES_QUERY, stream_id)
        samples = [_row_to_sample(r) for r in rows]

        return StreamTimeline(
            stream_info=info,
            samples=samples,
            category_changes=detect_category_changes(samples),
            title_changes=detect_title_changes(samples),
        )

    # ==================== Suggestions ====================

    async def get_suggested_candidates(
        self, baseline_stream_id: int, limit: int = 50
    ) -> list[StreamRecord]:
        """Streams of any channel whose broadcast overlaps the baseline's.

        An ongoing baseline counts as running until now. Streams in the same
        category come first, then by start time.
        """
        base = await self.get_stream(baseline_stream_id)
        if base is None:
            raise LookupError(f"Stream {baseline_stream_id} not found")

        base_start = datetime.fromisoformat(base.started_at)
        base_end = datetime.fromisoformat(base.ended_at) if base.ended_at else datetime.now(UTC)

        query = _STREAM_QUERY.format(
            where=(
                "s.id != $1 AND s.started_at < $2 "
                "AND COALESCE(s.ended_at, NOW()) > $3"
            ),
            order=(
                "ORDER BY CASE WHEN sm.category = $4 THEN 0 ELSE 1 END, "
                "sm.started_at ASC LIMIT $5"
            ),
        )
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                query, baseline_stream_id, base_end, base_start, base.category, limit
            )
        logger.debug(f"Stream {baseline_stream_id}: {len(rows)} suggestion candidates")
        return [_row_to_record(r) for r in rows]
