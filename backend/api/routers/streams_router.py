"""Stream listing and timeline API routes"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from core.dependencies import get_stream_source
from services.comparison import TimelineSource, is_stream_live
from shared.models import StreamRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/streams", tags=["streams"])


# ============================================
# Response Models
# ============================================


class StreamInfo(BaseModel):
    id: int
    stream_id: str
    channel_id: int | None
    channel_name: str
    platform: str
    title: str
    category: str
    started_at: str
    ended_at: str | None
    last_collected_at: str | None
    peak_viewers: int
    avg_viewers: int
    duration_minutes: int
    minutes_watched: int
    follower_gain: int
    total_chat_messages: int
    engagement_rate: float
    is_live: bool

    @classmethod
    def from_record(cls, record: StreamRecord) -> "StreamInfo":
        return cls(**asdict(record), is_live=is_stream_live(record))


class TimelinePoint(BaseModel):
    collected_at: str
    viewer_count: int | None
    chat_rate_1min: int | None
    category: str | None
    title: str | None
    follower_count: int | None


class CategoryChange(BaseModel):
    timestamp: str
    from_category: str | None
    to_category: str


class TitleChange(BaseModel):
    timestamp: str
    from_title: str | None
    to_title: str


class StreamTimelineResponse(BaseModel):
    stream_info: StreamInfo
    stats: list[TimelinePoint]
    category_changes: list[CategoryChange]
    title_changes: list[TitleChange]


# ============================================
# Endpoints
# ============================================


@router.get("/channels/{channel_id}", response_model=list[StreamInfo])
async def list_channel_streams(
    channel_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    source: TimelineSource = Depends(get_stream_source),
) -> list[StreamInfo]:
    """
    List a channel's streams, newest first

    Args:
        limit: Maximum number of streams to return (default: 50)
        offset: Number of streams to skip
    """
    try:
        streams = await source.list_streams_for_channel(channel_id, limit, offset)
        return [StreamInfo.from_record(s) for s in streams]

    except Exception as e:
        logger.exception(f"Failed to list streams for channel {channel_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch streams") from None


@router.get("", response_model=list[StreamInfo])
async def list_streams_by_date_range(
    date_from: str,
    date_to: str,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    source: TimelineSource = Depends(get_stream_source),
) -> list[StreamInfo]:
    """
    List streams of all channels started within a date range

    Args:
        date_from: First day, YYYY-MM-DD (inclusive)
        date_to: Last day, YYYY-MM-DD (inclusive)
    """
    try:
        streams = await source.get_streams_by_date_range(date_from, date_to, limit, offset)
        return [StreamInfo.from_record(s) for s in streams]

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    except Exception as e:
        logger.exception(f"Failed to list streams by date range: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch streams") from None


@router.get("/{stream_id}/timeline", response_model=StreamTimelineResponse)
async def get_stream_timeline(
    stream_id: int,
    source: TimelineSource = Depends(get_stream_source),
) -> StreamTimelineResponse:
    """Get one stream's samples and detected category/title changes"""
    try:
        timeline = await source.get_stream_timeline(stream_id)

    except LookupError:
        raise HTTPException(status_code=404, detail="Stream not found") from None
    except Exception as e:
        logger.exception(f"Failed to get timeline for stream {stream_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch timeline") from None

    return StreamTimelineResponse(
        stream_info=StreamInfo.from_record(timeline.stream_info),
        stats=[TimelinePoint(**asdict(s)) for s in timeline.samples],
        category_changes=[CategoryChange(**asdict(c)) for c in timeline.category_changes],
        title_changes=[TitleChange(**asdict(c)) for c in timeline.title_changes],
    )
