"""Multi-stream comparison API routes"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from core.dependencies import get_comparison_service, get_stream_source
from routers.streams_router import StreamInfo
from services import ComparisonService, SessionNotFoundError, StreamNotFoundError
from services.comparison import (
    ComparisonSnapshot,
    DuplicateStreamError,
    SelectionFullError,
    StreamNotSelectedError,
    TimelineSource,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comparison", tags=["comparison"])


# ============================================
# Request / Response Models
# ============================================


class AddStreamRequest(BaseModel):
    stream_id: int


class SelectedStreamModel(BaseModel):
    stream_id: int
    channel_name: str
    stream_title: str
    started_at: str
    color: str


class LegendEntryModel(BaseModel):
    stream_id: int
    label: str
    color: str


class SeriesRowModel(BaseModel):
    timestamp: str
    timestamp_ms: int
    values: dict[int, int]


class ComparisonEventModel(BaseModel):
    timestamp: str
    timestamp_ms: int
    event_type: str
    stream_id: int
    stream_label: str
    description: str
    color: str


class SuggestionModel(BaseModel):
    stream: StreamInfo
    score: int
    reasons: list[str]


class ComparisonState(BaseModel):
    session_id: str
    state: str
    selection: list[SelectedStreamModel]
    legend: list[LegendEntryModel]
    series: list[SeriesRowModel]
    chat_series: list[SeriesRowModel]
    events: list[ComparisonEventModel]
    suggestions: list[SuggestionModel]
    failed_count: int
    notice: str | None

    @classmethod
    def from_snapshot(cls, session_id: str, snapshot: ComparisonSnapshot) -> "ComparisonState":
        return cls(
            session_id=session_id,
            state=snapshot.state.value,
            selection=[SelectedStreamModel(**asdict(s)) for s in snapshot.selection],
            legend=[LegendEntryModel(**asdict(e)) for e in snapshot.legend],
            series=[SeriesRowModel(**asdict(r)) for r in snapshot.series],
            chat_series=[SeriesRowModel(**asdict(r)) for r in snapshot.chat_series],
            events=[ComparisonEventModel(**asdict(e)) for e in snapshot.events],
            suggestions=[
                SuggestionModel(
                    stream=StreamInfo.from_record(s.stream), score=s.score, reasons=s.reasons
                )
                for s in snapshot.suggestions
            ],
            failed_count=snapshot.failed_count,
            notice=snapshot.notice,
        )


# ============================================
# Endpoints
# ============================================


@router.post("/sessions", response_model=ComparisonState, status_code=201)
async def create_session(
    source: TimelineSource = Depends(get_stream_source),
    service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonState:
    """Start an empty comparison session"""
    session_id, session = service.create_session(source)
    return ComparisonState.from_snapshot(session_id, session.snapshot())


@router.get("/sessions/{session_id}", response_model=ComparisonState)
async def get_session(
    session_id: str,
    service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonState:
    """Get the current selection, merged series, events and suggestions"""
    try:
        session = service.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Comparison session not found") from None
    return ComparisonState.from_snapshot(session_id, session.snapshot())


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    service: ComparisonService = Depends(get_comparison_service),
) -> Response:
    try:
        service.delete_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Comparison session not found") from None
    return Response(status_code=204)


@router.post("/sessions/{session_id}/streams", response_model=ComparisonState)
async def add_stream(
    session_id: str,
    body: AddStreamRequest,
    service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonState:
    """
    Add a stream to the comparison

    The first stream becomes the baseline and triggers similarity suggestions.
    Returns 409 when the selection is full or already contains the stream.
    """
    try:
        snapshot = await service.add_stream(session_id, body.stream_id)
        logger.info(f"Session {session_id}: added stream {body.stream_id}")
        return ComparisonState.from_snapshot(session_id, snapshot)

    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Comparison session not found") from None
    except StreamNotFoundError:
        raise HTTPException(status_code=404, detail="Stream not found") from None
    except (SelectionFullError, DuplicateStreamError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except Exception as e:
        logger.exception(f"Failed to add stream {body.stream_id} to session {session_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to add stream") from None


@router.delete("/sessions/{session_id}/streams/{stream_id}", response_model=ComparisonState)
async def remove_stream(
    session_id: str,
    stream_id: int,
    service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonState:
    """Remove a stream from the comparison"""
    try:
        snapshot = await service.remove_stream(session_id, stream_id)
        return ComparisonState.from_snapshot(session_id, snapshot)

    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Comparison session not found") from None
    except StreamNotSelectedError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except Exception as e:
        logger.exception(f"Failed to remove stream {stream_id} from session {session_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to remove stream") from None


@router.delete("/sessions/{session_id}/streams", response_model=ComparisonState)
async def clear_selection(
    session_id: str,
    service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonState:
    """Remove every stream and drop the suggestions"""
    try:
        snapshot = service.clear(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Comparison session not found") from None
    return ComparisonState.from_snapshot(session_id, snapshot)


@router.post("/sessions/{session_id}/refresh", response_model=ComparisonState)
async def refresh_timelines(
    session_id: str,
    service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonState:
    """Re-fetch every selected stream's timeline"""
    try:
        snapshot = await service.refresh(session_id)
        return ComparisonState.from_snapshot(session_id, snapshot)

    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Comparison session not found") from None
    except Exception as e:
        logger.exception(f"Failed to refresh session {session_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to refresh timelines") from None
