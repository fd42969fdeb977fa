"""Dependency injection utilities for FastAPI"""

import logging

import asyncpg
from fastapi import HTTPException

from core.config import get_settings
from core.database import get_database_manager
from services import ComparisonService
from services.comparison import TimelineSource
from shared.repositories import StreamRepository

logger = logging.getLogger(__name__)


# ============================================
# Database / Repository Dependencies
# ============================================


def get_db_pool() -> asyncpg.Pool:
    db_manager = get_database_manager()
    if not db_manager.is_connected:
        raise HTTPException(status_code=503, detail="Database not ready")
    return db_manager.pool


def get_stream_source() -> TimelineSource:
    """Get the stream data source backed by the shared pool"""
    return StreamRepository(get_db_pool())


# ============================================
# Service Dependencies
# ============================================

_comparison_service: ComparisonService | None = None


def get_comparison_service() -> ComparisonService:
    """Get shared ComparisonService singleton (sessions live in process memory)"""
    global _comparison_service
    if _comparison_service is None:
        settings = get_settings()
        _comparison_service = ComparisonService(
            ttl=settings.session_ttl_seconds,
            maxsize=settings.max_sessions,
            suggestion_pool_limit=settings.suggestion_pool_limit,
        )
    return _comparison_service


def reset_comparison_service() -> None:
    """Drop every comparison session. Call on app shutdown."""
    global _comparison_service
    _comparison_service = None
