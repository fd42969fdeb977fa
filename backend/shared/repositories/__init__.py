"""Shared repository layer for StreamLens backend services."""

from .stream import StreamRepository, detect_category_changes, detect_title_changes

__all__ = [
    "StreamRepository",
    "detect_category_changes",
    "detect_title_changes",
]
