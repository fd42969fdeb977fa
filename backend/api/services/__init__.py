"""Services layer - Business logic

Services are initialized with their dependencies and accessed through
dependency injection.
"""

from .comparison_service import ComparisonService, SessionNotFoundError, StreamNotFoundError

__all__ = [
    "ComparisonService",
    "SessionNotFoundError",
    "StreamNotFoundError",
]
