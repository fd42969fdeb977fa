"""API Routers package

Routers are organized by feature domain.
"""

from . import comparison_router, streams_router

__all__ = [
    "comparison_router",
    "streams_router",
]
