"""FastAPI application factory"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from core.config import get_settings
from core.database import get_database_manager, init_database_manager
from core.dependencies import get_comparison_service, reset_comparison_service
from core.logging import setup_logging
from routers import comparison_router, streams_router
from shared.database import DatabaseManager

logger = logging.getLogger(__name__)

SERVICE_NAME = "streamlens-api"
VERSION = "1.0.0"

_start_time: float = 0.0
_db_retry_task: asyncio.Task | None = None


async def _db_retry_loop(db_manager: DatabaseManager) -> None:
    """Keep retrying the DB connection after a failed startup attempt."""
    delay = 5
    max_delay = 60
    while True:
        await asyncio.sleep(delay)
        if db_manager.is_connected:
            return
        try:
            await db_manager.connect()
            logger.info("Database connected (background retry)")
            return
        except asyncio.CancelledError:
            return
        except Exception as e:
            delay = min(delay * 2, max_delay)
            logger.warning(
                f"DB background retry failed: {type(e).__name__}: {e}, next retry in {delay}s"
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    global _start_time, _db_retry_task
    _start_time = time.time()

    settings = get_settings()
    logger.info("Starting StreamLens API server")
    logger.info(f"Environment: {settings.environment}")

    # Serve requests only once the pool is ready, or hand off to a retry loop
    db_manager = init_database_manager(settings.database_url, ssl=settings.database_ssl)
    try:
        await asyncio.wait_for(db_manager.connect(), timeout=30)
        logger.info("Database connected")
    except TimeoutError:
        logger.warning("DB connection timed out during startup, retrying in background")
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))
    except Exception as e:
        logger.error(
            f"DB connection failed during startup: {type(e).__name__}: {e}, retrying in background"
        )
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))

    yield

    logger.info("Shutting down StreamLens API server")
    if _db_retry_task:
        _db_retry_task.cancel()
    reset_comparison_service()
    try:
        await db_manager.disconnect()
    except Exception as e:
        logger.exception(f"Error during shutdown: {e}")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="StreamLens API",
        description="Side-by-side comparison of recorded live-stream timelines",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(streams_router.router)
    app.include_router(comparison_router.router)

    @app.get("/")
    async def root():
        """Root endpoint - minimal service info"""
        return {"service": SERVICE_NAME, "status": "running"}

    @app.get("/health")
    async def health():
        """Liveness check (no DB dependency)"""
        return {"status": "healthy", "uptime_seconds": int(time.time() - _start_time)}

    @app.get("/status")
    async def status():
        """Readiness check including DB health and open comparison sessions"""
        try:
            db_ok = await get_database_manager().check_health()
        except RuntimeError:
            db_ok = False
        return {
            "service": SERVICE_NAME,
            "version": VERSION,
            "uptime_seconds": int(time.time() - _start_time),
            "db_connected": db_ok,
            "comparison_sessions": get_comparison_service().session_count,
            "environment": settings.environment,
        }

    @app.api_route("/ping", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    async def ping():
        return "pong"

    logger.info("FastAPI application configured")

    return app
