"""FastAPI application factory"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from promo_analytics import __version__
from promo_analytics.api.core.config import Settings, get_settings
from promo_analytics.api.core.database import (
    get_database_manager,
    init_database_manager,
    reset_database_manager,
)
from promo_analytics.api.core.logging import setup_logging
from promo_analytics.api.core.middleware import BodySizeLimitMiddleware
from promo_analytics.api.routers import (
    events_router,
    meta_router,
    registrations_router,
    sessions_router,
    stats_router,
)
from promo_analytics.api.services.metadata_service import configure_dimensions_cache
from promo_analytics.shared.migrations import MigrationRunner

logger = logging.getLogger(__name__)


def _build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Open the event store before serving, close it on shutdown"""
        app.state.started_at = time.time()
        logger.info(f"Starting promo analytics API ({settings.environment})")

        db_manager = init_database_manager(settings)
        await db_manager.connect()
        if settings.run_migrations:
            await MigrationRunner(db_manager.pool).run_pending()

        yield

        logger.info("Shutting down promo analytics API")
        await db_manager.disconnect()
        reset_database_manager()

    return lifespan


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    settings = settings or get_settings()

    setup_logging(settings)
    configure_dimensions_cache(settings.meta_cache_ttl)

    app = FastAPI(
        title="Promo Analytics API",
        description="Campaign event ingestion and funnel analytics",
        version=__version__,
        lifespan=_build_lifespan(settings),
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.settings = settings

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    cors_origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Every client-visible error uses the {"error": message} shape
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
        return _error_response(400, "Invalid request")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error_response(500, "Internal server error")

    app.include_router(events_router.router)
    app.include_router(registrations_router.router)
    app.include_router(stats_router.router)
    app.include_router(meta_router.router)
    app.include_router(sessions_router.router)

    @app.get("/healthz")
    async def healthz():
        """Liveness check (no DB dependency)"""
        return {"ok": True}

    @app.get("/status")
    async def status():
        """Readiness check including a DB round trip"""
        try:
            db_ok = await get_database_manager().check_health()
        except RuntimeError:
            db_ok = False
        started_at = getattr(app.state, "started_at", None)
        return {
            "service": "promo-analytics",
            "version": __version__,
            "uptime_seconds": int(time.time() - started_at) if started_at else 0,
            "db_connected": db_ok,
            "environment": settings.environment,
        }

    logger.info("FastAPI application configured")

    return app
