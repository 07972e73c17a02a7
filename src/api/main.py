"""HoneyBee API - Main FastAPI Application.

This module provides the main FastAPI application. It includes:
- CORS and API key middleware
- API versioning (/api/v1)
- Health check endpoints
- Corpus, cron, cache, monitor, analytics and platform endpoints
- Prometheus metrics at /metrics
- Container and scheduler lifecycle

Usage:
    uvicorn src.api.main:app --reload
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

import structlog
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.dependencies import reset_dependencies, set_scheduler
from src.api.models import ErrorResponse, ValidationErrorDetail, ValidationErrorResponse
from src.api.routes import (
    analytics_router,
    cache_router,
    cron_router,
    feeds_router,
    health_router,
    monitor_router,
    platforms_router,
    search_router,
)
from src.api.routes.health import set_server_start_time
from src.config.settings import get_settings
from src.core.container import initialize_container, shutdown_container
from src.core.exceptions import CacheStoreError, CollectionRunError
from src.monitoring.metrics import get_metrics_app
from src.scheduler.scheduler import Scheduler

logger = structlog.get_logger(__name__)

API_TITLE = "HoneyBee API"
API_DESCRIPTION = """
## IT content aggregation

HoneyBee collects articles, videos and courses from Korean and global tech
platforms (RSS feeds, rendered pages and course listings), merges them into
one deduplicated corpus and serves it with search and simple analytics.

### Collection

- Daily scheduled collection (05:00 KST) with courses thirty minutes later
- Manual refresh via `POST /api/v1/feeds/refresh` (Bearer cron secret)

### Authentication

Collection triggers require `Authorization: Bearer <CRON_SECRET>`.
Optional API key authentication: set `API_KEY_ENABLED=true` and `API_KEY`.
"""
API_VERSION = "1.0.0"


# =============================================================================
# API Key Authentication Middleware
# =============================================================================


class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Validates the X-API-Key header for all requests except health/docs/metrics.

    Enable by setting API_KEY_ENABLED=true and API_KEY=<secret> in environment.
    """

    PUBLIC_PATHS = {"/", "/health", "/health/live", "/health/ready", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        settings = get_settings()

        if not settings.api_key_enabled:
            return await call_next(request)

        if request.url.path in self.PUBLIC_PATHS or request.url.path.startswith("/metrics"):
            return await call_next(request)

        api_key = request.headers.get("X-API-Key")
        expected_key = settings.api_key.get_secret_value() if settings.api_key else None

        if not expected_key:
            logger.error("api_key_enabled_but_not_set")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Server misconfiguration: API key authentication enabled but no key configured"},
            )

        if not api_key:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Missing X-API-Key header"},
            )

        if api_key != expected_key:
            logger.warning("invalid_api_key_attempt", path=request.url.path)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Invalid API key"},
            )

        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    - Startup: build the dependency container, start the scheduler
    - Shutdown: stop the scheduler, close the browser pool and HTTP client
    """
    logger.info("application_starting")
    set_server_start_time()
    settings = get_settings()

    container = await initialize_container()

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = Scheduler(container.orchestrator, settings)
        try:
            await scheduler.start()
            logger.info("scheduler_initialized")
        except Exception as e:
            # Manual and cron-endpoint runs still work without the scheduler
            logger.error("scheduler_initialization_failed", error=str(e))
    set_scheduler(scheduler)

    logger.info("application_started")

    yield

    logger.info("application_stopping")

    if scheduler is not None and scheduler.is_running:
        try:
            await scheduler.stop()
        except Exception as e:
            logger.error("scheduler_shutdown_error", error=str(e))

    await shutdown_container()
    reset_dependencies()
    logger.info("application_stopped")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=[
        {"name": "Health", "description": "System health and status endpoints"},
        {"name": "Feeds", "description": "The aggregated corpus and forced refresh"},
        {"name": "Cron", "description": "Scheduled collection triggers"},
        {"name": "Cache", "description": "Cache inspection and invalidation"},
        {"name": "Monitor", "description": "Collection statistics, errors and trends"},
        {"name": "Analytics", "description": "Trending, platform, keyword and author analytics"},
        {"name": "Search", "description": "Search over the corpus"},
        {"name": "Platforms", "description": "Configured collection platforms"},
    ],
)

_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allowed_origins,
    allow_credentials=_settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-API-Key", "Accept"],
)
app.add_middleware(APIKeyMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with detailed response."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append(ValidationErrorDetail(
            field=field,
            message=error["msg"],
            value=error.get("input"),
        ))

    response = ValidationErrorResponse(
        errors=errors,
        timestamp=datetime.now(timezone.utc),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=response.model_dump(mode="json"),
    )


@app.exception_handler(CollectionRunError)
async def collection_run_exception_handler(
    request: Request, exc: CollectionRunError
) -> JSONResponse:
    """A collection run failed as a whole and no cached corpus could stand in."""
    logger.error("collection_run_failed", path=request.url.path, error=str(exc))

    response = ErrorResponse(
        error="collection_failed",
        message=exc.message,
        detail=str(exc.details) if exc.details and get_settings().debug else None,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(mode="json"),
    )


@app.exception_handler(CacheStoreError)
async def cache_store_exception_handler(
    request: Request, exc: CacheStoreError
) -> JSONResponse:
    logger.error("cache_store_failed", path=request.url.path, error=str(exc))

    response = ErrorResponse(
        error="cache_unavailable",
        message=exc.message,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )

    response = ErrorResponse(
        error="internal_server_error",
        message="An unexpected error occurred",
        detail=str(exc) if get_settings().debug else None,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=response.model_dump(mode="json"),
    )


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/", include_in_schema=False)
async def root() -> dict:
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "api": "/api/v1",
    }


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(feeds_router)
api_v1_router.include_router(cron_router)
api_v1_router.include_router(cache_router)
api_v1_router.include_router(monitor_router)
api_v1_router.include_router(analytics_router)
api_v1_router.include_router(search_router)
api_v1_router.include_router(platforms_router)

app.include_router(api_v1_router)

app.mount("/metrics", get_metrics_app())


@app.get("/api/v1", include_in_schema=False)
async def api_v1_root() -> dict:
    """API v1 root - shows available endpoints."""
    return {
        "version": "v1",
        "endpoints": {
            "feeds": "/api/v1/feeds",
            "cron": "/api/v1/cron",
            "cache": "/api/v1/cache/info",
            "monitor": "/api/v1/monitor/statistics",
            "analytics": "/api/v1/analytics/trending",
            "search": "/api/v1/search",
            "platforms": "/api/v1/platforms",
        },
        "documentation": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
