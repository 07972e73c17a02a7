"""Health check endpoints for the HoneyBee API.

Reports cache store reachability, browser pool state and scheduler status.
"""

from datetime import datetime, timezone
import time
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_browser_pool, get_cache_store, get_scheduler
from src.api.models import HealthCheckResponse, HealthStatus
from src.browser.pool import BrowserPool
from src.cache.store import CacheStore
from src.scheduler.scheduler import Scheduler

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])

# Track server start time for uptime calculation
_server_start_time: Optional[float] = None


def set_server_start_time() -> None:
    """Set the server start time. Called on application startup."""
    global _server_start_time
    _server_start_time = time.time()


def get_uptime_seconds() -> Optional[float]:
    """Get server uptime in seconds."""
    if _server_start_time is None:
        return None
    return time.time() - _server_start_time


async def check_cache_health(cache: CacheStore) -> HealthStatus:
    """Check cache backend connectivity."""
    start_time = time.time()
    reachable = await cache.ping()
    latency = (time.time() - start_time) * 1000

    if reachable:
        return HealthStatus(status="healthy", latency_ms=round(latency, 2), message="Cache store reachable")
    return HealthStatus(status="unhealthy", latency_ms=round(latency, 2), message="Cache store unreachable")


def check_browser_pool_health(pool: BrowserPool) -> HealthStatus:
    pool_status = pool.status()
    if pool_status.closed:
        return HealthStatus(status="unhealthy", message="Browser pool is closed")
    if pool_status.active_handles >= pool_status.capacity:
        return HealthStatus(status="degraded", message="Browser pool at capacity")
    return HealthStatus(
        status="healthy",
        message=f"{pool_status.total_browsers} browsers, {pool_status.active_handles} pages in use",
    )


def check_scheduler_health(scheduler: Optional[Scheduler]) -> HealthStatus:
    """Check scheduler status."""
    if scheduler and scheduler.is_running:
        return HealthStatus(status="healthy", message="Scheduler is running")
    return HealthStatus(status="degraded", message="Scheduler is not running")


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health Check",
    description="Check the health status of the API and its dependencies.",
)
async def health_check(
    cache: CacheStore = Depends(get_cache_store),
    pool: BrowserPool = Depends(get_browser_pool),
    scheduler: Optional[Scheduler] = Depends(get_scheduler),
) -> HealthCheckResponse:
    """
    Perform a health check of all system components.

    Returns the status of:
    - Cache store (Supabase or in-memory)
    - Browser pool
    - Scheduler (APScheduler)
    """
    services = {
        "cache": await check_cache_health(cache),
        "browser_pool": check_browser_pool_health(pool),
        "scheduler": check_scheduler_health(scheduler),
    }

    statuses = [s.status for s in services.values()]
    if all(s == "healthy" for s in statuses):
        overall_status = "healthy"
    elif any(s == "unhealthy" for s in statuses):
        overall_status = "unhealthy"
    else:
        overall_status = "degraded"

    return HealthCheckResponse(
        status=overall_status,
        version="1.0.0",
        timestamp=datetime.now(timezone.utc),
        services=services,
        uptime_seconds=get_uptime_seconds(),
    )


@router.get(
    "/health/live",
    summary="Liveness Check",
    description="Simple liveness check for container orchestration.",
)
async def liveness() -> dict:
    """Returns 200 if the service is alive."""
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Check if the service is ready to accept traffic.",
)
async def readiness(cache: CacheStore = Depends(get_cache_store)) -> dict:
    """
    Readiness probe.

    Returns 200 only if the cache store answers.
    """
    cache_status = await check_cache_health(cache)
    if cache_status.status == "unhealthy":
        raise HTTPException(
            status_code=503,
            detail="Service not ready: cache store unavailable",
        )

    return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
