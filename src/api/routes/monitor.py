"""Collection monitoring endpoints."""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_browser_pool, get_monitor
from src.browser.pool import BrowserPool
from src.monitoring.collection_monitor import CollectionMonitor

router = APIRouter(prefix="/monitor", tags=["Monitor"])


@router.get("/statistics", summary="Aggregate collection statistics")
async def statistics(monitor: CollectionMonitor = Depends(get_monitor)) -> dict:
    return monitor.get_statistics().to_dict()


@router.get("/sources", summary="Per-source collection statistics")
async def sources(monitor: CollectionMonitor = Depends(get_monitor)) -> dict:
    return {source_id: stats.to_dict() for source_id, stats in monitor.get_crawler_statistics().items()}


@router.get("/errors", summary="Most recent collection errors")
async def errors(
    limit: int = Query(50, ge=1, le=1000),
    monitor: CollectionMonitor = Depends(get_monitor),
) -> dict:
    records = monitor.get_recent_errors(limit)
    return {"errors": [r.to_dict() for r in records], "total": len(records)}


@router.get("/trends", summary="Hourly collection trends")
async def trends(
    hours: int = Query(24, ge=1, le=168),
    monitor: CollectionMonitor = Depends(get_monitor),
) -> dict:
    return {"hours": hours, "trends": [t.to_dict() for t in monitor.get_performance_trends(hours)]}


@router.get("/browser-pool", summary="Browser pool status")
async def browser_pool(pool: BrowserPool = Depends(get_browser_pool)) -> dict:
    return pool.status().to_dict()
