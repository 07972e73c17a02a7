"""Cache inspection and invalidation."""

import structlog
from fastapi import APIRouter, Depends

from src.api.dependencies import get_cache_store, verify_cron_secret
from src.api.models import CacheClearResponse, CacheInfoResponse
from src.cache.store import CacheStore
from src.config.settings import Settings, get_settings
from src.orchestration.aggregator import needs_update

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/cache", tags=["Cache"])


@router.get("/info", response_model=CacheInfoResponse, summary="Cache age and size")
async def cache_info(
    cache: CacheStore = Depends(get_cache_store),
    settings: Settings = Depends(get_settings),
) -> CacheInfoResponse:
    info = await cache.get_cache_info()
    return CacheInfoResponse(
        last_updated=info.last_updated,
        hours_since_update=info.hours_since_update,
        article_count=info.article_count,
        stale=needs_update(info, settings.cache_stale_hours),
    )


@router.delete(
    "",
    response_model=CacheClearResponse,
    summary="Clear the cached corpus",
    dependencies=[Depends(verify_cron_secret)],
)
async def clear_cache(cache: CacheStore = Depends(get_cache_store)) -> CacheClearResponse:
    await cache.clear_cache()
    logger.info("cache_cleared_via_api")
    return CacheClearResponse()
