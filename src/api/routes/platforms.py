"""Platform descriptor table."""

from collections import Counter
from typing import Optional

from fastapi import APIRouter, Query

from src.api.models import PlatformListResponse, PlatformResponse
from src.config.platforms import PLATFORM_CONFIGS, CollectionMethod, PlatformConfig, PlatformType

router = APIRouter(prefix="/platforms", tags=["Platforms"])


def to_response(platform: PlatformConfig) -> PlatformResponse:
    return PlatformResponse(
        id=platform.id,
        name=platform.name,
        display_name=platform.display_name,
        type=platform.type.value,
        collection_method=platform.collection_method.value,
        base_url=platform.base_url,
        rss_url=platform.rss_url,
        crawler_type=platform.crawler_type,
        channel_name=platform.channel_name,
        description=platform.description,
        is_active=platform.is_active,
        limit=platform.limit,
    )


@router.get("", response_model=PlatformListResponse, summary="List platforms")
async def list_platforms(
    type: Optional[PlatformType] = Query(None),
    method: Optional[CollectionMethod] = Query(None),
    active_only: bool = Query(False),
) -> PlatformListResponse:
    platforms = list(PLATFORM_CONFIGS.values())
    if type:
        platforms = [p for p in platforms if p.type == type]
    if method:
        platforms = [p for p in platforms if p.collection_method == method]
    if active_only:
        platforms = [p for p in platforms if p.is_active]

    return PlatformListResponse(
        platforms=[to_response(p) for p in platforms],
        total=len(platforms),
        by_type=dict(Counter(p.type.value for p in platforms)),
        by_method=dict(Counter(p.collection_method.value for p in platforms)),
    )
