"""Corpus read and refresh endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_corpus, get_orchestrator, verify_cron_secret
from src.api.models import CollectionSummaryResponse, FeedResponse
from src.collectors.normalization.schema import ArticleCategory, ContentType
from src.orchestration.aggregator import CollectionOrchestrator, CollectionReport, CorpusSnapshot

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/feeds", tags=["Feeds"])


def summary_response(job: str, report: CollectionReport) -> CollectionSummaryResponse:
    return CollectionSummaryResponse(job=job, **report.summary())


@router.get(
    "",
    response_model=FeedResponse,
    summary="Current corpus",
    description="Cached corpus, collected fresh when the cache is empty or older than the staleness threshold.",
)
async def list_feeds(
    platform: Optional[str] = Query(None, description="Platform id"),
    category: Optional[ArticleCategory] = Query(None),
    content_type: Optional[ContentType] = Query(None),
    limit: int = Query(50, ge=1, le=300),
    offset: int = Query(0, ge=0),
    snapshot: CorpusSnapshot = Depends(get_corpus),
) -> FeedResponse:
    articles = snapshot.articles
    if platform:
        articles = [a for a in articles if a.platform.id == platform]
    if category:
        articles = [a for a in articles if a.category == category]
    if content_type:
        articles = [a for a in articles if a.content_type == content_type]

    return FeedResponse(
        articles=articles[offset : offset + limit],
        total=len(articles),
        limit=limit,
        offset=offset,
        origin=snapshot.origin,
        stale=snapshot.is_stale,
        last_updated=snapshot.last_updated,
        hours_since_update=snapshot.hours_since_update,
    )


@router.post(
    "/refresh",
    response_model=CollectionSummaryResponse,
    summary="Force a fresh collection",
    dependencies=[Depends(verify_cron_secret)],
)
async def refresh_feeds(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> CollectionSummaryResponse:
    logger.info("manual_refresh_requested")
    report = await orchestrator.collect_fresh()
    return summary_response("collect-feeds", report)
