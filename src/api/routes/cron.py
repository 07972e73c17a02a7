"""Cron entry points for external schedulers.

Both require `Authorization: Bearer <cron_secret>`.
"""

import structlog
from fastapi import APIRouter, Depends

from src.api.dependencies import get_orchestrator, verify_cron_secret
from src.api.models import CollectionSummaryResponse
from src.api.routes.feeds import summary_response
from src.orchestration.aggregator import CollectionOrchestrator

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"], dependencies=[Depends(verify_cron_secret)])


@router.get("/collect-feeds", response_model=CollectionSummaryResponse, summary="Collect all feeds")
async def collect_feeds(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> CollectionSummaryResponse:
    logger.info("cron_collect_feeds_started")
    report = await orchestrator.collect_fresh()
    return summary_response("collect-feeds", report)


@router.get("/collect-courses", response_model=CollectionSummaryResponse, summary="Collect courses")
async def collect_courses(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> CollectionSummaryResponse:
    logger.info("cron_collect_courses_started")
    report = await orchestrator.collect_courses()
    return summary_response("collect-courses", report)
