"""Analytics over the current corpus."""

from fastapi import APIRouter, Depends, Query

from src.analytics import (
    AuthorReport,
    KeywordReport,
    PlatformStatsReport,
    TrendingReport,
    analyze_authors,
    analyze_keywords,
    analyze_platforms,
    analyze_trending,
)
from src.api.dependencies import get_corpus
from src.orchestration.aggregator import CorpusSnapshot

router = APIRouter(prefix="/analytics", tags=["Analytics"])

_SYNTHETIC = Query(False, description="Count synthetic engagement numbers")


@router.get("/trending", response_model=TrendingReport)
async def trending(
    include_synthetic: bool = _SYNTHETIC,
    snapshot: CorpusSnapshot = Depends(get_corpus),
) -> TrendingReport:
    return analyze_trending(snapshot.articles, include_synthetic=include_synthetic)


@router.get("/platforms", response_model=PlatformStatsReport)
async def platforms(
    include_synthetic: bool = _SYNTHETIC,
    snapshot: CorpusSnapshot = Depends(get_corpus),
) -> PlatformStatsReport:
    return analyze_platforms(snapshot.articles, include_synthetic=include_synthetic)


@router.get("/keywords", response_model=KeywordReport)
async def keywords(snapshot: CorpusSnapshot = Depends(get_corpus)) -> KeywordReport:
    return analyze_keywords(snapshot.articles)


@router.get("/authors", response_model=AuthorReport)
async def authors(
    include_synthetic: bool = _SYNTHETIC,
    snapshot: CorpusSnapshot = Depends(get_corpus),
) -> AuthorReport:
    return analyze_authors(snapshot.articles, include_synthetic=include_synthetic)
