"""Full-text search over the current corpus."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.analytics.search import SearchFilters, SearchResult, SortBy, search_articles
from src.api.dependencies import get_corpus
from src.collectors.normalization.schema import ArticleCategory, ContentType
from src.orchestration.aggregator import CorpusSnapshot

router = APIRouter(tags=["Search"])


def search_query(q: Optional[str] = Query(None, description="Case-insensitive substring")) -> str:
    """Reject a missing or blank query before the corpus is loaded."""
    if q is None or not q.strip():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Search query must not be empty")
    return q


@router.get("/search", response_model=SearchResult)
async def search(
    q: str = Depends(search_query),
    category: Optional[ArticleCategory] = Query(None),
    platform: Optional[str] = Query(None, description="Platform id"),
    author: Optional[str] = Query(None, description="Author name substring"),
    content_type: Optional[ContentType] = Query(None),
    sort_by: SortBy = Query(SortBy.RELEVANCE),
    include_synthetic: bool = Query(False, description="Sort views/likes on synthetic counters too"),
    limit: int = Query(50, ge=1, le=200),
    snapshot: CorpusSnapshot = Depends(get_corpus),
) -> SearchResult:
    filters = SearchFilters(category=category, platform=platform, author=author, content_type=content_type)
    return search_articles(
        snapshot.articles,
        q,
        filters=filters,
        sort_by=sort_by,
        limit=limit,
        include_synthetic=include_synthetic,
    )
