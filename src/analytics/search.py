"""Substring search over the corpus with relevance ranking."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from src.analytics.engagement import counts_engagement, views
from src.collectors.normalization.schema import Article, ArticleCategory, ContentType

MAX_SUGGESTIONS = 5


class SortBy(str, Enum):
    RELEVANCE = "relevance"
    DATE = "date"
    VIEWS = "views"
    LIKES = "likes"


@dataclass
class SearchFilters:
    category: Optional[ArticleCategory] = None
    platform: Optional[str] = None
    author: Optional[str] = None
    content_type: Optional[ContentType] = None


class SearchHit(BaseModel):
    article: Article
    relevance: int


class SearchResult(BaseModel):
    query: str
    total: int
    results: list[SearchHit]
    suggestions: list[str]


def relevance_score(article: Article, query: str) -> int:
    """3 per title hit, 1 per content hit, 2 per matching tag, +2 author, +1 platform."""
    q = query.lower()
    score = 3 * article.title.lower().count(q)
    score += article.content.lower().count(q)
    score += 2 * sum(1 for tag in article.tags if q in tag.lower())
    if q in article.author.name.lower():
        score += 2
    if q in article.platform.name.lower():
        score += 1
    return score


def matches_text(article: Article, query: str) -> bool:
    q = query.lower()
    return (
        q in article.title.lower()
        or q in article.content.lower()
        or any(q in tag.lower() for tag in article.tags)
        or q in article.author.name.lower()
        or q in article.platform.name.lower()
    )


def matches_filters(article: Article, filters: SearchFilters) -> bool:
    if filters.category and article.category != filters.category:
        return False
    if filters.platform and article.platform.id != filters.platform:
        return False
    if filters.author and filters.author.lower() not in article.author.name.lower():
        return False
    if filters.content_type and article.content_type != filters.content_type:
        return False
    return True


def suggestions(articles: list[Article], query: str) -> list[str]:
    """Tags, then author names, then platform names containing the query."""
    q = query.lower()
    if len(q) < 2:
        return []

    found: dict[str, None] = {}
    candidates = (
        [tag for a in articles for tag in a.tags]
        + [a.author.name for a in articles]
        + [a.platform.name for a in articles]
    )
    for value in candidates:
        lowered = value.lower()
        if q in lowered and lowered != q:
            found.setdefault(value, None)
            if len(found) >= MAX_SUGGESTIONS:
                break
    return list(found)


def search_articles(
    articles: list[Article],
    query: str,
    filters: Optional[SearchFilters] = None,
    sort_by: SortBy = SortBy.RELEVANCE,
    limit: int = 50,
    include_synthetic: bool = False,
) -> SearchResult:
    """Search the corpus.

    Raises:
        ValueError: If the query is blank or the limit is outside 1-200.
    """
    query = query.strip()
    if not query:
        raise ValueError("Search query must not be empty")
    if not 1 <= limit <= 200:
        raise ValueError("limit must be between 1 and 200")

    filters = filters or SearchFilters()
    hits = [
        SearchHit(article=a, relevance=relevance_score(a, query))
        for a in articles
        if matches_text(a, query) and matches_filters(a, filters)
    ]

    match sort_by:
        case SortBy.DATE:
            hits.sort(key=lambda h: h.article.published_at, reverse=True)
        case SortBy.VIEWS:
            hits.sort(key=lambda h: views(h.article, include_synthetic), reverse=True)
        case SortBy.LIKES:
            hits.sort(
                key=lambda h: (h.article.like_count or 0) if counts_engagement(h.article, include_synthetic) else 0,
                reverse=True,
            )
        case _:
            hits.sort(key=lambda h: h.relevance, reverse=True)

    return SearchResult(
        query=query,
        total=len(hits),
        results=hits[:limit],
        suggestions=suggestions(articles, query),
    )
