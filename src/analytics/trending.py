"""
Trending analysis over the corpus.

An article is a trending candidate when it is flagged trending, has more
than 100 views, was published in the last 3 days, or carries a hot tag.
Candidates are ranked by:

    max(0, 7 - days_old) * 40 + min(30, views / 100) + 10 * hot_tag_count
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel

from src.analytics.engagement import views
from src.collectors.normalization.schema import Article

HOT_TAGS = frozenset({"React", "AI", "ChatGPT", "JavaScript", "TypeScript", "개발", "기술"})
# Tags that also add to the ranking score
SCORING_HOT_TAGS = frozenset({"React", "AI", "ChatGPT", "JavaScript", "TypeScript"})

RECENT_DAYS = 7
CANDIDATE_DAYS = 3
MAX_TRENDING = 12


class TagCount(BaseModel):
    tag: str
    count: int


class PlatformCount(BaseModel):
    platform: str
    count: int


class TrendingReport(BaseModel):
    trending_articles: list[Article]
    top_tags: list[TagCount]
    top_platforms: list[PlatformCount]
    total_articles: int
    recent_articles: int
    content_type_distribution: dict[str, int]
    period_days: int = RECENT_DAYS
    generated_at: datetime


def days_old(article: Article, now: datetime) -> int:
    return max(0, (now - article.published_at).days)


def trending_score(article: Article, now: datetime, include_synthetic: bool = False) -> float:
    recency = max(0, RECENT_DAYS - days_old(article, now)) * 40
    view_score = min(30.0, views(article, include_synthetic) / 100)
    tag_score = 10 * sum(1 for tag in article.tags if tag in SCORING_HOT_TAGS)
    return recency + view_score + tag_score


def is_trending_candidate(article: Article, now: datetime, include_synthetic: bool = False) -> bool:
    if article.trending:
        return True
    if views(article, include_synthetic) > 100:
        return True
    if article.published_at >= now - timedelta(days=CANDIDATE_DAYS):
        return True
    return any(tag in HOT_TAGS for tag in article.tags)


def analyze_trending(
    articles: list[Article],
    now: Optional[datetime] = None,
    include_synthetic: bool = False,
) -> TrendingReport:
    """Top tags, top platforms and the ranked trending articles."""
    now = now or datetime.now(timezone.utc)

    tag_counts = Counter(tag for a in articles for tag in a.tags)
    platform_counts = Counter(a.platform.name for a in articles)
    recent_cutoff = now - timedelta(days=RECENT_DAYS)

    candidates = [a for a in articles if is_trending_candidate(a, now, include_synthetic)]
    candidates.sort(key=lambda a: trending_score(a, now, include_synthetic), reverse=True)

    return TrendingReport(
        trending_articles=candidates[:MAX_TRENDING],
        top_tags=[TagCount(tag=t, count=c) for t, c in tag_counts.most_common(20)],
        top_platforms=[PlatformCount(platform=p, count=c) for p, c in platform_counts.most_common(10)],
        total_articles=len(articles),
        recent_articles=sum(1 for a in articles if a.published_at >= recent_cutoff),
        content_type_distribution=dict(Counter(a.content_type.value for a in articles)),
        generated_at=now,
    )
