"""Per-platform activity statistics."""

from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from pydantic import BaseModel

from src.analytics.engagement import views
from src.collectors.normalization.schema import Article, ContentType

Productivity = Literal["high", "normal", "low"]


class PlatformActivity(BaseModel):
    platform_id: str
    name: str
    total_articles: int
    recent_articles: int
    video_count: int
    text_count: int
    avg_view_count: float
    top_tags: list[str]
    last_article: Optional[datetime]
    productivity: Productivity


class PlatformOverview(BaseModel):
    total_platforms: int
    active_platforms: int
    total_articles: int
    total_videos: int
    most_active_platform: Optional[str]
    avg_articles_per_platform: float


class ActivityPattern(BaseModel):
    hourly_distribution: list[int]
    peak_hour: int


class PlatformStatsReport(BaseModel):
    platforms: list[PlatformActivity]
    overview: PlatformOverview
    activity_pattern: ActivityPattern
    generated_at: datetime


def productivity(recent_articles: int) -> Productivity:
    if recent_articles >= 3:
        return "high"
    if recent_articles >= 1:
        return "normal"
    return "low"


def analyze_platforms(
    articles: list[Article],
    now: Optional[datetime] = None,
    include_synthetic: bool = False,
) -> PlatformStatsReport:
    """Totals, recency and tag profile per platform, plus the hourly publish pattern (UTC)."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=7)

    grouped: dict[str, list[Article]] = defaultdict(list)
    for article in articles:
        grouped[article.platform.id].append(article)

    platforms = []
    for platform_id, items in grouped.items():
        recent = sum(1 for a in items if a.published_at >= cutoff)
        videos = sum(1 for a in items if a.content_type == ContentType.VIDEO)
        tags = Counter(tag for a in items for tag in a.tags)
        platforms.append(
            PlatformActivity(
                platform_id=platform_id,
                name=items[0].platform.name,
                total_articles=len(items),
                recent_articles=recent,
                video_count=videos,
                text_count=len(items) - videos,
                avg_view_count=round(sum(views(a, include_synthetic) for a in items) / len(items), 1),
                top_tags=[tag for tag, _ in tags.most_common(5)],
                last_article=max(a.published_at for a in items),
                productivity=productivity(recent),
            )
        )
    platforms.sort(key=lambda p: p.total_articles, reverse=True)

    hourly = [0] * 24
    for article in articles:
        hourly[article.published_at.astimezone(timezone.utc).hour] += 1
    peak_hour = hourly.index(max(hourly))

    overview = PlatformOverview(
        total_platforms=len(platforms),
        active_platforms=sum(1 for p in platforms if p.recent_articles > 0),
        total_articles=len(articles),
        total_videos=sum(p.video_count for p in platforms),
        most_active_platform=platforms[0].name if platforms else None,
        avg_articles_per_platform=round(len(articles) / len(platforms), 1) if platforms else 0.0,
    )

    return PlatformStatsReport(
        platforms=platforms,
        overview=overview,
        activity_pattern=ActivityPattern(hourly_distribution=hourly, peak_hour=peak_hour),
        generated_at=now,
    )
