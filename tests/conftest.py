"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- settings: Settings isolated from the environment, with zero retry backoff
- now: Fixed reference time
- make_platform: PlatformConfig factory
- make_article: Article factory
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.collectors.normalization.pipeline import article_id
from src.collectors.normalization.schema import (
    Article,
    ArticleCategory,
    Author,
    ContentType,
    MetricsSource,
    Platform,
)
from src.config.platforms import CollectionMethod, PlatformConfig, PlatformType
from src.config.settings import Settings

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def settings() -> Settings:
    """Settings that ignore .env and never sleep between retries."""
    return Settings(
        _env_file=None,
        supabase_url=None,
        supabase_key=None,
        collection_retry_backoff_seconds=0,
        collection_default_timeout_seconds=2.0,
        collection_run_budget_seconds=10.0,
        collection_default_retries=2,
        course_page_delay_seconds=0,
        cron_secret="test-cron-secret",
        scheduler_enabled=False,
    )


@pytest.fixture
def make_platform():
    """Factory for PlatformConfig with RSS defaults."""

    def _make(
        id: str = "toss",
        name: str = "토스 기술블로그",
        type: PlatformType = PlatformType.CORPORATE,
        method: CollectionMethod = CollectionMethod.RSS,
        **kwargs,
    ) -> PlatformConfig:
        if method == CollectionMethod.RSS:
            kwargs.setdefault("rss_url", f"https://{id}.example.com/rss.xml")
        elif method == CollectionMethod.CRAWLER:
            kwargs.setdefault("crawler_type", id)
        return PlatformConfig(
            id=id,
            name=name,
            type=type,
            base_url=f"https://{id}.example.com",
            collection_method=method,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_article():
    """Factory for Articles; `days_ago` is relative to the fixed NOW."""

    def _make(
        url: str = "https://example.com/posts/1",
        title: str = "React 서버 컴포넌트 도입기",
        platform_id: str = "toss",
        platform_name: str = "토스 기술블로그",
        author: str = "김개발",
        days_ago: float = 1,
        tags: list[str] | None = None,
        content: str = "",
        excerpt: str = "",
        category: ArticleCategory = ArticleCategory.FRONTEND,
        content_type: ContentType = ContentType.ARTICLE,
        view_count: int | None = None,
        like_count: int | None = None,
        metrics_source: MetricsSource = MetricsSource.NONE,
        **kwargs,
    ) -> Article:
        return Article(
            id=article_id(platform_id, url),
            url=url,
            title=title,
            content=content,
            excerpt=excerpt,
            author=Author(name=author, platform_id=platform_id),
            platform=Platform(
                id=platform_id,
                name=platform_name,
                type=PlatformType.CORPORATE,
                base_url=f"https://{platform_id}.example.com",
            ),
            category=category,
            tags=tags if tags is not None else [],
            content_type=content_type,
            published_at=NOW - timedelta(days=days_ago),
            view_count=view_count,
            like_count=like_count,
            metrics_source=metrics_source,
            **kwargs,
        )

    return _make
