"""Normalization of raw adapter output into canonical Articles.

Each raw-record variant has exactly one mapping function; `Normalizer.normalize`
dispatches on the variant and never probes for optional attributes.
"""

import hashlib
import random
from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog

from src.collectors.normalization.categorize import categorize_article, categorize_course
from src.collectors.normalization.schema import (
    Article,
    ArticleCategory,
    Author,
    BrowserRawRecord,
    ContentType,
    CourseRawRecord,
    MetricsSource,
    Platform,
    RawRecord,
    RssRawRecord,
)
from src.collectors.normalization.text import (
    canonical_url,
    estimate_reading_time,
    generate_excerpt,
    strip_html_and_clean,
    unique_tags,
)
from src.config.platforms import CollectionMethod, PlatformConfig
from src.core.exceptions import NormalizationError

logger = structlog.get_logger(__name__)

UNTITLED = "제목 없음"
EDUCATIONAL_TAGS = ("교육", "Learning")
VIDEO_TAGS = ("YouTube", "Video")
TRENDING_STUDENT_COUNT = 1000
FEATURED_RATING = 4.8


def article_id(platform_id: str, url: str) -> str:
    """Stable article id derived from the canonical URL."""
    digest = hashlib.sha256(canonical_url(url).encode("utf-8")).hexdigest()
    return f"{platform_id}-{digest[:16]}"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Normalizer:
    """Maps raw records to Articles.

    Args:
        synthetic_metrics: Fill missing engagement counters with random values
            flagged as `MetricsSource.SYNTHETIC`. Off by default.
        rng: Random source for synthetic metrics (injectable for tests)
    """

    def __init__(self, synthetic_metrics: bool = False, rng: Optional[random.Random] = None):
        self.synthetic_metrics = synthetic_metrics
        self._rng = rng or random.Random()

    def normalize(
        self,
        record: RawRecord,
        platform: PlatformConfig,
        run_started_at: datetime,
    ) -> Article:
        """Map one raw record.

        Raises:
            NormalizationError: The record has no usable URL.
        """
        match record:
            case RssRawRecord():
                return self._from_rss(record, platform, run_started_at)
            case BrowserRawRecord():
                return self._from_browser(record, platform, run_started_at)
            case CourseRawRecord():
                return self._from_course(record, platform, run_started_at)
            case _:
                raise NormalizationError(
                    platform.id,
                    f"Unknown raw record type: {type(record).__name__}",
                )

    def normalize_batch(
        self,
        records: Iterable[RawRecord],
        platform: PlatformConfig,
        run_started_at: datetime,
    ) -> list[Article]:
        """Map many records, dropping the ones that cannot become an Article."""
        articles: list[Article] = []
        for record in records:
            try:
                articles.append(self.normalize(record, platform, run_started_at))
            except NormalizationError as e:
                logger.warning("record_normalization_failed", platform=platform.id, error=str(e))
        return articles

    # -------------------------------------------------------------------------
    # Variant mappings
    # -------------------------------------------------------------------------

    def _from_rss(self, record: RssRawRecord, platform: PlatformConfig, run_started_at: datetime) -> Article:
        url = self._require_url(record.link, platform)
        body_html = record.content_html or record.summary
        content = strip_html_and_clean(body_html)
        title = strip_html_and_clean(record.title) or UNTITLED
        tags = unique_tags(record.categories, *self._platform_tags(platform))
        content_type = self._content_type(platform)

        return Article(
            id=article_id(platform.id, url),
            url=url,
            title=title,
            content=content,
            excerpt=generate_excerpt(record.summary or body_html),
            author=self._author(record.author, platform),
            platform=self._platform(platform, run_started_at),
            category=self._category(platform, title, content, tags),
            tags=tags,
            content_type=content_type,
            reading_time=estimate_reading_time(content),
            thumbnail_url=record.thumbnail_url,
            video_url=url if content_type == ContentType.VIDEO else None,
            **self._published(record.published_at, run_started_at),
            **self._engagement(),
        )

    def _from_browser(
        self, record: BrowserRawRecord, platform: PlatformConfig, run_started_at: datetime
    ) -> Article:
        url = self._require_url(record.url, platform)
        content = strip_html_and_clean(record.summary)
        title = strip_html_and_clean(record.title) or UNTITLED
        tags = unique_tags(record.tags, *self._platform_tags(platform))
        content_type = self._content_type(platform)

        return Article(
            id=article_id(platform.id, url),
            url=url,
            title=title,
            content=content,
            excerpt=generate_excerpt(content),
            author=self._author(record.author, platform),
            platform=self._platform(platform, run_started_at),
            category=self._category(platform, title, content, tags),
            tags=tags,
            content_type=content_type,
            reading_time=estimate_reading_time(content),
            thumbnail_url=record.thumbnail_url,
            video_url=url if content_type == ContentType.VIDEO else None,
            **self._published(record.published_at, run_started_at),
            **self._engagement(),
        )

    def _from_course(
        self, record: CourseRawRecord, platform: PlatformConfig, run_started_at: datetime
    ) -> Article:
        url = self._require_url(record.url, platform)
        description = strip_html_and_clean(record.description)
        title = strip_html_and_clean(record.title) or UNTITLED
        students = record.student_count
        rating = record.rating

        engagement = (
            {"view_count": students, "metrics_source": MetricsSource.SOURCE}
            if students is not None
            else self._engagement()
        )

        return Article(
            id=article_id(platform.id, url),
            url=url,
            title=title,
            content=description,
            excerpt=generate_excerpt(description),
            author=Author(
                name=record.instructor or f"{platform.name} 강사",
                platform_id=platform.id,
                company=platform.name,
                expertise=[record.category] if record.category else [],
            ),
            platform=self._platform(platform, run_started_at),
            category=categorize_course(record.category, title),
            tags=unique_tags(record.tags, ["lecture", record.category]),
            content_type=ContentType.LECTURE,
            reading_time=max(1, (record.duration_minutes or 0) // 60),
            trending=(students or 0) > TRENDING_STUDENT_COUNT,
            featured=(rating or 0) >= FEATURED_RATING,
            thumbnail_url=record.thumbnail_url,
            course_price=record.price,
            course_original_price=record.original_price,
            course_duration_minutes=record.duration_minutes,
            course_level=record.level,
            course_instructor=record.instructor,
            course_student_count=students,
            course_rating=rating,
            **self._published(None, run_started_at),
            **engagement,
        )

    # -------------------------------------------------------------------------
    # Field helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_url(url: str | None, platform: PlatformConfig) -> str:
        cleaned = canonical_url(url or "")
        if not cleaned:
            raise NormalizationError(platform.id, "Record has no URL")
        return cleaned

    @staticmethod
    def _platform(platform: PlatformConfig, run_started_at: datetime) -> Platform:
        return Platform(
            id=platform.id,
            name=platform.display_name,
            type=platform.type,
            base_url=platform.base_url,
            description=platform.description,
            is_active=platform.is_active,
            channel_name=platform.channel_name,
            last_crawled=_as_utc(run_started_at),
        )

    @staticmethod
    def _author(name: str | None, platform: PlatformConfig) -> Author:
        return Author(
            name=(name or "").strip() or f"{platform.name} 작가",
            platform_id=platform.id,
            company=platform.name,
            expertise=["Tech"],
        )

    @staticmethod
    def _platform_tags(platform: PlatformConfig) -> list[tuple[str, ...]]:
        groups = []
        if platform.is_educational:
            groups.append(EDUCATIONAL_TAGS)
        if platform.channel_name:
            groups.append(VIDEO_TAGS)
        return groups

    @staticmethod
    def _content_type(platform: PlatformConfig) -> ContentType:
        if platform.channel_name:
            return ContentType.VIDEO
        if platform.is_educational and platform.collection_method == CollectionMethod.CRAWLER:
            return ContentType.LECTURE
        return ContentType.ARTICLE

    @staticmethod
    def _category(platform: PlatformConfig, title: str, content: str, tags: list[str]) -> ArticleCategory:
        if platform.is_educational:
            return ArticleCategory.LECTURE
        return categorize_article(title, content, tags)

    @staticmethod
    def _published(published_at: datetime | None, run_started_at: datetime) -> dict:
        if published_at is None:
            return {"published_at": _as_utc(run_started_at), "published_at_estimated": True}
        return {"published_at": _as_utc(published_at), "published_at_estimated": False}

    def _engagement(self) -> dict:
        if not self.synthetic_metrics:
            return {"metrics_source": MetricsSource.NONE}
        return {
            "view_count": self._rng.randint(1000, 5999),
            "like_count": self._rng.randint(50, 249),
            "comment_count": self._rng.randint(5, 54),
            "metrics_source": MetricsSource.SYNTHETIC,
        }
