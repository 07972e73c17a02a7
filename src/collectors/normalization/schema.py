"""Canonical Article schema and the raw records adapters produce.

Every adapter family emits exactly one raw-record variant:

- RssRawRecord: one feed entry
- BrowserRawRecord: one card scraped from a rendered page
- CourseRawRecord: one course from a listing page

The Normalizer maps each variant to an Article; downstream consumers
(cache, analytics, search, API) only ever see Article.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator

from src.config.platforms import PlatformType


class ArticleCategory(str, Enum):
    """Fixed category taxonomy."""

    FRONTEND = "frontend"
    BACKEND = "backend"
    AI_ML = "ai-ml"
    CLOUD_INFRA = "cloud-infra"
    GAME = "game"
    GRAPHICS = "graphics"
    OFFICE = "office"
    DESIGN = "design"
    PRODUCT = "product"
    MOBILE = "mobile"
    DATA = "data"
    SECURITY = "security"
    EVENTS = "events"
    LECTURE = "lecture"
    GENERAL = "general"


class ContentType(str, Enum):
    """Kind of content an Article points to."""

    ARTICLE = "article"
    VIDEO = "video"
    LECTURE = "lecture"


class MetricsSource(str, Enum):
    """Where engagement counters came from."""

    SOURCE = "source"
    SYNTHETIC = "synthetic"
    NONE = "none"


class CourseLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Platform(BaseModel):
    """Platform reference embedded in every Article."""

    id: str
    name: str = Field(..., description="Display name, including channel if any")
    type: PlatformType
    base_url: str
    description: str = ""
    is_active: bool = True
    channel_name: str | None = None
    last_crawled: datetime | None = None


class Author(BaseModel):
    """Author reference.

    Sources expose no stable author id, so identity is the pair
    (name, platform_id). Two people sharing a display name on one platform
    collapse into one author.
    """

    name: str
    platform_id: str
    company: str | None = None
    expertise: list[str] = Field(default_factory=list)
    article_count: int = Field(default=0, description="Rollup, recomputed by analytics")

    @property
    def identity(self) -> tuple[str, str]:
        return (self.name, self.platform_id)

    @property
    def id(self) -> str:
        return f"{self.platform_id}:{self.name}"


class Article(BaseModel):
    """Canonical, platform-agnostic article record.

    `url` is the identity of an article; `id` is derived from it and is stable
    across runs and feed reorderings.
    """

    # Identification
    id: str
    url: str
    title: str
    content: str = ""
    excerpt: str = ""

    # References
    author: Author
    platform: Platform

    # Classification
    category: ArticleCategory = ArticleCategory.GENERAL
    tags: list[str] = Field(default_factory=list)
    content_type: ContentType = ContentType.ARTICLE

    # Timestamps
    published_at: datetime
    published_at_estimated: bool = Field(
        default=False,
        description="True when the source had no date and the run time was used",
    )

    # Engagement
    view_count: int | None = None
    like_count: int | None = None
    comment_count: int | None = None
    metrics_source: MetricsSource = MetricsSource.NONE

    # Presentation
    reading_time: int = 1
    trending: bool = False
    featured: bool = False
    thumbnail_url: str | None = None

    # Video
    video_url: str | None = None
    video_duration: int | None = Field(None, description="Seconds")

    # Course
    course_price: int | None = None
    course_original_price: int | None = None
    course_duration_minutes: int | None = None
    course_level: CourseLevel | None = None
    course_instructor: str | None = None
    course_student_count: int | None = None
    course_rating: float | None = None

    model_config = {"extra": "forbid"}

    @field_validator("published_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


# =============================================================================
# Raw Records
# =============================================================================


@dataclass(frozen=True)
class RssRawRecord:
    """A feed entry as parsed from RSS/Atom."""

    title: str
    link: str
    content_html: str = ""
    summary: str = ""
    published_at: datetime | None = None
    author: str | None = None
    categories: tuple[str, ...] = ()
    thumbnail_url: str | None = None
    guid: str | None = None
    kind: Literal["rss"] = field(default="rss", init=False)


@dataclass(frozen=True)
class BrowserRawRecord:
    """A content card extracted from a rendered page."""

    title: str
    url: str
    summary: str = ""
    author: str | None = None
    tags: tuple[str, ...] = ()
    thumbnail_url: str | None = None
    published_at: datetime | None = None
    kind: Literal["browser"] = field(default="browser", init=False)


@dataclass(frozen=True)
class CourseRawRecord:
    """A course extracted from a listing page."""

    title: str
    url: str
    instructor: str = ""
    price: int | None = None
    description: str = ""
    original_price: int | None = None
    rating: float | None = None
    student_count: int | None = None
    thumbnail_url: str | None = None
    category: str = ""
    tags: tuple[str, ...] = ()
    duration_minutes: int | None = None
    level: CourseLevel | None = None
    kind: Literal["course"] = field(default="course", init=False)


RawRecord = Union[RssRawRecord, BrowserRawRecord, CourseRawRecord]
