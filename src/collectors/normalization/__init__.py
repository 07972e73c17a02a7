"""Normalization of raw adapter records into canonical Articles.

Provides the Article schema, the raw-record variants adapters emit, and the
Normalizer mapping one to the other.
"""

from src.collectors.normalization.schema import (
    Article,
    ArticleCategory,
    Author,
    BrowserRawRecord,
    ContentType,
    CourseLevel,
    CourseRawRecord,
    MetricsSource,
    Platform,
    RawRecord,
    RssRawRecord,
)
from src.collectors.normalization.pipeline import Normalizer, article_id

__all__ = [
    "Article",
    "ArticleCategory",
    "Author",
    "BrowserRawRecord",
    "ContentType",
    "CourseLevel",
    "CourseRawRecord",
    "MetricsSource",
    "Platform",
    "RawRecord",
    "RssRawRecord",
    "Normalizer",
    "article_id",
]
