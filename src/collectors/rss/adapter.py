"""RSS/Atom feed adapter."""

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import feedparser
import structlog
from dateutil import parser as date_parser

from src.collectors.base import SourceAdapter
from src.collectors.normalization.schema import RssRawRecord
from src.collectors.normalization.text import strip_html_and_clean
from src.collectors.registry import register_adapter
from src.collectors.rss.thumbnails import extract_thumbnail
from src.core.exceptions import CollectorEmptyResultError, CollectorError, CollectorParseError

logger = structlog.get_logger(__name__)

# Platforms whose feeds are open tag feeds and need spam filtering
SPAM_FILTERED_PLATFORMS = {"medium"}

SPAM_PATTERNS = (
    re.compile(r"[\u0600-\u06FF]"),  # Arabic
    re.compile(r"[\u0590-\u05FF]"),  # Hebrew
    re.compile(r"(.)\1{4,}"),
    re.compile(r"^\d{10,}"),
    re.compile(r"^[^\w\s]{3,}"),
)
TECH_KEYWORDS = (
    "javascript", "react", "vue", "angular", "node.js", "typescript",
    "frontend", "backend", "development", "programming", "code", "coding",
    "software", "web development", "api", "database", "algorithm",
    "html", "css", "python", "java", "framework", "library",
)
EXCLUDED_KEYWORDS = (
    "crypto", "bitcoin", "trading", "investment", "finance", "marketing",
    "business", "startup funding", "politics", "personal", "life", "story",
    "motivation", "inspiration", "self-help", "career advice", "freelance",
    "remote work", "productivity", "mindset",
)
MIN_TITLE_LENGTH = 10
MAX_AUTHOR_LENGTH = 50


def is_spam_entry(title: str, text: str, author: str = "") -> bool:
    """Quality filter for open community tag feeds.

    Args:
        title: Entry title
        text: Title, content and summary as plain text
        author: Entry author name
    """
    title = title.lower()
    text = text.lower()

    if any(p.search(title) for p in SPAM_PATTERNS):
        return True
    if len(title) < MIN_TITLE_LENGTH or not re.search(r"[a-z]", title):
        return True
    if len(author) > MAX_AUTHOR_LENGTH or SPAM_PATTERNS[0].search(author):
        return True
    if not any(k in text for k in TECH_KEYWORDS):
        return True
    return any(k in text for k in EXCLUDED_KEYWORDS)


def parse_entry_date(entry: Mapping[str, Any]) -> Optional[datetime]:
    """Publish date of an entry in UTC, or None when the feed has none."""
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime(*parsed[:6], tzinfo=timezone.utc)

    for key in ("published", "updated", "created"):
        raw = entry.get(key)
        if not raw:
            continue
        try:
            value = date_parser.parse(raw)
        except (ValueError, OverflowError):
            continue
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    return None


def entry_to_record(entry: Mapping[str, Any]) -> RssRawRecord:
    """Map a feedparser entry to the RSS raw-record variant."""
    contents = entry.get("content") or []
    content_html = contents[0].get("value", "") if contents else ""
    categories = tuple(t.get("term", "") for t in entry.get("tags", []) or [] if t.get("term"))

    return RssRawRecord(
        title=entry.get("title", ""),
        link=entry.get("link", ""),
        content_html=content_html,
        summary=entry.get("summary", ""),
        published_at=parse_entry_date(entry),
        author=entry.get("author"),
        categories=categories,
        thumbnail_url=extract_thumbnail(entry),
        guid=entry.get("id"),
    )


@register_adapter("rss")
class RssAdapter(SourceAdapter):
    """Collects a platform's RSS or Atom feed."""

    async def collect(self, limit: int) -> list[RssRawRecord]:
        if self.context.feed_client is None:
            raise CollectorError(self.source_id, "No feed client configured")

        body = await self.context.feed_client.fetch(
            self.source_id,
            self.platform.rss_url,
            timeout=self.platform.timeout_seconds,
        )

        feed = await asyncio.to_thread(feedparser.parse, body)
        entries = list(feed.entries)
        if not entries:
            if feed.bozo:
                raise CollectorParseError(
                    self.source_id,
                    f"Unparseable feed: {feed.get('bozo_exception')}",
                    {"url": self.platform.rss_url},
                )
            raise CollectorEmptyResultError(self.source_id, "Feed has no entries", {"url": self.platform.rss_url})

        if self.platform.id in SPAM_FILTERED_PLATFORMS:
            entries = [e for e in entries if not self._is_spam(e)]

        records = [entry_to_record(e) for e in entries[:limit]]
        logger.info(
            "rss_feed_parsed",
            source_id=self.source_id,
            entries=len(feed.entries),
            kept=len(records),
        )
        return records

    def _is_spam(self, entry: Mapping[str, Any]) -> bool:
        title = entry.get("title", "")
        contents = entry.get("content") or []
        body = " ".join(c.get("value", "") for c in contents)
        text = strip_html_and_clean(f"{title} {body} {entry.get('summary', '')}")
        spam = is_spam_entry(title, text, entry.get("author", "") or "")
        if spam:
            logger.debug("rss_entry_filtered", source_id=self.source_id, title=title[:80])
        return spam
