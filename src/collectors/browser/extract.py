"""Card extraction from rendered HTML.

Works on the page's serialized DOM with BeautifulSoup, so extraction is
independent of the browser and testable with plain HTML strings.
"""

from datetime import timezone
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser

from src.collectors.browser.sites import SiteProfile
from src.collectors.normalization.schema import BrowserRawRecord
from src.collectors.normalization.text import canonical_url, unique_tags

MAX_SUMMARY_LENGTH = 500


def _text(node: Tag) -> str:
    return " ".join(node.get_text(" ", strip=True).split())


def first_text(item: Tag, selectors: tuple[str, ...]) -> str:
    """Text of the first selector match with content."""
    for selector in selectors:
        for node in item.select(selector):
            text = _text(node)
            if text:
                return text
    return ""


def first_link(item: Tag, selectors: tuple[str, ...], base_url: str) -> str:
    """Absolute URL of the card link; the card itself may be the anchor."""
    if item.name == "a" and item.get("href"):
        return urljoin(base_url, item["href"])
    for selector in selectors:
        for node in item.select(selector):
            href = node.get("href")
            if href and not href.startswith(("#", "javascript:", "mailto:")):
                return urljoin(base_url, href)
    return ""


def first_image(item: Tag, selectors: tuple[str, ...], base_url: str) -> Optional[str]:
    for selector in selectors:
        for node in item.select(selector):
            src = node.get("src") or node.get("data-src")
            if src and not src.startswith("data:"):
                return urljoin(base_url, src)
    return None


def parse_card_date(item: Tag, selectors: tuple[str, ...]):
    """Publish date from a `time[datetime]` attribute or date-like text."""
    for selector in selectors:
        for node in item.select(selector):
            raw = node.get("datetime") or _text(node)
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


def parse_card(item: Tag, profile: SiteProfile, base_url: str) -> Optional[BrowserRawRecord]:
    """Map one card element, or None when it has no usable title or link."""
    title = first_text(item, profile.title_selectors)
    url = first_link(item, profile.link_selectors, base_url)

    if len(title) < profile.min_title_length or not url.startswith(("http://", "https://")):
        return None
    if profile.link_must_contain and profile.link_must_contain not in url:
        return None

    summary = first_text(item, profile.summary_selectors)
    if summary == title:
        summary = ""

    tags = [_text(n) for selector in profile.tag_selectors for n in item.select(selector)]

    return BrowserRawRecord(
        title=title,
        url=url,
        summary=summary[:MAX_SUMMARY_LENGTH],
        author=first_text(item, profile.author_selectors) or None,
        tags=tuple(unique_tags(tags, profile.default_tags)),
        thumbnail_url=first_image(item, profile.image_selectors, base_url),
        published_at=parse_card_date(item, profile.date_selectors),
    )


def extract_cards(html: str, profile: SiteProfile, base_url: str, limit: int) -> list[BrowserRawRecord]:
    """Extract up to `limit` cards using the first item selector that yields any."""
    soup = BeautifulSoup(html, "html.parser")

    for item_selector in profile.item_selectors:
        records: list[BrowserRawRecord] = []
        seen: set[str] = set()
        for item in soup.select(item_selector):
            record = parse_card(item, profile, base_url)
            if record is None:
                continue
            key = canonical_url(record.url)
            if key in seen:
                continue
            seen.add(key)
            records.append(record)
            if len(records) >= limit:
                break
        if records:
            return records

    return []
