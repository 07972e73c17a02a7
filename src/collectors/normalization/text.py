"""Text cleanup helpers shared by adapters and the Normalizer."""

import html
import math
import re
from urllib.parse import urldefrag

from bs4 import BeautifulSoup

EXCERPT_MAX_LENGTH = 200
READING_CHARS_PER_MINUTE = 200

_ZERO_WIDTH = re.compile("[\u200b-\u200d\ufeff]")
_WHITESPACE = re.compile(r"\s+")
_SENTENCE_ENDS = (".", "!", "?", "。")


def strip_html_and_clean(markup: str | None) -> str:
    """Strip tags, unescape entities and collapse whitespace."""
    if not markup:
        return ""

    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()

    text = html.unescape(soup.get_text(" "))
    text = text.replace("\u00a0", " ")
    text = _ZERO_WIDTH.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def generate_excerpt(content: str | None, max_length: int = EXCERPT_MAX_LENGTH) -> str:
    """Build a short plain-text excerpt.

    Prefers ending on a sentence boundary past 60% of the limit, then on a
    word boundary past 80% (with an ellipsis), and hard-cuts otherwise.
    """
    text = strip_html_and_clean(content)
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_sentence_end = max(truncated.rfind(mark) for mark in _SENTENCE_ENDS)
    if last_sentence_end > max_length * 0.6:
        return truncated[: last_sentence_end + 1]

    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        return truncated[:last_space] + "..."

    return truncated + "..."


def estimate_reading_time(plain_text: str) -> int:
    """Minutes to read, never less than one."""
    return max(1, math.ceil(len(plain_text) / READING_CHARS_PER_MINUTE))


def canonical_url(url: str) -> str:
    """URL used as article identity: trimmed, fragment removed."""
    return urldefrag(url.strip())[0]


def unique_tags(*groups) -> list[str]:
    """Merge tag groups, dropping blanks and duplicates, keeping first order."""
    seen: set[str] = set()
    tags: list[str] = []
    for group in groups:
        for tag in group:
            tag = (tag or "").strip()
            if tag and tag not in seen:
                seen.add(tag)
                tags.append(tag)
    return tags
