"""Best-effort thumbnail extraction for feed entries.

Strategies are tried in THUMBNAIL_STRATEGIES order; the first one returning a
URL that passes `is_valid_image_url` wins. Each strategy takes a parsed
feedparser entry and can be tested on its own.
"""

import re
from typing import Any, Callable, Mapping, Optional
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup

Entry = Mapping[str, Any]
ThumbnailStrategy = Callable[[Entry], Optional[str]]

MIN_IMAGE_DIMENSION = 100

IMAGE_EXTENSION = re.compile(r"\.(jpg|jpeg|png|gif|webp)(\?.*)?$", re.IGNORECASE)
IMAGE_CDN_DOMAINS = (
    "cdn-images-1.medium.com",
    "miro.medium.com",
    "static.toss.im",
    "images.unsplash.com",
    "github.com",
    "githubusercontent.com",
)
EXCLUDED_PATTERNS = (
    re.compile(r"avatar", re.IGNORECASE),
    re.compile(r"profile", re.IGNORECASE),
    re.compile(r"icon", re.IGNORECASE),
    re.compile(r"logo", re.IGNORECASE),
    # Medium avatar naming
    re.compile(r"1\*[a-zA-Z0-9_-]+\.jpeg$"),
)
DIMENSIONS = re.compile(r"(\d+)x(\d+)")
# Transformation segments such as /w_64/ or ,w_64, in image CDN paths
WIDTH_PATH_PARAM = re.compile(r"(?:^|[/,])w_(\d{1,2})(?!\d)")

MEDIUM_CDN_URL = re.compile(r"https://(?:cdn-images-\d+|miro)\.medium\.com/[^\"'\s)<>]+", re.IGNORECASE)
GENERIC_IMAGE_URL = re.compile(
    r"https?://[^\"'\s<>]+\.(?:jpg|jpeg|png|gif|webp)(?:\?[^\"'\s<>]*)?", re.IGNORECASE
)


def _is_undersized(url: str) -> bool:
    for match in DIMENSIONS.finditer(url):
        if min(int(match.group(1)), int(match.group(2))) < MIN_IMAGE_DIMENSION:
            return True

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    for key in ("w", "width"):
        for value in query.get(key, []):
            if value.isdigit() and int(value) < MIN_IMAGE_DIMENSION:
                return True

    return bool(WIDTH_PATH_PARAM.search(parsed.path))


def is_valid_image_url(url: str | None) -> bool:
    """Heuristic: looks like a real content image, not an avatar or icon."""
    if not url or len(url) < 10:
        return False
    if not url.startswith(("http://", "https://")):
        return False

    looks_like_image = bool(IMAGE_EXTENSION.search(url)) or any(d in url for d in IMAGE_CDN_DOMAINS)
    if not looks_like_image:
        return False

    if any(p.search(url) for p in EXCLUDED_PATTERNS):
        return False
    return not _is_undersized(url)


def _entry_html(entry: Entry) -> list[str]:
    """HTML bodies of an entry, most complete first."""
    bodies = [c.get("value", "") for c in entry.get("content", []) or []]
    bodies.append(entry.get("summary", ""))
    bodies.append(entry.get("description", ""))
    return [b for b in bodies if b]


# =============================================================================
# Strategies
# =============================================================================


def from_enclosure(entry: Entry) -> Optional[str]:
    """Image attached as an RSS enclosure."""
    for enclosure in entry.get("enclosures", []) or []:
        if str(enclosure.get("type", "")).startswith("image/"):
            url = enclosure.get("href") or enclosure.get("url")
            if is_valid_image_url(url):
                return url
    return None


def from_media_metadata(entry: Entry) -> Optional[str]:
    """Media RSS `media:thumbnail` or image `media:content`."""
    for thumb in entry.get("media_thumbnail", []) or []:
        if is_valid_image_url(thumb.get("url")):
            return thumb["url"]

    for media in entry.get("media_content", []) or []:
        is_image = str(media.get("type", "")).startswith("image/") or media.get("medium") == "image"
        if is_image and is_valid_image_url(media.get("url")):
            return media["url"]
    return None


def from_body_img(entry: Entry) -> Optional[str]:
    """First valid `<img>` in the entry body."""
    for body in _entry_html(entry):
        soup = BeautifulSoup(body, "html.parser")
        for img in soup.find_all("img"):
            src = img.get("src") or img.get("data-src")
            if is_valid_image_url(src):
                return src
    return None


def from_medium_cdn(entry: Entry) -> Optional[str]:
    """Medium CDN image URL anywhere in the body."""
    for body in _entry_html(entry):
        for match in MEDIUM_CDN_URL.finditer(body):
            if is_valid_image_url(match.group(0)):
                return match.group(0)
    return None


def from_image_url_pattern(entry: Entry) -> Optional[str]:
    """Any absolute image URL in the body."""
    for body in _entry_html(entry):
        for match in GENERIC_IMAGE_URL.finditer(body):
            if is_valid_image_url(match.group(0)):
                return match.group(0)
    return None


THUMBNAIL_STRATEGIES: list[tuple[str, ThumbnailStrategy]] = [
    ("enclosure", from_enclosure),
    ("media_metadata", from_media_metadata),
    ("body_img", from_body_img),
    ("medium_cdn", from_medium_cdn),
    ("image_url_pattern", from_image_url_pattern),
]


def extract_thumbnail(entry: Entry) -> Optional[str]:
    """Run the strategies in order; None when nothing qualifies."""
    for _name, strategy in THUMBNAIL_STRATEGIES:
        url = strategy(entry)
        if url:
            return url
    return None
