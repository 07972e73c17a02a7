"""RSS/Atom feed collection."""

from src.collectors.rss.client import FeedClient
from src.collectors.rss.thumbnails import extract_thumbnail, is_valid_image_url

__all__ = ["FeedClient", "extract_thumbnail", "is_valid_image_url"]
