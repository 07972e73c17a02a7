"""
Unit tests for feed thumbnail extraction.

Tests cover:
- Image URL heuristics (extensions, CDN domains, avatars, small sizes)
- Each extraction strategy
- Strategy ordering in extract_thumbnail
"""

import pytest

from src.collectors.rss.thumbnails import (
    extract_thumbnail,
    from_body_img,
    from_enclosure,
    from_image_url_pattern,
    from_media_metadata,
    from_medium_cdn,
    is_valid_image_url,
)

COVER = "https://static.example.com/posts/cover-1200x630.png"


class TestIsValidImageUrl:
    """Tests for the image URL heuristic."""

    def test_accepts_plain_image(self):
        assert is_valid_image_url("https://blog.example.com/images/cover.jpg")

    def test_accepts_image_with_query(self):
        assert is_valid_image_url("https://blog.example.com/images/cover.webp?v=3")

    def test_accepts_known_cdn_without_extension(self):
        assert is_valid_image_url("https://miro.medium.com/v2/resize:fit:1200/abc123")

    @pytest.mark.parametrize("url", [None, "", "a.png", "ftp://example.com/cover.png"])
    def test_rejects_missing_or_non_http(self, url):
        assert not is_valid_image_url(url)

    def test_rejects_non_image(self):
        assert not is_valid_image_url("https://blog.example.com/posts/123")

    @pytest.mark.parametrize(
        "url",
        [
            "https://blog.example.com/avatar/kim.png",
            "https://blog.example.com/users/profile.jpg",
            "https://blog.example.com/static/favicon.png",
            "https://blog.example.com/brand/Logo.png",
            "https://cdn-images-1.medium.com/fit/c/50/50/1*abcDEF123.jpeg",
        ],
    )
    def test_rejects_avatars_and_icons(self, url):
        assert not is_valid_image_url(url)

    def test_rejects_small_dimensions(self):
        assert not is_valid_image_url("https://blog.example.com/thumb-50x50.png")

    def test_accepts_large_dimensions(self):
        assert is_valid_image_url(COVER)

    def test_rejects_small_width_query(self):
        assert not is_valid_image_url("https://blog.example.com/cover.png?w=80")

    def test_rejects_small_width_path_param(self):
        assert not is_valid_image_url("https://res.example.com/image/upload/w_64/cover.png")
        assert not is_valid_image_url("https://res.example.com/image/upload/c_fill,w_48/cover.png")

    def test_width_like_file_name_accepted(self):
        assert is_valid_image_url("https://blog.example.com/images/new_12.png")
        assert is_valid_image_url("https://blog.example.com/images/row_32/cover.png")


class TestStrategies:
    """Tests for the individual extraction strategies."""

    def test_enclosure(self):
        entry = {"enclosures": [{"type": "image/png", "href": COVER}]}
        assert from_enclosure(entry) == COVER

    def test_enclosure_ignores_audio(self):
        entry = {"enclosures": [{"type": "audio/mpeg", "href": "https://example.com/ep1.mp3"}]}
        assert from_enclosure(entry) is None

    def test_media_thumbnail(self):
        entry = {"media_thumbnail": [{"url": COVER}]}
        assert from_media_metadata(entry) == COVER

    def test_media_content_requires_image(self):
        video = {"media_content": [{"url": "https://example.com/clip.mp4", "type": "video/mp4"}]}
        image = {"media_content": [{"url": COVER, "medium": "image"}]}

        assert from_media_metadata(video) is None
        assert from_media_metadata(image) == COVER

    def test_body_img_skips_invalid_images(self):
        body = (
            '<p><img src="https://blog.example.com/avatar.png">'
            f'<img data-src="{COVER}"></p>'
        )
        entry = {"content": [{"value": body}]}

        assert from_body_img(entry) == COVER

    def test_body_img_falls_back_to_summary(self):
        entry = {"summary": f'<img src="{COVER}">'}
        assert from_body_img(entry) == COVER

    def test_medium_cdn(self):
        url = "https://miro.medium.com/v2/resize:fit:1400/format:webp/abc"
        entry = {"summary": f"<figure>see {url}</figure>"}
        assert from_medium_cdn(entry) == url

    def test_image_url_pattern(self):
        entry = {"description": f"Cover: {COVER} and more text"}
        assert from_image_url_pattern(entry) == COVER


class TestExtractThumbnail:
    """Tests for strategy ordering."""

    def test_enclosure_wins_over_body(self):
        other = "https://static.example.com/posts/inline-800x600.jpg"
        entry = {
            "enclosures": [{"type": "image/jpeg", "url": COVER}],
            "summary": f'<img src="{other}">',
        }
        assert extract_thumbnail(entry) == COVER

    def test_falls_through_to_body(self):
        entry = {
            "enclosures": [{"type": "image/png", "href": "https://example.com/icon.png"}],
            "summary": f'<img src="{COVER}">',
        }
        assert extract_thumbnail(entry) == COVER

    def test_none_when_nothing_qualifies(self):
        entry = {"title": "No images here", "summary": "<p>text only</p>"}
        assert extract_thumbnail(entry) is None

    def test_prefers_content_image_over_tiny_image(self):
        entry = {
            "content": [
                {
                    "value": (
                        '<img src="https://blog.example.com/img/u-16x16.png">'
                        '<img src="https://blog.example.com/img/hero-1200x800.jpg">'
                    )
                }
            ]
        }
        assert extract_thumbnail(entry) == "https://blog.example.com/img/hero-1200x800.jpg"
