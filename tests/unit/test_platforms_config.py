"""Unit tests for the static platform table."""

import pytest
from pydantic import ValidationError

from src.config.platforms import (
    PLATFORM_CONFIGS,
    CollectionMethod,
    PlatformType,
    get_active_platforms,
    get_platform,
    get_platforms_by_method,
    get_platforms_by_type,
)


class TestPlatformTable:
    """Test the shipped platform table."""

    def test_keys_match_ids(self):
        assert all(key == platform.id for key, platform in PLATFORM_CONFIGS.items())

    def test_every_platform_has_its_method_parameter(self):
        for platform in PLATFORM_CONFIGS.values():
            if platform.collection_method == CollectionMethod.RSS:
                assert platform.rss_url, platform.id
            if platform.collection_method == CollectionMethod.CRAWLER:
                assert platform.crawler_type, platform.id

    def test_inactive_platforms_excluded(self):
        active_ids = {p.id for p in get_active_platforms()}

        assert "coding_with_john" not in active_ids
        assert "tistory_design" not in active_ids
        assert "toss" in active_ids

    def test_active_platforms_keep_table_order(self):
        ids = [p.id for p in get_active_platforms()]
        assert ids == [p.id for p in PLATFORM_CONFIGS.values() if p.is_active]

    def test_get_platform(self):
        assert get_platform("kakao").name == "카카오 기술블로그"
        assert get_platform("nope") is None

    def test_by_type(self):
        educational = get_platforms_by_type("educational")

        assert {"inflearn", "class101", "coloso"} <= {p.id for p in educational}
        assert all(p.type == PlatformType.EDUCATIONAL for p in educational)

    def test_by_method(self):
        crawlers = {p.id for p in get_platforms_by_method(CollectionMethod.CRAWLER)}

        assert crawlers == {"naver", "line", "outstanding", "eo", "gpters", "inflearn", "class101", "coloso"}

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            get_platforms_by_type("government")


class TestPlatformConfig:
    """Test PlatformConfig validation and derived fields."""

    def test_display_name_with_channel(self):
        assert get_platform("jocoding").display_name == "YouTube • 조코딩"

    def test_display_name_without_channel(self, make_platform):
        assert make_platform().display_name == "토스 기술블로그"

    def test_rss_requires_feed_url(self, make_platform):
        with pytest.raises(ValidationError):
            make_platform(rss_url=None)

    def test_crawler_requires_type(self, make_platform):
        with pytest.raises(ValidationError):
            make_platform(method=CollectionMethod.CRAWLER, crawler_type=None)

    def test_api_needs_no_parameter(self, make_platform):
        assert make_platform(method=CollectionMethod.API).collection_method == CollectionMethod.API

    @pytest.mark.parametrize("field,value", [("limit", 0), ("timeout_seconds", 0), ("retries", 0)])
    def test_policy_bounds(self, make_platform, field, value):
        with pytest.raises(ValidationError):
            make_platform(**{field: value})

    def test_frozen(self, make_platform):
        with pytest.raises(ValidationError):
            make_platform().limit = 10
