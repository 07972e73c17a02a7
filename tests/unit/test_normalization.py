"""Unit tests for text cleanup, categorization and the Normalizer."""

import random
from datetime import datetime, timezone

import pytest

from src.collectors.normalization.categorize import categorize_article, categorize_course
from src.collectors.normalization.pipeline import Normalizer, article_id
from src.collectors.normalization.schema import (
    ArticleCategory,
    BrowserRawRecord,
    ContentType,
    CourseRawRecord,
    MetricsSource,
    RssRawRecord,
)
from src.collectors.normalization.text import (
    canonical_url,
    estimate_reading_time,
    generate_excerpt,
    strip_html_and_clean,
    unique_tags,
)
from src.config.platforms import CollectionMethod, PlatformType
from src.core.exceptions import NormalizationError

RUN_STARTED = datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc)


class TestTextCleanup:
    """Test HTML stripping and excerpt generation."""

    def test_strips_tags_scripts_and_entities(self):
        """Markup, scripts and entities are removed; whitespace collapses."""
        html = "<p>Hello&nbsp;<b>world</b></p><script>alert(1)</script>\n\n<p>again &amp; again</p>"

        assert strip_html_and_clean(html) == "Hello world again & again"

    def test_removes_zero_width_characters(self):
        """Zero-width spaces do not survive cleanup."""
        assert strip_html_and_clean("a\u200bb\ufeffc") == "abc"

    def test_empty_input(self):
        """None and empty strings produce an empty string."""
        assert strip_html_and_clean(None) == ""
        assert strip_html_and_clean("") == ""

    def test_short_text_is_unchanged(self):
        """Text under the limit is returned whole."""
        assert generate_excerpt("Short text.") == "Short text."

    def test_cuts_at_sentence_end_past_sixty_percent(self):
        """A sentence end after 60% of the limit ends the excerpt, without ellipsis."""
        text = "a" * 150 + ". " + "b" * 100

        excerpt = generate_excerpt(text)

        assert excerpt == "a" * 150 + "."

    def test_cuts_at_word_boundary_past_eighty_percent(self):
        """Without a late sentence end, a late space is used and '...' appended."""
        text = "word " * 60

        excerpt = generate_excerpt(text)

        assert excerpt.endswith("...")
        assert len(excerpt) <= 203
        assert not excerpt[:-3].endswith(" ")

    def test_hard_cut_without_boundaries(self):
        """Unbroken text is hard-cut at the limit."""
        excerpt = generate_excerpt("x" * 500)

        assert excerpt == "x" * 200 + "..."

    def test_reading_time(self):
        """One minute per 200 characters, at least one."""
        assert estimate_reading_time("") == 1
        assert estimate_reading_time("a" * 200) == 1
        assert estimate_reading_time("a" * 201) == 2

    def test_canonical_url_drops_fragment_and_whitespace(self):
        """Fragments and surrounding whitespace do not change identity."""
        assert canonical_url("  https://a.com/p?x=1#top ") == "https://a.com/p?x=1"

    def test_unique_tags_keeps_first_order(self):
        """Duplicates and blanks are dropped in first-seen order."""
        assert unique_tags(["React", "", "AI"], ("AI", "교육")) == ["React", "AI", "교육"]


class TestCategorize:
    """Test category assignment."""

    def test_best_scoring_category_wins(self):
        """The category with most keyword hits is chosen."""
        category = categorize_article("Kubernetes 배포 자동화", "docker and aws cloud", [])

        assert category == ArticleCategory.CLOUD_INFRA

    def test_no_hits_is_general(self):
        """Nothing matching falls back to general."""
        assert categorize_article("회고", "올해를 돌아보며", []) == ArticleCategory.GENERAL

    def test_keywords_match_whole_words_only(self):
        """'ai' inside another word is not a hit."""
        assert categorize_article("Maintainers wanted", "", []) == ArticleCategory.GENERAL

    def test_course_mapping_first_hit_wins(self):
        """Course keywords are checked in table order."""
        assert categorize_course("프로그래밍", "데이터 분석 입문") == ArticleCategory.FRONTEND
        assert categorize_course("", "게임 그래픽 3D") == ArticleCategory.GAME
        assert categorize_course("", "요리 클래스") == ArticleCategory.GENERAL


class TestArticleId:
    """Test stable id derivation."""

    def test_same_url_same_id(self):
        """Fragments do not affect the id."""
        assert article_id("toss", "https://toss.tech/a") == article_id("toss", "https://toss.tech/a#x")

    def test_id_format(self):
        """Id is platform id plus 16 hex characters."""
        prefix, _, digest = article_id("toss", "https://toss.tech/a").rpartition("-")

        assert prefix == "toss"
        assert len(digest) == 16
        int(digest, 16)


class TestNormalizer:
    """Test mapping raw records to Articles."""

    @pytest.fixture
    def normalizer(self):
        return Normalizer()

    def test_rss_record(self, normalizer, make_platform):
        """An RSS entry maps to a cleaned article."""
        platform = make_platform()
        record = RssRawRecord(
            title="<b>React</b> 성능 최적화",
            link="https://toss.tech/article/react#comments",
            content_html="<p>React 컴포넌트 렌더링을 줄이는 방법</p>",
            summary="렌더링 최적화",
            published_at=datetime(2025, 3, 9, 9, 0, tzinfo=timezone.utc),
            author="박토스",
            categories=("Frontend", "React"),
        )

        article = normalizer.normalize(record, platform, RUN_STARTED)

        assert article.url == "https://toss.tech/article/react"
        assert article.title == "React 성능 최적화"
        assert article.content == "React 컴포넌트 렌더링을 줄이는 방법"
        assert article.excerpt == "렌더링 최적화"
        assert article.author.name == "박토스"
        assert article.tags == ["Frontend", "React"]
        assert article.category == ArticleCategory.FRONTEND
        assert article.content_type == ContentType.ARTICLE
        assert article.published_at_estimated is False
        assert article.metrics_source == MetricsSource.NONE
        assert article.view_count is None

    def test_missing_date_uses_run_start_and_flags_it(self, normalizer, make_platform):
        """Undated entries get the run start time, marked as estimated."""
        record = RssRawRecord(title="Some post title", link="https://toss.tech/b")

        article = normalizer.normalize(record, make_platform(), RUN_STARTED)

        assert article.published_at == RUN_STARTED
        assert article.published_at_estimated is True

    def test_default_author_and_title(self, normalizer, make_platform):
        """Missing author and title fall back to platform-derived defaults."""
        record = RssRawRecord(title="", link="https://toss.tech/c")

        article = normalizer.normalize(record, make_platform(), RUN_STARTED)

        assert article.author.name == "토스 기술블로그 작가"
        assert article.title == "제목 없음"

    def test_missing_url_raises(self, normalizer, make_platform):
        """A record without URL cannot become an article."""
        with pytest.raises(NormalizationError):
            normalizer.normalize(RssRawRecord(title="t", link="  "), make_platform(), RUN_STARTED)

    def test_batch_drops_bad_records(self, normalizer, make_platform):
        """normalize_batch skips records that fail."""
        records = [
            RssRawRecord(title="good one", link="https://toss.tech/1"),
            RssRawRecord(title="bad one", link=""),
        ]

        articles = normalizer.normalize_batch(records, make_platform(), RUN_STARTED)

        assert [a.url for a in articles] == ["https://toss.tech/1"]

    def test_youtube_channel_is_video(self, normalizer, make_platform):
        """Channel platforms produce educational videos with channel tags."""
        platform = make_platform(
            id="nomad_coders",
            name="YouTube",
            type=PlatformType.EDUCATIONAL,
            channel_name="노마드 코더",
        )
        record = RssRawRecord(title="Python 강의", link="https://www.youtube.com/watch?v=abc")

        article = normalizer.normalize(record, platform, RUN_STARTED)

        assert article.content_type == ContentType.VIDEO
        assert article.category == ArticleCategory.LECTURE
        assert article.platform.name == "YouTube • 노마드 코더"
        assert article.video_url == "https://www.youtube.com/watch?v=abc"
        assert article.tags == ["교육", "Learning", "YouTube", "Video"]

    def test_browser_record(self, normalizer, make_platform):
        """Scraped cards map like feed entries."""
        platform = make_platform(id="naver", name="네이버 D2", method=CollectionMethod.CRAWLER)
        record = BrowserRawRecord(
            title="Kafka 스트림 처리",
            url="https://d2.naver.com/helloworld/1",
            summary="<p>Kafka 와 Spark 로 데이터 파이프라인 구성</p>",
            tags=("data",),
        )

        article = normalizer.normalize(record, platform, RUN_STARTED)

        assert article.category == ArticleCategory.DATA
        assert article.content_type == ContentType.ARTICLE
        assert article.excerpt == "Kafka 와 Spark 로 데이터 파이프라인 구성"

    def test_course_record(self, normalizer, make_platform):
        """Courses become lectures with course fields and flags."""
        platform = make_platform(
            id="inflearn", name="인프런", type=PlatformType.EDUCATIONAL, method=CollectionMethod.CRAWLER
        )
        record = CourseRawRecord(
            title="스프링 부트 개발 실전",
            url="https://www.inflearn.com/course/spring",
            instructor="김영한",
            price=99000,
            original_price=120000,
            rating=4.9,
            student_count=25000,
            duration_minutes=600,
            category="개발",
        )

        article = normalizer.normalize(record, platform, RUN_STARTED)

        assert article.content_type == ContentType.LECTURE
        assert article.category == ArticleCategory.BACKEND
        assert article.author.name == "김영한"
        assert article.course_price == 99000
        assert article.reading_time == 10
        assert article.trending is True
        assert article.featured is True
        assert article.view_count == 25000
        assert article.metrics_source == MetricsSource.SOURCE
        assert article.tags == ["lecture", "개발"]
        assert article.published_at_estimated is True

    def test_course_without_instructor(self, normalizer, make_platform):
        """A course without instructor gets the platform default."""
        platform = make_platform(
            id="coloso", name="콜로소", type=PlatformType.EDUCATIONAL, method=CollectionMethod.CRAWLER
        )
        record = CourseRawRecord(title="캐릭터 디자인", url="https://coloso.co.kr/p/1")

        article = normalizer.normalize(record, platform, RUN_STARTED)

        assert article.author.name == "콜로소 강사"
        assert article.trending is False
        assert article.featured is False
        assert article.reading_time == 1

    def test_synthetic_metrics_are_flagged(self, make_platform):
        """Generated counters are marked synthetic and stay in range."""
        normalizer = Normalizer(synthetic_metrics=True, rng=random.Random(7))

        article = normalizer.normalize(
            RssRawRecord(title="title here", link="https://toss.tech/x"), make_platform(), RUN_STARTED
        )

        assert article.metrics_source == MetricsSource.SYNTHETIC
        assert 1000 <= article.view_count <= 5999
        assert 50 <= article.like_count <= 249
        assert 5 <= article.comment_count <= 54
