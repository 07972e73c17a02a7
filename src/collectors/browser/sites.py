"""Selector profiles for browser-rendered sites.

Selectors are listed most specific first; extraction takes the first selector
that yields a value. Start URLs are tried in order until one yields cards.
"""

from dataclasses import dataclass, field
from typing import Optional

TITLE_FALLBACKS = ("h1", "h2", "h3", "h4", "[class*='title']")
LINK_FALLBACKS = ("a[href]",)
SUMMARY_FALLBACKS = ("p", "[class*='desc']", "[class*='summary']", "[class*='excerpt']")
AUTHOR_FALLBACKS = ("[class*='author']", "[class*='writer']", "[class*='name']")
DATE_FALLBACKS = ("time", "[class*='date']", "[class*='time']")
IMAGE_FALLBACKS = ("img",)
TAG_FALLBACKS = ("[class*='tag'] a", "[class*='tag']")


@dataclass(frozen=True)
class SiteProfile:
    """How to find content cards on one site."""

    key: str
    start_urls: tuple[str, ...]
    item_selectors: tuple[str, ...]
    wait_selector: str = "body"
    title_selectors: tuple[str, ...] = TITLE_FALLBACKS
    link_selectors: tuple[str, ...] = LINK_FALLBACKS
    summary_selectors: tuple[str, ...] = SUMMARY_FALLBACKS
    author_selectors: tuple[str, ...] = AUTHOR_FALLBACKS
    date_selectors: tuple[str, ...] = DATE_FALLBACKS
    image_selectors: tuple[str, ...] = IMAGE_FALLBACKS
    tag_selectors: tuple[str, ...] = TAG_FALLBACKS
    link_must_contain: Optional[str] = None
    min_title_length: int = 5
    default_tags: tuple[str, ...] = field(default_factory=tuple)


SITE_PROFILES: dict[str, SiteProfile] = {
    p.key: p
    for p in [
        SiteProfile(
            key="naver-d2",
            start_urls=(
                "https://d2.naver.com/helloworld",
                "https://d2.naver.com",
                "https://d2.naver.com/news",
            ),
            wait_selector="body, main, #content, .container, [class*='content']",
            item_selectors=(
                ".cont_post",
                "article",
                "[class*='post']",
                ".list li",
            ),
            title_selectors=(".post_title", ".article_title", ".title_post", "h2", "h3", "[class*='title']"),
            link_selectors=(".post_title a", "h2 a", "h3 a", "a[href*='/helloworld/']", "a[href]"),
            summary_selectors=(".post_txt", ".post_content", ".article_content", "p"),
            author_selectors=(".post_author", ".article_author", "[class*='author']"),
            date_selectors=(".post_date", ".article_date", "[class*='date']", "time"),
            image_selectors=(".post_thumbnail img", ".article_thumbnail img", "img"),
            tag_selectors=(".post_tags a", ".article_tags a", "[class*='tag'] a"),
            link_must_contain="d2.naver.com",
            default_tags=("NAVER",),
        ),
        SiteProfile(
            key="line-engineering",
            start_urls=(
                "https://techblog.lycorp.co.jp/ko",
                "https://engineering.linecorp.com/ko/blog",
            ),
            wait_selector="article, main, [class*='post']",
            item_selectors=("article", "[class*='post-item']", "[class*='card']", "li[class*='post']"),
            link_must_contain="/ko/",
            default_tags=("LINE",),
        ),
        SiteProfile(
            key="outstanding",
            start_urls=("https://outstanding.kr/category/best", "https://outstanding.kr"),
            wait_selector="article, [class*='article'], [class*='post']",
            item_selectors=("article", "[class*='article-item']", "[class*='post']", "[class*='card']"),
            link_must_contain="outstanding.kr",
            default_tags=("비즈니스", "트렌드"),
        ),
        SiteProfile(
            key="eo",
            start_urls=("https://eopla.net/magazines", "https://eopla.net"),
            wait_selector="[class*='card'], article, main",
            item_selectors=("[class*='magazine'] [class*='card']", "article", "[class*='card']"),
            link_must_contain="eopla.net",
            default_tags=("스타트업",),
        ),
        SiteProfile(
            key="gpters",
            start_urls=("https://www.gpters.org/newsletter", "https://www.gpters.org"),
            wait_selector="[class*='post'], article, main",
            item_selectors=("[class*='post-card']", "article", "[class*='post']", "[class*='feed'] li"),
            link_must_contain="gpters.org",
            default_tags=("AI", "GPT"),
        ),
    ]
}


def get_site_profile(key: str | None) -> Optional[SiteProfile]:
    return SITE_PROFILES.get(key or "")
