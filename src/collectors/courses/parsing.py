"""Parsers for course listing text and course cards."""

import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from src.collectors.browser.extract import first_image, first_link, first_text
from src.collectors.courses.sites import CourseSiteProfile
from src.collectors.normalization.schema import CourseLevel, CourseRawRecord
from src.collectors.normalization.text import canonical_url

FREE_MARKERS = ("무료", "free")
LEVEL_MARKERS: list[tuple[tuple[str, ...], CourseLevel]] = [
    (("입문", "초급", "beginner"), CourseLevel.BEGINNER),
    (("중급", "intermediate"), CourseLevel.INTERMEDIATE),
    (("고급", "advanced", "expert"), CourseLevel.ADVANCED),
]


def clean_text(text: str | None) -> str:
    return " ".join((text or "").split())


def parse_price(text: str | None) -> Optional[int]:
    """Price in won; 0 for free courses, None when no price is shown.

    >>> parse_price("₩ 77,000")
    77000
    """
    text = clean_text(text)
    if not text:
        return None
    if any(marker in text.lower() for marker in FREE_MARKERS):
        return 0
    match = re.search(r"\d[\d,]*", text)
    if not match:
        return None
    return int(match.group(0).replace(",", ""))


def parse_rating(text: str | None) -> Optional[float]:
    match = re.search(r"\d+(?:\.\d+)?", clean_text(text))
    if not match:
        return None
    rating = float(match.group(0))
    return rating if 0 <= rating <= 5 else None


def parse_student_count(text: str | None) -> Optional[int]:
    """Student count, understanding 만 (10,000) and 천 (1,000) suffixes.

    >>> parse_student_count("1.2만명")
    12000
    """
    text = clean_text(text)
    match = re.search(r"\d[\d,]*(?:\.\d+)?", text)
    if not match:
        return None
    number = float(match.group(0).replace(",", ""))
    if "만" in text:
        number *= 10000
    elif "천" in text:
        number *= 1000
    return int(round(number))


def parse_duration_minutes(text: str | None) -> Optional[int]:
    """Total minutes from "N시간 M분", "Nh Mm" or "N min" style text."""
    text = clean_text(text).lower()
    if not text:
        return None

    hours = re.search(r"(\d+(?:\.\d+)?)\s*(?:시간|hours?|h)\b", text) or re.search(r"(\d+(?:\.\d+)?)\s*시간", text)
    minutes = re.search(r"(\d+)\s*(?:분|minutes?|mins?|m)\b", text) or re.search(r"(\d+)\s*분", text)
    if not hours and not minutes:
        return None

    total = 0.0
    if hours:
        total += float(hours.group(1)) * 60
    if minutes:
        total += int(minutes.group(1))
    return int(total)


def parse_level(text: str | None) -> Optional[CourseLevel]:
    text = clean_text(text).lower()
    for markers, level in LEVEL_MARKERS:
        if any(marker in text for marker in markers):
            return level
    return None


def parse_course_card(item: Tag, profile: CourseSiteProfile, base_url: str) -> Optional[CourseRawRecord]:
    title = clean_text(first_text(item, profile.title_selectors))
    url = first_link(item, profile.link_selectors, base_url)
    if not title or not url.startswith(("http://", "https://")):
        return None

    category = clean_text(first_text(item, profile.category_selectors)) or profile.default_category
    tags = tuple(
        clean_text(n.get_text(" ", strip=True))
        for selector in profile.tag_selectors
        for n in item.select(selector)
        if n.get_text(strip=True)
    )

    return CourseRawRecord(
        title=title,
        url=url,
        instructor=clean_text(first_text(item, profile.instructor_selectors)),
        price=parse_price(first_text(item, profile.price_selectors)),
        original_price=parse_price(first_text(item, profile.original_price_selectors)),
        description=clean_text(first_text(item, profile.description_selectors)),
        rating=parse_rating(first_text(item, profile.rating_selectors)),
        student_count=parse_student_count(first_text(item, profile.student_selectors)),
        thumbnail_url=first_image(item, ("img",), base_url),
        category=category,
        tags=tags,
        duration_minutes=parse_duration_minutes(first_text(item, profile.duration_selectors)),
        level=parse_level(first_text(item, profile.level_selectors)),
    )


def extract_courses(html: str, profile: CourseSiteProfile, base_url: str) -> list[CourseRawRecord]:
    """All distinct course cards on one listing page."""
    soup = BeautifulSoup(html, "html.parser")
    records: list[CourseRawRecord] = []
    seen: set[str] = set()

    for item in soup.select(profile.item_selector):
        record = parse_course_card(item, profile, base_url)
        if record is None:
            continue
        key = canonical_url(record.url)
        if key not in seen:
            seen.add(key)
            records.append(record)
    return records
