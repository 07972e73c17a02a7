"""Listing page profiles for course platforms."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CourseSiteProfile:
    """How to page through and read one course platform's listing."""

    key: str
    page_url: str  # formatted with page=<1-based page number>
    item_selector: str
    wait_selector: str
    title_selectors: tuple[str, ...]
    link_selectors: tuple[str, ...] = ("a[href]",)
    instructor_selectors: tuple[str, ...] = (".instructor", ".teacher", ".author", "[class*='creator']")
    price_selectors: tuple[str, ...] = (".price", ".course_price", "[class*='price']")
    original_price_selectors: tuple[str, ...] = ("del", "s", "[class*='original']")
    description_selectors: tuple[str, ...] = ("[class*='desc']", "p")
    rating_selectors: tuple[str, ...] = (".rating", ".star-rating", "[class*='rating']")
    student_selectors: tuple[str, ...] = (".student-count", ".enrollment", "[class*='student']")
    duration_selectors: tuple[str, ...] = ("[class*='duration']", "[class*='time']")
    level_selectors: tuple[str, ...] = ("[class*='level']",)
    category_selectors: tuple[str, ...] = (".category", "[class*='category']")
    tag_selectors: tuple[str, ...] = ("[class*='tag']",)
    default_category: str = ""
    max_pages: int = 3


COURSE_SITES: dict[str, CourseSiteProfile] = {
    p.key: p
    for p in [
        CourseSiteProfile(
            key="inflearn",
            page_url="https://www.inflearn.com/courses?order=recent&page={page}",
            item_selector=".course_card_item, .course-card, [data-testid='course-card']",
            wait_selector=".course_card_item, .course-card, [data-testid='course-card'], main",
            title_selectors=(".course_title", ".course-title", "h3", "h4"),
            default_category="프로그래밍",
        ),
        CourseSiteProfile(
            key="class101",
            page_url="https://class101.net/ko/search?sort=recent&page={page}",
            item_selector=".class-card, [data-testid='class-card'], .product-card, .course-item",
            wait_selector=".class-card, [data-testid='class-card'], .product-card, main",
            title_selectors=("[class*='title']", "h3", "h4"),
            default_category="크리에이티브",
            max_pages=2,
        ),
        CourseSiteProfile(
            key="coloso",
            page_url="https://coloso.co.kr/category/all?page={page}",
            item_selector="[data-testid='course-card'], .course-card, .CourseCard",
            wait_selector="[data-testid='course-card'], .course-card, .CourseCard, main",
            title_selectors=("[class*='title']", "h3", "h4"),
            default_category="디자인",
            max_pages=2,
        ),
    ]
}


def get_course_site(key: str | None) -> CourseSiteProfile | None:
    return COURSE_SITES.get(key or "")
