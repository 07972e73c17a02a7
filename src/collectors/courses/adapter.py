"""Paginated course-listing adapter."""

import asyncio

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.collectors.base import SourceAdapter
from src.collectors.browser.adapter import render_page
from src.collectors.courses.parsing import extract_courses
from src.collectors.courses.sites import CourseSiteProfile, get_course_site
from src.collectors.normalization.schema import CourseRawRecord
from src.collectors.normalization.text import canonical_url
from src.collectors.registry import register_adapter
from src.core.exceptions import (
    CollectorEmptyResultError,
    CollectorError,
    CollectorTimeoutError,
    CollectorUnavailableError,
)
from src.monitoring.metrics import track_collector_operation

logger = structlog.get_logger(__name__)


@register_adapter("inflearn", "class101", "coloso")
class CourseListingAdapter(SourceAdapter):
    """Pages through a course platform's listing until the limit is reached.

    Stops at `limit` courses, at a page with no new courses, or after the
    profile's `max_pages`. A navigation failure after some pages succeeded
    ends pagination and keeps what was collected.
    """

    uses_browser = True

    def _profile(self) -> CourseSiteProfile:
        profile = get_course_site(self.platform.crawler_type)
        if profile is None:
            raise CollectorError(self.source_id, f"No course site profile for '{self.platform.crawler_type}'")
        return profile

    async def collect(self, limit: int) -> list[CourseRawRecord]:
        profile = self._profile()
        pool = self.context.browser_pool
        if pool is None:
            raise CollectorError(self.source_id, "No browser pool configured")

        records: list[CourseRawRecord] = []
        seen: set[str] = set()

        async with pool.page() as handle:
            for page_number in range(1, profile.max_pages + 1):
                url = profile.page_url.format(page=page_number)
                try:
                    html = await render_page(
                        handle, url, profile.wait_selector, self.context.navigation_timeout_seconds
                    )
                except PlaywrightTimeoutError:
                    if records:
                        logger.warning("course_page_timeout", source_id=self.source_id, page=page_number)
                        break
                    raise CollectorTimeoutError(self.source_id, f"Listing page timed out: {url}", {"url": url})
                except PlaywrightError as e:
                    if records:
                        logger.warning("course_page_failed", source_id=self.source_id, page=page_number, error=str(e))
                        break
                    raise CollectorUnavailableError(self.source_id, f"Listing page failed: {e}", {"url": url})

                with track_collector_operation(self.source_id, "course_page_extract"):
                    page_records = await asyncio.to_thread(extract_courses, html, profile, url)

                new_records = [r for r in page_records if canonical_url(r.url) not in seen]
                if not new_records:
                    break

                for record in new_records:
                    seen.add(canonical_url(record.url))
                    records.append(record)
                    if len(records) >= limit:
                        break

                logger.debug(
                    "course_page_collected",
                    source_id=self.source_id,
                    page=page_number,
                    new=len(new_records),
                    total=len(records),
                )
                if len(records) >= limit:
                    break
                await asyncio.sleep(self.context.page_delay_seconds)

        if not records:
            raise CollectorEmptyResultError(self.source_id, "No courses found", {"url": profile.page_url})

        logger.info("courses_collected", source_id=self.source_id, count=len(records))
        return records
