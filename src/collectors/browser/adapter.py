"""Headless-browser adapter for sites without a usable feed."""

import asyncio

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.browser.pool import PageHandle
from src.collectors.base import SourceAdapter
from src.collectors.browser.extract import extract_cards
from src.collectors.browser.sites import SiteProfile, get_site_profile
from src.collectors.normalization.schema import BrowserRawRecord
from src.collectors.registry import register_adapter
from src.core.exceptions import (
    CollectorEmptyResultError,
    CollectorError,
    CollectorTimeoutError,
    CollectorUnavailableError,
)
from src.monitoring.metrics import track_collector_operation

logger = structlog.get_logger(__name__)


async def render_page(handle: PageHandle, url: str, wait_selector: str, timeout_seconds: float) -> str:
    """Navigate, wait for content, and return the serialized DOM.

    A missing wait selector is not fatal; whatever rendered is returned.
    """
    timeout_ms = timeout_seconds * 1000
    page = handle.page
    await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    try:
        await page.wait_for_selector(wait_selector, timeout=timeout_ms)
    except PlaywrightTimeoutError:
        logger.debug("browser_wait_selector_missing", url=url, selector=wait_selector)
    return await handle.page.content()


@register_adapter("naver-d2", "line-engineering", "outstanding", "eo", "gpters")
class PageCardAdapter(SourceAdapter):
    """Renders a site's listing page and extracts content cards."""

    uses_browser = True

    def _profile(self) -> SiteProfile:
        profile = get_site_profile(self.platform.crawler_type)
        if profile is None:
            raise CollectorError(self.source_id, f"No site profile for '{self.platform.crawler_type}'")
        return profile

    async def collect(self, limit: int) -> list[BrowserRawRecord]:
        profile = self._profile()
        pool = self.context.browser_pool
        if pool is None:
            raise CollectorError(self.source_id, "No browser pool configured")

        timeouts = 0
        failures: list[str] = []

        async with pool.page() as handle:
            for url in profile.start_urls:
                try:
                    html = await render_page(
                        handle, url, profile.wait_selector, self.context.navigation_timeout_seconds
                    )
                except PlaywrightTimeoutError:
                    timeouts += 1
                    failures.append(f"{url}: navigation timeout")
                    logger.warning("browser_navigation_timeout", source_id=self.source_id, url=url)
                    continue
                except PlaywrightError as e:
                    failures.append(f"{url}: {e}")
                    logger.warning("browser_navigation_failed", source_id=self.source_id, url=url, error=str(e))
                    continue

                with track_collector_operation(self.source_id, "page_extract"):
                    records = await asyncio.to_thread(extract_cards, html, profile, url, limit)

                if records:
                    logger.info("browser_cards_extracted", source_id=self.source_id, url=url, count=len(records))
                    return records
                logger.debug("browser_no_cards", source_id=self.source_id, url=url)

        details = {"urls": list(profile.start_urls), "failures": failures}
        if timeouts == len(profile.start_urls):
            raise CollectorTimeoutError(self.source_id, "Every start URL timed out", details)
        if failures:
            raise CollectorUnavailableError(self.source_id, "No start URL could be rendered", details)
        raise CollectorEmptyResultError(self.source_id, "No content cards found", details)
