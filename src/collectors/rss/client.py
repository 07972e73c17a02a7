"""HTTP client for feed documents.

Wraps a shared httpx.AsyncClient with per-host rate limiting and maps HTTP
failures onto the collector exception hierarchy.
"""

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.exceptions import (
    CollectorError,
    CollectorNotFoundError,
    CollectorRateLimitError,
    CollectorTimeoutError,
    CollectorUnavailableError,
)
from src.core.rate_limiter import HostRateLimiter
from src.monitoring.metrics import track_collector_operation

logger = structlog.get_logger(__name__)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.5"


class FeedClient:
    """Fetches raw feed documents.

    Example:
        client = FeedClient(httpx.AsyncClient(), HostRateLimiter(limit=2))
        body = await client.fetch("toss", "https://toss.tech/rss.xml", timeout=12.0)
    """

    def __init__(self, http: httpx.AsyncClient, rate_limiter: HostRateLimiter | None = None):
        self._http = http
        self._rate_limiter = rate_limiter

    @retry(
        retry=retry_if_exception_type(CollectorRateLimitError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def fetch(self, source_id: str, url: str, timeout: float | None = None) -> bytes:
        """Fetch a feed document body.

        Raises:
            CollectorRateLimitError: HTTP 429.
            CollectorNotFoundError: HTTP 404 or 410.
            CollectorUnavailableError: HTTP 5xx or connection failure.
            CollectorTimeoutError: No answer within `timeout`.
            CollectorError: Any other HTTP error status.
        """
        if self._rate_limiter is not None:
            await self._rate_limiter.wait(HostRateLimiter.host_of(url))

        request_options = {"headers": {"Accept": FEED_ACCEPT}, "follow_redirects": True}
        if timeout is not None:
            request_options["timeout"] = timeout

        with track_collector_operation(source_id, "rss_fetch"):
            try:
                response = await self._http.get(url, **request_options)
            except httpx.TimeoutException as e:
                logger.warning("rss_fetch_timeout", source_id=source_id, url=url)
                raise CollectorTimeoutError(source_id, f"Feed request timed out: {e}", {"url": url})
            except httpx.RequestError as e:
                logger.warning("rss_fetch_request_error", source_id=source_id, url=url, error=str(e))
                raise CollectorUnavailableError(source_id, f"Feed request failed: {e}", {"url": url})

            if response.status_code == 429:
                logger.warning("rss_fetch_rate_limited", source_id=source_id, url=url)
                raise CollectorRateLimitError(source_id, "Rate limited by feed host", {"url": url})
            elif response.status_code in (404, 410):
                raise CollectorNotFoundError(source_id, f"Feed not found: {url}", {"url": url})
            elif response.status_code >= 500:
                raise CollectorUnavailableError(
                    source_id,
                    f"Feed host error {response.status_code}",
                    {"url": url, "status_code": response.status_code},
                )
            elif response.status_code >= 400:
                raise CollectorError(
                    source_id,
                    f"Feed request rejected with {response.status_code}",
                    {"url": url, "status_code": response.status_code},
                )

            logger.debug("rss_feed_fetched", source_id=source_id, url=url, bytes=len(response.content))
            return response.content
