"""Per-host sliding-window rate limiter for outbound feed requests.

Several feeds live on the same host (medium.com serves daangn, coupang and the
tag feeds), so requests are spaced per host rather than per platform.

Usage:
    limiter = HostRateLimiter(limit=2, window=1.0)

    # Non-blocking check
    result = await limiter.is_allowed("medium.com")

    # Block until a slot frees up
    await limiter.wait("medium.com")
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    remaining: int
    reset_at: float
    retry_after: Optional[float] = None


@dataclass
class HostRateLimiter:
    """
    In-memory sliding-window limiter keyed by host.

    Args:
        limit: Requests allowed per window for one host
        window: Window length in seconds
    """

    limit: int = 2
    window: float = 1.0
    _buckets: dict[str, list[float]] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @staticmethod
    def host_of(url: str) -> str:
        """Extract the rate-limit key from a URL."""
        return (urlparse(url).hostname or url).lower()

    async def is_allowed(self, host: str) -> RateLimitResult:
        """Check and, if allowed, consume a slot for the host."""
        async with self._lock:
            now = time.monotonic()
            window_start = now - self.window

            bucket = [t for t in self._buckets.get(host, []) if t > window_start]
            self._buckets[host] = bucket

            reset_at = (bucket[0] + self.window) if bucket else now + self.window

            if len(bucket) >= self.limit:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after=max(0.0, reset_at - now),
                )

            bucket.append(now)
            return RateLimitResult(
                allowed=True,
                remaining=self.limit - len(bucket),
                reset_at=reset_at,
            )

    async def wait(self, host: str) -> None:
        """Suspend until the host has a free slot, then consume it."""
        while True:
            result = await self.is_allowed(host)
            if result.allowed:
                return
            logger.debug("host_rate_limited", host=host, retry_after=result.retry_after)
            await asyncio.sleep(result.retry_after or self.window)

    async def reset(self, host: str) -> None:
        """Forget the request history of a host."""
        async with self._lock:
            self._buckets.pop(host, None)
