"""Unit tests for the per-host rate limiter."""

import asyncio

import pytest

from src.core.rate_limiter import HostRateLimiter, RateLimitResult


class TestHostRateLimiter:
    """Test in-memory per-host limiter."""

    @pytest.fixture
    def limiter(self):
        """Fresh rate limiter for each test."""
        return HostRateLimiter(limit=3, window=60)

    @pytest.mark.asyncio
    async def test_allows_requests_under_limit(self, limiter):
        """Requests under limit are allowed."""
        result = await limiter.is_allowed("medium.com")

        assert result.allowed is True
        assert result.remaining == 2

    @pytest.mark.asyncio
    async def test_blocks_requests_over_limit(self, limiter):
        """Requests over limit are blocked."""
        for _ in range(3):
            await limiter.is_allowed("medium.com")

        result = await limiter.is_allowed("medium.com")

        assert result.allowed is False
        assert result.remaining == 0
        assert result.retry_after is not None
        assert result.retry_after > 0

    @pytest.mark.asyncio
    async def test_hosts_independent(self, limiter):
        """Different hosts have independent limits."""
        for _ in range(3):
            await limiter.is_allowed("medium.com")

        result = await limiter.is_allowed("toss.tech")

        assert result.allowed is True

    @pytest.mark.asyncio
    async def test_reset_clears_limit(self, limiter):
        """Reset forgets a host's history."""
        for _ in range(3):
            await limiter.is_allowed("medium.com")

        await limiter.reset("medium.com")
        result = await limiter.is_allowed("medium.com")

        assert result.allowed is True

    @pytest.mark.asyncio
    async def test_wait_sleeps_until_window_frees(self):
        """wait() blocks while the host is over its limit."""
        limiter = HostRateLimiter(limit=1, window=0.05)
        await limiter.wait("medium.com")

        loop = asyncio.get_running_loop()
        started = loop.time()
        await limiter.wait("medium.com")

        assert loop.time() - started >= 0.03

    @pytest.mark.parametrize(
        "url,host",
        [
            ("https://medium.com/feed/daangn", "medium.com"),
            ("https://Toss.Tech/rss.xml", "toss.tech"),
            ("http://localhost:8080/feed", "localhost"),
        ],
    )
    def test_host_of(self, url, host):
        """URLs collapse to their lowercased hostname."""
        assert HostRateLimiter.host_of(url) == host


class TestRateLimitResult:
    """Test RateLimitResult dataclass."""

    def test_retry_after_defaults_to_none(self):
        result = RateLimitResult(allowed=True, remaining=1, reset_at=0.0)

        assert result.retry_after is None
