"""
Bounded pool of headless browser pages.

Browser-driven adapters share at most `max_browsers` browser processes, each
serving at most `max_pages_per_browser` pages (one isolated context per page).
Callers beyond that bound wait, and give up with BrowserPoolExhaustedError
after `acquire_timeout` seconds.

Usage:
    pool = BrowserPool(max_browsers=3, max_pages_per_browser=5)
    await pool.start()

    async with pool.page() as handle:
        await handle.page.goto(url)
        html = await handle.page.content()

    await pool.shutdown()

Handles still checked out when the pool shuts down become invalid; touching
`handle.page` afterwards raises BrowserPoolClosedError.
"""

import asyncio
import contextlib
import itertools
import time
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from typing import Any, AsyncIterator, Callable, Optional, Protocol

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from src.core.exceptions import (
    BrowserLaunchError,
    BrowserPoolClosedError,
    BrowserPoolExhaustedError,
)
from src.monitoring.metrics import update_browser_pool_gauges

logger = structlog.get_logger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_CONTEXT_OPTIONS = {
    "viewport": {"width": 1200, "height": 800},
    "user_agent": DEFAULT_USER_AGENT,
    "locale": "ko-KR",
}
BLOCKED_RESOURCE_TYPES = {"image", "stylesheet", "font", "media"}

# Rough resident-memory figures used for the status estimate
BROWSER_MEMORY_MB = 150
PAGE_MEMORY_MB = 30


# =============================================================================
# Launchers
# =============================================================================


class BrowserLauncher(Protocol):
    """Starts browser processes. Injected so tests can run without a browser."""

    async def launch(self) -> Any:
        """Return a browser exposing new_context(), close() and is_connected()."""
        ...

    async def stop(self) -> None:
        ...


class PlaywrightLauncher:
    """Launches headless Chromium through Playwright."""

    def __init__(self, headless: bool = True, args: Optional[list[str]] = None):
        self.headless = headless
        self.args = args or CHROMIUM_ARGS
        self._playwright = None

    async def launch(self) -> Any:
        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            return await self._playwright.chromium.launch(headless=self.headless, args=self.args)
        except PlaywrightError as e:
            raise BrowserLaunchError(f"Chromium launch failed: {e}")

    async def stop(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


async def _block_heavy_resources(route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


# =============================================================================
# Pool
# =============================================================================


@dataclass
class _BrowserSlot:
    id: int
    browser: Any
    last_used: float
    active_pages: int = 0


@dataclass(eq=False)
class PageHandle:
    """A checked-out page. Valid until released or until the pool shuts down."""

    slot_id: int
    context: Any
    _page: Any
    valid: bool = True
    released: bool = False

    @property
    def page(self) -> Any:
        if not self.valid:
            raise BrowserPoolClosedError("Page handle is no longer valid", {"browser": self.slot_id})
        return self._page


@dataclass
class PoolStatus:
    """Snapshot of pool usage."""

    total_browsers: int
    active_handles: int
    idle_browsers: int
    max_browsers: int
    capacity: int
    memory_estimate_mb: int
    closed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class BrowserPool:
    """
    Bounded, lazily launched pool of browser pages.

    Args:
        max_browsers: Upper bound on live browser processes
        max_pages_per_browser: Concurrent pages served by one browser
        idle_timeout: Seconds an unused browser is kept before recycling
        acquire_timeout: Seconds `acquire` waits for capacity
        health_check_interval: Seconds between maintenance passes
        launcher: Browser launcher (defaults to Playwright Chromium)
        context_options: Options for each page's browser context
    """

    def __init__(
        self,
        max_browsers: int = 3,
        max_pages_per_browser: int = 5,
        idle_timeout: float = 300.0,
        acquire_timeout: float = 30.0,
        health_check_interval: float = 30.0,
        launcher: Optional[BrowserLauncher] = None,
        context_options: Optional[dict[str, Any]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_browsers = max_browsers
        self.max_pages_per_browser = max_pages_per_browser
        self.idle_timeout = idle_timeout
        self.acquire_timeout = acquire_timeout
        self.health_check_interval = health_check_interval
        self.context_options = context_options or dict(DEFAULT_CONTEXT_OPTIONS)
        self._launcher = launcher or PlaywrightLauncher()
        self._clock = clock

        self._slots: dict[int, _BrowserSlot] = {}
        self._handles: set[PageHandle] = set()
        self._slot_ids = itertools.count(1)
        self._cond = asyncio.Condition()
        self._closed = False
        self._maintenance_task: Optional[asyncio.Task] = None

    @property
    def capacity(self) -> int:
        return self.max_browsers * self.max_pages_per_browser

    @property
    def closed(self) -> bool:
        return self._closed

    def _reserved_pages(self) -> int:
        return sum(slot.active_pages for slot in self._slots.values())

    def _publish(self) -> None:
        update_browser_pool_gauges(len(self._slots), len(self._handles))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background maintenance loop. Browsers launch lazily."""
        if self._maintenance_task is None and not self._closed:
            self._maintenance_task = asyncio.create_task(self._maintenance_loop())
            logger.info(
                "browser_pool_started",
                max_browsers=self.max_browsers,
                max_pages_per_browser=self.max_pages_per_browser,
            )

    async def shutdown(self) -> None:
        """Close every browser. Outstanding handles are invalidated.

        Safe to call more than once and while handles are checked out.
        """
        async with self._cond:
            if self._closed:
                return
            self._closed = True
            outstanding = len(self._handles)
            for handle in self._handles:
                handle.valid = False
            slots = list(self._slots.values())
            self._slots.clear()
            self._cond.notify_all()

        if self._maintenance_task is not None:
            self._maintenance_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._maintenance_task
            self._maintenance_task = None

        for slot in slots:
            await self._close_browser(slot)
        await self._launcher.stop()

        self._publish()
        logger.info("browser_pool_shutdown", browsers_closed=len(slots), invalidated_handles=outstanding)

    # -------------------------------------------------------------------------
    # Acquire / release
    # -------------------------------------------------------------------------

    async def acquire(self) -> PageHandle:
        """Check out a fresh page in its own browser context.

        Raises:
            BrowserPoolExhaustedError: No capacity within `acquire_timeout`.
            BrowserPoolClosedError: The pool is (or was, while waiting) shut down.
            BrowserLaunchError: A browser or page could not be created.
        """
        started = self._clock()

        async with self._cond:
            try:
                await asyncio.wait_for(
                    self._cond.wait_for(lambda: self._closed or self._reserved_pages() < self.capacity),
                    timeout=self.acquire_timeout,
                )
            except asyncio.TimeoutError:
                waited = self._clock() - started
                logger.warning("browser_pool_exhausted", waited_seconds=round(waited, 2), capacity=self.capacity)
                raise BrowserPoolExhaustedError(waited, self.capacity)

            if self._closed:
                raise BrowserPoolClosedError("Browser pool is shut down")

            slot = await self._slot_with_room()
            slot.active_pages += 1
            slot.last_used = self._clock()

        context = None
        try:
            context = await slot.browser.new_context(**self.context_options)
            await context.route("**/*", _block_heavy_resources)
            page = await context.new_page()
        except BaseException as e:
            # Cancellation lands here too; the reserved slot must go back
            if context is not None:
                await asyncio.shield(self._close_context(context))
            await asyncio.shield(self._return_page(slot.id))
            if not isinstance(e, Exception):
                raise
            logger.error("browser_page_open_failed", browser=slot.id, error=str(e))
            raise BrowserLaunchError(f"Could not open page: {e}", {"browser": slot.id})

        handle = PageHandle(slot_id=slot.id, context=context, _page=page)
        if self._closed:
            handle.valid = False
            handle.released = True
            await self._close_context(context)
            raise BrowserPoolClosedError("Browser pool shut down during acquire")

        self._handles.add(handle)
        self._publish()
        return handle

    async def release(self, handle: PageHandle) -> None:
        """Return a page. Idempotent; never raises."""
        if handle.released:
            return
        handle.released = True
        handle.valid = False
        self._handles.discard(handle)

        await self._close_context(handle.context)
        await self._return_page(handle.slot_id)

    @asynccontextmanager
    async def page(self) -> AsyncIterator[PageHandle]:
        """Acquire a page and release it on every exit path."""
        handle = await self.acquire()
        try:
            yield handle
        finally:
            await self.release(handle)

    async def _return_page(self, slot_id: int) -> None:
        async with self._cond:
            slot = self._slots.get(slot_id)
            if slot is not None:
                slot.active_pages = max(0, slot.active_pages - 1)
                slot.last_used = self._clock()
            self._publish()
            self._cond.notify()

    async def _slot_with_room(self) -> _BrowserSlot:
        """Pick a browser with a free page slot, launching one if needed.

        Called with the condition lock held.
        """
        for slot_id in [s.id for s in self._slots.values() if not self._is_connected(s) and s.active_pages == 0]:
            logger.warning("browser_disconnected", browser=slot_id)
            del self._slots[slot_id]

        candidates = [
            s
            for s in self._slots.values()
            if s.active_pages < self.max_pages_per_browser and self._is_connected(s)
        ]
        if candidates:
            # Pack pages onto busy browsers so idle ones can be recycled
            return max(candidates, key=lambda s: s.active_pages)

        if len(self._slots) >= self.max_browsers:
            raise BrowserLaunchError("No healthy browser with free pages", {"browsers": len(self._slots)})

        try:
            browser = await self._launcher.launch()
        except BrowserLaunchError:
            raise
        except Exception as e:
            raise BrowserLaunchError(f"Browser launch failed: {e}")

        slot = _BrowserSlot(id=next(self._slot_ids), browser=browser, last_used=self._clock())
        self._slots[slot.id] = slot
        logger.info("browser_launched", browser=slot.id, total_browsers=len(self._slots))
        return slot

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    async def recycle_idle(self) -> int:
        """Close browsers unused for longer than `idle_timeout`.

        Returns:
            Number of browsers closed.
        """
        now = self._clock()
        async with self._cond:
            stale = [
                s
                for s in self._slots.values()
                if s.active_pages == 0
                and (now - s.last_used >= self.idle_timeout or not self._is_connected(s))
            ]
            for slot in stale:
                del self._slots[slot.id]
            self._publish()

        for slot in stale:
            await self._close_browser(slot)
        if stale:
            logger.info("browser_pool_recycled", closed=len(stale), remaining=len(self._slots))
        return len(stale)

    async def _maintenance_loop(self) -> None:
        while not self._closed:
            await asyncio.sleep(self.health_check_interval)
            try:
                await self.recycle_idle()
            except Exception as e:
                logger.warning("browser_pool_maintenance_failed", error=str(e))

    def status(self) -> PoolStatus:
        browsers = len(self._slots)
        active = len(self._handles)
        return PoolStatus(
            total_browsers=browsers,
            active_handles=active,
            idle_browsers=sum(1 for s in self._slots.values() if s.active_pages == 0),
            max_browsers=self.max_browsers,
            capacity=self.capacity,
            memory_estimate_mb=browsers * BROWSER_MEMORY_MB + active * PAGE_MEMORY_MB,
            closed=self._closed,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _is_connected(slot: _BrowserSlot) -> bool:
        try:
            return bool(slot.browser.is_connected())
        except Exception:
            return False

    @staticmethod
    async def _close_context(context: Any) -> None:
        try:
            await context.close()
        except Exception as e:
            logger.debug("browser_context_close_failed", error=str(e))

    @staticmethod
    async def _close_browser(slot: _BrowserSlot) -> None:
        try:
            await slot.browser.close()
        except Exception as e:
            logger.warning("browser_close_failed", browser=slot.id, error=str(e))
