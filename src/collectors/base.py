"""Base interface for all source adapters.

All adapters should extend SourceAdapter and implement `collect`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Optional

from src.collectors.normalization.schema import RawRecord
from src.config.platforms import PlatformConfig

if TYPE_CHECKING:
    from src.browser.pool import BrowserPool
    from src.collectors.rss.client import FeedClient


@dataclass
class AdapterContext:
    """Shared services handed to adapters by the orchestrator.

    Attributes:
        feed_client: HTTP client for feed documents
        browser_pool: Pool of headless browser pages
        navigation_timeout_seconds: Page navigation and selector wait bound
        page_delay_seconds: Pause between paginated listing requests
    """

    feed_client: Optional["FeedClient"] = None
    browser_pool: Optional["BrowserPool"] = None
    navigation_timeout_seconds: float = 30.0
    page_delay_seconds: float = 1.0


class SourceAdapter(ABC):
    """Abstract base class for all source adapters.

    An adapter fetches and parses exactly one platform and returns raw records;
    normalization happens afterwards in the orchestrator. Adapters raise
    CollectorError subclasses on failure and never swallow them.
    """

    # Browser-driven adapters are gated by the pool, not the network semaphore.
    uses_browser: ClassVar[bool] = False

    def __init__(self, platform: PlatformConfig, context: AdapterContext):
        """Initialize adapter for one platform.

        Args:
            platform: Descriptor of the platform to collect.
            context: Shared services (HTTP client, browser pool).
        """
        self.platform = platform
        self.context = context

    @property
    def source_id(self) -> str:
        return self.platform.id

    @abstractmethod
    async def collect(self, limit: int) -> list[RawRecord]:
        """Fetch up to `limit` raw records.

        Raises:
            CollectorError: Source unreachable, timed out, unparseable or empty.
        """
        ...
