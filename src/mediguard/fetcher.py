"""Transport selection for crawling.

PageFetcher owns one rendering (browser) transport and one static (HTTP)
transport. It uses the browser while it works and switches to static HTTP for
the rest of the run once the browser is unusable.
"""

import logging
from typing import Optional

import httpx

from mediguard.browser_config import BrowserConfig
from mediguard.browser_crawler import BrowserTransport
from mediguard.config import ScanConfiguration
from mediguard.constants import DEFAULT_USER_AGENT
from mediguard.crawler import HttpTransport
from mediguard.exceptions import FetchFailed, TransportDegraded
from mediguard.models import FetchResult

logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Fetches pages through the best available transport.

    Designed to be used as an async context manager so the browser is always
    released, including on cancellation:

        async with PageFetcher(scan_config) as fetcher:
            result = await fetcher.fetch(url)
    """

    def __init__(
        self,
        config: Optional[ScanConfiguration] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        render_js: bool = True,
        browser_config: Optional[BrowserConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        primary=None,
        fallback=None,
    ):
        """
        Initialize the fetcher.

        Args:
            config: Scan configuration (timeout is taken from it)
            user_agent: User agent for both transports
            render_js: Use the browser transport first
            browser_config: Optional browser settings
            http_client: Optional httpx client for the static transport
            primary: Optional pre-built rendering transport
            fallback: Optional pre-built static transport
        """
        config = config or ScanConfiguration()

        if primary is None and render_js:
            browser_config = browser_config or BrowserConfig(
                timeout=config.timeout_ms, user_agent=user_agent
            )
            primary = BrowserTransport(browser_config)

        self._primary = primary
        self._fallback = fallback or HttpTransport(
            user_agent=user_agent, timeout_ms=config.timeout_ms, client=http_client
        )
        self._active = None
        self._fallback_started = False
        self.degraded = False

    @property
    def transport_name(self) -> Optional[str]:
        """Name of the transport currently in use."""
        return self._active.name if self._active else None

    async def __aenter__(self) -> "PageFetcher":
        if self._primary is not None:
            try:
                await self._primary.start()
                self._active = self._primary
                return self
            except TransportDegraded as e:
                await self._switch_to_fallback(e)
                return self

        await self._start_fallback()
        self._active = self._fallback
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._primary is not None:
            await self._primary.close()
        if self._fallback_started:
            await self._fallback.close()
            self._fallback_started = False
        self._active = None

    async def _start_fallback(self) -> None:
        if not self._fallback_started:
            await self._fallback.start()
            self._fallback_started = True

    async def _switch_to_fallback(self, error: TransportDegraded) -> None:
        """Abandon the rendering transport for the rest of the run."""
        logger.warning(f"{error}. Falling back to static HTTP fetching")
        self.degraded = True
        if self._primary is not None:
            await self._primary.close()
        await self._start_fallback()
        self._active = self._fallback

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch one URL with the active transport.

        Args:
            url: Absolute URL to fetch

        Returns:
            FetchResult from whichever transport served the page

        Raises:
            FetchFailed: If the page could not be fetched
        """
        if self._active is None:
            raise RuntimeError("PageFetcher is not open. Use 'async with PageFetcher(...)'.")

        try:
            return await self._active.fetch(url)
        except TransportDegraded as e:
            if self._active is self._fallback:
                raise FetchFailed(url, e.reason) from e
            await self._switch_to_fallback(e)

        # Retry the same URL once on the static transport
        return await self._active.fetch(url)
