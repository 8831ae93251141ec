"""
Browser-based fetch transport using Playwright for JavaScript-rendered content.

This module provides a BrowserTransport class that renders pages in a headless
browser so that client-side content is visible to extraction and detection.
"""
import logging
import time
from typing import Optional

from mediguard.browser_config import BrowserConfig
from mediguard.exceptions import FetchFailed, TransportDegraded
from mediguard.models import FetchResult

logger = logging.getLogger(__name__)


class BrowserTransport:
    """
    Playwright-based transport for JavaScript-rendered websites.

    This class is designed to be used as an async context manager, managing
    its own browser lifecycle:

        async with BrowserTransport(config) as transport:
            result = await transport.fetch("https://example.com")

    A browser that cannot be launched, or that dies mid-crawl, is reported as
    TransportDegraded so the caller can switch to static HTTP fetching. Errors
    confined to one page are reported as FetchFailed.
    """

    name = "browser"

    def __init__(self, config: Optional[BrowserConfig] = None):
        """
        Initialize the browser transport.

        Args:
            config: BrowserConfig instance with browser settings
        """
        self._config = config or BrowserConfig()
        self._playwright = None
        self._browser = None

        logger.debug(f"BrowserTransport initialized with config: {self._config}")

    async def start(self) -> None:
        """Launch the browser.

        Raises:
            TransportDegraded: If Playwright is missing or the browser fails to launch
        """
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise TransportDegraded(
                self.name,
                "Playwright is required for browser-based fetching. "
                "Install with: pip install 'mediguard[browser]'"
            )

        logger.info(f"Launching {self._config.browser_type} browser (headless={self._config.headless})")

        try:
            self._playwright = await async_playwright().start()
            browser_launcher = getattr(self._playwright, self._config.browser_type)

            launch_options = {"headless": self._config.headless}
            if self._config.launch_args:
                launch_options["args"] = self._config.launch_args

            self._browser = await browser_launcher.launch(**launch_options)
        except Exception as e:
            await self.close()
            raise TransportDegraded(self.name, f"Browser launch failed: {e}") from e

        logger.info("Browser launched successfully")

    async def close(self) -> None:
        """Close the browser and stop Playwright. Safe to call more than once."""
        if self._browser:
            logger.info("Closing browser")
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"Error while closing browser: {e}")
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"Error while stopping Playwright: {e}")
            self._playwright = None

    async def __aenter__(self) -> "BrowserTransport":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _is_alive(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL with full JavaScript rendering.

        Each call creates an isolated browser context to prevent
        cross-contamination of sessions, cookies, or localStorage.

        Args:
            url: URL to fetch

        Returns:
            FetchResult with rendered HTML

        Raises:
            TransportDegraded: If the browser is not running or has disconnected
            FetchFailed: If this page could not be loaded
        """
        if not self._is_alive():
            raise TransportDegraded(self.name, "Browser is not running")

        start_time = time.time()

        try:
            context = await self._browser.new_context(
                viewport={
                    "width": self._config.viewport_width,
                    "height": self._config.viewport_height,
                },
                user_agent=self._config.get_user_agent(),
                java_script_enabled=True,
            )
        except Exception as e:
            raise self._classify(url, e)

        try:
            page = await context.new_page()

            # Block unwanted resources if configured
            if self._config.block_resources:
                await page.route(
                    "**/*",
                    lambda route: (
                        route.abort()
                        if route.request.resource_type in self._config.block_resources
                        else route.continue_()
                    )
                )

            logger.info(f"Fetching: {url}")

            response = await page.goto(
                url,
                wait_until=self._config.wait_until,
                timeout=self._config.timeout
            )

            # Wait for dynamic content to settle
            if self._config.settle_ms:
                await page.wait_for_timeout(self._config.settle_ms)

            html = await page.content()
            status_code = response.status if response else 0
            final_url = page.url
        except Exception as e:
            raise self._classify(url, e)
        finally:
            # Always close context to ensure isolation
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"Error while closing context for {url}: {e}")

        if status_code >= 400:
            raise FetchFailed(url, f"HTTP {status_code}")

        load_time = time.time() - start_time
        logger.info(f"Fetch complete: {url} (status={status_code}, time={load_time:.2f}s)")

        return FetchResult(
            url=url,
            html=html,
            status_code=status_code,
            final_url=final_url,
            load_time=load_time,
            transport=self.name,
        )

    def _classify(self, url: str, error: Exception) -> Exception:
        """Map a Playwright error to a page failure or a dead browser."""
        if not self._is_alive():
            return TransportDegraded(self.name, f"Browser disconnected: {error}")
        logger.error(f"Fetch failed for {url}: {error}")
        return FetchFailed(url, str(error))
