"""Tests for the Playwright browser transport and its configuration."""

import sys

import pytest
from pydantic import ValidationError
from unittest.mock import AsyncMock, Mock, patch

from mediguard.browser_config import BrowserConfig
from mediguard.browser_crawler import BrowserTransport
from mediguard.exceptions import FetchFailed, TransportDegraded


def _transport_with_page(page, connected=True, config=None):
    """BrowserTransport whose browser is a mock serving the given page."""
    context = Mock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = Mock()
    if isinstance(connected, list):
        browser.is_connected = Mock(side_effect=connected)
    else:
        browser.is_connected = Mock(return_value=connected)
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    transport = BrowserTransport(config or BrowserConfig(settle_ms=0))
    transport._browser = browser
    return transport, context


def _page(html="<html><title>Rendered</title></html>", status=200, url="https://clinic.example/"):
    page = Mock()
    page.goto = AsyncMock(return_value=Mock(status=status))
    page.wait_for_timeout = AsyncMock()
    page.content = AsyncMock(return_value=html)
    page.route = AsyncMock()
    page.url = url
    return page


class TestBrowserConfig:
    """Test cases for BrowserConfig."""

    def test_defaults(self):
        """Test default configuration values."""
        config = BrowserConfig()
        assert config.headless is True
        assert config.browser_type == "chromium"
        assert config.timeout == 30000
        assert config.wait_until == "networkidle"
        assert config.get_user_agent() == "MediGuard-AI-Scanner/2.0"

    def test_timeout_bounds(self):
        """Test that out-of-range timeouts are rejected."""
        with pytest.raises(ValidationError):
            BrowserConfig(timeout=10)


class TestBrowserTransport:
    """Test cases for BrowserTransport."""

    @pytest.mark.asyncio
    async def test_missing_playwright_degrades(self):
        """Test that a missing Playwright install raises TransportDegraded."""
        with patch.dict(sys.modules, {"playwright": None, "playwright.async_api": None}):
            with pytest.raises(TransportDegraded) as exc_info:
                await BrowserTransport().start()

        assert exc_info.value.transport == "browser"

    @pytest.mark.asyncio
    async def test_fetch_without_browser_degrades(self):
        """Test that fetching with no running browser raises TransportDegraded."""
        with pytest.raises(TransportDegraded):
            await BrowserTransport().fetch("https://clinic.example/")

    @pytest.mark.asyncio
    async def test_fetch_rendered_page(self):
        """Test a successful rendered fetch."""
        page = _page()
        transport, context = _transport_with_page(page)

        result = await transport.fetch("https://clinic.example/")

        assert result.html == "<html><title>Rendered</title></html>"
        assert result.status_code == 200
        assert result.transport == "browser"
        page.goto.assert_awaited_once_with(
            "https://clinic.example/", wait_until="networkidle", timeout=30000
        )
        context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_settle_delay_applied(self):
        """Test that the render settle delay is awaited."""
        page = _page()
        transport, _ = _transport_with_page(page, config=BrowserConfig(settle_ms=1500))

        await transport.fetch("https://clinic.example/")

        page.wait_for_timeout.assert_awaited_once_with(1500)

    @pytest.mark.asyncio
    async def test_navigation_error_is_page_failure(self):
        """Test that a navigation error with a live browser raises FetchFailed."""
        page = _page()
        page.goto = AsyncMock(side_effect=Exception("net::ERR_NAME_NOT_RESOLVED"))
        transport, context = _transport_with_page(page)

        with pytest.raises(FetchFailed, match="ERR_NAME_NOT_RESOLVED"):
            await transport.fetch("https://clinic.example/")

        context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disconnected_browser_degrades(self):
        """Test that an error after the browser died raises TransportDegraded."""
        page = _page()
        page.goto = AsyncMock(side_effect=Exception("Target closed"))
        transport, _ = _transport_with_page(page, connected=[True, False])

        with pytest.raises(TransportDegraded, match="disconnected"):
            await transport.fetch("https://clinic.example/")

    @pytest.mark.asyncio
    async def test_error_status_is_page_failure(self):
        """Test that an HTTP error status raises FetchFailed."""
        transport, _ = _transport_with_page(_page(status=404))

        with pytest.raises(FetchFailed, match="HTTP 404"):
            await transport.fetch("https://clinic.example/missing")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        """Test closing twice is safe."""
        transport, _ = _transport_with_page(_page())
        browser = transport._browser

        await transport.close()
        await transport.close()

        browser.close.assert_awaited_once()
