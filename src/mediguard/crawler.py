"""Static HTTP fetch transport.

Plain GET requests with no script execution. Used when the browser transport
is unavailable, or on its own when rendering is disabled.
"""

import logging
import time
from typing import Optional

import httpx

from mediguard.constants import DEFAULT_TIMEOUT_MS, DEFAULT_USER_AGENT
from mediguard.exceptions import FetchFailed
from mediguard.models import FetchResult

logger = logging.getLogger(__name__)


class HttpTransport:
    """Fetches raw HTML with httpx.

    Usable as an async context manager:

        async with HttpTransport() as transport:
            result = await transport.fetch("https://example.com")
    """

    name = "http"

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the transport.

        Args:
            user_agent: User agent sent with every request
            timeout_ms: Request timeout in milliseconds
            client: Optional pre-built client (not closed by this transport)
        """
        self.user_agent = user_agent
        self.timeout = timeout_ms / 1000
        self._client = client
        self._owns_client = client is None
        self.headers = {
            "User-Agent": f"{user_agent} (Compliance Scanner)",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-AU,en;q=0.9",
        }

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True, max_redirects=5)
            self._owns_client = True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpTransport":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def fetch(self, url: str) -> FetchResult:
        """Fetch one URL.

        Args:
            url: Absolute URL to fetch

        Returns:
            FetchResult with the response body

        Raises:
            FetchFailed: On network errors, HTTP error status or non-HTML content
        """
        if self._client is None:
            raise RuntimeError("Transport is not started. Use 'async with HttpTransport()'.")

        start_time = time.time()
        try:
            response = await self._client.get(
                url, headers=self.headers, timeout=self.timeout, follow_redirects=True
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            raise FetchFailed(url, f"Request timeout after {self.timeout:.0f}s")
        except httpx.HTTPStatusError as e:
            raise FetchFailed(url, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            raise FetchFailed(url, f"Connection error: {e}")

        content_type = response.headers.get("content-type", "text/html")
        if "html" not in content_type.lower():
            raise FetchFailed(url, f"Not an HTML document ({content_type})")

        load_time = time.time() - start_time
        logger.debug(f"Fetched {url} (status={response.status_code}, time={load_time:.2f}s)")

        return FetchResult(
            url=url,
            html=response.text,
            status_code=response.status_code,
            final_url=str(response.url),
            load_time=load_time,
            transport=self.name,
        )
