"""Shared fixtures: an in-memory website served through httpx.MockTransport."""

from typing import Dict, List, Optional

import httpx
import pytest


SEED = "https://clinic.example/"


def html_page(title: str, body: str = "", links: Optional[List[str]] = None) -> str:
    """Build a small HTML document linking to the given hrefs."""
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in (links or []))
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{title}</h1><p>{body or 'Information about our practice and team.'}</p>"
        f"{anchors}</body></html>"
    )


class FakeSite:
    """A website made of path -> HTML, recording every page request."""

    def __init__(
        self,
        pages: Dict[str, str],
        robots: Optional[str] = None,
        status_overrides: Optional[Dict[str, int]] = None,
        host: str = "clinic.example",
        redirects: Optional[Dict[str, str]] = None,
        offsite: Optional[Dict[str, str]] = None,
    ):
        self.pages = pages
        self.robots = robots
        self.status_overrides = status_overrides or {}
        self.host = host
        self.redirects = redirects or {}  # path -> Location
        self.offsite = offsite or {}  # absolute url on another host -> HTML
        self.requested: List[str] = []
        self.robots_requests = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/robots.txt":
            self.robots_requests += 1
            if self.robots is None:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, text=self.robots)

        self.requested.append(str(request.url))
        if str(request.url) in self.offsite:
            return httpx.Response(200, html=self.offsite[str(request.url)])
        if request.url.host != self.host:
            return httpx.Response(404, text="not found")
        if path in self.redirects:
            return httpx.Response(302, headers={"Location": self.redirects[path]})
        if path in self.status_overrides:
            return httpx.Response(self.status_overrides[path], text="error")
        if path in self.pages:
            return httpx.Response(200, html=self.pages[path])
        return httpx.Response(404, text="not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_site():
    """Factory for FakeSite instances."""
    return FakeSite


@pytest.fixture
def page_html():
    """Factory for small HTML documents."""
    return html_page


@pytest.fixture
def seed_url():
    return SEED
