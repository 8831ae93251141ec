"""
Browser configuration for Playwright-based fetching.

This module provides a validated Pydantic configuration model for the browser
transport.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from mediguard.constants import (
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    DESKTOP_VIEWPORT_HEIGHT,
    DESKTOP_VIEWPORT_WIDTH,
    RENDER_SETTLE_MS,
)


class BrowserConfig(BaseModel):
    """
    Configuration for the Playwright-based BrowserTransport.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    model_config = ConfigDict(validate_assignment=True)

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use for fetching"
    )

    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Page load timeout in milliseconds",
        ge=1000,
        le=300000
    )

    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="networkidle",
        description="When to consider navigation complete"
    )

    settle_ms: int = Field(
        default=RENDER_SETTLE_MS,
        description="Extra wait after navigation for client-side rendering",
        ge=0,
        le=30000
    )

    viewport_width: int = Field(default=DESKTOP_VIEWPORT_WIDTH, ge=320)
    viewport_height: int = Field(default=DESKTOP_VIEWPORT_HEIGHT, ge=240)

    block_resources: List[str] = Field(
        default_factory=list,
        description="Resource types to block (e.g., 'image', 'font', 'media')"
    )

    launch_args: List[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-dev-shm-usage"],
        description="Additional browser launch arguments"
    )

    user_agent: Optional[str] = Field(
        default=None,
        description="User agent for browser contexts. None uses the scanner's default."
    )

    def get_user_agent(self) -> str:
        """Get the user agent to use for this config."""
        return self.user_agent or DEFAULT_USER_AGENT

