"""
Browser configuration for Playwright-based auditing.

This module provides a validated Pydantic configuration model for the
rendering browser and pre-configured instances for common use cases.
"""
from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from siteaudit.constants import (
    DEFAULT_ACCEPT_LANGUAGE,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    DESKTOP_VIEWPORT_HEIGHT,
    DESKTOP_VIEWPORT_WIDTH,
)


class BrowserConfig(BaseModel):
    """
    Configuration for the Playwright-backed BrowserSession.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use for crawling"
    )

    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Default navigation timeout in milliseconds",
        ge=1000,
        le=300000
    )

    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="networkidle",
        description="When to consider navigation complete"
    )

    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent sent with page navigations and link checks"
    )

    viewport_width: int = Field(default=DESKTOP_VIEWPORT_WIDTH, ge=320)
    viewport_height: int = Field(default=DESKTOP_VIEWPORT_HEIGHT, ge=240)

    accept_language: str = Field(
        default=DEFAULT_ACCEPT_LANGUAGE,
        description="Accept-Language header for every request"
    )

    launch_args: List[str] = Field(
        default_factory=list,
        description="Additional browser launch arguments (e.g., '--disable-http2')"
    )

    @property
    def viewport(self) -> Dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}

    @property
    def extra_http_headers(self) -> Dict[str, str]:
        return {"Accept-Language": self.accept_language}


# --- Pre-configured Instances for Common Use Cases ---

DEFAULT_CONFIG = BrowserConfig()
"""
Headless Chromium waiting for network idle, matching how audits are run in CI.
"""

DEBUG_CONFIG = BrowserConfig(
    headless=False,
    wait_until="load",
    timeout=60000,
)
"""
Visible browser with a generous timeout.

Best for watching an audit run against a single problematic page.
"""
