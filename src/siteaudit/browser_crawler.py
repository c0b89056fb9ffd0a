"""
Browser session backed by Playwright for auditing JavaScript-rendered pages.

BrowserSession drives a single page through the whole audit: one navigation
at a time, followed by DOM queries against the rendered document. It also
exposes a lightweight status request for outbound link checks that shares
the browser context's cookies and headers.
"""
import asyncio
import logging
from typing import List, Optional, Set

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from siteaudit.browser_config import BrowserConfig
from siteaudit.models import Image, Link, NavigationResult

logger = logging.getLogger(__name__)


_LINKS_SCRIPT = """
    (anchors) => anchors.map(a => ({
        href: a.href,
        rawHref: a.getAttribute('href'),
        text: (a.textContent || '').trim()
    }))
"""

_IMAGES_SCRIPT = """
    (imgs) => imgs.map(img => ({ src: img.src, alt: img.alt }))
"""


def is_timeout_error(error: BaseException) -> bool:
    """True when an error represents an exceeded navigation/request timeout."""
    if isinstance(error, (PlaywrightTimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        return True
    return type(error).__name__ == "TimeoutError"


class BrowserSession:
    """
    Playwright-backed rendering collaborator for the audit crawler.

    This class is designed to be used as an async context manager, managing
    its own browser lifecycle:

        async with BrowserSession(config) as browser:
            result = await browser.navigate("https://example.com", timeout=10000)
            title = await browser.title()
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        """
        Initialize the browser session.

        Args:
            config: BrowserConfig instance with browser settings
        """
        self._config = config or BrowserConfig()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

        logger.debug(f"BrowserSession initialized with config: {self._config}")

    async def __aenter__(self) -> "BrowserSession":
        """Enter async context manager, launching browser."""
        logger.info(
            f"Launching {self._config.browser_type} browser (headless={self._config.headless})"
        )

        self._playwright = await async_playwright().start()
        try:
            browser_launcher = getattr(self._playwright, self._config.browser_type)

            launch_options = {"headless": self._config.headless}
            if self._config.launch_args:
                launch_options["args"] = self._config.launch_args

            self._browser = await browser_launcher.launch(**launch_options)
            self._context = await self._browser.new_context(
                user_agent=self._config.user_agent,
                viewport=self._config.viewport,
                extra_http_headers=self._config.extra_http_headers,
            )
            self._context.set_default_navigation_timeout(self._config.timeout)
            self._page = await self._context.new_page()
        except Exception:
            await self.close()
            raise

        logger.info("Browser launched successfully")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager, closing browser."""
        await self.close()

    async def close(self) -> None:
        """Release the page, context, browser and Playwright driver."""
        if self._context:
            await self._context.close()
            self._context = None
            self._page = None

        if self._browser:
            logger.info("Closing browser")
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
            logger.info("Browser closed successfully")

    @property
    def page(self):
        if not self._page:
            raise RuntimeError(
                "Browser is not running. Use BrowserSession as an async context manager: "
                "async with BrowserSession(config) as browser:"
            )
        return self._page

    async def navigate(self, url: str, timeout: Optional[int] = None) -> NavigationResult:
        """
        Navigate the page to a URL and wait for it to settle.

        Args:
            url: URL to load
            timeout: Navigation timeout in milliseconds

        Returns:
            NavigationResult with status, final URL and response timing

        Raises:
            playwright.TimeoutError: If the page load exceeds the timeout
            playwright.Error: On network-level navigation failures
        """
        response = await self.page.goto(
            url,
            wait_until=self._config.wait_until,
            timeout=timeout or self._config.timeout,
        )

        if response is None:
            # Same-document navigation (e.g. hash change) has no response
            return NavigationResult(status=0, final_url=self.page.url)

        load_time = 0.0
        timing = response.request.timing or {}
        response_end = timing.get("responseEnd")
        if response_end and response_end > 0:
            load_time = float(response_end)

        return NavigationResult(
            status=response.status,
            final_url=response.url,
            load_time_ms=load_time,
        )

    async def title(self) -> str:
        """Document title ('' when the page cannot be queried)."""
        try:
            return await self.page.title() or ""
        except PlaywrightError as e:
            logger.warning(f"Could not read page title: {e}")
            return ""

    async def text_content(self, selector: str) -> str:
        """Text content of the first element matching a selector ('' when absent)."""
        try:
            return await self.page.text_content(selector, timeout=1000) or ""
        except PlaywrightError as e:
            logger.warning(f"Could not read text of {selector!r}: {e}")
            return ""

    async def meta_description(self) -> str:
        try:
            element = await self.page.query_selector('meta[name="description"]')
            if element is None:
                return ""
            return await element.get_attribute("content") or ""
        except PlaywrightError as e:
            logger.warning(f"Could not read meta description: {e}")
            return ""

    async def count(self, selector: str) -> int:
        try:
            return await self.page.eval_on_selector_all(selector, "els => els.length")
        except PlaywrightError as e:
            logger.warning(f"Could not count {selector!r}: {e}")
            return 0

    async def links(self, selector: str = "a[href]") -> List[Link]:
        """Anchors matching a selector, in document order."""
        try:
            raw_links = await self.page.eval_on_selector_all(selector, _LINKS_SCRIPT)
        except PlaywrightError as e:
            logger.warning(f"Link query {selector!r} failed: {e}")
            return []
        return [
            Link(href=item.get("href") or "", text=item.get("text") or "", raw_href=item.get("rawHref"))
            for item in raw_links
            if item.get("href")
        ]

    async def link_hrefs(self, selector: str) -> Set[str]:
        return {link.href for link in await self.links(selector)}

    async def images(self) -> List[Image]:
        try:
            raw_images = await self.page.eval_on_selector_all("img", _IMAGES_SCRIPT)
        except PlaywrightError as e:
            logger.warning(f"Image query failed: {e}")
            return []
        return [Image(src=item.get("src") or "", alt=item.get("alt") or "") for item in raw_images]

    async def request_status(self, url: str, timeout: Optional[int] = None) -> int:
        """
        Fetch a URL outside the page and return its HTTP status.

        Raises:
            playwright.TimeoutError: If the request exceeds the timeout
            playwright.Error: On network-level failures
        """
        if not self._context:
            raise RuntimeError("Browser is not running")
        response = await self._context.request.get(url, timeout=timeout or self._config.timeout)
        try:
            return response.status
        finally:
            await response.dispose()
