"""Crawl traversal engine: walks a site's internal links and audits each page."""

import asyncio
import logging
from collections import deque
from datetime import datetime
from typing import Deque, List, Optional, Set, Tuple

from siteaudit.browser_crawler import is_timeout_error
from siteaudit.checks import IssueDetector
from siteaudit.config import AuditConfig, settings
from siteaudit.models import (
    CrawlSession,
    Issue,
    Link,
    NavigationResult,
    PageSnapshot,
    Severity,
)
from siteaudit.retry import with_retry
from siteaudit.sitemap_parser import SitemapParser
from siteaudit.url_utils import (
    MalformedURLError,
    is_excluded,
    is_http_url,
    is_internal,
    normalize,
)

logger = logging.getLogger(__name__)

CRAWL_FAILED = "Crawl failed"
TIMEOUT_EXCEEDED = "Timeout exceeded"
CRAWL_SETUP_FAILED = "Crawl setup failed"

DEPTH_FIRST = "depth_first"
BREADTH_FIRST = "breadth_first"


class SiteAuditor:
    """Audits a site by following its internal links through a rendering browser.

    Pending (url, depth) items live on an explicit work-list. Each item is
    either dropped (excluded, already visited, or too deep) or visited:
    navigated, checked by the IssueDetector, and expanded into its
    unvisited internal links at depth + 1. A redirect re-queues the final
    URL at the same depth instead of expanding the requested one.

    All crawl state lives in ``self.session`` and is only touched from the
    single crawl task, so it needs no locking. Issues and graph links found
    on a page are committed when the page finishes; a page abandoned by
    :meth:`request_stop` leaves nothing half-recorded.

        async with BrowserSession(browser_config) as browser:
            auditor = SiteAuditor(config, browser)
            session = await auditor.run()
    """

    def __init__(
        self,
        config: AuditConfig,
        browser,
        sitemap_parser: Optional[SitemapParser] = None,
        detector: Optional[IssueDetector] = None,
    ):
        """Initialize the auditor.

        Args:
            config: Audit configuration
            browser: Rendering collaborator (BrowserSession or compatible)
            sitemap_parser: Seed URL resolver (defaults to SitemapParser)
            detector: Issue detector pipeline (defaults to IssueDetector(config))
        """
        self.config = config
        self.browser = browser
        self.sitemap_parser = sitemap_parser or SitemapParser(
            timeout=config.timeout / 1000,
            user_agent=settings.USER_AGENT,
        )
        self.detector = detector or IssueDetector(config)
        self.session = CrawlSession(start_url=config.start_url)
        self.site_hostname = config.site_hostname
        self._queue: Deque[Tuple[str, int]] = deque()
        self._stop_requested = False

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    @property
    def pending(self) -> List[Tuple[str, int]]:
        """Work-list items not yet processed."""
        return list(self._queue)

    def request_stop(self) -> None:
        """Ask the crawl to stop after the current step.

        The page being processed is abandoned at its next link; nothing
        further is taken from the work-list.
        """
        if not self._stop_requested:
            logger.warning("🛑 Stop requested, finishing current step...")
        self._stop_requested = True

    async def run(self) -> CrawlSession:
        """Resolve seed URLs and crawl from them.

        Returns:
            The crawl session holding visited URLs, issues and the link graph
        """
        seeds = await self.resolve_seeds()
        await self.crawl(seeds)
        return self.session

    async def resolve_seeds(self) -> List[str]:
        """Seed URLs from the sitemap, falling back to the start URL."""
        start_url = self.config.start_url
        seeds: List[str] = []

        try:
            if self.config.use_sitemap:
                seeds = await self.sitemap_parser.resolve_seed_urls(
                    self.config.resolved_sitemap_url
                )
            else:
                seeds = [start_url]
        except Exception as e:
            logger.error(f"❌ Error during crawl setup: {e}")
            self.session.issues.append(Issue(
                page=start_url,
                type=CRAWL_SETUP_FAILED,
                details=str(e),
                severity=Severity.HIGH,
            ))

        if not seeds:
            logger.warning("⚠️ No URLs to crawl. Using start_url as fallback.")
            seeds = [start_url]
        return seeds

    async def crawl(self, seeds: List[str]) -> CrawlSession:
        """Crawl from the given seed URLs (depth 0) until the work-list is empty or stopped.

        Args:
            seeds: Ordered seed URLs

        Returns:
            The crawl session
        """
        for seed in seeds:
            self._queue.append((seed, 0))
            self._track_discovered(seed)

        logger.info(
            f"Starting crawl of {self.config.start_url} "
            f"({len(seeds)} seed URLs, max depth {self.config.max_depth}, "
            f"{self.config.traversal_order.replace('_', '-')})"
        )

        try:
            while self._queue:
                if self._stop_requested:
                    logger.warning(f"Crawl stopped with {len(self._queue)} URLs still queued")
                    break
                url, depth = self._queue.popleft()
                await self._visit(url, depth)
        except asyncio.CancelledError:
            logger.warning("Crawl cancelled")
            self.session.interrupted = True
            raise
        finally:
            self.session.finished_at = datetime.now()
            if self._stop_requested:
                self.session.interrupted = True

        return self.session

    async def _visit(self, url: str, depth: int) -> None:
        """Process one work-list item."""
        session = self.session

        try:
            normalized_url = normalize(url)
        except MalformedURLError as e:
            logger.warning(f"Skipping malformed URL {url!r}: {e.reason}")
            session.issues.append(Issue(
                page=str(url),
                type=CRAWL_FAILED,
                details=str(e),
                severity=Severity.HIGH,
            ))
            return

        if is_excluded(normalized_url, self.config.exclude_urls, self.config.exclude_patterns):
            logger.info(f"Skipping excluded URL: {normalized_url}")
            return
        if normalized_url in session.visited:
            logger.debug(f"Already visited: {normalized_url}")
            return
        if depth > self.config.max_depth:
            logger.debug(f"Depth {depth} exceeds max depth, skipping: {normalized_url}")
            return

        session.visited.add(normalized_url)
        session.graph[normalized_url] = []

        logger.info(f"🔍 [Depth {depth}] Visiting: {normalized_url}")
        await asyncio.sleep(self.config.request_delay / 1000)

        page_issues: List[Issue] = []
        page_links: List[str] = []
        nav_checked: Set[str] = set()

        try:
            result = await self._navigate(normalized_url)
            logger.debug(f"Status for {normalized_url}: {result.status}")

            final_url = normalize(result.final_url) if result.final_url else normalized_url
            if final_url != normalized_url:
                logger.info(f"↪️  Redirected to: {final_url}")
                del session.graph[normalized_url]
                self._queue.appendleft((final_url, depth))
                return

            snapshot = await self._snapshot(normalized_url, result)
            page_issues.extend(self.detector.detect(snapshot))

            children = await self._process_links(
                normalized_url, depth, snapshot, page_issues, page_links, nav_checked
            )
            if children is None:
                logger.warning(f"Abandoned {normalized_url} before completion")
                return

        except Exception as e:
            if is_timeout_error(e):
                logger.warning(f"Timeout on {normalized_url}, skipping...")
                failure = Issue(
                    page=normalized_url,
                    type=TIMEOUT_EXCEEDED,
                    details=str(e),
                    severity=Severity.MEDIUM,
                )
            else:
                logger.error(f"❌ Failed to crawl {normalized_url}: {e}")
                failure = Issue(
                    page=normalized_url,
                    type=CRAWL_FAILED,
                    details=str(e),
                    severity=Severity.HIGH,
                )
            session.issues.extend(page_issues)
            session.issues.append(failure)
            session.pages_crawled += 1
            return

        session.issues.extend(page_issues)
        session.graph[normalized_url] = page_links
        session.checked_nav_links.update(nav_checked)
        session.pages_crawled += 1
        self._enqueue(children)

        logger.info(
            f"✅ Completed: {normalized_url} ({len(snapshot.links)} links found) "
            f"- Progress: {session.progress()}"
        )

    async def _navigate(self, url: str) -> NavigationResult:
        retry = self.config.retry
        return await with_retry(
            lambda: self.browser.navigate(url, timeout=self.config.timeout),
            max_attempts=retry.max_attempts,
            delay=retry.delay_seconds,
            description=f"navigation to {url}",
        )

    async def _snapshot(self, url: str, result: NavigationResult) -> PageSnapshot:
        """Query the rendered page for what the enabled checks need."""
        checks = self.config.checks
        snapshot = PageSnapshot(
            url=url,
            status=result.status,
            final_url=result.final_url,
            load_time_ms=result.load_time_ms,
        )

        if checks.title:
            snapshot.title = await self.browser.title()
        if checks.seo:
            snapshot.meta_description = await self.browser.meta_description()
            snapshot.h1_count = await self.browser.count("h1")
        if checks.placeholders:
            snapshot.body_text = await self.browser.text_content("body")
            logger.debug(f"Body content (first 100 chars): {snapshot.body_text[:100]}")
        if checks.images:
            snapshot.images = await self.browser.images()

        snapshot.links = await self.browser.links("a[href]")
        if self.config.skip_repeated_nav_links:
            snapshot.nav_hrefs = await self.browser.link_hrefs(self.config.nav_selector)
        return snapshot

    async def _process_links(
        self,
        page_url: str,
        depth: int,
        snapshot: PageSnapshot,
        page_issues: List[Issue],
        page_links: List[str],
        nav_checked: Set[str],
    ) -> Optional[List[Tuple[str, int]]]:
        """Record, check and collect the outbound links of a page.

        Returns:
            Child (url, depth) items to crawl, or None if a stop was requested
        """
        session = self.session
        children: List[Tuple[str, int]] = []
        queued: Set[str] = set()

        for link in snapshot.links:
            if self._stop_requested:
                return None

            try:
                target = normalize(link.href)
                if not is_http_url(target):
                    continue
            except MalformedURLError as e:
                logger.warning(f"Ignoring malformed link on {page_url}: {e}")
                continue

            if is_excluded(target, self.config.exclude_urls, self.config.exclude_patterns):
                logger.info(f"↪️  Skipping excluded link: {target}")
                continue

            page_links.append(target)
            internal = is_internal(target, self.site_hostname)
            if internal:
                self._track_discovered(target)

            if self.config.checks.links and self._should_check_link(link, target, snapshot.nav_hrefs, nav_checked):
                logger.info(f"↪️  Checking link: {target}")
                page_issues.extend(
                    await self.detector.check_link(page_url, link, self._fetch_status)
                )

            if (
                internal
                and target not in session.visited
                and target not in queued
                and depth + 1 <= self.config.max_depth
            ):
                queued.add(target)
                children.append((target, depth + 1))

        return children

    def _should_check_link(
        self,
        link: Link,
        target: str,
        nav_hrefs: Set[str],
        nav_checked: Set[str],
    ) -> bool:
        """Navigation links are checked once per crawl; every other link every time."""
        if not self.config.skip_repeated_nav_links or link.href not in nav_hrefs:
            return True
        if target in self.session.checked_nav_links or target in nav_checked:
            logger.info(f"↪️  Skipping repeated nav link: {target}")
            return False
        nav_checked.add(target)
        return True

    async def _fetch_status(self, url: str) -> int:
        return await self.browser.request_status(url, timeout=self.config.timeout)

    def _enqueue(self, children: List[Tuple[str, int]]) -> None:
        if self.config.traversal_order == BREADTH_FIRST:
            self._queue.extend(children)
        else:
            # Depth-first: children run next, first link first
            self._queue.extendleft(reversed(children))

    def _track_discovered(self, url: str) -> None:
        try:
            normalized = normalize(url)
            if is_internal(normalized, self.site_hostname):
                self.session.discovered.add(normalized)
        except MalformedURLError:
            # Reported when the URL itself is visited
            return
