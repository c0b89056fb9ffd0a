"""Sitemap parser that seeds the audit crawl with an ordered URL frontier."""

import logging
import re
from typing import List, Optional
from xml.etree import ElementTree as ET

import httpx

from siteaudit.constants import (
    DEFAULT_USER_AGENT,
    MAX_SITEMAP_DEPTH,
    SITEMAP_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class SitemapParser:
    """
    Parse XML sitemaps to extract seed URLs for crawling.

    Supports:
    - Standard sitemap.xml files
    - Sitemap index files, followed recursively up to ``max_depth``

    URLs are returned in document order with duplicates removed. Fetch or
    parse failures are logged and contribute no URLs; they never raise.
    """

    SITEMAP_NS = '{http://www.sitemaps.org/schemas/sitemap/0.9}'

    def __init__(
        self,
        timeout: float = SITEMAP_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        max_depth: int = MAX_SITEMAP_DEPTH,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the sitemap parser.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header for sitemap requests
            max_depth: Maximum nesting of sitemap indexes to follow
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.max_depth = max_depth
        self._transport = transport
        self._urls: List[str] = []
        self._seen_sitemaps: set = set()

    async def resolve_seed_urls(self, sitemap_url: str) -> List[str]:
        """
        Fetch a sitemap (or sitemap index) and return its page URLs.

        Args:
            sitemap_url: URL of the sitemap.xml or sitemap index

        Returns:
            Ordered, de-duplicated list of URLs (empty on failure)
        """
        self._urls = []
        self._seen_sitemaps = set()

        headers = {
            'User-Agent': self.user_agent,
            'Accept': 'application/xml, text/xml, */*',
        }
        async with httpx.AsyncClient(
            headers=headers,
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            await self._fetch_and_parse(client, sitemap_url, depth=0)

        logger.info(f"Sitemap {sitemap_url} yielded {len(self._urls)} URLs")
        return list(self._urls)

    async def _fetch_and_parse(self, client: httpx.AsyncClient, sitemap_url: str, depth: int) -> None:
        """Recursively fetch and parse sitemaps."""
        if depth > self.max_depth:
            logger.warning(f"Sitemap nesting too deep, skipping {sitemap_url}")
            return
        if sitemap_url in self._seen_sitemaps:
            return
        self._seen_sitemaps.add(sitemap_url)

        try:
            response = await client.get(sitemap_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch sitemap {sitemap_url}: {e}")
            return

        logger.debug(f"Sitemap fetched from {sitemap_url}")
        root = self._parse_xml(response.text, sitemap_url)
        if root is None:
            return

        root_tag = self._local_name(root.tag)
        if root_tag == 'urlset':
            self._add_urls(self._locs(root, 'url'))
        elif root_tag == 'sitemapindex':
            for child_url in self._locs(root, 'sitemap'):
                logger.info(f"Found child sitemap: {child_url}")
                await self._fetch_and_parse(client, child_url, depth + 1)
        else:
            logger.warning(f"Unexpected sitemap format at {sitemap_url}: <{root_tag}>")

    def _parse_xml(self, content: str, source: str) -> Optional[ET.Element]:
        try:
            return ET.fromstring(self._clean_xml_content(content))
        except ET.ParseError as e:
            logger.warning(f"Failed to parse sitemap XML from {source}: {e}")
            return None

    def _clean_xml_content(self, content: str) -> str:
        """Strip a leading DOCTYPE and surrounding whitespace."""
        content = re.sub(r'<!DOCTYPE[^>]*>', '', content)
        return content.strip()

    def _locs(self, root: ET.Element, entry_tag: str) -> List[str]:
        """<loc> values of every <url>/<sitemap> entry, namespaced or not."""
        locs = []
        for entry in root:
            if self._local_name(entry.tag) != entry_tag:
                continue
            loc = entry.find(f'{self.SITEMAP_NS}loc')
            if loc is None:
                loc = entry.find('loc')
            if loc is not None and loc.text and loc.text.strip():
                locs.append(loc.text.strip())
        return locs

    def _add_urls(self, urls: List[str]) -> None:
        seen = set(self._urls)
        for url in urls:
            if url not in seen:
                seen.add(url)
                self._urls.append(url)

    @staticmethod
    def _local_name(tag: str) -> str:
        return tag.split('}')[-1] if '}' in tag else tag
