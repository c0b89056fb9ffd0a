"""Per-page issue detectors.

Each detector looks at a rendered page snapshot and returns zero or more
Issues. Detectors are independent of each other and individually switched
on or off through ``AuditConfig.checks``; :meth:`IssueDetector.detect` runs
the page-level ones in a fixed order so reports are reproducible.
Outbound link status checks need the network and live in the async
:meth:`IssueDetector.check_link`.
"""

import logging
import re
from typing import Awaitable, Callable, Iterable, List, Optional

from siteaudit.config import AuditConfig
from siteaudit.constants import (
    HTTP_ERROR_THRESHOLD,
    TEL_DISPLAY_PATTERN,
    TEL_HREF_PATTERN,
)
from siteaudit.models import Issue, Link, PageSnapshot, Severity
from siteaudit.retry import with_retry
from siteaudit.url_utils import MalformedURLError, is_absolute_href, is_internal, normalize

logger = logging.getLogger(__name__)

# Issue type labels
MISSING_TITLE = "Missing or empty title"
MISSING_META_DESCRIPTION = "Missing meta description"
LONG_META_DESCRIPTION = "Meta description too long"
MISSING_H1 = "Missing H1 tag"
MULTIPLE_H1 = "Multiple H1 tags"
PLACEHOLDER_TEXT = "Placeholder text detected"
PLACEHOLDER_LINK_URL = "Placeholder in link URL"
PLACEHOLDER_LINK_TEXT = "Placeholder in link text"
SLOW_PAGE = "Slow page load"
IMAGE_MISSING_ALT = "Image missing alt text"
TEL_INVALID_COUNTRY = "Invalid tel: link format"
TEL_INVALID_HREF = "Incorrect tel: link href format"
TEL_INVALID_DISPLAY = "Incorrect tel: link display format"
ABSOLUTE_INTERNAL_LINK = "Absolute internal link (should be relative)"
LINK_MISSING_TEXT = "Link missing text"
LINK_CHECK_FAILED = "Link check failed"


def http_error_type(status: int) -> str:
    return f"HTTP Error {status}"


def broken_link_type(status: int) -> str:
    return f"Broken link (Status: {status})"


class PlaceholderMatcher:
    """Case-insensitive matcher for a set of literal placeholder strings.

    Literals are regex-escaped and joined into a single alternation that is
    compiled once. Alternation order follows the configured order, so an
    earlier literal wins when two could match at the same position.
    """

    def __init__(self, literals: Iterable[str]):
        self.literals = [literal for literal in literals if literal]
        if self.literals:
            pattern = "|".join(re.escape(literal) for literal in self.literals)
            self._regex: Optional[re.Pattern] = re.compile(pattern, re.IGNORECASE)
        else:
            self._regex = None
        logger.debug(f"Placeholder regex: {self.pattern}")

    @property
    def pattern(self) -> str:
        return self._regex.pattern if self._regex else ""

    def find_all(self, text: Optional[str]) -> List[str]:
        """All matched substrings, in order of appearance."""
        if not text or self._regex is None:
            return []
        return self._regex.findall(text)

    def find_distinct(self, text: Optional[str]) -> List[str]:
        """Distinct matched substrings, in order of first appearance."""
        return list(dict.fromkeys(self.find_all(text)))


class IssueDetector:
    """Runs the enabled checks against page snapshots."""

    def __init__(self, config: AuditConfig):
        self.config = config
        self.checks = config.checks
        self.placeholders = PlaceholderMatcher(config.placeholders)
        self._tel_href_re = re.compile(TEL_HREF_PATTERN, re.IGNORECASE)
        self._tel_display_re = re.compile(TEL_DISPLAY_PATTERN)

    def detect(self, snapshot: PageSnapshot) -> List[Issue]:
        """Run every enabled page-level check in a fixed order.

        Args:
            snapshot: Rendered page data

        Returns:
            Issues found on the page, in check order
        """
        issues: List[Issue] = []
        if self.checks.title:
            issues.extend(self.check_title(snapshot))
        if self.checks.http_status:
            issues.extend(self.check_http_status(snapshot))
        if self.checks.seo:
            issues.extend(self.check_seo(snapshot))
        if self.checks.placeholders:
            issues.extend(self.check_placeholders(snapshot))
        if self.checks.performance:
            issues.extend(self.check_performance(snapshot))
        if self.checks.images:
            issues.extend(self.check_images(snapshot))
        if self.checks.tel_links:
            issues.extend(self.check_tel_links(snapshot))
        return issues

    def check_title(self, snapshot: PageSnapshot) -> List[Issue]:
        title = (snapshot.title or "").strip()
        if not title or title in self.config.default_titles:
            return [Issue(page=snapshot.url, type=MISSING_TITLE, severity=Severity.MEDIUM)]
        return []

    def check_http_status(self, snapshot: PageSnapshot) -> List[Issue]:
        if snapshot.status >= HTTP_ERROR_THRESHOLD:
            return [Issue(
                page=snapshot.url,
                type=http_error_type(snapshot.status),
                severity=Severity.HIGH,
            )]
        return []

    def check_seo(self, snapshot: PageSnapshot) -> List[Issue]:
        issues = []
        description = (snapshot.meta_description or "").strip()
        if not description:
            issues.append(Issue(
                page=snapshot.url,
                type=MISSING_META_DESCRIPTION,
                severity=Severity.MEDIUM,
            ))
        elif len(description) > self.config.meta_description_max:
            issues.append(Issue(
                page=snapshot.url,
                type=LONG_META_DESCRIPTION,
                details=f"{len(description)} chars",
                severity=Severity.LOW,
            ))

        if snapshot.h1_count == 0:
            issues.append(Issue(page=snapshot.url, type=MISSING_H1, severity=Severity.MEDIUM))
        elif snapshot.h1_count > 1:
            issues.append(Issue(
                page=snapshot.url,
                type=MULTIPLE_H1,
                details=f"{snapshot.h1_count} found",
                severity=Severity.LOW,
            ))
        return issues

    def check_placeholders(self, snapshot: PageSnapshot) -> List[Issue]:
        issues = []
        body_matches = self.placeholders.find_distinct(snapshot.body_text)
        if body_matches:
            logger.debug(f"Placeholders in body of {snapshot.url}: {', '.join(body_matches)}")
            issues.append(Issue(
                page=snapshot.url,
                type=PLACEHOLDER_TEXT,
                details=f"Found: {', '.join(body_matches)}",
                severity=Severity.LOW,
            ))

        for link in snapshot.links:
            cleaned = link.href.split("#", 1)[0]
            href_matches = self.placeholders.find_distinct(cleaned)
            if href_matches:
                issues.append(Issue(
                    page=snapshot.url,
                    link=cleaned,
                    type=PLACEHOLDER_LINK_URL,
                    details=f"Found: {', '.join(href_matches)}",
                    severity=Severity.LOW,
                ))
            text_matches = self.placeholders.find_distinct(link.text)
            if text_matches:
                issues.append(Issue(
                    page=snapshot.url,
                    link=cleaned,
                    type=PLACEHOLDER_LINK_TEXT,
                    details=f"Found: {', '.join(text_matches)}",
                    severity=Severity.LOW,
                ))
        return issues

    def check_performance(self, snapshot: PageSnapshot) -> List[Issue]:
        load_time = snapshot.load_time_ms or 0
        if load_time > self.config.slow_page_ms:
            return [Issue(
                page=snapshot.url,
                type=SLOW_PAGE,
                details=f"{load_time / 1000:.2f}s",
                severity=Severity.MEDIUM,
            )]
        return []

    def check_images(self, snapshot: PageSnapshot) -> List[Issue]:
        return [
            Issue(page=snapshot.url, type=IMAGE_MISSING_ALT, details=image.src, severity=Severity.MEDIUM)
            for image in snapshot.images
            if not image.alt
        ]

    def check_tel_links(self, snapshot: PageSnapshot) -> List[Issue]:
        issues = []
        for link in snapshot.links:
            cleaned = link.href.split("#", 1)[0]
            if cleaned.lower().startswith("tel:"):
                issues.extend(self.check_tel_link(snapshot.url, cleaned, link.text))
        return issues

    def check_tel_link(self, page: str, href: str, text: str) -> List[Issue]:
        """Validate one tel: link's country code, href format and display text."""
        issues = []
        codes = self.config.tel_country_codes
        lower_href = href.lower()

        if not any(lower_href.startswith(f"tel:{code.lower()}") for code in codes):
            issues.append(Issue(
                page=page,
                link=href,
                type=TEL_INVALID_COUNTRY,
                details=f"Telephone link does not start with allowed country codes: {', '.join(codes)}",
                severity=Severity.MEDIUM,
            ))

        if not self._tel_href_re.fullmatch(href):
            issues.append(Issue(
                page=page,
                link=href,
                type=TEL_INVALID_HREF,
                details=f"Expected tel:+1 followed by exactly 10 digits (e.g., tel:+11234567890), got {href}",
                severity=Severity.MEDIUM,
            ))

        display = (text or "").strip()
        if not self._tel_display_re.fullmatch(display):
            issues.append(Issue(
                page=page,
                link=href,
                type=TEL_INVALID_DISPLAY,
                details=f"Expected xxx.xxx.xxxx (e.g., 123.456.7890), got {display}",
                severity=Severity.MEDIUM,
            ))
        return issues

    async def check_link(
        self,
        page: str,
        link: Link,
        fetch_status: Callable[[str], Awaitable[int]],
    ) -> List[Issue]:
        """Check one outbound http(s) link.

        Args:
            page: Normalized URL of the page the link was found on
            link: The link as extracted from the page
            fetch_status: Coroutine function returning the HTTP status of a URL

        Returns:
            Issues for this link (broken, failed check, absolute internal, missing text)
        """
        issues = []
        target = normalize(link.href)
        retry = self.config.retry

        try:
            status = await with_retry(
                lambda: fetch_status(target),
                max_attempts=retry.max_attempts,
                delay=retry.delay_seconds,
                description=f"link check {target}",
            )
        except Exception as e:
            logger.warning(f"Link check failed for {target}: {e}")
            issues.append(Issue(
                page=page,
                link=target,
                type=LINK_CHECK_FAILED,
                details=str(e),
                severity=Severity.MEDIUM,
            ))
        else:
            if status >= HTTP_ERROR_THRESHOLD:
                issues.append(Issue(
                    page=page,
                    link=target,
                    type=broken_link_type(status),
                    severity=Severity.HIGH,
                ))

        if self._is_absolute_internal(link, target):
            issues.append(Issue(
                page=page,
                link=target,
                type=ABSOLUTE_INTERNAL_LINK,
                severity=Severity.LOW,
            ))

        if not (link.text or "").strip():
            issues.append(Issue(
                page=page,
                link=target,
                type=LINK_MISSING_TEXT,
                severity=Severity.MEDIUM,
            ))
        return issues

    def _is_absolute_internal(self, link: Link, target: str) -> bool:
        # Without the raw attribute only the resolved href is known, which is always absolute
        written = link.raw_href if link.raw_href is not None else link.href
        try:
            internal = is_internal(target, self.config.site_hostname)
        except MalformedURLError:
            return False
        return internal and is_absolute_href(written)
