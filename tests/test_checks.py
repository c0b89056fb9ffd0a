"""Tests for the per-page issue detectors and link checks."""

from unittest.mock import AsyncMock

import pytest

from siteaudit.checks import (
    ABSOLUTE_INTERNAL_LINK,
    IMAGE_MISSING_ALT,
    LINK_CHECK_FAILED,
    LINK_MISSING_TEXT,
    LONG_META_DESCRIPTION,
    MISSING_H1,
    MISSING_META_DESCRIPTION,
    MISSING_TITLE,
    MULTIPLE_H1,
    PLACEHOLDER_LINK_TEXT,
    PLACEHOLDER_LINK_URL,
    PLACEHOLDER_TEXT,
    SLOW_PAGE,
    TEL_INVALID_COUNTRY,
    TEL_INVALID_DISPLAY,
    TEL_INVALID_HREF,
    IssueDetector,
    PlaceholderMatcher,
)
from siteaudit.config import AuditConfig, CheckToggles, RetryPolicy
from siteaudit.models import Image, Link, PageSnapshot, Severity

PAGE = "https://example.com/page"


@pytest.fixture
def config():
    return AuditConfig(
        start_url="https://example.com/",
        placeholders=["Lorem ipsum", "placeholdertext.", "XX"],
        checks=CheckToggles(
            title=True, http_status=True, seo=True, placeholders=True,
            links=True, performance=True, images=True, tel_links=True,
        ),
        retry=RetryPolicy(max_attempts=3, delay_ms=0),
    )


@pytest.fixture
def detector(config):
    return IssueDetector(config)


def snapshot(**kwargs) -> PageSnapshot:
    values = dict(
        url=PAGE,
        status=200,
        title="Home",
        meta_description="A page about things",
        h1_count=1,
        load_time_ms=200,
    )
    values.update(kwargs)
    return PageSnapshot(**values)


class TestPlaceholderMatcher:
    """Test cases for PlaceholderMatcher."""

    def test_case_insensitive(self):
        """Matches regardless of case."""
        matcher = PlaceholderMatcher(["Lorem ipsum"])
        assert matcher.find_all("LOREM IPSUM dolor") == ["LOREM IPSUM"]

    def test_literals_are_escaped(self):
        """Regex metacharacters in literals match only themselves."""
        matcher = PlaceholderMatcher(["placeholdertext.", "000.000.0000"])
        assert matcher.find_all("placeholdertextX and 000-000-0000") == []
        assert matcher.find_all("see placeholdertext. here") == ["placeholdertext."]

    def test_distinct_matches_in_order(self):
        """Repeated matches are reported once, first occurrence first."""
        matcher = PlaceholderMatcher(["XX", "Lorem ipsum"])
        text = "XX then Lorem ipsum then XX again"
        assert matcher.find_distinct(text) == ["XX", "Lorem ipsum"]

    def test_empty_list_never_matches(self):
        """No placeholders configured means nothing is detected."""
        matcher = PlaceholderMatcher([])
        assert matcher.pattern == ""
        assert matcher.find_all("Lorem ipsum") == []

    def test_empty_text(self):
        matcher = PlaceholderMatcher(["XX"])
        assert matcher.find_all("") == []
        assert matcher.find_all(None) == []


class TestPageChecks:
    """Test cases for page-level detectors."""

    def test_clean_page_has_no_issues(self, detector):
        """A complete page yields nothing."""
        assert detector.detect(snapshot(body_text="Welcome to our site")) == []

    def test_missing_title(self, detector):
        issues = detector.check_title(snapshot(title="   "))
        assert [i.type for i in issues] == [MISSING_TITLE]
        assert issues[0].severity == Severity.MEDIUM

    def test_default_title_counts_as_missing(self, detector):
        """Placeholder titles such as 'Untitled' are reported."""
        assert [i.type for i in detector.check_title(snapshot(title="Untitled"))] == [MISSING_TITLE]

    def test_http_error_status(self, detector):
        issues = detector.check_http_status(snapshot(status=404))
        assert issues[0].type == "HTTP Error 404"
        assert issues[0].severity == Severity.HIGH
        assert detector.check_http_status(snapshot(status=302)) == []

    def test_seo_missing_meta_and_h1(self, detector):
        types = [i.type for i in detector.check_seo(snapshot(meta_description="", h1_count=0))]
        assert types == [MISSING_META_DESCRIPTION, MISSING_H1]

    def test_seo_long_meta_and_multiple_h1(self, detector):
        issues = detector.check_seo(snapshot(meta_description="x" * 161, h1_count=3))
        assert [i.type for i in issues] == [LONG_META_DESCRIPTION, MULTIPLE_H1]
        assert issues[0].details == "161 chars"
        assert issues[1].details == "3 found"

    def test_meta_description_at_limit_is_fine(self, detector):
        assert detector.check_seo(snapshot(meta_description="x" * 160)) == []

    def test_single_body_placeholder_issue(self, detector):
        """Several placeholders in the body produce one issue listing them."""
        issues = detector.check_placeholders(
            snapshot(body_text="Lorem ipsum dolor. Call XX. Lorem ipsum again.")
        )
        assert len(issues) == 1
        assert issues[0].type == PLACEHOLDER_TEXT
        assert issues[0].details == "Found: Lorem ipsum, XX"
        assert issues[0].severity == Severity.LOW

    def test_placeholder_in_link_url_and_text(self, detector):
        links = [Link(href="https://example.com/XX#frag", text="Lorem ipsum")]
        issues = detector.check_placeholders(snapshot(links=links))
        assert [i.type for i in issues] == [PLACEHOLDER_LINK_URL, PLACEHOLDER_LINK_TEXT]
        assert issues[0].link == "https://example.com/XX"

    def test_slow_page(self, detector):
        issues = detector.check_performance(snapshot(load_time_ms=6500))
        assert issues[0].type == SLOW_PAGE
        assert issues[0].details == "6.50s"
        assert detector.check_performance(snapshot(load_time_ms=5000)) == []

    def test_missing_timing_never_flagged(self, detector):
        """Pages without response timing count as 0 ms."""
        assert detector.check_performance(snapshot(load_time_ms=0)) == []
        assert detector.check_performance(snapshot(load_time_ms=None)) == []

    def test_image_missing_alt(self, detector):
        images = [Image(src="/a.png", alt="A"), Image(src="/b.png", alt="")]
        issues = detector.check_images(snapshot(images=images))
        assert [(i.type, i.details) for i in issues] == [(IMAGE_MISSING_ALT, "/b.png")]

    def test_detect_runs_checks_in_order(self, detector):
        """Issues come out in detector order: title, status, seo, placeholders..."""
        page = snapshot(
            title="",
            status=500,
            meta_description="",
            body_text="Lorem ipsum",
            load_time_ms=9000,
        )
        types = [i.type for i in detector.detect(page)]
        assert types == [
            MISSING_TITLE,
            "HTTP Error 500",
            MISSING_META_DESCRIPTION,
            PLACEHOLDER_TEXT,
            SLOW_PAGE,
        ]

    def test_disabled_checks_do_not_run(self):
        """Only toggled-on detectors contribute issues."""
        config = AuditConfig(
            start_url="https://example.com/",
            checks=CheckToggles(title=False, placeholders=False, tel_links=False),
        )
        page = snapshot(title="", body_text="Lorem ipsum", links=[Link(href="tel:123", text="x")])
        assert IssueDetector(config).detect(page) == []


class TestTelLinks:
    """Test cases for tel: link validation."""

    def test_valid_tel_link(self, detector):
        assert detector.check_tel_link(PAGE, "tel:+11234567890", "123.456.7890") == []

    def test_wrong_country_code(self, detector):
        types = [i.type for i in detector.check_tel_link(PAGE, "tel:+21234567890", "123.456.7890")]
        assert TEL_INVALID_COUNTRY in types

    def test_too_few_digits(self, detector):
        types = [i.type for i in detector.check_tel_link(PAGE, "tel:+1123456789", "123.456.7890")]
        assert types == [TEL_INVALID_HREF]

    def test_bad_display_format(self, detector):
        issues = detector.check_tel_link(PAGE, "tel:+11234567890", "1234567890")
        assert [i.type for i in issues] == [TEL_INVALID_DISPLAY]
        assert issues[0].severity == Severity.MEDIUM

    def test_trailing_newline_in_href(self, detector):
        """The whole href must match, including its last character."""
        issues = detector.check_tel_link(PAGE, "tel:+11234567890\n", "123.456.7890")
        assert [i.type for i in issues] == [TEL_INVALID_HREF]

    def test_extra_digits_in_display(self, detector):
        issues = detector.check_tel_link(PAGE, "tel:+11234567890", "123.456.78901")
        assert [i.type for i in issues] == [TEL_INVALID_DISPLAY]

    def test_other_allowed_country_code(self):
        """Country codes come from configuration."""
        config = AuditConfig(start_url="https://example.com/", tel_country_codes=["+1", "+44"])
        issues = IssueDetector(config).check_tel_link(PAGE, "tel:+441234567890", "123.456.7890")
        assert TEL_INVALID_COUNTRY not in [i.type for i in issues]

    def test_tel_links_found_on_page(self, detector):
        links = [
            Link(href="tel:+11234567890", text="123.456.7890"),
            Link(href="https://example.com/contact", text="Contact"),
            Link(href="TEL:+1123", text="call"),
        ]
        issues = detector.check_tel_links(snapshot(links=links))
        assert {i.link for i in issues} == {"TEL:+1123"}


class TestCheckLink:
    """Test cases for outbound link checks."""

    @pytest.mark.asyncio
    async def test_healthy_relative_link(self, detector):
        fetch = AsyncMock(return_value=200)
        link = Link(href="https://example.com/about", text="About", raw_href="/about")

        assert await detector.check_link(PAGE, link, fetch) == []
        fetch.assert_awaited_once_with("https://example.com/about")

    @pytest.mark.asyncio
    async def test_broken_link(self, detector):
        fetch = AsyncMock(return_value=404)
        link = Link(href="https://other.org/gone#x", text="Gone", raw_href="https://other.org/gone#x")

        issues = await detector.check_link(PAGE, link, fetch)

        assert [i.type for i in issues] == ["Broken link (Status: 404)"]
        assert issues[0].link == "https://other.org/gone"
        assert issues[0].severity == Severity.HIGH

    @pytest.mark.asyncio
    async def test_retries_then_reports_failure(self, detector):
        """A link that keeps failing is retried, then reported, never raised."""
        fetch = AsyncMock(side_effect=ConnectionError("connection refused"))
        link = Link(href="https://other.org/", text="Other", raw_href="https://other.org/")

        issues = await detector.check_link(PAGE, link, fetch)

        assert fetch.await_count == 3
        assert [i.type for i in issues] == [LINK_CHECK_FAILED]
        assert issues[0].details == "connection refused"
        assert issues[0].severity == Severity.MEDIUM

    @pytest.mark.asyncio
    async def test_recovers_on_retry(self, detector):
        fetch = AsyncMock(side_effect=[ConnectionError("reset"), 200])
        link = Link(href="https://other.org/", text="Other", raw_href="https://other.org/")

        assert await detector.check_link(PAGE, link, fetch) == []
        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_protocol_relative_internal_link_flagged(self, detector):
        fetch = AsyncMock(return_value=200)
        link = Link(href="https://example.com/about", text="About", raw_href="//example.com/about")

        issues = await detector.check_link(PAGE, link, fetch)

        assert [i.type for i in issues] == [ABSOLUTE_INTERNAL_LINK]

    @pytest.mark.asyncio
    async def test_absolute_internal_and_missing_text(self, detector):
        fetch = AsyncMock(return_value=200)
        link = Link(href="https://EXAMPLE.com/about", text="  ", raw_href="https://EXAMPLE.com/about")

        issues = await detector.check_link(PAGE, link, fetch)

        assert [i.type for i in issues] == [ABSOLUTE_INTERNAL_LINK, LINK_MISSING_TEXT]
        assert issues[0].severity == Severity.LOW

    @pytest.mark.asyncio
    async def test_absolute_external_link_not_flagged(self, detector):
        fetch = AsyncMock(return_value=200)
        link = Link(href="https://other.org/", text="Other", raw_href="https://other.org/")

        assert await detector.check_link(PAGE, link, fetch) == []
