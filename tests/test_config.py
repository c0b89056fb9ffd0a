"""Tests for audit configuration loading."""

import json

import pytest
from pydantic import ValidationError

from siteaudit.config import AuditConfig, CheckToggles
from siteaudit.constants import DEFAULT_PLACEHOLDERS


class TestAuditConfig:
    """Test cases for AuditConfig."""

    def test_defaults(self):
        """Only the start URL is required."""
        config = AuditConfig(start_url="https://example.com")

        assert config.max_depth == 4
        assert config.timeout == 10000
        assert config.request_delay == 1000
        assert config.use_sitemap is True
        assert config.skip_repeated_nav_links is True
        assert config.nav_selector == "nav a[href]"
        assert config.exclude_patterns == ["login", "logout"]
        assert config.placeholders == DEFAULT_PLACEHOLDERS
        assert config.tel_country_codes == ["+1"]
        assert config.traversal_order == "depth_first"
        assert config.retry.max_attempts == 3
        assert config.retry.delay_seconds == 2.0

    def test_default_check_toggles(self):
        checks = CheckToggles()
        assert checks.title and checks.placeholders and checks.links and checks.tel_links
        assert not (checks.http_status or checks.seo or checks.performance or checks.images)

    def test_sitemap_url_derived_from_start_url(self):
        assert AuditConfig(start_url="https://example.com/").resolved_sitemap_url == (
            "https://example.com/sitemap.xml"
        )
        config = AuditConfig(start_url="https://example.com", sitemap_url="https://example.com/map.xml")
        assert config.resolved_sitemap_url == "https://example.com/map.xml"

    def test_site_hostname_lowercased(self):
        assert AuditConfig(start_url="https://WWW.Example.com/").site_hostname == "www.example.com"

    @pytest.mark.parametrize("start_url", ["example.com", "ftp://example.com", "https://"])
    def test_invalid_start_url(self, start_url):
        with pytest.raises(ValidationError):
            AuditConfig(start_url=start_url)

    def test_negative_depth_rejected(self):
        with pytest.raises(ValidationError):
            AuditConfig(start_url="https://example.com", max_depth=-1)

    def test_unknown_traversal_order_rejected(self):
        with pytest.raises(ValidationError):
            AuditConfig(start_url="https://example.com", traversal_order="random")


class TestFromFile:
    """Test cases for loading configuration files."""

    def test_camel_case_json(self, tmp_path):
        """Keys from config.json use camelCase."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "startUrl": "https://example.com",
            "maxDepth": 2,
            "skipRepeatedNavLinks": False,
            "excludeUrls": ["https://example.com/private"],
            "checks": {"httpStatus": True, "telLinks": False},
            "telCountryCodes": ["+1", "+44"],
            "retry": {"maxAttempts": 5, "delayMs": 0},
            "someUnknownKey": True,
        }))

        config = AuditConfig.from_file(str(path))

        assert config.max_depth == 2
        assert config.skip_repeated_nav_links is False
        assert config.exclude_urls == ["https://example.com/private"]
        assert config.checks.http_status is True
        assert config.checks.tel_links is False
        assert config.checks.title is True
        assert config.tel_country_codes == ["+1", "+44"]
        assert config.retry.max_attempts == 5

    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "startUrl: https://example.com\n"
            "traversalOrder: breadth_first\n"
            "placeholders:\n"
            "  - Lorem ipsum\n"
        )

        config = AuditConfig.from_file(str(path))

        assert config.traversal_order == "breadth_first"
        assert config.placeholders == ["Lorem ipsum"]

    def test_overrides_win(self, tmp_path):
        """Non-None overrides replace file values; None leaves them alone."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"startUrl": "https://example.com", "maxDepth": 2, "outputDir": "out"}))

        config = AuditConfig.from_file(
            str(path), max_depth=7, start_url="https://other.org", output_dir=None
        )

        assert config.max_depth == 7
        assert config.start_url == "https://other.org"
        assert config.output_dir == "out"

    def test_invalid_override_rejected(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"startUrl": "https://example.com"}))

        with pytest.raises(ValidationError):
            AuditConfig.from_file(str(path), max_depth=-3)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AuditConfig.from_file(str(tmp_path / "nope.json"))
