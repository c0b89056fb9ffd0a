from dotenv import load_dotenv
from pathlib import Path
from typing import List, Literal, Optional
from urllib.parse import urlparse
import json
import os

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from siteaudit.constants import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_RETRIES,
    DEFAULT_NAV_SELECTOR,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PLACEHOLDER_TITLES,
    DEFAULT_PLACEHOLDERS,
    DEFAULT_REQUEST_DELAY_MS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TEL_COUNTRY_CODES,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    META_DESCRIPTION_MAX_LENGTH,
    SLOW_PAGE_THRESHOLD_MS,
)

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    CONFIG_PATH = os.getenv("SITEAUDIT_CONFIG", "config.json")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")
    USER_AGENT = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)


settings = Settings()


class _CamelModel(BaseModel):
    """Accepts both snake_case field names and the camelCase keys of config.json."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )


class CheckToggles(_CamelModel):
    """Independent on/off switches for each issue detector."""

    title: bool = True
    http_status: bool = False
    seo: bool = False
    placeholders: bool = True
    links: bool = True
    performance: bool = False
    images: bool = False
    tel_links: bool = True


class RetryPolicy(_CamelModel):
    """Attempts and fixed delay for navigation and link status requests."""

    max_attempts: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    delay_ms: int = Field(default=DEFAULT_RETRY_DELAY_MS, ge=0)

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000


class AuditConfig(_CamelModel):
    """
    Configuration for a site audit crawl.

    Field names are snake_case; camelCase keys (``startUrl``, ``maxDepth``,
    ``skipRepeatedNavLinks`` ...) are accepted as aliases.
    """

    start_url: str = Field(description="Site root; also the fallback seed URL")
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)
    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        ge=1,
        description="Navigation and link request timeout in milliseconds",
    )
    output_dir: str = DEFAULT_OUTPUT_DIR
    use_sitemap: bool = True
    sitemap_url: Optional[str] = Field(
        default=None,
        description="Defaults to <start_url>/sitemap.xml",
    )
    skip_repeated_nav_links: bool = True
    nav_selector: str = DEFAULT_NAV_SELECTOR
    request_delay: int = Field(
        default=DEFAULT_REQUEST_DELAY_MS,
        ge=0,
        description="Politeness delay before each navigation in milliseconds",
    )
    placeholders: List[str] = Field(default_factory=lambda: list(DEFAULT_PLACEHOLDERS))
    exclude_urls: List[str] = Field(default_factory=list)
    exclude_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS)
    )
    checks: CheckToggles = Field(default_factory=CheckToggles)
    tel_country_codes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_TEL_COUNTRY_CODES)
    )
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    traversal_order: Literal["depth_first", "breadth_first"] = "depth_first"
    slow_page_ms: int = SLOW_PAGE_THRESHOLD_MS
    meta_description_max: int = META_DESCRIPTION_MAX_LENGTH
    default_titles: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PLACEHOLDER_TITLES)
    )

    @field_validator("start_url")
    @classmethod
    def _check_start_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"start_url must be an absolute http(s) URL, got {value!r}")
        return value

    @property
    def resolved_sitemap_url(self) -> str:
        """Sitemap location used to seed the crawl."""
        return self.sitemap_url or f"{self.start_url.rstrip('/')}/sitemap.xml"

    @property
    def site_hostname(self) -> str:
        return (urlparse(self.start_url).hostname or "").lower()

    @classmethod
    def from_file(cls, path: str, **overrides) -> "AuditConfig":
        """Load configuration from a JSON or YAML file.

        Args:
            path: Path to a .json, .yaml or .yml file
            **overrides: Field values that take precedence over the file

        Returns:
            Validated AuditConfig

        Raises:
            FileNotFoundError: If the file does not exist
            pydantic.ValidationError: If the values are invalid
        """
        file_path = Path(path)
        with open(file_path, "r", encoding="utf-8") as f:
            if file_path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        config = cls.model_validate(data)
        for field_name, value in overrides.items():
            if value is not None:
                setattr(config, field_name, value)
        return config

    def to_dict(self) -> dict:
        return self.model_dump()
