"""Data models for the site audit crawler."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """How serious a recorded finding is."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Issue:
    """One finding recorded against a page (and optionally one of its links)."""

    page: str
    type: str
    severity: Severity
    link: Optional[str] = None
    details: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "page": self.page,
            "type": self.type,
            "severity": self.severity.value,
        }
        if self.link is not None:
            data["link"] = self.link
        if self.details is not None:
            data["details"] = self.details
        return data

    def to_row(self) -> list[str]:
        """Flatten to a tabular row: page, link, type, details, severity."""
        return [
            self.page,
            self.link or "",
            self.type,
            self.details or "",
            self.severity.value,
        ]


@dataclass
class Link:
    """An anchor found on a rendered page."""

    href: str  # absolute, as resolved by the browser
    text: str = ""
    raw_href: Optional[str] = None  # attribute value as written in the markup


@dataclass
class Image:
    """An image element found on a rendered page."""

    src: str = ""
    alt: str = ""


@dataclass
class NavigationResult:
    """Outcome of navigating the browser to a URL."""

    status: int = 0
    final_url: str = ""
    load_time_ms: float = 0.0


@dataclass
class PageSnapshot:
    """Everything the issue detectors need from one rendered page.

    Fields that no enabled check needs are left at their defaults.
    """

    url: str
    status: int = 0
    final_url: str = ""
    load_time_ms: float = 0.0
    title: str = ""
    meta_description: str = ""
    h1_count: int = 0
    body_text: str = ""
    links: list[Link] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)
    nav_hrefs: set[str] = field(default_factory=set)


@dataclass
class CrawlSession:
    """Mutable crawl state, owned and mutated only by the traversal engine."""

    start_url: str
    visited: set[str] = field(default_factory=set)
    graph: dict[str, list[str]] = field(default_factory=dict)
    issues: list[Issue] = field(default_factory=list)
    checked_nav_links: set[str] = field(default_factory=set)
    discovered: set[str] = field(default_factory=set)
    pages_crawled: int = 0
    interrupted: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def total_urls(self) -> int:
        """Internal URLs known so far (progress denominator)."""
        return max(len(self.discovered | self.visited), 1)

    def progress(self) -> str:
        visited = len(self.visited)
        total = self.total_urls
        return f"{visited}/{total} ({visited / total * 100:.1f}%)"


@dataclass
class CrawlReport:
    """Consolidated audit result, identical in shape whether or not the crawl finished."""

    start_url: str
    timestamp: datetime
    pages_crawled: int
    urls_visited: int
    total_issues: int
    issues_by_type: dict[str, int]
    issues: list[Issue]
    graph: dict[str, list[str]]
    duration_seconds: float = 0.0
    interrupted: bool = False

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "start_url": self.start_url,
            "pages_crawled": self.pages_crawled,
            "urls_visited": self.urls_visited,
            "total_issues": self.total_issues,
            "issues_by_type": dict(self.issues_by_type),
            "duration_seconds": self.duration_seconds,
            "interrupted": self.interrupted,
            "issues": [issue.to_dict() for issue in self.issues],
        }
