"""Site audit crawler driven by a rendering browser."""

__version__ = "0.1.0"

from siteaudit.checks import IssueDetector, PlaceholderMatcher
from siteaudit.config import AuditConfig, CheckToggles, RetryPolicy, settings
from siteaudit.models import (
    CrawlReport,
    CrawlSession,
    Image,
    Issue,
    Link,
    NavigationResult,
    PageSnapshot,
    Severity,
)
from siteaudit.report import build_report, summarize_issues
from siteaudit.retry import with_retry
from siteaudit.site_crawler import SiteAuditor
from siteaudit.sitemap_parser import SitemapParser
from siteaudit.url_utils import (
    MalformedURLError,
    is_internal,
    normalize,
    resolve,
)

__all__ = [
    # Core
    "SiteAuditor",
    "IssueDetector",
    "PlaceholderMatcher",
    "SitemapParser",
    "build_report",
    "summarize_issues",
    "with_retry",
    # URLs
    "normalize",
    "resolve",
    "is_internal",
    "MalformedURLError",
    # Configuration
    "AuditConfig",
    "CheckToggles",
    "RetryPolicy",
    "settings",
    # Models
    "CrawlReport",
    "CrawlSession",
    "Image",
    "Issue",
    "Link",
    "NavigationResult",
    "PageSnapshot",
    "Severity",
]
