# src/siteaudit/constants.py
"""Centralized constants for the site audit crawler.

This module contains default values and thresholds that are used across
multiple modules. For user-configurable settings, see config.py and
AuditConfig.
"""

# =============================================================================
# Crawler Constants
# =============================================================================

# Default maximum link depth from a seed URL
DEFAULT_MAX_DEPTH = 4

# Default navigation / link request timeout in milliseconds
DEFAULT_TIMEOUT_MS = 10000

# Politeness delay before each page navigation (milliseconds)
DEFAULT_REQUEST_DELAY_MS = 1000

# Default maximum attempts for network-sensitive operations
DEFAULT_MAX_RETRIES = 3

# Fixed delay between retry attempts (milliseconds)
DEFAULT_RETRY_DELAY_MS = 2000

# Selector used to recognise site-wide navigation links
DEFAULT_NAV_SELECTOR = "nav a[href]"

# Default output directory for reports
DEFAULT_OUTPUT_DIR = "./crawl-results"

# Nested sitemap indexes deeper than this are not followed
MAX_SITEMAP_DEPTH = 3

# Sitemap request timeout in seconds
SITEMAP_TIMEOUT_SECONDS = 30


# =============================================================================
# Issue Detection Constants
# =============================================================================

# Page load time (milliseconds) above which a page is flagged as slow
SLOW_PAGE_THRESHOLD_MS = 5000

# Meta descriptions longer than this are flagged
META_DESCRIPTION_MAX_LENGTH = 160

# Titles treated as missing
DEFAULT_PLACEHOLDER_TITLES = ["Untitled"]

# HTTP status codes at or above this are errors
HTTP_ERROR_THRESHOLD = 400

# Allowed country codes for tel: links
DEFAULT_TEL_COUNTRY_CODES = ["+1"]

# Expected tel: href and display formats (North American numbering)
TEL_HREF_PATTERN = r"tel:\+1\d{10}"
TEL_DISPLAY_PATTERN = r"\d{3}\.\d{3}\.\d{4}"

# Placeholder literals commonly left behind by site templates
DEFAULT_PLACEHOLDERS = [
    "https://SITENAME.com/",
    "SITENAME.com",
    "GOES HERE",
    "XX",
    "https://www.placeholder1.com/",
    "https://placeholder2.com/",
    "placeholdertext.",
    "Lorem ipsum",
    "000",
    "000.000.0000",
    "XXX.XXX.XXXX",
    "ADDRESS",
    "CITY",
    "STATE",
    "ZIP",
    "placeholder",
    "placeholders",
]

# Substring patterns excluded from crawling by default
DEFAULT_EXCLUDE_PATTERNS = ["login", "logout"]


# =============================================================================
# Browser Constants
# =============================================================================

DESKTOP_VIEWPORT_WIDTH = 1280
DESKTOP_VIEWPORT_HEIGHT = 720

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/112.0.0.0 Safari/537.36"
)

DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"
