"""Site audit script - Crawl a website and report content and structural issues.

Usage:
    python crawl.py --config config.json
    python crawl.py --start-url https://example.com --no-sitemap --max-depth 2
"""

import sys

from siteaudit.cli import main


if __name__ == "__main__":
    sys.exit(main())
