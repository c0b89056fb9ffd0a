"""Command-line interface for the site audit crawler."""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from siteaudit.browser_config import DEBUG_CONFIG, BrowserConfig
from siteaudit.browser_crawler import BrowserSession
from siteaudit.config import AuditConfig, settings
from siteaudit.logging_config import get_logger, setup_logging
from siteaudit.models import CrawlReport
from siteaudit.output_manager import OutputManager
from siteaudit.report import build_report
from siteaudit.site_crawler import SiteAuditor

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Audit a website for content and structural issues with a rendering browser"
    )
    parser.add_argument(
        "--config", default=settings.CONFIG_PATH,
        help=f"JSON or YAML configuration file (default: {settings.CONFIG_PATH})"
    )
    parser.add_argument(
        "--start-url",
        help="Site to audit (overrides startUrl from the config file)"
    )
    parser.add_argument(
        "--max-depth", type=int, default=None,
        help="Maximum link depth from a seed URL"
    )
    parser.add_argument(
        "--output-dir",
        help="Directory for report files"
    )
    parser.add_argument(
        "--no-sitemap", action="store_true",
        help="Seed the crawl with the start URL only"
    )
    parser.add_argument(
        "--order", choices=["depth-first", "breadth-first"], default=None,
        help="Traversal order of discovered links (default: depth-first)"
    )
    parser.add_argument(
        "--headed", action="store_true",
        help="Show the browser window"
    )
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL,
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )
    parser.add_argument(
        "--log-file", default=settings.LOG_FILE,
        help="Also write logs to this file"
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> AuditConfig:
    """Build the audit configuration from the config file and CLI overrides.

    Raises:
        FileNotFoundError: If there is neither a config file nor --start-url
        pydantic.ValidationError: If the resulting configuration is invalid
    """
    overrides = {
        "start_url": args.start_url,
        "max_depth": args.max_depth,
        "output_dir": args.output_dir,
        "use_sitemap": False if args.no_sitemap else None,
        "traversal_order": args.order.replace("-", "_") if args.order else None,
    }

    if Path(args.config).exists():
        return AuditConfig.from_file(args.config, **overrides)
    if args.start_url:
        return AuditConfig(**{k: v for k, v in overrides.items() if v is not None})
    raise FileNotFoundError(
        f"Config file {args.config} not found; pass --config or --start-url"
    )


def build_browser_config(config: AuditConfig, headed: bool = False) -> BrowserConfig:
    base = DEBUG_CONFIG if headed else BrowserConfig()
    return base.model_copy(update={
        "timeout": max(config.timeout, 1000),
        "user_agent": settings.USER_AGENT,
    })


def _install_signal_handlers(auditor: SiteAuditor, task: asyncio.Task) -> List[int]:
    """Route SIGINT/SIGTERM to a graceful stop; a second signal cancels the crawl task."""
    loop = asyncio.get_running_loop()

    def handle_interrupt():
        if not auditor.stop_requested:
            logger.warning("⚠️  Crawl interrupted by user. Gracefully shutting down...")
            auditor.request_stop()
        else:
            logger.warning("Second interrupt received, abandoning the current page")
            task.cancel()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_interrupt)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(handle_interrupt))
    return installed


def _remove_signal_handlers(installed: List[int]) -> None:
    loop = asyncio.get_running_loop()
    for sig in installed:
        loop.remove_signal_handler(sig)


async def run_audit(
    config: AuditConfig,
    browser_config: BrowserConfig,
    output_manager: Optional[OutputManager] = None,
) -> CrawlReport:
    """Launch the browser, crawl, and save whatever was collected.

    The report is saved on normal completion, on interrupt, and if the
    crawl task dies unexpectedly. Only a browser launch failure propagates.

    Returns:
        The saved CrawlReport
    """
    output_manager = output_manager or OutputManager(config.output_dir)

    async with BrowserSession(browser_config) as browser:
        auditor = SiteAuditor(config, browser)
        task = asyncio.create_task(auditor.run())
        installed = _install_signal_handlers(auditor, task)
        try:
            await asyncio.wait({task})
        finally:
            _remove_signal_handlers(installed)

        if task.cancelled():
            logger.warning("Crawl cancelled, saving partial results")
        elif task.exception() is not None:
            error = task.exception()
            logger.error(f"❌ Crawl aborted: {error}", exc_info=error)
            auditor.session.interrupted = True

    report = build_report(auditor.session, config.start_url)
    output_manager.log_summary(report)
    output_manager.save_report(report)
    return report


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``siteaudit`` command."""
    args = parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    try:
        config = load_config(args)
    except (FileNotFoundError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    browser_config = build_browser_config(config, headed=args.headed)

    try:
        asyncio.run(run_audit(config, browser_config))
    except Exception as e:
        logger.error(f"❌ Could not run the audit: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
