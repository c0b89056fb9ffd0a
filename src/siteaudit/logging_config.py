"""Logging configuration for the site audit crawler.

Console output is kept short so the per-page progress lines
(``🔍 [Depth 1] Visiting ...``, ``✅ Completed ...``) stay readable; the
optional log file gets the full format with logger names.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "siteaudit"

CONSOLE_FORMAT = '%(asctime)s %(levelname)-7s %(message)s'
CONSOLE_DATE_FORMAT = '%H:%M:%S'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Per-request chatter from the HTTP client, browser driver and event loop
NOISY_LOGGERS = ('httpx', 'httpcore', 'asyncio', 'playwright')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    library_level: str = "WARNING",
) -> None:
    """Configure logging for an audit run.

    The ``siteaudit`` loggers log at ``level``; third-party libraries are
    held at ``library_level`` so a DEBUG audit run does not drown in
    connection-pool messages.

    Args:
        level: Log level for the crawler (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path (written as UTF-8 so emoji survive)
        format_string: Optional format used for every handler
        library_level: Log level for third-party libraries
    """
    numeric_level = _level(level, logging.INFO)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(
        format_string or CONSOLE_FORMAT,
        datefmt=None if format_string else CONSOLE_DATE_FORMAT,
    ))
    handlers = [console]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(format_string or FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=max(numeric_level, _level(library_level, logging.WARNING)),
        handlers=handlers,
        force=True  # Override any existing configuration
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(_level(library_level, logging.WARNING))


def _level(name: str, default: int) -> int:
    return getattr(logging, str(name).upper(), default)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
