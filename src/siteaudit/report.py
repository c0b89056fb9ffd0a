"""Builds the consolidated audit report from a crawl session."""

from datetime import datetime
from typing import Dict, Iterable, Optional

from siteaudit.models import CrawlReport, CrawlSession, Issue


def summarize_issues(issues: Iterable[Issue]) -> Dict[str, int]:
    """Count issues per type, in order of first occurrence."""
    counts: Dict[str, int] = {}
    for issue in issues:
        counts[issue.type] = counts.get(issue.type, 0) + 1
    return counts


def build_report(
    session: CrawlSession,
    start_url: Optional[str] = None,
    interrupted: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> CrawlReport:
    """Snapshot a crawl session into a report.

    Works the same for a finished crawl and for one stopped part way
    through: the report holds copies, so later session mutation cannot
    change it.

    Args:
        session: The crawl session to report on
        start_url: Overrides the session's start URL in the report
        interrupted: Overrides the session's interrupted flag
        now: Report timestamp (defaults to the session end, else now)

    Returns:
        CrawlReport
    """
    timestamp = now or session.finished_at or datetime.now()
    issues = list(session.issues)

    return CrawlReport(
        start_url=start_url or session.start_url,
        timestamp=timestamp,
        pages_crawled=session.pages_crawled,
        urls_visited=len(session.visited),
        total_issues=len(issues),
        issues_by_type=summarize_issues(issues),
        issues=issues,
        graph={url: list(targets) for url, targets in session.graph.items()},
        duration_seconds=round((timestamp - session.started_at).total_seconds(), 2),
        interrupted=session.interrupted if interrupted is None else interrupted,
    )
