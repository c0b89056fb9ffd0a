"""Output manager for writing audit reports with timestamps."""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from siteaudit.models import CrawlReport

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

CSV_HEADER = ["Page", "Link", "Type", "Details", "Severity"]


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime objects."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class OutputManager:
    """Writes the report, link graph, issue table and HTML summary of an audit."""

    def __init__(self, base_output_dir: str = "crawl-results", template_dir: Optional[Path] = None):
        """Initialize output manager.

        Args:
            base_output_dir: Directory that receives all report files
            template_dir: Directory holding report.html (defaults to the packaged templates)
        """
        self.base_output_dir = Path(base_output_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def save_report(self, report: CrawlReport) -> Dict[str, Path]:
        """Save every artifact of an audit.

        Example structure:
            crawl-results/
            ├── crawl-report-2025-11-23T14-30-22.json
            ├── site-graph-2025-11-23T14-30-22.json
            ├── issues-2025-11-23T14-30-22.csv
            └── report-2025-11-23T14-30-22.html

        Args:
            report: The report to save

        Returns:
            Mapping of artifact name to written path
        """
        self.base_output_dir.mkdir(parents=True, exist_ok=True)
        stamp = self._timestamp_slug(report.timestamp)

        paths = {
            "report": self.base_output_dir / f"crawl-report-{stamp}.json",
            "graph": self.base_output_dir / f"site-graph-{stamp}.json",
            "issues": self.base_output_dir / f"issues-{stamp}.csv",
            "html": self.base_output_dir / f"report-{stamp}.html",
        }

        self._save_json(paths["report"], report.to_dict())
        self._save_json(paths["graph"], report.graph)
        self._save_csv(paths["issues"], report)
        self._save_html(paths["html"], report)

        logger.info(f"Results saved to {self.base_output_dir}")
        return paths

    def log_summary(self, report: CrawlReport) -> None:
        """Log crawl statistics and the per-type issue counts."""
        status = "interrupted" if report.interrupted else "completed"
        logger.info(f"🏁 Crawl {status} in {report.duration_seconds:.2f}s")
        logger.info(f"📊 Stats: {report.pages_crawled} pages crawled, {report.total_issues} issues found")
        if report.issues_by_type:
            logger.info("📋 Issue Summary:")
            for issue_type, count in report.issues_by_type.items():
                logger.info(f"  {issue_type}: {count}")

    def _save_json(self, filepath: Path, data) -> None:
        """Save data as formatted JSON.

        Args:
            filepath: Path to save to
            data: Data to save
        """
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, cls=DateTimeEncoder)

    def _save_csv(self, filepath: Path, report: CrawlReport) -> None:
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_ALL)
            writer.writerow(CSV_HEADER)
            for issue in report.issues:
                writer.writerow(issue.to_row())

    def _save_html(self, filepath: Path, report: CrawlReport) -> None:
        template = self.env.get_template("report.html")
        html = template.render(
            report=report,
            generated_at=report.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        )
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(html)

    @staticmethod
    def _timestamp_slug(timestamp: datetime) -> str:
        # Colons are not valid in Windows file names
        return timestamp.strftime("%Y-%m-%dT%H-%M-%S")
