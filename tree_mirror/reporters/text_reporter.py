"""Plain-text reports for mirror runs."""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..core.models import JobResult
from ..utils.formatters import format_date, truncate_string


class TextReporter:
    """Renders mirror job results and keeps saved reports tidy."""

    REPORT_PREFIX = "mirror_report_"

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def generate(self, job_results: List[JobResult], generated_at: Optional[datetime] = None) -> str:
        """Generate a text report.

        Args:
            job_results: Results of the mirror jobs that ran.
            generated_at: Report timestamp, defaults to now.

        Returns:
            Text report content.
        """
        generated_at = generated_at or datetime.now()
        failed = [job for job in job_results if job.error_message]
        changed = sum(job.result.copied for job in job_results if job.result is not None)

        report_lines = [
            "=" * 80,
            "TREE MIRROR REPORT".center(80).rstrip(),
            f"Generated: {format_date(generated_at)}".center(80).rstrip(),
            "=" * 80,
            "",
            f"Mirror jobs run: {len(job_results)}",
            f"Jobs failed: {len(failed)}",
            f"Entries created or copied: {changed}",
            "",
        ]

        for job in job_results:
            report_lines.extend([
                f"JOB: {job.name}",
                "=" * (5 + len(job.name)),
                f"Source: {truncate_string(job.source, 70)}",
                f"Destination: {truncate_string(job.destination, 70)}",
            ])

            if job.result is not None:
                report_lines.append(f"Entries visited: {len(job.result.mapping)}")
                report_lines.append(f"Entries changed: {job.result.copied}")

            if job.error_message:
                report_lines.append(f"Error: {job.error_message}")

            if job.result is not None and job.result.copied:
                report_lines.append("")
                report_lines.extend(job.result.report.lines)

            report_lines.append("")

        report_lines.append("=" * 80)
        return "\n".join(report_lines) + "\n"

    def save(self, report: str, report_dir: str, retention_days: int = 30) -> Path:
        """Save a report to ``report_dir`` and remove reports past retention.

        Args:
            report: Report content.
            report_dir: Directory for report files.
            retention_days: Number of days to keep old reports.

        Returns:
            Path of the saved report.
        """
        directory = Path(report_dir)
        directory.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        report_file = directory / f'{self.REPORT_PREFIX}{timestamp}.txt'
        report_file.write_text(report, encoding='utf-8')
        self.logger.info(f"Text report saved: {report_file}")

        self.cleanup(directory, retention_days)
        return report_file

    def cleanup(self, report_dir: Path, retention_days: int) -> None:
        """Delete saved reports older than ``retention_days``."""
        cutoff_time = time.time() - (retention_days * 24 * 60 * 60)

        for report_file in report_dir.glob(f'{self.REPORT_PREFIX}*'):
            if report_file.stat().st_mtime < cutoff_time:
                try:
                    report_file.unlink()
                    self.logger.debug(f"Deleted old report: {report_file}")
                except OSError as e:
                    self.logger.warning(f"Could not delete old report {report_file}: {e}")
