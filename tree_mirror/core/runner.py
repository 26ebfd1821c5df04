"""Runs the mirror jobs listed in a configuration file."""

import logging
import os
from datetime import datetime
from typing import Dict, List, Any, Optional

from .mirror import TreeMirror
from .models import JobResult
from .remapper import PathRemapper
from .sources import open_source
from ..config.config_manager import ConfigManager
from ..reporters.text_reporter import TextReporter


class MirrorRunner:
    """Main coordinator for configured mirror jobs."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize mirror runner.

        Args:
            config_path: Optional path to configuration file.
        """
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        self.reporter = TextReporter()
        self.logger = logging.getLogger(__name__)

    def run_all(self) -> List[JobResult]:
        """Run every configured mirror job.

        A job that fails is recorded and the remaining jobs still run.

        Returns:
            One JobResult per configured job, in configuration order.
        """
        mirrors = self.config_manager.get_mirrors()
        results = []

        self.logger.info(f"Starting {len(mirrors)} mirror jobs")

        for job in mirrors:
            job_result = self.run_job(job)
            results.append(job_result)
            if job_result.error_message:
                self.logger.error(f"Mirror job {job_result.name} failed: {job_result.error_message}")
            else:
                self.logger.info(f"Mirror job {job_result.name} completed: "
                                 f"{job_result.result.copied} entries changed")

        return results

    def run_job(self, job: Dict[str, Any]) -> JobResult:
        """Run a single mirror job.

        Args:
            job: Mirror job configuration dictionary.

        Returns:
            JobResult for the job.
        """
        name = job['name']
        subtree = job.get('subtree') or ''
        destination = PathRemapper(subtree, job['destination_root'],
                                   job.get('destination_prefix') or '').destination.join()
        source_label = f"{job['source']}:{subtree or '.'}"

        try:
            source = open_source(job['source'], job.get('type', 'auto'))
        except (OSError, ValueError) as e:
            return JobResult(name=name, source=source_label, destination=destination,
                             result=None, error_message=str(e))

        with source:
            result = TreeMirror(source).mirror(subtree, job['destination_root'],
                                               job.get('destination_prefix') or '')

        return JobResult(
            name=name,
            source=source_label,
            destination=destination,
            result=result,
            error_message=str(result.error) if result.error is not None else None
        )

    def run_with_report(self, save_report: bool = True) -> Dict[str, Any]:
        """Run all jobs and generate a report.

        Args:
            save_report: Whether to save the report locally when configured.

        Returns:
            Dictionary with job results, report text, saved report path and timestamp.
        """
        job_results = self.run_all()
        report = self.reporter.generate(job_results)

        reports_config = self.config_manager.get_reports_config()
        report_file = None
        if save_report and reports_config.get('save_local', False):
            report_file = self.reporter.save(
                report,
                reports_config.get('local_directory', './reports'),
                int(reports_config.get('retention_days', 30))
            )

        return {
            'job_results': job_results,
            'report': report,
            'report_file': os.fspath(report_file) if report_file else None,
            'timestamp': datetime.now()
        }
