#!/usr/bin/env python3
"""
Final accounting and teardown of a run.
"""

import logging
from datetime import datetime
from typing import Optional

import click

from .context import RunContext
from .models import RunSummary


class Reporter:
    """Reads the final counters, removes scratch storage and prints the summary."""

    def __init__(self, log_file: Optional[str] = None, join_timeout: Optional[float] = None):
        self.log_file = log_file
        self.join_timeout = join_timeout
        self.logger = logging.getLogger('gitlab_batch_clone.reporter')

    def finalize(self, context: RunContext, dispatched: int, discovered: int = 0,
                 discovery_errors: int = 0) -> RunSummary:
        """
        Close out a run.

        Args:
            context: Run context to read and tear down
            dispatched: Number of tasks handed to workers
            discovered: Number of tasks found during discovery
            discovery_errors: Listings or directories that could not be processed

        Returns:
            The run summary
        """
        if not context.registry.wait_until_empty(timeout=self.join_timeout):
            running = ', '.join(record.project_name for record in context.registry.active())
            self.logger.warning(f"Clone jobs still running at shutdown: {running}")

        succeeded, failed = context.counters.snapshot()
        if succeeded + failed != dispatched:
            self.logger.error(
                f"Accounting mismatch: {succeeded} succeeded + {failed} failed != {dispatched} dispatched"
            )

        self.logger.info("Cleaning up temporary files...")
        context.cleanup()

        summary = RunSummary(
            total=dispatched,
            succeeded=succeeded,
            failed=failed,
            discovered=discovered,
            discovery_errors=discovery_errors,
            cancelled=context.cancelled,
            log_file=self.log_file,
        )
        self.print_summary(summary)
        return summary

    def print_summary(self, summary: RunSummary) -> None:
        lines = [
            "=" * 50,
            "CLONE SUMMARY" + (" (interrupted)" if summary.cancelled else ""),
            "=" * 50,
            f"Finished at: {datetime.now().isoformat(sep=' ', timespec='seconds')}",
            f"Total projects: {summary.total}",
            f"Successfully cloned: {summary.succeeded}",
        ]
        if summary.failed:
            lines.append(f"Failed: {summary.failed}")
        if summary.discovered > summary.total:
            lines.append(f"Not scheduled: {summary.discovered - summary.total}")
        if summary.discovery_errors:
            lines.append(f"Discovery errors: {summary.discovery_errors}")
        if summary.log_file:
            lines.append(f"Log file: {summary.log_file}")
        lines.append("=" * 50)

        for line in lines:
            self.logger.info(line)
        click.echo('\n'.join(lines))
