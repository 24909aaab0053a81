#!/usr/bin/env python3
"""
GitLab Batch Cloner

Mirrors a GitLab group and all of its subgroups into a local directory tree and
clones every project in parallel, skipping projects already present locally.
"""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .api import GitLabClient
from .config import CloneConfig
from .context import RunContext
from .lister import ProjectLister
from .models import RunSummary
from .reporter import Reporter
from .resolver import GroupResolver
from .runlog import LOG_FORMAT, PACKAGE_LOGGER, RunLog
from .scheduler import Scheduler, TaskQueue
from .walker import HierarchyWalker
from .worker import CloneWorker


class GitLabBatchCloner:
    """Discovers, schedules and clones every project below a GitLab group."""

    def __init__(self, config: CloneConfig, quiet: bool = False, client: Optional[GitLabClient] = None):
        """
        Initialize the cloner.

        Args:
            config: Run settings
            quiet: If True, only warnings and errors are logged to the console
            client: API client to use instead of one built from ``config``
        """
        self.config = config
        self.quiet = quiet
        self._client = client

        # Setup logging
        self.logger = self._setup_logging()

        self.context: Optional[RunContext] = None

    def _setup_logging(self) -> logging.Logger:
        """Setup logging configuration."""
        logger = logging.getLogger(PACKAGE_LOGGER)

        # In quiet mode, only show WARNING and ERROR level logs
        log_level = logging.WARNING if self.quiet else logging.INFO
        logger.setLevel(log_level)

        if not logger.handlers:
            # Create console handler
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)

        return logger

    @property
    def client(self) -> GitLabClient:
        if self._client is None:
            self._client = GitLabClient(
                self.config.gitlab_url,
                self.config.access_token,
                api_timeout=self.config.api_timeout,
                max_retries=self.config.max_retries,
                retry_delay=self.config.retry_delay,
            )
        return self._client

    @contextmanager
    def _interrupt_subscription(self, context: RunContext) -> Iterator[None]:
        """
        Route SIGINT/SIGTERM to the run's cancellation flag while the run lasts.

        The first signal stops discovery and dispatching and lets running clones
        finish; a second one raises KeyboardInterrupt.
        """
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def handle(signum, frame):
            if context.cancelled:
                raise KeyboardInterrupt
            self.logger.warning(
                f"Received {signal.Signals(signum).name}, waiting for running clones to finish "
                "(interrupt again to abort)"
            )
            context.cancel()

        previous = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, handle)
        try:
            yield
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)

    def run(self) -> RunSummary:
        """
        Execute a complete batch clone.

        Returns:
            Summary of the run; individual clone failures are reported there

        Raises:
            ConfigError: if the configuration is invalid
            ResolutionError: if the starting group cannot be resolved
        """
        config = self.config
        config.validate()

        self.logger.info("=== GitLab Batch Clone ===")
        self.logger.info(f"GitLab URL: {config.gitlab_url}")
        self.logger.info(f"Output directory: {config.output_path}")
        self.logger.info(f"Clone protocol: {config.protocol}")
        self.logger.info(f"Parallel jobs: {config.max_jobs}")
        if config.after_date:
            self.logger.info(f"Only cloning projects updated after {config.after_date}")

        group = GroupResolver(self.client).resolve(config.group_name, config.group_id)
        self.logger.info(f"Processing group: {group.name} (ID: {group.id}, path: {group.path})")

        run_log = RunLog(config.log_file)
        with run_log, RunContext(config.max_jobs) as context, self._interrupt_subscription(context):
            self.context = context
            queue = TaskQueue()
            filters = config.filters

            lister = ProjectLister(self.client, config.access_token, protocol=config.protocol)
            walker = HierarchyWalker(self.client, lister, queue, filters, cancel_event=context.cancel_event)
            walker.traverse(group.id, config.output_path / group.path)
            discovered = len(queue)
            self.logger.info(
                f"Discovery finished: {walker.groups_processed} groups, {discovered} projects to clone"
            )

            dispatched = 0
            if discovered == 0:
                self.logger.info("No projects need to be cloned")
            else:
                worker = CloneWorker(
                    context,
                    depth=config.depth,
                    branch=config.branch,
                    log_records=run_log.enabled,
                    after_date=config.after_date,
                )
                scheduler = Scheduler(worker, context.registry, cancel_event=context.cancel_event)
                dispatched = scheduler.run(queue)

            reporter = Reporter(log_file=str(run_log.log_file) if run_log.enabled else None)
            return reporter.finalize(context, dispatched, discovered, walker.discovery_errors)
