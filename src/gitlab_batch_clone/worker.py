#!/usr/bin/env python3
"""
Execution of a single clone task.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from git import Repo, GitCommandError, RemoteProgress

from .context import RunContext
from .errors import CloneError, FileSystemError
from .models import CloneTask


_URL_CREDENTIALS = re.compile(r'(://)[^/@\s]+@')


def redact(text: str) -> str:
    """Hide credentials embedded in URLs."""
    return _URL_CREDENTIALS.sub(r'\1***@', text)


class JobOutput(RemoteProgress):
    """Writes git's progress and message lines to a job's scratch file."""

    def __init__(self, stream: TextIO):
        super().__init__()
        self.stream = stream

    def update(self, op_code: int, cur_count: Any, max_count: Any = None, message: str = '') -> None:
        # Only the final line of each stage; intermediate percentages are noise
        if op_code & RemoteProgress.END:
            self.stream.write(f"{self._cur_line or ''}\n")

    def line_dropped(self, line: str) -> None:
        self.stream.write(f"{line}\n")


class CloneWorker:
    """Clones one repository and records the outcome in the run's shared state."""

    def __init__(self, context: RunContext, depth: Optional[int] = None, branch: Optional[str] = None,
                 log_records: bool = False, after_date: Optional[str] = None):
        """
        Initialize the worker.

        Args:
            context: Run context holding counters, registry and scratch directory
            depth: Shallow clone depth (full history when None)
            branch: Single branch to clone (all branches when None)
            log_records: Append a record of every clone to the persistent log
            after_date: Date cutoff, mentioned in log records when set
        """
        self.context = context
        self.depth = depth
        self.branch = branch
        self.log_records = log_records
        self.after_date = after_date
        self.logger = logging.getLogger('gitlab_batch_clone.worker')
        self.record_logger = logging.getLogger('gitlab_batch_clone.records')

    def clone_options(self) -> Dict[str, Any]:
        """Keyword options passed through to ``git clone``."""
        options: Dict[str, Any] = {}
        if self.depth:
            options['depth'] = self.depth
        if self.branch:
            options['branch'] = self.branch
            options['single_branch'] = True
        return options

    def command_line(self, task: CloneTask) -> str:
        """Human-readable equivalent of the clone invocation, credentials redacted."""
        parts = ['git', 'clone']
        if self.depth:
            parts += ['--depth', str(self.depth)]
        if self.branch:
            parts += ['--branch', self.branch, '--single-branch']
        parts += [redact(task.clone_url), str(task.target_path)]
        return ' '.join(parts)

    def _clone(self, task: CloneTask, progress: JobOutput) -> None:
        target_path = Path(task.target_path)
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Cannot create directory {target_path.parent}: {e}") from e

        Repo.clone_from(task.clone_url, str(target_path), progress=progress, **self.clone_options())

    def execute(self, task: CloneTask, job_id: int) -> bool:
        """
        Clone one task's repository.

        Counters, registry removal and scratch-file cleanup happen on every exit
        path, whatever the clone raised.

        Args:
            task: What to clone and where
            job_id: Registry key of this job

        Returns:
            True if the clone succeeded, False otherwise
        """
        buffer_path = self.context.job_buffer_path(job_id)
        start_time = datetime.now()
        succeeded = False
        unexpected_error: Optional[str] = None
        self.logger.info(f"[job {job_id}] Cloning {task.project_name} into {task.target_path}")

        try:
            with open(buffer_path, 'w', encoding='utf-8') as buffer:
                progress = JobOutput(buffer)
                try:
                    self._clone(task, progress)
                    succeeded = True
                except GitCommandError as e:
                    error = CloneError(f"git clone exited with status {e.status}")
                    for line in progress.error_lines:
                        buffer.write(f"{line}\n")
                    buffer.write(f"{redact(str(e))}\n")
                    self.logger.error(f"[job {job_id}] Failed to clone {task.project_name}: {error}")
                except FileSystemError as e:
                    buffer.write(f"{e}\n")
                    self.logger.error(f"[job {job_id}] Failed to clone {task.project_name}: {e}")
        except Exception as e:
            unexpected_error = f"{type(e).__name__}: {redact(str(e))}"
            self.logger.exception(f"[job {job_id}] Unexpected error cloning {task.project_name}: {unexpected_error}")
        finally:
            try:
                if succeeded:
                    self.context.counters.increment_success()
                    self.logger.info(f"[job {job_id}] Successfully cloned: {task.target_path}")
                else:
                    self.context.counters.increment_failed()
                if self.log_records:
                    self._write_record(task, succeeded, start_time, buffer_path, unexpected_error)
            finally:
                self.context.registry.remove(job_id)
                buffer_path.unlink(missing_ok=True)

        return succeeded

    def _write_record(self, task: CloneTask, succeeded: bool, start_time: datetime, buffer_path: Path,
                      unexpected_error: Optional[str] = None) -> None:
        lines: List[str] = [f"Clone started: {task.project_name} -> {task.target_path}"]
        if self.after_date:
            activity_date = task.last_activity_at.split('T', 1)[0]
            lines.append(f"Updated after {self.after_date} (last activity: {activity_date})")
        lines += [
            f"Command: {self.command_line(task)}",
            f"Start time: {start_time.isoformat(sep=' ', timespec='seconds')}",
            f"End time: {datetime.now().isoformat(sep=' ', timespec='seconds')}",
            f"Status: {'success' if succeeded else 'failed'}",
        ]
        if not succeeded:
            lines.append("Error output:")
            try:
                output = buffer_path.read_text(encoding='utf-8').rstrip()
                if output:
                    lines.append(output)
            except OSError as e:
                lines.append(f"<output unavailable: {e}>")
            if unexpected_error:
                lines.append(unexpected_error)
        self.record_logger.info('\n'.join(lines))
