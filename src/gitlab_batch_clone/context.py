#!/usr/bin/env python3
"""
Run-scoped shared state: outcome counters, the active-job registry, the
cancellation flag and the ephemeral working directory.
"""

import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .models import JobRecord


class Counters:
    """Success/failure counts updated concurrently by clone workers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._success = 0
        self._failed = 0

    def increment_success(self) -> None:
        with self._lock:
            self._success += 1

    def increment_failed(self) -> None:
        with self._lock:
            self._failed += 1

    def snapshot(self) -> Tuple[int, int]:
        """Return ``(success, failed)`` read together."""
        with self._lock:
            return self._success, self._failed


class JobRegistry:
    """
    Set of currently running clone jobs, bounded by ``max_jobs``.

    The registry doubles as the scheduler's admission gate: ``wait_for_slot``
    blocks until a worker removes its record.
    """

    def __init__(self, max_jobs: int):
        if max_jobs < 1:
            raise ValueError("max_jobs must be a positive integer")
        self.max_jobs = max_jobs
        self._jobs: Dict[int, JobRecord] = {}
        self._cond = threading.Condition()
        self.peak = 0

    def __len__(self) -> int:
        with self._cond:
            return len(self._jobs)

    def wait_for_slot(self, timeout: Optional[float] = None) -> bool:
        """Block until fewer than ``max_jobs`` jobs are registered."""
        with self._cond:
            return self._cond.wait_for(lambda: len(self._jobs) < self.max_jobs, timeout=timeout)

    def add(self, record: JobRecord) -> None:
        """
        Register a dispatched job.

        Raises:
            RuntimeError: if the registry is full or the job ID is already registered
        """
        with self._cond:
            if len(self._jobs) >= self.max_jobs:
                raise RuntimeError(f"Active job limit of {self.max_jobs} reached")
            if record.job_id in self._jobs:
                raise RuntimeError(f"Job {record.job_id} is already registered")
            self._jobs[record.job_id] = record
            self.peak = max(self.peak, len(self._jobs))

    def remove(self, job_id: int) -> bool:
        """Drop a finished job and wake the scheduler. Returns False if it was not registered."""
        with self._cond:
            record = self._jobs.pop(job_id, None)
            self._cond.notify_all()
            return record is not None

    def wait_until_empty(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: not self._jobs, timeout=timeout)

    def active(self) -> List[JobRecord]:
        with self._cond:
            return list(self._jobs.values())


class RunContext:
    """
    Everything one run shares between its stages.

    Use as a context manager: the working directory is removed on every exit
    path, including errors and interrupts.
    """

    def __init__(self, max_jobs: int):
        self.counters = Counters()
        self.registry = JobRegistry(max_jobs)
        self.cancel_event = threading.Event()
        self.work_dir = Path(tempfile.mkdtemp(prefix='gitlab-batch-clone-'))
        self.logger = logging.getLogger('gitlab_batch_clone.context')

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

    def job_buffer_path(self, job_id: int) -> Path:
        """Scratch file holding one job's captured git output."""
        return self.work_dir / f"job_{job_id}.log"

    def cleanup(self) -> None:
        """Remove the working directory; safe to call more than once."""
        if self.work_dir.exists():
            self.logger.debug(f"Removing temporary files in {self.work_dir}")
            shutil.rmtree(self.work_dir, ignore_errors=True)

    def __enter__(self) -> 'RunContext':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
