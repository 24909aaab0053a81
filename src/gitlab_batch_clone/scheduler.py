#!/usr/bin/env python3
"""
Bounded-concurrency dispatch of clone tasks.
"""

import logging
import signal
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Iterator, Optional

from .context import JobRegistry
from .models import CloneTask, JobRecord


PROGRESS_INTERVAL = 10


def shield_from_interrupt() -> None:
    """
    Block SIGINT in the calling thread.

    Child processes inherit the signal mask, so a git clone started from this
    thread survives a Ctrl+C sent to the terminal's process group. The main
    thread keeps SIGINT unblocked and still receives it.
    """
    if hasattr(signal, 'pthread_sigmask'):
        signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGINT})


class TaskQueue:
    """Append-only list of discovered clone tasks, drained exactly once."""

    def __init__(self, tasks: Iterable[CloneTask] = ()):
        self._tasks = deque()
        self._draining = False
        self.extend(tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def append(self, task: CloneTask) -> None:
        if self._draining:
            raise RuntimeError("Cannot add tasks once the queue is being drained")
        self._tasks.append(task)

    def extend(self, tasks: Iterable[CloneTask]) -> None:
        for task in tasks:
            self.append(task)

    def drain(self) -> Iterator[CloneTask]:
        """Yield every task once, in insertion order."""
        self._draining = True
        while self._tasks:
            yield self._tasks.popleft()


class Scheduler:
    """Runs clone workers with at most ``registry.max_jobs`` of them in flight."""

    def __init__(self, worker, registry: JobRegistry, cancel_event: Optional[threading.Event] = None):
        """
        Initialize the scheduler.

        Args:
            worker: Object with an ``execute(task, job_id)`` method that removes
                its job from the registry when done
            registry: Active-job registry acting as the admission gate
            cancel_event: Set to stop dispatching further tasks
        """
        self.worker = worker
        self.registry = registry
        self.cancel_event = cancel_event or threading.Event()
        self.logger = logging.getLogger('gitlab_batch_clone.scheduler')

    def _run_job(self, task: CloneTask, job_id: int) -> bool:
        try:
            shield_from_interrupt()
            return self.worker.execute(task, job_id)
        finally:
            # The worker normally removes its own record; this only matters if it never started
            self.registry.remove(job_id)

    def run(self, queue: TaskQueue) -> int:
        """
        Dispatch every queued task and wait for all of them to finish.

        Args:
            queue: Tasks to run, consumed by this call

        Returns:
            Number of tasks dispatched
        """
        total = len(queue)
        max_jobs = self.registry.max_jobs
        dispatched = 0

        self.logger.info(f"Starting parallel clone of {total} projects, max parallel jobs: {max_jobs}")

        with ThreadPoolExecutor(max_workers=max_jobs, thread_name_prefix='clone') as executor:
            for task in queue.drain():
                self.registry.wait_for_slot()
                if self.cancel_event.is_set():
                    self.logger.warning(f"Cancellation requested, {total - dispatched} projects will not be cloned")
                    break

                dispatched += 1
                self.registry.add(JobRecord(job_id=dispatched, project_name=task.project_name))
                try:
                    executor.submit(self._run_job, task, dispatched)
                except RuntimeError:
                    self.registry.remove(dispatched)
                    dispatched -= 1
                    raise

                if dispatched % PROGRESS_INTERVAL == 0 or dispatched == total:
                    self.logger.info(f"Progress: {dispatched} / {total} projects scheduled")

            self.logger.info("Waiting for all clone jobs to finish...")

        self.logger.info(f"All {dispatched} clone jobs have finished")
        return dispatched
