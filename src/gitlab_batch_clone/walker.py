#!/usr/bin/env python3
"""
Traversal of a group hierarchy that mirrors it as local directories.
"""

import logging
import threading
from collections import deque
from pathlib import Path
from typing import Optional, Set

from .api import GitLabClient, paginate
from .errors import TransientAPIError
from .lister import ProjectLister
from .models import Group, ProjectFilters
from .scheduler import TaskQueue


class HierarchyWalker:
    """Visits a group and all its descendants, queueing clone tasks for their projects."""

    def __init__(self, client: GitLabClient, lister: ProjectLister, queue: TaskQueue,
                 filters: ProjectFilters, cancel_event: Optional[threading.Event] = None):
        self.client = client
        self.lister = lister
        self.queue = queue
        self.filters = filters
        self.cancel_event = cancel_event or threading.Event()
        self.logger = logging.getLogger('gitlab_batch_clone.walker')

        self.groups_processed = 0
        self.discovery_errors = 0

    def _queue_projects(self, group_id: int, path: Path) -> None:
        try:
            for task in self.lister.list_projects(group_id, path, self.filters):
                self.queue.append(task)
                if self.cancel_event.is_set():
                    return
        except TransientAPIError as e:
            self.logger.error(f"Could not list projects of group {group_id}: {e}")
            self.discovery_errors += 1

    def _subgroups(self, group_id: int, path: Path):
        def fetch_page(page: int):
            self.logger.info(f"Fetching subgroups of group {group_id} (page: {page})...")
            return self.client.list_subgroups(group_id, page)

        try:
            for data in paginate(fetch_page):
                try:
                    yield Group.from_dict(data, parent_path=str(path))
                except ValueError as e:
                    self.logger.warning(f"Ignoring malformed subgroup entry in group {group_id}: {e}")
        except TransientAPIError as e:
            self.logger.error(f"Could not list subgroups of group {group_id}: {e}")
            self.discovery_errors += 1

    def traverse(self, group_id: int, base_path: Path) -> int:
        """
        Walk the hierarchy below a group breadth-first.

        Projects of each group are listed before its subgroups. A subgroup whose
        directory cannot be created is skipped together with its descendants.

        Args:
            group_id: Root group of the walk
            base_path: Local directory mirroring the root group

        Returns:
            Number of groups processed
        """
        base_path = Path(base_path)
        try:
            base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Cannot create directory {base_path}: {e}")
            self.discovery_errors += 1
            return self.groups_processed

        visited: Set[int] = set()
        processing_queue = deque([(group_id, base_path)])

        while processing_queue and not self.cancel_event.is_set():
            current_id, current_path = processing_queue.popleft()
            if current_id in visited:
                self.logger.warning(f"Group {current_id} was already processed, skipping")
                continue
            visited.add(current_id)

            self.logger.info(f"Processing group {current_id} -> {current_path}")
            self.groups_processed += 1

            self._queue_projects(current_id, current_path)

            for subgroup in self._subgroups(current_id, current_path):
                if self.cancel_event.is_set():
                    break
                subgroup_path = current_path / subgroup.path
                self.logger.info(f"Found subgroup: {subgroup.name} (ID: {subgroup.id}, path: {subgroup_path})")
                try:
                    subgroup_path.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    self.logger.error(f"Cannot create directory {subgroup_path}, skipping subgroup: {e}")
                    self.discovery_errors += 1
                    continue
                processing_queue.append((subgroup.id, subgroup_path))

        if self.cancel_event.is_set():
            self.logger.warning("Discovery interrupted, remaining groups were not listed")
        return self.groups_processed
