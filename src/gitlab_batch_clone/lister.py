#!/usr/bin/env python3
"""
Paginated listing of a group's direct projects, turned into clone tasks.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from .api import GitLabClient, paginate
from .models import CloneTask, Project, ProjectFilters


def embed_token(http_url: str, access_token: str) -> str:
    """Insert ``oauth2:<token>`` as the credential component of an HTTPS URL."""
    parts = urlsplit(http_url)
    netloc = parts.netloc.rsplit('@', 1)[-1]
    return urlunsplit(parts._replace(netloc=f"oauth2:{quote(access_token, safe='')}@{netloc}"))


class ProjectLister:
    """Enumerates the projects of one group and emits a task for each one to clone."""

    def __init__(self, client: GitLabClient, access_token: str, protocol: str = 'https'):
        self.client = client
        self.access_token = access_token
        self.protocol = protocol
        self.logger = logging.getLogger('gitlab_batch_clone.lister')

    def clone_url(self, project: Project) -> str:
        """Pick the clone URL for the configured protocol."""
        if self.protocol == 'ssh':
            return project.ssh_url
        if not project.http_url:
            return ""
        return embed_token(project.http_url, self.access_token)

    def _skip_reason(self, project: Project, target_path: Path, filters: ProjectFilters) -> Optional[str]:
        if filters.after_date:
            # Fixed-width YYYY-MM-DD strings, so ordinal comparison matches calendar order
            if project.activity_date < filters.after_date:
                return f"not updated since {filters.after_date} (last activity: {project.activity_date})"
        if filters.skip_archived and project.archived:
            return "archived"
        if target_path.exists():
            return f"directory already exists: {target_path}"
        if not self.clone_url(project):
            return f"no {self.protocol} clone URL"
        return None

    def list_projects(self, group_id: int, output_path: Path, filters: ProjectFilters) -> Iterator[CloneTask]:
        """
        Yield a clone task for every project of the group that passes the filters.

        Args:
            group_id: Group whose direct projects are listed
            output_path: Local directory mirroring the group
            filters: Date and archive selection policy

        Raises:
            TransientAPIError: if a page cannot be fetched
        """
        output_path = Path(output_path)
        updated_after = filters.updated_after

        def fetch_page(page: int):
            self.logger.info(f"Fetching projects of group {group_id} (page: {page})...")
            return self.client.list_projects(group_id, page, updated_after=updated_after)

        for data in paginate(fetch_page):
            try:
                project = Project.from_dict(data)
            except ValueError as e:
                self.logger.warning(f"Ignoring malformed project entry in group {group_id}: {e}")
                continue

            target_path = output_path / project.path
            reason = self._skip_reason(project, target_path, filters)
            if reason:
                self.logger.info(f"Skipping project {project.name}: {reason}")
                continue

            if filters.after_date:
                self.logger.info(f"Found updated project: {project.name} (last activity: {project.activity_date})")
            else:
                self.logger.info(f"Found project: {project.name} (ID: {project.id})")

            yield CloneTask(
                project_name=project.name,
                clone_url=self.clone_url(project),
                target_path=target_path,
                last_activity_at=project.last_activity_at,
            )
