#!/usr/bin/env python3
"""
Thin GitLab REST API client used by the discovery stage.

Every remote endpoint the tool needs is one method here. Responses are returned
as plain attribute dicts so the rest of the package never handles python-gitlab
objects directly.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterator, List, Optional

import gitlab
import requests
from gitlab.exceptions import GitlabError

from .errors import NotFoundError, TransientAPIError


PAGE_SIZE = 100

# HTTP status codes worth another attempt
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def paginate(fetch_page: Callable[[int], List[Dict[str, Any]]], per_page: int = PAGE_SIZE) -> Iterator[Dict[str, Any]]:
    """
    Yield the entries of a paginated collection.

    Pages are requested from 1 upwards; a page holding fewer than ``per_page``
    entries is the last one.

    Args:
        fetch_page: Callable returning the entries of the given page number
        per_page: Page size used by ``fetch_page``
    """
    page = 1
    while True:
        entries = fetch_page(page)
        yield from entries
        if len(entries) < per_page:
            return
        page += 1


def _attributes(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    attributes = getattr(obj, 'attributes', None)
    if isinstance(attributes, dict):
        return attributes
    return {}


class GitLabClient:
    """Read-only access to the group and project endpoints of the GitLab API."""

    def __init__(self, gitlab_url: str, access_token: str, api_timeout: float = 30,
                 max_retries: int = 3, retry_delay: float = 1.0):
        """
        Initialize the client.

        Args:
            gitlab_url: Base URL of the GitLab instance
            access_token: Private token sent with every request
            api_timeout: Timeout in seconds for a single request
            max_retries: Extra attempts after a transient failure
            retry_delay: Delay before the first retry, doubled on every further one
        """
        self.gitlab_url = gitlab_url.rstrip('/')
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = logging.getLogger('gitlab_batch_clone.api')

        self.gl = gitlab.Gitlab(self.gitlab_url, private_token=access_token, timeout=api_timeout)

    def _call(self, description: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Run one API call, retrying transient failures with exponential backoff.

        Raises:
            GitlabError: for non-retryable HTTP errors (e.g. 401, 403, 404)
            TransientAPIError: once all retries are exhausted
        """
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except GitlabError as e:
                code = getattr(e, 'response_code', None)
                if code is not None and code not in RETRYABLE_STATUS:
                    raise
                error = e
            except requests.exceptions.RequestException as e:
                error = e

            if attempt >= self.max_retries:
                raise TransientAPIError(f"{description} failed after {attempt + 1} attempts: {error}") from error

            delay = self.retry_delay * (2 ** attempt)
            self.logger.warning(f"{description} failed ({error}), retrying in {delay:g}s")
            time.sleep(delay)
            attempt += 1

    def search_groups(self, name: str) -> List[Dict[str, Any]]:
        """Return the first page of groups matching a search string."""
        groups = self._call(f"Group search '{name}'", self.gl.groups.list,
                            search=name, page=1, per_page=PAGE_SIZE)
        return [_attributes(group) for group in groups]

    def get_group(self, group_id: int) -> Dict[str, Any]:
        """
        Fetch a single group.

        Raises:
            NotFoundError: if the group does not exist
        """
        try:
            group = self._call(f"Group {group_id} lookup", self.gl.groups.get, group_id)
        except GitlabError as e:
            if getattr(e, 'response_code', None) == 404:
                raise NotFoundError(f"Group with ID {group_id} not found") from e
            raise
        return _attributes(group)

    def list_subgroups(self, group_id: int, page: int) -> List[Dict[str, Any]]:
        """Return one page of a group's direct subgroups."""
        group = self.gl.groups.get(group_id, lazy=True)
        subgroups = self._call(f"Subgroup listing of group {group_id} (page {page})",
                               group.subgroups.list, page=page, per_page=PAGE_SIZE)
        return [_attributes(subgroup) for subgroup in subgroups]

    def list_projects(self, group_id: int, page: int, updated_after: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return one page of a group's direct projects."""
        params: Dict[str, Any] = {
            'page': page,
            'per_page': PAGE_SIZE,
            'include_subgroups': False,
        }
        if updated_after:
            params['updated_after'] = updated_after

        group = self.gl.groups.get(group_id, lazy=True)
        projects = self._call(f"Project listing of group {group_id} (page {page})",
                              group.projects.list, **params)
        return [_attributes(project) for project in projects]
