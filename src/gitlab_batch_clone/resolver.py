#!/usr/bin/env python3
"""
Resolution of the starting group from a name or an ID.
"""

import logging
from typing import Optional

from gitlab.exceptions import GitlabError

from .api import GitLabClient
from .errors import NotFoundError, ResolutionError, TransientAPIError
from .models import Group


class GroupResolver:
    """Turns the user's group name or ID into a canonical group record."""

    def __init__(self, client: GitLabClient):
        self.client = client
        self.logger = logging.getLogger('gitlab_batch_clone.resolver')

    def resolve_by_name(self, name: str) -> int:
        """
        Find a group ID by searching for its name.

        The first entry returned by the search wins when several groups match.

        Args:
            name: Group name to search for

        Returns:
            ID of the selected group

        Raises:
            NotFoundError: if the search returns nothing
            ResolutionError: if the selected entry has no usable ID
        """
        self.logger.info(f"Looking up group ID for name: {name}")
        try:
            matches = self.client.search_groups(name)
        except (GitlabError, TransientAPIError) as e:
            raise ResolutionError(f"Group search for '{name}' failed: {e}") from e

        if not matches:
            raise NotFoundError(f"No group named '{name}' was found")
        if len(matches) > 1:
            self.logger.warning(f"{len(matches)} groups match '{name}', using the first one")

        group_id = matches[0].get('id')
        if isinstance(group_id, bool) or group_id is None:
            raise ResolutionError(f"Group search for '{name}' returned an entry without an ID")
        try:
            group_id = int(group_id)
        except (TypeError, ValueError):
            raise ResolutionError(f"Group search for '{name}' returned a non-numeric ID: {group_id!r}") from None

        self.logger.info(f"Found group ID: {group_id}")
        return group_id

    def resolve_meta(self, group_id: int) -> Group:
        """
        Fetch the path and display name of a group.

        Raises:
            NotFoundError: if the group does not exist
            ResolutionError: if the response is malformed or the request fails
        """
        self.logger.info(f"Fetching information for group {group_id}...")
        try:
            data = self.client.get_group(group_id)
        except NotFoundError:
            raise
        except (GitlabError, TransientAPIError) as e:
            raise ResolutionError(f"Fetching group {group_id} failed: {e}") from e

        try:
            group = Group.from_dict(data)
        except ValueError as e:
            raise ResolutionError(f"Malformed metadata for group {group_id}: {e}") from e
        return group

    def resolve(self, group_name: Optional[str] = None, group_id: Optional[int] = None) -> Group:
        """Resolve the starting group; an explicit ID takes precedence over a name."""
        if group_id is None:
            if not group_name:
                raise ResolutionError("Either a group name or a group ID is required")
            group_id = self.resolve_by_name(group_name)
        return self.resolve_meta(group_id)
