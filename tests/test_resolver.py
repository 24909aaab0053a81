#!/usr/bin/env python3
"""
Unit tests for GroupResolver.
"""

import unittest
from unittest.mock import Mock
import sys
from pathlib import Path

from gitlab.exceptions import GitlabListError

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gitlab_batch_clone.errors import NotFoundError, ResolutionError, TransientAPIError
from gitlab_batch_clone.resolver import GroupResolver


class TestGroupResolver(unittest.TestCase):
    """Test cases for GroupResolver."""

    def setUp(self):
        """Set up test fixtures."""
        self.client = Mock()
        self.resolver = GroupResolver(self.client)

    def test_resolve_by_name(self):
        self.client.search_groups.return_value = [{'id': 12, 'name': 'Platform', 'path': 'platform'}]

        self.assertEqual(self.resolver.resolve_by_name("Platform"), 12)
        self.client.search_groups.assert_called_once_with("Platform")

    def test_resolve_by_name_picks_first_match(self):
        self.client.search_groups.return_value = [
            {'id': 3, 'path': 'platform'},
            {'id': 4, 'path': 'platform-legacy'},
        ]

        self.assertEqual(self.resolver.resolve_by_name("platform"), 3)

    def test_resolve_by_name_accepts_numeric_string(self):
        self.client.search_groups.return_value = [{'id': "15", 'path': 'platform'}]

        self.assertEqual(self.resolver.resolve_by_name("platform"), 15)

    def test_resolve_by_name_not_found(self):
        self.client.search_groups.return_value = []

        with self.assertRaises(NotFoundError):
            self.resolver.resolve_by_name("missing")

    def test_resolve_by_name_malformed_id(self):
        for entry in ({'path': 'platform'}, {'id': None}, {'id': 'abc'}):
            with self.subTest(entry=entry):
                self.client.search_groups.return_value = [entry]
                with self.assertRaises(ResolutionError) as context:
                    self.resolver.resolve_by_name("platform")
                self.assertNotIsInstance(context.exception, NotFoundError)

    def test_resolve_by_name_api_failure(self):
        self.client.search_groups.side_effect = TransientAPIError("timed out")

        with self.assertRaises(ResolutionError):
            self.resolver.resolve_by_name("platform")

    def test_resolve_by_name_forbidden(self):
        self.client.search_groups.side_effect = GitlabListError("401 Unauthorized", response_code=401)

        with self.assertRaises(ResolutionError):
            self.resolver.resolve_by_name("platform")

    def test_resolve_meta(self):
        self.client.get_group.return_value = {'id': 12, 'name': 'Platform', 'path': 'platform',
                                              'full_path': 'org/platform'}

        group = self.resolver.resolve_meta(12)

        self.assertEqual(group.id, 12)
        self.assertEqual(group.name, 'Platform')
        self.assertEqual(group.path, 'platform')
        self.assertEqual(group.full_path, 'org/platform')

    def test_resolve_meta_not_found(self):
        self.client.get_group.side_effect = NotFoundError("Group with ID 12 not found")

        with self.assertRaises(NotFoundError):
            self.resolver.resolve_meta(12)

    def test_resolve_meta_missing_path(self):
        self.client.get_group.return_value = {'id': 12, 'name': 'Platform'}

        with self.assertRaises(ResolutionError):
            self.resolver.resolve_meta(12)

    def test_resolve_prefers_group_id(self):
        self.client.get_group.return_value = {'id': 8, 'name': 'Tools', 'path': 'tools'}

        group = self.resolver.resolve(group_name="platform", group_id=8)

        self.assertEqual(group.path, 'tools')
        self.client.search_groups.assert_not_called()

    def test_resolve_by_name_then_meta(self):
        self.client.search_groups.return_value = [{'id': 12, 'path': 'platform'}]
        self.client.get_group.return_value = {'id': 12, 'name': 'Platform', 'path': 'platform'}

        group = self.resolver.resolve(group_name="platform")

        self.assertEqual(group.id, 12)
        self.client.get_group.assert_called_once_with(12)


if __name__ == '__main__':
    unittest.main(verbosity=2)
