#!/usr/bin/env python3
"""
Unit tests for the command-line interface.
"""

import unittest
from unittest.mock import patch
import tempfile
import shutil
import json
import os
import sys
from pathlib import Path

from click.testing import CliRunner

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gitlab_batch_clone.cli_cloner import main
from gitlab_batch_clone.errors import NotFoundError
from gitlab_batch_clone.models import RunSummary


class TestCli(unittest.TestCase):
    """Test cases for the gitlab-batch-clone command."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.runner = CliRunner()
        self.env = {'HOME': self.temp_dir, 'GITLAB_TOKEN': None}
        self.base_args = ['-g', 'https://gitlab.example.com', '-t', 'secret', '-n', 'group']

        patcher = patch('gitlab_batch_clone.cli_cloner.GitLabBatchCloner')
        self.mock_cloner = patcher.start()
        self.mock_cloner.return_value.run.return_value = RunSummary(total=3, succeeded=2, failed=1)
        self.addCleanup(patcher.stop)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _invoke(self, args):
        return self.runner.invoke(main, args, env=self.env)

    def _config(self):
        return self.mock_cloner.call_args.args[0]

    def test_success_exits_zero_with_failed_clones(self):
        result = self._invoke(self.base_args)

        self.assertEqual(result.exit_code, 0)
        config = self._config()
        self.assertEqual(config.gitlab_url, 'https://gitlab.example.com')
        self.assertEqual(config.access_token, 'secret')
        self.assertEqual(config.group_name, 'group')
        self.assertEqual(config.max_jobs, 5)
        self.assertEqual(config.protocol, 'https')
        self.assertEqual(config.output_dir, '.')
        self.assertFalse(config.skip_archived)

    def test_all_options(self):
        result = self._invoke([
            '-g', 'https://gitlab.example.com', '-t', 'secret', '-i', '42',
            '-o', self.temp_dir, '-d', '1', '-b', 'main', '-p', 'ssh', '-s',
            '-j', '8', '-a', '2023-01-01', '-l', 'clone.log',
        ])

        self.assertEqual(result.exit_code, 0)
        config = self._config()
        self.assertEqual(config.group_id, 42)
        self.assertEqual(config.depth, 1)
        self.assertEqual(config.branch, 'main')
        self.assertEqual(config.protocol, 'ssh')
        self.assertTrue(config.skip_archived)
        self.assertEqual(config.max_jobs, 8)
        self.assertEqual(config.after_date, '2023-01-01')
        self.assertEqual(config.log_file, 'clone.log')

    def test_token_from_environment(self):
        self.env['GITLAB_TOKEN'] = 'from-env'

        result = self._invoke(['-g', 'https://gitlab.example.com', '-n', 'group'])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(self._config().access_token, 'from-env')

    def test_missing_url_is_config_error(self):
        result = self._invoke(['-t', 'secret', '-n', 'group'])

        self.assertEqual(result.exit_code, 1)
        self.mock_cloner.assert_not_called()

    def test_missing_group_is_config_error(self):
        result = self._invoke(['-g', 'https://gitlab.example.com', '-t', 'secret'])

        self.assertEqual(result.exit_code, 1)
        self.mock_cloner.assert_not_called()

    def test_invalid_jobs(self):
        result = self._invoke(self.base_args + ['-j', '0'])

        self.assertEqual(result.exit_code, 1)
        self.mock_cloner.assert_not_called()

    def test_invalid_date(self):
        result = self._invoke(self.base_args + ['-a', '2023/01/01'])

        self.assertEqual(result.exit_code, 1)
        self.mock_cloner.assert_not_called()

    def test_invalid_protocol(self):
        result = self._invoke(self.base_args + ['-p', 'ftp'])

        self.assertNotEqual(result.exit_code, 0)
        self.mock_cloner.assert_not_called()

    def test_settings_file_with_wrong_types(self):
        settings_path = os.path.join(self.temp_dir, 'settings.json')
        with open(settings_path, 'w') as f:
            json.dump({'max_retries': '3'}, f)

        result = self._invoke(self.base_args + ['--config', settings_path])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("max_retries", result.output)
        self.mock_cloner.assert_not_called()

    def test_resolution_failure_exits_one(self):
        self.mock_cloner.return_value.run.side_effect = NotFoundError("No group named 'group' was found")

        result = self._invoke(self.base_args)

        self.assertEqual(result.exit_code, 1)

    def test_settings_file_supplies_defaults(self):
        settings_path = os.path.join(self.temp_dir, 'settings.json')
        with open(settings_path, 'w') as f:
            json.dump({'gitlab_url': 'https://git.internal', 'token': 'file-token',
                       'group_id': 7, 'max_jobs': 3, 'skip_archived': True}, f)

        result = self._invoke(['--config', settings_path, '-j', '4'])

        self.assertEqual(result.exit_code, 0)
        config = self._config()
        self.assertEqual(config.gitlab_url, 'https://git.internal')
        self.assertEqual(config.access_token, 'file-token')
        self.assertEqual(config.group_id, 7)
        self.assertEqual(config.max_jobs, 4)
        self.assertTrue(config.skip_archived)


if __name__ == '__main__':
    unittest.main(verbosity=2)
