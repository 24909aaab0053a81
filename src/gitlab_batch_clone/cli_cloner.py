#!/usr/bin/env python3
"""
Command-line interface for GitLab Batch Clone.
"""

import sys
import logging
from typing import Optional

import click

from .cloner import GitLabBatchCloner
from .config import Config, CloneConfig, DEFAULT_CONFIG
from .errors import ConfigError, ResolutionError


def _pick(value, config: Config, key: str, default=None):
    """Command-line value first, then the settings file, then the default."""
    if value is not None:
        return value
    return config.get(key, default)


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--gitlab-url', '-g', help='GitLab base URL (e.g., https://gitlab.example.com)')
@click.option('--token', '-t', envvar='GITLAB_TOKEN', help='GitLab private access token (or GITLAB_TOKEN)')
@click.option('--group-name', '-n', help='Name of the group to clone')
@click.option('--group-id', '-i', type=int, help='ID of the group to clone (instead of a name)')
@click.option('--output-dir', '-o', help='Output directory (default: current directory)')
@click.option('--depth', '-d', type=int, help='Shallow clone depth (default: full history)')
@click.option('--branch', '-b', help='Clone only this branch')
@click.option('--protocol', '-p', type=click.Choice(['https', 'ssh']), help='Clone protocol (default: https)')
@click.option('--skip-archived', '-s', is_flag=True, help='Skip archived projects')
@click.option('--jobs', '-j', type=int, help='Maximum number of parallel clones (default: 5)')
@click.option('--after-date', '-a', help='Only clone projects updated on or after this date (YYYY-MM-DD)')
@click.option('--log-file', '-l', help='Append a log of the run to this file (default: no log file)')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='JSON settings file providing defaults for these options')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Quiet mode - show only warnings, errors and the summary')
def main(gitlab_url: Optional[str], token: Optional[str], group_name: Optional[str], group_id: Optional[int],
         output_dir: Optional[str], depth: Optional[int], branch: Optional[str], protocol: Optional[str],
         skip_archived: bool, jobs: Optional[int], after_date: Optional[str], log_file: Optional[str],
         config_file: Optional[str], verbose: bool, quiet: bool):
    """
    Clone every project of a GitLab group and its subgroups in parallel.

    The local directory tree mirrors the group hierarchy. Projects whose target
    directory already exists are skipped, so an interrupted run can simply be
    started again.
    """
    try:
        settings = Config(config_file)
        config = CloneConfig(
            gitlab_url=_pick(gitlab_url, settings, 'gitlab_url', ''),
            access_token=_pick(token, settings, 'token', ''),
            group_name=_pick(group_name, settings, 'group_name'),
            group_id=_pick(group_id, settings, 'group_id'),
            output_dir=_pick(output_dir, settings, 'output_dir', DEFAULT_CONFIG['output_dir']),
            depth=_pick(depth, settings, 'depth'),
            branch=_pick(branch, settings, 'branch'),
            protocol=_pick(protocol, settings, 'protocol', DEFAULT_CONFIG['protocol']),
            skip_archived=skip_archived or bool(settings.get('skip_archived', False)),
            max_jobs=_pick(jobs, settings, 'max_jobs', DEFAULT_CONFIG['max_jobs']),
            after_date=_pick(after_date, settings, 'after_date'),
            log_file=_pick(log_file, settings, 'log_file'),
            api_timeout=settings.get('api_timeout', DEFAULT_CONFIG['api_timeout']),
            max_retries=settings.get('max_retries', DEFAULT_CONFIG['max_retries']),
            retry_delay=settings.get('retry_delay', DEFAULT_CONFIG['retry_delay']),
        )
        config.validate()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    cloner = GitLabBatchCloner(config, quiet=quiet)
    if verbose:
        logging.getLogger('gitlab_batch_clone').setLevel(logging.DEBUG)

    try:
        cloner.run()
        sys.exit(0)
    except (ConfigError, ResolutionError) as e:
        cloner.logger.error(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        cloner.logger.info("Operation cancelled by user")
        sys.exit(1)
    except Exception as e:
        cloner.logger.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
