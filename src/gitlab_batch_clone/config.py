#!/usr/bin/env python3
"""
Configuration module for GitLab Batch Clone.

This module provides the validated run settings and an optional JSON settings
file that supplies defaults for options not given on the command line.
"""

import os
import re
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any

from .errors import ConfigError
from .models import ProjectFilters


DATE_PATTERN = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')
PROTOCOLS = ('https', 'ssh')

# Default configuration values
DEFAULT_CONFIG = {
    "api_timeout": 30,     # 30 seconds
    "max_retries": 3,
    "retry_delay": 1,      # 1 second, doubled after every failed attempt
    "max_jobs": 5,         # Number of concurrent clone operations
    "protocol": "https",
    "output_dir": ".",
}


class Config:
    """Optional JSON settings file for GitLab Batch Clone."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file (optional)
        """
        self.config_file = config_file or self._get_default_config_path()
        self.config = self._load_config()

    def _get_default_config_path(self) -> str:
        """Get default configuration file path."""
        return os.path.join(os.path.expanduser("~"), ".gitlab_batch_clone.json")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file."""
        if not os.path.exists(self.config_file):
            return {}
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"Cannot read configuration file {self.config_file}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {self.config_file} must contain a JSON object")
        return data

    def save_config(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if successful, False otherwise
        """
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2)
            return True
        except OSError:
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.config[key] = value

    @staticmethod
    def validate_gitlab_url(url: Optional[str]) -> bool:
        """
        Validate GitLab URL format.

        Args:
            url: GitLab URL to validate

        Returns:
            True if valid, False otherwise
        """
        if not url:
            return False

        url = url.lower()
        return url.startswith(('http://', 'https://'))

    @staticmethod
    def validate_access_token(token: Optional[str]) -> bool:
        """
        Validate GitLab access token format.

        Args:
            token: Access token to validate

        Returns:
            True if valid, False otherwise
        """
        if not token:
            return False

        # Personal access tokens usually start with 'glpat-', but any non-blank string is accepted
        return len(token.strip()) > 0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class CloneConfig:
    """Settings for one batch clone run."""

    gitlab_url: str = ""
    access_token: str = ""
    group_name: Optional[str] = None
    group_id: Optional[int] = None
    output_dir: str = DEFAULT_CONFIG["output_dir"]
    depth: Optional[int] = None
    branch: Optional[str] = None
    protocol: str = DEFAULT_CONFIG["protocol"]
    skip_archived: bool = False
    max_jobs: int = DEFAULT_CONFIG["max_jobs"]
    after_date: Optional[str] = None
    log_file: Optional[str] = None
    api_timeout: float = DEFAULT_CONFIG["api_timeout"]
    max_retries: int = DEFAULT_CONFIG["max_retries"]
    retry_delay: float = DEFAULT_CONFIG["retry_delay"]

    def validate(self) -> None:
        """
        Check every setting before any network call is made.

        Raises:
            ConfigError: describing the first invalid setting
        """
        if not self.gitlab_url:
            raise ConfigError("A GitLab URL is required")
        if not Config.validate_gitlab_url(self.gitlab_url):
            raise ConfigError(f"GitLab URL must start with http:// or https://: {self.gitlab_url}")
        if not Config.validate_access_token(self.access_token):
            raise ConfigError("An access token is required")
        if not self.group_name and self.group_id is None:
            raise ConfigError("Either a group name or a group ID is required")
        if self.group_id is not None and (isinstance(self.group_id, bool) or not isinstance(self.group_id, int)):
            raise ConfigError(f"Group ID must be an integer: {self.group_id!r}")
        if self.protocol not in PROTOCOLS:
            raise ConfigError(f"Protocol must be 'https' or 'ssh', got '{self.protocol}'")
        if isinstance(self.max_jobs, bool) or not isinstance(self.max_jobs, int) or self.max_jobs < 1:
            raise ConfigError(f"Number of parallel jobs must be a positive integer, got {self.max_jobs!r}")
        if self.depth is not None and (isinstance(self.depth, bool) or not isinstance(self.depth, int) or self.depth < 1):
            raise ConfigError(f"Clone depth must be a positive integer, got {self.depth!r}")
        if self.after_date and not (isinstance(self.after_date, str) and DATE_PATTERN.fullmatch(self.after_date)):
            raise ConfigError(f"Date must use the YYYY-MM-DD format, got {self.after_date!r}")
        if not _is_number(self.api_timeout) or self.api_timeout <= 0:
            raise ConfigError(f"api_timeout must be a positive number, got {self.api_timeout!r}")
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ConfigError(f"max_retries must be a non-negative integer, got {self.max_retries!r}")
        if not _is_number(self.retry_delay) or self.retry_delay < 0:
            raise ConfigError(f"retry_delay must be a non-negative number, got {self.retry_delay!r}")

    @property
    def filters(self) -> ProjectFilters:
        """Project selection policy derived from these settings."""
        return ProjectFilters(after_date=self.after_date or None, skip_archived=self.skip_archived)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir).expanduser().resolve()
