#!/usr/bin/env python3
"""
Exception types for GitLab Batch Clone.

Run-level errors (configuration, group resolution) abort the whole run.
Task-level errors (filesystem, clone) are contained to the affected task or subtree.
"""


class GitLabBatchCloneError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(GitLabBatchCloneError):
    """Invalid or missing run configuration."""


class ResolutionError(GitLabBatchCloneError):
    """The starting group could not be resolved to a usable record."""


class NotFoundError(ResolutionError):
    """The remote reported that the requested group does not exist."""


class TransientAPIError(GitLabBatchCloneError):
    """An API request kept failing after all retries."""


class FileSystemError(GitLabBatchCloneError):
    """A local directory could not be created."""


class CloneError(GitLabBatchCloneError):
    """A single repository clone failed."""
