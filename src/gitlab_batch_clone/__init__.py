"""
GitLab Batch Clone - Mirror a GitLab group hierarchy onto local storage.

This package provides:
- GitLabBatchCloner: Discover every project below a group and clone them in parallel
- CloneConfig: Validated settings for one run
- Config: Optional JSON settings file
"""

__version__ = "1.0.0"

from .cloner import GitLabBatchCloner
from .config import CloneConfig, Config
from .models import CloneTask, RunSummary

__all__ = ["GitLabBatchCloner", "CloneConfig", "Config", "CloneTask", "RunSummary"]
