#!/usr/bin/env python3
"""
Data records shared by the discovery and scheduling stages.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


def _require_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or value is None:
        raise ValueError(f"missing or invalid '{key}'")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"non-numeric '{key}': {value!r}") from None


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"missing '{key}'")
    return value


@dataclass
class Group:
    """A node of the remote namespace tree."""

    id: int
    name: str
    path: str
    parent_path: str = ""
    full_path: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], parent_path: str = "") -> 'Group':
        """
        Build a group from a decoded API attribute dict.

        Raises:
            ValueError: if the id is missing or non-numeric, or the path is missing
        """
        path = _require_str(data, 'path')
        return cls(
            id=_require_int(data, 'id'),
            name=data.get('name') or path,
            path=path,
            parent_path=parent_path,
            full_path=data.get('full_path') or path,
        )


@dataclass
class Project:
    """A remote repository belonging to a group."""

    id: int
    name: str
    path: str
    ssh_url: str
    http_url: str
    archived: bool = False
    last_activity_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        """
        Build a project from a decoded API attribute dict.

        Raises:
            ValueError: if the id, the path or both clone URLs are missing
        """
        path = _require_str(data, 'path')
        ssh_url = data.get('ssh_url_to_repo') or ""
        http_url = data.get('http_url_to_repo') or ""
        if not ssh_url and not http_url:
            raise ValueError("missing clone URLs")
        return cls(
            id=_require_int(data, 'id'),
            name=data.get('name') or path,
            path=path,
            ssh_url=ssh_url,
            http_url=http_url,
            archived=bool(data.get('archived', False)),
            last_activity_at=data.get('last_activity_at') or "",
        )

    @property
    def activity_date(self) -> str:
        """Last activity truncated to its calendar date (YYYY-MM-DD)."""
        return self.last_activity_at.split('T', 1)[0]


@dataclass(frozen=True)
class CloneTask:
    """Fetch one project into one local path."""

    project_name: str
    clone_url: str
    target_path: Path
    last_activity_at: str = ""


@dataclass
class JobRecord:
    """An entry of the active-job registry."""

    job_id: int
    project_name: str
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ProjectFilters:
    """Project selection policy applied during discovery."""

    after_date: Optional[str] = None
    skip_archived: bool = False

    @property
    def updated_after(self) -> Optional[str]:
        """Cutoff as the UTC ISO-8601 timestamp expected by the API."""
        if not self.after_date:
            return None
        return f"{self.after_date}T00:00:00Z"


@dataclass
class RunSummary:
    """Final accounting of one run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    discovered: int = 0
    discovery_errors: int = 0
    cancelled: bool = False
    log_file: Optional[str] = None
