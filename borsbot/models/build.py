"""
Data model for try build tracking.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from borsbot.models.github import GithubRepoName


class BuildStatus(str, Enum):
    """Lifecycle state of a try build."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset({BuildStatus.SUCCEEDED, BuildStatus.FAILED, BuildStatus.CANCELLED})


@dataclass(frozen=True)
class TryBuild:
    """Represents a try build started for a pull request."""

    id: int
    repository: GithubRepoName
    pr_number: int
    branch_name: str
    commit_sha: str
    requested_by: str
    status: BuildStatus
    created_at: datetime
    updated_at: datetime
    external_build_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal
