"""
Inbound events handled by the bot.

``BorsEvent`` is a closed union; every dispatch site matches it exhaustively.
"""

from dataclasses import dataclass
from typing import Union

from borsbot.models.github import GithubRepoName, GithubUser


@dataclass(frozen=True)
class PullRequestComment:
    repository: GithubRepoName
    pr_number: int
    author: GithubUser
    text: str


@dataclass(frozen=True)
class InstallationsChanged:
    pass


@dataclass(frozen=True)
class WorkflowStarted:
    repository: GithubRepoName
    branch: str
    commit_sha: str
    run_id: int
    name: str = ""
    url: str = ""


@dataclass(frozen=True)
class WorkflowCompleted:
    repository: GithubRepoName
    branch: str
    commit_sha: str
    run_id: int
    succeeded: bool
    name: str = ""
    url: str = ""


@dataclass(frozen=True)
class CheckSuiteCompleted:
    repository: GithubRepoName
    branch: str
    commit_sha: str
    suite_id: int
    succeeded: bool


BorsEvent = Union[
    PullRequestComment,
    InstallationsChanged,
    WorkflowStarted,
    WorkflowCompleted,
    CheckSuiteCompleted,
]


def event_repository(event: BorsEvent) -> GithubRepoName | None:
    """Repository an event belongs to, None for global events."""
    if isinstance(event, InstallationsChanged):
        return None
    return event.repository
