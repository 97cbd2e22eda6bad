"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import pytest
from unittest.mock import patch

# Add repository root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from borsbot.core.exceptions import GitHubAPIError, MergeConflictError  # noqa: E402
from borsbot.models.github import Branch, GithubRepoName, GithubUser, PullRequest  # noqa: E402


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def mock_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("BORS_GITHUB_TOKEN", "ghp_test_token")
    monkeypatch.setenv("BORS_BOT_LOGIN", "bors-bot")
    monkeypatch.setenv("BORS_REPOSITORIES", "owner/repo, other/project")
    monkeypatch.delenv("BORS_DATABASE_PATH", raising=False)
    monkeypatch.delenv("BORS_COMMAND_PREFIX", raising=False)


# ============================================================================
# Test Doubles
# ============================================================================

class FakeRepositoryClient:
    """In-memory repository client recording every call."""

    def __init__(self, repository: GithubRepoName):
        self._repository = repository
        self.pull_requests: dict[int, PullRequest] = {}
        self.comments: list[tuple[int, str]] = []
        self.branches: dict[str, str] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.conflict = False

    @property
    def repository(self) -> GithubRepoName:
        return self._repository

    def add_pull_request(
        self,
        number: int = 1,
        head_sha: str = "head-sha",
        base_sha: str = "base-sha",
        title: str = "Fix everything",
    ) -> PullRequest:
        pull_request = PullRequest(
            number=number,
            head=Branch(name=f"feature-{number}", sha=head_sha),
            base=Branch(name="main", sha=base_sha),
            title=title,
            author=GithubUser("contributor"),
        )
        self.pull_requests[number] = pull_request
        return pull_request

    def comments_on(self, pr_number: int) -> list[str]:
        return [text for number, text in self.comments if number == pr_number]

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise GitHubAPIError(f"{name} failed")

    async def get_pull_request(self, number: int) -> PullRequest:
        self._record("get_pull_request")
        if number not in self.pull_requests:
            raise GitHubAPIError(f"Pull request {number} not found")
        return self.pull_requests[number]

    async def post_comment(self, issue_number: int, text: str) -> None:
        self._record("post_comment")
        self.comments.append((issue_number, text))

    async def set_branch_to_sha(self, branch: str, sha: str) -> None:
        self._record("set_branch_to_sha")
        self.branches[branch] = sha

    async def merge_branches(self, base: str, head_sha: str, commit_message: str) -> str:
        self._record("merge_branches")
        if self.conflict:
            raise MergeConflictError(f"Merge conflict between {base} and {head_sha}")
        merge_sha = f"merge-{self.branches.get(base)}-{head_sha}"
        self.branches[base] = merge_sha
        return merge_sha


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def repo_name():
    return GithubRepoName("owner", "repo")


@pytest.fixture
def repo_client(repo_name):
    """Fake client for the default repository, with PR #1 open."""
    client = FakeRepositoryClient(repo_name)
    client.add_pull_request(1)
    return client


@pytest.fixture
def build_store():
    from borsbot.state.builds import InMemoryBuildStore
    return InMemoryBuildStore()


@pytest.fixture
def repo_state(repo_client):
    from borsbot.state.registry import RepositoryState
    return RepositoryState(repository=repo_client.repository, client=repo_client)


@pytest.fixture
def registry(repo_state, build_store):
    """Registry with the default repository installed."""
    from borsbot.state.registry import RepositoryRegistry

    async def loader():
        return [repo_state]

    return RepositoryRegistry(
        bot_login="bors-bot",
        db=build_store,
        loader=loader,
        repositories=[repo_state],
    )


@pytest.fixture
def make_comment(repo_name):
    """Factory for PR comments on the default repository."""
    from borsbot.models.events import PullRequestComment

    def _make(text: str, author: str = "reviewer", pr_number: int = 1, repository=None):
        return PullRequestComment(
            repository=repository or repo_name,
            pr_number=pr_number,
            author=GithubUser(author, is_bot=author.endswith("[bot]")),
            text=text,
        )

    return _make


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    with patch("httpx.AsyncClient") as mock:
        client_instance = mock.return_value.__aenter__.return_value
        yield client_instance


@pytest.fixture
def github_client(repo_name):
    """Create a GitHubClient with test config."""
    from borsbot.services.github.client import GitHubClient
    return GitHubClient("ghp_test", repo_name)
