"""
GitHub API client for a single repository.
"""

from typing import Protocol

import httpx

from borsbot.core.logging import get_logger
from borsbot.core.exceptions import GitHubAPIError, MergeConflictError
from borsbot.models.github import GithubRepoName, PullRequest
from .schemas import parse_pull_request

logger = get_logger(__name__)


class RepositoryClient(Protocol):
    """Operations the bot performs against one hosted repository."""

    @property
    def repository(self) -> GithubRepoName: ...

    async def get_pull_request(self, number: int) -> PullRequest: ...

    async def post_comment(self, issue_number: int, text: str) -> None: ...

    async def set_branch_to_sha(self, branch: str, sha: str) -> None: ...

    async def merge_branches(self, base: str, head_sha: str, commit_message: str) -> str: ...


class GitHubClient:
    """Client for GitHub API operations on one repository."""

    BASE_URL = "https://api.github.com"

    def __init__(self, token: str, repository: GithubRepoName, timeout: float = 30.0):
        self._token = token
        self._repository = repository
        self._timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    @property
    def repository(self) -> GithubRepoName:
        return self._repository

    def _url(self, path: str) -> str:
        return f"{self.BASE_URL}/repos/{self._repository}/{path}"

    async def get_pull_request(self, number: int) -> PullRequest:
        """
        Fetch the current state of a pull request.

        Raises:
            GitHubAPIError: If API call fails
        """
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.get(self._url(f"pulls/{number}"), headers=self._headers)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise GitHubAPIError(f"Failed to get pull request {number}: {e}")

        return parse_pull_request(response.json())

    async def post_comment(self, issue_number: int, text: str) -> None:
        """
        Post a comment on an issue or pull request.

        Raises:
            GitHubAPIError: If API call fails
        """
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.post(
                    self._url(f"issues/{issue_number}/comments"),
                    headers=self._headers,
                    json={"body": text},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise GitHubAPIError(f"Failed to post comment on #{issue_number}: {e}")

        logger.debug(f"Posted comment on {self._repository}#{issue_number}")

    async def set_branch_to_sha(self, branch: str, sha: str) -> None:
        """
        Force a branch to point at a commit, creating the branch if needed.

        Raises:
            GitHubAPIError: If API call fails
        """
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.patch(
                    self._url(f"git/refs/heads/{branch}"),
                    headers=self._headers,
                    json={"sha": sha, "force": True},
                )
                # GitHub answers 422 "Reference does not exist" for missing branches
                if response.status_code in (404, 422):
                    response = await client.post(
                        self._url("git/refs"),
                        headers=self._headers,
                        json={"ref": f"refs/heads/{branch}", "sha": sha},
                    )
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise GitHubAPIError(f"Failed to set branch {branch} to {sha}: {e}")

        logger.info(f"Branch {branch} of {self._repository} now points to {sha}")

    async def merge_branches(self, base: str, head_sha: str, commit_message: str) -> str:
        """
        Merge a commit into a branch.

        Returns:
            SHA of the resulting merge commit

        Raises:
            MergeConflictError: If the commit cannot be merged cleanly
            GitHubAPIError: If API call fails
        """
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.post(
                    self._url("merges"),
                    headers=self._headers,
                    json={"base": base, "head": head_sha, "commit_message": commit_message},
                )
            except httpx.HTTPError as e:
                raise GitHubAPIError(f"Failed to merge {head_sha} into {base}: {e}")

        if response.status_code == 409:
            raise MergeConflictError(f"Merge conflict between {base} and {head_sha}")
        if response.status_code == 204:
            raise GitHubAPIError(f"Nothing to merge: {base} already contains {head_sha}")
        try:
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"Failed to merge {head_sha} into {base}: {e}")

        return str(response.json()["sha"])
