"""
Conversion of GitHub REST payloads into bot data types.
"""

from typing import Any

from borsbot.core.exceptions import GitHubAPIError
from borsbot.models.github import Branch, GithubUser, PullRequest


def parse_user(data: dict[str, Any] | None) -> GithubUser:
    """Build a user from a GitHub ``user`` object."""
    data = data or {}
    return GithubUser(
        username=str(data.get("login") or ""),
        is_bot=data.get("type") == "Bot",
    )


def parse_branch(data: dict[str, Any]) -> Branch:
    return Branch(name=str(data["ref"]), sha=str(data["sha"]))


def parse_pull_request(data: dict[str, Any]) -> PullRequest:
    """
    Build a pull request snapshot from a ``GET /pulls/{number}`` response.

    Raises:
        GitHubAPIError: If required fields are missing
    """
    try:
        return PullRequest(
            number=int(data["number"]),
            head=parse_branch(data["head"]),
            base=parse_branch(data["base"]),
            title=str(data.get("title") or ""),
            author=parse_user(data.get("user")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"Unexpected pull request payload: {e}")
