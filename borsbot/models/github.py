"""
Hosting platform data types shared by handlers, clients and stores.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GithubRepoName:
    """Repository identity, compared case-insensitively like GitHub does."""

    owner: str
    name: str

    def __post_init__(self):
        object.__setattr__(self, "owner", self.owner.lower())
        object.__setattr__(self, "name", self.name.lower())

    @classmethod
    def parse(cls, full_name: str) -> "GithubRepoName":
        """Parse an ``owner/name`` string."""
        owner, sep, name = full_name.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Invalid repository name: {full_name!r}")
        return cls(owner, name)

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class GithubUser:
    """Author of a comment."""

    username: str
    is_bot: bool = False


@dataclass(frozen=True)
class Branch:
    name: str
    sha: str


@dataclass(frozen=True)
class PullRequest:
    """Live snapshot of a pull request as returned by the API."""

    number: int
    head: Branch
    base: Branch
    title: str
    author: GithubUser

    @property
    def head_ref(self) -> str:
        return self.head.name
