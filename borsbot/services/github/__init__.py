# GitHub services - GitHub API integration
from .client import GitHubClient, RepositoryClient
from .schemas import parse_pull_request

__all__ = ["GitHubClient", "RepositoryClient", "parse_pull_request"]
