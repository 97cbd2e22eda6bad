"""
Custom application exceptions.
"""


class BotError(Exception):
    """Base exception for bot errors."""
    pass


class RepositoryNotFoundError(BotError):
    """Event refers to a repository that is not installed."""

    def __init__(self, repository):
        super().__init__(f"Repository {repository} not found")
        self.repository = repository


class CommandExecutionError(BotError):
    """A parsed command failed while executing."""

    def __init__(self, command, cause: Exception):
        super().__init__(f"Cannot execute bors command {command}: {cause}")
        self.command = command
        self.cause = cause


class StoreError(BotError):
    """Build store read or write failed."""
    pass


class APIError(BotError):
    """External API call failed."""
    pass


class GitHubAPIError(APIError):
    """GitHub API call failed."""
    pass


class MergeConflictError(GitHubAPIError):
    """Branches could not be merged automatically."""
    pass


class WebhookPayloadError(BotError):
    """Webhook payload is missing required fields."""
    pass
