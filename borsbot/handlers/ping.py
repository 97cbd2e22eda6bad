"""
Ping command handler.
"""

from borsbot.models.github import PullRequest
from borsbot.state.registry import RepositoryState

PING_REPLY = "Pong 🏓!"


async def command_ping(repo: RepositoryState, pull_request: PullRequest) -> None:
    """Handle ``@bors ping``: reply so the user knows the bot is alive."""
    await repo.client.post_comment(pull_request.number, PING_REPLY)
