"""
Registry of installed repositories.

The registry owns the mutable per-repository state and lends it out one event
at a time: ``lease()`` holds the repository's lock for as long as the caller
uses the context, so two events never work on the same repository at once.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from typing import Protocol

from borsbot.core.exceptions import RepositoryNotFoundError
from borsbot.core.logging import get_logger
from borsbot.models.events import PullRequestComment
from borsbot.models.github import GithubRepoName
from borsbot.services.github.client import RepositoryClient
from borsbot.services.parser import DEFAULT_PREFIX
from borsbot.state.builds import BuildStore

logger = get_logger(__name__)


@dataclass
class RepositoryState:
    """Per-repository context: identity, API handle and command settings."""

    repository: GithubRepoName
    client: RepositoryClient
    command_prefix: str = DEFAULT_PREFIX


@dataclass(frozen=True)
class RepositoryContext:
    """What an event handler may touch while it holds a lease."""

    repo: RepositoryState
    db: BuildStore


RepositoryLoader = Callable[[], Awaitable[Iterable[RepositoryState]]]


class BorsState(Protocol):
    """Shared state consulted by the event dispatcher."""

    def is_comment_internal(self, comment: PullRequestComment) -> bool: ...

    def lease(
        self, repository: GithubRepoName
    ) -> AbstractAsyncContextManager[RepositoryContext | None]: ...

    async def reload_repositories(self) -> None: ...


class RepositoryRegistry:
    """Owner of all installed repositories and the build store."""

    def __init__(
        self,
        bot_login: str,
        db: BuildStore,
        loader: RepositoryLoader,
        repositories: Iterable[RepositoryState] = (),
    ):
        self._bot_login = bot_login.strip().lower()
        self._db = db
        self._loader = loader
        self._repositories: dict[GithubRepoName, RepositoryState] = {}
        self._locks: dict[GithubRepoName, asyncio.Lock] = {}
        self._replace(repositories)

    @property
    def repositories(self) -> list[GithubRepoName]:
        return list(self._repositories)

    def __contains__(self, repository: GithubRepoName) -> bool:
        return repository in self._repositories

    def is_comment_internal(self, comment: PullRequestComment) -> bool:
        """Whether the comment was written by the bot itself."""
        return comment.author.username.strip().lower() == self._bot_login

    def get(self, repository: GithubRepoName) -> RepositoryState:
        """
        Get the state of an installed repository without locking it.

        Raises:
            RepositoryNotFoundError: If the repository is not installed
        """
        state = self._repositories.get(repository)
        if state is None:
            raise RepositoryNotFoundError(repository)
        return state

    @asynccontextmanager
    async def lease(self, repository: GithubRepoName) -> AsyncIterator[RepositoryContext | None]:
        """
        Borrow a repository exclusively for the duration of the ``async with`` block.

        Yields None for repositories that are not installed.
        """
        lock = self._locks.get(repository)
        if lock is None:
            yield None
            return

        async with lock:
            # the repository may have been uninstalled while we waited
            state = self._repositories.get(repository)
            if state is None:
                logger.debug(f"Repository {repository} was removed while waiting for its lock")
                yield None
                return
            yield RepositoryContext(repo=state, db=self._db)

    async def reload_repositories(self) -> None:
        """Replace the installed repositories with a fresh set from the loader."""
        repositories = list(await self._loader())
        self._replace(repositories)
        logger.info(
            f"Loaded {len(self._repositories)} repositories: "
            f"{', '.join(str(name) for name in self._repositories) or '-'}"
        )

    def _replace(self, repositories: Iterable[RepositoryState]) -> None:
        installed = {state.repository: state for state in repositories}
        # keep existing locks so leases taken before the reload stay exclusive
        self._locks = {name: self._locks.get(name) or asyncio.Lock() for name in installed}
        self._repositories = installed
