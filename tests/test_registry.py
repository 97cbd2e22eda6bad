"""
Tests for the repository registry.
"""

import asyncio
import pytest

from borsbot.models.github import GithubRepoName


class TestRepositoryRegistry:
    """Tests for RepositoryRegistry."""

    def test_is_comment_internal(self, registry, make_comment):
        """Test only the bot's own login counts as internal."""
        assert registry.is_comment_internal(make_comment("hi", author="bors-bot"))
        assert not registry.is_comment_internal(make_comment("hi", author="reviewer"))
        assert not registry.is_comment_internal(make_comment("hi", author="bors-bot[bot]"))

    def test_get_unknown_repository_raises(self, registry):
        """Test get() reports repositories that are not installed."""
        from borsbot.core.exceptions import RepositoryNotFoundError

        with pytest.raises(RepositoryNotFoundError):
            registry.get(GithubRepoName("stranger", "repo"))

    @pytest.mark.asyncio
    async def test_lease_known_repository(self, registry, repo_state, build_store, repo_name):
        """Test a lease hands out the repository and the store."""
        async with registry.lease(repo_name) as context:
            assert context.repo is repo_state
            assert context.db is build_store

    @pytest.mark.asyncio
    async def test_lease_unknown_repository(self, registry):
        """Test leasing an unknown repository yields None and installs nothing."""
        async with registry.lease(GithubRepoName("stranger", "repo")) as context:
            assert context is None

        assert GithubRepoName("stranger", "repo") not in registry

    @pytest.mark.asyncio
    async def test_lease_is_exclusive(self, registry, repo_name):
        """Test two leases of one repository never overlap."""
        order = []

        async def worker(name):
            async with registry.lease(repo_name):
                order.append(f"{name}-start")
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert order == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_leases_of_different_repositories_interleave(self, repo_state, build_store):
        """Test independent repositories are not serialized against each other."""
        from borsbot.state.registry import RepositoryRegistry, RepositoryState

        other = RepositoryState(repository=GithubRepoName("other", "project"), client=None)
        registry = RepositoryRegistry("bors-bot", build_store, loader=None, repositories=[repo_state, other])
        order = []

        async def worker(name, repository):
            async with registry.lease(repository):
                order.append(f"{name}-start")
                await asyncio.sleep(0)
                order.append(f"{name}-end")

        await asyncio.gather(
            worker("a", repo_state.repository),
            worker("b", other.repository),
        )

        assert order[:2] == ["a-start", "b-start"]

    @pytest.mark.asyncio
    async def test_reload_replaces_repositories(self, repo_state, build_store):
        """Test a reload installs exactly what the loader returns."""
        from borsbot.state.registry import RepositoryRegistry, RepositoryState

        other = RepositoryState(repository=GithubRepoName("other", "project"), client=None)
        installed = [repo_state]

        async def loader():
            return list(installed)

        registry = RepositoryRegistry("bors-bot", build_store, loader)
        assert registry.repositories == []

        await registry.reload_repositories()
        assert registry.repositories == [repo_state.repository]

        installed[:] = [other]
        await registry.reload_repositories()
        assert registry.repositories == [other.repository]

        async with registry.lease(repo_state.repository) as context:
            assert context is None

    @pytest.mark.asyncio
    async def test_reload_during_lease_drops_waiting_event(self, registry, repo_name):
        """Test an event waiting for a repository that gets uninstalled sees None."""
        seen = []

        async def holder():
            async with registry.lease(repo_name):
                await asyncio.sleep(0)
                registry._loader = _empty_loader
                await registry.reload_repositories()

        async def waiter():
            async with registry.lease(repo_name) as context:
                seen.append(context)

        await asyncio.gather(holder(), waiter())

        assert seen == [None]

    @pytest.mark.asyncio
    async def test_reload_failure_keeps_repositories(self, registry, repo_name):
        """Test a failing loader leaves the installed set untouched."""
        async def broken_loader():
            raise RuntimeError("GitHub is down")

        registry._loader = broken_loader

        with pytest.raises(RuntimeError):
            await registry.reload_repositories()

        assert registry.repositories == [repo_name]


async def _empty_loader():
    return []
