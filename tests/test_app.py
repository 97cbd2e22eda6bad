"""
Tests for application wiring.
"""

import pytest


class TestCreateBuildStore:
    """Tests for create_build_store."""

    def test_in_memory_without_path(self):
        """Test the in-memory store is used when no database is configured."""
        from borsbot.app import create_build_store
        from borsbot.core.config import Settings
        from borsbot.state.builds import InMemoryBuildStore

        assert isinstance(create_build_store(Settings()), InMemoryBuildStore)

    def test_sqlite_with_path(self, monkeypatch, tmp_path):
        """Test a database path selects the SQLite store."""
        monkeypatch.setenv("BORS_DATABASE_PATH", str(tmp_path / "bors.db"))

        from borsbot.app import create_build_store
        from borsbot.core.config import Settings
        from borsbot.state.sqlite import SqliteBuildStore

        assert isinstance(create_build_store(Settings()), SqliteBuildStore)


class TestLoadRepositories:
    """Tests for repository loading."""

    @pytest.mark.asyncio
    async def test_load_repositories(self, monkeypatch):
        """Test configured repositories get a client and the prefix."""
        monkeypatch.setenv("BORS_COMMAND_PREFIX", "@merge-bot")

        from borsbot.app import load_repositories

        states = await load_repositories()

        assert [str(state.repository) for state in states] == ["owner/repo", "other/project"]
        assert states[0].client.repository == states[0].repository
        assert all(state.command_prefix == "@merge-bot" for state in states)

    @pytest.mark.asyncio
    async def test_create_registry_loads_repositories(self, make_comment):
        """Test the registry is populated on creation."""
        from borsbot.app import create_registry
        from borsbot.core.config import Settings
        from borsbot.models.github import GithubRepoName

        registry = await create_registry(Settings())

        assert GithubRepoName("owner", "repo") in registry
        assert GithubRepoName("other", "project") in registry
        assert registry.is_comment_internal(make_comment("@bors ping", author="Bors-Bot"))
