"""
Application factory and main entry point.
"""

import sys
import asyncio

from borsbot.core.config import Settings, settings
from borsbot.core.logging import setup_logging, get_logger
from borsbot.services.github.client import GitHubClient
from borsbot.services.process import BorsProcess
from borsbot.state.builds import BuildStore, InMemoryBuildStore
from borsbot.state.registry import RepositoryRegistry, RepositoryState
from borsbot.state.sqlite import SqliteBuildStore
from borsbot.webhooks.server import start_webhook_server

# Initialize logging
setup_logging(settings.log_level_value)
logger = get_logger(__name__)


def create_build_store(config: Settings) -> BuildStore:
    """Create the configured build store."""
    if config.database_path:
        logger.info(f"Storing try builds in {config.database_path}")
        return SqliteBuildStore(config.database_path)
    logger.warning("BORS_DATABASE_PATH not set, try builds are kept in memory only")
    return InMemoryBuildStore()


async def load_repositories() -> list[RepositoryState]:
    """Read the installed repositories from a fresh copy of the settings."""
    config = Settings()
    return [
        RepositoryState(
            repository=name,
            client=GitHubClient(config.github_token, name),
            command_prefix=config.command_prefix,
        )
        for name in config.repository_names
    ]


async def create_registry(config: Settings) -> RepositoryRegistry:
    """Create the repository registry and load the installed repositories."""
    registry = RepositoryRegistry(
        bot_login=config.bot_login,
        db=create_build_store(config),
        loader=load_repositories,
    )
    await registry.reload_repositories()
    return registry


async def main() -> None:
    """Main application entry point."""
    logger.info("Starting bors...")

    if not settings.github_token:
        logger.error("BORS_GITHUB_TOKEN not set!")
        sys.exit(1)

    registry = await create_registry(settings)
    process = BorsProcess(registry)
    process.start()

    runner = await start_webhook_server(process, settings.webhook_host, settings.webhook_port)

    logger.info("Bors is running.")

    # Keep running until cancelled
    stop_signal = asyncio.Event()
    try:
        await stop_signal.wait()
    except asyncio.CancelledError:
        pass
    finally:
        # Graceful shutdown
        await runner.cleanup()
        await process.stop()
