"""
Application configuration using pydantic-settings.
All environment variables are validated and typed.
"""

import logging
import os
from pydantic_settings import BaseSettings
from pydantic import field_validator

from borsbot.models.github import GithubRepoName

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Required token (checked at startup)
    github_token: str = ""

    # Identity of the bot on the hosting platform
    bot_login: str = "bors"
    command_prefix: str = "@bors"

    # Repositories the bot operates on (comma/space separated "owner/name")
    repositories: str = ""

    # SQLite database file; in-memory store when unset
    database_path: str | None = None

    # Webhook
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 8080

    log_level: str = "INFO"

    @field_validator("database_path", mode="before")
    @classmethod
    def _normalize_database_path(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return str(value).strip().upper() or "INFO"

    @property
    def repository_names(self) -> list[GithubRepoName]:
        """Parse configured repositories, skipping malformed entries."""
        result: list[GithubRepoName] = []
        for token in self.repositories.replace(",", " ").split():
            try:
                name = GithubRepoName.parse(token)
            except ValueError:
                logger.warning(f"Ignoring malformed repository name {token!r}")
                continue
            if name not in result:
                result.append(name)
        return result

    @property
    def log_level_value(self) -> int:
        """Numeric logging level, INFO for unknown names."""
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.INFO

    model_config = {
        "env_file": os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env"),
        "env_file_encoding": "utf-8",
        "env_prefix": "BORS_",
        "extra": "ignore",
    }


# Singleton settings instance
settings = Settings()
