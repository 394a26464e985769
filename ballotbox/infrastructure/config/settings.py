"""Application settings.

Values come from environment variables. A ``.env`` file found by
``find_env_file`` is loaded first without overriding variables already set.
"""

import os

from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ballotbox.infrastructure.exceptions import ConfigurationError


def find_env_file(start: Path | None = None) -> Path | None:
    """Search ``start`` and its parents for a ``.env`` file."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


ENV_FILE_PATH = find_env_file()


class Settings(BaseModel):
    """Ballot session settings."""

    database_url: str | None = Field(default=None)
    deadline_key: str = Field(default="voting_deadline")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        if ENV_FILE_PATH is not None:
            load_dotenv(ENV_FILE_PATH, override=False)
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            deadline_key=os.getenv("BALLOT_DEADLINE_KEY", "voting_deadline"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=os.getenv("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        )

    def get_database_url(self) -> str:
        """Return the database URL.

        Raises:
            ConfigurationError: If DATABASE_URL is not set
        """
        if not self.database_url:
            raise ConfigurationError("DATABASE_URL is not set")
        return self.database_url


settings = Settings.from_env()


def get_settings() -> Settings:
    return settings


def reload_settings() -> Settings:
    """Re-read the environment and replace the module-level settings."""
    global settings
    settings = Settings.from_env()
    return settings
