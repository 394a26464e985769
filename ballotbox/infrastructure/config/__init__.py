"""Configuration module for ballotbox."""

from ballotbox.infrastructure.config.async_database import AsyncDatabase, to_async_url
from ballotbox.infrastructure.config.settings import (
    ENV_FILE_PATH,
    Settings,
    find_env_file,
    get_settings,
    reload_settings,
)


__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    "find_env_file",
    "ENV_FILE_PATH",
    # Async database
    "AsyncDatabase",
    "to_async_url",
]
