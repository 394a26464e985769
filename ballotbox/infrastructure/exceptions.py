"""Infrastructure layer exceptions."""

from typing import Any


class InfrastructureError(Exception):
    """Base class for infrastructure failures.

    Args:
        message: Error description
        details: Context for logging (IDs, the underlying error, ...)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class DatabaseError(InfrastructureError):
    """A database operation failed."""


class UpdateError(DatabaseError):
    """An update matched no row."""


class ConfigurationError(InfrastructureError):
    """Settings are missing or invalid."""
