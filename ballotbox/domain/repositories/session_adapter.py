"""Session adapter port.

Lets repositories run statements without depending on a concrete SQLAlchemy
session type.
"""

from abc import ABC, abstractmethod
from typing import Any


class ISessionAdapter(ABC):
    """Async database session interface."""

    @abstractmethod
    async def execute(self, statement: Any, params: Any = None) -> Any:
        """Execute a statement.

        Args:
            statement: SQL statement (typically ``sqlalchemy.text``)
            params: Bound parameters, a dict or a list of dicts for executemany

        Returns:
            Result object
        """
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Commit the current transaction."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the current transaction."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the session."""
        pass
