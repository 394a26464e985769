"""SQLAlchemy AsyncSession adapter for ISessionAdapter."""

from typing import Any

from sqlalchemy.engine.result import Result
from sqlalchemy.ext.asyncio import AsyncSession

from ballotbox.domain.repositories.session_adapter import ISessionAdapter


class SQLAlchemySessionAdapter(ISessionAdapter):
    """Adapter that wraps AsyncSession to provide the ISessionAdapter port."""

    def __init__(self, async_session: AsyncSession):
        """Initialize with an async session.

        Args:
            async_session: Asynchronous SQLAlchemy session to wrap
        """
        self._session = async_session

    async def execute(self, statement: Any, params: Any = None) -> Result[Any]:
        """Execute a statement asynchronously."""
        if params:
            return await self._session.execute(statement, params)
        return await self._session.execute(statement)

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def close(self) -> None:
        await self._session.close()
