"""Async database configuration and session management."""

import asyncio

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import ClassVar

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ballotbox.infrastructure.config.settings import Settings, get_settings


def to_async_url(database_url: str) -> str:
    """Swap a sync PostgreSQL driver for asyncpg."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


class AsyncDatabase:
    """Async database manager.

    Engines are cached per event loop so that sessions opened from different
    loops never share a connection pool.
    """

    _engines: ClassVar[dict[int, AsyncEngine]] = {}
    _session_makers: ClassVar[dict[int, async_sessionmaker[AsyncSession]]] = {}

    def __init__(self, settings: Settings | None = None):
        """Initialize async database manager.

        Args:
            settings: Settings to read DATABASE_URL from (module settings if omitted)
        """
        settings = settings or get_settings()
        self._async_url = to_async_url(settings.get_database_url())

    def _get_engine_and_session_maker(
        self,
    ) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
        try:
            loop_id = id(asyncio.get_running_loop())
        except RuntimeError:
            loop_id = 0

        if loop_id not in self._engines:
            engine = create_async_engine(self._async_url, echo=False)
            self._engines[loop_id] = engine
            self._session_makers[loop_id] = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )

        return self._engines[loop_id], self._session_makers[loop_id]

    @property
    def engine(self) -> AsyncEngine:
        engine, _ = self._get_engine_and_session_maker()
        return engine

    @property
    def async_session_maker(self) -> async_sessionmaker[AsyncSession]:
        _, session_maker = self._get_engine_and_session_maker()
        return session_maker

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession]:
        """Get an async database session.

        The ballot store commits its own writes; this context only rolls back
        on error and closes the session.

        Yields:
            AsyncSession: Database session
        """
        async with self.async_session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def dispose(self) -> None:
        """Dispose every cached engine."""
        for engine in list(self._engines.values()):
            await engine.dispose()
        self._engines.clear()
        self._session_makers.clear()
