"""Ballot session factory.

Wires the ballot store, catalog, submission guard and controller. The store is
built once and injected everywhere it is needed.
"""

import logging

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ballotbox.application.services.candidate_catalog import CandidateCatalog
from ballotbox.application.services.submission_guard import SubmissionGuard, utc_now
from ballotbox.application.usecases.ballot_session_controller import (
    BallotSessionController,
)
from ballotbox.common.logging import configure_logging
from ballotbox.domain.repositories.ballot_store import BallotStore
from ballotbox.infrastructure.config.async_database import AsyncDatabase
from ballotbox.infrastructure.config.settings import Settings, get_settings
from ballotbox.infrastructure.persistence.ballot_store_impl import BallotStoreImpl
from ballotbox.infrastructure.persistence.sqlalchemy_session_adapter import (
    SQLAlchemySessionAdapter,
)


logger = logging.getLogger(__name__)


class BallotSessionFactory:
    """Builds ballot session objects from settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._database: AsyncDatabase | None = None
        configure_logging(self.settings.log_level, self.settings.log_json)

    @property
    def database(self) -> AsyncDatabase:
        """Database manager shared by every session this factory opens."""
        if self._database is None:
            self._database = AsyncDatabase(self.settings)
        return self._database

    def create_store(self, session: AsyncSession) -> BallotStore:
        """Create the SQLAlchemy ballot store for a database session."""
        return BallotStoreImpl(
            SQLAlchemySessionAdapter(session),
            deadline_key=self.settings.deadline_key,
        )

    @staticmethod
    def create_controller(
        ballot_store: BallotStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> BallotSessionController:
        """Create a controller whose collaborators share one store.

        Args:
            ballot_store: Store used by the catalog and the guard
            clock: Current time provider

        Returns:
            Controller in the ``Loading`` state, ready for ``start()``
        """
        logger.info("Creating ballot session controller")
        return BallotSessionController(
            ballot_store,
            catalog=CandidateCatalog(ballot_store),
            guard=SubmissionGuard(ballot_store, clock=clock),
            clock=clock,
        )

    @asynccontextmanager
    async def open_session(
        self, database: AsyncDatabase | None = None
    ) -> AsyncGenerator[BallotSessionController]:
        """Open a database session and yield a controller bound to it.

        Args:
            database: Database manager (built from settings if omitted)

        Yields:
            BallotSessionController
        """
        database = database or self.database
        async with database.get_session() as session:
            yield self.create_controller(self.create_store(session))

    async def dispose(self) -> None:
        """Release the engines opened through ``database``."""
        if self._database is not None:
            logger.info("Disposing ballot database engines")
            await self._database.dispose()
            self._database = None
