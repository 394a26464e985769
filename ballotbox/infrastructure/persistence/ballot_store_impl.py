"""Ballot store implementation using SQLAlchemy."""

import logging

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ballotbox.domain.entities.candidate import Candidate
from ballotbox.domain.repositories.ballot_store import BallotStore
from ballotbox.domain.repositories.session_adapter import ISessionAdapter
from ballotbox.domain.value_objects.vote_record import VoteRecord
from ballotbox.infrastructure.exceptions import DatabaseError, UpdateError


logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_KEY = "voting_deadline"


def _row_to_dict(row: Any) -> dict[str, Any]:
    if hasattr(row, "_asdict"):
        return row._asdict()  # type: ignore[attr-defined]
    if hasattr(row, "_mapping"):
        return dict(row._mapping)  # type: ignore[attr-defined]
    return dict(row)


def parse_deadline(value: Any) -> datetime | None:
    """Parse a stored deadline value.

    Args:
        value: ISO-8601 string or datetime; empty values mean no deadline

    Returns:
        Timezone-aware deadline (naive values are taken as UTC), or None

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        deadline = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        deadline = datetime.fromisoformat(raw)
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=UTC)
    return deadline


class BallotStoreImpl(BallotStore):
    """Ballot store over the ``candidates``, ``voters``, ``votes`` and
    ``settings`` tables."""

    def __init__(
        self,
        session: AsyncSession | ISessionAdapter,
        deadline_key: str = DEFAULT_DEADLINE_KEY,
    ):
        """Initialize the store with a database session.

        Args:
            session: AsyncSession or ISessionAdapter for database operations
            deadline_key: ``settings.key`` holding the voting deadline
        """
        self.session = session
        self.deadline_key = deadline_key

    async def fetch_candidates(self) -> list[Candidate]:
        """Get all candidates, oldest first.

        Returns:
            Candidates ordered by created_at ascending (id breaks ties)
        """
        try:
            query = text("""
                SELECT
                    id,
                    name,
                    position,
                    photo_url,
                    created_at
                FROM candidates
                ORDER BY created_at ASC, id ASC
            """)
            result = await self.session.execute(query)
            rows = result.fetchall()
            return [self._dict_to_entity(_row_to_dict(row)) for row in rows]

        except SQLAlchemyError as e:
            logger.error(f"Database error fetching candidates: {e}")
            raise DatabaseError(
                "Failed to fetch candidates", {"error": str(e)}
            ) from e

    async def fetch_deadline(self) -> datetime | None:
        """Get the voting deadline from the settings table.

        Returns:
            Deadline, or None when the setting is absent or empty
        """
        try:
            query = text("SELECT value FROM settings WHERE key = :key")
            result = await self.session.execute(query, {"key": self.deadline_key})
            row = result.first()
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching deadline: {e}")
            raise DatabaseError(
                "Failed to fetch voting deadline",
                {"key": self.deadline_key, "error": str(e)},
            ) from e

        if row is None:
            return None
        value = _row_to_dict(row).get("value")
        try:
            return parse_deadline(value)
        except ValueError as e:
            raise DatabaseError(
                "Invalid voting deadline value",
                {"key": self.deadline_key, "value": value},
            ) from e

    async def insert_votes(self, votes: list[VoteRecord]) -> None:
        """Insert the vote batch in one statement and commit.

        ``votes`` is unique on ``(voter_id, position)``, so any second batch
        from the same voter is rejected, whichever candidates it names.

        Args:
            votes: Vote records to insert

        Raises:
            DatabaseError: If the batch is rejected or the insert fails
        """
        if not votes:
            return
        try:
            query = text("""
                INSERT INTO votes (voter_id, candidate_id, position, created_at)
                VALUES (:voter_id, :candidate_id, :position, :created_at)
            """)
            now = datetime.now(UTC)
            params = [
                {
                    "voter_id": vote.voter_id,
                    "candidate_id": vote.candidate_id,
                    "position": vote.position,
                    "created_at": now,
                }
                for vote in votes
            ]
            await self.session.execute(query, params)
            await self.session.commit()

        except IntegrityError as e:
            logger.warning(f"Duplicate or invalid vote batch rejected: {e}")
            await self.session.rollback()
            raise DatabaseError(
                "Vote batch rejected by the database",
                {"voter_ids": sorted({v.voter_id for v in votes}), "error": str(e)},
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Database error inserting votes: {e}")
            await self.session.rollback()
            raise DatabaseError(
                "Failed to insert votes", {"count": len(votes), "error": str(e)}
            ) from e

    async def mark_voted(self, voter_id: int) -> None:
        """Set has_voted for a voter and commit.

        Args:
            voter_id: Voter ID

        Raises:
            UpdateError: If no voter has this ID
        """
        try:
            query = text("""
                UPDATE voters
                SET has_voted = TRUE
                WHERE id = :id
            """)
            result = await self.session.execute(query, {"id": voter_id})
            await self.session.commit()

        except SQLAlchemyError as e:
            logger.error(f"Database error marking voter as voted: {e}")
            await self.session.rollback()
            raise DatabaseError(
                "Failed to mark voter as voted", {"id": voter_id, "error": str(e)}
            ) from e

        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise UpdateError(f"Voter with ID {voter_id} not found")

    def _dict_to_entity(self, data: dict[str, Any]) -> Candidate:
        """Convert dictionary to entity.

        Args:
            data: Dictionary with candidate columns

        Returns:
            Candidate entity
        """
        return Candidate(
            id=data.get("id"),
            name=data["name"],
            position=data["position"],
            photo_url=data.get("photo_url"),
            created_at=data.get("created_at"),
        )
