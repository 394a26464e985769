"""Ballot store repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime

from ballotbox.domain.entities.candidate import Candidate
from ballotbox.domain.value_objects.vote_record import VoteRecord


class BallotStore(ABC):
    """Repository interface for the external ballot store.

    The store holds candidates, voters, settings and votes. The ballot session
    only needs these four operations. Implementations signal failure by
    raising; callers translate exceptions into domain errors.
    """

    @abstractmethod
    async def fetch_candidates(self) -> list[Candidate]:
        """Get all candidates.

        Returns:
            Candidates ordered by creation time ascending
        """
        pass

    @abstractmethod
    async def fetch_deadline(self) -> datetime | None:
        """Get the voting deadline.

        Returns:
            Deadline timestamp, or None when no deadline is configured
        """
        pass

    @abstractmethod
    async def insert_votes(self, votes: list[VoteRecord]) -> None:
        """Insert a batch of votes in one operation.

        Args:
            votes: Vote records to insert
        """
        pass

    @abstractmethod
    async def mark_voted(self, voter_id: int) -> None:
        """Set the voter's has_voted flag.

        Args:
            voter_id: Voter ID
        """
        pass
