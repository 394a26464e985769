"""Ballot submission service.

Validates the deadline and completeness of a ballot, then commits it to the
ballot store in two writes: the vote batch, then the voter's has_voted flag.
There is no compensating rollback. If the second write fails the votes stay
recorded and the voter stays unmarked; the store is trusted to reject a
second batch for the same voter.
"""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from ballotbox.common.logging import get_logger
from ballotbox.domain.entities.candidate import Candidate
from ballotbox.domain.entities.voter import Voter
from ballotbox.domain.exceptions import (
    DeadlineExpired,
    IncompleteBallot,
    SubmissionError,
)
from ballotbox.domain.repositories.ballot_store import BallotStore
from ballotbox.domain.services.selection_store import SelectionStore
from ballotbox.domain.value_objects.submission_record import (
    OUTCOME_ABSTAINED,
    OUTCOME_VOTED,
    PositionOutcome,
    SubmissionRecord,
)
from ballotbox.domain.value_objects.vote_record import VoteRecord


logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def deadline_passed(deadline: datetime | None, now: datetime) -> bool:
    """Return True if ``now`` is strictly after ``deadline``.

    Naive timestamps are treated as UTC.
    """
    if deadline is None:
        return False
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now > deadline


class SubmissionGuard:
    """Performs the validated two-step commit of a ballot."""

    def __init__(
        self,
        ballot_store: BallotStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the guard.

        Args:
            ballot_store: Store receiving the writes
            clock: Returns the current time; injectable for tests
        """
        self.ballot_store = ballot_store
        self.clock = clock
        # Voters whose vote batch was inserted but who are not yet marked
        self._recorded_voters: set[int] = set()

    async def check_deadline(self) -> None:
        """Fetch the deadline and fail if it has passed.

        Raises:
            DeadlineExpired: If the current time is after the deadline
            SubmissionError: If the deadline cannot be fetched
        """
        try:
            deadline = await self.ballot_store.fetch_deadline()
        except Exception as e:
            logger.error("Failed to fetch voting deadline", error=str(e))
            raise SubmissionError(
                f"Error checking voting deadline: {e}", stage="fetch_deadline"
            ) from e
        if deadline_passed(deadline, self.clock()):
            logger.info("Voting deadline has passed", deadline=str(deadline))
            raise DeadlineExpired()

    def build_votes(
        self, voter: Voter, selection_store: SelectionStore, positions: Sequence[str]
    ) -> list[VoteRecord]:
        """Build one vote per position.

        Raises:
            IncompleteBallot: If any position has no chosen candidate
        """
        missing = selection_store.positions_without_candidate()
        if missing:
            raise IncompleteBallot(missing)
        return [
            VoteRecord(
                voter_id=voter.id,
                candidate_id=selection_store.entry(position).candidate_id,
                position=position,
            )
            for position in positions
        ]

    async def submit(
        self,
        voter: Voter,
        selection_store: SelectionStore,
        positions: Sequence[str],
        candidates: Sequence[Candidate] = (),
    ) -> SubmissionRecord:
        """Validate and commit the ballot.

        The selections are frozen for the whole call. They are unfrozen again
        only when the submission fails before anything was written.

        Args:
            voter: Voter casting the ballot
            selection_store: Current selections
            positions: Positions in page order
            candidates: Catalog candidates, used for names in the record

        Returns:
            Receipt of the submission

        Raises:
            DeadlineExpired: Deadline passed; nothing written
            IncompleteBallot: A position lacks a candidate; nothing written
            SubmissionError: Store failure; ``votes_recorded`` tells whether
                the vote batch is already stored
        """
        selection_store.freeze()
        votes_recorded = voter.id in self._recorded_voters
        try:
            await self.check_deadline()
            votes = self.build_votes(voter, selection_store, positions)

            if votes_recorded:
                logger.warning(
                    "Vote batch already recorded; retrying mark_voted only",
                    voter_id=voter.id,
                )
            else:
                try:
                    await self.ballot_store.insert_votes(votes)
                except Exception as e:
                    logger.error(
                        "Failed to insert votes", voter_id=voter.id, error=str(e)
                    )
                    raise SubmissionError(
                        f"Error submitting vote: {e}", stage="insert_votes"
                    ) from e
                votes_recorded = True
                self._recorded_voters.add(voter.id)

            try:
                await self.ballot_store.mark_voted(voter.id)
            except Exception as e:
                logger.warning(
                    "Votes recorded but voter not marked as voted",
                    voter_id=voter.id,
                    error=str(e),
                )
                raise SubmissionError(
                    f"Error submitting vote: {e}",
                    stage="mark_voted",
                    votes_recorded=True,
                ) from e
        except Exception:
            if not votes_recorded:
                selection_store.unfreeze()
            raise

        self._recorded_voters.discard(voter.id)
        record = self._build_record(voter, selection_store, positions, candidates)
        logger.info("Ballot submitted", voter_id=voter.id, votes=len(votes))
        return record

    def _build_record(
        self,
        voter: Voter,
        selection_store: SelectionStore,
        positions: Sequence[str],
        candidates: Sequence[Candidate],
    ) -> SubmissionRecord:
        names = {c.id: c.name for c in candidates}
        outcomes = []
        for position in positions:
            entry = selection_store.entry(position)
            if entry.is_selected:
                outcomes.append(
                    PositionOutcome(
                        position=position,
                        outcome=OUTCOME_VOTED,
                        candidate_id=entry.candidate_id,
                        candidate_name=names.get(entry.candidate_id),
                    )
                )
            else:
                outcomes.append(
                    PositionOutcome(position=position, outcome=OUTCOME_ABSTAINED)
                )
        return SubmissionRecord(
            voter_id=voter.id,
            voter_name=voter.name,
            outcomes=tuple(outcomes),
            submitted_at=self.clock(),
        )
