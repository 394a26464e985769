"""Submission record value objects shown to the voter after submitting."""

from dataclasses import dataclass
from datetime import datetime


OUTCOME_VOTED = "Voted"
OUTCOME_ABSTAINED = "Abstained"


@dataclass(frozen=True)
class PositionOutcome:
    """Outcome of one position in a submitted ballot."""

    position: str
    outcome: str
    candidate_id: int | None = None
    candidate_name: str | None = None

    @property
    def voted(self) -> bool:
        return self.outcome == OUTCOME_VOTED


@dataclass(frozen=True)
class SubmissionRecord:
    """Immutable receipt of a successful submission.

    Built from the in-memory selections at the moment of success, never
    re-read from storage.
    """

    voter_id: int
    voter_name: str
    outcomes: tuple[PositionOutcome, ...]
    submitted_at: datetime

    @property
    def vote_count(self) -> int:
        return sum(1 for o in self.outcomes if o.voted)

    def outcome_for(self, position: str) -> PositionOutcome | None:
        for outcome in self.outcomes:
            if outcome.position == position:
                return outcome
        return None
