"""Domain value objects."""

from ballotbox.domain.value_objects.ballot_session_state import (
    AlreadyVoted,
    Answering,
    BallotSessionState,
    Closed,
    Failed,
    Loading,
    NoBallot,
    Reviewing,
    Submitted,
    Submitting,
    is_terminal,
)
from ballotbox.domain.value_objects.selection_entry import (
    SelectionEntry,
    SelectionStatus,
)
from ballotbox.domain.value_objects.submission_record import (
    OUTCOME_ABSTAINED,
    OUTCOME_VOTED,
    PositionOutcome,
    SubmissionRecord,
)
from ballotbox.domain.value_objects.vote_record import VoteRecord


__all__ = [
    "AlreadyVoted",
    "Answering",
    "BallotSessionState",
    "Closed",
    "Failed",
    "Loading",
    "NoBallot",
    "Reviewing",
    "Submitted",
    "Submitting",
    "is_terminal",
    "SelectionEntry",
    "SelectionStatus",
    "OUTCOME_ABSTAINED",
    "OUTCOME_VOTED",
    "PositionOutcome",
    "SubmissionRecord",
    "VoteRecord",
]
