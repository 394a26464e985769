"""Domain exceptions for the ballot session.

``BallotError`` subclasses are user-facing failures: they carry a message that
can be shown to the voter as-is. The remaining exceptions signal programming
errors and are never converted into session state.
"""

from collections.abc import Sequence


class BallotError(Exception):
    """Base class for failures surfaced to the voter."""

    #: Stable identifier used in output DTOs and session state
    kind: str = "ballot_error"

    #: Whether the voter may retry after this failure
    recoverable: bool = True

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class LoadError(BallotError):
    """Ballot definition could not be loaded."""

    kind = "load_error"


class DeadlineExpired(BallotError):
    """The voting deadline has passed. Terminal for the session."""

    kind = "deadline_expired"
    recoverable = False

    def __init__(self, message: str = "Voting has ended. The deadline has passed."):
        super().__init__(message)


class IncompleteBallot(BallotError):
    """One or more positions have no chosen candidate."""

    kind = "incomplete_ballot"

    def __init__(self, missing_positions: Sequence[str]) -> None:
        self.missing_positions = tuple(missing_positions)
        super().__init__(
            "Please complete all positions before submitting. Remaining: "
            + ", ".join(self.missing_positions)
        )


class SubmissionError(BallotError):
    """Store failure while submitting the ballot.

    Attributes:
        stage: Step that failed (``fetch_deadline``, ``insert_votes``,
            ``mark_voted``)
        votes_recorded: True when the vote batch was already inserted
    """

    kind = "submission_error"

    def __init__(self, message: str, stage: str, votes_recorded: bool = False):
        super().__init__(message)
        self.stage = stage
        self.votes_recorded = votes_recorded


class UnknownPositionError(LookupError):
    """A position outside the loaded catalog was referenced."""

    def __init__(self, position: str) -> None:
        super().__init__(f"Unknown position: {position!r}")
        self.position = position


class SelectionFrozenError(RuntimeError):
    """Selections were mutated while a submission owns them."""


class SessionStateError(RuntimeError):
    """An action was invoked in a session state that does not allow it."""
