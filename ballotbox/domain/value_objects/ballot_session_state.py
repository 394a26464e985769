"""Ballot session state: one tagged union value per session.

UI layers read the current state and subscribe to transitions; they never hold
selection or page state of their own.
"""

from dataclasses import dataclass

from ballotbox.domain.value_objects.submission_record import SubmissionRecord


@dataclass(frozen=True)
class Loading:
    """Catalog load in progress."""


@dataclass(frozen=True)
class NoBallot:
    """The catalog is empty. Terminal."""


@dataclass(frozen=True)
class AlreadyVoted:
    """The voter had already voted when the session started. Terminal."""


@dataclass(frozen=True)
class Answering:
    """A question page is shown."""

    page: int
    position: str


@dataclass(frozen=True)
class Reviewing:
    """The review page is shown."""

    page: int


@dataclass(frozen=True)
class Submitting:
    """A submission is in flight."""


@dataclass(frozen=True)
class Submitted:
    """Ballot recorded. Terminal."""

    record: SubmissionRecord


@dataclass(frozen=True)
class Failed:
    """Last operation failed.

    Attributes:
        kind: Error kind (see ``BallotError.kind``)
        message: Human-readable message for the voter
        recoverable: False when no further action is allowed
        return_page: Page shown again once the failure is acknowledged
    """

    kind: str
    message: str
    recoverable: bool = True
    return_page: int | None = None


@dataclass(frozen=True)
class Closed:
    """The voter logged out. Terminal."""


BallotSessionState = (
    Loading
    | NoBallot
    | AlreadyVoted
    | Answering
    | Reviewing
    | Submitting
    | Submitted
    | Failed
    | Closed
)

TERMINAL_STATES = (NoBallot, AlreadyVoted, Submitted, Closed)


def is_terminal(state: BallotSessionState) -> bool:
    """Return True when no further voter action can change the state."""
    if isinstance(state, Failed):
        return not state.recoverable
    return isinstance(state, TERMINAL_STATES)
