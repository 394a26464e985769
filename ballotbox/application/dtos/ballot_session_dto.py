"""DTOs for the ballot session.

Output DTOs are what UI layers render; they are rebuilt from the controller on
every read and never fed back into it.
"""

from dataclasses import dataclass, field

from ballotbox.domain.entities.candidate import Candidate
from ballotbox.domain.value_objects.selection_entry import SelectionEntry
from ballotbox.domain.value_objects.submission_record import SubmissionRecord


LABEL_SKIPPED = "Skipped"
LABEL_NOT_SELECTED = "Not selected"


# =============================================================================
# Output DTOs
# =============================================================================


@dataclass
class CandidateOutputItem:
    """A candidate option on a question page."""

    id: int | None
    name: str
    position: str
    photo_url: str | None
    is_selected: bool = False

    @classmethod
    def from_entity(
        cls, entity: Candidate, is_selected: bool = False
    ) -> "CandidateOutputItem":
        """Build the item from a candidate entity."""
        return cls(
            id=entity.id,
            name=entity.name,
            position=entity.position,
            photo_url=entity.photo_url,
            is_selected=is_selected,
        )


@dataclass
class QuestionPageOutputDto:
    """Contents of the current question page."""

    page: int
    position: str
    candidates: list[CandidateOutputItem]
    is_skipped: bool
    can_advance: bool
    is_first_page: bool
    can_edit: bool = True


@dataclass
class ReviewRowOutputItem:
    """One row of the review page."""

    position: str
    page: int
    label: str
    is_skipped: bool
    candidate_id: int | None = None

    @classmethod
    def from_entry(
        cls,
        position: str,
        page: int,
        entry: SelectionEntry,
        candidate: Candidate | None,
    ) -> "ReviewRowOutputItem":
        """Build the row from a selection entry and its chosen candidate."""
        if entry.is_skipped:
            label = LABEL_SKIPPED
        elif candidate is not None:
            label = candidate.name
        else:
            label = LABEL_NOT_SELECTED
        return cls(
            position=position,
            page=page,
            label=label,
            is_skipped=entry.is_skipped,
            candidate_id=entry.candidate_id,
        )


@dataclass
class ReviewPageOutputDto:
    """Contents of the review page."""

    page: int
    rows: list[ReviewRowOutputItem] = field(default_factory=list)
    can_submit: bool = False
    can_edit: bool = True


@dataclass
class StartSessionOutputDto:
    """Result of starting a ballot session."""

    success: bool
    error_kind: str | None = None
    error_message: str | None = None


@dataclass
class SubmitBallotOutputDto:
    """Result of a submission attempt."""

    success: bool
    record: SubmissionRecord | None = None
    error_kind: str | None = None
    error_message: str | None = None
    votes_recorded: bool = False
