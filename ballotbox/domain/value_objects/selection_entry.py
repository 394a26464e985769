"""Per-position selection value object."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SelectionStatus(Enum):
    """State of one position on the ballot."""

    UNSET = "unset"
    SELECTED = "selected"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SelectionEntry:
    """What the voter has done for one position.

    ``candidate_id`` is set iff ``status`` is ``SELECTED``.
    """

    status: SelectionStatus = SelectionStatus.UNSET
    candidate_id: int | None = None

    def __post_init__(self) -> None:
        if (self.status is SelectionStatus.SELECTED) != (self.candidate_id is not None):
            raise ValueError(
                f"candidate_id must be set only for a selected entry: {self!r}"
            )

    @classmethod
    def unset(cls) -> SelectionEntry:
        return cls()

    @classmethod
    def selected(cls, candidate_id: int) -> SelectionEntry:
        return cls(SelectionStatus.SELECTED, candidate_id)

    @classmethod
    def skipped(cls) -> SelectionEntry:
        return cls(SelectionStatus.SKIPPED)

    @property
    def is_unset(self) -> bool:
        return self.status is SelectionStatus.UNSET

    @property
    def is_selected(self) -> bool:
        return self.status is SelectionStatus.SELECTED

    @property
    def is_skipped(self) -> bool:
        return self.status is SelectionStatus.SKIPPED

    @property
    def is_addressed(self) -> bool:
        """Chosen or skipped."""
        return not self.is_unset
