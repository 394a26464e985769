"""Candidate entity."""

from datetime import datetime
from typing import Any

from ballotbox.domain.entities.base import BaseEntity


class Candidate(BaseEntity):
    """A candidate standing for one position.

    Candidates are loaded once per session and never modified afterwards;
    attribute assignment after construction raises ``AttributeError``.
    """

    def __init__(
        self,
        name: str,
        position: str,
        photo_url: str | None = None,
        created_at: datetime | None = None,
        id: int | None = None,
    ) -> None:
        """Initialize the candidate.

        Args:
            name: Display name
            position: Position label the candidate stands for
            photo_url: Portrait reference
            created_at: Creation timestamp, used for catalog ordering
            id: Candidate ID
        """
        super().__init__(id)
        self.name = name
        self.position = position
        self.photo_url = photo_url
        self.created_at = created_at
        self._sealed = True

    def __setattr__(self, key: str, value: Any) -> None:
        if getattr(self, "_sealed", False):
            raise AttributeError(f"Candidate is immutable: cannot set {key!r}")
        super().__setattr__(key, value)

    def __str__(self) -> str:
        return f"{self.name} ({self.position})"

    def __repr__(self) -> str:
        return (
            f"Candidate(id={self.id}, name={self.name!r}, "
            f"position={self.position!r})"
        )
