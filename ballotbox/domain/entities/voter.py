"""Voter entity."""

from ballotbox.domain.entities.base import BaseEntity


class Voter(BaseEntity):
    """An authenticated voter.

    The ``has_voted`` flag is a snapshot taken at session start and may be
    stale by the time the ballot is submitted.
    """

    def __init__(self, id: int, name: str, has_voted: bool = False) -> None:
        super().__init__(id)
        self.name = name
        self.has_voted = has_voted

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Voter(id={self.id}, name={self.name!r}, has_voted={self.has_voted})"
