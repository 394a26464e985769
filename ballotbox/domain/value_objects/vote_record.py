"""Vote record value object."""

from dataclasses import dataclass


@dataclass(frozen=True)
class VoteRecord:
    """One vote: a voter choosing a candidate for a position.

    The position is stored with the vote so that a voter can hold at most one
    vote per position.
    """

    voter_id: int
    candidate_id: int
    position: str
