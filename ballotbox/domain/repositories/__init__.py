"""Repository interfaces."""

from ballotbox.domain.repositories.ballot_store import BallotStore
from ballotbox.domain.repositories.session_adapter import ISessionAdapter


__all__ = ["BallotStore", "ISessionAdapter"]
