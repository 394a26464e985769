"""Object factories."""

from ballotbox.interfaces.factories.ballot_session_factory import BallotSessionFactory


__all__ = ["BallotSessionFactory"]
