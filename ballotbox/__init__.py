"""ballotbox: single-ballot voting session controller."""

__version__ = "0.1.0"
