"""Candidate catalog service."""

from dataclasses import dataclass

from ballotbox.common.logging import get_logger
from ballotbox.domain.entities.candidate import Candidate
from ballotbox.domain.exceptions import LoadError
from ballotbox.domain.repositories.ballot_store import BallotStore


logger = get_logger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Candidates and the positions derived from them.

    Positions are the distinct position labels in first-seen order, which is
    also the page order of the wizard.
    """

    candidates: tuple[Candidate, ...]
    positions: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.positions

    def candidates_for(self, position: str) -> list[Candidate]:
        return [c for c in self.candidates if c.position == position]

    def find_candidate(self, candidate_id: int | None) -> Candidate | None:
        if candidate_id is None:
            return None
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        return None


def derive_positions(candidates: list[Candidate]) -> list[str]:
    """Distinct position labels in first-seen order."""
    return list(dict.fromkeys(c.position for c in candidates))


class CandidateCatalog:
    """Loads the ballot definition and caches it for the session."""

    def __init__(self, ballot_store: BallotStore) -> None:
        """Initialize the catalog.

        Args:
            ballot_store: Store to read candidates from
        """
        self.ballot_store = ballot_store
        self._snapshot: CatalogSnapshot | None = None

    @property
    def snapshot(self) -> CatalogSnapshot | None:
        """Last loaded snapshot, None before the first successful load."""
        return self._snapshot

    async def load(self) -> CatalogSnapshot:
        """Fetch candidates and derive positions.

        Returns:
            Snapshot of the catalog; ``is_empty`` when there are no candidates

        Raises:
            LoadError: If the fetch fails or no returned row is usable
        """
        try:
            rows = await self.ballot_store.fetch_candidates()
        except Exception as e:
            logger.error("Failed to fetch candidates", error=str(e))
            raise LoadError(f"Error loading candidates: {e}") from e

        if rows is None:
            raise LoadError("Error loading candidates: no data returned")

        candidates = [c for c in rows if c.position and c.position.strip()]
        if len(candidates) < len(rows):
            logger.warning(
                "Ignoring candidates without a position",
                ignored=len(rows) - len(candidates),
            )
        if rows and not candidates:
            raise LoadError("Error loading candidates: no usable candidate rows")

        snapshot = CatalogSnapshot(
            candidates=tuple(candidates),
            positions=tuple(derive_positions(candidates)),
        )
        self._snapshot = snapshot
        logger.info(
            "Catalog loaded",
            candidates=len(snapshot.candidates),
            positions=len(snapshot.positions),
        )
        return snapshot
