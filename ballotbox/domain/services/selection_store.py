"""In-progress ballot selections."""

from collections.abc import Iterable, Iterator

from ballotbox.domain.exceptions import SelectionFrozenError, UnknownPositionError
from ballotbox.domain.value_objects.selection_entry import SelectionEntry


class SelectionStore:
    """Maps each position to an unset, chosen or skipped entry.

    Positions are the keys, so there is at most one entry per position. Counts
    are always derived from the entries.
    """

    def __init__(self) -> None:
        self._entries: dict[str, SelectionEntry] = {}
        self._initialized = False
        self._frozen = False

    def initialize(self, positions: Iterable[str]) -> None:
        """Reset every position to unset, discarding all selections.

        Args:
            positions: Positions in page order
        """
        self._entries = {position: SelectionEntry.unset() for position in positions}
        self._initialized = True
        self._frozen = False

    @property
    def positions(self) -> list[str]:
        return list(self._entries)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Make the selections read-only for the duration of a submission."""
        self._frozen = True

    def unfreeze(self) -> None:
        self._frozen = False

    def entry(self, position: str) -> SelectionEntry:
        self._check_position(position)
        return self._entries[position]

    def select(self, position: str, candidate_id: int) -> None:
        """Choose a candidate for a position, clearing any skip."""
        self._check_writable(position)
        self._entries[position] = SelectionEntry.selected(candidate_id)

    def skip(self, position: str) -> None:
        """Toggle the skip marker for a position.

        A skipped position goes back to unset. Anything else becomes skipped
        and loses its chosen candidate.
        """
        self._check_writable(position)
        if self._entries[position].is_skipped:
            self._entries[position] = SelectionEntry.unset()
        else:
            self._entries[position] = SelectionEntry.skipped()

    def is_complete(self, position: str) -> bool:
        """Return True if the position was chosen or skipped."""
        return self.entry(position).is_addressed

    def completion_count(self) -> int:
        return sum(1 for e in self._entries.values() if e.is_addressed)

    def selected_count(self) -> int:
        return sum(1 for e in self._entries.values() if e.is_selected)

    def first_unaddressed(self) -> str | None:
        for position, entry in self._entries.items():
            if entry.is_unset:
                return position
        return None

    def positions_without_candidate(self) -> list[str]:
        """Positions that are unset or skipped, in page order."""
        return [p for p, e in self._entries.items() if not e.is_selected]

    def items(self) -> Iterator[tuple[str, SelectionEntry]]:
        return iter(self._entries.items())

    def _check_position(self, position: str) -> None:
        if not self._initialized:
            raise RuntimeError("SelectionStore.initialize() has not been called")
        if position not in self._entries:
            raise UnknownPositionError(position)

    def _check_writable(self, position: str) -> None:
        self._check_position(position)
        if self._frozen:
            raise SelectionFrozenError(
                f"Selections are frozen while submitting; cannot change {position!r}"
            )
