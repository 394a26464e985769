"""Linear wizard over the ballot's question pages and the review page."""

from dataclasses import dataclass

from ballotbox.domain.services.selection_store import SelectionStore


@dataclass(frozen=True)
class Progress:
    """Progress figures shown above every page."""

    question_number: int
    page_count: int
    completed_count: int
    position_count: int
    selected_count: int


class PageNavigator:
    """Drives the wizard over ``len(positions) + 1`` pages.

    Pages ``0..n-1`` ask one position each; page ``n`` is the review page.
    Moving forward past a question page requires the position to be chosen
    or skipped. Moving back and jumping from the review page are never
    blocked.
    """

    def __init__(self, positions: list[str], selection_store: SelectionStore):
        """Initialize the navigator on page 0.

        Args:
            positions: Positions in page order
            selection_store: Selections consulted by the advance gate
        """
        self._positions = list(positions)
        self._selection_store = selection_store
        self._current_page = 0

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def page_count(self) -> int:
        return len(self._positions) + 1

    @property
    def review_page(self) -> int:
        return len(self._positions)

    @property
    def is_review_page(self) -> bool:
        return self._current_page == self.review_page

    @property
    def is_first_page(self) -> bool:
        return self._current_page == 0

    @property
    def current_position(self) -> str | None:
        """Position asked on the current page, None on the review page."""
        if self.is_review_page:
            return None
        return self._positions[self._current_page]

    def can_advance(self) -> bool:
        position = self.current_position
        if position is None:
            return True
        return self._selection_store.is_complete(position)

    def next(self) -> bool:
        """Advance one page if allowed.

        Returns:
            True if the page changed
        """
        if not self.can_advance() or self.is_review_page:
            return False
        self._current_page += 1
        return True

    def back(self) -> bool:
        if self._current_page == 0:
            return False
        self._current_page -= 1
        return True

    def jump_to(self, page_index: int) -> None:
        """Go to any page without re-validating earlier pages.

        Raises:
            IndexError: If ``page_index`` is not a page of this ballot
        """
        if not 0 <= page_index <= self.review_page:
            raise IndexError(
                f"Page {page_index} out of range 0..{self.review_page}"
            )
        self._current_page = page_index

    def page_of(self, position: str) -> int:
        return self._positions.index(position)

    def progress(self) -> Progress:
        return Progress(
            question_number=self._current_page + 1,
            page_count=self.page_count,
            completed_count=self._selection_store.completion_count(),
            position_count=len(self._positions),
            selected_count=self._selection_store.selected_count(),
        )
