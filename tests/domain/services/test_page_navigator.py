"""Tests for PageNavigator."""

import pytest

from ballotbox.domain.services.page_navigator import PageNavigator
from ballotbox.domain.services.selection_store import SelectionStore


POSITIONS = ["Best Speaker", "Best Dish"]


@pytest.fixture
def selection_store() -> SelectionStore:
    store = SelectionStore()
    store.initialize(POSITIONS)
    return store


@pytest.fixture
def navigator(selection_store: SelectionStore) -> PageNavigator:
    return PageNavigator(POSITIONS, selection_store)


class TestPageNavigator:
    """Tests for the wizard's navigation rules."""

    def test_initial_state(self, navigator: PageNavigator) -> None:
        assert navigator.current_page == 0
        assert navigator.page_count == 3
        assert navigator.current_position == "Best Speaker"
        assert navigator.is_first_page
        assert not navigator.is_review_page

    def test_cannot_advance_while_position_unset(
        self, navigator: PageNavigator
    ) -> None:
        assert navigator.can_advance() is False

        moved = navigator.next()

        assert moved is False
        assert navigator.current_page == 0

    @pytest.mark.parametrize("action", ["select", "skip"])
    def test_can_advance_once_position_addressed(
        self,
        navigator: PageNavigator,
        selection_store: SelectionStore,
        action: str,
    ) -> None:
        if action == "select":
            selection_store.select("Best Speaker", 1)
        else:
            selection_store.skip("Best Speaker")

        assert navigator.can_advance() is True
        assert navigator.next() is True
        assert navigator.current_position == "Best Dish"

    def test_can_advance_false_again_after_unskip(
        self, navigator: PageNavigator, selection_store: SelectionStore
    ) -> None:
        selection_store.skip("Best Speaker")
        selection_store.skip("Best Speaker")

        assert navigator.can_advance() is False

    def test_review_page_always_allows_advance_but_stays(
        self, navigator: PageNavigator
    ) -> None:
        navigator.jump_to(2)

        assert navigator.is_review_page
        assert navigator.current_position is None
        assert navigator.can_advance() is True
        assert navigator.next() is False
        assert navigator.current_page == 2

    def test_back_is_clamped_at_first_page(self, navigator: PageNavigator) -> None:
        assert navigator.back() is False
        assert navigator.current_page == 0

    def test_back_never_blocked_by_unset_positions(
        self, navigator: PageNavigator, selection_store: SelectionStore
    ) -> None:
        selection_store.select("Best Speaker", 1)
        navigator.next()

        assert navigator.can_advance() is False
        assert navigator.back() is True
        assert navigator.current_page == 0

    def test_jump_to_any_page_without_validation(
        self, navigator: PageNavigator
    ) -> None:
        navigator.jump_to(1)
        assert navigator.current_position == "Best Dish"

        navigator.jump_to(0)
        assert navigator.current_page == 0

    @pytest.mark.parametrize("page", [-1, 3, 10])
    def test_jump_to_invalid_page_raises(
        self, navigator: PageNavigator, page: int
    ) -> None:
        with pytest.raises(IndexError):
            navigator.jump_to(page)

    def test_progress(
        self, navigator: PageNavigator, selection_store: SelectionStore
    ) -> None:
        selection_store.select("Best Speaker", 1)
        selection_store.skip("Best Dish")
        navigator.next()

        progress = navigator.progress()

        assert progress.question_number == 2
        assert progress.page_count == 3
        assert progress.completed_count == 2
        assert progress.position_count == 2
        assert progress.selected_count == 1

    def test_review_unreachable_with_unset_position(
        self, navigator: PageNavigator, selection_store: SelectionStore
    ) -> None:
        """Repeated next() calls stop at the first unaddressed position."""
        selection_store.select("Best Speaker", 1)

        for _ in range(5):
            navigator.next()

        assert navigator.current_page == 1
        assert not navigator.is_review_page
