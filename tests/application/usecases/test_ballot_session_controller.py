"""Tests for BallotSessionController."""

import asyncio

import pytest
import pytest_asyncio

from ballotbox.application.usecases.ballot_session_controller import (
    ERROR_ALREADY_VOTED,
    ERROR_IN_FLIGHT,
    ERROR_NO_BALLOT,
    ERROR_SESSION_CLOSED,
    BallotSessionController,
)
from ballotbox.domain.exceptions import SelectionFrozenError, SessionStateError
from ballotbox.domain.value_objects.ballot_session_state import (
    AlreadyVoted,
    Answering,
    Closed,
    Failed,
    Loading,
    NoBallot,
    Reviewing,
    Submitted,
    Submitting,
)
from ballotbox.domain.value_objects.submission_record import OUTCOME_VOTED
from ballotbox.domain.value_objects.vote_record import VoteRecord
from tests.fixtures.ballot_factories import (
    PAST_DEADLINE,
    fixed_clock,
    make_store,
    make_voter,
)


def make_controller(store) -> BallotSessionController:
    return BallotSessionController(store, clock=fixed_clock())


def answer_and_review(controller: BallotSessionController) -> None:
    controller.select(1)
    controller.next()
    controller.select(4)
    controller.next()


class TestStart:
    """Tests for start."""

    @pytest.mark.asyncio
    async def test_start_enters_first_question(self) -> None:
        controller = make_controller(make_store())
        assert isinstance(controller.state, Loading)

        result = await controller.start(make_voter())

        assert result.success is True
        assert controller.state == Answering(page=0, position="Best Speaker")
        assert controller.positions == ("Best Speaker", "Best Dish")
        assert controller.selection_store.completion_count() == 0

    @pytest.mark.asyncio
    async def test_voter_who_already_voted_loads_nothing(self) -> None:
        store = make_store()
        controller = make_controller(store)

        result = await controller.start(make_voter(has_voted=True))

        assert result.success is False
        assert result.error_kind == ERROR_ALREADY_VOTED
        assert isinstance(controller.state, AlreadyVoted)
        store.fetch_candidates.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_catalog_is_no_ballot(self) -> None:
        controller = make_controller(make_store(candidates=[]))

        result = await controller.start(make_voter())

        assert result.error_kind == ERROR_NO_BALLOT
        assert isinstance(controller.state, NoBallot)

    @pytest.mark.asyncio
    async def test_deadline_passed_at_start_is_terminal(self) -> None:
        store = make_store(deadline=PAST_DEADLINE)
        controller = make_controller(store)

        result = await controller.start(make_voter())

        assert result.error_kind == "deadline_expired"
        assert controller.state == Failed(
            kind="deadline_expired",
            message=result.error_message,
            recoverable=False,
        )
        store.fetch_candidates.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_load_failure_can_be_retried(self) -> None:
        store = make_store()
        candidates = store.fetch_candidates.return_value
        store.fetch_candidates.side_effect = [RuntimeError("offline"), candidates]
        controller = make_controller(store)

        first = await controller.start(make_voter())
        assert first.error_kind == "load_error"
        assert isinstance(controller.state, Failed)
        assert controller.state.recoverable

        second = await controller.start(make_voter())
        assert second.success is True
        assert isinstance(controller.state, Answering)

    @pytest.mark.asyncio
    async def test_start_twice_is_rejected(self) -> None:
        controller = make_controller(make_store())
        await controller.start(make_voter())

        with pytest.raises(SessionStateError):
            await controller.start(make_voter())


class TestNavigation:
    """Tests for answering and navigating."""

    @pytest_asyncio.fixture
    async def controller(self) -> BallotSessionController:
        controller = make_controller(make_store())
        await controller.start(make_voter())
        return controller

    @pytest.mark.asyncio
    async def test_next_blocked_until_position_addressed(self, controller) -> None:
        assert controller.can_advance() is False
        assert controller.next() is False
        assert controller.state == Answering(page=0, position="Best Speaker")

        controller.select(2)

        assert controller.next() is True
        assert controller.state == Answering(page=1, position="Best Dish")

    @pytest.mark.asyncio
    async def test_select_rejects_candidate_from_other_position(
        self, controller
    ) -> None:
        with pytest.raises(ValueError):
            controller.select(3)

    @pytest.mark.asyncio
    async def test_question_page(self, controller) -> None:
        controller.select(2)

        page = controller.question_page()

        assert page.position == "Best Speaker"
        assert [c.name for c in page.candidates] == ["Amara Okafor", "Brian Mwale"]
        assert [c.is_selected for c in page.candidates] == [False, True]
        assert page.can_advance is True
        assert page.is_first_page is True

    @pytest.mark.asyncio
    async def test_review_rows_and_edit(self, controller) -> None:
        controller.select(1)
        controller.next()
        controller.skip()
        controller.next()
        assert controller.state == Reviewing(page=2)

        review = controller.review_page()
        assert [r.label for r in review.rows] == ["Amara Okafor", "Skipped"]
        assert review.can_submit is False

        controller.jump_to(review.rows[1].page)
        assert controller.state == Answering(page=1, position="Best Dish")

    @pytest.mark.asyncio
    async def test_progress_counts_skips_as_completed(self, controller) -> None:
        controller.select(1)
        controller.next()
        controller.skip()

        progress = controller.progress()

        assert progress.question_number == 2
        assert progress.completed_count == 2
        assert progress.selected_count == 1

    @pytest.mark.asyncio
    async def test_subscribers_see_every_transition(self, controller) -> None:
        seen = []
        unsubscribe = controller.subscribe(seen.append)

        controller.select(1)
        controller.next()
        controller.back()
        unsubscribe()
        controller.next()

        assert seen == [
            Answering(page=1, position="Best Dish"),
            Answering(page=0, position="Best Speaker"),
        ]

    @pytest.mark.asyncio
    async def test_submit_from_question_page_is_rejected(self, controller) -> None:
        with pytest.raises(SessionStateError):
            await controller.submit()


class TestEndToEnd:
    """Full sessions against a mocked ballot store."""

    @pytest.mark.asyncio
    async def test_happy_path_two_positions(self) -> None:
        store = make_store()
        controller = make_controller(store)
        voter = make_voter(voter_id=7)

        await controller.start(voter)
        answer_and_review(controller)
        assert isinstance(controller.state, Reviewing)
        assert controller.can_submit

        result = await controller.submit()

        assert result.success is True
        store.insert_votes.assert_awaited_once_with(
            [
                VoteRecord(voter_id=7, candidate_id=1, position="Best Speaker"),
                VoteRecord(voter_id=7, candidate_id=4, position="Best Dish"),
            ]
        )
        store.mark_voted.assert_awaited_once_with(7)
        assert isinstance(controller.state, Submitted)
        record = controller.state.record
        assert [o.position for o in record.outcomes] == ["Best Speaker", "Best Dish"]
        assert all(o.outcome == OUTCOME_VOTED for o in record.outcomes)
        assert voter.has_voted is True

    @pytest.mark.asyncio
    async def test_skip_then_select_before_review(self) -> None:
        store = make_store()
        controller = make_controller(store)

        await controller.start(make_voter())
        controller.select(1)
        controller.next()
        controller.skip()
        controller.next()
        controller.back()
        controller.select(3)
        controller.next()

        result = await controller.submit()

        assert result.success is True
        votes = store.insert_votes.await_args.args[0]
        assert len(votes) == 2
        assert {v.candidate_id for v in votes} == {1, 3}

    @pytest.mark.asyncio
    async def test_review_with_unset_position_is_unreachable(self) -> None:
        controller = make_controller(make_store())

        await controller.start(make_voter())
        controller.select(1)
        for _ in range(3):
            controller.next()

        assert controller.state == Answering(page=1, position="Best Dish")
        assert controller.selection_store.entry("Best Dish").is_unset
        assert not isinstance(controller.state, Reviewing)

    @pytest.mark.asyncio
    async def test_skipped_position_blocks_submit_and_returns_to_it(self) -> None:
        store = make_store()
        controller = make_controller(store)

        await controller.start(make_voter())
        controller.select(1)
        controller.next()
        controller.skip()
        controller.next()

        result = await controller.submit()

        assert result.success is False
        assert result.error_kind == "incomplete_ballot"
        assert controller.state.return_page == 1
        store.insert_votes.assert_not_awaited()
        store.mark_voted.assert_not_awaited()

        controller.select(4)
        assert controller.state == Answering(page=1, position="Best Dish")
        controller.next()
        assert (await controller.submit()).success is True

    @pytest.mark.asyncio
    async def test_deadline_expired_at_submit_is_terminal(self) -> None:
        store = make_store()
        controller = make_controller(store)
        await controller.start(make_voter())
        answer_and_review(controller)
        store.fetch_deadline.return_value = PAST_DEADLINE

        result = await controller.submit()

        assert result.error_kind == "deadline_expired"
        assert controller.state.recoverable is False
        store.insert_votes.assert_not_awaited()

        again = await controller.submit()
        assert again.error_kind == ERROR_SESSION_CLOSED
        assert store.fetch_deadline.await_count == 2

    @pytest.mark.asyncio
    async def test_store_failure_returns_to_review_and_retry_succeeds(self) -> None:
        store = make_store()
        store.insert_votes.side_effect = [RuntimeError("network down"), None]
        controller = make_controller(store)
        await controller.start(make_voter())
        answer_and_review(controller)

        failed = await controller.submit()
        assert failed.error_kind == "submission_error"
        assert controller.state.return_page == 2
        assert controller.can_edit

        controller.acknowledge_failure()
        assert controller.state == Reviewing(page=2)

        retried = await controller.submit()
        assert retried.success is True
        assert store.insert_votes.await_count == 2

    @pytest.mark.asyncio
    async def test_partial_commit_keeps_selections_frozen(self) -> None:
        store = make_store()
        store.mark_voted.side_effect = [RuntimeError("update failed"), None]
        controller = make_controller(store)
        await controller.start(make_voter())
        answer_and_review(controller)

        failed = await controller.submit()

        assert failed.votes_recorded is True
        assert controller.can_edit is False
        controller.acknowledge_failure()
        with pytest.raises(SelectionFrozenError):
            controller.select(2, position="Best Speaker")

        retried = await controller.submit()
        assert retried.success is True
        store.insert_votes.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_double_submit_while_in_flight_is_rejected(self) -> None:
        store = make_store()
        release = asyncio.Event()

        async def slow_insert(votes):
            await release.wait()

        store.insert_votes.side_effect = slow_insert
        controller = make_controller(store)
        await controller.start(make_voter())
        answer_and_review(controller)

        first = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        assert isinstance(controller.state, Submitting)
        assert controller.can_submit is False

        second = await controller.submit()
        assert second.error_kind == ERROR_IN_FLIGHT

        release.set()
        assert (await first).success is True
        store.insert_votes.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_discards_session(self) -> None:
        controller = make_controller(make_store())
        await controller.start(make_voter())
        controller.select(1)

        controller.close()

        assert isinstance(controller.state, Closed)
        assert controller.positions == ()
        with pytest.raises(SessionStateError):
            controller.next()

    @pytest.mark.asyncio
    async def test_close_during_load_stays_closed(self) -> None:
        store = make_store()
        candidates = store.fetch_candidates.return_value
        release = asyncio.Event()

        async def slow_fetch():
            await release.wait()
            return candidates

        store.fetch_candidates.side_effect = slow_fetch
        controller = make_controller(store)

        loading = asyncio.create_task(controller.start(make_voter()))
        await asyncio.sleep(0)
        assert isinstance(controller.state, Loading)

        controller.close()
        release.set()
        result = await loading

        assert result.success is False
        assert result.error_kind == ERROR_SESSION_CLOSED
        assert isinstance(controller.state, Closed)
        assert controller.positions == ()
        with pytest.raises(SessionStateError):
            controller.select(1)

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_leave_submission_in_flight(
        self,
    ) -> None:
        store = make_store()
        controller = make_controller(store)
        await controller.start(make_voter())
        answer_and_review(controller)

        def on_change(state) -> None:
            if isinstance(state, Submitting):
                raise RuntimeError("render failed")

        unsubscribe = controller.subscribe(on_change)
        with pytest.raises(RuntimeError):
            await controller.submit()
        unsubscribe()

        assert controller.is_submitting is False
        assert controller.can_submit is True
        store.insert_votes.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_page_dtos_report_frozen_selections(self) -> None:
        store = make_store()
        store.mark_voted.side_effect = RuntimeError("update failed")
        controller = make_controller(store)
        await controller.start(make_voter())
        controller.select(1)
        assert controller.question_page().can_edit is True
        controller.next()
        controller.select(4)
        controller.next()
        assert controller.review_page().can_edit is True

        await controller.submit()
        controller.acknowledge_failure()

        assert controller.review_page().can_edit is False
        controller.jump_to(0)
        assert controller.question_page().can_edit is False
