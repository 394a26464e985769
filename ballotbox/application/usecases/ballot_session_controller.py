"""Ballot session use case.

One controller drives one voter's session: load the catalog, answer each
position, review, submit. The session state is a single value
(``BallotSessionState``) owned here; UI layers read it and subscribe to
transitions.
"""

from collections.abc import Callable
from datetime import datetime

from ballotbox.application.dtos.ballot_session_dto import (
    CandidateOutputItem,
    QuestionPageOutputDto,
    ReviewPageOutputDto,
    ReviewRowOutputItem,
    StartSessionOutputDto,
    SubmitBallotOutputDto,
)
from ballotbox.application.services.candidate_catalog import (
    CandidateCatalog,
    CatalogSnapshot,
)
from ballotbox.application.services.submission_guard import SubmissionGuard, utc_now
from ballotbox.common.logging import get_logger
from ballotbox.domain.entities.voter import Voter
from ballotbox.domain.exceptions import (
    BallotError,
    IncompleteBallot,
    LoadError,
    SessionStateError,
    SubmissionError,
)
from ballotbox.domain.repositories.ballot_store import BallotStore
from ballotbox.domain.services.page_navigator import PageNavigator, Progress
from ballotbox.domain.services.selection_store import SelectionStore
from ballotbox.domain.value_objects.ballot_session_state import (
    AlreadyVoted,
    Answering,
    BallotSessionState,
    Closed,
    Failed,
    Loading,
    NoBallot,
    Reviewing,
    Submitted,
    Submitting,
    is_terminal,
)


logger = get_logger(__name__)

StateListener = Callable[[BallotSessionState], None]

ERROR_ALREADY_VOTED = "already_voted"
ERROR_NO_BALLOT = "no_ballot"
ERROR_IN_FLIGHT = "submission_in_flight"
ERROR_SESSION_CLOSED = "session_closed"

MESSAGE_ALREADY_VOTED = (
    "You have already voted. You cannot vote again in this election."
)
MESSAGE_NO_BALLOT = "No candidates are available for voting at this time."


class BallotSessionController:
    """State machine for a single voter's ballot session.

    ``Loading -> Answering(0) -> ... -> Reviewing -> Submitting ->
    Submitted | Failed``. Recoverable failures return to the review page (or
    to the first position without a candidate); ``DeadlineExpired`` is
    terminal.
    """

    def __init__(
        self,
        ballot_store: BallotStore,
        catalog: CandidateCatalog | None = None,
        guard: SubmissionGuard | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the controller.

        Args:
            ballot_store: Store shared by the catalog and the guard
            catalog: Catalog service (built from the store when omitted)
            guard: Submission service (built from the store when omitted)
            clock: Current time provider
        """
        self.catalog = catalog or CandidateCatalog(ballot_store)
        self.guard = guard or SubmissionGuard(ballot_store, clock=clock)
        self.selection_store = SelectionStore()
        self.voter: Voter | None = None
        self._snapshot: CatalogSnapshot | None = None
        self._navigator: PageNavigator | None = None
        self._state: BallotSessionState = Loading()
        self._listeners: list[StateListener] = []
        self._started = False
        self._in_flight = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> BallotSessionState:
        return self._state

    @property
    def positions(self) -> tuple[str, ...]:
        return self._snapshot.positions if self._snapshot else ()

    @property
    def navigator(self) -> PageNavigator:
        if self._navigator is None:
            raise SessionStateError("No ballot is loaded")
        return self._navigator

    @property
    def is_submitting(self) -> bool:
        return self._in_flight

    @property
    def can_edit(self) -> bool:
        """False once a submission owns the selections (or the session ended)."""
        return (
            self._navigator is not None
            and not self.selection_store.is_frozen
            and not is_terminal(self._state)
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called after every state change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: BallotSessionState) -> None:
        if state == self._state:
            return
        logger.debug(
            "Session state changed",
            previous=type(self._state).__name__,
            current=type(state).__name__,
        )
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _sync_page_state(self) -> None:
        navigator = self.navigator
        if navigator.is_review_page:
            self._set_state(Reviewing(page=navigator.current_page))
        else:
            self._set_state(
                Answering(
                    page=navigator.current_page,
                    position=navigator.current_position or "",
                )
            )

    def _fail(self, error: BallotError, return_page: int | None = None) -> None:
        self._set_state(
            Failed(
                kind=error.kind,
                message=error.message,
                recoverable=error.recoverable,
                return_page=return_page,
            )
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def start(self, voter: Voter) -> StartSessionOutputDto:
        """Start the session for an authenticated voter.

        May be called again after a load failure to retry.
        """
        if self._started and not self._is_load_failure():
            raise SessionStateError("Session already started")

        self.voter = voter
        self._started = True
        self._set_state(Loading())

        if voter.has_voted:
            logger.info("Voter has already voted", voter_id=voter.id)
            self._set_state(AlreadyVoted())
            return StartSessionOutputDto(
                success=False,
                error_kind=ERROR_ALREADY_VOTED,
                error_message=MESSAGE_ALREADY_VOTED,
            )

        try:
            await self.guard.check_deadline()
            snapshot = await self.catalog.load()
        except BallotError as e:
            error = LoadError(e.message) if isinstance(e, SubmissionError) else e
            if self._load_abandoned():
                return self._abandoned_start()
            self._fail(error)
            return self._start_failure(error)

        # close() may have run while the load was suspended
        if self._load_abandoned():
            return self._abandoned_start()

        if snapshot.is_empty:
            self._set_state(NoBallot())
            return StartSessionOutputDto(
                success=False, error_kind=ERROR_NO_BALLOT, error_message=MESSAGE_NO_BALLOT
            )

        self._snapshot = snapshot
        self.selection_store.initialize(snapshot.positions)
        self._navigator = PageNavigator(list(snapshot.positions), self.selection_store)
        self._sync_page_state()
        logger.info(
            "Ballot session started",
            voter_id=voter.id,
            positions=len(snapshot.positions),
        )
        return StartSessionOutputDto(success=True)

    def _is_load_failure(self) -> bool:
        state = self._state
        return (
            isinstance(state, Failed)
            and state.recoverable
            and state.kind == LoadError.kind
        )

    def _load_abandoned(self) -> bool:
        return not isinstance(self._state, Loading)

    def _abandoned_start(self) -> StartSessionOutputDto:
        logger.info(
            "Session left Loading before the catalog arrived; discarding it",
            state=type(self._state).__name__,
        )
        return StartSessionOutputDto(
            success=False,
            error_kind=ERROR_SESSION_CLOSED,
            error_message="This voting session has ended.",
        )

    @staticmethod
    def _start_failure(error: BallotError) -> StartSessionOutputDto:
        return StartSessionOutputDto(
            success=False, error_kind=error.kind, error_message=error.message
        )

    # ------------------------------------------------------------------
    # Answering and navigation
    # ------------------------------------------------------------------

    def _ensure_editable(self) -> None:
        state = self._state
        if isinstance(state, Failed) and state.recoverable and self._navigator:
            self.acknowledge_failure()
            return
        if not isinstance(state, Answering | Reviewing):
            raise SessionStateError(
                f"Action not allowed in state {type(state).__name__}"
            )

    def _resolve_position(self, position: str | None) -> str:
        if position is not None:
            return position
        current = self.navigator.current_position
        if current is None:
            raise SessionStateError("The review page has no position")
        return current

    def select(self, candidate_id: int, position: str | None = None) -> None:
        """Choose a candidate for a position (the current one by default)."""
        self._ensure_editable()
        position = self._resolve_position(position)
        snapshot = self._snapshot
        candidate = snapshot.find_candidate(candidate_id) if snapshot else None
        if candidate is None or candidate.position != position:
            raise ValueError(
                f"Candidate {candidate_id} does not stand for {position!r}"
            )
        self.selection_store.select(position, candidate_id)
        self._sync_page_state()

    def skip(self, position: str | None = None) -> None:
        """Toggle the skip marker of a position (the current one by default)."""
        self._ensure_editable()
        self.selection_store.skip(self._resolve_position(position))
        self._sync_page_state()

    def can_advance(self) -> bool:
        return self._navigator is not None and self._navigator.can_advance()

    def next(self) -> bool:
        self._ensure_editable()
        moved = self.navigator.next()
        if not moved:
            logger.debug("Advance blocked", page=self.navigator.current_page)
        self._sync_page_state()
        return moved

    def back(self) -> bool:
        self._ensure_editable()
        moved = self.navigator.back()
        self._sync_page_state()
        return moved

    def jump_to(self, page: int) -> None:
        """Edit action from the review page: go to any page."""
        self._ensure_editable()
        self.navigator.jump_to(page)
        self._sync_page_state()

    def progress(self) -> Progress:
        return self.navigator.progress()

    def question_page(self) -> QuestionPageOutputDto:
        """Contents of the current question page."""
        navigator = self.navigator
        position = navigator.current_position
        if position is None or self._snapshot is None:
            raise SessionStateError("The current page is the review page")
        entry = self.selection_store.entry(position)
        return QuestionPageOutputDto(
            page=navigator.current_page,
            position=position,
            candidates=[
                CandidateOutputItem.from_entity(
                    c, is_selected=entry.candidate_id == c.id
                )
                for c in self._snapshot.candidates_for(position)
            ],
            is_skipped=entry.is_skipped,
            can_advance=navigator.can_advance(),
            is_first_page=navigator.is_first_page,
            can_edit=self.can_edit,
        )

    def review_page(self) -> ReviewPageOutputDto:
        """Rows of the review page, one per position."""
        snapshot = self._snapshot
        if snapshot is None:
            raise SessionStateError("No ballot is loaded")
        rows = []
        for page, position in enumerate(snapshot.positions):
            entry = self.selection_store.entry(position)
            rows.append(
                ReviewRowOutputItem.from_entry(
                    position, page, entry, snapshot.find_candidate(entry.candidate_id)
                )
            )
        return ReviewPageOutputDto(
            page=self.navigator.review_page,
            rows=rows,
            can_submit=self.can_submit,
            can_edit=self.can_edit,
        )

    @property
    def can_submit(self) -> bool:
        """Whether the submit action should be enabled."""
        return (
            not self._in_flight
            and not is_terminal(self._state)
            and self._snapshot is not None
            and self.selection_store.selected_count() == len(self._snapshot.positions)
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self) -> SubmitBallotOutputDto:
        """Submit the ballot from the review page.

        Re-entrant calls while a submission is in flight, and calls after the
        session has ended, are rejected without touching the store.
        """
        if self._in_flight:
            logger.warning("Submission already in flight; rejecting")
            return SubmitBallotOutputDto(
                success=False,
                error_kind=ERROR_IN_FLIGHT,
                error_message="Your vote is already being submitted.",
            )
        if is_terminal(self._state):
            logger.warning(
                "Submission rejected in terminal state",
                state=type(self._state).__name__,
            )
            return SubmitBallotOutputDto(
                success=False,
                error_kind=ERROR_SESSION_CLOSED,
                error_message="This voting session has ended.",
            )
        state = self._state
        if not (
            isinstance(state, Reviewing)
            or (isinstance(state, Failed) and self._navigator is not None)
        ):
            raise SessionStateError(
                f"Submit is only available from the review page, not {type(state).__name__}"
            )

        voter = self.voter
        snapshot = self._snapshot
        if voter is None or snapshot is None:
            raise SessionStateError("Session has not been started")

        self._in_flight = True
        try:
            self._set_state(Submitting())
            record = await self.guard.submit(
                voter,
                self.selection_store,
                snapshot.positions,
                candidates=snapshot.candidates,
            )
        except IncompleteBallot as e:
            first_missing = e.missing_positions[0]
            return_page = self.navigator.page_of(first_missing)
            self.navigator.jump_to(return_page)
            self._fail(e, return_page=return_page)
            return self._submit_failure(e)
        except SubmissionError as e:
            self._fail(e, return_page=self.navigator.review_page)
            return self._submit_failure(e, votes_recorded=e.votes_recorded)
        except BallotError as e:
            self._fail(e, return_page=self.navigator.review_page)
            return self._submit_failure(e)
        finally:
            self._in_flight = False

        voter.has_voted = True
        self._set_state(Submitted(record=record))
        return SubmitBallotOutputDto(success=True, record=record)

    @staticmethod
    def _submit_failure(
        error: BallotError, votes_recorded: bool = False
    ) -> SubmitBallotOutputDto:
        return SubmitBallotOutputDto(
            success=False,
            error_kind=error.kind,
            error_message=error.message,
            votes_recorded=votes_recorded,
        )

    def acknowledge_failure(self) -> None:
        """Leave a recoverable failure and show the page it points back to."""
        state = self._state
        if not isinstance(state, Failed) or not state.recoverable:
            raise SessionStateError("No recoverable failure to acknowledge")
        if self._navigator is None:
            raise SessionStateError("No ballot is loaded; call start() to retry")
        if state.return_page is not None:
            self._navigator.jump_to(state.return_page)
        self._sync_page_state()

    def close(self) -> None:
        """Log out: discard the in-memory session."""
        if self._in_flight:
            raise SessionStateError("Cannot close while a submission is in flight")
        self._navigator = None
        self._snapshot = None
        self.selection_store = SelectionStore()
        self._set_state(Closed())
        logger.info("Ballot session closed")
