"""
Review Session Controller.

Drives one timeboxed pass over the exercises that are due:

    Initializing -> Presenting -> AwaitingKnowledgeClaim
        KnowIt     -> RevealingAnswer -> AwaitingMatchConfirmation -> Advancing
        DontKnowIt -> Advancing
    Advancing -> Presenting | SessionComplete

Any live state can move to SessionAborted on quit. The time limit is only
checked while advancing, so a long session ends at the next exercise
boundary and never in the middle of a reveal.

Every finalized outcome is scheduled and written to the store before the
session advances; an exercise is scheduled at most once per session.
"""

from __future__ import annotations

import signal
import threading
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Iterator, Protocol

from loguru import logger

from drill.errors import NotFoundError, PersistenceError, SessionStateError
from drill.review.scheduler import DoublingScheduler, Outcome
from drill.store.base import Exercise, ExerciseStore

DEFAULT_TIME_BOX = timedelta(minutes=20)
STANDARD_REVIEW_OUTPUT_WIDTH = 80

# =============================================================================
# States and Inputs
# =============================================================================


class SessionState(str, Enum):
    """Where a review session is in its lifecycle."""

    INITIALIZING = "initializing"
    PRESENTING = "presenting"
    AWAITING_KNOWLEDGE_CLAIM = "awaiting_knowledge_claim"
    REVEALING_ANSWER = "revealing_answer"
    AWAITING_MATCH_CONFIRMATION = "awaiting_match_confirmation"
    ADVANCING = "advancing"
    COMPLETE = "complete"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETE, SessionState.ABORTED)


TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.INITIALIZING: frozenset(
        {SessionState.PRESENTING, SessionState.COMPLETE, SessionState.ABORTED}
    ),
    SessionState.PRESENTING: frozenset(
        {SessionState.AWAITING_KNOWLEDGE_CLAIM, SessionState.ABORTED}
    ),
    SessionState.AWAITING_KNOWLEDGE_CLAIM: frozenset(
        {SessionState.REVEALING_ANSWER, SessionState.ADVANCING, SessionState.ABORTED}
    ),
    SessionState.REVEALING_ANSWER: frozenset(
        {SessionState.AWAITING_MATCH_CONFIRMATION, SessionState.ABORTED}
    ),
    SessionState.AWAITING_MATCH_CONFIRMATION: frozenset(
        {SessionState.ADVANCING, SessionState.ABORTED}
    ),
    SessionState.ADVANCING: frozenset(
        {SessionState.PRESENTING, SessionState.COMPLETE, SessionState.ABORTED}
    ),
    SessionState.COMPLETE: frozenset(),
    SessionState.ABORTED: frozenset(),
}

# States in which an exercise has been shown but has no outcome yet
_ANSWERING_STATES = frozenset(
    {
        SessionState.AWAITING_KNOWLEDGE_CLAIM,
        SessionState.REVEALING_ANSWER,
        SessionState.AWAITING_MATCH_CONFIRMATION,
    }
)


class KnowledgeClaim(str, Enum):
    """What the user says after reading the description."""

    KNOW_IT = "know_it"
    DONT_KNOW_IT = "dont_know_it"
    QUIT_AND_EDIT = "quit_and_edit"


class MatchConfirmation(str, Enum):
    """Whether the user's answer matched the reference answer."""

    MATCHED = "matched"
    DID_NOT_MATCH = "did_not_match"


class EndReason(str, Enum):
    """Why a session stopped."""

    QUEUE_EXHAUSTED = "queue_exhausted"
    TIME_LIMIT = "time_limit"
    QUIT = "quit"
    EDIT_REQUESTED = "edit_requested"
    STORE_FAILURE = "store_failure"


# =============================================================================
# Context and Summary
# =============================================================================


@dataclass
class ReviewContext:
    """
    Collaborators of a review session.

    Passing the store and the clock in explicitly lets tests substitute
    both. `export_for_edit` is called with the current exercise when the
    user quits to edit it.
    """

    store: ExerciseStore
    clock: Callable[[], datetime] = datetime.now
    scheduler: DoublingScheduler = field(default_factory=DoublingScheduler)
    export_for_edit: Callable[[Exercise], object] | None = None


@dataclass(frozen=True)
class SessionSummary:
    """End-of-session statistics."""

    outcomes: dict[int, Outcome]
    queued: int
    duration: timedelta
    end_reason: EndReason | None

    @property
    def counts(self) -> Counter[Outcome]:
        return Counter(self.outcomes.values())

    @property
    def correct(self) -> int:
        return self.counts[Outcome.CORRECT]

    @property
    def incorrect(self) -> int:
        return self.counts[Outcome.INCORRECT]

    @property
    def reviewed(self) -> int:
        """Exercises whose schedule was updated."""
        return self.correct + self.incorrect

    @property
    def remaining(self) -> int:
        """Queued exercises that got no outcome at all."""
        return self.queued - len(self.outcomes)

    @property
    def accuracy(self) -> float:
        if self.reviewed == 0:
            return 0.0
        return self.correct / self.reviewed


# =============================================================================
# Controller
# =============================================================================


class ReviewSession:
    """
    State machine for one interactive review session.

    The controller is the only place that reads the wall clock; the
    scheduler receives the time explicitly.
    """

    def __init__(self, context: ReviewContext, time_limit: timedelta = DEFAULT_TIME_BOX):
        """
        Initialize the session.

        Args:
            context: Store, clock, scheduler and edit hook
            time_limit: Maximum session length, checked between exercises
        """
        if time_limit <= timedelta(0):
            raise ValueError("time_limit must be positive")

        self.context = context
        self.time_limit = time_limit
        self.state = SessionState.INITIALIZING
        self.started_at: datetime | None = None
        self.finished_at: datetime | None = None
        self.queue: tuple[Exercise, ...] = ()
        self.cursor = 0
        self.outcomes: dict[int, Outcome] = {}
        self.end_reason: EndReason | None = None

    # =========================================================================
    # Transitions
    # =========================================================================

    def _transition(self, target: SessionState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise SessionStateError(
                f"Illegal review transition {self.state.value} -> {target.value}"
            )
        logger.debug(f"Review session: {self.state.value} -> {target.value}")
        self.state = target

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise SessionStateError(
                f"Review session is {self.state.value}, expected {expected}"
            )

    def _finish(self, target: SessionState, reason: EndReason) -> None:
        self._transition(target)
        self.end_reason = reason
        self.finished_at = self.context.clock()
        logger.info(
            f"Review session ended ({reason.value}): "
            f"{len(self.outcomes)}/{len(self.queue)} exercises with outcomes"
        )

    def start(self) -> None:
        """Fetch the due exercises and fix the queue for this session."""
        self._require(SessionState.INITIALIZING)

        now = self.context.clock()
        due = self.context.store.list_due(now)
        self.queue = tuple(sorted(due, key=lambda e: (e.due_at, e.id)))
        self.started_at = now
        logger.info(f"Review session started with {len(self.queue)} due exercises")

        if not self.queue:
            self._finish(SessionState.COMPLETE, EndReason.QUEUE_EXHAUSTED)
        else:
            self._transition(SessionState.PRESENTING)

    def present(self) -> Exercise:
        """Show the current exercise; the session then waits for a claim."""
        self._require(SessionState.PRESENTING)
        exercise = self.current_exercise
        self._transition(SessionState.AWAITING_KNOWLEDGE_CLAIM)
        return exercise

    def claim(self, claim: KnowledgeClaim) -> None:
        """Record whether the user knows the answer."""
        self._require(SessionState.AWAITING_KNOWLEDGE_CLAIM)

        if claim is KnowledgeClaim.QUIT_AND_EDIT:
            exercise = self.current_exercise
            self.outcomes[exercise.id] = Outcome.EDIT_REQUESTED
            self._finish(SessionState.ABORTED, EndReason.EDIT_REQUESTED)
            if self.context.export_for_edit is not None:
                self.context.export_for_edit(exercise)
        elif claim is KnowledgeClaim.KNOW_IT:
            self._transition(SessionState.REVEALING_ANSWER)
        else:
            self._finalize(Outcome.INCORRECT)

    def reveal(self) -> Exercise:
        """Show the reference answer; the session then waits for confirmation."""
        self._require(SessionState.REVEALING_ANSWER)
        exercise = self.current_exercise
        self._transition(SessionState.AWAITING_MATCH_CONFIRMATION)
        return exercise

    def confirm(self, confirmation: MatchConfirmation) -> None:
        """Record whether the user's answer matched the reference answer."""
        self._require(SessionState.AWAITING_MATCH_CONFIRMATION)
        if confirmation is MatchConfirmation.MATCHED:
            self._finalize(Outcome.CORRECT)
        else:
            self._finalize(Outcome.INCORRECT)

    def quit(self) -> None:
        """
        Abort the session immediately.

        An exercise that was being answered is marked skipped and is not
        scheduled. Quitting a finished session does nothing.
        """
        if self.state.is_terminal:
            return
        if self.state in _ANSWERING_STATES:
            self.outcomes.setdefault(self.current_exercise.id, Outcome.SKIPPED)
        self._finish(SessionState.ABORTED, EndReason.QUIT)

    def _finalize(self, outcome: Outcome) -> None:
        exercise = self.current_exercise
        if exercise.id in self.outcomes:
            raise SessionStateError(f"Exercise {exercise.id} already has an outcome")

        now = self.context.clock()
        update = self.context.scheduler.next_review(exercise.interval, now, outcome)

        # A committed update and its recorded outcome must not be split by Ctrl-C
        with _deferred_interrupt():
            try:
                self.context.store.update(exercise.id, update.interval, update.due_at, now)
            except (PersistenceError, NotFoundError):
                self._finish(SessionState.ABORTED, EndReason.STORE_FAILURE)
                raise

            self.outcomes[exercise.id] = outcome
            logger.debug(
                f"Exercise {exercise.id}: {outcome.value}, "
                f"interval={update.interval}, due_at={update.due_at}"
            )
            self._advance()

    def _advance(self) -> None:
        self._transition(SessionState.ADVANCING)
        self.cursor += 1

        if self.cursor >= len(self.queue):
            self._finish(SessionState.COMPLETE, EndReason.QUEUE_EXHAUSTED)
        elif self.elapsed() >= self.time_limit:
            self._finish(SessionState.COMPLETE, EndReason.TIME_LIMIT)
        else:
            self._transition(SessionState.PRESENTING)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal

    @property
    def current_exercise(self) -> Exercise:
        """The exercise at the cursor."""
        if self.state is SessionState.INITIALIZING or self.cursor >= len(self.queue):
            raise SessionStateError("No exercise is being reviewed")
        return self.queue[self.cursor]

    def elapsed(self) -> timedelta:
        """Time since the session started (display and time limit only)."""
        if self.started_at is None:
            return timedelta(0)
        end = self.finished_at or self.context.clock()
        return end - self.started_at

    def has_exceeded_timebox(self) -> bool:
        """Whether whole elapsed minutes are past the limit (display only)."""
        return _whole_minutes(self.elapsed()) > _whole_minutes(self.time_limit)

    def time_box_display(self) -> str:
        """Elapsed time against the limit, e.g. '5m/20m' or '<Overtime: 2m>'."""
        elapsed = self.elapsed()
        if self.has_exceeded_timebox():
            return f"<Overtime: {_whole_minutes(elapsed - self.time_limit)}m>"
        return f"{_whole_minutes(elapsed)}m/{_whole_minutes(self.time_limit)}m"

    def header(self) -> str:
        """Exercise position on the left, time box right-aligned to 80 columns."""
        exercise = self.current_exercise
        left = f"Exercise {self.cursor + 1}/{len(self.queue)} - ID {exercise.id}"
        right = self.time_box_display()
        pad_width = max(1, STANDARD_REVIEW_OUTPUT_WIDTH - len(left) - len(right))
        return f"{left}{' ' * pad_width}{right}"

    def summary(self) -> SessionSummary:
        return SessionSummary(
            outcomes=dict(self.outcomes),
            queued=len(self.queue),
            duration=self.elapsed(),
            end_reason=self.end_reason,
        )


def _whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


@contextmanager
def _deferred_interrupt() -> Iterator[None]:
    """
    Hold SIGINT until the block finishes, then raise KeyboardInterrupt.

    Only the main thread can install signal handlers; elsewhere the block
    runs unprotected. An exception raised by the block wins over a held
    interrupt.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    received: list[int] = []
    previous = signal.signal(signal.SIGINT, lambda signum, frame: received.append(signum))
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)

    if received:
        logger.debug("Interrupt held until the review outcome was recorded")
        raise KeyboardInterrupt


# =============================================================================
# Interactive Loop
# =============================================================================


class ReviewUI(Protocol):
    """Terminal collaborator: renders exercises and collects answers."""

    def show_exercise(self, session: ReviewSession, exercise: Exercise) -> None: ...

    def ask_knowledge_claim(self) -> KnowledgeClaim: ...

    def show_answer(self, exercise: Exercise) -> None: ...

    def ask_match_confirmation(self) -> MatchConfirmation: ...


def run_review(session: ReviewSession, ui: ReviewUI) -> SessionSummary:
    """
    Run a session to completion, blocking on the UI for every decision.

    Ctrl-C or end of input quits the session; the exercise in progress is
    not scheduled. Store failures end the session and propagate to the caller.
    """
    if session.state is SessionState.INITIALIZING:
        session.start()

    try:
        while not session.is_finished:
            exercise = session.present()
            ui.show_exercise(session, exercise)

            claim = ui.ask_knowledge_claim()
            if claim is KnowledgeClaim.KNOW_IT:
                session.claim(claim)
                ui.show_answer(session.reveal())
                session.confirm(ui.ask_match_confirmation())
            elif claim is KnowledgeClaim.DONT_KNOW_IT:
                ui.show_answer(exercise)
                session.claim(claim)
            else:
                session.claim(claim)
    except (KeyboardInterrupt, EOFError):
        session.quit()

    return session.summary()
