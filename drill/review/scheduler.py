"""
Doubling Spaced Repetition Scheduler.

Implements the interval rule used for every exercise:
- A fresh exercise has a zero interval and is due immediately
- A correct answer doubles the interval (zero becomes one day)
- An incorrect answer resets the interval to one day
- Intervals never grow past six months

The scheduler is pure: callers pass the current time in and apply the
returned interval and due date to the exercise themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

ONE_DAY = timedelta(days=1)
SIX_MONTHS = timedelta(days=180)
NO_INTERVAL = timedelta(0)


class Outcome(str, Enum):
    """Result recorded for an exercise during a review session."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    EDIT_REQUESTED = "edit_requested"  # quit to edit, never scheduled
    SKIPPED = "skipped"  # quit mid-exercise, never scheduled

    @property
    def is_graded(self) -> bool:
        """Whether this outcome feeds the scheduler."""
        return self in (Outcome.CORRECT, Outcome.INCORRECT)


@dataclass(frozen=True)
class SchedulerConfig:
    """Configuration for the doubling scheduler."""

    base_interval: timedelta = ONE_DAY
    max_interval: timedelta = SIX_MONTHS
    growth_factor: int = 2


@dataclass(frozen=True)
class ScheduleUpdate:
    """New scheduling state for one exercise."""

    interval: timedelta
    due_at: datetime


class DoublingScheduler:
    """
    Computes the next interval and due date after a review.

    Interval of zero is the "never answered correctly" sentinel and is
    distinct from the one-day base interval.
    """

    def __init__(self, config: SchedulerConfig | None = None):
        """
        Initialize the scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
        """
        self.config = config or SchedulerConfig()

    def next_interval(self, interval: timedelta, outcome: Outcome) -> timedelta:
        """
        Calculate the interval that follows a graded outcome.

        Args:
            interval: Current interval of the exercise
            outcome: Outcome.CORRECT or Outcome.INCORRECT

        Returns:
            New interval, never negative and never above the cap
        """
        if not outcome.is_graded:
            raise ValueError(f"Outcome {outcome.value!r} does not reschedule an exercise")

        if outcome is Outcome.INCORRECT:
            return self.config.base_interval

        if interval <= NO_INTERVAL:
            grown = self.config.base_interval
        else:
            grown = interval * self.config.growth_factor

        return min(grown, self.config.max_interval)

    def next_review(
        self,
        interval: timedelta,
        now: datetime,
        outcome: Outcome,
    ) -> ScheduleUpdate:
        """
        Calculate next review date based on outcome.

        Args:
            interval: Current interval of the exercise
            now: Time of the review
            outcome: Outcome.CORRECT or Outcome.INCORRECT

        Returns:
            ScheduleUpdate with new interval and due date
        """
        new_interval = self.next_interval(interval, outcome)
        return ScheduleUpdate(interval=new_interval, due_at=now + new_interval)

    @staticmethod
    def initial_schedule(created_at: datetime) -> ScheduleUpdate:
        """Scheduling state of a freshly created exercise: due immediately."""
        return ScheduleUpdate(interval=NO_INTERVAL, due_at=created_at)


_default_scheduler = DoublingScheduler()


def schedule(interval: timedelta, now: datetime, outcome: Outcome) -> ScheduleUpdate:
    """Apply the default scheduling rule."""
    return _default_scheduler.next_review(interval, now, outcome)
