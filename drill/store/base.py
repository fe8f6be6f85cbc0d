"""
Exercise records and the store interface the review loop depends on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol, Sequence


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Exercise:
    """A durable unit of study material with its scheduling state."""

    id: int
    description: str
    source: str
    answer: str
    created_at: datetime
    due_at: datetime
    interval: timedelta = timedelta(0)
    last_reviewed_at: datetime | None = None

    def is_due(self, now: datetime) -> bool:
        """Check if this exercise is due for review."""
        return now >= self.due_at


@dataclass(frozen=True)
class NewExercise:
    """Content for an exercise that has not been saved yet."""

    description: str
    source: str
    answer: str


# =============================================================================
# Store Interface
# =============================================================================


class ExerciseStore(Protocol):
    """
    Persistence operations used by the importer, exporter and review loop.

    The store is the only authority for exercise ids. Every write is durable
    by the time the call returns.
    """

    def create(
        self, description: str, source: str, answer: str, created_at: datetime
    ) -> Exercise: ...

    def create_many(
        self, entries: Sequence[NewExercise], created_at: datetime
    ) -> list[Exercise]: ...

    def get(self, exercise_id: int) -> Exercise: ...

    def list_due(self, now: datetime) -> list[Exercise]: ...

    def update(
        self,
        exercise_id: int,
        interval: timedelta,
        due_at: datetime,
        last_reviewed_at: datetime,
    ) -> Exercise: ...

    def replace_content(
        self, exercise_id: int, description: str, source: str, answer: str
    ) -> Exercise: ...
