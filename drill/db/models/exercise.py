"""
Exercise table model.

One row per exercise: the study content plus its current scheduling state.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import DateTime, Index, Integer, Interval, Text
from sqlalchemy.orm import Mapped, mapped_column

from drill.store.base import Exercise

from .base import Base


class ExerciseRecord(Base):
    """A stored exercise with its spaced repetition state."""

    __tablename__ = "exercises"
    __table_args__ = (Index("exercises_due_at", "due_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    description: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    reference_answer: Mapped[str] = mapped_column(Text, nullable=False)
    due_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    update_interval: Mapped[timedelta] = mapped_column(
        Interval, nullable=False, default=timedelta(0)
    )
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)

    def to_exercise(self) -> Exercise:
        """Detach the row into an immutable Exercise."""
        return Exercise(
            id=self.id,
            description=self.description,
            source=self.source,
            answer=self.reference_answer,
            created_at=self.created_at,
            due_at=self.due_at,
            interval=self.update_interval,
            last_reviewed_at=self.last_reviewed_at,
        )

    def __repr__(self) -> str:
        return f"<ExerciseRecord id={self.id} due_at={self.due_at}>"
