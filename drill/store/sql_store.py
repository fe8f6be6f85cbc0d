"""
SQLAlchemy-backed Exercise Store.

Provides persistence for:
- Exercise content (description, source, reference answer)
- Per-exercise scheduling state (interval, due date, last review)

Every public method runs in its own transaction, so each committed write
stands on its own: a failed update never undoes an earlier one.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy import Engine, String, cast, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from drill.db.database import get_session_factory, make_session_factory, session_scope
from drill.db.models import ExerciseRecord
from drill.errors import NotFoundError, PersistenceError
from drill.review.scheduler import DoublingScheduler

from .base import Exercise, NewExercise


class SqlExerciseStore:
    """
    Exercise persistence on top of a SQLAlchemy engine.

    Handles:
    - Creating exercises (singly or as one all-or-nothing batch)
    - Due-date queries in a stable review order
    - Scheduling updates and content edits
    - Listing and substring search
    """

    def __init__(self, engine: Engine | None = None):
        """
        Initialize the store.

        Args:
            engine: Custom engine (defaults to the configured database)
        """
        self._factory: sessionmaker[Session] = (
            make_session_factory(engine) if engine is not None else get_session_factory()
        )

    # =========================================================================
    # Creation
    # =========================================================================

    def create(
        self, description: str, source: str, answer: str, created_at: datetime
    ) -> Exercise:
        """Create a single exercise, due immediately."""
        return self.create_many([NewExercise(description, source, answer)], created_at)[0]

    def create_many(
        self, entries: Sequence[NewExercise], created_at: datetime
    ) -> list[Exercise]:
        """
        Create several exercises in one transaction.

        Args:
            entries: Validated exercise content
            created_at: Creation timestamp shared by the batch

        Returns:
            The saved exercises, in input order

        Raises:
            PersistenceError: If any insert fails; nothing is saved
        """
        initial = DoublingScheduler.initial_schedule(created_at)
        records = [
            ExerciseRecord(
                created_at=created_at,
                description=entry.description,
                source=entry.source,
                reference_answer=entry.answer,
                due_at=initial.due_at,
                update_interval=initial.interval,
            )
            for entry in entries
        ]

        try:
            with session_scope(self._factory) as session:
                session.add_all(records)
                session.flush()
                saved = [record.to_exercise() for record in records]
        except IntegrityError as e:
            raise PersistenceError(f"Could not save exercises: {e.orig}") from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Exercise store unavailable: {e}") from e

        logger.info(f"Created {len(saved)} exercises")
        return saved

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, exercise_id: int) -> Exercise:
        """
        Get an exercise by id.

        Raises:
            NotFoundError: If no exercise has this id
        """
        try:
            with session_scope(self._factory) as session:
                record = session.get(ExerciseRecord, exercise_id)
                if record is None:
                    raise NotFoundError(exercise_id)
                return record.to_exercise()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Exercise store unavailable: {e}") from e

    def list_due(self, now: datetime) -> list[Exercise]:
        """Exercises with due_at <= now, oldest due date first, ties by id."""
        query = (
            select(ExerciseRecord)
            .where(ExerciseRecord.due_at <= now)
            .order_by(ExerciseRecord.due_at.asc(), ExerciseRecord.id.asc())
        )
        return self._fetch(query)

    def list_all(self) -> list[Exercise]:
        """All exercises, latest due date first."""
        query = select(ExerciseRecord).order_by(
            ExerciseRecord.due_at.desc(), ExerciseRecord.id.desc()
        )
        return self._fetch(query)

    def grep(self, text: str) -> list[Exercise]:
        """Exercises whose content or id contains the given text."""
        pattern = f"%{text}%"
        query = (
            select(ExerciseRecord)
            .where(
                or_(
                    ExerciseRecord.description.like(pattern),
                    ExerciseRecord.source.like(pattern),
                    ExerciseRecord.reference_answer.like(pattern),
                    cast(ExerciseRecord.id, String).like(pattern),
                )
            )
            .order_by(ExerciseRecord.due_at.desc(), ExerciseRecord.id.desc())
        )
        return self._fetch(query)

    def count(self) -> int:
        """Total number of stored exercises."""
        try:
            with session_scope(self._factory) as session:
                return session.scalar(select(func.count()).select_from(ExerciseRecord)) or 0
        except SQLAlchemyError as e:
            raise PersistenceError(f"Exercise store unavailable: {e}") from e

    def _fetch(self, query) -> list[Exercise]:
        try:
            with session_scope(self._factory) as session:
                return [record.to_exercise() for record in session.scalars(query)]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Exercise store unavailable: {e}") from e

    # =========================================================================
    # Updates
    # =========================================================================

    def update(
        self,
        exercise_id: int,
        interval: timedelta,
        due_at: datetime,
        last_reviewed_at: datetime,
    ) -> Exercise:
        """
        Persist new scheduling state for an exercise.

        The write is committed before this returns.

        Raises:
            NotFoundError: If no exercise has this id
            PersistenceError: If the write fails
        """
        try:
            with session_scope(self._factory) as session:
                record = session.get(ExerciseRecord, exercise_id)
                if record is None:
                    raise NotFoundError(exercise_id)
                record.update_interval = interval
                record.due_at = due_at
                record.last_reviewed_at = last_reviewed_at
                updated = record.to_exercise()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not update exercise {exercise_id}: {e}") from e

        logger.debug(
            f"Updated exercise {exercise_id}: interval={interval}, due_at={due_at}"
        )
        return updated

    def replace_content(
        self, exercise_id: int, description: str, source: str, answer: str
    ) -> Exercise:
        """
        Replace the editable fields of an exercise; scheduling is unchanged.

        Raises:
            NotFoundError: If no exercise has this id
            PersistenceError: If the write fails
        """
        try:
            with session_scope(self._factory) as session:
                record = session.get(ExerciseRecord, exercise_id)
                if record is None:
                    raise NotFoundError(exercise_id)
                record.description = description
                record.source = source
                record.reference_answer = answer
                updated = record.to_exercise()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not update exercise {exercise_id}: {e}") from e

        logger.info(f"Replaced content of exercise {exercise_id}")
        return updated
