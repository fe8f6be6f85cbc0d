"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from drill.errors import NotFoundError, PersistenceError  # noqa: E402
from drill.store.base import Exercise, NewExercise  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ============================================================================
# Test Doubles
# ============================================================================


class FakeClock:
    """Controllable time source."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class InMemoryStore:
    """Dictionary-backed exercise store that records every update."""

    def __init__(self):
        self.exercises: dict[int, Exercise] = {}
        self.updates: list[tuple[int, timedelta, datetime, datetime]] = []
        self.fail_updates_for: set[int] = set()
        self._next_id = 1

    def create(self, description, source, answer, created_at) -> Exercise:
        return self.create_many([NewExercise(description, source, answer)], created_at)[0]

    def create_many(self, entries, created_at) -> list[Exercise]:
        created = []
        for entry in entries:
            exercise = Exercise(
                id=self._next_id,
                description=entry.description,
                source=entry.source,
                answer=entry.answer,
                created_at=created_at,
                due_at=created_at,
            )
            self.exercises[exercise.id] = exercise
            created.append(exercise)
            self._next_id += 1
        return created

    def get(self, exercise_id) -> Exercise:
        if exercise_id not in self.exercises:
            raise NotFoundError(exercise_id)
        return self.exercises[exercise_id]

    def list_due(self, now) -> list[Exercise]:
        due = [e for e in self.exercises.values() if e.is_due(now)]
        return sorted(due, key=lambda e: (e.due_at, e.id))

    def update(self, exercise_id, interval, due_at, last_reviewed_at) -> Exercise:
        if exercise_id in self.fail_updates_for:
            raise PersistenceError(f"Could not update exercise {exercise_id}")
        exercise = self.get(exercise_id)
        updated = Exercise(
            id=exercise.id,
            description=exercise.description,
            source=exercise.source,
            answer=exercise.answer,
            created_at=exercise.created_at,
            due_at=due_at,
            interval=interval,
            last_reviewed_at=last_reviewed_at,
        )
        self.exercises[exercise_id] = updated
        self.updates.append((exercise_id, interval, due_at, last_reviewed_at))
        return updated

    def replace_content(self, exercise_id, description, source, answer) -> Exercise:
        exercise = self.get(exercise_id)
        updated = Exercise(
            id=exercise.id,
            description=description,
            source=source,
            answer=answer,
            created_at=exercise.created_at,
            due_at=exercise.due_at,
            interval=exercise.interval,
            last_reviewed_at=exercise.last_reviewed_at,
        )
        self.exercises[exercise_id] = updated
        return updated


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def t0():
    """A fixed reference time."""
    return datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def clock(t0):
    return FakeClock(t0)


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def sample_exercises_yaml():
    """A valid import file body with a multi-line answer."""
    return (
        "- description: What does `git stash` do?\n"
        "  source: git manual\n"
        "  reference_answer: Shelves uncommitted changes.\n"
        "- description: |\n"
        "    Reverse a list in place.\n"
        "  source: Python docs\n"
        "  reference_answer: |\n"
        "    items.reverse()\n"
        "    # or items[::-1] for a copy\n"
    )
