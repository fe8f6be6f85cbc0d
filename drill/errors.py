"""
Error kinds for exercise-drill.

Validation and not-found errors are recovered at the command boundary and
reported to the user. Persistence errors end the current operation without
touching state that was already committed. Input errors only trigger a
reprompt.
"""
from __future__ import annotations


class DrillError(Exception):
    """Base class for all expected failures."""


class ValidationError(DrillError):
    """A required field is blank or missing, or the file is malformed."""


class NotFoundError(DrillError):
    """No exercise exists with the requested id."""

    def __init__(self, exercise_id: int):
        super().__init__(f"No exercise with ID {exercise_id}.")
        self.exercise_id = exercise_id


class PersistenceError(DrillError):
    """The exercise store is unavailable or a write failed."""


class InputError(DrillError):
    """Interactive input could not be understood."""


class SessionStateError(RuntimeError):
    """Raised when a review session is driven through an illegal transition."""
