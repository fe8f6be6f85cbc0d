"""
Exercise Store.

The SQLAlchemy implementation lives in drill.store.sql_store so that this
package stays importable without a configured database.
"""

from .base import Exercise, ExerciseStore, NewExercise

__all__ = [
    "Exercise",
    "ExerciseStore",
    "NewExercise",
]
