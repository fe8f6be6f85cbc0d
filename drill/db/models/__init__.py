# SQLAlchemy models
from .base import Base
from .exercise import ExerciseRecord

__all__ = [
    "Base",
    "ExerciseRecord",
]
