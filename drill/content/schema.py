"""
Pydantic schemas for the exercise file format.

Import files are a YAML list of mappings; edit files are a single mapping
that also carries the exercise id:

    - description: What does `git add -p` do?
      source: git manual
      reference_answer: |
        Interactively stage hunks.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from drill.store.base import NewExercise

# Error types reported as "blank or missing"; anything else is "invalid"
_ABSENT_ERROR_TYPES = frozenset({"missing", "blank"})

FIELD_LABELS = {
    "description": "description",
    "source": "source",
    "reference_answer": "reference answer",
}


def is_blank(value: Any) -> bool:
    """YAML nulls, '~' and whitespace-only strings all count as blank."""
    return value is None or str(value).strip() in ("", "~")


class ExerciseFields(BaseModel):
    """The editable, required fields of an exercise."""

    model_config = ConfigDict(extra="ignore")

    description: str
    source: str
    reference_answer: str

    @field_validator("description", "source", "reference_answer", mode="before")
    @classmethod
    def _required_text(cls, value: Any) -> str:
        if is_blank(value):
            raise PydanticCustomError("blank", "blank or missing")
        # YAML scalars only; sequences and mappings are not text
        if isinstance(value, bool) or not isinstance(value, (str, int, float, date)):
            raise PydanticCustomError(
                "not_text", "expected text, got {kind}", {"kind": type(value).__name__}
            )
        return str(value).strip()

    def to_new_exercise(self) -> NewExercise:
        return NewExercise(
            description=self.description,
            source=self.source,
            answer=self.reference_answer,
        )


class ExportedExercise(ExerciseFields):
    """An exercise written out for editing."""

    id: int


def describe_field_error(error: ValidationError) -> str:
    """
    Phrase the first field failure for a message, e.g. 'a blank or missing source'.

    Absent or blank values read differently from values of the wrong kind.
    """
    for detail in error.errors():
        if detail["loc"]:
            name = str(detail["loc"][0])
            label = FIELD_LABELS.get(name, name)
            if detail["type"] in _ABSENT_ERROR_TYPES:
                return f"a blank or missing {label}"
            return f"an invalid {label}"
    return "an invalid field"
