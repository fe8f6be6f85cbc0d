"""
Exercise importer - converts YAML exercise files into stored exercises.

Imports are all-or-nothing: every entry is validated before anything is
written, and the batch is saved in a single transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

import yaml
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from drill.errors import ValidationError
from drill.store.base import Exercise, ExerciseStore, NewExercise

from .schema import ExerciseFields, describe_field_error


@dataclass
class ImportResult:
    """Result of an import operation."""

    path: Path
    parsed: list[NewExercise] = field(default_factory=list)
    created: list[Exercise] = field(default_factory=list)

    @property
    def total_parsed(self) -> int:
        return len(self.parsed)

    @property
    def total_imported(self) -> int:
        return len(self.created)


def read_yaml(path: Path) -> object:
    """Load a YAML document, turning I/O and syntax problems into ValidationError."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValidationError(f"Could not read {path}: {e}") from e

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValidationError(f"{path} is not valid YAML: {e}") from e


def parse_exercise_entries(data: object) -> list[NewExercise]:
    """
    Validate loaded YAML data as a list of exercises.

    Raises:
        ValidationError: Naming the first invalid entry (1-based) and field
    """
    if data is None:
        raise ValidationError("The file does not contain any exercises.")
    if not isinstance(data, list):
        raise ValidationError("Expected the file to contain a list of exercises.")

    exercises = []
    for index, entry in enumerate(data, start=1):
        if not isinstance(entry, dict):
            raise ValidationError(f"Exercise {index} is not a mapping of fields.")
        try:
            fields = ExerciseFields.model_validate(entry)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Exercise {index} has {describe_field_error(e)}."
            ) from e
        exercises.append(fields.to_new_exercise())

    return exercises


def parse_exercises(path: Path | str) -> list[NewExercise]:
    """Parse and validate an exercise file without touching the store."""
    return parse_exercise_entries(read_yaml(Path(path)))


class ExerciseImporter:
    """
    Import exercise files into an exercise store.

    New exercises are due immediately.
    """

    def __init__(
        self,
        store: ExerciseStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize importer.

        Args:
            store: Destination store
            clock: Source of the creation timestamp
        """
        self.store = store
        self.clock = clock

    def import_file(self, path: Path | str, dry_run: bool = False) -> ImportResult:
        """
        Import every exercise in a file, or none of them.

        Args:
            path: YAML exercise file
            dry_run: If True, parse and validate but don't save

        Raises:
            ValidationError: If any entry is invalid (nothing is saved)
            PersistenceError: If the store rejects the batch (nothing is saved)
        """
        result = ImportResult(path=Path(path))
        result.parsed = parse_exercises(result.path)
        logger.debug(f"Parsed {result.total_parsed} exercises from {result.path}")

        if dry_run or not result.parsed:
            return result

        result.created = self.store.create_many(result.parsed, self.clock())
        logger.info(f"Imported {result.total_imported} exercises from {result.path}")
        return result
