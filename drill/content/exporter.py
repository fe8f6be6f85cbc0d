"""
Exercise exporter - round-trip editing of a single exercise.

`export_exercise` writes the editable fields to a YAML file the user can
change in any editor; `apply_edit` reads the file back and replaces the
stored content. Scheduling state is never exported or changed by an edit.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from drill.errors import ValidationError
from drill.store.base import Exercise, ExerciseStore

from .importer import read_yaml
from .schema import ExportedExercise, describe_field_error


class _LiteralDumper(yaml.SafeDumper):
    """Writes multi-line strings as literal blocks so they stay readable."""


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_LiteralDumper.add_representer(str, _represent_str)


def dump_exercise(exercise: Exercise) -> str:
    """Serialize the editable fields of an exercise as a YAML document."""
    document = {
        "id": exercise.id,
        "description": exercise.description,
        "source": exercise.source,
        "reference_answer": exercise.answer,
    }
    return yaml.dump(
        document,
        Dumper=_LiteralDumper,
        explicit_start=True,
        sort_keys=False,
        allow_unicode=True,
        width=1000,
    )


def export_path_for(exercise: Exercise, directory: Path) -> Path:
    """Default file name for an exported exercise."""
    return directory / f"exercise_{exercise.id}.yaml"


def export_exercise(exercise: Exercise, path: Path | str) -> Path:
    """Write one exercise to a file for editing."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_exercise(exercise), encoding="utf-8")
    logger.info(f"Exported exercise {exercise.id} to {path}")
    return path


def parse_updated_exercise(path: Path | str) -> ExportedExercise:
    """
    Read an edited export back.

    Raises:
        ValidationError: If the file is malformed or a field is blank
    """
    data = read_yaml(Path(path))
    if not isinstance(data, dict):
        raise ValidationError("Expected the file to contain a single exercise.")

    try:
        return ExportedExercise.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Exercise has {describe_field_error(e)}."
        ) from e


def apply_edit(store: ExerciseStore, path: Path | str) -> Exercise:
    """
    Replace the stored content of an exercise with an edited export.

    Raises:
        ValidationError: If the file is invalid
        NotFoundError: If the exported id no longer exists
    """
    edited = parse_updated_exercise(path)
    return store.replace_content(
        edited.id,
        description=edited.description,
        source=edited.source,
        answer=edited.reference_answer,
    )
