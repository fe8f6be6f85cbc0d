"""
Unit tests for exporting an exercise and saving the edit back.
"""

import pytest
import yaml

from drill.content.exporter import (
    apply_edit,
    dump_exercise,
    export_exercise,
    export_path_for,
    parse_updated_exercise,
)
from drill.errors import NotFoundError, ValidationError
from drill.store.base import NewExercise


@pytest.fixture
def exercise(memory_store, t0):
    return memory_store.create_many(
        [NewExercise("Reverse a list.", "Python docs", "items.reverse()\nitems[::-1]")],
        created_at=t0,
    )[0]


class TestDumpExercise:
    def test_keys_in_file_order(self, exercise):
        text = dump_exercise(exercise)
        keys = [line.split(":")[0] for line in text.splitlines() if line and not line.startswith((" ", "---"))]
        assert keys == ["id", "description", "source", "reference_answer"]

    def test_multiline_written_as_literal_block(self, exercise):
        text = dump_exercise(exercise)
        assert text.startswith("---")
        assert "reference_answer: |" in text
        assert "  items.reverse()\n  items[::-1]\n" in text

    def test_round_trips_through_yaml(self, exercise):
        data = yaml.safe_load(dump_exercise(exercise))
        assert data == {
            "id": exercise.id,
            "description": "Reverse a list.",
            "source": "Python docs",
            "reference_answer": "items.reverse()\nitems[::-1]",
        }

    def test_schedule_is_not_exported(self, exercise):
        text = dump_exercise(exercise)
        assert "due" not in text
        assert "interval" not in text


class TestExportExercise:
    def test_writes_file(self, exercise, tmp_path):
        path = export_exercise(exercise, tmp_path / "nested" / "out.yaml")
        assert path.exists()
        assert parse_updated_exercise(path).id == exercise.id

    def test_default_path(self, exercise, tmp_path):
        assert export_path_for(exercise, tmp_path) == tmp_path / f"exercise_{exercise.id}.yaml"


class TestApplyEdit:
    def test_replaces_content_keeps_schedule(self, memory_store, exercise, tmp_path):
        path = export_exercise(exercise, tmp_path / "edit.yaml")
        path.write_text(
            f"id: {exercise.id}\n"
            "description: Reverse a list in place.\n"
            "source: Python docs\n"
            "reference_answer: |\n"
            "  items.reverse()\n",
            encoding="utf-8",
        )

        updated = apply_edit(memory_store, path)

        assert updated.description == "Reverse a list in place."
        assert updated.answer == "items.reverse()"
        assert updated.due_at == exercise.due_at
        assert updated.interval == exercise.interval
        assert memory_store.get(exercise.id) == updated

    def test_blank_field_is_rejected(self, memory_store, exercise, tmp_path):
        path = tmp_path / "edit.yaml"
        path.write_text(
            f"id: {exercise.id}\ndescription: d\nsource: '  '\nreference_answer: a\n",
            encoding="utf-8",
        )

        with pytest.raises(ValidationError, match="blank or missing source"):
            apply_edit(memory_store, path)
        assert memory_store.get(exercise.id) == exercise

    def test_non_numeric_id_is_invalid_not_missing(self, memory_store, exercise, tmp_path):
        path = tmp_path / "edit.yaml"
        path.write_text("id: abc\ndescription: d\nsource: s\nreference_answer: a\n", encoding="utf-8")

        with pytest.raises(ValidationError) as exc_info:
            apply_edit(memory_store, path)
        assert str(exc_info.value) == "Exercise has an invalid id."

    def test_missing_id(self, memory_store, tmp_path):
        path = tmp_path / "edit.yaml"
        path.write_text("description: d\nsource: s\nreference_answer: a\n", encoding="utf-8")

        with pytest.raises(ValidationError) as exc_info:
            apply_edit(memory_store, path)
        assert str(exc_info.value) == "Exercise has a blank or missing id."

    def test_list_is_rejected(self, memory_store, tmp_path):
        path = tmp_path / "edit.yaml"
        path.write_text("- id: 1\n", encoding="utf-8")

        with pytest.raises(ValidationError, match="single exercise"):
            apply_edit(memory_store, path)

    def test_unknown_id(self, memory_store, tmp_path):
        path = tmp_path / "edit.yaml"
        path.write_text("id: 999\ndescription: d\nsource: s\nreference_answer: a\n", encoding="utf-8")

        with pytest.raises(NotFoundError) as exc_info:
            apply_edit(memory_store, path)
        assert exc_info.value.exercise_id == 999
