"""
Unit tests for exercise file import.
"""

from datetime import datetime

import pytest

from drill.content.importer import (
    ExerciseImporter,
    parse_exercise_entries,
    parse_exercises,
)
from drill.content.schema import ExerciseFields, is_blank
from drill.errors import PersistenceError, ValidationError
from drill.store.base import NewExercise


@pytest.fixture
def write_file(tmp_path):
    def _write(content: str, name: str = "exercises.yaml"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


class TestBlankValues:
    @pytest.mark.parametrize("value", [None, "", "   ", "~", " ~ \n"])
    def test_blank(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", ["x", "~x", 0, "None"])
    def test_not_blank(self, value):
        assert not is_blank(value)

    def test_fields_are_trimmed(self):
        fields = ExerciseFields.model_validate(
            {"description": "  d \n", "source": "s", "reference_answer": "\n a"}
        )
        assert fields.description == "d"
        assert fields.reference_answer == "a"

    def test_unknown_keys_are_ignored(self):
        fields = ExerciseFields.model_validate(
            {"description": "d", "source": "s", "reference_answer": "a", "tags": ["x"]}
        )
        assert fields.to_new_exercise() == NewExercise("d", "s", "a")


class TestParseExercises:
    def test_parses_valid_file(self, write_file, sample_exercises_yaml):
        parsed = parse_exercises(write_file(sample_exercises_yaml))

        assert len(parsed) == 2
        assert parsed[0] == NewExercise(
            description="What does `git stash` do?",
            source="git manual",
            answer="Shelves uncommitted changes.",
        )
        assert parsed[1].description == "Reverse a list in place."
        assert parsed[1].answer == "items.reverse()\n# or items[::-1] for a copy"

    def test_empty_list_is_valid(self):
        assert parse_exercise_entries([]) == []

    def test_empty_file_is_rejected(self, write_file):
        with pytest.raises(ValidationError, match="does not contain any exercises"):
            parse_exercises(write_file(""))

    def test_mapping_at_top_level_is_rejected(self, write_file):
        with pytest.raises(ValidationError, match="list of exercises"):
            parse_exercises(write_file("description: d\nsource: s\nreference_answer: a\n"))

    def test_scalar_entry_is_rejected(self):
        with pytest.raises(ValidationError, match="Exercise 2 is not a mapping"):
            parse_exercise_entries([
                {"description": "d", "source": "s", "reference_answer": "a"},
                "just a string",
            ])

    def test_missing_field_names_entry_and_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_exercise_entries([
                {"description": "d", "source": "s", "reference_answer": "a"},
                {"description": "d2", "source": "s2"},
            ])
        assert str(exc_info.value) == "Exercise 2 has a blank or missing reference answer."

    def test_tilde_is_missing(self, write_file):
        content = "- description: d\n  source: ~\n  reference_answer: a\n"
        with pytest.raises(ValidationError, match="Exercise 1 has a blank or missing source"):
            parse_exercises(write_file(content))

    def test_sequence_value_is_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_exercise_entries([
                {"description": ["a", "b"], "source": "s", "reference_answer": "x"},
            ])
        assert str(exc_info.value) == "Exercise 1 has an invalid description."

    def test_mapping_value_is_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_exercise_entries([
                {"description": "d", "source": "s", "reference_answer": "x"},
                {"description": "d2", "source": {"k": "v"}, "reference_answer": "x"},
            ])
        assert str(exc_info.value) == "Exercise 2 has an invalid source."

    @pytest.mark.parametrize("value,expected", [(42, "42"), (1.5, "1.5")])
    def test_numeric_scalars_become_text(self, value, expected):
        parsed = parse_exercise_entries([
            {"description": "d", "source": value, "reference_answer": "x"},
        ])
        assert parsed[0].source == expected

    def test_invalid_yaml(self, write_file):
        with pytest.raises(ValidationError, match="not valid YAML"):
            parse_exercises(write_file("- description: [unclosed\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError, match="Could not read"):
            parse_exercises(tmp_path / "nope.yaml")


class TestExerciseImporter:
    def test_import_creates_due_exercises(self, write_file, sample_exercises_yaml, memory_store, clock, t0):
        importer = ExerciseImporter(memory_store, clock=clock)

        result = importer.import_file(write_file(sample_exercises_yaml))

        assert result.total_parsed == 2
        assert result.total_imported == 2
        assert memory_store.list_due(t0) == result.created
        assert all(e.created_at == t0 and e.due_at == t0 for e in result.created)

    def test_one_invalid_entry_rejects_whole_file(self, write_file, memory_store, clock):
        content = (
            "- description: one\n  source: s\n  reference_answer: a\n"
            "- description: two\n  source: s\n  reference_answer: a\n"
            "- description: three\n  source: s\n"
        )
        importer = ExerciseImporter(memory_store, clock=clock)

        with pytest.raises(ValidationError, match="Exercise 3"):
            importer.import_file(write_file(content))

        assert memory_store.exercises == {}

    def test_non_text_values_reject_whole_file(self, write_file, memory_store, clock):
        content = (
            "- description: one\n  source: s\n  reference_answer: a\n"
            "- description: [a, b]\n  source: s\n  reference_answer: a\n"
            "- description: three\n  source: {k: v}\n  reference_answer: a\n"
        )
        importer = ExerciseImporter(memory_store, clock=clock)

        with pytest.raises(ValidationError, match="Exercise 2 has an invalid description"):
            importer.import_file(write_file(content))

        assert memory_store.exercises == {}

    def test_dry_run_saves_nothing(self, write_file, sample_exercises_yaml, memory_store, clock):
        result = ExerciseImporter(memory_store, clock=clock).import_file(
            write_file(sample_exercises_yaml), dry_run=True
        )

        assert result.total_parsed == 2
        assert result.total_imported == 0
        assert memory_store.exercises == {}

    def test_store_failure_propagates(self, write_file, sample_exercises_yaml, clock):
        class FailingStore:
            def create_many(self, entries, created_at):
                raise PersistenceError("store unavailable")

        importer = ExerciseImporter(FailingStore(), clock=clock)
        with pytest.raises(PersistenceError):
            importer.import_file(write_file(sample_exercises_yaml))

    def test_default_clock_is_wall_clock(self, write_file, sample_exercises_yaml, memory_store):
        before = datetime.now()
        result = ExerciseImporter(memory_store).import_file(write_file(sample_exercises_yaml))
        assert result.created[0].created_at >= before
