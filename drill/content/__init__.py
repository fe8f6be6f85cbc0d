"""
Import/export of exercise files.
"""

from .exporter import apply_edit, dump_exercise, export_exercise, export_path_for, parse_updated_exercise
from .importer import ExerciseImporter, ImportResult, parse_exercises

__all__ = [
    "ExerciseImporter",
    "ImportResult",
    "parse_exercises",
    "apply_edit",
    "dump_exercise",
    "export_exercise",
    "export_path_for",
    "parse_updated_exercise",
]
