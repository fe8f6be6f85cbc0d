"""
exercise-drill: a personal spaced repetition tool.

Exercises are imported from YAML files, stored in a SQL database and
reviewed in timeboxed terminal sessions. Each correct answer doubles the
time until the exercise is due again; a miss brings it back tomorrow.

Components:
- drill.review: Scheduler and review session state machine
- drill.store: Exercise store interface and SQLAlchemy implementation
- drill.content: YAML import and edit round trips
- drill.cli: Typer commands and Rich terminal UI
"""

__version__ = "1.0.0"
