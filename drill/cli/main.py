"""
Typer CLI for exercise-drill.

Commands:
    drill bootstrap-schema      - Create the exercises table
    drill drop-schema           - Drop the exercises table
    drill import <path>         - Import exercises from a YAML file
    drill review                - Start a timeboxed review session
    drill edit <id> <path>      - Export an exercise for editing
    drill update <path>         - Save an edited exercise back
    drill list                  - List all exercises by due date
    drill grep <text>           - Search exercises

Usage:
    drill --help
    drill import exercises.yaml
    drill review --minutes 10
"""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from drill.cli.display import TerminalReviewUI, display_session_summary, exercise_table
from drill.content.exporter import apply_edit, export_exercise, export_path_for
from drill.content.importer import ExerciseImporter, parse_exercises
from drill.db.database import bootstrap_schema, drop_schema, schema_is_loaded
from drill.errors import DrillError, PersistenceError
from drill.review.session import ReviewContext, ReviewSession, run_review
from drill.store.base import Exercise

app = typer.Typer(
    name="drill",
    help="exercise-drill: spaced repetition over your own exercises",
    no_args_is_help=True,
)
console = Console()


# ========================================
# Helpers
# ========================================


def _fail(error: Exception) -> typer.Exit:
    """Report an unrecoverable error and build the exit to raise."""
    logger.error(str(error))
    rprint(f"[red]Error:[/red] {escape(str(error))}")
    return typer.Exit(1)


def _open_store():
    """Lazy load the SQL store once the schema is known to exist."""
    from drill.store.sql_store import SqlExerciseStore

    try:
        loaded = schema_is_loaded()
    except SQLAlchemyError as e:
        raise PersistenceError(f"Exercise store unavailable: {e}") from e

    if not loaded:
        raise PersistenceError(
            "The exercise schema is not loaded. Run 'drill bootstrap-schema' first."
        )
    return SqlExerciseStore()


# ========================================
# Schema Commands
# ========================================


@app.command("bootstrap-schema")
def bootstrap_schema_command() -> None:
    """Create the exercises table and its indexes (safe to re-run)."""
    try:
        bootstrap_schema()
    except SQLAlchemyError as e:
        raise _fail(PersistenceError(f"Could not bootstrap schema: {e}"))
    rprint("[green]Schema is ready.[/green]")


@app.command("drop-schema")
def drop_schema_command(
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Drop the exercises table and every exercise in it."""
    if not confirm and not Confirm.ask("Drop ALL exercises? This cannot be undone!", default=False):
        raise typer.Exit(0)
    try:
        drop_schema()
    except SQLAlchemyError as e:
        raise _fail(PersistenceError(f"Could not drop schema: {e}"))
    rprint("[green]Schema dropped.[/green]")


# ========================================
# Content Commands
# ========================================


@app.command("import")
def import_command(
    path: Path = typer.Argument(..., help="YAML file with exercises"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip the preview confirmation"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without saving"),
) -> None:
    """Import exercises from a YAML file; nothing is saved if any entry is invalid."""
    try:
        parsed = parse_exercises(path)
    except DrillError as e:
        raise _fail(e)

    preview = Table(title=f"{len(parsed)} exercises in {path.name}")
    preview.add_column("#", justify="right")
    preview.add_column("Description")
    preview.add_column("Source")
    for index, entry in enumerate(parsed, start=1):
        preview.add_row(
            str(index), escape(entry.description.splitlines()[0]), escape(entry.source.splitlines()[0])
        )
    console.print(preview)

    if dry_run:
        rprint("[dim]Dry run: nothing was saved.[/dim]")
        return
    if not parsed:
        rprint("[yellow]Nothing to import.[/yellow]")
        return
    if not confirm and not Confirm.ask("Import these exercises?", default=True):
        raise typer.Exit(0)

    try:
        result = ExerciseImporter(_open_store()).import_file(path)
    except DrillError as e:
        raise _fail(e)
    rprint(f"[green]Imported {result.total_imported} exercises.[/green]")


@app.command("edit")
def edit_command(
    exercise_id: int = typer.Argument(..., help="Exercise ID"),
    output_path: Path = typer.Argument(..., help="Where to write the exercise"),
) -> None:
    """Export one exercise to a YAML file for editing."""
    try:
        exercise = _open_store().get(exercise_id)
        export_exercise(exercise, output_path)
    except (DrillError, OSError) as e:
        raise _fail(e)
    rprint(f"[green]Exercise {exercise_id} written to {output_path}[/green]")
    rprint(f"[dim]Run [cyan]drill update {output_path}[/cyan] after editing.[/dim]")


@app.command("update")
def update_command(
    path: Path = typer.Argument(..., help="Edited exercise file"),
) -> None:
    """Save an edited exercise back to the store."""
    try:
        exercise = apply_edit(_open_store(), path)
    except DrillError as e:
        raise _fail(e)
    rprint(f"[green]Exercise {exercise.id} updated.[/green]")


@app.command("list")
def list_command() -> None:
    """List all exercises, latest due date first."""
    try:
        exercises = _open_store().list_all()
    except DrillError as e:
        raise _fail(e)

    if not exercises:
        rprint("[yellow]No exercises yet.[/yellow] Run [cyan]drill import <path>[/cyan].")
        return
    console.print(exercise_table(exercises, title=f"{len(exercises)} exercises"))


@app.command("grep")
def grep_command(
    text: str = typer.Argument(..., help="Text to search for"),
) -> None:
    """Find exercises whose content or ID contains the text."""
    try:
        exercises = _open_store().grep(text)
    except DrillError as e:
        raise _fail(e)

    if not exercises:
        rprint(f"[yellow]No exercises match '{escape(text)}'.[/yellow]")
        return
    console.print(exercise_table(exercises, title=f"{len(exercises)} matches"))


# ========================================
# Review
# ========================================


@app.command("review")
def review_command(
    minutes: Optional[int] = typer.Option(
        None,
        "--minutes", "-m",
        min=1,
        help="Time box in minutes (defaults to REVIEW_TIME_BOX_MINUTES)",
    ),
) -> None:
    """
    Start an interactive review session.

    Presents due exercises until all are done, the time box runs out, or
    you quit. Choosing 'Quit and Edit' exports the current exercise.
    """
    settings = get_settings()
    time_box = minutes or settings.review_time_box_minutes

    def export_for_edit(exercise: Exercise) -> None:
        path = export_exercise(exercise, export_path_for(exercise, settings.edit_export_dir))
        rprint(f"\n[cyan]Exercise {exercise.id} written to {path}[/cyan]")
        rprint(f"[dim]Run [cyan]drill update {path}[/cyan] after editing.[/dim]")

    try:
        context = ReviewContext(store=_open_store(), export_for_edit=export_for_edit)
    except DrillError as e:
        raise _fail(e)

    session = ReviewSession(context, time_limit=timedelta(minutes=time_box))

    try:
        summary = run_review(session, TerminalReviewUI(console))
    except (DrillError, OSError) as e:
        if session.is_finished and session.queue:
            display_session_summary(session.summary(), console)
        raise _fail(e)

    if summary.queued == 0:
        rprint("[green]Nothing due for review![/green] All caught up.")
        return
    display_session_summary(summary, console)


# ========================================
# Entry Point
# ========================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="1 MB")

    app()


if __name__ == "__main__":
    main()
