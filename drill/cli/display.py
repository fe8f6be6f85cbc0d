"""
Terminal rendering and input for review sessions.

Menus are a single line of options with one-key shortcuts:

    Know It (k) | Don't Know It (d) | Quit and Edit (q)

Unrecognised input raises InputError and the prompt is shown again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from drill.errors import InputError
from drill.review.session import (
    EndReason,
    KnowledgeClaim,
    MatchConfirmation,
    ReviewSession,
    SessionSummary,
)
from drill.store.base import Exercise

T = TypeVar("T")

console = Console()


# =============================================================================
# Menus
# =============================================================================


@dataclass(frozen=True)
class MenuOption(Generic[T]):
    """One entry of a horizontal menu."""

    label: str
    shortcut: str
    value: T


KNOWLEDGE_MENU: tuple[MenuOption[KnowledgeClaim], ...] = (
    MenuOption("Know It", "k", KnowledgeClaim.KNOW_IT),
    MenuOption("Don't Know It", "d", KnowledgeClaim.DONT_KNOW_IT),
    MenuOption("Quit and Edit", "q", KnowledgeClaim.QUIT_AND_EDIT),
)

MATCH_MENU: tuple[MenuOption[MatchConfirmation], ...] = (
    MenuOption("Matched", "y", MatchConfirmation.MATCHED),
    MenuOption("Did Not Match", "n", MatchConfirmation.DID_NOT_MATCH),
)


def format_menu(options: Sequence[MenuOption[T]]) -> str:
    return " | ".join(
        f"[bold]{option.label}[/bold] [cyan]({option.shortcut})[/cyan]" for option in options
    )


def parse_choice(raw: str, options: Sequence[MenuOption[T]]) -> T:
    """
    Match typed input against a menu by shortcut or full label.

    Raises:
        InputError: If nothing matches
    """
    text = raw.strip().lower()
    for option in options:
        if text in (option.shortcut.lower(), option.label.lower()):
            return option.value
    shortcuts = "/".join(option.shortcut for option in options)
    raise InputError(f"Please choose one of {shortcuts}.")


def ask_choice(options: Sequence[MenuOption[T]], out: Console | None = None) -> T:
    """Prompt until the input matches a menu option."""
    out = out or console
    while True:
        out.print(format_menu(options))
        try:
            return parse_choice(out.input("> "), options)
        except InputError as e:
            out.print(f"[yellow]{e}[/yellow]")


# =============================================================================
# Review UI
# =============================================================================


class TerminalReviewUI:
    """Rich-based implementation of the review loop's UI collaborator."""

    def __init__(self, out: Console | None = None):
        self.out = out or console

    def show_exercise(self, session: ReviewSession, exercise: Exercise) -> None:
        self.out.print()
        self.out.print(session.header(), style="dim", highlight=False)
        self.out.print(
            Panel(escape(exercise.description), title="Description", title_align="left",
                  border_style="cyan", padding=(1, 2))
        )

    def ask_knowledge_claim(self) -> KnowledgeClaim:
        return ask_choice(KNOWLEDGE_MENU, self.out)

    def show_answer(self, exercise: Exercise) -> None:
        self.out.print(
            Panel(
                f"{escape(exercise.answer)}\n\n[dim]Source: {escape(exercise.source)}[/dim]",
                title="Reference Answer",
                title_align="left",
                border_style="green",
                padding=(1, 2),
            )
        )

    def ask_match_confirmation(self) -> MatchConfirmation:
        self.out.print("Did your answer match the reference answer?")
        return ask_choice(MATCH_MENU, self.out)


# =============================================================================
# Summaries and Listings
# =============================================================================

END_MESSAGES = {
    EndReason.QUEUE_EXHAUSTED: "All due exercises reviewed.",
    EndReason.TIME_LIMIT: "Time box reached.",
    EndReason.QUIT: "Session quit.",
    EndReason.EDIT_REQUESTED: "Session stopped to edit an exercise.",
    EndReason.STORE_FAILURE: "Session halted: the exercise store failed.",
}


def display_session_summary(summary: SessionSummary, out: Console | None = None) -> None:
    """Display end-of-session summary."""
    out = out or console
    minutes = summary.duration.total_seconds() / 60
    message = END_MESSAGES.get(summary.end_reason, "Session finished.")

    body = (
        f"[bold]{message}[/bold]\n\n"
        f"Duration: {minutes:.1f} minutes\n"
        f"Exercises due: {summary.queued}\n"
        f"Reviewed: {summary.reviewed}\n"
        f"  [green]Correct: {summary.correct}[/green]\n"
        f"  [red]Incorrect: {summary.incorrect}[/red]\n"
    )
    if summary.reviewed:
        body += f"Accuracy: {summary.accuracy * 100:.0f}%\n"
    if summary.remaining:
        body += f"[dim]Not reached: {summary.remaining}[/dim]\n"

    style = "green" if summary.end_reason is EndReason.QUEUE_EXHAUSTED else "yellow"
    out.print(Panel(body.rstrip(), title="Summary", border_style=style))


def _first_line(text: str, width: int = 60) -> str:
    line = text.splitlines()[0] if text else ""
    return line if len(line) <= width else line[: width - 3] + "..."


def exercise_table(exercises: Sequence[Exercise], title: str | None = None) -> Table:
    """Tabular listing of exercises with their schedule."""
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Due")
    table.add_column("Interval", justify="right")
    table.add_column("Description")

    for exercise in exercises:
        table.add_row(
            str(exercise.id),
            exercise.due_at.strftime("%Y-%m-%d %H:%M"),
            f"{exercise.interval.days}d",
            escape(_first_line(exercise.description)),
        )
    return table
