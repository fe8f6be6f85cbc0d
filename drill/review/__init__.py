"""
Review engine: interval scheduling and the interactive session state machine.

Components:
- DoublingScheduler: pure interval/due-date rule
- ReviewSession: timeboxed session controller
- run_review: blocking loop wiring a session to a terminal UI
"""

from .scheduler import (
    ONE_DAY,
    SIX_MONTHS,
    DoublingScheduler,
    Outcome,
    ScheduleUpdate,
    SchedulerConfig,
    schedule,
)
from .session import (
    DEFAULT_TIME_BOX,
    EndReason,
    KnowledgeClaim,
    MatchConfirmation,
    ReviewContext,
    ReviewSession,
    SessionState,
    SessionSummary,
    run_review,
)

__all__ = [
    # Scheduling
    "ONE_DAY",
    "SIX_MONTHS",
    "DoublingScheduler",
    "Outcome",
    "ScheduleUpdate",
    "SchedulerConfig",
    "schedule",
    # Sessions
    "DEFAULT_TIME_BOX",
    "EndReason",
    "KnowledgeClaim",
    "MatchConfirmation",
    "ReviewContext",
    "ReviewSession",
    "SessionState",
    "SessionSummary",
    "run_review",
]
