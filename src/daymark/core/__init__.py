"""Functional core - pure business logic with no I/O."""

from .daymath import Clock, calendar_day, day_difference, local_date
from .recurrence import RepeatRule, next_occurrence
from .countdowns import (
    Countdown,
    CountdownBoard,
    CountdownView,
    UrgencyBucket,
    build_board,
    classify,
)
from .tracking import (
    Activity,
    ActivityProgress,
    Period,
    TimeEntry,
    aggregate_minutes,
    goal_progress,
    period_start,
    summarize,
)
from .timer import TimerSession
from .todos import Todo, sort_todos
from .errors import (
    ConflictError,
    DaymarkError,
    InvalidDurationError,
    InvalidGoalError,
    NoActiveTimerError,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Day math
    "Clock",
    "calendar_day",
    "day_difference",
    "local_date",
    # Recurrence
    "RepeatRule",
    "next_occurrence",
    # Countdowns
    "Countdown",
    "CountdownBoard",
    "CountdownView",
    "UrgencyBucket",
    "build_board",
    "classify",
    # Tracking
    "Activity",
    "ActivityProgress",
    "Period",
    "TimeEntry",
    "aggregate_minutes",
    "goal_progress",
    "period_start",
    "summarize",
    # Timer
    "TimerSession",
    # Todos
    "Todo",
    "sort_todos",
    # Errors
    "ConflictError",
    "DaymarkError",
    "InvalidDurationError",
    "InvalidGoalError",
    "NoActiveTimerError",
    "NotFoundError",
    "StorageError",
]
