"""StoryTimer: interval-workout timer with narration synchronized to the session."""

from .schedule import Interval, Schedule, ScheduleError, WorkoutSet, build_schedule
from .session import StorySession, WorkoutSession
from .timer import TimerEngine, TimerState

__version__ = "0.1.0"

__all__ = [
    "Interval",
    "Schedule",
    "ScheduleError",
    "StorySession",
    "TimerEngine",
    "TimerState",
    "WorkoutSession",
    "WorkoutSet",
    "build_schedule",
    "__version__",
]
