"""Domain layer - Pure business entities and logic"""

from .models import (
    Task, TaskUpdate, PomodoroSession, ActivityEntry, WeeklyReport,
    ContinuityResult, DayBucket, HistoryResult, PomodoroSettings, UserPreferences,
)

__all__ = [
    "Task", "TaskUpdate", "PomodoroSession", "ActivityEntry", "WeeklyReport",
    "ContinuityResult", "DayBucket", "HistoryResult", "PomodoroSettings", "UserPreferences",
]
