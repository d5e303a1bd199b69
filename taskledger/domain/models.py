"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Every write path (task creation, task patches, pomodoro sessions) is validated
here before anything reaches the database, so a rejected payload is never
partially applied. The same models serialize the derived state (ledger rows,
weekly reports, continuity) handed to the presentation layer.
"""

import datetime
from enum import Enum
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from taskledger.utils import utc_now, to_naive_utc


class RecurringType(str, Enum):
    """Recurrence cadence of a task. All three currently reset daily."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Priority(int, Enum):
    NORMAL = 0
    MEDIUM = 1
    HIGH = 2


def _naive_utc(value):
    if isinstance(value, datetime.datetime):
        return to_naive_utc(value)
    return value


def _dedupe(ids):
    seen = []
    for task_id in ids or []:
        if task_id not in seen:
            seen.append(task_id)
    return seen


class Task(BaseModel):
    """
    A unit of work owned by exactly one user.

    Invariants:
    - completed implies completed_at is set
    - dependencies never contain the task's own id
    - time_spent is never negative
    """
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: Optional[int] = None
    owner_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=100)
    completed: bool = False

    # Seconds; accumulated by timer flushes
    time_spent: float = Field(default=0.0, ge=0)
    # Seconds; 0 means no expectation was set
    expected_time: float = Field(default=0.0, ge=0)

    created_at: datetime.datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime.datetime] = None
    pomodoro_count: int = Field(default=0, ge=0)
    dependencies: List[int] = Field(default_factory=list)

    is_recurring: bool = False
    recurring_type: RecurringType = RecurringType.DAILY
    priority: Priority = Priority.NORMAL
    last_completed_date: Optional[datetime.datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("created_at", "completed_at", "last_completed_date", mode="before")
    @classmethod
    def _normalize_timestamps(cls, value):
        return _naive_utc(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _unique_dependencies(cls, value):
        return _dedupe(value) if isinstance(value, (list, tuple, set)) else value

    @model_validator(mode="after")
    def _check_invariants(self):
        if self.id is not None and self.id in self.dependencies:
            raise ValueError("A task cannot depend on itself")
        if self.completed and self.completed_at is None:
            raise ValueError("A completed task needs a completed_at timestamp")
        return self


class TaskUpdate(BaseModel):
    """Partial update of a task. Only explicitly set fields are applied."""
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    completed: Optional[bool] = None
    time_spent: Optional[float] = Field(default=None, ge=0)
    expected_time: Optional[float] = Field(default=None, ge=0)
    completed_at: Optional[datetime.datetime] = None
    pomodoro_count: Optional[int] = Field(default=None, ge=0)
    dependencies: Optional[List[int]] = None
    is_recurring: Optional[bool] = None
    recurring_type: Optional[RecurringType] = None
    priority: Optional[Priority] = None
    last_completed_date: Optional[datetime.datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("completed_at", "last_completed_date", mode="before")
    @classmethod
    def _normalize_timestamps(cls, value):
        return _naive_utc(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _unique_dependencies(cls, value):
        return _dedupe(value) if isinstance(value, (list, tuple, set)) else value


class PomodoroSession(BaseModel):
    """A completed work phase. Append-only."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: str = Field(..., min_length=1)
    task_id: Optional[int] = None
    date: datetime.datetime = Field(default_factory=utc_now)
    duration: float = Field(..., ge=0)

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value):
        return _naive_utc(value)


class ActivityEntry(BaseModel):
    """Per-user, per-day activity counters (one row per owner and day)."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: str
    day: datetime.date
    tasks_created: int = 0
    tasks_completed: int = 0
    time_spent: float = 0.0
    pomodoros_completed: int = 0

    @property
    def is_active(self) -> bool:
        return (
            self.tasks_created > 0
            or self.tasks_completed > 0
            or self.time_spent > 0
            or self.pomodoros_completed > 0
        )


class WeeklyReport(BaseModel):
    """Summary of one calendar week (Sunday to Saturday) for one user."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: str
    week_start: datetime.date
    tasks_completed: int = 0
    total_time_spent: float = 0.0
    # actual / expected over completed tasks with an expectation; < 1 is ahead of schedule
    expected_vs_actual: float = 1.0
    pomodoro_count: int = 0


class ContinuityResult(BaseModel):
    """Streaks and continuity derived from the activity ledger."""
    current_streak: int = 0
    longest_streak: int = 0
    active_days: int = 0
    total_days: int = 0
    continuity_percentage: int = 0
    activity_by_date: Dict[str, bool] = Field(default_factory=dict)


class DayBucket(BaseModel):
    """Tasks created and completed on one calendar day."""
    date: str
    created: List[Task] = Field(default_factory=list)
    completed: List[Task] = Field(default_factory=list)
    time_spent: float = 0.0


class HistoryResult(BaseModel):
    history: List[DayBucket] = Field(default_factory=list)
    continuity: ContinuityResult = Field(default_factory=ContinuityResult)


class PomodoroSettings(BaseModel):
    """Phase lengths of the focus timer, in seconds."""
    model_config = ConfigDict(from_attributes=True)

    work_duration: int = Field(default=25 * 60, gt=0)
    short_break: int = Field(default=5 * 60, gt=0)
    long_break: int = Field(default=15 * 60, gt=0)
    sessions_before_long_break: int = Field(default=4, gt=0)


class UserPreferences(BaseModel):
    """
    User configuration and preferences.

    This allows users to customize behavior without touching code.
    """
    model_config = ConfigDict(from_attributes=True)

    pomodoro: PomodoroSettings = Field(default_factory=PomodoroSettings)
    history_days: int = Field(default=30, gt=0, description="Default window of history queries")
    auto_save_seconds: int = Field(default=60, gt=0, description="Interval between timer flushes")
    behind_schedule_threshold: float = Field(
        default=1.5,
        gt=0,
        description="Expected-vs-actual ratio above which a week is shown as behind schedule"
    )
