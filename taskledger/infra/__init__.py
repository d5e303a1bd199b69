"""Infrastructure layer - Database and persistence"""

from .db import DatabaseEngine, get_engine, init_db
from .models import TaskModel, PomodoroSessionModel, ActivityModel, WeeklyReportModel

__all__ = [
    "DatabaseEngine", "get_engine", "init_db",
    "TaskModel", "PomodoroSessionModel", "ActivityModel", "WeeklyReportModel",
]
