"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import TaskModel, PomodoroSessionModel, ActivityModel, WeeklyReportModel, Base

__all__ = ["TaskModel", "PomodoroSessionModel", "ActivityModel", "WeeklyReportModel", "Base"]
