"""Services layer - Business logic"""

from .activity_service import ActivityService
from .task_service import TaskService
from .timer_service import TimerService
from .pomodoro_service import PomodoroService, PomodoroCycle
from .history_service import HistoryService
from .weekly_report_service import WeeklyReportService
from .report_service import ReportService
from .export_service import ExportService

__all__ = [
    "ActivityService", "TaskService", "TimerService", "PomodoroService", "PomodoroCycle",
    "HistoryService", "WeeklyReportService", "ReportService", "ExportService",
]
