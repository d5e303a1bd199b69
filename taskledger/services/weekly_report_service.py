"""
Weekly Report Generator.

Partitions an owner's whole task and pomodoro history into calendar weeks
(Sunday to Saturday), from the week of the earliest task to the current week,
and computes one summary row per week.

Reports are derived state: every run recomputes all weeks from scratch and
replaces the stored rows. Each week is upserted on its own, so a run that
fails half-way leaves earlier weeks written and is completed by re-running.
"""

import datetime
import logging
from typing import Iterable, List, Optional

from taskledger.domain.models import PomodoroSession, Task, WeeklyReport
from taskledger.infra.repository import (
    PomodoroSessionRepository, TaskRepository, WeeklyReportRepository
)
from taskledger.services.calendar_service import iter_weeks, start_of_week, to_day
from taskledger.utils import utc_now

logger = logging.getLogger(__name__)


def _expected_vs_actual(completed: List[Task]) -> float:
    """actual / expected over completed tasks that carry an expectation; 1.0 without any"""
    with_expectation = [task for task in completed if task.expected_time > 0]
    if not with_expectation:
        return 1.0
    total_expected = sum(task.expected_time for task in with_expectation)
    total_actual = sum(task.time_spent for task in with_expectation)
    return total_actual / total_expected if total_expected > 0 else 1.0


def generate_reports(owner_id: str, tasks: Iterable[Task],
                     pomodoro_sessions: Iterable[PomodoroSession],
                     now: Optional[datetime.datetime] = None) -> List[WeeklyReport]:
    """
    Compute the weekly reports of one owner.

    Week membership is decided on UTC calendar days, both ends inclusive.
    total_time_spent sums the whole accumulated time of every task that
    overlapped the week, since time is not tracked per week.

    Args:
        owner_id: Owner the reports belong to
        tasks: All tasks of the owner
        pomodoro_sessions: All pomodoro sessions of the owner
        now: Reference time bounding the last week

    Returns:
        One unsaved WeeklyReport per week, oldest first; empty without tasks
    """
    tasks = list(tasks)
    if not tasks:
        return []

    created_days = [to_day(task.created_at) for task in tasks]
    completed_days = [to_day(task.completed_at) if task.completed_at else None for task in tasks]
    session_days = [to_day(session.date) for session in pomodoro_sessions]

    earliest_week_start = start_of_week(min(created_days))
    current_week_start = start_of_week(now if now is not None else utc_now())

    reports = []
    for week_start in iter_weeks(earliest_week_start, current_week_start):
        week_end = week_start + datetime.timedelta(days=6)

        completed_this_week = [
            task for task, done in zip(tasks, completed_days)
            if done is not None and week_start <= done <= week_end
        ]
        active_this_week = [
            task for task, created, done in zip(tasks, created_days, completed_days)
            if created <= week_end and (done is None or done >= week_start)
        ]

        reports.append(WeeklyReport(
            owner_id=owner_id,
            week_start=week_start,
            tasks_completed=len(completed_this_week),
            total_time_spent=sum(task.time_spent for task in active_this_week),
            expected_vs_actual=_expected_vs_actual(completed_this_week),
            pomodoro_count=sum(1 for day in session_days if week_start <= day <= week_end),
        ))

    return reports


class WeeklyReportService:
    """
    Regenerates and serves the stored weekly reports of an owner.
    """

    def __init__(self, task_repo: Optional[TaskRepository] = None,
                 session_repo: Optional[PomodoroSessionRepository] = None,
                 report_repo: Optional[WeeklyReportRepository] = None):
        self.task_repo = task_repo or TaskRepository()
        self.session_repo = session_repo or PomodoroSessionRepository()
        self.report_repo = report_repo or WeeklyReportRepository()

    async def get_reports(self, owner_id: str,
                          now: Optional[datetime.datetime] = None) -> List[WeeklyReport]:
        """
        Recompute every week and replace the stored rows.

        Returns:
            The stored reports, oldest week first
        """
        tasks = await self.task_repo.find_by_owner(owner_id)
        sessions = await self.session_repo.find_by_owner(owner_id)
        generated = generate_reports(owner_id, tasks, sessions, now)

        stored = []
        for report in generated:
            stored.append(await self.report_repo.upsert_replace(
                owner_id,
                report.week_start,
                report.model_dump(include={
                    "tasks_completed", "total_time_spent", "expected_vs_actual", "pomodoro_count"
                }),
            ))

        logger.info(f"Generated {len(stored)} weekly reports for {owner_id}")
        return stored

    async def list_reports(self, owner_id: str) -> List[WeeklyReport]:
        """Stored reports without regenerating, most recent week first"""
        return await self.report_repo.find_by_owner(owner_id)
