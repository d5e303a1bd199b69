"""
Pomodoro Service - Focus timer cycle and session log.

A cycle alternates work phases with breaks; every Nth completed work phase is
followed by a long break instead of a short one. Each completed work phase is
appended to the session log, counted on its task and in the activity ledger.
"""

import datetime
import logging
from enum import Enum
from typing import List, Optional

from taskledger.domain.models import PomodoroSession, PomodoroSettings
from taskledger.infra.repository import PomodoroSessionRepository, TaskRepository
from taskledger.services.activity_service import ActivityService
from taskledger.services.timer_service import elapsed
from taskledger.utils import utc_now

logger = logging.getLogger(__name__)


class PomodoroPhase(str, Enum):
    WORK = "work"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"


class PomodoroCycle:
    """Phase state machine of one focus timer"""

    def __init__(self, settings: Optional[PomodoroSettings] = None):
        self.settings = settings or PomodoroSettings()
        self.phase = PomodoroPhase.WORK
        self.completed_sessions = 0

    @property
    def phase_duration(self) -> int:
        if self.phase == PomodoroPhase.WORK:
            return self.settings.work_duration
        if self.phase == PomodoroPhase.LONG_BREAK:
            return self.settings.long_break
        return self.settings.short_break

    def time_left(self, phase_started_at: datetime.datetime,
                  now: Optional[datetime.datetime] = None) -> float:
        return max(0.0, self.phase_duration - elapsed(phase_started_at, now or utc_now()))

    def complete_phase(self) -> PomodoroPhase:
        """Move to the next phase and return it"""
        if self.phase == PomodoroPhase.WORK:
            self.completed_sessions += 1
            if self.completed_sessions % self.settings.sessions_before_long_break == 0:
                self.phase = PomodoroPhase.LONG_BREAK
            else:
                self.phase = PomodoroPhase.SHORT_BREAK
        else:
            self.phase = PomodoroPhase.WORK
        return self.phase

    def skip(self) -> PomodoroPhase:
        """Skipping a phase counts as finishing it"""
        return self.complete_phase()


class PomodoroService:
    """
    Records completed work phases.
    """

    def __init__(self, session_repo: Optional[PomodoroSessionRepository] = None,
                 task_repo: Optional[TaskRepository] = None,
                 activity_service: Optional[ActivityService] = None):
        self.session_repo = session_repo or PomodoroSessionRepository()
        self.task_repo = task_repo or TaskRepository()
        self.activity_service = activity_service or ActivityService()

    async def record_session(self, owner_id: str, duration: float,
                             task_id: Optional[int] = None,
                             when: Optional[datetime.datetime] = None) -> PomodoroSession:
        """
        Append a completed session.

        Raises:
            pydantic.ValidationError: invalid duration; nothing is stored
        """
        pomodoro = PomodoroSession(
            owner_id=owner_id, task_id=task_id, date=when or utc_now(), duration=duration
        )
        stored = await self.session_repo.create(pomodoro)

        if task_id is not None:
            task = await self.task_repo.increment_pomodoro_count(task_id, owner_id)
            if task is None:
                logger.warning(f"Pomodoro recorded against unknown task {task_id} for {owner_id}")

        await self.activity_service.record_pomodoro_completed(owner_id, stored.date)
        return stored

    async def complete_phase(self, owner_id: str, cycle: PomodoroCycle,
                             task_id: Optional[int] = None,
                             now: Optional[datetime.datetime] = None) -> Optional[PomodoroSession]:
        """Advance the cycle; a finished work phase is recorded as a session"""
        finished = cycle.phase
        cycle.complete_phase()
        if finished != PomodoroPhase.WORK:
            return None
        return await self.record_session(owner_id, cycle.settings.work_duration, task_id, now)

    async def list_sessions(self, owner_id: str) -> List[PomodoroSession]:
        """All sessions of the owner, newest first"""
        return await self.session_repo.find_by_owner(owner_id)
