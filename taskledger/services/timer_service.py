"""
Timer Service - Elapsed time tracking for tasks.

The authoritative time of a running task is always
`accumulated + elapsed(segment_start, now)`: nothing ticks, any scheduler
(event loop callback, UI timer) simply asks for the current value and calls
flush() periodically to persist it.
"""

import datetime
import logging
from typing import Dict, List, Optional, Tuple

from taskledger.domain.errors import TaskNotRunningError, UnmetDependenciesError
from taskledger.domain.models import Task
from taskledger.services.task_service import TaskService
from taskledger.utils import utc_now, to_naive_utc

logger = logging.getLogger(__name__)


def elapsed(start_time: datetime.datetime, now: datetime.datetime) -> float:
    """Seconds between start_time and now, never negative"""
    seconds = (to_naive_utc(now) - to_naive_utc(start_time)).total_seconds()
    return max(0.0, seconds)


class TimerService:
    """
    Keeps the running timers of a process in memory.

    A running timer is a segment start plus the task time accumulated before
    it. flush() persists and opens a new segment; stop() persists and forgets.
    """

    def __init__(self, task_service: Optional[TaskService] = None, auto_save_seconds: int = 60):
        self.task_service = task_service or TaskService()
        self.auto_save_seconds = auto_save_seconds
        # (owner_id, task_id) -> (segment start, accumulated seconds at segment start)
        self._running: Dict[Tuple[str, int], Tuple[datetime.datetime, float]] = {}
        self.last_save_time: Optional[datetime.datetime] = None

    def is_running(self, owner_id: str, task_id: int) -> bool:
        return (owner_id, task_id) in self._running

    def running_task_ids(self, owner_id: str) -> List[int]:
        return [task_id for owner, task_id in self._running if owner == owner_id]

    async def start(self, owner_id: str, task_id: int,
                    now: Optional[datetime.datetime] = None) -> Optional[Task]:
        """
        Start tracking a task.

        Raises:
            UnmetDependenciesError: a dependency of the task is not completed
        """
        now = now or utc_now()
        task = await self.task_service.get_task(owner_id, task_id)
        if task is None:
            return None
        if self.is_running(owner_id, task_id):
            return task

        unmet = await self.task_service.unmet_dependencies(owner_id, task)
        if unmet:
            raise UnmetDependenciesError(task_id, unmet)

        self._running[(owner_id, task_id)] = (now, task.time_spent)
        if self.last_save_time is None:
            self.last_save_time = now
        return task

    def current_time_spent(self, owner_id: str, task_id: int,
                           now: Optional[datetime.datetime] = None) -> Optional[float]:
        """Authoritative time of a running task, None when it is not running"""
        timer = self._running.get((owner_id, task_id))
        if timer is None:
            return None
        segment_start, accumulated = timer
        return accumulated + elapsed(segment_start, now or utc_now())

    def is_overrun(self, task: Task, now: Optional[datetime.datetime] = None) -> bool:
        """True when the task has an expectation and its time exceeds it"""
        if task.expected_time <= 0:
            return False
        spent = self.current_time_spent(task.owner_id, task.id, now)
        if spent is None:
            spent = task.time_spent
        return spent > task.expected_time

    def flush_due(self, now: Optional[datetime.datetime] = None) -> bool:
        """Whether the auto-save interval has passed while timers are running"""
        if not self._running or self.last_save_time is None:
            return False
        return elapsed(self.last_save_time, now or utc_now()) >= self.auto_save_seconds

    async def flush(self, owner_id: Optional[str] = None,
                    now: Optional[datetime.datetime] = None) -> List[Task]:
        """Persist the current time of running tasks (of one owner, or all)"""
        now = now or utc_now()
        saved = []
        for owner, task_id in list(self._running):
            if owner_id is not None and owner != owner_id:
                continue
            value = self.current_time_spent(owner, task_id, now)
            task = await self.task_service.update_task(owner, task_id, time_spent=value)
            if task is None:
                logger.warning(f"Dropping timer of missing task {task_id} for {owner}")
                del self._running[(owner, task_id)]
                continue
            self._running[(owner, task_id)] = (now, value)
            saved.append(task)
        self.last_save_time = now
        return saved

    async def stop(self, owner_id: str, task_id: int,
                   now: Optional[datetime.datetime] = None) -> Optional[Task]:
        """
        Stop a running task and persist its time.

        Raises:
            TaskNotRunningError: the task has no running timer
        """
        if not self.is_running(owner_id, task_id):
            raise TaskNotRunningError(task_id)
        value = self.current_time_spent(owner_id, task_id, now)
        del self._running[(owner_id, task_id)]
        return await self.task_service.update_task(owner_id, task_id, time_spent=value)

    async def complete(self, owner_id: str, task_id: int,
                       now: Optional[datetime.datetime] = None) -> Optional[Task]:
        """Stop the task if it is running, then mark it completed"""
        now = now or utc_now()
        time_spent = None
        if self.is_running(owner_id, task_id):
            time_spent = self.current_time_spent(owner_id, task_id, now)
            del self._running[(owner_id, task_id)]
        return await self.task_service.complete_task(
            owner_id, task_id, completed_at=now, time_spent=time_spent
        )
