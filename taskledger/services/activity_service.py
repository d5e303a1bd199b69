"""
Activity Ledger Service.

Maintains one counter row per user per calendar day, updated as task and
pomodoro events happen. Updates are increment-only upserts; the only absolute
write is repair_day, used when today's row is rebuilt from a task scan.

Ledger writes are a side channel: a store failure is logged and swallowed so
the task or pomodoro mutation that triggered it still succeeds. The ledger can
always be rebuilt from the task and session stores.
"""

import datetime
import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from taskledger.domain.models import ActivityEntry
from taskledger.infra.repository import ActivityRepository
from taskledger.services.calendar_service import DateLike, to_day
from taskledger.utils import utc_now

logger = logging.getLogger(__name__)


class ActivityService:
    """
    Records per-day activity counters for the continuity calculator.
    """

    def __init__(self, activity_repo: Optional[ActivityRepository] = None):
        self.activity_repo = activity_repo or ActivityRepository()

    async def record_task_created(self, owner_id: str,
                                  when: Optional[datetime.datetime] = None) -> Optional[ActivityEntry]:
        """Count a created task on the day it was created"""
        return await self._increment(owner_id, when or utc_now(), {"tasks_created": 1})

    async def record_task_completed(self, owner_id: str, when: datetime.datetime,
                                    time_spent: float) -> Optional[ActivityEntry]:
        """Count a completion (and its time) on the completion day, which may be backdated"""
        return await self._increment(
            owner_id, when, {"tasks_completed": 1, "time_spent": time_spent or 0.0}
        )

    async def record_pomodoro_completed(self, owner_id: str,
                                        when: Optional[datetime.datetime] = None) -> Optional[ActivityEntry]:
        return await self._increment(owner_id, when or utc_now(), {"pomodoros_completed": 1})

    async def repair_day(self, owner_id: str, day: DateLike, tasks_created: int,
                         tasks_completed: int, time_spent: float) -> Optional[ActivityEntry]:
        """
        Overwrite a day's task counters with values recomputed from a full task scan.

        pomodoros_completed is left alone; it is only ever incremented.
        """
        fields = {
            "tasks_created": tasks_created,
            "tasks_completed": tasks_completed,
            "time_spent": time_spent,
        }
        try:
            return await self.activity_repo.upsert_set(owner_id, to_day(day), fields)
        except SQLAlchemyError as e:
            logger.warning(f"Activity repair failed for {owner_id} on {to_day(day)}: {e}")
            return None

    async def entries_in_range(self, owner_id: str, start_day: datetime.date,
                               end_day: datetime.date) -> List[ActivityEntry]:
        return await self.activity_repo.find_by_owner_in_range(owner_id, start_day, end_day)

    async def _increment(self, owner_id: str, when: DateLike,
                         deltas: Dict[str, float]) -> Optional[ActivityEntry]:
        day = to_day(when)
        try:
            return await self.activity_repo.upsert_increment(owner_id, day, deltas)
        except SQLAlchemyError as e:
            logger.warning(f"Activity update {deltas} failed for {owner_id} on {day}: {e}")
            return None
