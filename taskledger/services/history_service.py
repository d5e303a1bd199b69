"""
History Query Service.

Joins the task store with the activity ledger into a per-day view: tasks
created and completed per day inside the requested window, plus streaks and
continuity. Today's ledger row is rebuilt from the task scan on each query.
"""

import datetime
from typing import Dict, Optional

from taskledger.domain.models import DayBucket, HistoryResult
from taskledger.infra.repository import TaskRepository
from taskledger.services.activity_service import ActivityService
from taskledger.services.calendar_service import date_range, day_key, to_day
from taskledger.services.continuity_service import CONTINUITY_BASELINE_DAYS, compute_continuity
from taskledger.utils import utc_now


class HistoryService:

    def __init__(self, task_repo: Optional[TaskRepository] = None,
                 activity_service: Optional[ActivityService] = None):
        self.task_repo = task_repo or TaskRepository()
        self.activity_service = activity_service or ActivityService()

    async def get_history(self, owner_id: str, days: int = 30,
                          now: Optional[datetime.datetime] = None) -> HistoryResult:
        """
        Per-day history of the last `days` days and the owner's continuity.

        A task is included when it was created or completed inside the window;
        it is listed on its creation day and, if completed, on its completion
        day where its time is counted. Days outside the window get no bucket.

        Raises:
            ValueError: days < 1
        """
        now = now or utc_now()
        start_day, end_day = date_range(days, now)

        buckets: Dict[str, DayBucket] = {}

        def bucket_for(day: datetime.date) -> DayBucket:
            key = day_key(day)
            if key not in buckets:
                buckets[key] = DayBucket(date=key)
            return buckets[key]

        for task in await self.task_repo.find_by_owner(owner_id):
            created_day = to_day(task.created_at)
            completed_day = to_day(task.completed_at) if task.completed_at else None
            if start_day <= created_day <= end_day:
                bucket_for(created_day).created.append(task)
            if task.completed and completed_day is not None and start_day <= completed_day <= end_day:
                bucket = bucket_for(completed_day)
                bucket.completed.append(task)
                bucket.time_spent += task.time_spent

        history = sorted(buckets.values(), key=lambda bucket: bucket.date, reverse=True)

        today_bucket = buckets.get(day_key(end_day)) or DayBucket(date=day_key(end_day))
        await self.activity_service.repair_day(
            owner_id,
            end_day,
            tasks_created=len(today_bucket.created),
            tasks_completed=len(today_bucket.completed),
            time_spent=today_bucket.time_spent,
        )

        lookback_start, lookback_end = date_range(CONTINUITY_BASELINE_DAYS, now)
        entries = await self.activity_service.entries_in_range(owner_id, lookback_start, lookback_end)

        return HistoryResult(
            history=history,
            continuity=compute_continuity(entries, days, now),
        )
