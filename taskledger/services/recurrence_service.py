"""
Recurrence Resolver.

Recurring tasks are reset lazily: each time an owner's task list is read, a
completed recurring task whose last completion is not from today goes back to
pending. There is no scheduler, so a reset only becomes visible on the next
read.

All recurrence types (daily, weekly, monthly) reset on day boundaries.
"""

import datetime
from typing import Any, Dict

from taskledger.domain.models import Task
from taskledger.services.calendar_service import day_key


def should_reset(task: Task, today: datetime.datetime) -> bool:
    """
    Decide whether a recurring task must start a fresh cycle.

    Args:
        task: The task as stored
        today: Reference time of the read

    Returns:
        False for non-recurring tasks; True when the task was never cycled
        (no last_completed_date) or was last completed on another day.
    """
    if not task.is_recurring:
        return False
    if task.last_completed_date is None:
        return True
    return day_key(task.last_completed_date) != day_key(today)


def reset_fields() -> Dict[str, Any]:
    """Patch applied on reset. last_completed_date is only written at completion time."""
    return {"completed": False, "completed_at": None}
