"""
Task Service - Task lifecycle for a single owner.

Validates every mutation before it reaches the store, applies the lazy
recurrence reset on reads and feeds the activity ledger on writes.
"""

import datetime
import logging
from typing import Any, Dict, List, Optional

from taskledger.domain.models import Task, TaskUpdate
from taskledger.infra.repository import TaskRepository
from taskledger.services.activity_service import ActivityService
from taskledger.services.recurrence_service import reset_fields, should_reset
from taskledger.utils import utc_now

logger = logging.getLogger(__name__)

# Patch fields that may legitimately be cleared
NULLABLE_FIELDS = {"completed_at", "last_completed_date"}


class TaskService:
    """
    Business operations on tasks. Every call is scoped by owner_id; a task
    owned by someone else behaves as missing (None).
    """

    def __init__(self, task_repo: Optional[TaskRepository] = None,
                 activity_service: Optional[ActivityService] = None):
        self.task_repo = task_repo or TaskRepository()
        self.activity_service = activity_service or ActivityService()

    async def list_tasks(self, owner_id: str,
                         now: Optional[datetime.datetime] = None) -> List[Task]:
        """
        All tasks of the owner, newest first.

        Completed recurring tasks from an earlier day are reset to pending and
        persisted before being returned.
        """
        now = now or utc_now()
        tasks = []
        for task in await self.task_repo.find_by_owner(owner_id):
            if task.completed and should_reset(task, now):
                reset = await self.task_repo.patch(task.id, owner_id, reset_fields())
                if reset is not None:
                    logger.debug(f"Reset recurring task {task.id} for {owner_id}")
                    task = reset
            tasks.append(task)
        return tasks

    async def get_task(self, owner_id: str, task_id: int) -> Optional[Task]:
        return await self.task_repo.find_by_id(task_id, owner_id)

    async def create_task(self, owner_id: str, **fields: Any) -> Task:
        """
        Validate and store a new task, then count it in the ledger. A task
        created as completed is also counted as a completion.

        Raises:
            pydantic.ValidationError: invalid fields; nothing is stored
        """
        if fields.get("completed") and fields.get("completed_at") is None:
            fields["completed_at"] = utc_now()
        task = Task(owner_id=owner_id, **fields)
        if task.completed and task.is_recurring and task.last_completed_date is None:
            task = task.model_copy(update={"last_completed_date": task.completed_at})

        created = await self.task_repo.create(task)
        await self.activity_service.record_task_created(owner_id, created.created_at)
        if created.completed:
            await self.activity_service.record_task_completed(
                owner_id, created.completed_at, created.time_spent
            )
        return created

    async def update_task(self, owner_id: str, task_id: int, **fields: Any) -> Optional[Task]:
        """
        Apply a validated partial update.

        Completing a task fills completed_at when absent, stamps
        last_completed_date on recurring tasks and records the completion in
        the ledger. Reopening clears completed_at.

        Returns:
            The updated task, or None when the owner has no such task
        """
        changes = {
            name: value
            for name, value in TaskUpdate(**fields).model_dump(exclude_unset=True).items()
            if value is not None or name in NULLABLE_FIELDS
        }

        current = await self.task_repo.find_by_id(task_id, owner_id)
        if current is None:
            return None

        completing = changes.get("completed") is True and not current.completed
        if changes.get("completed") is True and changes.get("completed_at") is None:
            changes["completed_at"] = current.completed_at if current.completed else utc_now()
        elif changes.get("completed") is False:
            changes["completed_at"] = None

        merged = Task.model_validate({**current.model_dump(), **changes})
        if completing and merged.is_recurring:
            changes["last_completed_date"] = merged.completed_at

        updated = await self.task_repo.patch(task_id, owner_id, changes)
        if updated is not None and completing:
            await self.activity_service.record_task_completed(
                owner_id, updated.completed_at, updated.time_spent
            )
        return updated

    async def complete_task(self, owner_id: str, task_id: int,
                            completed_at: Optional[datetime.datetime] = None,
                            time_spent: Optional[float] = None) -> Optional[Task]:
        """Mark a task completed, optionally with a (backdated) completion time and final time"""
        fields: Dict[str, Any] = {"completed": True}
        if completed_at is not None:
            fields["completed_at"] = completed_at
        if time_spent is not None:
            fields["time_spent"] = time_spent
        return await self.update_task(owner_id, task_id, **fields)

    async def delete_task(self, owner_id: str, task_id: int) -> Optional[Task]:
        """
        Delete a task and strip its id from the dependencies of the owner's
        other tasks. Dependent tasks themselves are kept.
        """
        deleted = await self.task_repo.delete_by_id(task_id, owner_id)
        if deleted is None:
            return None
        touched = await self.task_repo.remove_dependency_references(task_id, owner_id)
        if touched:
            logger.debug(f"Removed task {task_id} from {touched} dependency lists")
        return deleted

    async def unmet_dependencies(self, owner_id: str, task: Task) -> List[int]:
        """Ids of the task's dependencies that still exist and are not completed"""
        if not task.dependencies:
            return []
        by_id = {other.id: other for other in await self.task_repo.find_by_owner(owner_id)}
        return [
            dep for dep in task.dependencies
            if dep in by_id and not by_id[dep].completed
        ]
