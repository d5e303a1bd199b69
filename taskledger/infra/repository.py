"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Mock data for testing
- Keep every query scoped to its owner in one place

Each repository is one of the stores the services consume: tasks, pomodoro
sessions, the activity ledger and the weekly reports.
"""

import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from taskledger.domain.models import Task, PomodoroSession, ActivityEntry, WeeklyReport
from taskledger.infra.db import (
    TaskModel, PomodoroSessionModel, ActivityModel, WeeklyReportModel, get_engine
)


LEDGER_COUNTERS = ("tasks_created", "tasks_completed", "time_spent", "pomodoros_completed")
REPORT_FIELDS = ("tasks_completed", "total_time_spent", "expected_vs_actual", "pomodoro_count")


def _dialect_insert(session: AsyncSession, model):
    """INSERT construct supporting ON CONFLICT for the bound dialect"""
    if session.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)


class _Repository:
    """Shared session handling: an injected session wins over the global engine"""

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()


class TaskRepository(_Repository):
    """
    Handles all Task-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    Every lookup is scoped by owner; a task of another owner is "not found".
    """

    async def find_by_owner(self, owner_id: str) -> List[Task]:
        """Get all tasks of an owner, newest first"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel)
                .where(TaskModel.owner_id == owner_id)
                .order_by(TaskModel.created_at.desc(), TaskModel.id.desc())
            )
            return [Task.model_validate(tm) for tm in result.scalars().all()]

    async def find_by_id(self, task_id: int, owner_id: str) -> Optional[Task]:
        """Get a specific task by ID"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(
                    TaskModel.id == task_id, TaskModel.owner_id == owner_id
                )
            )
            task_model = result.scalar_one_or_none()
            return Task.model_validate(task_model) if task_model else None

    async def create(self, task: Task) -> Task:
        """Create a new task"""
        session = await self._get_session()
        async with session:
            task_model = TaskModel(**task.model_dump(exclude={"id"}))
            session.add(task_model)
            await session.commit()
            await session.refresh(task_model)
            return Task.model_validate(task_model)

    async def patch(self, task_id: int, owner_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        """Apply a field patch. Returns the updated task or None when not found."""
        session = await self._get_session()
        async with session:
            if fields:
                result = await session.execute(
                    update(TaskModel)
                    .where(TaskModel.id == task_id, TaskModel.owner_id == owner_id)
                    .values(**fields)
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
                if result.rowcount == 0:
                    return None

            result = await session.execute(
                select(TaskModel)
                .where(TaskModel.id == task_id, TaskModel.owner_id == owner_id)
                .execution_options(populate_existing=True)
            )
            task_model = result.scalar_one_or_none()
            return Task.model_validate(task_model) if task_model else None

    async def increment_pomodoro_count(self, task_id: int, owner_id: str) -> Optional[Task]:
        """Atomically add one to a task's pomodoro counter"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                update(TaskModel)
                .where(TaskModel.id == task_id, TaskModel.owner_id == owner_id)
                .values(pomodoro_count=TaskModel.pomodoro_count + 1)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            if result.rowcount == 0:
                return None
            result = await session.execute(
                select(TaskModel)
                .where(TaskModel.id == task_id)
                .execution_options(populate_existing=True)
            )
            return Task.model_validate(result.scalar_one())

    async def delete_by_id(self, task_id: int, owner_id: str) -> Optional[Task]:
        """Delete a task. Returns the deleted task or None when not found."""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(
                    TaskModel.id == task_id, TaskModel.owner_id == owner_id
                )
            )
            task_model = result.scalar_one_or_none()
            if task_model is None:
                return None
            deleted = Task.model_validate(task_model)
            await session.delete(task_model)
            await session.commit()
            return deleted

    async def remove_dependency_references(self, deleted_id: int, owner_id: str) -> int:
        """Strip a deleted task's id from every dependency list. Returns the number of tasks touched."""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(TaskModel.owner_id == owner_id)
            )
            touched = 0
            for task_model in result.scalars().all():
                if deleted_id in (task_model.dependencies or []):
                    # Assign a new list so the JSON column is flagged dirty
                    task_model.dependencies = [
                        dep for dep in task_model.dependencies if dep != deleted_id
                    ]
                    touched += 1
            await session.commit()
            return touched


class PomodoroSessionRepository(_Repository):
    """
    Append-only log of completed pomodoro work phases.
    """

    async def find_by_owner(self, owner_id: str) -> List[PomodoroSession]:
        """Get all sessions of an owner, newest first"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(PomodoroSessionModel)
                .where(PomodoroSessionModel.owner_id == owner_id)
                .order_by(PomodoroSessionModel.date.desc(), PomodoroSessionModel.id.desc())
            )
            return [PomodoroSession.model_validate(m) for m in result.scalars().all()]

    async def create(self, pomodoro: PomodoroSession) -> PomodoroSession:
        """Append a session"""
        session = await self._get_session()
        async with session:
            model = PomodoroSessionModel(**pomodoro.model_dump(exclude={"id"}))
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return PomodoroSession.model_validate(model)


class ActivityRepository(_Repository):
    """
    Activity ledger store: one counter row per owner and calendar day.

    Increments are done in the database (INSERT .. ON CONFLICT DO UPDATE SET
    col = col + excluded.col) so concurrent events never lose updates.
    """

    async def upsert_increment(self, owner_id: str, day: datetime.date,
                               deltas: Dict[str, float]) -> ActivityEntry:
        """Create the day's row if absent, then add the deltas to its counters"""
        self._check_counters(deltas)
        values = {counter: deltas.get(counter, 0) for counter in LEDGER_COUNTERS}
        session = await self._get_session()
        async with session:
            stmt = _dialect_insert(session, ActivityModel).values(
                owner_id=owner_id, day=day, **values
            )
            if deltas:
                stmt = stmt.on_conflict_do_update(
                    index_elements=["owner_id", "day"],
                    set_={
                        counter: getattr(ActivityModel, counter) + getattr(stmt.excluded, counter)
                        for counter in deltas
                    },
                )
            else:
                stmt = stmt.on_conflict_do_nothing(index_elements=["owner_id", "day"])
            await session.execute(stmt)
            await session.commit()
            return await self._fetch(session, owner_id, day)

    async def upsert_set(self, owner_id: str, day: datetime.date,
                         fields: Dict[str, float]) -> ActivityEntry:
        """Create or overwrite the given counters with absolute values; other counters are kept"""
        self._check_counters(fields)
        session = await self._get_session()
        async with session:
            stmt = _dialect_insert(session, ActivityModel).values(
                owner_id=owner_id,
                day=day,
                **{counter: fields.get(counter, 0) for counter in LEDGER_COUNTERS}
            )
            if fields:
                stmt = stmt.on_conflict_do_update(
                    index_elements=["owner_id", "day"],
                    set_={counter: getattr(stmt.excluded, counter) for counter in fields},
                )
            else:
                stmt = stmt.on_conflict_do_nothing(index_elements=["owner_id", "day"])
            await session.execute(stmt)
            await session.commit()
            return await self._fetch(session, owner_id, day)

    async def find_by_owner_in_range(self, owner_id: str, start_day: datetime.date,
                                     end_day: datetime.date) -> List[ActivityEntry]:
        """Get ledger rows with start_day <= day <= end_day, oldest first"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(ActivityModel)
                .where(
                    ActivityModel.owner_id == owner_id,
                    ActivityModel.day >= start_day,
                    ActivityModel.day <= end_day,
                )
                .order_by(ActivityModel.day)
            )
            return [ActivityEntry.model_validate(m) for m in result.scalars().all()]

    @staticmethod
    def _check_counters(values: Dict[str, float]) -> None:
        unknown = set(values) - set(LEDGER_COUNTERS)
        if unknown:
            raise ValueError(f"Unknown ledger counters: {sorted(unknown)}")

    @staticmethod
    async def _fetch(session: AsyncSession, owner_id: str, day: datetime.date) -> ActivityEntry:
        result = await session.execute(
            select(ActivityModel)
            .where(ActivityModel.owner_id == owner_id, ActivityModel.day == day)
            .execution_options(populate_existing=True)
        )
        return ActivityEntry.model_validate(result.scalar_one())


class WeeklyReportRepository(_Repository):
    """
    Weekly report store. Rows are replaced wholesale on every generation run.
    """

    async def upsert_replace(self, owner_id: str, week_start: datetime.date,
                             fields: Dict[str, float]) -> WeeklyReport:
        """Insert the week's row or overwrite all of its fields"""
        unknown = set(fields) - set(REPORT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown report fields: {sorted(unknown)}")
        defaults = WeeklyReport(owner_id=owner_id, week_start=week_start)
        values = {name: fields.get(name, getattr(defaults, name)) for name in REPORT_FIELDS}

        session = await self._get_session()
        async with session:
            stmt = _dialect_insert(session, WeeklyReportModel).values(
                owner_id=owner_id, week_start=week_start, **values
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["owner_id", "week_start"],
                set_={name: getattr(stmt.excluded, name) for name in REPORT_FIELDS},
            )
            await session.execute(stmt)
            await session.commit()
            result = await session.execute(
                select(WeeklyReportModel)
                .where(
                    WeeklyReportModel.owner_id == owner_id,
                    WeeklyReportModel.week_start == week_start,
                )
                .execution_options(populate_existing=True)
            )
            return WeeklyReport.model_validate(result.scalar_one())

    async def find_by_owner(self, owner_id: str) -> List[WeeklyReport]:
        """Get all reports of an owner, most recent week first"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(WeeklyReportModel)
                .where(WeeklyReportModel.owner_id == owner_id)
                .order_by(WeeklyReportModel.week_start.desc())
            )
            return [WeeklyReport.model_validate(m) for m in result.scalars().all()]
