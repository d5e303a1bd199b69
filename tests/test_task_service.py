"""
Tests for the task lifecycle: validation, completion, deletion and ownership.
"""

import datetime
import pytest
from pydantic import ValidationError

from taskledger.utils import utc_now

OWNER = "user-1"
OTHER_OWNER = "user-2"
CREATED = datetime.datetime(2026, 1, 12, 9, 0)


class TestValidation:

    @pytest.mark.asyncio
    async def test_title_length_limits(self, task_service, task_repo):
        with pytest.raises(ValidationError):
            await task_service.create_task(OWNER, title="x" * 101)
        with pytest.raises(ValidationError):
            await task_service.create_task(OWNER, title="   ")

        task = await task_service.create_task(OWNER, title="  " + "x" * 100 + "  ")
        assert task.title == "x" * 100
        assert len(await task_repo.find_by_owner(OWNER)) == 1

    @pytest.mark.asyncio
    async def test_negative_times_rejected(self, task_service):
        with pytest.raises(ValidationError):
            await task_service.create_task(OWNER, title="Task", expected_time=-1)
        task = await task_service.create_task(OWNER, title="Task")
        with pytest.raises(ValidationError):
            await task_service.update_task(OWNER, task.id, time_spent=-5)

    @pytest.mark.asyncio
    async def test_unknown_patch_field_rejected(self, task_service):
        task = await task_service.create_task(OWNER, title="Task")
        with pytest.raises(ValidationError):
            await task_service.update_task(OWNER, task.id, description="Not a task field")

    @pytest.mark.asyncio
    async def test_priority_out_of_range_rejected(self, task_service):
        task = await task_service.create_task(OWNER, title="Task", priority=2)
        assert task.priority == 2
        with pytest.raises(ValidationError):
            await task_service.update_task(OWNER, task.id, priority=3)

    @pytest.mark.asyncio
    async def test_self_dependency_rejected(self, task_service, task_repo):
        task = await task_service.create_task(OWNER, title="Task")
        with pytest.raises(ValidationError):
            await task_service.update_task(OWNER, task.id, dependencies=[task.id])
        stored = await task_repo.find_by_id(task.id, OWNER)
        assert stored.dependencies == []

    @pytest.mark.asyncio
    async def test_duplicate_dependencies_collapse(self, task_service):
        first = await task_service.create_task(OWNER, title="First")
        second = await task_service.create_task(OWNER, title="Second",
                                                dependencies=[first.id, first.id])
        assert second.dependencies == [first.id]


class TestCompletion:

    @pytest.mark.asyncio
    async def test_complete_stamps_time_and_counts_in_ledger(self, task_service, activity_service):
        task = await task_service.create_task(OWNER, title="Report", created_at=CREATED)
        done_at = datetime.datetime(2026, 1, 13, 16, 0)

        completed = await task_service.complete_task(OWNER, task.id, completed_at=done_at,
                                                     time_spent=100)
        assert completed.completed is True
        assert completed.completed_at == done_at
        assert completed.last_completed_date is None

        [entry] = await activity_service.entries_in_range(
            OWNER, datetime.date(2026, 1, 13), datetime.date(2026, 1, 13)
        )
        assert entry.tasks_completed == 1
        assert entry.time_spent == pytest.approx(100)

    @pytest.mark.asyncio
    async def test_completing_twice_counts_once(self, task_service, activity_service):
        task = await task_service.create_task(OWNER, title="Report", created_at=CREATED)
        done_at = datetime.datetime(2026, 1, 12, 16, 0)
        await task_service.complete_task(OWNER, task.id, completed_at=done_at)
        again = await task_service.update_task(OWNER, task.id, completed=True)

        assert again.completed_at == done_at
        [entry] = await activity_service.entries_in_range(
            OWNER, datetime.date(2026, 1, 12), datetime.date(2026, 1, 12)
        )
        assert entry.tasks_created == 1
        assert entry.tasks_completed == 1

    @pytest.mark.asyncio
    async def test_complete_without_timestamp_uses_now(self, task_service):
        task = await task_service.create_task(OWNER, title="Report")
        before = utc_now() - datetime.timedelta(seconds=1)
        completed = await task_service.update_task(OWNER, task.id, completed=True)
        assert completed.completed_at >= before

    @pytest.mark.asyncio
    async def test_reopening_clears_completed_at(self, task_service):
        task = await task_service.create_task(OWNER, title="Report")
        await task_service.update_task(OWNER, task.id, completed=True)
        reopened = await task_service.update_task(OWNER, task.id, completed=False)
        assert reopened.completed is False
        assert reopened.completed_at is None

    @pytest.mark.asyncio
    async def test_recurring_completion_sets_last_completed_date(self, task_service):
        task = await task_service.create_task(OWNER, title="Standup", is_recurring=True,
                                              recurring_type="weekly")
        done_at = datetime.datetime(2026, 1, 13, 9, 15)
        completed = await task_service.complete_task(OWNER, task.id, completed_at=done_at)
        assert completed.last_completed_date == done_at
        assert completed.recurring_type == "weekly"

    @pytest.mark.asyncio
    async def test_aware_completion_time_is_stored_as_utc(self, task_service):
        task = await task_service.create_task(OWNER, title="Report")
        tz = datetime.timezone(datetime.timedelta(hours=2))
        completed = await task_service.complete_task(
            OWNER, task.id, completed_at=datetime.datetime(2026, 1, 14, 1, 0, tzinfo=tz)
        )
        assert completed.completed_at == datetime.datetime(2026, 1, 13, 23, 0)

    @pytest.mark.asyncio
    async def test_created_completed_counts_in_ledger(self, task_service, activity_service):
        done_at = datetime.datetime(2026, 1, 14, 9, 0)
        task = await task_service.create_task(OWNER, title="Done", created_at=CREATED,
                                              completed=True, completed_at=done_at,
                                              time_spent=100)
        assert task.completed_at == done_at
        assert task.last_completed_date is None

        entries = await activity_service.entries_in_range(
            OWNER, datetime.date(2026, 1, 12), datetime.date(2026, 1, 14)
        )
        by_day = {entry.day: entry for entry in entries}
        assert by_day[datetime.date(2026, 1, 12)].tasks_created == 1
        assert by_day[datetime.date(2026, 1, 12)].tasks_completed == 0
        assert by_day[datetime.date(2026, 1, 14)].tasks_completed == 1
        assert by_day[datetime.date(2026, 1, 14)].time_spent == pytest.approx(100)

    @pytest.mark.asyncio
    async def test_created_completed_recurring_gets_last_completed_date(self, task_service):
        done_at = datetime.datetime(2026, 1, 14, 9, 0)
        task = await task_service.create_task(OWNER, title="Standup", is_recurring=True,
                                              completed=True, completed_at=done_at)
        assert task.last_completed_date == done_at

        stored = await task_service.get_task(OWNER, task.id)
        assert stored.last_completed_date == done_at


class TestDeletion:

    @pytest.mark.asyncio
    async def test_delete_strips_dependency_references(self, task_service, task_repo):
        blocker = await task_service.create_task(OWNER, title="Blocker")
        other = await task_service.create_task(OWNER, title="Other")
        dependent = await task_service.create_task(OWNER, title="Dependent",
                                                   dependencies=[blocker.id, other.id])

        deleted = await task_service.delete_task(OWNER, blocker.id)
        assert deleted.id == blocker.id

        remaining = await task_repo.find_by_id(dependent.id, OWNER)
        assert remaining is not None
        assert remaining.dependencies == [other.id]
        assert await task_repo.find_by_id(blocker.id, OWNER) is None

    @pytest.mark.asyncio
    async def test_delete_missing_task(self, task_service):
        assert await task_service.delete_task(OWNER, 999) is None


class TestOwnership:

    @pytest.mark.asyncio
    async def test_foreign_task_behaves_as_missing(self, task_service):
        task = await task_service.create_task(OWNER, title="Private")

        assert await task_service.get_task(OTHER_OWNER, task.id) is None
        assert await task_service.update_task(OTHER_OWNER, task.id, title="Mine") is None
        assert await task_service.delete_task(OTHER_OWNER, task.id) is None
        assert await task_service.list_tasks(OTHER_OWNER) == []

        stored = await task_service.get_task(OWNER, task.id)
        assert stored.title == "Private"

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, task_service):
        await task_service.create_task(OWNER, title="Old", created_at=datetime.datetime(2026, 1, 1))
        await task_service.create_task(OWNER, title="New", created_at=datetime.datetime(2026, 1, 10))
        tasks = await task_service.list_tasks(OWNER, datetime.datetime(2026, 1, 14))
        assert [t.title for t in tasks] == ["New", "Old"]


class TestDependencies:

    @pytest.mark.asyncio
    async def test_unmet_dependencies(self, task_service):
        done = await task_service.create_task(OWNER, title="Done")
        await task_service.update_task(OWNER, done.id, completed=True)
        open_task = await task_service.create_task(OWNER, title="Open")
        task = await task_service.create_task(OWNER, title="Task",
                                              dependencies=[done.id, open_task.id, 999])

        assert await task_service.unmet_dependencies(OWNER, task) == [open_task.id]
