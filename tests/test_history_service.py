"""
Tests for the per-day history query.
"""

import datetime
import pytest

from taskledger.domain.models import Task
from taskledger.services.history_service import HistoryService

OWNER = "user-1"
NOW = datetime.datetime(2026, 1, 14, 12, 0)


@pytest.fixture
def history_service(task_repo, activity_service):
    return HistoryService(task_repo, activity_service)


def make_task(created, completed=None, time_spent=0.0, owner_id=OWNER) -> Task:
    return Task(
        owner_id=owner_id,
        title="Task",
        created_at=created,
        completed=completed is not None,
        completed_at=completed,
        time_spent=time_spent,
    )


@pytest.mark.asyncio
async def test_buckets_inside_window_newest_first(history_service, task_repo):
    await task_repo.create(make_task(datetime.datetime(2026, 1, 14, 8)))
    await task_repo.create(make_task(datetime.datetime(2026, 1, 10, 8),
                                     completed=datetime.datetime(2026, 1, 14, 9), time_spent=100))
    # Entirely before the 7-day window (2026-01-08 .. 2026-01-14)
    await task_repo.create(make_task(datetime.datetime(2026, 1, 1, 8),
                                     completed=datetime.datetime(2026, 1, 2, 8), time_spent=50))

    result = await history_service.get_history(OWNER, 7, NOW)

    assert [bucket.date for bucket in result.history] == ["2026-01-14", "2026-01-10"]
    today, older = result.history
    assert len(today.created) == 1
    assert len(today.completed) == 1
    assert today.time_spent == pytest.approx(100)
    assert len(older.created) == 1
    assert older.completed == []
    assert older.time_spent == 0


@pytest.mark.asyncio
async def test_task_completed_inside_window_but_created_before(history_service, task_repo):
    await task_repo.create(make_task(datetime.datetime(2025, 12, 1),
                                     completed=datetime.datetime(2026, 1, 12, 15), time_spent=30))

    result = await history_service.get_history(OWNER, 7, NOW)
    [bucket] = result.history
    assert bucket.date == "2026-01-12"
    assert bucket.created == []
    assert len(bucket.completed) == 1


@pytest.mark.asyncio
async def test_today_ledger_row_is_rebuilt(history_service, task_repo, activity_service):
    # Written straight to the store, so the ledger never saw them
    await task_repo.create(make_task(datetime.datetime(2026, 1, 14, 7)))
    await task_repo.create(make_task(datetime.datetime(2026, 1, 14, 8),
                                     completed=datetime.datetime(2026, 1, 14, 10), time_spent=60))
    await activity_service.record_pomodoro_completed(OWNER, datetime.datetime(2026, 1, 14, 9))

    result = await history_service.get_history(OWNER, 7, NOW)

    [entry] = await activity_service.entries_in_range(OWNER, NOW.date(), NOW.date())
    assert entry.tasks_created == 2
    assert entry.tasks_completed == 1
    assert entry.time_spent == pytest.approx(60)
    assert entry.pomodoros_completed == 1

    assert result.continuity.current_streak == 1
    assert result.continuity.active_days == 1
    assert result.continuity.total_days == 7
    assert result.continuity.continuity_percentage == 14


@pytest.mark.asyncio
async def test_continuity_reads_ledger_history(history_service, activity_service):
    for day in (11, 12, 13):
        await activity_service.record_task_completed(OWNER, datetime.datetime(2026, 1, day, 9), 10)

    result = await history_service.get_history(OWNER, 5, NOW)

    assert result.history == []
    assert result.continuity.longest_streak == 3
    # Today was rebuilt as an inactive row
    assert result.continuity.current_streak == 0
    assert result.continuity.activity_by_date["2026-01-14"] is False
    assert result.continuity.continuity_percentage == 60


@pytest.mark.asyncio
async def test_other_owners_are_invisible(history_service, task_repo):
    await task_repo.create(make_task(datetime.datetime(2026, 1, 14, 8), owner_id="user-2"))
    result = await history_service.get_history(OWNER, 7, NOW)
    assert result.history == []


@pytest.mark.asyncio
async def test_empty_window_is_rejected(history_service):
    with pytest.raises(ValueError):
        await history_service.get_history(OWNER, 0, NOW)


@pytest.mark.asyncio
async def test_streak_before_requested_window_is_reported(history_service, activity_service):
    for day in range(3, 13):
        await activity_service.record_task_completed(OWNER, datetime.datetime(2026, 1, day, 9), 10)

    result = await history_service.get_history(OWNER, 7, datetime.datetime(2026, 1, 20, 12))

    assert result.continuity.longest_streak == 10
    assert result.continuity.active_days == 0
    assert result.continuity.continuity_percentage == 0
