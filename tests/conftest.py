"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskledger.infra.db import Base
from taskledger.infra.repository import (
    ActivityRepository, PomodoroSessionRepository, TaskRepository, WeeklyReportRepository
)
from taskledger.services.activity_service import ActivityService
from taskledger.services.task_service import TaskService

@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session

@pytest.fixture
def task_repo(db_session):
    return TaskRepository(session=db_session)

@pytest.fixture
def session_repo(db_session):
    return PomodoroSessionRepository(session=db_session)

@pytest.fixture
def activity_repo(db_session):
    return ActivityRepository(session=db_session)

@pytest.fixture
def report_repo(db_session):
    return WeeklyReportRepository(session=db_session)

@pytest.fixture
def activity_service(activity_repo):
    return ActivityService(activity_repo)

@pytest.fixture
def task_service(task_repo, activity_service):
    return TaskService(task_repo, activity_service)
