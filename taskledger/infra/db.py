"""
SQLAlchemy database models and configuration.

Architecture Decision: Why SQLAlchemy?
- Provides ORM for cleaner code and prevents SQL injection
- Supports async operations for non-blocking database access
- Dialect-level upserts give the atomic increments the activity ledger needs
"""

from datetime import datetime, date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import (
    String, Integer, Float, Date, DateTime, Boolean, JSON, UniqueConstraint, Index
)


# Base class for all models
class Base(DeclarativeBase):
    pass


class TaskModel(Base):
    """SQLAlchemy model for Task entity"""
    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_owner_created", "owner_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    time_spent: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    expected_time: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    pomodoro_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    dependencies: Mapped[List[int]] = mapped_column(JSON, default=list, nullable=False)
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    recurring_type: Mapped[str] = mapped_column(String(16), default="daily", nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_completed_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class PomodoroSessionModel(Base):
    """SQLAlchemy model for PomodoroSession entity"""
    __tablename__ = "pomodoro_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # No foreign key: sessions outlive the tasks they were run against
    task_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration: Mapped[float] = mapped_column(Float, nullable=False)


class ActivityModel(Base):
    """SQLAlchemy model for ActivityEntry (one row per owner and day)"""
    __tablename__ = "user_activity"
    __table_args__ = (UniqueConstraint("owner_id", "day", name="uq_user_activity_owner_day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    tasks_created: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tasks_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    time_spent: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    pomodoros_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class WeeklyReportModel(Base):
    """SQLAlchemy model for WeeklyReport entity"""
    __tablename__ = "weekly_reports"
    __table_args__ = (UniqueConstraint("owner_id", "week_start", name="uq_weekly_reports_owner_week"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    tasks_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_time_spent: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    expected_vs_actual: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    pomodoro_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class DatabaseEngine:
    """
    Manages database connection and session lifecycle.

    Singleton pattern ensures only one engine exists per application.
    """
    _instance: Optional['DatabaseEngine'] = None

    def __init__(self, db_url: str):
        self.engine = create_async_engine(db_url, echo=False)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    @classmethod
    def get_instance(cls, db_url: Optional[str] = None) -> 'DatabaseEngine':
        """Get or create the database engine instance"""
        if cls._instance is None:
            if db_url is None:
                from taskledger.infra.config import get_settings
                db_url = get_settings().get_db_url()

            cls._instance = cls(db_url)
        return cls._instance

    @classmethod
    async def dispose_instance(cls) -> None:
        """Close the engine's connections and forget the instance"""
        if cls._instance is not None:
            await cls._instance.engine.dispose()
            cls._instance = None

    async def create_tables(self):
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def get_session(self) -> AsyncSession:
        """Get a new database session"""
        return self.session_factory()


# Convenience functions
def get_engine(db_url: Optional[str] = None) -> DatabaseEngine:
    """Get the database engine instance"""
    return DatabaseEngine.get_instance(db_url)


async def init_db(db_url: Optional[str] = None):
    """Initialize the database (create tables)"""
    engine = get_engine(db_url)
    await engine.create_tables()
