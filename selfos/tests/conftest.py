"""Shared test fixtures.

Points config at throwaway locations before any selfos import, and provides
an in-memory database, a pinned clock and fake live sessions.
"""
import os
import tempfile

os.environ.setdefault("SELFOS_DATABASE_URL", "sqlite://")
os.environ.setdefault("SELFOS_TIMEZONE", "UTC")
os.environ.setdefault("SELFOS_DAY_START", "00:00")
os.environ.setdefault("SELFOS_API_KEY", "test-key")
os.environ.setdefault("SELFOS_LOG_DIR", os.path.join(tempfile.gettempdir(), "selfos-test-logs"))

import pytest
from datetime import date, datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from selfos.database import Base
from selfos import models  # noqa: F401
from selfos.models import Task, Reminder, UserStreak
from selfos.constants import TASK_STATUS_PENDING, TASK_STATUS_COMPLETED
from selfos.services.date_service import DateService
from selfos.services.notification_service import SessionRegistry, NotificationDispatcher

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def date_service():
    return DateService("UTC", "00:00")


@pytest.fixture
def now():
    """Pinned clock: 2026-03-10 12:00 UTC"""
    return datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
def today(now):
    return now.date()


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def dispatcher(registry):
    return NotificationDispatcher(registry)


class FakeSession:
    """Live session that records what it was sent"""

    def __init__(self):
        self.sent = []

    async def send_json(self, data):
        self.sent.append(data)


class BrokenSession:
    """Live session whose transport is gone"""

    async def send_json(self, data):
        raise ConnectionError("socket closed")


def create_task(
    db,
    user_id: int = 1,
    title: str = "Write report",
    status: str = TASK_STATUS_PENDING,
    due_date: datetime = None,
    completed_at: datetime = None
) -> Task:
    task = Task(
        user_id=user_id,
        title=title,
        status=status,
        due_date=due_date,
        completed_at=completed_at
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def create_completed_task(db, completed_at: datetime, user_id: int = 1, due_date: datetime = None) -> Task:
    return create_task(
        db,
        user_id=user_id,
        status=TASK_STATUS_COMPLETED,
        due_date=due_date,
        completed_at=completed_at
    )


def create_reminder(
    db,
    task: Task,
    scheduled_at: datetime,
    is_sent: bool = False,
    title: str = "Task Reminder"
) -> Reminder:
    reminder = Reminder(
        user_id=task.user_id,
        task_id=task.id,
        title=title,
        message="Don't forget",
        scheduled_at=scheduled_at,
        is_sent=is_sent
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def create_streak_row(
    db,
    streak_date: date,
    tasks_completed: int,
    user_id: int = 1,
    is_active: bool = True
) -> UserStreak:
    row = UserStreak(
        user_id=user_id,
        streak_date=streak_date,
        tasks_completed=tasks_completed,
        is_active=is_active
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
