from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Float, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from selfos.database import Base
from selfos.constants import TASK_STATUS_PENDING, REMINDER_TYPE_NOTIFICATION
from selfos.services.date_service import utc_now


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String, nullable=False)
    status = Column(String, default=TASK_STATUS_PENDING)  # PENDING, IN_PROGRESS, COMPLETED
    due_date = Column(DateTime, nullable=True)       # naive UTC
    completed_at = Column(DateTime, nullable=True)   # naive UTC
    created_at = Column(DateTime, default=utc_now)

    reminders = relationship("Reminder", back_populates="task", cascade="all, delete-orphan")


class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    message = Column(String, nullable=True)
    scheduled_at = Column(DateTime, nullable=False, index=True)  # naive UTC
    type = Column(String, default=REMINDER_TYPE_NOTIFICATION)    # NOTIFICATION, URGENT
    is_sent = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=utc_now)

    task = relationship("Task", back_populates="reminders")


class DailyMetric(Base):
    __tablename__ = "daily_metrics"
    __table_args__ = (
        UniqueConstraint("user_id", "metric_date", name="uq_daily_metrics_user_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    metric_date = Column(Date, nullable=False, index=True)  # day in the configured day boundary

    tasks_planned = Column(Integer, default=0)   # Tasks due that day
    tasks_completed = Column(Integer, default=0)  # Tasks completed that day
    journal_entries = Column(Integer, default=0)  # Maintained by the journal collaborator
    focus_minutes = Column(Integer, default=0)    # Maintained by the focus collaborator
    streak_active = Column(Boolean, default=False)
    score = Column(Float, default=0.0)            # 0..1

    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class UserStreak(Base):
    __tablename__ = "user_streaks"
    __table_args__ = (
        UniqueConstraint("user_id", "streak_date", name="uq_user_streaks_user_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    streak_date = Column(Date, nullable=False, index=True)
    tasks_completed = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utc_now)
