from pydantic import BaseModel, Field
from datetime import datetime, date
from typing import Any, Dict, List, Optional


# Metric schemas
class MetricSnapshot(BaseModel):
    """Raw signals for one user-day, the input of the scorer"""
    tasks_planned: int = Field(default=0, ge=0)
    tasks_completed: int = Field(default=0, ge=0)
    journal_entries: int = Field(default=0, ge=0)
    focus_minutes: int = Field(default=0, ge=0)
    streak_active: bool = False


class DailyMetricResponse(BaseModel):
    metric_date: date
    tasks_planned: int
    tasks_completed: int
    journal_entries: int
    focus_minutes: int
    streak_active: bool
    score: float

    class Config:
        from_attributes = True


class HeatmapPoint(BaseModel):
    date: str  # YYYY-MM-DD
    score: float


class ProductivityBucket(BaseModel):
    label: str
    value: int  # percent 0-100


class DashboardAnalytics(BaseModel):
    tasks_done: int
    streak_days: int
    avg_score: float


class DashboardResponse(BaseModel):
    heatmap: List[HeatmapPoint]
    weekly_productivity: List[ProductivityBucket]
    monthly_productivity: List[ProductivityBucket]
    analytics: DashboardAnalytics


# Streak schemas
class UserStreakResponse(BaseModel):
    streak_date: date
    tasks_completed: int
    is_active: bool

    class Config:
        from_attributes = True


class StreakSummaryResponse(BaseModel):
    streaks: List[UserStreakResponse]
    current_streak: int
    longest_streak: int


# Reminder schemas
class ReminderCreate(BaseModel):
    task_id: Optional[int] = None
    title: Optional[str] = Field(None, max_length=200)
    message: Optional[str] = Field(None, max_length=1000)
    scheduled_at: Optional[datetime] = None
    type: Optional[str] = None


class ReminderUpdate(BaseModel):
    """Partial update, only fields present in the request are applied"""
    title: Optional[str] = Field(None, max_length=200)
    message: Optional[str] = Field(None, max_length=1000)
    scheduled_at: Optional[datetime] = None
    type: Optional[str] = None
    is_sent: Optional[bool] = None


class TaskReminderCreate(BaseModel):
    custom_time: Optional[datetime] = None


class ReminderResponse(BaseModel):
    id: int
    task_id: int
    title: str
    message: Optional[str]
    scheduled_at: datetime
    type: str
    is_sent: bool
    created_at: datetime

    class Config:
        from_attributes = True


# Task schemas
class TaskResponse(BaseModel):
    id: int
    title: str
    status: str
    due_date: Optional[datetime]
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


# Notification payload (pushed over the live session, never persisted)
class NotificationPayload(BaseModel):
    type: str
    title: str
    message: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class ReminderNotificationData(BaseModel):
    """Reminder push data, camelCase on the wire"""
    task_id: int = Field(alias="taskId")
    task_title: Optional[str] = Field(None, alias="taskTitle")
    scheduled_at: datetime = Field(alias="scheduledAt")

    class Config:
        populate_by_name = True
