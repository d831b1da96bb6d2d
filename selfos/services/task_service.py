"""
Task completion service.
Performs the transition into COMPLETED and fans it out to the metric engine,
the streak tracker and the user's live session.
"""
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from selfos.models import Task
from selfos.schemas import NotificationPayload
from selfos.repositories.task_repository import TaskRepository
from selfos.services.date_service import DateService, utc_now
from selfos.services.metric_service import DailyMetricService
from selfos.services.streak_service import StreakService
from selfos.services.notification_service import NotificationDispatcher
from selfos.exceptions import TaskNotFoundException, DatabaseException
from selfos.constants import (
    TASK_STATUS_COMPLETED,
    NOTIFICATION_TYPE_TASK_COMPLETED,
    NOTIFICATION_TYPE_STREAK_MILESTONE,
    STREAK_MILESTONE_DAYS,
)

logger = logging.getLogger("selfos.tasks")


class TaskCompletionService:
    """Service for the task completion transition"""

    def __init__(self, db: Session, date_service: Optional[DateService] = None):
        self.db = db
        self.task_repo = TaskRepository()
        self.date_service = date_service or DateService()
        self.metric_service = DailyMetricService(db, self.date_service)
        self.streak_service = StreakService(db, self.date_service)

    async def complete_task(
        self,
        task_id: int,
        user_id: int,
        dispatcher: Optional[NotificationDispatcher] = None,
        now: Optional[datetime] = None
    ) -> Task:
        """
        Mark a task completed and run the completion hooks.

        Completing an already completed task is a no-op, so the hooks fire
        exactly once per transition.

        Raises:
            TaskNotFoundException: If the user has no such task
            DatabaseException: If the store fails; nothing is persisted
        """
        task = self.task_repo.get_for_user(self.db, task_id, user_id)
        if not task:
            raise TaskNotFoundException(task_id)

        if task.status == TASK_STATUS_COMPLETED:
            return task

        now = now or utc_now()

        # Status change, metric and streak row commit together; a failure
        # leaves the task pending so a retry replays the whole transition
        try:
            task.status = TASK_STATUS_COMPLETED
            task.completed_at = now
            task = self.task_repo.update(self.db, task, commit=False)
            self.metric_service.record_completion(user_id, now, commit=False)
            self.streak_service.on_task_completed(user_id, now, commit=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Completing task {task_id} failed, rolled back: {e}")
            raise DatabaseException("complete task", str(e)) from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(task)
        logger.info(f"Task {task.id} completed by user {user_id}")

        if dispatcher:
            await self._notify_completion(task, user_id, dispatcher, now)

        return task

    async def _notify_completion(
        self,
        task: Task,
        user_id: int,
        dispatcher: NotificationDispatcher,
        now: datetime
    ) -> None:
        await dispatcher.send_to_user(user_id, NotificationPayload(
            type=NOTIFICATION_TYPE_TASK_COMPLETED,
            title="Task Completed!",
            message=f'Great job! You completed "{task.title}"',
            data={"taskId": task.id, "title": task.title}
        ))

        streak = self.streak_service.current_streak_length(user_id, self.date_service.day_of(now))
        if streak > 0 and streak % STREAK_MILESTONE_DAYS == 0:
            await dispatcher.send_to_user(user_id, NotificationPayload(
                type=NOTIFICATION_TYPE_STREAK_MILESTONE,
                title="Amazing Streak!",
                message=f"You've maintained a {streak}-day streak!",
                data={"streak": streak}
            ))
