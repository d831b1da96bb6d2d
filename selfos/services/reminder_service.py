"""
Reminder service.
Creates reminders for tasks and delivers the due ones.

Delivery is at-least-once: a reminder is marked sent only after the push,
so a crash in between re-sends it on the next due-check.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from selfos.models import Reminder
from selfos.schemas import ReminderCreate, ReminderUpdate, ReminderNotificationData, NotificationPayload
from selfos.repositories.reminder_repository import ReminderRepository
from selfos.repositories.task_repository import TaskRepository
from selfos.services.date_service import utc_now, as_utc
from selfos.services.notification_service import NotificationDispatcher
from selfos.exceptions import (
    TaskNotFoundException, ReminderNotFoundException, ValidationException, DatabaseException
)
from selfos.constants import (
    REMINDER_TYPE_NOTIFICATION,
    REMINDER_TYPE_URGENT,
    NOTIFICATION_TYPE_REMINDER,
    DUE_CHECK_WINDOW_SECONDS,
    REMINDER_RETENTION_DAYS,
    URGENT_THRESHOLD_HOURS,
    URGENT_DELAY_MINUTES,
    URGENT_TITLE_PREFIX,
    DEFAULT_REMINDER_LEAD_HOURS,
)

logger = logging.getLogger("selfos.reminders")


class ReminderService:
    """Service for reminder creation, delivery and retention"""

    def __init__(self, db: Session):
        self.db = db
        self.reminder_repo = ReminderRepository()
        self.task_repo = TaskRepository()

    def schedule_reminder_for_task(
        self,
        task_id: int,
        user_id: int,
        custom_time: Optional[datetime] = None,
        now: Optional[datetime] = None
    ) -> Reminder:
        """
        Create the default reminder for a task.

        Scheduled at custom_time if given, else 12h before the due date,
        else 12h from now.

        Raises:
            TaskNotFoundException: If the user has no such task
        """
        if task_id is None:
            raise ValidationException("task_id", "is required")
        if user_id is None:
            raise ValidationException("user_id", "is required")

        task = self.task_repo.get_for_user(self.db, task_id, user_id)
        if not task:
            raise TaskNotFoundException(task_id)

        now = now or utc_now()
        lead = timedelta(hours=DEFAULT_REMINDER_LEAD_HOURS)
        if custom_time:
            scheduled_at = as_utc(custom_time)
        elif task.due_date:
            scheduled_at = task.due_date - lead
        else:
            scheduled_at = now + lead

        reminder = Reminder(
            task_id=task.id,
            user_id=user_id,
            title=f"Task Reminder: {task.title}",
            message=f"Don't forget about your task: {task.title}",
            scheduled_at=scheduled_at,
            type=REMINDER_TYPE_NOTIFICATION,
            is_sent=False
        )
        reminder = self.reminder_repo.create(self.db, reminder)
        logger.info(f"Created reminder {reminder.id} for task '{task.title}' at {scheduled_at}")
        return reminder

    def create_reminder(self, user_id: int, reminder_data: ReminderCreate) -> Reminder:
        """
        Create a reminder with explicit title and time.

        Raises:
            ValidationException: If task_id, title or scheduled_at is missing
            TaskNotFoundException: If the user has no such task
        """
        for field in ("task_id", "title", "scheduled_at"):
            if not getattr(reminder_data, field):
                raise ValidationException(field, "is required")

        task = self.task_repo.get_for_user(self.db, reminder_data.task_id, user_id)
        if not task:
            raise TaskNotFoundException(reminder_data.task_id)

        reminder = Reminder(
            task_id=task.id,
            user_id=user_id,
            title=reminder_data.title,
            message=reminder_data.message or f"Reminder for task: {task.title}",
            scheduled_at=as_utc(reminder_data.scheduled_at),
            type=reminder_data.type or REMINDER_TYPE_NOTIFICATION,
            is_sent=False
        )
        return self.reminder_repo.create(self.db, reminder)

    def list_reminders(self, user_id: int) -> List[Reminder]:
        """Get all reminders of a user, soonest first"""
        return self.reminder_repo.get_all_for_user(self.db, user_id)

    def update_reminder(self, reminder_id: int, user_id: int, update_data: ReminderUpdate) -> Reminder:
        """
        Apply a partial update to a reminder.

        Empty title, scheduled_at or type are ignored. Moving scheduled_at
        re-arms a sent reminder unless is_sent is given explicitly.

        Raises:
            ReminderNotFoundException: If the user has no such reminder
        """
        reminder = self.reminder_repo.get_for_user(self.db, reminder_id, user_id)
        if not reminder:
            raise ReminderNotFoundException(reminder_id)

        changes = update_data.model_dump(exclude_unset=True)

        if changes.get("title"):
            reminder.title = changes["title"]
        if "message" in changes:
            reminder.message = changes["message"]
        if changes.get("type"):
            reminder.type = changes["type"]
        if changes.get("scheduled_at"):
            scheduled_at = as_utc(changes["scheduled_at"])
            if scheduled_at != reminder.scheduled_at:
                reminder.scheduled_at = scheduled_at
                reminder.is_sent = False
        if changes.get("is_sent") is not None:
            reminder.is_sent = changes["is_sent"]

        reminder = self.reminder_repo.update(self.db, reminder)
        logger.info(f"Updated reminder {reminder.id} ({', '.join(sorted(changes)) or 'no fields'})")
        return reminder

    def delete_reminder(self, reminder_id: int, user_id: int) -> None:
        """
        Delete a reminder. Deleting before its due tick is the only way to
        cancel delivery.
        """
        reminder = self.reminder_repo.get_for_user(self.db, reminder_id, user_id)
        if not reminder:
            raise ReminderNotFoundException(reminder_id)
        self.reminder_repo.delete(self.db, reminder)

    @staticmethod
    def build_payload(reminder: Reminder) -> NotificationPayload:
        """Notification pushed for a due reminder"""
        return NotificationPayload(
            type=NOTIFICATION_TYPE_REMINDER,
            title=reminder.title,
            message=reminder.message,
            data=ReminderNotificationData(
                task_id=reminder.task_id,
                task_title=reminder.task.title if reminder.task else None,
                scheduled_at=reminder.scheduled_at
            ).model_dump(mode="json", by_alias=True)
        )

    async def check_due_reminders(
        self,
        dispatcher: NotificationDispatcher,
        now: Optional[datetime] = None
    ) -> int:
        """
        Deliver unsent reminders scheduled within the last minute.

        Returns:
            Number of reminders processed

        Raises:
            DatabaseException: If the store fails; the tick is abandoned
        """
        now = now or utc_now()
        window_start = now - timedelta(seconds=DUE_CHECK_WINDOW_SECONDS)

        try:
            reminders = self.reminder_repo.get_due(self.db, window_start, now)
            for reminder in reminders:
                await self.send_reminder(reminder, dispatcher, now)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("reminder due-check", str(e)) from e

        return len(reminders)

    async def send_reminder(
        self,
        reminder: Reminder,
        dispatcher: NotificationDispatcher,
        now: datetime
    ) -> None:
        """Push, mark sent, then escalate if the task is due soon"""
        delivered = await dispatcher.send_to_user(reminder.user_id, self.build_payload(reminder))
        self.reminder_repo.mark_sent(self.db, reminder)

        logger.info(
            f"Reminder {reminder.id} '{reminder.title}' for user {reminder.user_id} "
            f"{'sent' if delivered else 'marked sent (user offline)'}"
        )

        task = reminder.task
        if task and task.due_date:
            time_until_due = task.due_date - now
            if timedelta(0) < time_until_due <= timedelta(hours=URGENT_THRESHOLD_HOURS):
                self.create_urgent_reminder(reminder, now)

    def create_urgent_reminder(self, original: Reminder, now: datetime) -> Reminder:
        """Add a follow-up 30 minutes out; the original stays as it is"""
        task = original.task
        urgent = Reminder(
            task_id=original.task_id,
            user_id=original.user_id,
            title=f"{URGENT_TITLE_PREFIX}{task.title}",
            message="Task is due soon! Complete it now.",
            scheduled_at=now + timedelta(minutes=URGENT_DELAY_MINUTES),
            type=REMINDER_TYPE_URGENT,
            is_sent=False
        )
        urgent = self.reminder_repo.create(self.db, urgent)
        logger.info(f"Urgent reminder created for task: {task.title}")
        return urgent

    def cleanup_old_reminders(self, now: Optional[datetime] = None) -> int:
        """
        Permanently delete sent reminders older than the retention window.

        Returns:
            Number of deleted reminders
        """
        now = now or utc_now()
        cutoff = now - timedelta(days=REMINDER_RETENTION_DAYS)

        try:
            deleted = self.reminder_repo.delete_sent_before(self.db, cutoff)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("reminder cleanup", str(e)) from e

        if deleted:
            logger.info(f"Cleaned up {deleted} old reminders")
        return deleted
