"""
Reminder repository - Data access layer for Reminder model.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_

from selfos.models import Reminder


class ReminderRepository:
    """Repository for Reminder data access"""

    @staticmethod
    def get_for_user(db: Session, reminder_id: int, user_id: int) -> Optional[Reminder]:
        """Get reminder by ID, only if owned by the user"""
        return db.query(Reminder).filter(
            and_(
                Reminder.id == reminder_id,
                Reminder.user_id == user_id
            )
        ).first()

    @staticmethod
    def get_all_for_user(db: Session, user_id: int) -> List[Reminder]:
        """Get all reminders of a user ordered by scheduled time"""
        return db.query(Reminder).filter(
            Reminder.user_id == user_id
        ).order_by(Reminder.scheduled_at.asc()).all()

    @staticmethod
    def get_due(db: Session, window_start: datetime, now: datetime) -> List[Reminder]:
        """Get unsent reminders scheduled within [window_start, now]"""
        return db.query(Reminder).options(
            joinedload(Reminder.task)
        ).filter(
            and_(
                Reminder.scheduled_at <= now,
                Reminder.scheduled_at >= window_start,
                Reminder.is_sent == False
            )
        ).order_by(Reminder.scheduled_at.asc()).all()

    @staticmethod
    def create(db: Session, reminder: Reminder) -> Reminder:
        """Create new reminder"""
        db.add(reminder)
        db.commit()
        db.refresh(reminder)
        return reminder

    @staticmethod
    def update(db: Session, reminder: Reminder) -> Reminder:
        """Update existing reminder"""
        db.commit()
        db.refresh(reminder)
        return reminder

    @staticmethod
    def mark_sent(db: Session, reminder: Reminder) -> Reminder:
        """Flip the sent flag"""
        reminder.is_sent = True
        db.commit()
        return reminder

    @staticmethod
    def delete(db: Session, reminder: Reminder) -> None:
        """Delete a reminder"""
        db.delete(reminder)
        db.commit()

    @staticmethod
    def delete_sent_before(db: Session, cutoff: datetime) -> int:
        """Delete sent reminders scheduled before cutoff, returns count"""
        deleted = db.query(Reminder).filter(
            and_(
                Reminder.is_sent == True,
                Reminder.scheduled_at < cutoff
            )
        ).delete(synchronize_session=False)
        db.commit()
        return deleted
