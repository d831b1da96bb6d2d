"""
Streak repository - Data access layer for UserStreak model.
"""
from datetime import date
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import and_

from selfos.database import upsert_statement
from selfos.models import UserStreak
from selfos.services.date_service import utc_now


class UserStreakRepository:
    """Repository for UserStreak data access"""

    @staticmethod
    def get_recent(db: Session, user_id: int, limit: int) -> List[UserStreak]:
        """Get the most recent streak rows, newest first"""
        return db.query(UserStreak).filter(
            UserStreak.user_id == user_id
        ).order_by(UserStreak.streak_date.desc()).limit(limit).all()

    @staticmethod
    def get_completed_days(db: Session, user_id: int, up_to: date) -> List[date]:
        """Get dates with at least one completion up to a day, newest first"""
        rows = db.query(UserStreak.streak_date).filter(
            and_(
                UserStreak.user_id == user_id,
                UserStreak.tasks_completed > 0,
                UserStreak.streak_date <= up_to
            )
        ).order_by(UserStreak.streak_date.desc()).all()
        return [row.streak_date for row in rows]

    @staticmethod
    def get_active_users_on(db: Session, streak_date: date) -> List[int]:
        """Get users with an active row with completions on a day"""
        rows = db.query(UserStreak.user_id).filter(
            and_(
                UserStreak.streak_date == streak_date,
                UserStreak.tasks_completed > 0,
                UserStreak.is_active == True
            )
        ).all()
        return [row.user_id for row in rows]

    @staticmethod
    def increment(db: Session, user_id: int, streak_date: date, commit: bool = True) -> None:
        """Add one completion to a user-day, creating the row when absent"""
        stmt = upsert_statement(db, UserStreak).values(
            user_id=user_id,
            streak_date=streak_date,
            tasks_completed=1,
            is_active=True,
            created_at=utc_now()
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserStreak.user_id, UserStreak.streak_date],
            set_={"tasks_completed": UserStreak.tasks_completed + 1}
        )
        db.execute(stmt)
        if commit:
            db.commit()

    @staticmethod
    def create_if_absent(db: Session, user_id: int, streak_date: date) -> None:
        """Create an empty active row for a user-day unless one exists"""
        stmt = upsert_statement(db, UserStreak).values(
            user_id=user_id,
            streak_date=streak_date,
            tasks_completed=0,
            is_active=True,
            created_at=utc_now()
        )
        stmt = stmt.on_conflict_do_nothing(
            index_elements=[UserStreak.user_id, UserStreak.streak_date]
        )
        db.execute(stmt)
        db.commit()

    @staticmethod
    def deactivate_before(db: Session, before_date: date) -> int:
        """Mark active rows dated before a day inactive, returns count"""
        updated = db.query(UserStreak).filter(
            and_(
                UserStreak.streak_date < before_date,
                UserStreak.is_active == True
            )
        ).update({UserStreak.is_active: False}, synchronize_session=False)
        db.commit()
        return updated

    @staticmethod
    def deactivate_empty_on(db: Session, streak_date: date) -> int:
        """Mark active rows with no completions on a day inactive, returns count"""
        updated = db.query(UserStreak).filter(
            and_(
                UserStreak.streak_date == streak_date,
                UserStreak.tasks_completed == 0,
                UserStreak.is_active == True
            )
        ).update({UserStreak.is_active: False}, synchronize_session=False)
        db.commit()
        return updated
