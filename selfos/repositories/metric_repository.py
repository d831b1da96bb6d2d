"""
Daily metric repository - Data access layer for DailyMetric model.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from selfos.database import upsert_statement
from selfos.models import DailyMetric
from selfos.services.date_service import utc_now


class DailyMetricRepository:
    """Repository for DailyMetric data access"""

    @staticmethod
    def get_by_date(db: Session, user_id: int, metric_date: date) -> Optional[DailyMetric]:
        """Get metric for a user-day"""
        return db.query(DailyMetric).filter(
            and_(
                DailyMetric.user_id == user_id,
                DailyMetric.metric_date == metric_date
            )
        ).first()

    @staticmethod
    def get_range(db: Session, user_id: int, start_date: date, end_date: date) -> List[DailyMetric]:
        """Get metrics for [start_date, end_date] ordered by date"""
        return db.query(DailyMetric).filter(
            and_(
                DailyMetric.user_id == user_id,
                DailyMetric.metric_date >= start_date,
                DailyMetric.metric_date <= end_date
            )
        ).order_by(DailyMetric.metric_date.asc()).all()

    @staticmethod
    def upsert(
        db: Session,
        user_id: int,
        metric_date: date,
        tasks_planned: int,
        tasks_completed: int,
        streak_active: bool,
        score: float,
        commit: bool = True
    ) -> DailyMetric:
        """
        Create or update the metric for a user-day in one statement.

        Journal entries and focus minutes are left untouched on update.
        """
        values = {
            "tasks_planned": tasks_planned,
            "tasks_completed": tasks_completed,
            "streak_active": streak_active,
            "score": score,
            "updated_at": utc_now(),
        }
        stmt = upsert_statement(db, DailyMetric).values(
            user_id=user_id,
            metric_date=metric_date,
            journal_entries=0,
            focus_minutes=0,
            **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DailyMetric.user_id, DailyMetric.metric_date],
            set_=values
        )
        db.execute(stmt)
        if commit:
            db.commit()

        return DailyMetricRepository.get_by_date(db, user_id, metric_date)
