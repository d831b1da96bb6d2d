"""
Task repository - Data access layer for Task model.
Tasks are owned by the CRUD layer; the core only reads and counts them,
plus the completion transition.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from selfos.models import Task
from selfos.constants import TASK_STATUS_COMPLETED


class TaskRepository:
    """Repository for Task data access"""

    @staticmethod
    def get_for_user(db: Session, task_id: int, user_id: int) -> Optional[Task]:
        """Get task by ID, only if owned by the user"""
        return db.query(Task).filter(
            and_(
                Task.id == task_id,
                Task.user_id == user_id
            )
        ).first()

    @staticmethod
    def count_planned(db: Session, user_id: int, day_start: datetime, day_end: datetime) -> int:
        """Count tasks due within [day_start, day_end)"""
        return db.query(Task).filter(
            and_(
                Task.user_id == user_id,
                Task.due_date >= day_start,
                Task.due_date < day_end
            )
        ).count()

    @staticmethod
    def count_completed(db: Session, user_id: int, day_start: datetime, day_end: datetime) -> int:
        """Count tasks completed within [day_start, day_end)"""
        return db.query(Task).filter(
            and_(
                Task.user_id == user_id,
                Task.status == TASK_STATUS_COMPLETED,
                Task.completed_at >= day_start,
                Task.completed_at < day_end
            )
        ).count()

    @staticmethod
    def count_all_completed(db: Session, user_id: int) -> int:
        """Count every completed task of the user"""
        return db.query(Task).filter(
            and_(
                Task.user_id == user_id,
                Task.status == TASK_STATUS_COMPLETED
            )
        ).count()

    @staticmethod
    def update(db: Session, task: Task, commit: bool = True) -> Task:
        """Update existing task, or only flush it when commit is False"""
        if commit:
            db.commit()
        else:
            db.flush()
        db.refresh(task)
        return task
