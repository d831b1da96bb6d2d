"""
Streak tracking service.
Keeps one UserStreak row per user-day and derives streak lengths from them.
"""
import logging
from datetime import datetime, date, timedelta
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from selfos.repositories.streak_repository import UserStreakRepository
from selfos.schemas import StreakSummaryResponse, UserStreakResponse
from selfos.services.date_service import DateService, date_key
from selfos.exceptions import ValidationException, DatabaseException
from selfos.constants import STREAK_PROFILE_ROWS

logger = logging.getLogger("selfos.streaks")


class StreakService:
    """Service for consecutive-day completion streaks"""

    def __init__(self, db: Session, date_service: Optional[DateService] = None):
        self.db = db
        self.streak_repo = UserStreakRepository()
        self.date_service = date_service or DateService()

    def on_task_completed(self, user_id: int, completed_at: datetime, commit: bool = True) -> None:
        """
        Count one completion for the day of completed_at.

        Must be called once per transition into COMPLETED.
        """
        if user_id is None:
            raise ValidationException("user_id", "is required")
        if completed_at is None:
            raise ValidationException("completed_at", "is required")

        streak_date = self.date_service.day_of(completed_at)
        self.streak_repo.increment(self.db, user_id, streak_date, commit=commit)
        logger.info(f"Streak row for user {user_id} on {date_key(streak_date)} incremented")

    def advance(self, today: Optional[date] = None) -> int:
        """
        Nightly rollover.

        1. Users with an active row with completions yesterday get an empty
           active row today, keeping the chain alive until today's activity.
        2. Active rows older than yesterday are closed.
        3. Yesterday's empty keep-alive rows are closed.

        Safe to run more than once per day.

        Returns:
            Number of users whose chain was carried into today

        Raises:
            DatabaseException: If the store fails mid-sweep
        """
        today = today or self.date_service.today()
        yesterday = today - timedelta(days=1)

        try:
            user_ids = self.streak_repo.get_active_users_on(self.db, yesterday)
            for user_id in user_ids:
                self.streak_repo.create_if_absent(self.db, user_id, today)

            closed = self.streak_repo.deactivate_before(self.db, yesterday)
            closed += self.streak_repo.deactivate_empty_on(self.db, yesterday)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("streak rollover", str(e)) from e

        logger.info(
            f"Streak rollover for {date_key(today)}: {len(user_ids)} carried, {closed} closed"
        )
        return len(user_ids)

    def current_streak_length(self, user_id: int, today: Optional[date] = None) -> int:
        """
        Count consecutive days with completions, walking back from the most
        recent one.

        The streak only counts as current if that most recent day is today
        or yesterday (today may still be in progress).
        """
        today = today or self.date_service.today()
        days = self.streak_repo.get_completed_days(self.db, user_id, today)

        if not days or days[0] < today - timedelta(days=1):
            return 0

        length = 1
        for newer, older in zip(days, days[1:]):
            if newer - older != timedelta(days=1):
                break
            length += 1
        return length

    def longest_streak(self, user_id: int) -> int:
        """
        Profile "longest streak": the highest single-day completion count
        across the most recent rows. Not the longest consecutive run.
        """
        rows = self.streak_repo.get_recent(self.db, user_id, STREAK_PROFILE_ROWS)
        return max((row.tasks_completed or 0 for row in rows), default=0)

    def get_streak_summary(self, user_id: int, today: Optional[date] = None) -> StreakSummaryResponse:
        """Recent rows plus current and longest streak for the profile view"""
        rows = self.streak_repo.get_recent(self.db, user_id, STREAK_PROFILE_ROWS)
        return StreakSummaryResponse(
            streaks=[UserStreakResponse.model_validate(row) for row in rows],
            current_streak=self.current_streak_length(user_id, today),
            longest_streak=self.longest_streak(user_id)
        )
