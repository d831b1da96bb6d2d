"""
Daily metric service.
Maintains one DailyMetric per user-day and aggregates them for the dashboard.
"""
import logging
from datetime import datetime, date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from selfos.models import DailyMetric
from selfos.schemas import (
    MetricSnapshot, HeatmapPoint, ProductivityBucket, DashboardAnalytics, DashboardResponse
)
from selfos.repositories.metric_repository import DailyMetricRepository
from selfos.repositories.task_repository import TaskRepository
from selfos.services.date_service import DateService, date_key
from selfos.services.metric_scorer import calculate_score
from selfos.services.streak_service import StreakService
from selfos.exceptions import ValidationException
from selfos.constants import HEATMAP_DAYS, WEEKLY_VIEW_DAYS, MONTHLY_VIEW_WEEKS

logger = logging.getLogger("selfos.metrics")


def _to_percent(value: Decimal) -> int:
    """Score 0..1 -> integer percent, rounded half-up"""
    return int((value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _mean(values: List[Decimal]) -> Decimal:
    if not values:
        return Decimal(0)
    return sum(values, Decimal(0)) / len(values)


class DailyMetricService:
    """Service for per-day productivity metrics"""

    def __init__(self, db: Session, date_service: Optional[DateService] = None):
        self.db = db
        self.metric_repo = DailyMetricRepository()
        self.task_repo = TaskRepository()
        self.date_service = date_service or DateService()

    def record_completion(self, user_id: int, completed_at: datetime, commit: bool = True) -> DailyMetric:
        """
        Recompute the metric for the day containing a completion.

        Planned and completed counts are always re-derived from the task
        table, so calling this repeatedly for the same day is idempotent.

        Args:
            user_id: Owner of the completed task
            completed_at: Completion instant
            commit: False to leave the write in the caller's transaction

        Returns:
            The upserted metric
        """
        if user_id is None:
            raise ValidationException("user_id", "is required")
        if completed_at is None:
            raise ValidationException("completed_at", "is required")

        metric_date = self.date_service.day_of(completed_at)
        day_start, day_end = self.date_service.get_day_range(metric_date)

        tasks_planned = self.task_repo.count_planned(self.db, user_id, day_start, day_end)
        tasks_completed = self.task_repo.count_completed(self.db, user_id, day_start, day_end)

        existing = self.metric_repo.get_by_date(self.db, user_id, metric_date)
        journal_entries = (existing.journal_entries or 0) if existing else 0
        focus_minutes = (existing.focus_minutes or 0) if existing else 0

        # Never cleared here; only the nightly streak sweep closes streaks
        streak_active = tasks_completed > 0 or bool(existing and existing.streak_active)

        score = calculate_score(MetricSnapshot(
            tasks_planned=tasks_planned,
            tasks_completed=tasks_completed,
            journal_entries=journal_entries,
            focus_minutes=focus_minutes,
            streak_active=streak_active
        ))

        metric = self.metric_repo.upsert(
            self.db,
            user_id=user_id,
            metric_date=metric_date,
            tasks_planned=tasks_planned,
            tasks_completed=tasks_completed,
            streak_active=streak_active,
            score=score,
            commit=commit
        )
        logger.info(
            f"Metric for user {user_id} on {date_key(metric_date)}: "
            f"{tasks_completed}/{tasks_planned} tasks, score={score}"
        )
        return metric

    def aggregate(self, user_id: int, start_date: date, end_date: date) -> List[DailyMetric]:
        """Get metric snapshots for [start_date, end_date] ordered by date"""
        if start_date > end_date:
            raise ValidationException("start_date", "must not be after end_date")
        return self.metric_repo.get_range(self.db, user_id, start_date, end_date)

    def get_heatmap(self, user_id: int, today: date) -> List[HeatmapPoint]:
        """Get stored scores for the heatmap window ending today"""
        start_date = today - timedelta(days=HEATMAP_DAYS - 1)
        return [
            HeatmapPoint(date=date_key(metric.metric_date), score=metric.score or 0.0)
            for metric in self.aggregate(user_id, start_date, today)
        ]

    def get_weekly_productivity(
        self,
        user_id: int,
        today: date,
        scores: Optional[Dict[str, float]] = None
    ) -> List[ProductivityBucket]:
        """
        Last 7 days, one bucket per day labelled by weekday.

        Missing days count as 0.
        """
        if scores is None:
            scores = self._scores_by_key(user_id, today - timedelta(days=WEEKLY_VIEW_DAYS - 1), today)

        buckets = []
        for offset in range(WEEKLY_VIEW_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            value = Decimal(str(scores.get(date_key(day), 0.0)))
            buckets.append(ProductivityBucket(label=day.strftime("%a"), value=_to_percent(value)))
        return buckets

    def get_monthly_productivity(
        self,
        user_id: int,
        today: date,
        scores: Optional[Dict[str, float]] = None
    ) -> List[ProductivityBucket]:
        """
        Last 28 days in 4 weekly buckets, oldest first.

        Each bucket is the mean daily score with missing days as 0.
        """
        total_days = MONTHLY_VIEW_WEEKS * 7
        if scores is None:
            scores = self._scores_by_key(user_id, today - timedelta(days=total_days - 1), today)

        buckets = []
        for week in range(MONTHLY_VIEW_WEEKS):
            week_start = today - timedelta(days=total_days - 1 - week * 7)
            values = [
                Decimal(str(scores.get(date_key(week_start + timedelta(days=i)), 0.0)))
                for i in range(7)
            ]
            buckets.append(ProductivityBucket(label=f"Week {week + 1}", value=_to_percent(_mean(values))))
        return buckets

    def get_dashboard(self, user_id: int, today: Optional[date] = None) -> DashboardResponse:
        """
        Build the dashboard rollups: heatmap, weekly and monthly views,
        and headline analytics.
        """
        today = today or self.date_service.today()

        heatmap = self.get_heatmap(user_id, today)
        scores = {point.date: point.score for point in heatmap}

        average = _mean([Decimal(str(point.score)) for point in heatmap])
        avg_score = float(average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

        streak_service = StreakService(self.db, self.date_service)

        return DashboardResponse(
            heatmap=heatmap,
            weekly_productivity=self.get_weekly_productivity(user_id, today, scores),
            monthly_productivity=self.get_monthly_productivity(user_id, today, scores),
            analytics=DashboardAnalytics(
                tasks_done=self.task_repo.count_all_completed(self.db, user_id),
                streak_days=streak_service.current_streak_length(user_id, today),
                avg_score=avg_score
            )
        )

    def _scores_by_key(self, user_id: int, start_date: date, end_date: date) -> Dict[str, float]:
        return {
            date_key(metric.metric_date): metric.score or 0.0
            for metric in self.aggregate(user_id, start_date, end_date)
        }
