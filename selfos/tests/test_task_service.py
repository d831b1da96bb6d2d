"""
Tests for TaskCompletionService.
"""
import asyncio
import pytest
from datetime import timedelta
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from selfos.models import DailyMetric, Task, UserStreak
from selfos.constants import TASK_STATUS_COMPLETED, TASK_STATUS_PENDING
from selfos.repositories.metric_repository import DailyMetricRepository
from selfos.repositories.streak_repository import UserStreakRepository
from selfos.services.task_service import TaskCompletionService
from selfos.exceptions import TaskNotFoundException, DatabaseException
from selfos.tests.conftest import FakeSession, create_task, create_streak_row


def complete(db, date_service, task_id, dispatcher=None, now=None, user_id=1):
    service = TaskCompletionService(db, date_service)
    return asyncio.run(service.complete_task(task_id, user_id, dispatcher, now))


class TestCompleteTask:
    """Tests for complete_task"""

    def test_transition_runs_hooks(self, db_session, date_service, dispatcher, registry, now, today):
        session = FakeSession()
        registry.register(1, session)
        task = create_task(db_session, due_date=now + timedelta(hours=4))

        result = complete(db_session, date_service, task.id, dispatcher, now)

        assert result.status == TASK_STATUS_COMPLETED
        assert result.completed_at == now

        metric = db_session.query(DailyMetric).one()
        assert metric.metric_date == today
        assert (metric.tasks_planned, metric.tasks_completed) == (1, 1)
        # 0.4 + 0.25
        assert metric.score == 0.65

        streak = db_session.query(UserStreak).one()
        assert streak.tasks_completed == 1

        assert [p["type"] for p in session.sent] == ["task_completed"]
        assert session.sent[0]["data"]["taskId"] == task.id

    def test_re_completion_does_not_fire_hooks_again(self, db_session, date_service, now):
        task = create_task(db_session)

        complete(db_session, date_service, task.id, now=now)
        complete(db_session, date_service, task.id, now=now + timedelta(minutes=5))

        db_session.expire_all()
        assert db_session.query(UserStreak).one().tasks_completed == 1

    def test_missing_task(self, db_session, date_service, now):
        with pytest.raises(TaskNotFoundException):
            complete(db_session, date_service, 404, now=now)

    def test_other_users_task(self, db_session, date_service, now):
        task = create_task(db_session, user_id=2)

        with pytest.raises(TaskNotFoundException):
            complete(db_session, date_service, task.id, now=now, user_id=1)

    def test_streak_milestone_notification(self, db_session, date_service, dispatcher, registry, now, today):
        session = FakeSession()
        registry.register(1, session)
        for offset in range(1, 7):
            create_streak_row(db_session, today - timedelta(days=offset), 1)
        task = create_task(db_session)

        complete(db_session, date_service, task.id, dispatcher, now)

        assert [p["type"] for p in session.sent] == ["task_completed", "streak_milestone"]
        assert session.sent[1]["data"] == {"streak": 7}

    def test_failed_metric_write_rolls_back_whole_transition(self, db_session, date_service, now):
        task = create_task(db_session)
        failure = OperationalError("INSERT INTO daily_metrics", {}, Exception("database is locked"))

        with patch.object(DailyMetricRepository, "upsert", side_effect=failure):
            with pytest.raises(DatabaseException):
                complete(db_session, date_service, task.id, now=now)

        db_session.expire_all()
        assert db_session.get(Task, task.id).status == TASK_STATUS_PENDING
        assert db_session.query(UserStreak).count() == 0
        assert db_session.query(DailyMetric).count() == 0

    def test_retry_after_failure_records_completion_once(self, db_session, date_service, now):
        task = create_task(db_session)
        failure = OperationalError("INSERT INTO daily_metrics", {}, Exception("database is locked"))

        with patch.object(DailyMetricRepository, "upsert", side_effect=failure):
            with pytest.raises(DatabaseException):
                complete(db_session, date_service, task.id, now=now)

        result = complete(db_session, date_service, task.id, now=now)

        assert result.status == TASK_STATUS_COMPLETED
        db_session.expire_all()
        rows = db_session.query(UserStreak).all()
        assert len(rows) == 1
        assert rows[0].tasks_completed == 1
        assert db_session.query(DailyMetric).one().tasks_completed == 1

    def test_failed_streak_write_discards_metric(self, db_session, date_service, now):
        task = create_task(db_session)
        failure = OperationalError("INSERT INTO user_streaks", {}, Exception("database is locked"))

        with patch.object(UserStreakRepository, "increment", side_effect=failure):
            with pytest.raises(DatabaseException):
                complete(db_session, date_service, task.id, now=now)

        db_session.expire_all()
        assert db_session.get(Task, task.id).status == TASK_STATUS_PENDING
        assert db_session.query(DailyMetric).count() == 0
