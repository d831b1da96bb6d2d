"""
Tests for the HTTP and WebSocket surface.
"""
import pytest
from datetime import timedelta
from unittest.mock import patch
from fastapi import WebSocket
from fastapi.testclient import TestClient

from selfos import config
from selfos.database import get_db
from selfos.main import app, session_registry
from selfos.services.date_service import utc_now
from selfos.tests.conftest import create_task, create_reminder

HEADERS = {"X-API-Key": config.API_KEY, "X-User-Id": "1"}


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAuth:

    def test_health_check_is_public(self, client):
        assert client.get("/").json()["status"] == "active"

    def test_missing_api_key(self, client):
        response = client.get("/api/reminders", headers={"X-User-Id": "1"})
        assert response.status_code == 401

    def test_missing_user(self, client):
        response = client.get("/api/reminders", headers={"X-API-Key": config.API_KEY})
        assert response.status_code == 422


class TestReminderRoutes:

    def test_schedule_task_reminder(self, client, db_session):
        task = create_task(db_session)

        response = client.post(f"/api/tasks/{task.id}/reminders", headers=HEADERS)

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Task Reminder: Write report"
        assert body["is_sent"] is False

    def test_schedule_for_unknown_task(self, client):
        response = client.post("/api/tasks/999/reminders", headers=HEADERS)
        assert response.status_code == 404

    def test_create_requires_title(self, client, db_session):
        task = create_task(db_session)

        response = client.post("/api/reminders", headers=HEADERS, json={
            "task_id": task.id,
            "scheduled_at": utc_now().isoformat()
        })

        assert response.status_code == 400

    def test_list_and_delete(self, client, db_session):
        task = create_task(db_session)
        reminder = create_reminder(db_session, task, utc_now() + timedelta(hours=1))

        listed = client.get("/api/reminders", headers=HEADERS).json()
        assert [r["id"] for r in listed] == [reminder.id]

        assert client.delete(f"/api/reminders/{reminder.id}", headers=HEADERS).status_code == 200
        assert client.delete(f"/api/reminders/{reminder.id}", headers=HEADERS).status_code == 404

    def test_reschedule(self, client, db_session):
        task = create_task(db_session)
        reminder = create_reminder(db_session, task, utc_now() - timedelta(hours=1), is_sent=True)
        new_time = (utc_now() + timedelta(hours=3)).replace(microsecond=0)

        response = client.put(f"/api/reminders/{reminder.id}", headers=HEADERS, json={
            "scheduled_at": new_time.isoformat()
        })

        assert response.status_code == 200
        body = response.json()
        assert body["scheduled_at"] == new_time.isoformat()
        assert body["is_sent"] is False
        assert body["title"] == "Task Reminder"

    def test_update_unknown_reminder(self, client):
        response = client.put("/api/reminders/999", headers=HEADERS, json={"title": "Renamed"})
        assert response.status_code == 404


class TestCompletionAndReads:

    def test_complete_then_read_streak_and_dashboard(self, client, db_session):
        task = create_task(db_session)

        response = client.post(f"/api/tasks/{task.id}/complete", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"

        streaks = client.get("/api/users/me/streaks", headers=HEADERS).json()
        assert streaks["current_streak"] == 1
        assert streaks["longest_streak"] == 1

        dashboard = client.get("/api/dashboard", headers=HEADERS).json()
        assert dashboard["analytics"]["tasks_done"] == 1
        assert dashboard["analytics"]["streak_days"] == 1
        assert len(dashboard["weekly_productivity"]) == 7
        assert len(dashboard["monthly_productivity"]) == 4

    def test_metrics_range(self, client, db_session):
        task = create_task(db_session)
        client.post(f"/api/tasks/{task.id}/complete", headers=HEADERS)
        today = utc_now().date()

        response = client.get(
            "/api/metrics",
            headers=HEADERS,
            params={"start": (today - timedelta(days=7)).isoformat(), "end": today.isoformat()}
        )

        assert response.status_code == 200
        assert [m["tasks_completed"] for m in response.json()] == [1]


class TestNotificationSocket:

    def test_connect_registers_session(self, client):
        with client.websocket_connect(f"/ws/notifications?user_id=5&api_key={config.API_KEY}") as ws:
            welcome = ws.receive_json()
            assert welcome["type"] == "connection"
            assert session_registry.lookup(5) is not None

    def test_disconnect_unregisters_session(self, client):
        with client.websocket_connect(f"/ws/notifications?user_id=6&api_key={config.API_KEY}") as ws:
            ws.receive_json()
            assert session_registry.lookup(6) is not None

        assert session_registry.lookup(6) is None

    def test_transport_error_unregisters_session(self, client):
        with patch.object(WebSocket, "receive_text", side_effect=RuntimeError("transport failed")):
            with pytest.raises(RuntimeError):
                with client.websocket_connect(f"/ws/notifications?user_id=7&api_key={config.API_KEY}") as ws:
                    ws.receive_json()
                    ws.receive_json()

        assert session_registry.lookup(7) is None
