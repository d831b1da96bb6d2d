from fastapi import FastAPI, Depends, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging
from pathlib import Path

from selfos import config
from selfos.database import get_db, init_db
from selfos.schemas import (
    TaskResponse, TaskReminderCreate, ReminderCreate, ReminderUpdate, ReminderResponse,
    DailyMetricResponse, DashboardResponse, StreakSummaryResponse, NotificationPayload
)
from selfos.auth import verify_api_key, get_current_user_id
from selfos.exceptions import (
    TaskNotFoundException, ReminderNotFoundException, ValidationException
)
from selfos.services.notification_service import SessionRegistry, NotificationDispatcher
from selfos.services.scheduler_service import start_scheduler, stop_scheduler
from selfos.services.metric_service import DailyMetricService
from selfos.services.reminder_service import ReminderService
from selfos.services.streak_service import StreakService
from selfos.services.task_service import TaskCompletionService
from selfos.constants import DEFAULT_LOG_DIRECTORY_DEV, NOTIFICATION_TYPE_CONNECTION

LOG_DIR = config.LOG_DIR

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / config.LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / config.LOG_FILE

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("selfos")

# Create database tables
init_db()

app = FastAPI(
    title="SelfOS API",
    description="Reminders, daily productivity metrics and streaks with live notifications",
    version="1.0.0"
)

# Live sessions are owned by the transport (the websocket endpoint below)
session_registry = SessionRegistry()
dispatcher = NotificationDispatcher(session_registry)


@app.on_event("startup")
async def startup_event():
    logger.info(f"SelfOS API started. Logging to: {log_path}")
    start_scheduler(dispatcher)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down SelfOS API")
    stop_scheduler()


@app.exception_handler(TaskNotFoundException)
@app.exception_handler(ReminderNotFoundException)
async def not_found_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ValidationException)
async def validation_handler(request: Request, exc: ValidationException):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "SelfOS API", "status": "active"}


# Tasks
@app.post("/api/tasks/{task_id}/complete", response_model=TaskResponse, dependencies=[Depends(verify_api_key)])
async def complete_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Mark a task completed and update metrics and streaks"""
    return await TaskCompletionService(db).complete_task(task_id, user_id, dispatcher)


@app.post(
    "/api/tasks/{task_id}/reminders",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key)]
)
async def schedule_task_reminder(
    task_id: int,
    body: Optional[TaskReminderCreate] = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create the default reminder for a task"""
    custom_time = body.custom_time if body else None
    return ReminderService(db).schedule_reminder_for_task(task_id, user_id, custom_time)


# Reminders
@app.get("/api/reminders", response_model=List[ReminderResponse], dependencies=[Depends(verify_api_key)])
async def get_reminders(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get all reminders, soonest first"""
    return ReminderService(db).list_reminders(user_id)


@app.post(
    "/api/reminders",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key)]
)
async def create_reminder(
    reminder: ReminderCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a reminder for a task"""
    return ReminderService(db).create_reminder(user_id, reminder)


@app.put("/api/reminders/{reminder_id}", response_model=ReminderResponse, dependencies=[Depends(verify_api_key)])
async def update_reminder(
    reminder_id: int,
    reminder: ReminderUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update (e.g. reschedule) a reminder"""
    return ReminderService(db).update_reminder(reminder_id, user_id, reminder)


@app.delete("/api/reminders/{reminder_id}", dependencies=[Depends(verify_api_key)])
async def delete_reminder(
    reminder_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete (and so cancel) a reminder"""
    ReminderService(db).delete_reminder(reminder_id, user_id)
    return {"message": "Reminder deleted"}


# Metrics and dashboard
@app.get("/api/metrics", response_model=List[DailyMetricResponse], dependencies=[Depends(verify_api_key)])
async def get_metrics(
    start: date = Query(...),
    end: date = Query(...),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get daily metrics for a date range"""
    return DailyMetricService(db).aggregate(user_id, start, end)


@app.get("/api/dashboard", response_model=DashboardResponse, dependencies=[Depends(verify_api_key)])
async def get_dashboard(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Heatmap, weekly/monthly productivity and headline analytics"""
    return DailyMetricService(db).get_dashboard(user_id)


@app.get("/api/users/me/streaks", response_model=StreakSummaryResponse, dependencies=[Depends(verify_api_key)])
async def get_streaks(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Recent streak rows with current and longest streak"""
    return StreakService(db).get_streak_summary(user_id)


# Live notifications
@app.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, user_id: int, api_key: str = ""):
    if api_key != config.API_KEY:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    session_registry.register(user_id, websocket)
    try:
        await websocket.send_json(NotificationPayload(
            type=NOTIFICATION_TYPE_CONNECTION,
            title="Welcome Back!",
            message="You're now connected to SelfOS real-time updates"
        ).model_dump(mode="json"))

        # Clients do not send anything meaningful; keep the socket open
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"User {user_id} disconnected from notifications")
    finally:
        session_registry.unregister(user_id, websocket)
