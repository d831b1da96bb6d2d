"""
Background scheduler for reminders and streaks
Handles:
- Reminder due-check every minute
- Retention cleanup of sent reminders every hour
- Streak rollover at the day boundary

Each job opens its own session and swallows its own failures, so one failing
tick never stops the scheduler or the other jobs; the next tick retries.
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from selfos import config
from selfos.database import SessionLocal
from selfos.exceptions import DatabaseException
from selfos.services.date_service import DateService
from selfos.services.notification_service import NotificationDispatcher
from selfos.services.reminder_service import ReminderService
from selfos.services.streak_service import StreakService

logger = logging.getLogger("selfos.scheduler")

# Create scheduler instance
scheduler = AsyncIOScheduler(timezone=config.TIMEZONE)


async def run_due_reminders(dispatcher: NotificationDispatcher, session_factory=SessionLocal):
    """Job: deliver due reminders"""
    db = session_factory()
    try:
        processed = await ReminderService(db).check_due_reminders(dispatcher)
        if processed:
            logger.info(f"Due-check processed {processed} reminders")
    except DatabaseException as e:
        logger.error(f"Scheduler Error (Due Reminders), retrying next tick: {e}")
    except Exception as e:
        db.rollback()
        logger.error(f"Scheduler Error (Due Reminders): {e}")
    finally:
        db.close()


async def run_reminder_cleanup(session_factory=SessionLocal):
    """Job: delete sent reminders past retention"""
    db = session_factory()
    try:
        ReminderService(db).cleanup_old_reminders()
    except DatabaseException as e:
        logger.error(f"Scheduler Error (Reminder Cleanup), retrying next tick: {e}")
    except Exception as e:
        db.rollback()
        logger.error(f"Scheduler Error (Reminder Cleanup): {e}")
    finally:
        db.close()


async def run_streak_rollover(session_factory=SessionLocal, date_service: DateService = None):
    """Job: carry active streaks into the new day and close stale ones"""
    db = session_factory()
    try:
        StreakService(db, date_service).advance()
    except DatabaseException as e:
        logger.error(f"Scheduler Error (Streak Rollover), retrying next tick: {e}")
    except Exception as e:
        db.rollback()
        logger.error(f"Scheduler Error (Streak Rollover): {e}")
    finally:
        db.close()


def start_scheduler(dispatcher: NotificationDispatcher):
    """Start the background scheduler"""
    if scheduler.running:
        return

    date_service = DateService()
    day_start = date_service.day_start

    # max_instances=1 + coalesce: a slow tick is skipped, never doubled up
    scheduler.add_job(
        run_due_reminders,
        CronTrigger(minute='*'),  # Every minute
        args=[dispatcher],
        id='due_reminders',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    scheduler.add_job(
        run_reminder_cleanup,
        CronTrigger(minute=0),  # Every hour
        id='reminder_cleanup',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    scheduler.add_job(
        run_streak_rollover,
        CronTrigger(hour=day_start.hour, minute=day_start.minute, timezone=config.TIMEZONE),
        kwargs={"date_service": date_service},
        id='streak_rollover',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    scheduler.start()
    logger.info(">>> APScheduler STARTED <<<")
    logger.info(f"Scheduled jobs: {[job.id for job in scheduler.get_jobs()]}")


def stop_scheduler():
    """Stop the background scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("APScheduler stopped")
