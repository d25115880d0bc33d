"""
Background scheduler - runs periodic jobs inside the FastAPI process.

Jobs:
  - Daily reminders (birthdays, maintenance expiring, missing availability)
    at DAILY_REMINDERS_HOUR, local club time
  - Notification dispatcher (outbox -> notifications) every DISPATCH_INTERVAL_MINUTES
"""
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from sailsync.config import get_settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def _run_daily_reminders():
    from sailsync.infrastructure.db.session import session_scope
    from sailsync.application.reminders import run_daily_reminders

    settings = get_settings()
    today = datetime.now(ZoneInfo(settings.TIMEZONE)).date()
    try:
        with session_scope() as db:
            created = run_daily_reminders(db, today)
        logger.info("Daily reminders for %s: %s", today, created)
    except Exception:
        logger.exception("Daily reminders job failed")


def _run_dispatcher():
    from sailsync.infrastructure.db.session import session_scope
    from sailsync.application.notification_dispatcher import dispatch_pending_notifications

    try:
        with session_scope() as db:
            dispatch_pending_notifications(db)
    except Exception:
        logger.exception("Notification dispatch job failed")


def start_scheduler():
    """Start the background scheduler with all periodic jobs."""
    settings = get_settings()

    scheduler.add_job(
        _run_daily_reminders,
        CronTrigger(hour=settings.DAILY_REMINDERS_HOUR, minute=0, timezone=settings.TIMEZONE),
        id="daily_reminders",
        replace_existing=True,
    )

    scheduler.add_job(
        _run_dispatcher,
        "interval",
        minutes=settings.DISPATCH_INTERVAL_MINUTES,
        id="notification_dispatcher",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        "Scheduler started: daily_reminders (%02d:00 %s), notification_dispatcher (every %d min)",
        settings.DAILY_REMINDERS_HOUR, settings.TIMEZONE, settings.DISPATCH_INTERVAL_MINUTES,
    )


def shutdown_scheduler():
    """Gracefully stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
