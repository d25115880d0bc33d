"""
Reminder engine - daily rule-based in-app notifications.

Rules:
- BIRTHDAY:              INFO to every user for each birthday today
- MAINTENANCE_EXPIRING:  REMINDER to admins for records expiring within the window
- AVAILABILITY_MISSING:  REMINDER on the configured day of month to users with
                         no availability in the current month
- NEXT_MONTH_WEEKENDS:   REMINDER to users with no entry on any weekend day of
                         next month, once per user and month

Each rule dedups against the notifications already stored, so running the
engine more than once a day is harmless. A failing rule is logged and the
others still run.
"""
import logging
from datetime import date, datetime
from typing import Callable

from sqlalchemy.orm import Session

from sailsync.application.errors import StoreWriteError
from sailsync.application.notification_fanout import (
    on_birthday,
    on_maintenance_expiring_soon,
    on_availability_missing,
    on_next_month_weekends_missing,
)
from sailsync.config import Settings, get_settings
from sailsync.domain.dates import format_calendar_date
from sailsync.domain.notification import UserNotification, NOTIFICATION_REMINDER
from sailsync.domain.state import ScheduleState, COLLECTION_NOTIFICATIONS
from sailsync.infrastructure.store import SqlStateStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dedup helpers
# ---------------------------------------------------------------------------

def _maintenance_reminded(existing: list[UserNotification], n: UserNotification) -> bool:
    """Same admin, same record, already reminded on the same day."""
    return any(
        e.type == NOTIFICATION_REMINDER
        and e.user_id == n.user_id
        and e.data.get("record_id") == n.data.get("record_id")
        and e.created_at.date() == n.created_at.date()
        for e in existing
    )


def _availability_reminded(existing: list[UserNotification], n: UserNotification) -> bool:
    """Same user already reminded for the same month and scope."""
    return any(
        e.type == NOTIFICATION_REMINDER
        and e.user_id == n.user_id
        and "record_id" not in e.data
        and e.data.get("date") == n.data.get("date")
        and e.data.get("scope") == n.data.get("scope")
        for e in existing
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ReminderEngine:
    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.now = now
        self.store = SqlStateStore(db)

    def run(self, today: date | None = None) -> dict[str, int]:
        """Apply every rule for `today`. Returns notifications created per rule."""
        today = today or date.today()
        created = {}
        for name, rule in (
            ("birthday", self._run_birthdays),
            ("maintenance_expiring", self._run_maintenance),
            ("availability_missing", self._run_availability),
            ("next_month_weekends", self._run_next_month_weekends),
        ):
            try:
                created[name] = self._persist(rule(self.store.load(), today))
            except Exception:
                logger.exception("Reminder rule %s failed for %s", name, today)
                self.db.rollback()
                created[name] = 0
        return created

    def _persist(self, notifications: list[UserNotification]) -> int:
        if not notifications:
            return 0
        if not self.store.save(COLLECTION_NOTIFICATIONS, notifications):
            raise StoreWriteError("Could not save reminders")
        self.db.commit()
        return len(notifications)

    def _run_birthdays(self, state: ScheduleState, today: date) -> list[UserNotification]:
        return on_birthday(
            state.users,
            state.notifications,
            today,
            self.now(),
            scope=self.settings.BIRTHDAY_DEDUP_SCOPE,
        )

    def _run_maintenance(self, state: ScheduleState, today: date) -> list[UserNotification]:
        out: list[UserNotification] = []
        existing = list(state.notifications)
        for record in state.maintenance_records:
            boat = state.boat(record.boat_id)
            for n in on_maintenance_expiring_soon(
                record,
                state.users,
                today,
                self.now(),
                boat_name=boat.name if boat else None,
                soon_days=self.settings.EXPIRING_SOON_DAYS,
            ):
                if not _maintenance_reminded(existing, n):
                    out.append(n)
        return out

    def _run_availability(self, state: ScheduleState, today: date) -> list[UserNotification]:
        if today.day != self.settings.AVAILABILITY_REMINDER_DAY:
            return []
        existing = list(state.notifications)
        reminders = on_availability_missing(
            state.users,
            state.availabilities,
            today.replace(day=1),
            self.now(),
        )
        out = [n for n in reminders if not _availability_reminded(existing, n)]
        if out:
            logger.info(
                "Availability reminder for %s sent to %d users",
                format_calendar_date(today.replace(day=1)), len(out),
            )
        return out

    def _run_next_month_weekends(self, state: ScheduleState, today: date) -> list[UserNotification]:
        existing = list(state.notifications)
        reminders = on_next_month_weekends_missing(
            state.users, state.availabilities, today, self.now(),
        )
        return [n for n in reminders if not _availability_reminded(existing, n)]


def run_daily_reminders(db: Session, today: date | None = None) -> dict[str, int]:
    """Entry point for the scheduler job."""
    return ReminderEngine(db).run(today)
