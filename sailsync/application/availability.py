"""
Availability use cases
"""
from sqlalchemy.orm import Session

from sailsync.application.errors import NotFoundError, StoreWriteError
from sailsync.domain.availability import Availability, availability_entries
from sailsync.domain.dates import format_calendar_date, month_bounds
from sailsync.domain.state import COLLECTION_AVAILABILITIES
from sailsync.infrastructure.store import SqlStateStore


class SetAvailabilityUseCase:
    """
    Use case: a user marks a day AVAILABLE / UNAVAILABLE / UNKNOWN

    Saturday and Sunday are written together (weekend mirror).
    Last write wins per (user_id, date).
    """

    def __init__(self, db: Session):
        self.db = db
        self.store = SqlStateStore(db)

    def execute(self, user_id: str, day: str, status: str) -> list[Availability]:
        state = self.store.load()
        if state.user(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")

        entries = availability_entries(user_id, day, status)
        if not self.store.save(COLLECTION_AVAILABILITIES, entries):
            raise StoreWriteError("Could not save availability")
        self.db.commit()
        return entries


def list_month_availability(db: Session, year: int, month: int, user_id: str | None = None) -> list[Availability]:
    """Availability records inside one month, optionally for a single user."""
    first, last = month_bounds(year, month)
    lo, hi = format_calendar_date(first), format_calendar_date(last)
    state = SqlStateStore(db).load()
    return [
        a for a in state.availabilities
        if lo <= a.date[:10] <= hi and (user_id is None or a.user_id == user_id)
    ]