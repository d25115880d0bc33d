"""Availability domain entity: one user's stance on one calendar day"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from sailsync.domain.dates import parse_calendar_date, format_calendar_date, weekend_partner


AVAILABILITY_AVAILABLE = "AVAILABLE"
AVAILABILITY_UNAVAILABLE = "UNAVAILABLE"
AVAILABILITY_UNKNOWN = "UNKNOWN"

AVAILABILITY_STATUSES = [AVAILABILITY_AVAILABLE, AVAILABILITY_UNAVAILABLE, AVAILABILITY_UNKNOWN]


class AvailabilityValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Availability:
    user_id: str
    date: str
    status: str = AVAILABILITY_UNKNOWN

    @property
    def key(self) -> tuple[str, str]:
        return self.user_id, self.date


def availability_entries(user_id: str, day: str, status: str) -> list[Availability]:
    """
    Records to write when a user sets their availability on day.

    Saturday and Sunday mirror each other: the weekend partner gets the same
    status as a second single-day record.

    Raises:
        AvailabilityValidationError: unknown status or malformed day
    """
    if status not in AVAILABILITY_STATUSES:
        raise AvailabilityValidationError(f"Unknown availability status: {status}")
    d = parse_calendar_date(day)
    if d is None:
        raise AvailabilityValidationError(f"Invalid date: {day!r}")
    days = [d]
    partner = weekend_partner(d)
    if partner is not None:
        days.append(partner)
    return [Availability(user_id=user_id, date=format_calendar_date(x), status=status) for x in days]


class AvailabilityLookup:
    """(user_id, date) -> status, last record wins; absent means UNKNOWN."""

    def __init__(self, availabilities: Iterable[Availability]):
        self._status: dict[tuple[str, str], str] = {}
        for a in availabilities:
            d = parse_calendar_date(a.date)
            if d is None:
                continue
            self._status[(a.user_id, format_calendar_date(d))] = a.status

    def status(self, user_id: str, day: date) -> str:
        return self._status.get((user_id, format_calendar_date(day)), AVAILABILITY_UNKNOWN)

    def is_available(self, user_id: str, day: date) -> bool:
        return self.status(user_id, day) == AVAILABILITY_AVAILABLE

    def has_any_between(self, user_id: str, start: date, end: date) -> bool:
        lo, hi = format_calendar_date(start), format_calendar_date(end)
        return any(uid == user_id and lo <= d <= hi for uid, d in self._status)
