"""
Maintenance records and the recurrence engine.

Completing a recurring record proposes the next occurrence; the proposal is a
plain record that the caller may persist or drop. Nothing here is saved.

Units:
- days:   add N days
- months: add N calendar months, clipped to the last day of the target month
- years:  add N calendar years (Feb 29 -> Feb 28 in non-leap years)
"""
import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable, Iterable

from sailsync.domain.dates import (
    parse_calendar_date,
    format_calendar_date,
    days_between,
    add_months,
    add_years,
)


MAINTENANCE_TODO = "TODO"
MAINTENANCE_IN_PROGRESS = "IN_PROGRESS"
MAINTENANCE_DONE = "DONE"

MAINTENANCE_STATUSES = [MAINTENANCE_TODO, MAINTENANCE_IN_PROGRESS, MAINTENANCE_DONE]

UNIT_DAYS = "days"
UNIT_MONTHS = "months"
UNIT_YEARS = "years"

RECURRENCE_UNITS = [UNIT_DAYS, UNIT_MONTHS, UNIT_YEARS]

BUCKET_EXPIRED = "expired"
BUCKET_EXPIRING_SOON = "expiringSoon"
BUCKET_OK = "ok"

EXPIRING_SOON_DAYS = 30


class MaintenanceValidationError(ValueError):
    pass


@dataclass(frozen=True)
class MaintenanceRecord:
    id: str
    boat_id: str
    description: str
    date: str
    status: str = MAINTENANCE_TODO
    expiration_date: str | None = None
    recurrence_interval: int | None = None
    recurrence_unit: str | None = None
    notes: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status == MAINTENANCE_DONE

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurrence_interval) and bool(self.recurrence_unit)


@dataclass(frozen=True)
class CompletionResult:
    updated: MaintenanceRecord
    spawned: MaintenanceRecord | None = None


def validate_recurrence(interval: int | None, unit: str | None) -> None:
    """Both set or both empty; interval >= 1; known unit."""
    if interval is None and unit is None:
        return
    if interval is None or unit is None:
        raise MaintenanceValidationError("recurrence_interval and recurrence_unit go together")
    if unit not in RECURRENCE_UNITS:
        raise MaintenanceValidationError(f"Unknown recurrence unit: {unit}")
    if interval < 1:
        raise MaintenanceValidationError("recurrence_interval must be >= 1")


def advance(base: date, interval: int, unit: str) -> date:
    """
    Calendar-aware addition.

    Example:
        >>> advance(date(2024, 1, 31), 1, "months")
        datetime.date(2024, 2, 29)
    """
    validate_recurrence(interval, unit)
    if unit == UNIT_YEARS:
        return add_years(base, interval)
    if unit == UNIT_MONTHS:
        return add_months(base, interval)
    return base + timedelta(days=interval)


def new_maintenance_record(
    boat_id: str,
    description: str,
    day: str,
    expiration_date: str | None = None,
    status: str = MAINTENANCE_TODO,
    recurrence_interval: int | None = None,
    recurrence_unit: str | None = None,
    notes: str | None = None,
    record_id: str | None = None,
) -> MaintenanceRecord:
    description = description.strip()
    if not description:
        raise MaintenanceValidationError("Description is required")
    if status not in MAINTENANCE_STATUSES:
        raise MaintenanceValidationError(f"Unknown maintenance status: {status}")
    if parse_calendar_date(day) is None:
        raise MaintenanceValidationError(f"Invalid date: {day!r}")
    if expiration_date and parse_calendar_date(expiration_date) is None:
        raise MaintenanceValidationError(f"Invalid expiration date: {expiration_date!r}")
    validate_recurrence(recurrence_interval, recurrence_unit)
    return MaintenanceRecord(
        id=record_id or str(uuid.uuid4()),
        boat_id=boat_id,
        description=description,
        date=day,
        status=status,
        expiration_date=expiration_date or None,
        recurrence_interval=recurrence_interval,
        recurrence_unit=recurrence_unit,
        notes=notes,
    )


def complete_and_maybe_reschedule(
    record: MaintenanceRecord,
    today: date,
    new_id: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> CompletionResult:
    """
    Mark record DONE and, for recurring records, propose the next one.

    The proposal starts today and expires `interval unit` after today, with the
    same boat, description and recurrence.
    """
    updated = replace(record, status=MAINTENANCE_DONE)
    if not record.is_recurring:
        return CompletionResult(updated=updated)
    next_exp = advance(today, record.recurrence_interval, record.recurrence_unit)
    spawned = MaintenanceRecord(
        id=new_id(),
        boat_id=record.boat_id,
        description=record.description,
        date=format_calendar_date(today),
        status=MAINTENANCE_TODO,
        expiration_date=format_calendar_date(next_exp),
        recurrence_interval=record.recurrence_interval,
        recurrence_unit=record.recurrence_unit,
    )
    return CompletionResult(updated=updated, spawned=spawned)


def reopen_record(record: MaintenanceRecord) -> MaintenanceRecord:
    """Toggle a DONE record back to TODO. Earlier proposals stay where they are."""
    return replace(record, status=MAINTENANCE_TODO)


def days_until_expiration(record: MaintenanceRecord, today: date) -> int | None:
    exp = parse_calendar_date(record.expiration_date) if record.expiration_date else None
    if exp is None:
        return None
    return days_between(exp, today)


def expiration_bucket(
    record: MaintenanceRecord,
    today: date,
    soon_days: int = EXPIRING_SOON_DAYS,
) -> str:
    """expired / expiringSoon / ok. Done records and records without a readable expiration are ok."""
    if record.is_done:
        return BUCKET_OK
    left = days_until_expiration(record, today)
    if left is None:
        return BUCKET_OK
    if left < 0:
        return BUCKET_EXPIRED
    if left <= soon_days:
        return BUCKET_EXPIRING_SOON
    return BUCKET_OK


def sort_for_hub(records: Iterable[MaintenanceRecord]) -> list[MaintenanceRecord]:
    """Soonest expiration first; records without expiration after, oldest first."""
    def key(r: MaintenanceRecord):
        exp = parse_calendar_date(r.expiration_date) if r.expiration_date else None
        if exp is not None:
            return (0, exp, r.id)
        d = parse_calendar_date(r.date) or date.max
        return (1, d, r.id)

    return sorted(records, key=key)
