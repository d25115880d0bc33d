"""
Notification fan-out - which notifications a condition produces.

Pure functions: they take snapshot data and return new UserNotification
records, nothing is saved here. Callers (dispatcher, reminder engine) persist
the result through the store.

Templates:
- ASSIGNMENT_REQUEST: crew member placed in a role
- EVENT_INVITE:       general event created, one per invitee
- INFO:               birthdays, to every user
- REMINDER:           maintenance expiring soon (admins), missing availability,
                      no entry for any weekend of next month
"""
import logging
from datetime import date, datetime
from typing import Iterable

from sailsync.domain.assignment import Assignment
from sailsync.domain.availability import Availability, AvailabilityLookup
from sailsync.domain.dates import (
    parse_calendar_date,
    format_calendar_date,
    format_short,
    iter_days,
    month_bounds,
    next_month,
    SATURDAY,
    SUNDAY,
)
from sailsync.domain.general_event import GeneralEvent
from sailsync.domain.maintenance import (
    MaintenanceRecord,
    BUCKET_EXPIRING_SOON,
    EXPIRING_SOON_DAYS,
    expiration_bucket,
    days_until_expiration,
)
from sailsync.domain.notification import (
    UserNotification,
    NOTIFICATION_ASSIGNMENT_REQUEST,
    NOTIFICATION_EVENT_INVITE,
    NOTIFICATION_INFO,
    NOTIFICATION_REMINDER,
    new_notification,
    mark_read as _mark_read,
)
from sailsync.domain.user import User, ROLE_INSTRUCTOR, ROLE_HELPER, ROLE_MANAGER

logger = logging.getLogger(__name__)

BIRTHDAY_SCOPE_DAY = "day"
BIRTHDAY_SCOPE_MESSAGE = "message"

AVAILABILITY_SCOPE_WEEKENDS = "weekends"

_ROLE_LABELS = {ROLE_INSTRUCTOR: "istruttore", ROLE_HELPER: "aiutante"}

_MONTHS_IT = [
    "gennaio", "febbraio", "marzo", "aprile", "maggio", "giugno",
    "luglio", "agosto", "settembre", "ottobre", "novembre", "dicembre",
]

_TEMPLATES = {
    NOTIFICATION_ASSIGNMENT_REQUEST: "Nuova missione: {activity} su {boat} dal {day} ({days} gg) come {role}. Confermi?",
    NOTIFICATION_EVENT_INVITE: "Invito: {name} il {day}",
    NOTIFICATION_INFO: "🎉 Oggi è il compleanno di {name}! Tanti auguri! 🎂",
    "MAINTENANCE_EXPIRING": '⚠️ Manutenzione in scadenza: "{description}" su {boat} (tra {days} gg, {day})',
    "AVAILABILITY_MISSING": "Ricordati di inserire le tue disponibilità per {month}!",
    "WEEKENDS_MISSING": "Non hai ancora indicato la disponibilità per i weekend di {month}!",
}


def birthday_message(name: str) -> str:
    return _TEMPLATES[NOTIFICATION_INFO].format(name=name)


def on_assignment_role_changed(
    assignment: Assignment,
    role: str,
    users: Iterable[User],
    now: datetime,
    boat_name: str | None = None,
    activity_name: str | None = None,
) -> list[UserNotification]:
    """One ASSIGNMENT_REQUEST for whoever now holds `role` (nothing if empty or unknown)."""
    user_id = assignment.person_in(role)
    if not user_id:
        return []
    if user_id not in {u.id for u in users}:
        logger.warning("Assignment %s: %s %s is not a known user", assignment.id, role, user_id)
        return []
    start = parse_calendar_date(assignment.date)
    message = _TEMPLATES[NOTIFICATION_ASSIGNMENT_REQUEST].format(
        activity=activity_name or "missione",
        boat=boat_name or assignment.boat_id,
        day=format_short(start) if start else assignment.date,
        days=assignment.duration_days,
        role=_ROLE_LABELS.get(role, role.lower()),
    )
    return [new_notification(
        user_id,
        NOTIFICATION_ASSIGNMENT_REQUEST,
        message,
        now,
        data={"assignment_id": assignment.id, "role": role, "date": assignment.date},
    )]


def on_event_created(
    event: GeneralEvent,
    users: Iterable[User],
    now: datetime,
    activity_name: str | None = None,
) -> list[UserNotification]:
    """One EVENT_INVITE per invitee, in response order."""
    known = {u.id for u in users}
    day = parse_calendar_date(event.date)
    message = _TEMPLATES[NOTIFICATION_EVENT_INVITE].format(
        name=activity_name or "evento",
        day=format_short(day) if day else event.date,
    )
    return [
        new_notification(r.user_id, NOTIFICATION_EVENT_INVITE, message, now, data={"event_id": event.id})
        for r in event.responses
        if r.user_id in known
    ]


def _is_birthday(user: User, today: date) -> bool:
    if not user.birth_date:
        return False
    born = parse_calendar_date(user.birth_date)
    if born is None:
        logger.warning("User %s has an unreadable birth date %r", user.id, user.birth_date)
        return False
    return (born.month, born.day) == (today.month, today.day)


def on_birthday(
    users: Iterable[User],
    existing: Iterable[UserNotification],
    today: date,
    now: datetime,
    scope: str = BIRTHDAY_SCOPE_DAY,
) -> list[UserNotification]:
    """
    INFO greetings for every user celebrating today, sent to every user.

    Dedup by scope:
        "message": skip when any INFO with the same text exists (ever)
        "day":     skip only when that INFO was produced for the same date
    """
    if scope not in (BIRTHDAY_SCOPE_DAY, BIRTHDAY_SCOPE_MESSAGE):
        raise ValueError(f"Unknown birthday dedup scope: {scope}")
    users = list(users)
    today_str = format_calendar_date(today)
    infos = [n for n in existing if n.type == NOTIFICATION_INFO]

    out: list[UserNotification] = []
    for celebrant in users:
        if not _is_birthday(celebrant, today):
            continue
        message = birthday_message(celebrant.name)
        if scope == BIRTHDAY_SCOPE_MESSAGE:
            seen = any(n.message == message for n in infos)
        else:
            seen = any(n.message == message and n.data.get("date") == today_str for n in infos)
        if seen:
            continue
        for recipient in users:
            out.append(new_notification(
                recipient.id,
                NOTIFICATION_INFO,
                message,
                now,
                data={"subject_user_id": celebrant.id, "date": today_str},
            ))
    return out


def on_maintenance_expiring_soon(
    record: MaintenanceRecord,
    users: Iterable[User],
    today: date,
    now: datetime,
    boat_name: str | None = None,
    soon_days: int = EXPIRING_SOON_DAYS,
) -> list[UserNotification]:
    """One REMINDER per admin while the record sits in the expiring-soon window."""
    if expiration_bucket(record, today, soon_days) != BUCKET_EXPIRING_SOON:
        return []
    expires = parse_calendar_date(record.expiration_date)
    message = _TEMPLATES["MAINTENANCE_EXPIRING"].format(
        description=record.description,
        boat=boat_name or record.boat_id,
        days=days_until_expiration(record, today),
        day=format_short(expires),
    )
    return [
        new_notification(
            u.id,
            NOTIFICATION_REMINDER,
            message,
            now,
            data={"record_id": record.id, "date": record.expiration_date},
        )
        for u in users
        if u.is_admin
    ]


def on_availability_missing(
    users: Iterable[User],
    availabilities: Iterable[Availability],
    month_start: date,
    now: datetime,
) -> list[UserNotification]:
    """REMINDER for every non-manager with no availability record in month_start's month."""
    first, last = month_bounds(month_start.year, month_start.month)
    lookup = AvailabilityLookup(availabilities)
    message = _TEMPLATES["AVAILABILITY_MISSING"].format(
        month=f"{_MONTHS_IT[first.month - 1]} {first.year}",
    )
    return [
        new_notification(
            u.id,
            NOTIFICATION_REMINDER,
            message,
            now,
            data={"date": format_calendar_date(first)},
        )
        for u in users
        if u.role != ROLE_MANAGER and not lookup.has_any_between(u.id, first, last)
    ]


def on_next_month_weekends_missing(
    users: Iterable[User],
    availabilities: Iterable[Availability],
    today: date,
    now: datetime,
) -> list[UserNotification]:
    """
    REMINDER for every non-manager with no entry on any Saturday or Sunday
    of the month after today.

    data: {"date": first of next month, "scope": "weekends"}
    """
    month = next_month(today)
    first, last = month_bounds(month.year, month.month)
    weekends = [d for d in iter_days(first, last) if d.weekday() in (SATURDAY, SUNDAY)]
    lookup = AvailabilityLookup(availabilities)
    message = _TEMPLATES["WEEKENDS_MISSING"].format(
        month=f"{_MONTHS_IT[first.month - 1]} {first.year}",
    )
    data = {"date": format_calendar_date(first), "scope": AVAILABILITY_SCOPE_WEEKENDS}
    return [
        new_notification(u.id, NOTIFICATION_REMINDER, message, now, data=dict(data))
        for u in users
        if u.role != ROLE_MANAGER
        and not any(lookup.has_any_between(u.id, d, d) for d in weekends)
    ]


def mark_read(notification: UserNotification) -> UserNotification:
    """False -> True; already read notifications come back unchanged."""
    return _mark_read(notification)
