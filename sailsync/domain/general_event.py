"""
GeneralEvent domain entity - social/training events outside the boat board.

Membership is fixed when the event is created: every user known at that
moment gets a PENDING response, later users are never added.
"""
import uuid
from dataclasses import dataclass, replace
from typing import Iterable

from sailsync.domain.assignment import (
    CONFIRMATION_PENDING,
    CONFIRMATION_CONFIRMED,
    CONFIRMATION_REJECTED,
)
from sailsync.domain.dates import parse_calendar_date
from sailsync.domain.user import User


class EventResponseError(ValueError):
    pass


@dataclass(frozen=True)
class EventResponse:
    user_id: str
    status: str = CONFIRMATION_PENDING


@dataclass(frozen=True)
class GeneralEvent:
    id: str
    date: str
    activity_id: str
    responses: tuple[EventResponse, ...] = ()
    start_time: str | None = None
    end_time: str | None = None
    notes: str | None = None

    def response_of(self, user_id: str) -> EventResponse | None:
        for r in self.responses:
            if r.user_id == user_id:
                return r
        return None

    def count(self, status: str) -> int:
        return sum(1 for r in self.responses if r.status == status)


def create_general_event(
    day: str,
    activity_id: str,
    users: Iterable[User],
    start_time: str | None = None,
    end_time: str | None = None,
    notes: str | None = None,
    event_id: str | None = None,
) -> GeneralEvent:
    """
    Create an event inviting every user in `users` (order preserved).

    Raises:
        EventResponseError: malformed day or end time not after start time
    """
    if parse_calendar_date(day) is None:
        raise EventResponseError(f"Invalid event date: {day!r}")
    if start_time and end_time and end_time <= start_time:
        raise EventResponseError("end_time must be after start_time")
    seen: set[str] = set()
    responses = []
    for u in users:
        if u.id in seen:
            continue
        seen.add(u.id)
        responses.append(EventResponse(user_id=u.id))
    return GeneralEvent(
        id=event_id or str(uuid.uuid4()),
        date=day,
        activity_id=activity_id,
        responses=tuple(responses),
        start_time=start_time or None,
        end_time=end_time or None,
        notes=notes or None,
    )


def update_general_event(event: GeneralEvent, **changes) -> GeneralEvent:
    """Edit date/activity/times/notes; responses are never touched here."""
    allowed = ("date", "activity_id", "start_time", "end_time", "notes")
    payload = {k: v for k, v in changes.items() if k in allowed}
    if "date" in payload and parse_calendar_date(payload["date"]) is None:
        raise EventResponseError(f"Invalid event date: {payload['date']!r}")
    return replace(event, **payload)


def respond_to_event(event: GeneralEvent, user_id: str, accepted: bool) -> GeneralEvent:
    """
    Set user_id's response to CONFIRMED or REJECTED.

    A user may change their mind; only invitees can answer.

    Raises:
        EventResponseError: user_id was not invited
    """
    if event.response_of(user_id) is None:
        raise EventResponseError(f"User {user_id} is not invited to event {event.id}")
    status = CONFIRMATION_CONFIRMED if accepted else CONFIRMATION_REJECTED
    responses = tuple(
        replace(r, status=status) if r.user_id == user_id else r
        for r in event.responses
    )
    return replace(event, responses=responses)
