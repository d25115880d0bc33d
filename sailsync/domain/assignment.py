"""
Assignment domain entity and the per-role confirmation state machine.

An assignment commits one boat to one mission for `duration_days` consecutive
days starting at `date`. Two independent axes live on it:

  status                          CONFIRMED <-> CANCELLED (soft delete / restore)
  instructor_status, helper_status  PENDING -> CONFIRMED | REJECTED

A role status goes back to PENDING only when the person in that role changes
or an admin forces a reset. Cancelling never touches role statuses.
"""
import uuid
from dataclasses import dataclass, replace
from typing import Any

from sailsync.domain.dates import parse_calendar_date
from sailsync.domain.user import ROLE_INSTRUCTOR, ROLE_HELPER


# Assignment status
ASSIGNMENT_CONFIRMED = "CONFIRMED"
ASSIGNMENT_CANCELLED = "CANCELLED"

ASSIGNMENT_STATUSES = [ASSIGNMENT_CONFIRMED, ASSIGNMENT_CANCELLED]

# Per-person confirmation status
CONFIRMATION_PENDING = "PENDING"
CONFIRMATION_CONFIRMED = "CONFIRMED"
CONFIRMATION_REJECTED = "REJECTED"

CONFIRMATION_STATUSES = [CONFIRMATION_PENDING, CONFIRMATION_CONFIRMED, CONFIRMATION_REJECTED]

# Crew roles on a boat (subset of user roles)
CREW_ROLES = [ROLE_INSTRUCTOR, ROLE_HELPER]

DEFAULT_DURATION_DAYS = 2

_PERSON_FIELD = {ROLE_INSTRUCTOR: "instructor_id", ROLE_HELPER: "helper_id"}
_STATUS_FIELD = {ROLE_INSTRUCTOR: "instructor_status", ROLE_HELPER: "helper_status"}

_EDITABLE_FIELDS = ("date", "duration_days", "activity_id", "notes", "instructor_id", "helper_id")


class AssignmentStateError(ValueError):
    pass


@dataclass(frozen=True)
class Assignment:
    id: str
    date: str
    boat_id: str
    instructor_id: str | None = None
    helper_id: str | None = None
    activity_id: str | None = None
    duration_days: int = 1
    status: str = ASSIGNMENT_CONFIRMED
    instructor_status: str = CONFIRMATION_PENDING
    helper_status: str = CONFIRMATION_PENDING
    notes: str = ""

    @property
    def is_cancelled(self) -> bool:
        return self.status == ASSIGNMENT_CANCELLED

    def person_in(self, role: str) -> str | None:
        return getattr(self, _PERSON_FIELD[_check_role(role)])

    def status_of(self, role: str) -> str:
        return getattr(self, _STATUS_FIELD[_check_role(role)])

    def role_of(self, user_id: str) -> str | None:
        """Role held by user_id on this assignment, instructor first."""
        if user_id is None:
            return None
        if self.instructor_id == user_id:
            return ROLE_INSTRUCTOR
        if self.helper_id == user_id:
            return ROLE_HELPER
        return None

    def crew_ids(self) -> tuple[str, ...]:
        return tuple(uid for uid in (self.instructor_id, self.helper_id) if uid)


def _check_role(role: str) -> str:
    if role not in CREW_ROLES:
        raise AssignmentStateError(f"Unknown crew role: {role}")
    return role


def new_assignment_id() -> str:
    return str(uuid.uuid4())


def new_assignment(
    day: str,
    boat_id: str,
    activity_id: str | None = None,
    duration_days: int = DEFAULT_DURATION_DAYS,
    instructor_id: str | None = None,
    helper_id: str | None = None,
    notes: str = "",
    assignment_id: str | None = None,
) -> Assignment:
    """
    Create the assignment for a boat/day cell populated for the first time.

    Raises:
        AssignmentStateError: malformed day or duration below 1
    """
    if parse_calendar_date(day) is None:
        raise AssignmentStateError(f"Invalid assignment date: {day!r}")
    if duration_days < 1:
        raise AssignmentStateError("duration_days must be >= 1")
    return Assignment(
        id=assignment_id or new_assignment_id(),
        date=day,
        boat_id=boat_id,
        instructor_id=instructor_id,
        helper_id=helper_id,
        activity_id=activity_id,
        duration_days=duration_days,
        notes=notes,
    )


def reassign_role(assignment: Assignment, role: str, user_id: str | None) -> Assignment:
    """Put user_id in role; that role's confirmation restarts from PENDING."""
    role = _check_role(role)
    if assignment.is_cancelled:
        raise AssignmentStateError("Cancelled assignment must be restored before editing")
    return replace(
        assignment,
        **{_PERSON_FIELD[role]: user_id or None, _STATUS_FIELD[role]: CONFIRMATION_PENDING},
    )


def update_assignment(assignment: Assignment, **changes: Any) -> Assignment:
    """
    Sparse update of editable fields.

    Person changes reset only the changed role's status. Setting the same
    person again is a no-op for that role.

    Raises:
        AssignmentStateError: cancelled assignment, unknown field, bad date or duration
    """
    if assignment.is_cancelled:
        raise AssignmentStateError("Cancelled assignment must be restored before editing")
    unknown = set(changes) - set(_EDITABLE_FIELDS)
    if unknown:
        raise AssignmentStateError(f"Fields not editable: {', '.join(sorted(unknown))}")
    if "date" in changes and parse_calendar_date(changes["date"]) is None:
        raise AssignmentStateError(f"Invalid assignment date: {changes['date']!r}")
    if "duration_days" in changes and int(changes["duration_days"]) < 1:
        raise AssignmentStateError("duration_days must be >= 1")

    updated = assignment
    for role, field in _PERSON_FIELD.items():
        if field in changes and (changes[field] or None) != getattr(assignment, field):
            updated = reassign_role(updated, role, changes[field])

    plain = {k: v for k, v in changes.items() if k not in _PERSON_FIELD.values()}
    if "duration_days" in plain:
        plain["duration_days"] = int(plain["duration_days"])
    if "notes" in plain and plain["notes"] is None:
        plain["notes"] = ""
    return replace(updated, **plain)


def confirm_role(assignment: Assignment, role: str, accepted: bool) -> Assignment:
    """
    PENDING -> CONFIRMED (accepted) or REJECTED.

    Raises:
        AssignmentStateError: nobody in the role, or the role already answered
    """
    role = _check_role(role)
    if assignment.person_in(role) is None:
        raise AssignmentStateError(f"No one is assigned as {role}")
    current = assignment.status_of(role)
    if current != CONFIRMATION_PENDING:
        raise AssignmentStateError(f"{role} already answered ({current})")
    new_status = CONFIRMATION_CONFIRMED if accepted else CONFIRMATION_REJECTED
    return replace(assignment, **{_STATUS_FIELD[role]: new_status})


def force_reset_role(assignment: Assignment, role: str) -> Assignment:
    """Admin override: put an answered role back to PENDING."""
    role = _check_role(role)
    return replace(assignment, **{_STATUS_FIELD[role]: CONFIRMATION_PENDING})


def cancel_assignment(assignment: Assignment) -> Assignment:
    return replace(assignment, status=ASSIGNMENT_CANCELLED)


def restore_assignment(assignment: Assignment) -> Assignment:
    return replace(assignment, status=ASSIGNMENT_CONFIRMED)
