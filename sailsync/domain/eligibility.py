"""
Availability / conflict guard.

Two entry points:
- eligible_for_role: who the crew picker offers for a boat on a day
- check_assignment_write: reason-coded conflicts for a write at the boundary

Both are advisory; whether a conflict blocks the write is decided by the
caller (see Settings.ENFORCE_CREW_CONFLICTS).
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from sailsync.domain.assignment import Assignment, ROLE_INSTRUCTOR, ROLE_HELPER
from sailsync.domain.assignment_index import AssignmentIndex
from sailsync.domain.availability import AvailabilityLookup
from sailsync.domain.dates import parse_calendar_date, span_days
from sailsync.domain.user import User, ROLE_MANAGER

CONFLICT_BOAT_OVERLAP = "BOAT_OVERLAP"
CONFLICT_USER_BUSY = "USER_BUSY"
CONFLICT_USER_NOT_AVAILABLE = "USER_NOT_AVAILABLE"
CONFLICT_INVALID_DURATION = "INVALID_DURATION"
CONFLICT_UNPARSABLE_DATE = "UNPARSABLE_DATE"


@dataclass(frozen=True)
class Conflict:
    code: str
    detail: str
    user_id: str | None = None
    day: str | None = None
    other_assignment_id: str | None = None


def candidates_for_role(users: Iterable[User], role: str) -> list[User]:
    """Instructor slot: instructors and managers. Helper slot: helpers."""
    if role == ROLE_INSTRUCTOR:
        return [u for u in users if u.role in (ROLE_INSTRUCTOR, ROLE_MANAGER)]
    if role == ROLE_HELPER:
        return [u for u in users if u.role == ROLE_HELPER]
    raise ValueError(f"Unknown crew role: {role}")


def eligible_for_role(
    day: date,
    boat_id: str,
    candidates: Iterable[User],
    assignment: Assignment | None,
    availability: AvailabilityLookup,
    index: AssignmentIndex,
) -> list[User]:
    """
    Candidates the picker may offer for boat_id on day, order preserved.

    Current crew of `assignment` always stays listed; anyone else must be
    AVAILABLE on day and not committed to another boat.
    """
    busy = index.busy_user_ids(day, boat_id)
    current = set(assignment.crew_ids()) if assignment else set()
    out = []
    for u in candidates:
        if u.id in current:
            out.append(u)
        elif availability.is_available(u.id, day) and u.id not in busy:
            out.append(u)
    return out


def _people_to_check(candidate: Assignment, previous: Assignment | None) -> list[str]:
    if previous is None:
        return list(candidate.crew_ids())
    if previous.date != candidate.date or previous.duration_days != candidate.duration_days:
        return list(candidate.crew_ids())
    return [uid for uid in candidate.crew_ids() if uid not in previous.crew_ids()]


def check_assignment_write(
    candidate: Assignment,
    assignments: Iterable[Assignment],
    availability: AvailabilityLookup,
) -> list[Conflict]:
    """
    Conflicts that writing `candidate` would introduce.

    `assignments` is the stored set; a stored record with the candidate's id
    is treated as its previous version. Cancelling never conflicts. Crew
    already on the previous version are only re-checked when the span moves.
    """
    if candidate.is_cancelled:
        return []
    start = parse_calendar_date(candidate.date)
    if start is None:
        return [Conflict(CONFLICT_UNPARSABLE_DATE, f"date={candidate.date!r}")]
    if candidate.duration_days is None or candidate.duration_days < 1:
        return [Conflict(CONFLICT_INVALID_DURATION, f"duration_days={candidate.duration_days!r}")]

    stored = list(assignments)
    previous = next((a for a in stored if a.id == candidate.id), None)
    others = AssignmentIndex(a for a in stored if a.id != candidate.id)

    conflicts: list[Conflict] = []
    for other in others.overlapping(candidate):
        conflicts.append(Conflict(
            CONFLICT_BOAT_OVERLAP,
            f"boat {candidate.boat_id} already has assignment {other.id} starting {other.date}",
            other_assignment_id=other.id,
        ))

    people = _people_to_check(candidate, previous)
    for d in span_days(start, candidate.duration_days):
        busy = others.busy_user_ids(d, candidate.boat_id)
        for uid in people:
            if uid in busy:
                elsewhere = [
                    a for a in others.commitments_of(uid, d) if a.boat_id != candidate.boat_id
                ]
                conflicts.append(Conflict(
                    CONFLICT_USER_BUSY,
                    f"user {uid} is already on boat {elsewhere[0].boat_id}",
                    user_id=uid,
                    day=d.isoformat(),
                    other_assignment_id=elsewhere[0].id,
                ))
            if not availability.is_available(uid, d):
                conflicts.append(Conflict(
                    CONFLICT_USER_NOT_AVAILABLE,
                    f"user {uid} is {availability.status(uid, d)}",
                    user_id=uid,
                    day=d.isoformat(),
                ))
    return conflicts
