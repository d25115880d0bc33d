"""
Assignment index: which assignment governs a boat on a given day.

Built once from an assignment snapshot. Records that cannot be placed on the
calendar (unparsable start date, duration below 1) are left out of every
lookup and reported in `issues` instead of raising, so one bad row never
breaks the board.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from sailsync.domain.assignment import Assignment, CONFIRMATION_CONFIRMED
from sailsync.domain.dates import parse_calendar_date, days_between, span_days

logger = logging.getLogger(__name__)

ISSUE_UNPARSABLE_DATE = "UNPARSABLE_DATE"
ISSUE_INVALID_DURATION = "INVALID_DURATION"
ISSUE_OVERLAPPING_ASSIGNMENTS = "OVERLAPPING_ASSIGNMENTS"


@dataclass(frozen=True)
class DataQualityIssue:
    code: str
    assignment_id: str
    detail: str


@dataclass(frozen=True)
class _Span:
    assignment: Assignment
    start: date

    def covers(self, day: date) -> bool:
        offset = days_between(day, self.start)
        return 0 <= offset < self.assignment.duration_days

    @property
    def sort_key(self) -> tuple[date, str]:
        return self.start, self.assignment.id


class AssignmentIndex:
    """
    Read-only lookups over one assignment snapshot.

    Usage:
        >>> index = AssignmentIndex(state.assignments)
        >>> index.effective_assignment("b1", date(2024, 6, 2))
    """

    def __init__(self, assignments: Iterable[Assignment]):
        self._by_boat: dict[str, list[_Span]] = {}
        self._issues: list[DataQualityIssue] = []
        self._reported_overlaps: set[tuple[str, ...]] = set()

        for a in assignments:
            start = parse_calendar_date(a.date)
            if start is None:
                self._report(ISSUE_UNPARSABLE_DATE, a.id, f"date={a.date!r}")
                continue
            if a.duration_days is None or a.duration_days < 1:
                self._report(ISSUE_INVALID_DURATION, a.id, f"duration_days={a.duration_days!r}")
                continue
            self._by_boat.setdefault(a.boat_id, []).append(_Span(a, start))

        for spans in self._by_boat.values():
            spans.sort(key=lambda s: s.sort_key)

    @property
    def issues(self) -> tuple[DataQualityIssue, ...]:
        return tuple(self._issues)

    def boat_ids(self) -> list[str]:
        return sorted(self._by_boat)

    def _report(self, code: str, assignment_id: str, detail: str) -> None:
        logger.warning("Assignment data issue %s on %s: %s", code, assignment_id, detail)
        self._issues.append(DataQualityIssue(code=code, assignment_id=assignment_id, detail=detail))

    def covering(self, boat_id: str, day: date) -> list[Assignment]:
        """Every assignment of boat_id whose span contains day, by (date, id)."""
        return [s.assignment for s in self._by_boat.get(boat_id, []) if s.covers(day)]

    def effective_assignment(self, boat_id: str, day: date) -> Assignment | None:
        """
        The assignment governing boat_id on day, or None.

        More than one match is a data anomaly: the earliest start wins (then
        lowest id) and the overlap is reported once per distinct set.
        """
        matches = self.covering(boat_id, day)
        if not matches:
            return None
        if len(matches) > 1:
            ids = tuple(a.id for a in matches)
            if ids not in self._reported_overlaps:
                self._reported_overlaps.add(ids)
                self._report(
                    ISSUE_OVERLAPPING_ASSIGNMENTS,
                    matches[0].id,
                    f"boat={boat_id} day={day.isoformat()} ids={','.join(ids)}",
                )
        return matches[0]

    def assignments_on(self, day: date) -> dict[str, Assignment]:
        """Effective assignment per boat on day, keyed by boat id (sorted)."""
        out: dict[str, Assignment] = {}
        for boat_id in self.boat_ids():
            a = self.effective_assignment(boat_id, day)
            if a is not None:
                out[boat_id] = a
        return out

    def busy_user_ids(self, day: date, exclude_boat_id: str | None = None) -> frozenset[str]:
        """Users committed on day to any boat other than exclude_boat_id."""
        busy: set[str] = set()
        for boat_id, a in self.assignments_on(day).items():
            if boat_id == exclude_boat_id:
                continue
            busy.update(a.crew_ids())
        return frozenset(busy)

    def commitments_of(self, user_id: str, day: date) -> list[Assignment]:
        return [a for a in self.assignments_on(day).values() if user_id in a.crew_ids()]

    def upcoming_for_user(self, user_id: str, today: date) -> list[Assignment]:
        """
        Confirmed, not cancelled assignments starting today or later in which
        user_id accepted their role. Sorted by start date then id.
        """
        out: list[_Span] = []
        for spans in self._by_boat.values():
            for s in spans:
                a = s.assignment
                if a.is_cancelled or s.start < today:
                    continue
                role = a.role_of(user_id)
                if role is None or a.status_of(role) != CONFIRMATION_CONFIRMED:
                    continue
                out.append(s)
        out.sort(key=lambda s: s.sort_key)
        return [s.assignment for s in out]

    def overlapping(self, candidate: Assignment) -> list[Assignment]:
        """Other assignments of the same boat sharing at least one day with candidate."""
        start = parse_calendar_date(candidate.date)
        if start is None or candidate.duration_days < 1:
            return []
        days = span_days(start, candidate.duration_days)
        out: list[Assignment] = []
        for s in self._by_boat.get(candidate.boat_id, []):
            if s.assignment.id == candidate.id:
                continue
            if any(s.covers(d) for d in days):
                out.append(s.assignment)
        return out
