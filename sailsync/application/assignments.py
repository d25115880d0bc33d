"""
Assignment use cases - the write boundary of the boat board

Every use case:
1. Loads a ScheduleState snapshot through the store
2. Calls pure domain functions to produce the new records
3. Saves the changed records
4. Appends domain events to event_log (the dispatcher turns them into notifications)
5. Commits once
"""
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from sailsync.application.errors import NotFoundError, AssignmentConflictError, StoreWriteError
from sailsync.config import Settings, get_settings
from sailsync.domain.assignment import (
    Assignment,
    CREW_ROLES,
    DEFAULT_DURATION_DAYS,
    AssignmentStateError,
    new_assignment,
    update_assignment,
    confirm_role,
    force_reset_role,
    cancel_assignment,
    restore_assignment,
)
from sailsync.domain.dates import parse_calendar_date
from sailsync.domain.eligibility import Conflict, check_assignment_write
from sailsync.domain.events import (
    AssignmentEvents,
    EVENT_ASSIGNMENT_CREATED,
    EVENT_ASSIGNMENT_UPDATED,
    EVENT_ASSIGNMENT_DELETED,
    EVENT_ASSIGNMENT_ROLE_CHANGED,
    EVENT_ASSIGNMENT_ROLE_ANSWERED,
    EVENT_ASSIGNMENT_CANCELLED,
    EVENT_ASSIGNMENT_RESTORED,
)
from sailsync.domain.notification import UserNotification, NOTIFICATION_ASSIGNMENT_REQUEST, mark_read
from sailsync.domain.state import ScheduleState, COLLECTION_ASSIGNMENTS, COLLECTION_NOTIFICATIONS
from sailsync.infrastructure.eventlog.repository import EventLogRepository
from sailsync.infrastructure.store import SqlStateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveAssignmentResult:
    assignment: Assignment | None  # None when clearing the activity deleted it
    created: bool
    conflicts: list[Conflict] = field(default_factory=list)


def _get_assignment(state: ScheduleState, assignment_id: str) -> Assignment:
    assignment = state.assignment(assignment_id)
    if assignment is None:
        raise NotFoundError(f"Assignment {assignment_id} not found")
    return assignment


def _open_requests(state: ScheduleState, assignment: Assignment, role: str) -> list[UserNotification]:
    """Unread ASSIGNMENT_REQUESTs of whoever holds role, for this assignment and role."""
    user_id = assignment.person_in(role)
    if user_id is None:
        return []
    return [
        n for n in state.notifications_for(user_id)
        if n.type == NOTIFICATION_ASSIGNMENT_REQUEST
        and not n.read
        and n.data.get("assignment_id") == assignment.id
        and n.data.get("role") == role
    ]


class _AssignmentUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = SqlStateStore(db)
        self.event_repo = EventLogRepository(db)

    def _save(self, assignments: list[Assignment], removed: list[str] = ()) -> None:
        if not self.store.save(COLLECTION_ASSIGNMENTS, assignments, removed):
            raise StoreWriteError("Could not save assignments")


class SaveAssignmentUseCase(_AssignmentUseCase):
    """
    Use case: create or edit the assignment shown in a boat/day cell

    Process:
    1. Resolve the target: explicit assignment_id, otherwise the effective
       assignment of boat_id on day, otherwise a new one starting on day
    2. Apply the sparse changes (a person change resets only that role)
    3. Run the conflict guard; log conflicts, or reject them if enforced
    4. Save and append assignment_created/updated + assignment_role_changed

    Clearing the activity of an existing assignment deletes it.
    """

    def __init__(self, db: Session, settings: Settings | None = None):
        super().__init__(db)
        self.settings = settings or get_settings()

    def execute(
        self,
        boat_id: str,
        day: str,
        changes: dict[str, Any],
        assignment_id: str | None = None,
        actor_user_id: str | None = None,
    ) -> SaveAssignmentResult:
        state = self.store.load()
        previous = self._resolve(state, boat_id, day, assignment_id)

        if previous is not None and "activity_id" in changes and not changes["activity_id"]:
            DeleteAssignmentUseCase(self.db).execute(previous.id, actor_user_id=actor_user_id)
            return SaveAssignmentResult(assignment=None, created=False)

        if previous is None:
            if state.boat(boat_id) is None:
                raise NotFoundError(f"Boat {boat_id} not found")
            candidate = new_assignment(
                day=day,
                boat_id=boat_id,
                activity_id=changes.get("activity_id"),
                duration_days=(
                    DEFAULT_DURATION_DAYS if changes.get("duration_days") is None
                    else int(changes["duration_days"])
                ),
                instructor_id=changes.get("instructor_id") or None,
                helper_id=changes.get("helper_id") or None,
                notes=changes.get("notes") or "",
                assignment_id=assignment_id,
            )
        else:
            candidate = update_assignment(previous, **changes)

        for uid in candidate.crew_ids():
            if state.user(uid) is None:
                raise NotFoundError(f"User {uid} not found")

        conflicts = check_assignment_write(
            candidate, state.assignments, state.availability_lookup()
        )
        if conflicts:
            if self.settings.ENFORCE_CREW_CONFLICTS:
                raise AssignmentConflictError(conflicts)
            for c in conflicts:
                logger.warning(
                    "Assignment %s saved with conflict %s: %s", candidate.id, c.code, c.detail
                )

        self._save([candidate])

        created = previous is None
        self.event_repo.append_event(
            event_type=EVENT_ASSIGNMENT_CREATED if created else EVENT_ASSIGNMENT_UPDATED,
            payload=AssignmentEvents.saved(candidate, created),
            actor_user_id=actor_user_id,
        )
        for role in CREW_ROLES:
            person = candidate.person_in(role)
            if person and (created or previous.person_in(role) != person):
                self.event_repo.append_event(
                    event_type=EVENT_ASSIGNMENT_ROLE_CHANGED,
                    payload=AssignmentEvents.role_changed(candidate, role),
                    actor_user_id=actor_user_id,
                )

        self.db.commit()
        return SaveAssignmentResult(assignment=candidate, created=created, conflicts=conflicts)

    def _resolve(
        self,
        state: ScheduleState,
        boat_id: str,
        day: str,
        assignment_id: str | None,
    ) -> Assignment | None:
        if assignment_id:
            existing = state.assignment(assignment_id)
            if existing is not None:
                return existing
            return None
        d = parse_calendar_date(day)
        if d is None:
            raise AssignmentStateError(f"Invalid assignment date: {day!r}")
        return state.assignment_index().effective_assignment(boat_id, d)


class ConfirmRoleUseCase(_AssignmentUseCase):
    """
    Use case: crew member accepts or rejects their role (PENDING only)

    The pending ASSIGNMENT_REQUEST for that role is marked read.
    """

    def execute(
        self,
        assignment_id: str,
        role: str,
        accepted: bool,
        actor_user_id: str | None = None,
    ) -> Assignment:
        state = self.store.load()
        assignment = _get_assignment(state, assignment_id)
        updated = confirm_role(assignment, role, accepted)
        self._save([updated])
        requests = [mark_read(n) for n in _open_requests(state, updated, role)]
        if requests and not self.store.save(COLLECTION_NOTIFICATIONS, requests):
            raise StoreWriteError("Could not save notifications")
        self.event_repo.append_event(
            event_type=EVENT_ASSIGNMENT_ROLE_ANSWERED,
            payload=AssignmentEvents.role_answered(updated, role),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return updated


class RespondToAssignmentRequestUseCase(_AssignmentUseCase):
    """
    Use case: answer an ASSIGNMENT_REQUEST notification

    Confirms/rejects the role named in the notification and marks it read.
    """

    def execute(self, notification_id: str, user_id: str, accepted: bool) -> Assignment:
        state = self.store.load()
        notification = state.notification(notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundError(f"Notification {notification_id} not found")
        if notification.type != NOTIFICATION_ASSIGNMENT_REQUEST:
            raise AssignmentStateError("Notification is not an assignment request")

        assignment = _get_assignment(state, notification.data.get("assignment_id"))
        role = notification.data.get("role") or assignment.role_of(user_id)
        if role is None or assignment.person_in(role) != user_id:
            raise AssignmentStateError("You no longer hold this role")

        updated = confirm_role(assignment, role, accepted)
        self._save([updated])
        read = {n.id: mark_read(n) for n in _open_requests(state, updated, role)}
        read[notification.id] = mark_read(notification)
        if not self.store.save(COLLECTION_NOTIFICATIONS, list(read.values())):
            raise StoreWriteError("Could not save notification")
        self.event_repo.append_event(
            event_type=EVENT_ASSIGNMENT_ROLE_ANSWERED,
            payload=AssignmentEvents.role_answered(updated, role),
            actor_user_id=user_id,
        )
        self.db.commit()
        return updated


class ResetRoleUseCase(_AssignmentUseCase):
    """Use case: admin puts an answered role back to PENDING"""

    def execute(self, assignment_id: str, role: str, actor_user_id: str | None = None) -> Assignment:
        state = self.store.load()
        updated = force_reset_role(_get_assignment(state, assignment_id), role)
        self._save([updated])
        self.event_repo.append_event(
            event_type=EVENT_ASSIGNMENT_ROLE_CHANGED,
            payload=AssignmentEvents.role_changed(updated, role),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return updated


class CancelAssignmentUseCase(_AssignmentUseCase):
    """Use case: soft delete (status CANCELLED); crew confirmations are kept"""

    def execute(self, assignment_id: str, actor_user_id: str | None = None) -> Assignment:
        state = self.store.load()
        assignment = _get_assignment(state, assignment_id)
        if assignment.is_cancelled:
            return assignment
        updated = cancel_assignment(assignment)
        self._save([updated])
        self.event_repo.append_event(
            event_type=EVENT_ASSIGNMENT_CANCELLED,
            payload=AssignmentEvents.cancelled(updated),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return updated


class RestoreAssignmentUseCase(_AssignmentUseCase):
    """Use case: undo a cancellation"""

    def execute(self, assignment_id: str, actor_user_id: str | None = None) -> Assignment:
        state = self.store.load()
        assignment = _get_assignment(state, assignment_id)
        if not assignment.is_cancelled:
            return assignment
        updated = restore_assignment(assignment)
        self._save([updated])
        self.event_repo.append_event(
            event_type=EVENT_ASSIGNMENT_RESTORED,
            payload=AssignmentEvents.restored(updated),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return updated


class CancelDayUseCase(_AssignmentUseCase):
    """
    Use case: cancel the whole day (bad weather)

    Cancels the effective assignment of every boat on `day`, including
    multi-day assignments that merely cover it.
    """

    def execute(self, day: str, actor_user_id: str | None = None) -> list[Assignment]:
        d = parse_calendar_date(day)
        if d is None:
            raise AssignmentStateError(f"Invalid date: {day!r}")
        state = self.store.load()
        on_day = state.assignment_index().assignments_on(d)
        cancelled = [cancel_assignment(a) for a in on_day.values() if not a.is_cancelled]
        if not cancelled:
            return []
        self._save(cancelled)
        for a in cancelled:
            self.event_repo.append_event(
                event_type=EVENT_ASSIGNMENT_CANCELLED,
                payload=AssignmentEvents.cancelled(a),
                actor_user_id=actor_user_id,
            )
        self.db.commit()
        logger.info("Cancelled %d assignments on %s", len(cancelled), day)
        return cancelled


class DeleteAssignmentUseCase(_AssignmentUseCase):
    """Use case: hard delete"""

    def execute(self, assignment_id: str, actor_user_id: str | None = None) -> None:
        state = self.store.load()
        assignment = _get_assignment(state, assignment_id)
        self._save([], removed=[assignment.id])
        self.event_repo.append_event(
            event_type=EVENT_ASSIGNMENT_DELETED,
            payload=AssignmentEvents.deleted(assignment),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
