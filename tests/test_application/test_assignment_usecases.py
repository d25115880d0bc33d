"""
Tests for the assignment use cases against an in-memory database.

Covers:
  - Cell upsert: creation defaults, editing the effective assignment
  - Person change resets only that role and emits assignment_role_changed
  - Advisory vs enforced crew conflicts
  - Confirm / respond through notification / reset
  - Cancel, restore, cancel-day, delete (and delete by clearing the activity)
"""
from datetime import datetime

import pytest

from sailsync.application.assignments import (
    SaveAssignmentUseCase,
    ConfirmRoleUseCase,
    RespondToAssignmentRequestUseCase,
    ResetRoleUseCase,
    CancelAssignmentUseCase,
    RestoreAssignmentUseCase,
    CancelDayUseCase,
    DeleteAssignmentUseCase,
)
from sailsync.application.errors import NotFoundError, AssignmentConflictError
from sailsync.application.notification_dispatcher import NotificationDispatcher
from sailsync.config import Settings
from sailsync.domain.assignment import (
    AssignmentStateError,
    ASSIGNMENT_CANCELLED,
    ASSIGNMENT_CONFIRMED,
    CONFIRMATION_PENDING,
    CONFIRMATION_CONFIRMED,
    CONFIRMATION_REJECTED,
)
from sailsync.domain.availability import Availability, AVAILABILITY_AVAILABLE
from sailsync.domain.eligibility import CONFLICT_USER_BUSY
from sailsync.domain.events import (
    EVENT_ASSIGNMENT_CREATED,
    EVENT_ASSIGNMENT_UPDATED,
    EVENT_ASSIGNMENT_ROLE_CHANGED,
    EVENT_ASSIGNMENT_CANCELLED,
    EVENT_ASSIGNMENT_DELETED,
)
from sailsync.domain.notification import (
    NOTIFICATION_ASSIGNMENT_REQUEST,
    NOTIFICATION_INFO,
    new_notification,
)
from sailsync.domain.state import COLLECTION_AVAILABILITIES, COLLECTION_NOTIFICATIONS
from sailsync.domain.user import ROLE_INSTRUCTOR, ROLE_HELPER
from sailsync.infrastructure.db.models import EventLog
from sailsync.infrastructure.store import SqlStateStore


def _events(db, event_type=None):
    q = db.query(EventLog).order_by(EventLog.id)
    if event_type:
        q = q.filter(EventLog.event_type == event_type)
    return q.all()


def _make_available(db, *pairs):
    SqlStateStore(db).save(
        COLLECTION_AVAILABILITIES,
        [Availability(user_id=u, date=d, status=AVAILABILITY_AVAILABLE) for u, d in pairs],
    )
    db.commit()


def _create(db, boat="b1", day="2024-06-01", assignment_id="x", **changes):
    changes.setdefault("activity_id", "a1")
    return SaveAssignmentUseCase(db).execute(
        boat_id=boat, day=day, changes=changes, assignment_id=assignment_id,
    ).assignment


class TestSaveAssignment:
    def test_new_cell_defaults(self, seeded_db):
        result = SaveAssignmentUseCase(seeded_db).execute(
            boat_id="b1", day="2024-06-01", changes={"activity_id": "a1"}, assignment_id="x",
        )
        assert result.created is True
        a = result.assignment
        assert (a.duration_days, a.status) == (2, ASSIGNMENT_CONFIRMED)
        assert (a.instructor_status, a.helper_status) == (CONFIRMATION_PENDING, CONFIRMATION_PENDING)
        stored = SqlStateStore(seeded_db).load().assignment("x")
        assert stored == a
        assert [e.event_type for e in _events(seeded_db)] == [EVENT_ASSIGNMENT_CREATED]

    def test_zero_duration_is_rejected_not_defaulted(self, seeded_db):
        with pytest.raises(AssignmentStateError):
            _create(seeded_db, duration_days=0)
        assert SqlStateStore(seeded_db).load().assignments == ()

    def test_second_day_of_span_edits_same_assignment(self, seeded_db):
        _create(seeded_db)
        result = SaveAssignmentUseCase(seeded_db).execute(
            boat_id="b1", day="2024-06-02", changes={"notes": "rientro alle 18"},
        )
        assert result.created is False
        assert result.assignment.id == "x"
        assert len(SqlStateStore(seeded_db).load().assignments) == 1

    def test_person_change_emits_role_changed(self, seeded_db):
        _create(seeded_db, instructor_id="u1")
        ConfirmRoleUseCase(seeded_db).execute("x", ROLE_INSTRUCTOR, True)

        result = SaveAssignmentUseCase(seeded_db).execute(
            boat_id="b1", day="2024-06-01", changes={"helper_id": "h1"}, assignment_id="x",
        )
        a = result.assignment
        assert a.instructor_status == CONFIRMATION_CONFIRMED
        assert a.helper_status == CONFIRMATION_PENDING

        role_events = _events(seeded_db, EVENT_ASSIGNMENT_ROLE_CHANGED)
        assert [(e.payload_json["role"], e.payload_json["user_id"]) for e in role_events] == [
            (ROLE_INSTRUCTOR, "u1"),
            (ROLE_HELPER, "h1"),
        ]
        assert _events(seeded_db)[-2].event_type == EVENT_ASSIGNMENT_UPDATED

    def test_unknown_boat_or_user(self, seeded_db):
        with pytest.raises(NotFoundError):
            _create(seeded_db, boat="b9")
        with pytest.raises(NotFoundError):
            _create(seeded_db, instructor_id="ghost")

    def test_conflicts_are_advisory_by_default(self, seeded_db):
        _create(seeded_db, boat="b1", assignment_id="x", instructor_id="u1")
        result = SaveAssignmentUseCase(seeded_db, settings=Settings(ENFORCE_CREW_CONFLICTS=False)).execute(
            boat_id="b2", day="2024-06-02", changes={"activity_id": "a2", "instructor_id": "u1"},
            assignment_id="y",
        )
        assert result.assignment is not None
        assert CONFLICT_USER_BUSY in {c.code for c in result.conflicts}
        assert SqlStateStore(seeded_db).load().assignment("y") is not None

    def test_enforced_conflicts_reject(self, seeded_db):
        _make_available(seeded_db, ("u1", "2024-06-02"), ("u1", "2024-06-03"))
        _create(seeded_db, boat="b1", assignment_id="x", instructor_id="u1")
        use_case = SaveAssignmentUseCase(seeded_db, settings=Settings(ENFORCE_CREW_CONFLICTS=True))
        with pytest.raises(AssignmentConflictError) as exc_info:
            use_case.execute(
                boat_id="b2", day="2024-06-02", changes={"activity_id": "a2", "instructor_id": "u1"},
                assignment_id="y",
            )
        assert [c.code for c in exc_info.value.conflicts] == [CONFLICT_USER_BUSY]
        assert SqlStateStore(seeded_db).load().assignment("y") is None

    def test_cancelled_cell_refuses_edit(self, seeded_db):
        _create(seeded_db)
        CancelAssignmentUseCase(seeded_db).execute("x")
        with pytest.raises(AssignmentStateError):
            SaveAssignmentUseCase(seeded_db).execute(
                boat_id="b1", day="2024-06-01", changes={"notes": "x"},
            )

    def test_clearing_activity_deletes(self, seeded_db):
        _create(seeded_db)
        result = SaveAssignmentUseCase(seeded_db).execute(
            boat_id="b1", day="2024-06-01", changes={"activity_id": None},
        )
        assert result.assignment is None
        assert SqlStateStore(seeded_db).load().assignments == ()
        assert _events(seeded_db)[-1].event_type == EVENT_ASSIGNMENT_DELETED


class TestConfirmation:
    def test_confirm_and_double_answer(self, seeded_db):
        _create(seeded_db, instructor_id="u1")
        a = ConfirmRoleUseCase(seeded_db).execute("x", ROLE_INSTRUCTOR, False)
        assert a.instructor_status == CONFIRMATION_REJECTED
        with pytest.raises(AssignmentStateError):
            ConfirmRoleUseCase(seeded_db).execute("x", ROLE_INSTRUCTOR, True)

    def test_reset_then_confirm(self, seeded_db):
        _create(seeded_db, helper_id="h1")
        ConfirmRoleUseCase(seeded_db).execute("x", ROLE_HELPER, False)
        ResetRoleUseCase(seeded_db).execute("x", ROLE_HELPER)
        assert ConfirmRoleUseCase(seeded_db).execute("x", ROLE_HELPER, True).helper_status == CONFIRMATION_CONFIRMED

    def test_missing_assignment(self, seeded_db):
        with pytest.raises(NotFoundError):
            ConfirmRoleUseCase(seeded_db).execute("nope", ROLE_HELPER, True)

    def test_confirm_marks_pending_request_read(self, seeded_db):
        _create(seeded_db, instructor_id="u1", helper_id="h1")
        NotificationDispatcher(seeded_db).run()
        ConfirmRoleUseCase(seeded_db).execute("x", ROLE_INSTRUCTOR, True)

        requests = {
            n.user_id: n.read for n in SqlStateStore(seeded_db).load().notifications
            if n.type == NOTIFICATION_ASSIGNMENT_REQUEST
        }
        assert requests == {"u1": True, "h1": False}

    def test_respond_through_notification(self, seeded_db):
        _create(seeded_db, helper_id="h1")
        request = new_notification(
            "h1", NOTIFICATION_ASSIGNMENT_REQUEST, "Nuova missione", datetime(2024, 5, 20),
            data={"assignment_id": "x", "role": ROLE_HELPER}, notification_id="n1",
        )
        SqlStateStore(seeded_db).save(COLLECTION_NOTIFICATIONS, [request])
        seeded_db.commit()

        a = RespondToAssignmentRequestUseCase(seeded_db).execute("n1", "h1", True)
        assert a.helper_status == CONFIRMATION_CONFIRMED
        assert SqlStateStore(seeded_db).load().notification("n1").read is True

    def test_respond_wrong_user_or_type(self, seeded_db):
        _create(seeded_db, helper_id="h1")
        info = new_notification("h1", NOTIFICATION_INFO, "ciao", datetime(2024, 5, 20), notification_id="n2")
        SqlStateStore(seeded_db).save(COLLECTION_NOTIFICATIONS, [info])
        seeded_db.commit()
        with pytest.raises(NotFoundError):
            RespondToAssignmentRequestUseCase(seeded_db).execute("n2", "u1", True)
        with pytest.raises(AssignmentStateError):
            RespondToAssignmentRequestUseCase(seeded_db).execute("n2", "h1", True)


class TestCancelRestore:
    def test_cancel_restore_keeps_confirmations(self, seeded_db):
        _create(seeded_db, instructor_id="u1")
        ConfirmRoleUseCase(seeded_db).execute("x", ROLE_INSTRUCTOR, True)
        cancelled = CancelAssignmentUseCase(seeded_db).execute("x")
        assert cancelled.status == ASSIGNMENT_CANCELLED
        restored = RestoreAssignmentUseCase(seeded_db).execute("x")
        assert restored.status == ASSIGNMENT_CONFIRMED
        assert restored.instructor_status == CONFIRMATION_CONFIRMED

    def test_cancel_day_covers_multi_day(self, seeded_db):
        _create(seeded_db, boat="b1", day="2024-06-01", assignment_id="x")
        _create(seeded_db, boat="b2", day="2024-06-02", assignment_id="y")
        cancelled = CancelDayUseCase(seeded_db).execute("2024-06-02")
        assert sorted(a.id for a in cancelled) == ["x", "y"]
        assert len(_events(seeded_db, EVENT_ASSIGNMENT_CANCELLED)) == 2
        assert CancelDayUseCase(seeded_db).execute("2024-06-02") == []

    def test_delete(self, seeded_db):
        _create(seeded_db)
        DeleteAssignmentUseCase(seeded_db).execute("x")
        assert SqlStateStore(seeded_db).load().assignments == ()
        with pytest.raises(NotFoundError):
            DeleteAssignmentUseCase(seeded_db).execute("x")
