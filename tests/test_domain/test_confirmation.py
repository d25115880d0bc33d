"""Tests for the assignment lifecycle and the per-role confirmation state machine"""
import pytest

from sailsync.domain.assignment import (
    Assignment,
    AssignmentStateError,
    ASSIGNMENT_CONFIRMED,
    ASSIGNMENT_CANCELLED,
    CONFIRMATION_PENDING,
    CONFIRMATION_CONFIRMED,
    CONFIRMATION_REJECTED,
    new_assignment,
    reassign_role,
    update_assignment,
    confirm_role,
    force_reset_role,
    cancel_assignment,
    restore_assignment,
)
from sailsync.domain.user import ROLE_INSTRUCTOR, ROLE_HELPER


@pytest.fixture
def crewed():
    return Assignment(
        id="x", date="2024-06-01", boat_id="b1", duration_days=2,
        instructor_id="u1", helper_id="h1",
        instructor_status=CONFIRMATION_CONFIRMED, helper_status=CONFIRMATION_CONFIRMED,
    )


class TestNewAssignment:
    def test_defaults(self):
        a = new_assignment("2024-06-01", "b1", activity_id="a1", assignment_id="x")
        assert a.duration_days == 2
        assert a.status == ASSIGNMENT_CONFIRMED
        assert a.instructor_status == CONFIRMATION_PENDING
        assert a.helper_status == CONFIRMATION_PENDING
        assert a.id == "x"

    def test_generates_id(self):
        assert new_assignment("2024-06-01", "b1").id

    def test_rejects_bad_date(self):
        with pytest.raises(AssignmentStateError):
            new_assignment("2024-02-30", "b1")

    def test_rejects_zero_duration(self):
        with pytest.raises(AssignmentStateError):
            new_assignment("2024-06-01", "b1", duration_days=0)


class TestReassign:
    def test_reassign_instructor_resets_only_instructor(self, crewed):
        a = reassign_role(crewed, ROLE_INSTRUCTOR, "u2")
        assert a.instructor_id == "u2"
        assert a.instructor_status == CONFIRMATION_PENDING
        assert a.helper_status == CONFIRMATION_CONFIRMED

    def test_reassign_helper_resets_only_helper(self, crewed):
        a = reassign_role(crewed, ROLE_HELPER, "h2")
        assert a.helper_status == CONFIRMATION_PENDING
        assert a.instructor_status == CONFIRMATION_CONFIRMED

    def test_clearing_role(self, crewed):
        a = reassign_role(crewed, ROLE_HELPER, "")
        assert a.helper_id is None

    def test_unknown_role(self, crewed):
        with pytest.raises(AssignmentStateError):
            reassign_role(crewed, "SKIPPER", "u2")

    def test_cancelled_refuses_edit(self, crewed):
        with pytest.raises(AssignmentStateError):
            reassign_role(cancel_assignment(crewed), ROLE_INSTRUCTOR, "u2")


class TestUpdateAssignment:
    def test_same_person_keeps_confirmation(self, crewed):
        a = update_assignment(crewed, instructor_id="u1", notes="vento forte")
        assert a.instructor_status == CONFIRMATION_CONFIRMED
        assert a.notes == "vento forte"

    def test_person_change_resets_that_role(self, crewed):
        a = update_assignment(crewed, helper_id="h2", duration_days=3)
        assert a.helper_status == CONFIRMATION_PENDING
        assert a.instructor_status == CONFIRMATION_CONFIRMED
        assert a.duration_days == 3

    def test_date_change(self, crewed):
        assert update_assignment(crewed, date="2024-06-08").date == "2024-06-08"

    def test_rejects_unknown_field(self, crewed):
        with pytest.raises(AssignmentStateError):
            update_assignment(crewed, status=ASSIGNMENT_CANCELLED)

    def test_rejects_bad_values(self, crewed):
        with pytest.raises(AssignmentStateError):
            update_assignment(crewed, date="yesterday")
        with pytest.raises(AssignmentStateError):
            update_assignment(crewed, duration_days=0)

    def test_cancelled_refuses_edit(self, crewed):
        with pytest.raises(AssignmentStateError):
            update_assignment(cancel_assignment(crewed), notes="x")


class TestConfirmRole:
    def test_accept(self):
        a = Assignment(id="x", date="2024-06-01", boat_id="b1", instructor_id="u1", helper_id="h1")
        confirmed = confirm_role(a, ROLE_INSTRUCTOR, True)
        assert confirmed.instructor_status == CONFIRMATION_CONFIRMED
        assert confirmed.helper_status == CONFIRMATION_PENDING
        assert confirmed.status == ASSIGNMENT_CONFIRMED

    def test_reject(self):
        a = Assignment(id="x", date="2024-06-01", boat_id="b1", helper_id="h1")
        assert confirm_role(a, ROLE_HELPER, False).helper_status == CONFIRMATION_REJECTED

    def test_only_pending_transitions(self, crewed):
        with pytest.raises(AssignmentStateError):
            confirm_role(crewed, ROLE_INSTRUCTOR, False)

    def test_empty_role_cannot_confirm(self):
        a = Assignment(id="x", date="2024-06-01", boat_id="b1", instructor_id="u1")
        with pytest.raises(AssignmentStateError):
            confirm_role(a, ROLE_HELPER, True)

    def test_force_reset(self, crewed):
        a = force_reset_role(crewed, ROLE_HELPER)
        assert a.helper_status == CONFIRMATION_PENDING
        assert confirm_role(a, ROLE_HELPER, False).helper_status == CONFIRMATION_REJECTED


class TestCancelRestore:
    def test_cancel_then_restore_keeps_confirmations(self, crewed):
        cancelled = cancel_assignment(crewed)
        assert cancelled.status == ASSIGNMENT_CANCELLED
        restored = restore_assignment(cancelled)
        assert restored == crewed
