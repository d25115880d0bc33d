"""
Tests for notification fan-out.

Covers:
  - ASSIGNMENT_REQUEST goes only to the person now in the role
  - EVENT_INVITE per invitee with the dd/MM message
  - Birthday INFO to everyone, dedup per scope ("day" / "message")
  - Maintenance REMINDER to admins only, inside the window
  - Missing availability REMINDER skips managers and users with records
  - Next month weekends REMINDER only counts Saturday and Sunday entries
"""
from datetime import date, datetime

import pytest

from sailsync.application.notification_fanout import (
    BIRTHDAY_SCOPE_DAY,
    BIRTHDAY_SCOPE_MESSAGE,
    birthday_message,
    on_assignment_role_changed,
    on_event_created,
    on_birthday,
    on_maintenance_expiring_soon,
    on_availability_missing,
    on_next_month_weekends_missing,
    mark_read,
)
from sailsync.domain.assignment import Assignment
from sailsync.domain.availability import Availability, AVAILABILITY_UNAVAILABLE
from sailsync.domain.general_event import create_general_event
from sailsync.domain.maintenance import MaintenanceRecord, MAINTENANCE_DONE
from sailsync.domain.notification import (
    NOTIFICATION_ASSIGNMENT_REQUEST,
    NOTIFICATION_EVENT_INVITE,
    NOTIFICATION_INFO,
    NOTIFICATION_REMINDER,
    new_notification,
)
from sailsync.domain.user import User, ROLE_INSTRUCTOR, ROLE_HELPER

NOW = datetime(2024, 6, 1, 7, 0)


class TestAssignmentRequest:
    def test_only_role_holder(self, crew):
        a = Assignment(id="x", date="2024-06-01", boat_id="b1", duration_days=2,
                       instructor_id="u1", helper_id="h1")
        out = on_assignment_role_changed(a, ROLE_INSTRUCTOR, crew, NOW,
                                         boat_name="Aurora", activity_name="Corso base")
        assert len(out) == 1
        n = out[0]
        assert n.user_id == "u1"
        assert n.type == NOTIFICATION_ASSIGNMENT_REQUEST
        assert n.data == {"assignment_id": "x", "role": ROLE_INSTRUCTOR, "date": "2024-06-01"}
        assert "Aurora" in n.message and "01/06" in n.message and "Corso base" in n.message
        assert n.read is False
        assert n.created_at == NOW

    def test_empty_role(self, crew):
        a = Assignment(id="x", date="2024-06-01", boat_id="b1", instructor_id="u1")
        assert on_assignment_role_changed(a, ROLE_HELPER, crew, NOW) == []

    def test_unknown_user(self, crew):
        a = Assignment(id="x", date="2024-06-01", boat_id="b1", helper_id="ghost")
        assert on_assignment_role_changed(a, ROLE_HELPER, crew, NOW) == []


class TestEventInvite:
    def test_one_per_invitee(self, crew):
        event = create_general_event("2024-06-15", "ev1", crew, event_id="e1")
        out = on_event_created(event, crew, NOW, activity_name="Cena sociale")
        assert [n.user_id for n in out] == [u.id for u in crew]
        assert {n.message for n in out} == {"Invito: Cena sociale il 15/06"}
        assert all(n.type == NOTIFICATION_EVENT_INVITE and n.data == {"event_id": "e1"} for n in out)


class TestBirthday:
    @pytest.fixture
    def users(self):
        return [
            User(id="u1", name="Anna", role=ROLE_INSTRUCTOR, birth_date="1990-06-01"),
            User(id="h1", name="Carla", role=ROLE_HELPER, birth_date="1995-12-24"),
            User(id="h2", name="Dario", role=ROLE_HELPER, birth_date="not a date"),
        ]

    def test_everyone_notified(self, users):
        out = on_birthday(users, [], date(2024, 6, 1), NOW)
        assert [n.user_id for n in out] == ["u1", "h1", "h2"]
        assert all(n.message == birthday_message("Anna") for n in out)
        assert all(n.type == NOTIFICATION_INFO for n in out)
        assert out[0].data == {"subject_user_id": "u1", "date": "2024-06-01"}

    def test_no_birthday(self, users):
        assert on_birthday(users, [], date(2024, 6, 2), NOW) == []

    def test_same_day_dedup(self, users):
        first = on_birthday(users, [], date(2024, 6, 1), NOW)
        assert on_birthday(users, first, date(2024, 6, 1), NOW) == []

    def test_day_scope_allows_next_year(self, users):
        last_year = on_birthday(users, [], date(2023, 6, 1), NOW)
        assert len(on_birthday(users, last_year, date(2024, 6, 1), NOW, scope=BIRTHDAY_SCOPE_DAY)) == 3

    def test_message_scope_blocks_forever(self, users):
        legacy = [new_notification("m1", NOTIFICATION_INFO, birthday_message("Anna"), NOW)]
        assert on_birthday(users, legacy, date(2024, 6, 1), NOW, scope=BIRTHDAY_SCOPE_MESSAGE) == []

    def test_unknown_scope(self, users):
        with pytest.raises(ValueError):
            on_birthday(users, [], date(2024, 6, 1), NOW, scope="year")


class TestMaintenanceExpiring:
    def _record(self, exp, **kw):
        return MaintenanceRecord(id="r1", boat_id="b1", description="Cambio olio",
                                 date="2024-01-01", expiration_date=exp, **kw)

    def test_admins_only(self, crew):
        out = on_maintenance_expiring_soon(self._record("2024-06-20"), crew, date(2024, 6, 1), NOW,
                                           boat_name="Aurora")
        assert [n.user_id for n in out] == ["m1"]
        assert out[0].type == NOTIFICATION_REMINDER
        assert out[0].data == {"record_id": "r1", "date": "2024-06-20"}
        assert "Cambio olio" in out[0].message and "Aurora" in out[0].message

    def test_outside_window_or_done(self, crew):
        today = date(2024, 6, 1)
        assert on_maintenance_expiring_soon(self._record("2024-08-01"), crew, today, NOW) == []
        assert on_maintenance_expiring_soon(self._record("2024-05-01"), crew, today, NOW) == []
        done = self._record("2024-06-10", status=MAINTENANCE_DONE)
        assert on_maintenance_expiring_soon(done, crew, today, NOW) == []


class TestAvailabilityMissing:
    def test_skips_managers_and_users_with_records(self, crew):
        availabilities = [Availability("u1", "2024-06-20", AVAILABILITY_UNAVAILABLE),
                          Availability("u2", "2024-05-31", AVAILABILITY_UNAVAILABLE)]
        out = on_availability_missing(crew, availabilities, date(2024, 6, 1), NOW)
        assert [n.user_id for n in out] == ["u2", "h1", "h2"]
        assert all(n.data == {"date": "2024-06-01"} for n in out)
        assert "giugno 2024" in out[0].message


class TestNextMonthWeekendsMissing:
    def test_only_weekend_entries_of_next_month_count(self, crew):
        availabilities = [Availability("u1", "2024-07-13", AVAILABILITY_UNAVAILABLE),
                          Availability("u2", "2024-07-10", AVAILABILITY_UNAVAILABLE),
                          Availability("h1", "2024-06-29", AVAILABILITY_UNAVAILABLE)]
        out = on_next_month_weekends_missing(crew, availabilities, date(2024, 6, 20), NOW)
        assert [n.user_id for n in out] == ["u2", "h1", "h2"]
        assert all(n.data == {"date": "2024-07-01", "scope": "weekends"} for n in out)
        assert "luglio 2024" in out[0].message

    def test_december_points_at_january(self, crew):
        out = on_next_month_weekends_missing(crew, [], date(2024, 12, 15), NOW)
        assert {n.data["date"] for n in out} == {"2025-01-01"}
        assert "gennaio 2025" in out[0].message


def test_mark_read_idempotent():
    n = new_notification("u1", NOTIFICATION_INFO, "ciao", NOW)
    once = mark_read(n)
    assert once.read is True
    assert mark_read(once) is once
    assert n.read is False
