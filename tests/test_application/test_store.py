"""
Tests for SqlStateStore (load/save against SQLite)
"""
from dataclasses import replace
from datetime import datetime

from sailsync.domain.assignment import Assignment
from sailsync.domain.availability import Availability, AVAILABILITY_AVAILABLE, AVAILABILITY_UNAVAILABLE
from sailsync.domain.general_event import GeneralEvent, EventResponse
from sailsync.domain.notification import NOTIFICATION_INFO, new_notification
from sailsync.domain.state import (
    COLLECTION_ASSIGNMENTS,
    COLLECTION_AVAILABILITIES,
    COLLECTION_GENERAL_EVENTS,
    COLLECTION_NOTIFICATIONS,
)
from sailsync.infrastructure.store import SqlStateStore


def test_seeded_snapshot_is_ordered(seeded_db):
    state = SqlStateStore(seeded_db).load()
    assert [u.name for u in state.users] == ["Anna", "Bruno", "Carla", "Dario", "Elena"]
    assert [b.id for b in state.boats] == ["b1", "b2"]
    assert state.activity("a1").default_duration_days == 2


def test_assignments_upsert_and_remove(seeded_db):
    store = SqlStateStore(seeded_db)
    a = Assignment(id="x", date="2024-06-01", boat_id="b1", activity_id="a1", duration_days=2)
    assert store.save(COLLECTION_ASSIGNMENTS, [a])
    assert store.save(COLLECTION_ASSIGNMENTS, [replace(a, notes="vento forte")])
    seeded_db.commit()
    assert store.load().assignment("x").notes == "vento forte"

    assert store.save(COLLECTION_ASSIGNMENTS, [], removed=["x", "missing"])
    seeded_db.commit()
    assert store.load().assignments == ()


def test_malformed_rows_still_load(seeded_db):
    store = SqlStateStore(seeded_db)
    bad = Assignment(id="bad", date="01/06/2024", boat_id="b1", duration_days=0)
    assert store.save(COLLECTION_ASSIGNMENTS, [bad])
    seeded_db.commit()
    index = store.load().assignment_index()
    assert {i.assignment_id for i in index.issues} == {"bad"}


def test_availability_upsert_by_user_and_day(seeded_db):
    store = SqlStateStore(seeded_db)
    store.save(COLLECTION_AVAILABILITIES, [Availability("u1", "2024-06-05", AVAILABILITY_AVAILABLE)])
    store.save(COLLECTION_AVAILABILITIES, [Availability("u1", "2024-06-05", AVAILABILITY_UNAVAILABLE)])
    seeded_db.commit()
    assert store.load().availabilities == (Availability("u1", "2024-06-05", AVAILABILITY_UNAVAILABLE),)

    store.save(COLLECTION_AVAILABILITIES, [], removed=[("u1", "2024-06-05")])
    seeded_db.commit()
    assert store.load().availabilities == ()


def test_general_event_responses_round_trip(seeded_db):
    store = SqlStateStore(seeded_db)
    event = GeneralEvent(
        id="e1", date="2024-06-15", activity_id="ev1",
        responses=(EventResponse("h2"), EventResponse("u1"), EventResponse("m1")),
    )
    store.save(COLLECTION_GENERAL_EVENTS, [event])
    seeded_db.commit()

    trimmed = GeneralEvent(
        id="e1", date="2024-06-15", activity_id="ev1",
        responses=(EventResponse("h2", "CONFIRMED"), EventResponse("m1")),
    )
    store.save(COLLECTION_GENERAL_EVENTS, [trimmed])
    seeded_db.commit()
    assert store.load().general_event("e1") == trimmed


def test_notification_data_round_trip(seeded_db):
    store = SqlStateStore(seeded_db)
    n = new_notification(
        "h1", NOTIFICATION_INFO, "ciao", datetime(2024, 6, 1, 8),
        data={"date": "2024-06-01", "subject_user_id": "u1"}, notification_id="n1",
    )
    store.save(COLLECTION_NOTIFICATIONS, [n])
    seeded_db.commit()
    assert store.load().notification("n1") == n


def test_failed_write_returns_false(seeded_db):
    store = SqlStateStore(seeded_db)
    broken = Assignment(id="x", date=None, boat_id="b1")
    assert store.save(COLLECTION_ASSIGNMENTS, [broken]) is False
    assert store.load().assignments == ()
