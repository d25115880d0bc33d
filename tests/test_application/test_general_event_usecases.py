"""
Tests for general event use cases
"""
import pytest

from sailsync.application.errors import NotFoundError
from sailsync.application.general_events import (
    CreateGeneralEventUseCase,
    UpdateGeneralEventUseCase,
    DeleteGeneralEventUseCase,
    RespondToEventUseCase,
)
from sailsync.application.notification_dispatcher import NotificationDispatcher
from sailsync.domain.assignment import CONFIRMATION_PENDING, CONFIRMATION_CONFIRMED, CONFIRMATION_REJECTED
from sailsync.domain.general_event import EventResponseError
from sailsync.domain.state import COLLECTION_USERS
from sailsync.domain.user import User, ROLE_HELPER
from sailsync.infrastructure.store import SqlStateStore


def _create(db, event_id="e1"):
    return CreateGeneralEventUseCase(db).execute(
        day="2024-06-15", activity_id="ev1", start_time="20:00", end_time="23:00", event_id=event_id,
    )


def test_create_invites_current_users(seeded_db, crew):
    event = _create(seeded_db)
    assert {r.user_id for r in event.responses} == {u.id for u in crew}
    assert all(r.status == CONFIRMATION_PENDING for r in event.responses)

    stored = SqlStateStore(seeded_db).load().general_event("e1")
    assert stored == event


def test_membership_is_frozen_at_creation(seeded_db):
    _create(seeded_db)
    SqlStateStore(seeded_db).save(COLLECTION_USERS, [User(id="h3", name="Fabio", role=ROLE_HELPER)])
    seeded_db.commit()
    with pytest.raises(EventResponseError):
        RespondToEventUseCase(seeded_db).execute("e1", "h3", True)


def test_unknown_activity(seeded_db):
    with pytest.raises(NotFoundError):
        CreateGeneralEventUseCase(seeded_db).execute(day="2024-06-15", activity_id="nope")


def test_respond_and_change_mind(seeded_db):
    _create(seeded_db)
    RespondToEventUseCase(seeded_db).execute("e1", "h1", True)
    event = RespondToEventUseCase(seeded_db).execute("e1", "h1", False)
    assert event.response_of("h1").status == CONFIRMATION_REJECTED
    stored = SqlStateStore(seeded_db).load().general_event("e1")
    assert stored.response_of("h1").status == CONFIRMATION_REJECTED
    assert stored.count(CONFIRMATION_CONFIRMED) == 0


def test_respond_marks_invite_read(seeded_db):
    _create(seeded_db)
    NotificationDispatcher(seeded_db).run()

    RespondToEventUseCase(seeded_db).execute("e1", "u1", True)

    state = SqlStateStore(seeded_db).load()
    assert all(n.read for n in state.notifications_for("u1"))
    assert not any(n.read for n in state.notifications_for("u2"))


def test_update_keeps_responses(seeded_db):
    _create(seeded_db)
    RespondToEventUseCase(seeded_db).execute("e1", "u2", True)
    updated = UpdateGeneralEventUseCase(seeded_db).execute("e1", date="2024-06-16", notes="al circolo")
    assert updated.date == "2024-06-16"
    assert updated.response_of("u2").status == CONFIRMATION_CONFIRMED


def test_delete(seeded_db):
    _create(seeded_db)
    DeleteGeneralEventUseCase(seeded_db).execute("e1")
    assert SqlStateStore(seeded_db).load().general_events == ()
    with pytest.raises(NotFoundError):
        DeleteGeneralEventUseCase(seeded_db).execute("e1")
