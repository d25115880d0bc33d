"""
General event use cases (social/training events outside the boat board)
"""
from sqlalchemy.orm import Session

from sailsync.application.errors import NotFoundError, StoreWriteError
from sailsync.domain.events import (
    GeneralEventEvents,
    EVENT_GENERAL_EVENT_CREATED,
    EVENT_GENERAL_EVENT_ANSWERED,
)
from sailsync.domain.general_event import (
    GeneralEvent,
    create_general_event,
    update_general_event,
    respond_to_event,
)
from sailsync.domain.notification import NOTIFICATION_EVENT_INVITE, mark_read
from sailsync.domain.state import ScheduleState, COLLECTION_GENERAL_EVENTS, COLLECTION_NOTIFICATIONS
from sailsync.infrastructure.eventlog.repository import EventLogRepository
from sailsync.infrastructure.store import SqlStateStore


def _get_event(state: ScheduleState, event_id: str) -> GeneralEvent:
    event = state.general_event(event_id)
    if event is None:
        raise NotFoundError(f"Event {event_id} not found")
    return event


class _GeneralEventUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = SqlStateStore(db)
        self.event_repo = EventLogRepository(db)

    def _save(self, events: list[GeneralEvent], removed: list[str] = ()) -> None:
        if not self.store.save(COLLECTION_GENERAL_EVENTS, events, removed):
            raise StoreWriteError("Could not save general event")


class CreateGeneralEventUseCase(_GeneralEventUseCase):
    """
    Use case: create an event and invite every user known right now

    The invitations themselves are created by the notification dispatcher
    from the general_event_created event.
    """

    def execute(
        self,
        day: str,
        activity_id: str,
        start_time: str | None = None,
        end_time: str | None = None,
        notes: str | None = None,
        event_id: str | None = None,
        actor_user_id: str | None = None,
    ) -> GeneralEvent:
        state = self.store.load()
        if state.activity(activity_id) is None:
            raise NotFoundError(f"Activity {activity_id} not found")

        event = create_general_event(
            day=day,
            activity_id=activity_id,
            users=state.users,
            start_time=start_time,
            end_time=end_time,
            notes=notes,
            event_id=event_id,
        )
        self._save([event])
        self.event_repo.append_event(
            event_type=EVENT_GENERAL_EVENT_CREATED,
            payload=GeneralEventEvents.created(event),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return event


class UpdateGeneralEventUseCase(_GeneralEventUseCase):
    def execute(self, event_id: str, **changes) -> GeneralEvent:
        state = self.store.load()
        updated = update_general_event(_get_event(state, event_id), **changes)
        self._save([updated])
        self.db.commit()
        return updated


class DeleteGeneralEventUseCase(_GeneralEventUseCase):
    def execute(self, event_id: str) -> None:
        state = self.store.load()
        _get_event(state, event_id)
        self._save([], removed=[event_id])
        self.db.commit()


class RespondToEventUseCase(_GeneralEventUseCase):
    """
    Use case: RSVP to a general event

    The user's EVENT_INVITE notifications for this event are marked read.
    """

    def execute(self, event_id: str, user_id: str, accepted: bool) -> GeneralEvent:
        state = self.store.load()
        updated = respond_to_event(_get_event(state, event_id), user_id, accepted)
        self._save([updated])

        invites = [
            mark_read(n) for n in state.notifications_for(user_id)
            if n.type == NOTIFICATION_EVENT_INVITE and n.data.get("event_id") == event_id and not n.read
        ]
        if invites and not self.store.save(COLLECTION_NOTIFICATIONS, invites):
            raise StoreWriteError("Could not save notifications")

        self.event_repo.append_event(
            event_type=EVENT_GENERAL_EVENT_ANSWERED,
            payload=GeneralEventEvents.answered(updated, user_id),
            actor_user_id=user_id,
        )
        self.db.commit()
        return updated
