"""
Notification dispatcher - turns outbox events into UserNotification rows.

Reads event_log after its checkpoint, fans out through notification_fanout,
saves the notifications and advances the checkpoint in one commit. Running
it twice over the same events creates nothing new.
"""
import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from sailsync.application.notification_fanout import (
    on_assignment_role_changed,
    on_event_created,
)
from sailsync.domain.events import EVENT_ASSIGNMENT_ROLE_CHANGED, EVENT_GENERAL_EVENT_CREATED
from sailsync.domain.assignment import CONFIRMATION_PENDING
from sailsync.domain.notification import UserNotification, NOTIFICATION_ASSIGNMENT_REQUEST
from sailsync.domain.state import ScheduleState, COLLECTION_NOTIFICATIONS
from sailsync.infrastructure.eventlog.repository import EventLogRepository
from sailsync.infrastructure.store import SqlStateStore

logger = logging.getLogger(__name__)

DISPATCHER_NAME = "notification_dispatcher"

HANDLED_EVENTS = [EVENT_ASSIGNMENT_ROLE_CHANGED, EVENT_GENERAL_EVENT_CREATED]


def _request_key(user_id: str, data: dict) -> tuple:
    return user_id, data.get("assignment_id"), data.get("role")


class NotificationDispatcher:
    def __init__(self, db: Session, now: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self.now = now
        self.event_repo = EventLogRepository(db)
        self.store = SqlStateStore(db)

    def run(self, batch_size: int = 200) -> int:
        """
        Process every pending event. Returns the number of notifications created.
        """
        total = 0
        while True:
            created, processed = self._run_batch(batch_size)
            total += created
            if processed < batch_size:
                return total

    def _run_batch(self, batch_size: int) -> tuple[int, int]:
        last_id = self.event_repo.get_checkpoint(DISPATCHER_NAME)
        events = self.event_repo.list_events_since(after_id=last_id, limit=batch_size)
        if not events:
            return 0, 0

        state = self.store.load()
        created: list[UserNotification] = []
        requested = {
            _request_key(n.user_id, n.data) for n in state.notifications
            if n.type == NOTIFICATION_ASSIGNMENT_REQUEST and not n.read
        }
        for event in events:
            if event.event_type == EVENT_ASSIGNMENT_ROLE_CHANGED:
                for n in self._assignment_request(state, event.payload_json):
                    key = _request_key(n.user_id, n.data)
                    if key not in requested:
                        requested.add(key)
                        created.append(n)
            elif event.event_type == EVENT_GENERAL_EVENT_CREATED:
                created.extend(self._event_invites(state, event.payload_json))

        if created and not self.store.save(COLLECTION_NOTIFICATIONS, created):
            raise RuntimeError("Could not save notifications, checkpoint not advanced")
        self.event_repo.save_checkpoint(DISPATCHER_NAME, events[-1].id)
        self.db.commit()
        if created:
            logger.info("Dispatched %d notifications from %d events", len(created), len(events))
        return len(created), len(events)

    def _assignment_request(self, state: ScheduleState, payload: dict) -> list[UserNotification]:
        assignment = state.assignment(payload["assignment_id"])
        if assignment is None or assignment.is_cancelled:
            return []
        role = payload["role"]
        # Superseded by a later change of the same role, or already answered
        if assignment.person_in(role) != payload.get("user_id"):
            return []
        if assignment.status_of(role) != CONFIRMATION_PENDING:
            return []
        boat = state.boat(assignment.boat_id)
        activity = state.activity(assignment.activity_id)
        return on_assignment_role_changed(
            assignment,
            role,
            state.users,
            self.now(),
            boat_name=boat.name if boat else None,
            activity_name=activity.name if activity else None,
        )

    def _event_invites(self, state: ScheduleState, payload: dict) -> list[UserNotification]:
        event = state.general_event(payload["event_id"])
        if event is None:
            return []
        activity = state.activity(event.activity_id)
        return on_event_created(
            event,
            state.users,
            self.now(),
            activity_name=activity.name if activity else None,
        )


def dispatch_pending_notifications(db: Session) -> int:
    """Entry point for the scheduler job."""
    return NotificationDispatcher(db).run()
