"""
Event Log Repository - outbox of domain events

Use cases append events in the same session as the state change; consumers
(notification dispatcher) read them back in id order from a checkpoint.
"""
from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from sailsync.infrastructure.db.models import EventLog, ProjectorCheckpoint


class EventLogRepository:
    """
    Repository for the event log and consumer checkpoints
    """

    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        event_type: str,
        payload: Dict[str, Any],
        occurred_at: Optional[datetime] = None,
        actor_user_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> int:
        """
        Append one event to the log

        Args:
            event_type: event type (e.g. "assignment_role_changed")
            payload: event data (stored as JSON)
            occurred_at: when it happened (default: now)
            actor_user_id: who did it (optional)
            idempotency_key: idempotency key (optional)

        Returns:
            event_id of the new row

        Raises:
            IntegrityError: idempotency_key already used
        """
        if occurred_at is None:
            occurred_at = datetime.utcnow()

        event = EventLog(
            actor_user_id=actor_user_id,
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at,
            idempotency_key=idempotency_key,
        )

        self.db.add(event)
        self.db.flush()  # id without commit

        return event.id

    def get_event(self, event_id: int) -> Optional[EventLog]:
        return self.db.query(EventLog).filter(EventLog.id == event_id).first()

    def list_events_since(
        self,
        after_id: int = 0,
        limit: int = 200,
        event_types: Optional[List[str]] = None,
    ) -> List[EventLog]:
        """
        Events with id > after_id, ascending

        Example:
            >>> repo = EventLogRepository(db)
            >>> events = repo.list_events_since(after_id=100, limit=200)
        """
        query = self.db.query(EventLog).filter(EventLog.id > after_id)

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        query = query.order_by(EventLog.id.asc()).limit(limit)

        return query.all()

    def find_event(self, event_type: str, **payload_match: Any) -> Optional[EventLog]:
        """
        First event of event_type whose payload has every key/value in payload_match

        Example:
            >>> repo.find_event("maintenance_rescheduled", previous_record_id="m1")
        """
        query = self.db.query(EventLog).filter(EventLog.event_type == event_type)
        for event in query.order_by(EventLog.id.asc()):
            payload = event.payload_json or {}
            if all(payload.get(k) == v for k, v in payload_match.items()):
                return event
        return None

    def count_events(self, event_types: Optional[List[str]] = None) -> int:
        query = self.db.query(EventLog)

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        return query.count()

    def get_checkpoint(self, consumer_name: str) -> int:
        """last_event_id processed by consumer_name (0 if it never ran)"""
        checkpoint = self.db.query(ProjectorCheckpoint).filter(
            ProjectorCheckpoint.projector_name == consumer_name
        ).first()
        return checkpoint.last_event_id if checkpoint else 0

    def save_checkpoint(self, consumer_name: str, event_id: int) -> None:
        self.db.flush()
        checkpoint = self.db.query(ProjectorCheckpoint).filter(
            ProjectorCheckpoint.projector_name == consumer_name
        ).first()
        if checkpoint:
            checkpoint.last_event_id = event_id
        else:
            self.db.add(ProjectorCheckpoint(projector_name=consumer_name, last_event_id=event_id))
