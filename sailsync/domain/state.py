"""
ScheduleState - immutable snapshot of everything the scheduling core reads.

Core functions never mutate a snapshot: `with_records` / `without_records`
return a new one, which keeps replays deterministic and makes undo a matter
of keeping the previous object.
"""
from dataclasses import dataclass, replace
from typing import Any, Iterable

from sailsync.domain.assignment import Assignment
from sailsync.domain.assignment_index import AssignmentIndex
from sailsync.domain.availability import Availability, AvailabilityLookup
from sailsync.domain.catalog import Boat, Activity
from sailsync.domain.general_event import GeneralEvent
from sailsync.domain.maintenance import MaintenanceRecord
from sailsync.domain.notification import UserNotification
from sailsync.domain.user import User


COLLECTION_USERS = "users"
COLLECTION_BOATS = "boats"
COLLECTION_ACTIVITIES = "activities"
COLLECTION_ASSIGNMENTS = "assignments"
COLLECTION_AVAILABILITIES = "availabilities"
COLLECTION_GENERAL_EVENTS = "general_events"
COLLECTION_MAINTENANCE = "maintenance_records"
COLLECTION_NOTIFICATIONS = "notifications"

COLLECTIONS = [
    COLLECTION_USERS,
    COLLECTION_BOATS,
    COLLECTION_ACTIVITIES,
    COLLECTION_ASSIGNMENTS,
    COLLECTION_AVAILABILITIES,
    COLLECTION_GENERAL_EVENTS,
    COLLECTION_MAINTENANCE,
    COLLECTION_NOTIFICATIONS,
]


def record_key(collection: str, record: Any) -> Any:
    """Identity of a record inside its collection."""
    if collection == COLLECTION_AVAILABILITIES:
        return record.user_id, record.date
    return record.id


@dataclass(frozen=True)
class ScheduleState:
    users: tuple[User, ...] = ()
    boats: tuple[Boat, ...] = ()
    activities: tuple[Activity, ...] = ()
    assignments: tuple[Assignment, ...] = ()
    availabilities: tuple[Availability, ...] = ()
    general_events: tuple[GeneralEvent, ...] = ()
    maintenance_records: tuple[MaintenanceRecord, ...] = ()
    notifications: tuple[UserNotification, ...] = ()

    def collection(self, name: str) -> tuple:
        if name not in COLLECTIONS:
            raise KeyError(f"Unknown collection: {name}")
        return getattr(self, name)

    def with_records(self, collection: str, records: Iterable[Any]) -> "ScheduleState":
        """Upsert records: replaced in place when the key exists, appended otherwise."""
        incoming = {record_key(collection, r): r for r in records}
        if not incoming:
            return self
        out = []
        for r in self.collection(collection):
            key = record_key(collection, r)
            out.append(incoming.pop(key, r))
        out.extend(incoming.values())
        return replace(self, **{collection: tuple(out)})

    def without_records(self, collection: str, keys: Iterable[Any]) -> "ScheduleState":
        drop = set(keys)
        if not drop:
            return self
        kept = tuple(r for r in self.collection(collection) if record_key(collection, r) not in drop)
        return replace(self, **{collection: kept})

    # --- lookups ---

    def get(self, collection: str, key: Any):
        for r in self.collection(collection):
            if record_key(collection, r) == key:
                return r
        return None

    def user(self, user_id: str) -> User | None:
        return self.get(COLLECTION_USERS, user_id)

    def boat(self, boat_id: str) -> Boat | None:
        return self.get(COLLECTION_BOATS, boat_id)

    def activity(self, activity_id: str | None) -> Activity | None:
        if activity_id is None:
            return None
        return self.get(COLLECTION_ACTIVITIES, activity_id)

    def assignment(self, assignment_id: str) -> Assignment | None:
        return self.get(COLLECTION_ASSIGNMENTS, assignment_id)

    def general_event(self, event_id: str) -> GeneralEvent | None:
        return self.get(COLLECTION_GENERAL_EVENTS, event_id)

    def maintenance_record(self, record_id: str) -> MaintenanceRecord | None:
        return self.get(COLLECTION_MAINTENANCE, record_id)

    def notification(self, notification_id: str) -> UserNotification | None:
        return self.get(COLLECTION_NOTIFICATIONS, notification_id)

    def notifications_for(self, user_id: str) -> list[UserNotification]:
        """Newest first."""
        mine = [n for n in self.notifications if n.user_id == user_id]
        return sorted(mine, key=lambda n: (n.created_at, n.id), reverse=True)

    def assignment_index(self) -> AssignmentIndex:
        return AssignmentIndex(self.assignments)

    def availability_lookup(self) -> AvailabilityLookup:
        return AvailabilityLookup(self.availabilities)
