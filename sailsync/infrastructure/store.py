"""
SqlStateStore - persistence collaborator for the scheduling core

Contract:
    load() -> ScheduleState            full snapshot, deterministic order
    save(collection, changed, removed) -> bool

save() only flushes; the calling use case commits together with the
events it appended, so a state change and its outbox rows land atomically.
"""
import logging
from typing import Any, Iterable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from sailsync.domain.assignment import Assignment
from sailsync.domain.availability import Availability
from sailsync.domain.catalog import Boat, Activity
from sailsync.domain.general_event import GeneralEvent, EventResponse
from sailsync.domain.maintenance import MaintenanceRecord
from sailsync.domain.notification import UserNotification
from sailsync.domain.state import (
    ScheduleState,
    COLLECTION_USERS,
    COLLECTION_BOATS,
    COLLECTION_ACTIVITIES,
    COLLECTION_ASSIGNMENTS,
    COLLECTION_AVAILABILITIES,
    COLLECTION_GENERAL_EVENTS,
    COLLECTION_MAINTENANCE,
    COLLECTION_NOTIFICATIONS,
    record_key,
)
from sailsync.domain.user import User
from sailsync.infrastructure.db.models import (
    UserModel,
    BoatModel,
    ActivityModel,
    AssignmentModel,
    AvailabilityModel,
    GeneralEventModel,
    GeneralEventResponseModel,
    MaintenanceRecordModel,
    NotificationModel,
)

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    def load(self) -> ScheduleState: ...

    def save(self, collection: str, changed: Iterable[Any], removed: Iterable[Any] = ()) -> bool: ...


# ---------------------------------------------------------------------------
# Row <-> domain mapping
# ---------------------------------------------------------------------------

def _user(row: UserModel) -> User:
    return User(
        id=row.id, name=row.name, role=row.role, is_admin=bool(row.is_admin),
        email=row.email, birth_date=row.birth_date,
    )


def _user_row(u: User) -> UserModel:
    return UserModel(
        id=u.id, name=u.name, role=u.role, is_admin=u.is_admin,
        email=u.email, birth_date=u.birth_date,
    )


def _boat(row: BoatModel) -> Boat:
    return Boat(id=row.id, name=row.name, boat_type=row.boat_type)


def _boat_row(b: Boat) -> BoatModel:
    return BoatModel(id=b.id, name=b.name, boat_type=b.boat_type)


def _activity(row: ActivityModel) -> Activity:
    return Activity(
        id=row.id, name=row.name,
        default_duration_days=row.default_duration_days, is_general=bool(row.is_general),
    )


def _activity_row(a: Activity) -> ActivityModel:
    return ActivityModel(
        id=a.id, name=a.name,
        default_duration_days=a.default_duration_days, is_general=a.is_general,
    )


def _assignment(row: AssignmentModel) -> Assignment:
    return Assignment(
        id=row.id,
        date=row.date,
        boat_id=row.boat_id,
        instructor_id=row.instructor_id,
        helper_id=row.helper_id,
        activity_id=row.activity_id,
        duration_days=row.duration_days if row.duration_days is not None else 1,
        status=row.status,
        instructor_status=row.instructor_status,
        helper_status=row.helper_status,
        notes=row.notes or "",
    )


def _assignment_row(a: Assignment) -> AssignmentModel:
    return AssignmentModel(
        id=a.id,
        date=a.date,
        boat_id=a.boat_id,
        instructor_id=a.instructor_id,
        helper_id=a.helper_id,
        activity_id=a.activity_id,
        duration_days=a.duration_days,
        status=a.status,
        instructor_status=a.instructor_status,
        helper_status=a.helper_status,
        notes=a.notes or "",
    )


def _availability(row: AvailabilityModel) -> Availability:
    return Availability(user_id=row.user_id, date=row.date, status=row.status)


def _general_event(row: GeneralEventModel) -> GeneralEvent:
    return GeneralEvent(
        id=row.id,
        date=row.date,
        activity_id=row.activity_id,
        responses=tuple(EventResponse(user_id=r.user_id, status=r.status) for r in row.responses),
        start_time=row.start_time,
        end_time=row.end_time,
        notes=row.notes,
    )


def _general_event_row(e: GeneralEvent) -> GeneralEventModel:
    return GeneralEventModel(
        id=e.id,
        date=e.date,
        activity_id=e.activity_id,
        start_time=e.start_time,
        end_time=e.end_time,
        notes=e.notes,
        responses=[
            GeneralEventResponseModel(event_id=e.id, user_id=r.user_id, position=i, status=r.status)
            for i, r in enumerate(e.responses)
        ],
    )


def _maintenance(row: MaintenanceRecordModel) -> MaintenanceRecord:
    return MaintenanceRecord(
        id=row.id,
        boat_id=row.boat_id,
        description=row.description,
        date=row.date,
        status=row.status,
        expiration_date=row.expiration_date,
        recurrence_interval=row.recurrence_interval,
        recurrence_unit=row.recurrence_unit,
        notes=row.notes,
    )


def _maintenance_row(r: MaintenanceRecord) -> MaintenanceRecordModel:
    return MaintenanceRecordModel(
        id=r.id,
        boat_id=r.boat_id,
        description=r.description,
        date=r.date,
        status=r.status,
        expiration_date=r.expiration_date,
        recurrence_interval=r.recurrence_interval,
        recurrence_unit=r.recurrence_unit,
        notes=r.notes,
    )


def _notification(row: NotificationModel) -> UserNotification:
    return UserNotification(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        message=row.message,
        created_at=row.created_at,
        read=bool(row.read),
        data=dict(row.data_json or {}),
    )


def _notification_row(n: UserNotification) -> NotificationModel:
    return NotificationModel(
        id=n.id,
        user_id=n.user_id,
        type=n.type,
        message=n.message,
        read=n.read,
        data_json=dict(n.data),
        created_at=n.created_at,
    )


_MODELS = {
    COLLECTION_USERS: (UserModel, _user_row),
    COLLECTION_BOATS: (BoatModel, _boat_row),
    COLLECTION_ACTIVITIES: (ActivityModel, _activity_row),
    COLLECTION_ASSIGNMENTS: (AssignmentModel, _assignment_row),
    COLLECTION_GENERAL_EVENTS: (GeneralEventModel, _general_event_row),
    COLLECTION_MAINTENANCE: (MaintenanceRecordModel, _maintenance_row),
    COLLECTION_NOTIFICATIONS: (NotificationModel, _notification_row),
}


class SqlStateStore:
    """
    StateStore over a SQLAlchemy session

    Example:
        >>> store = SqlStateStore(db)
        >>> state = store.load()
        >>> store.save("assignments", [updated])
        >>> db.commit()
    """

    def __init__(self, db: Session):
        self.db = db

    def load(self) -> ScheduleState:
        db = self.db
        return ScheduleState(
            users=tuple(_user(r) for r in db.query(UserModel).order_by(UserModel.name, UserModel.id)),
            boats=tuple(_boat(r) for r in db.query(BoatModel).order_by(BoatModel.name, BoatModel.id)),
            activities=tuple(
                _activity(r) for r in db.query(ActivityModel).order_by(ActivityModel.name, ActivityModel.id)
            ),
            assignments=tuple(
                _assignment(r)
                for r in db.query(AssignmentModel).order_by(AssignmentModel.date, AssignmentModel.id)
            ),
            availabilities=tuple(
                _availability(r)
                for r in db.query(AvailabilityModel).order_by(
                    AvailabilityModel.date, AvailabilityModel.user_id
                )
            ),
            general_events=tuple(
                _general_event(r)
                for r in db.query(GeneralEventModel)
                .options(selectinload(GeneralEventModel.responses))
                .order_by(GeneralEventModel.date, GeneralEventModel.id)
            ),
            maintenance_records=tuple(
                _maintenance(r)
                for r in db.query(MaintenanceRecordModel).order_by(
                    MaintenanceRecordModel.date, MaintenanceRecordModel.id
                )
            ),
            notifications=tuple(
                _notification(r)
                for r in db.query(NotificationModel).order_by(
                    NotificationModel.created_at, NotificationModel.id
                )
            ),
        )

    def save(self, collection: str, changed: Iterable[Any], removed: Iterable[Any] = ()) -> bool:
        """
        Upsert `changed` and delete records whose key is in `removed`.

        Returns False (after rolling back) if the database refused the write.
        """
        try:
            if collection == COLLECTION_AVAILABILITIES:
                self._save_availabilities(changed, removed)
            else:
                self._save_by_id(collection, changed, removed)
            self.db.flush()
        except SQLAlchemyError:
            logger.exception("Saving %s failed", collection)
            self.db.rollback()
            return False
        return True

    def _save_by_id(self, collection: str, changed: Iterable[Any], removed: Iterable[Any]) -> None:
        if collection not in _MODELS:
            raise KeyError(f"Unknown collection: {collection}")
        model, to_row = _MODELS[collection]
        for key in removed:
            row = self.db.get(model, key)
            if row is not None:
                self.db.delete(row)
        for record in changed:
            self.db.merge(to_row(record))

    def _save_availabilities(self, changed: Iterable[Availability], removed: Iterable[Any]) -> None:
        for user_id, day in removed:
            self.db.query(AvailabilityModel).filter(
                AvailabilityModel.user_id == user_id,
                AvailabilityModel.date == day,
            ).delete(synchronize_session=False)
        for a in changed:
            user_id, day = record_key(COLLECTION_AVAILABILITIES, a)
            row = self.db.query(AvailabilityModel).filter(
                AvailabilityModel.user_id == user_id,
                AvailabilityModel.date == day,
            ).first()
            if row:
                row.status = a.status
            else:
                self.db.add(AvailabilityModel(user_id=user_id, date=day, status=a.status))
                self.db.flush()
