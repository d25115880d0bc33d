"""
Maintenance use cases - create, complete (with recurrence proposal), reopen, hub

Completing a recurring record never spawns the next one by itself: the
caller gets the proposal back and accepts it with AcceptMaintenanceProposalUseCase.
"""
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Callable

from sqlalchemy.orm import Session

from sailsync.application.errors import NotFoundError, StoreWriteError
from sailsync.domain.events import (
    MaintenanceEvents,
    EVENT_MAINTENANCE_COMPLETED,
    EVENT_MAINTENANCE_RESCHEDULED,
)
from sailsync.domain.maintenance import (
    MaintenanceRecord,
    MaintenanceValidationError,
    CompletionResult,
    BUCKET_EXPIRED,
    BUCKET_EXPIRING_SOON,
    BUCKET_OK,
    EXPIRING_SOON_DAYS,
    new_maintenance_record,
    complete_and_maybe_reschedule,
    reopen_record,
    expiration_bucket,
    sort_for_hub,
)
from sailsync.domain.state import ScheduleState, COLLECTION_MAINTENANCE
from sailsync.infrastructure.eventlog.repository import EventLogRepository
from sailsync.infrastructure.store import SqlStateStore


def _get_record(state: ScheduleState, record_id: str) -> MaintenanceRecord:
    record = state.maintenance_record(record_id)
    if record is None:
        raise NotFoundError(f"Maintenance record {record_id} not found")
    return record


class _MaintenanceUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = SqlStateStore(db)
        self.event_repo = EventLogRepository(db)

    def _save(self, records: list[MaintenanceRecord]) -> None:
        if not self.store.save(COLLECTION_MAINTENANCE, records):
            raise StoreWriteError("Could not save maintenance records")


class CreateMaintenanceRecordUseCase(_MaintenanceUseCase):
    def execute(
        self,
        boat_id: str,
        description: str,
        day: str,
        expiration_date: str | None = None,
        recurrence_interval: int | None = None,
        recurrence_unit: str | None = None,
        notes: str | None = None,
        record_id: str | None = None,
    ) -> MaintenanceRecord:
        state = self.store.load()
        if state.boat(boat_id) is None:
            raise NotFoundError(f"Boat {boat_id} not found")
        record = new_maintenance_record(
            boat_id=boat_id,
            description=description,
            day=day,
            expiration_date=expiration_date,
            recurrence_interval=recurrence_interval,
            recurrence_unit=recurrence_unit,
            notes=notes,
            record_id=record_id,
        )
        self._save([record])
        self.db.commit()
        return record


class CompleteMaintenanceUseCase(_MaintenanceUseCase):
    """
    Use case: mark a record DONE

    Returns the CompletionResult; `spawned` is only a proposal and is not saved.
    """

    def __init__(self, db: Session, new_id: Callable[[], str] = lambda: str(uuid.uuid4())):
        super().__init__(db)
        self.new_id = new_id

    def execute(self, record_id: str, today: date, actor_user_id: str | None = None) -> CompletionResult:
        state = self.store.load()
        record = _get_record(state, record_id)
        if record.is_done:
            raise MaintenanceValidationError("Record is already done")
        result = complete_and_maybe_reschedule(record, today, self.new_id)
        self._save([result.updated])
        self.event_repo.append_event(
            event_type=EVENT_MAINTENANCE_COMPLETED,
            payload=MaintenanceEvents.completed(result.updated, result.spawned),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return result


class AcceptMaintenanceProposalUseCase(_MaintenanceUseCase):
    """
    Use case: the user confirmed the next occurrence of a completed recurring record

    The proposal is derived again from the completed record and `today`, so
    the caller only sends back the id. A record is rescheduled at most once.
    """

    def __init__(self, db: Session, new_id: Callable[[], str] = lambda: str(uuid.uuid4())):
        super().__init__(db)
        self.new_id = new_id

    def execute(self, record_id: str, today: date, actor_user_id: str | None = None) -> MaintenanceRecord:
        state = self.store.load()
        record = _get_record(state, record_id)
        if not record.is_done:
            raise MaintenanceValidationError("Only completed records can be rescheduled")
        if not record.is_recurring:
            raise MaintenanceValidationError("Record has no recurrence")
        if self.event_repo.find_event(EVENT_MAINTENANCE_RESCHEDULED, previous_record_id=record.id):
            raise MaintenanceValidationError("Next occurrence was already scheduled")
        spawned = complete_and_maybe_reschedule(record, today, self.new_id).spawned
        self._save([spawned])
        self.event_repo.append_event(
            event_type=EVENT_MAINTENANCE_RESCHEDULED,
            payload=MaintenanceEvents.rescheduled(record, spawned),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return spawned


class ReopenMaintenanceUseCase(_MaintenanceUseCase):
    """Use case: toggle a DONE record back to TODO"""

    def execute(self, record_id: str) -> MaintenanceRecord:
        state = self.store.load()
        record = _get_record(state, record_id)
        if not record.is_done:
            return record
        updated = reopen_record(record)
        self._save([updated])
        self.db.commit()
        return updated


@dataclass(frozen=True)
class HubEntry:
    record: MaintenanceRecord
    bucket: str


def get_maintenance_hub(
    db: Session,
    today: date,
    boat_id: str | None = None,
    soon_days: int = EXPIRING_SOON_DAYS,
) -> dict[str, list[HubEntry]]:
    """
    Maintenance hub: records grouped into expired / expiringSoon / ok,
    each group sorted soonest expiration first.
    """
    state = SqlStateStore(db).load()
    records = [r for r in state.maintenance_records if boat_id is None or r.boat_id == boat_id]
    hub: dict[str, list[HubEntry]] = {BUCKET_EXPIRED: [], BUCKET_EXPIRING_SOON: [], BUCKET_OK: []}
    for r in sort_for_hub(records):
        bucket = expiration_bucket(r, today, soon_days)
        hub[bucket].append(HubEntry(record=r, bucket=bucket))
    return hub
