"""
Maintenance API endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from sailsync.api.deps import get_db, get_today, get_app_settings
from sailsync.api.v1.schemas import MaintenanceRecordResponse
from sailsync.application.maintenance import (
    CreateMaintenanceRecordUseCase,
    CompleteMaintenanceUseCase,
    AcceptMaintenanceProposalUseCase,
    ReopenMaintenanceUseCase,
    get_maintenance_hub,
)
from sailsync.config import Settings


router = APIRouter(prefix="/api/v1/maintenance", tags=["maintenance"])


class CreateRecordRequest(BaseModel):
    boat_id: str
    description: str
    date: str
    expiration_date: str | None = None
    recurrence_interval: int | None = None
    recurrence_unit: str | None = None  # days, months, years
    notes: str | None = None


class ActorRequest(BaseModel):
    actor_user_id: str | None = None


class CompletionResponse(BaseModel):
    record: MaintenanceRecordResponse
    proposal: MaintenanceRecordResponse | None  # next occurrence, saved only if accepted


class HubItem(BaseModel):
    record: MaintenanceRecordResponse
    bucket: str


class HubResponse(BaseModel):
    expired: list[HubItem]
    expiringSoon: list[HubItem]
    ok: list[HubItem]


@router.post("/", response_model=MaintenanceRecordResponse, status_code=201)
def create_record(req: CreateRecordRequest, db: Session = Depends(get_db)):
    record = CreateMaintenanceRecordUseCase(db).execute(
        boat_id=req.boat_id,
        description=req.description,
        day=req.date,
        expiration_date=req.expiration_date,
        recurrence_interval=req.recurrence_interval,
        recurrence_unit=req.recurrence_unit,
        notes=req.notes,
    )
    return MaintenanceRecordResponse.from_domain(record)


@router.post("/{record_id}/complete", response_model=CompletionResponse)
def complete(
    record_id: str,
    req: ActorRequest | None = None,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Mark DONE; recurring records come back with a proposal for the next one"""
    result = CompleteMaintenanceUseCase(db).execute(
        record_id, today, actor_user_id=req.actor_user_id if req else None
    )
    return CompletionResponse(
        record=MaintenanceRecordResponse.from_domain(result.updated),
        proposal=MaintenanceRecordResponse.from_domain(result.spawned) if result.spawned else None,
    )


@router.post("/{record_id}/accept-proposal", response_model=MaintenanceRecordResponse, status_code=201)
def accept_proposal(
    record_id: str,
    req: ActorRequest | None = None,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    spawned = AcceptMaintenanceProposalUseCase(db).execute(
        record_id, today, actor_user_id=req.actor_user_id if req else None
    )
    return MaintenanceRecordResponse.from_domain(spawned)


@router.post("/{record_id}/reopen", response_model=MaintenanceRecordResponse)
def reopen(record_id: str, db: Session = Depends(get_db)):
    return MaintenanceRecordResponse.from_domain(ReopenMaintenanceUseCase(db).execute(record_id))


@router.get("/hub", response_model=HubResponse)
def hub(
    boat_id: str | None = None,
    today: date = Depends(get_today),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """Records grouped by expiration bucket"""
    groups = get_maintenance_hub(db, today, boat_id=boat_id, soon_days=settings.EXPIRING_SOON_DAYS)
    return HubResponse(**{
        bucket: [
            HubItem(record=MaintenanceRecordResponse.from_domain(e.record), bucket=e.bucket)
            for e in entries
        ]
        for bucket, entries in groups.items()
    })
