"""
General event API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from sailsync.api.deps import get_db
from sailsync.api.v1.schemas import GeneralEventResponse
from sailsync.application.general_events import (
    CreateGeneralEventUseCase,
    UpdateGeneralEventUseCase,
    DeleteGeneralEventUseCase,
    RespondToEventUseCase,
)


router = APIRouter(prefix="/api/v1/events", tags=["events"])


class CreateEventRequest(BaseModel):
    date: str
    activity_id: str
    start_time: str | None = None  # HH:MM
    end_time: str | None = None
    notes: str | None = None
    actor_user_id: str | None = None


class UpdateEventRequest(BaseModel):
    date: str | None = None
    activity_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    notes: str | None = None


class RespondRequest(BaseModel):
    user_id: str
    accepted: bool


@router.post("/", response_model=GeneralEventResponse, status_code=201)
def create_event(req: CreateEventRequest, db: Session = Depends(get_db)):
    """Create an event; every current user is invited"""
    event = CreateGeneralEventUseCase(db).execute(
        day=req.date,
        activity_id=req.activity_id,
        start_time=req.start_time,
        end_time=req.end_time,
        notes=req.notes,
        actor_user_id=req.actor_user_id,
    )
    return GeneralEventResponse.from_domain(event)


@router.patch("/{event_id}", response_model=GeneralEventResponse)
def update_event(event_id: str, req: UpdateEventRequest, db: Session = Depends(get_db)):
    event = UpdateGeneralEventUseCase(db).execute(event_id, **req.model_dump(exclude_unset=True))
    return GeneralEventResponse.from_domain(event)


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: str, db: Session = Depends(get_db)):
    DeleteGeneralEventUseCase(db).execute(event_id)


@router.post("/{event_id}/respond", response_model=GeneralEventResponse)
def respond(event_id: str, req: RespondRequest, db: Session = Depends(get_db)):
    event = RespondToEventUseCase(db).execute(event_id, req.user_id, req.accepted)
    return GeneralEventResponse.from_domain(event)
