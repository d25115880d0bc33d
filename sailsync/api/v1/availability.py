"""
Availability API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from sailsync.api.deps import get_db
from sailsync.api.v1.schemas import AvailabilityResponse
from sailsync.application.availability import SetAvailabilityUseCase, list_month_availability


router = APIRouter(prefix="/api/v1/availability", tags=["availability"])


class SetAvailabilityRequest(BaseModel):
    user_id: str
    date: str
    status: str  # AVAILABLE, UNAVAILABLE, UNKNOWN


@router.put("/", response_model=list[AvailabilityResponse])
def set_availability(req: SetAvailabilityRequest, db: Session = Depends(get_db)):
    """Set a day; Saturday/Sunday are written together"""
    entries = SetAvailabilityUseCase(db).execute(req.user_id, req.date, req.status)
    return [AvailabilityResponse.from_domain(a) for a in entries]


@router.get("/", response_model=list[AvailabilityResponse])
def month_availability(year: int, month: int, user_id: str | None = None, db: Session = Depends(get_db)):
    return [AvailabilityResponse.from_domain(a) for a in list_month_availability(db, year, month, user_id)]
