"""
Notification API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from sailsync.api.deps import get_db
from sailsync.api.v1.schemas import NotificationResponse, AssignmentResponse
from sailsync.application.assignments import RespondToAssignmentRequestUseCase
from sailsync.application.notifications import (
    list_notifications,
    MarkNotificationReadUseCase,
    MarkAllReadUseCase,
)


router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


class UserRequest(BaseModel):
    user_id: str


class RespondRequest(UserRequest):
    accepted: bool


class MarkAllResponse(BaseModel):
    updated: int


@router.get("/", response_model=list[NotificationResponse])
def get_notifications(user_id: str, unread_only: bool = False, db: Session = Depends(get_db)):
    """Newest first"""
    return [NotificationResponse.from_domain(n) for n in list_notifications(db, user_id, unread_only)]


@router.post("/read-all", response_model=MarkAllResponse)
def read_all(req: UserRequest, db: Session = Depends(get_db)):
    return MarkAllResponse(updated=MarkAllReadUseCase(db).execute(req.user_id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def read(notification_id: str, req: UserRequest, db: Session = Depends(get_db)):
    return NotificationResponse.from_domain(
        MarkNotificationReadUseCase(db).execute(notification_id, req.user_id)
    )


@router.post("/{notification_id}/respond", response_model=AssignmentResponse)
def respond(notification_id: str, req: RespondRequest, db: Session = Depends(get_db)):
    """Accept or reject the role from an ASSIGNMENT_REQUEST"""
    updated = RespondToAssignmentRequestUseCase(db).execute(notification_id, req.user_id, req.accepted)
    return AssignmentResponse.from_domain(updated)
