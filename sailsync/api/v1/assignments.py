"""
Assignment API endpoints (boat board writes)
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from sailsync.api.deps import get_db, get_app_settings
from sailsync.api.v1.schemas import AssignmentResponse, ConflictResponse
from sailsync.config import Settings
from sailsync.application.assignments import (
    SaveAssignmentUseCase,
    ConfirmRoleUseCase,
    ResetRoleUseCase,
    CancelAssignmentUseCase,
    RestoreAssignmentUseCase,
    CancelDayUseCase,
    DeleteAssignmentUseCase,
)


router = APIRouter(prefix="/api/v1/assignments", tags=["assignments"])

_EDITABLE = {"date", "duration_days", "activity_id", "notes", "instructor_id", "helper_id"}


# === Request/Response models ===

class SaveAssignmentRequest(BaseModel):
    boat_id: str
    date: str  # YYYY-MM-DD, the board cell
    assignment_id: str | None = None
    activity_id: str | None = None  # explicit null on an existing assignment deletes it
    duration_days: int | None = None
    instructor_id: str | None = None
    helper_id: str | None = None
    notes: str | None = None
    actor_user_id: str | None = None


class SaveAssignmentResponse(BaseModel):
    assignment: AssignmentResponse | None
    created: bool
    conflicts: list[ConflictResponse]


class RoleRequest(BaseModel):
    role: str  # INSTRUCTOR, HELPER
    actor_user_id: str | None = None


class ConfirmRoleRequest(RoleRequest):
    accepted: bool


class ActorRequest(BaseModel):
    actor_user_id: str | None = None


class CancelDayRequest(BaseModel):
    date: str
    actor_user_id: str | None = None


# === Endpoints ===

@router.put("/", response_model=SaveAssignmentResponse)
def save_assignment(
    req: SaveAssignmentRequest,
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """Create or edit the assignment of a boat/day cell"""
    sent = req.model_dump(exclude_unset=True)
    changes = {k: v for k, v in sent.items() if k in _EDITABLE}
    # Without an id the date locates the cell; with an id it moves the start
    if req.assignment_id is None:
        changes.pop("date", None)
    result = SaveAssignmentUseCase(db, settings=settings).execute(
        boat_id=req.boat_id,
        day=req.date,
        changes=changes,
        assignment_id=req.assignment_id,
        actor_user_id=req.actor_user_id,
    )
    return SaveAssignmentResponse(
        assignment=AssignmentResponse.from_domain(result.assignment) if result.assignment else None,
        created=result.created,
        conflicts=[ConflictResponse.from_domain(c) for c in result.conflicts],
    )


@router.post("/{assignment_id}/confirm", response_model=AssignmentResponse)
def confirm_role(assignment_id: str, req: ConfirmRoleRequest, db: Session = Depends(get_db)):
    updated = ConfirmRoleUseCase(db).execute(
        assignment_id, req.role, req.accepted, actor_user_id=req.actor_user_id
    )
    return AssignmentResponse.from_domain(updated)


@router.post("/{assignment_id}/reset", response_model=AssignmentResponse)
def reset_role(assignment_id: str, req: RoleRequest, db: Session = Depends(get_db)):
    updated = ResetRoleUseCase(db).execute(assignment_id, req.role, actor_user_id=req.actor_user_id)
    return AssignmentResponse.from_domain(updated)


@router.post("/{assignment_id}/cancel", response_model=AssignmentResponse)
def cancel(assignment_id: str, req: ActorRequest | None = None, db: Session = Depends(get_db)):
    actor = req.actor_user_id if req else None
    return AssignmentResponse.from_domain(
        CancelAssignmentUseCase(db).execute(assignment_id, actor_user_id=actor)
    )


@router.post("/{assignment_id}/restore", response_model=AssignmentResponse)
def restore(assignment_id: str, req: ActorRequest | None = None, db: Session = Depends(get_db)):
    actor = req.actor_user_id if req else None
    return AssignmentResponse.from_domain(
        RestoreAssignmentUseCase(db).execute(assignment_id, actor_user_id=actor)
    )


@router.post("/cancel-day", response_model=list[AssignmentResponse])
def cancel_day(req: CancelDayRequest, db: Session = Depends(get_db)):
    """Cancel every boat's assignment on a day (bad weather)"""
    cancelled = CancelDayUseCase(db).execute(req.date, actor_user_id=req.actor_user_id)
    return [AssignmentResponse.from_domain(a) for a in cancelled]


@router.delete("/{assignment_id}", status_code=204)
def delete_assignment(assignment_id: str, db: Session = Depends(get_db)):
    DeleteAssignmentUseCase(db).execute(assignment_id)
