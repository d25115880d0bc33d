"""
Board API endpoints (read-only)
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from sailsync.api.deps import get_db, get_today
from sailsync.api.v1.schemas import AssignmentResponse, UserSummary
from sailsync.application.board import BoardService
from sailsync.domain.dates import parse_calendar_date


router = APIRouter(prefix="/api/v1", tags=["board"])


class BoatSlot(BaseModel):
    boat_id: str
    boat_name: str
    assignment: AssignmentResponse | None
    eligible_instructors: list[UserSummary]
    eligible_helpers: list[UserSummary]


class DataIssue(BaseModel):
    code: str
    assignment_id: str
    detail: str


class DayBoardResponse(BaseModel):
    date: str
    boats: list[BoatSlot]
    issues: list[DataIssue]


class UpcomingItem(BaseModel):
    assignment: AssignmentResponse
    role: str | None
    boat_name: str | None
    activity_name: str | None


@router.get("/board/{day}", response_model=DayBoardResponse)
def day_board(day: str, db: Session = Depends(get_db)):
    """Every boat on a day with its assignment and the crew the picker may offer"""
    d = parse_calendar_date(day)
    if d is None:
        raise HTTPException(status_code=400, detail=f"Invalid date: {day}")
    board = BoardService(db).get_day_board(d)
    return DayBoardResponse(
        date=board["date"],
        boats=[
            BoatSlot(
                boat_id=slot["boat"].id,
                boat_name=slot["boat"].name,
                assignment=AssignmentResponse.from_domain(slot["assignment"]) if slot["assignment"] else None,
                eligible_instructors=[UserSummary.from_domain(u) for u in slot["eligible_instructors"]],
                eligible_helpers=[UserSummary.from_domain(u) for u in slot["eligible_helpers"]],
            )
            for slot in board["boats"]
        ],
        issues=[DataIssue(code=i.code, assignment_id=i.assignment_id, detail=i.detail) for i in board["issues"]],
    )


@router.get("/users/{user_id}/upcoming", response_model=list[UpcomingItem])
def upcoming(user_id: str, limit: int = 5, today: date = Depends(get_today), db: Session = Depends(get_db)):
    """Next assignments the user accepted"""
    items = BoardService(db).get_upcoming(user_id, today, limit=limit)
    return [
        UpcomingItem(
            assignment=AssignmentResponse.from_domain(item["assignment"]),
            role=item["role"],
            boat_name=item["boat_name"],
            activity_name=item["activity_name"],
        )
        for item in items
    ]
