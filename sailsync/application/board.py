"""
Board - read-only views of the schedule.

Pure read-layer: no domain events, no mutations.
  1. Day board: every boat with its effective assignment and the crew the
     picker may offer for each role
  2. Next assignments of one user (roles they accepted)
"""
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from sailsync.domain.assignment import ROLE_INSTRUCTOR, ROLE_HELPER
from sailsync.domain.eligibility import candidates_for_role, eligible_for_role
from sailsync.domain.state import ScheduleState
from sailsync.infrastructure.store import SqlStateStore


class BoardService:
    def __init__(self, db: Session):
        self.db = db
        self.store = SqlStateStore(db)

    # ------------------------------------------------------------------
    # 1. Day board
    # ------------------------------------------------------------------

    def get_day_board(self, day: date) -> dict[str, Any]:
        """
        Returns:
            date:   the day (YYYY-MM-DD)
            boats:  list[{boat, assignment, eligible_instructors, eligible_helpers}]
            issues: data quality issues found while indexing the snapshot
        """
        state = self.store.load()
        return build_day_board(state, day)

    # ------------------------------------------------------------------
    # 2. Next assignments
    # ------------------------------------------------------------------

    def get_upcoming(self, user_id: str, today: date, limit: int = 5) -> list[dict[str, Any]]:
        state = self.store.load()
        out = []
        for a in state.assignment_index().upcoming_for_user(user_id, today)[:limit]:
            boat = state.boat(a.boat_id)
            activity = state.activity(a.activity_id)
            out.append({
                "assignment": a,
                "role": a.role_of(user_id),
                "boat_name": boat.name if boat else None,
                "activity_name": activity.name if activity else None,
            })
        return out


def build_day_board(state: ScheduleState, day: date) -> dict[str, Any]:
    index = state.assignment_index()
    availability = state.availability_lookup()
    instructors = candidates_for_role(state.users, ROLE_INSTRUCTOR)
    helpers = candidates_for_role(state.users, ROLE_HELPER)

    boats = []
    for boat in state.boats:
        assignment = index.effective_assignment(boat.id, day)
        boats.append({
            "boat": boat,
            "assignment": assignment,
            "eligible_instructors": eligible_for_role(
                day, boat.id, instructors, assignment, availability, index
            ),
            "eligible_helpers": eligible_for_role(
                day, boat.id, helpers, assignment, availability, index
            ),
        })
    return {"date": day.isoformat(), "boats": boats, "issues": list(index.issues)}
