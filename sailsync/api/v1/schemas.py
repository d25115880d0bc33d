"""
Response models shared by the v1 routers
"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from sailsync.domain.assignment import Assignment
from sailsync.domain.availability import Availability
from sailsync.domain.eligibility import Conflict
from sailsync.domain.general_event import GeneralEvent
from sailsync.domain.maintenance import MaintenanceRecord
from sailsync.domain.notification import UserNotification
from sailsync.domain.user import User


class AssignmentResponse(BaseModel):
    id: str
    date: str
    boat_id: str
    instructor_id: str | None
    helper_id: str | None
    activity_id: str | None
    duration_days: int
    status: str
    instructor_status: str
    helper_status: str
    notes: str

    @classmethod
    def from_domain(cls, a: Assignment) -> "AssignmentResponse":
        return cls(
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
            notes=a.notes,
        )


class ConflictResponse(BaseModel):
    code: str
    detail: str
    user_id: str | None = None
    day: str | None = None
    other_assignment_id: str | None = None

    @classmethod
    def from_domain(cls, c: Conflict) -> "ConflictResponse":
        return cls(
            code=c.code,
            detail=c.detail,
            user_id=c.user_id,
            day=c.day,
            other_assignment_id=c.other_assignment_id,
        )


class UserSummary(BaseModel):
    id: str
    name: str
    role: str

    @classmethod
    def from_domain(cls, u: User) -> "UserSummary":
        return cls(id=u.id, name=u.name, role=u.role)


class AvailabilityResponse(BaseModel):
    user_id: str
    date: str
    status: str

    @classmethod
    def from_domain(cls, a: Availability) -> "AvailabilityResponse":
        return cls(user_id=a.user_id, date=a.date, status=a.status)


class EventResponseItem(BaseModel):
    user_id: str
    status: str


class GeneralEventResponse(BaseModel):
    id: str
    date: str
    activity_id: str
    start_time: str | None
    end_time: str | None
    notes: str | None
    responses: list[EventResponseItem]

    @classmethod
    def from_domain(cls, e: GeneralEvent) -> "GeneralEventResponse":
        return cls(
            id=e.id,
            date=e.date,
            activity_id=e.activity_id,
            start_time=e.start_time,
            end_time=e.end_time,
            notes=e.notes,
            responses=[EventResponseItem(user_id=r.user_id, status=r.status) for r in e.responses],
        )


class MaintenanceRecordResponse(BaseModel):
    id: str
    boat_id: str
    description: str
    date: str
    status: str
    expiration_date: str | None
    recurrence_interval: int | None
    recurrence_unit: str | None
    notes: str | None

    @classmethod
    def from_domain(cls, r: MaintenanceRecord) -> "MaintenanceRecordResponse":
        return cls(
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


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    message: str
    read: bool
    data: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_domain(cls, n: UserNotification) -> "NotificationResponse":
        return cls(
            id=n.id,
            user_id=n.user_id,
            type=n.type,
            message=n.message,
            read=n.read,
            data=dict(n.data),
            created_at=n.created_at,
        )
