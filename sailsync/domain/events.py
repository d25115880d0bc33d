"""
Domain event payloads appended to the event log by the use cases.

The notification dispatcher reads them back and fans out notifications, so
business operations never create notifications themselves.
"""
from datetime import datetime
from typing import Dict, Any

from sailsync.domain.assignment import Assignment
from sailsync.domain.general_event import GeneralEvent
from sailsync.domain.maintenance import MaintenanceRecord


EVENT_ASSIGNMENT_CREATED = "assignment_created"
EVENT_ASSIGNMENT_UPDATED = "assignment_updated"
EVENT_ASSIGNMENT_DELETED = "assignment_deleted"
EVENT_ASSIGNMENT_ROLE_CHANGED = "assignment_role_changed"
EVENT_ASSIGNMENT_ROLE_ANSWERED = "assignment_role_answered"
EVENT_ASSIGNMENT_CANCELLED = "assignment_cancelled"
EVENT_ASSIGNMENT_RESTORED = "assignment_restored"
EVENT_GENERAL_EVENT_CREATED = "general_event_created"
EVENT_GENERAL_EVENT_ANSWERED = "general_event_answered"
EVENT_MAINTENANCE_COMPLETED = "maintenance_completed"
EVENT_MAINTENANCE_RESCHEDULED = "maintenance_rescheduled"


class AssignmentEvents:
    @staticmethod
    def saved(assignment: Assignment, created: bool) -> Dict[str, Any]:
        return {
            "assignment_id": assignment.id,
            "boat_id": assignment.boat_id,
            "date": assignment.date,
            "duration_days": assignment.duration_days,
            "created": created,
            "saved_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def deleted(assignment: Assignment) -> Dict[str, Any]:
        return {
            "assignment_id": assignment.id,
            "boat_id": assignment.boat_id,
            "date": assignment.date,
            "deleted_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def role_changed(assignment: Assignment, role: str) -> Dict[str, Any]:
        return {
            "assignment_id": assignment.id,
            "role": role,
            "user_id": assignment.person_in(role),
            "changed_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def role_answered(assignment: Assignment, role: str) -> Dict[str, Any]:
        return {
            "assignment_id": assignment.id,
            "role": role,
            "user_id": assignment.person_in(role),
            "status": assignment.status_of(role),
            "answered_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def cancelled(assignment: Assignment) -> Dict[str, Any]:
        return {
            "assignment_id": assignment.id,
            "cancelled_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def restored(assignment: Assignment) -> Dict[str, Any]:
        return {
            "assignment_id": assignment.id,
            "restored_at": datetime.utcnow().isoformat(),
        }


class GeneralEventEvents:
    @staticmethod
    def created(event: GeneralEvent) -> Dict[str, Any]:
        return {
            "event_id": event.id,
            "date": event.date,
            "activity_id": event.activity_id,
            "invited": [r.user_id for r in event.responses],
            "created_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def answered(event: GeneralEvent, user_id: str) -> Dict[str, Any]:
        response = event.response_of(user_id)
        return {
            "event_id": event.id,
            "user_id": user_id,
            "status": response.status if response else None,
            "answered_at": datetime.utcnow().isoformat(),
        }


class MaintenanceEvents:
    @staticmethod
    def completed(record: MaintenanceRecord, proposal: MaintenanceRecord | None) -> Dict[str, Any]:
        return {
            "record_id": record.id,
            "boat_id": record.boat_id,
            "proposed_expiration_date": proposal.expiration_date if proposal else None,
            "completed_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def rescheduled(previous: MaintenanceRecord, spawned: MaintenanceRecord) -> Dict[str, Any]:
        return {
            "record_id": spawned.id,
            "previous_record_id": previous.id,
            "boat_id": spawned.boat_id,
            "expiration_date": spawned.expiration_date,
            "rescheduled_at": datetime.utcnow().isoformat(),
        }
