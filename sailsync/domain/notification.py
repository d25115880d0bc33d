"""UserNotification domain entity"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any


NOTIFICATION_ASSIGNMENT_REQUEST = "ASSIGNMENT_REQUEST"
NOTIFICATION_EVENT_INVITE = "EVENT_INVITE"
NOTIFICATION_REMINDER = "REMINDER"
NOTIFICATION_INFO = "INFO"

NOTIFICATION_TYPES = [
    NOTIFICATION_ASSIGNMENT_REQUEST,
    NOTIFICATION_EVENT_INVITE,
    NOTIFICATION_REMINDER,
    NOTIFICATION_INFO,
]


@dataclass(frozen=True)
class UserNotification:
    id: str
    user_id: str
    type: str
    message: str
    created_at: datetime
    read: bool = False
    data: dict[str, Any] = field(default_factory=dict)


def new_notification(
    user_id: str,
    type: str,
    message: str,
    now: datetime,
    data: dict[str, Any] | None = None,
    notification_id: str | None = None,
) -> UserNotification:
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type}")
    return UserNotification(
        id=notification_id or str(uuid.uuid4()),
        user_id=user_id,
        type=type,
        message=message,
        created_at=now,
        data=dict(data or {}),
    )


def mark_read(notification: UserNotification) -> UserNotification:
    if notification.read:
        return notification
    return replace(notification, read=True)
