"""
In-app notification use cases (list / mark read)
"""
from sqlalchemy.orm import Session

from sailsync.application.errors import NotFoundError, StoreWriteError
from sailsync.domain.notification import UserNotification, mark_read
from sailsync.domain.state import COLLECTION_NOTIFICATIONS
from sailsync.infrastructure.store import SqlStateStore


def list_notifications(db: Session, user_id: str, unread_only: bool = False) -> list[UserNotification]:
    """Newest first."""
    items = SqlStateStore(db).load().notifications_for(user_id)
    if unread_only:
        items = [n for n in items if not n.read]
    return items


def count_unread(db: Session, user_id: str) -> int:
    return len(list_notifications(db, user_id, unread_only=True))


class MarkNotificationReadUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = SqlStateStore(db)

    def execute(self, notification_id: str, user_id: str) -> UserNotification:
        state = self.store.load()
        notification = state.notification(notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundError(f"Notification {notification_id} not found")
        if notification.read:
            return notification
        updated = mark_read(notification)
        if not self.store.save(COLLECTION_NOTIFICATIONS, [updated]):
            raise StoreWriteError("Could not save notification")
        self.db.commit()
        return updated


class MarkAllReadUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.store = SqlStateStore(db)

    def execute(self, user_id: str) -> int:
        state = self.store.load()
        unread = [mark_read(n) for n in state.notifications_for(user_id) if not n.read]
        if not unread:
            return 0
        if not self.store.save(COLLECTION_NOTIFICATIONS, unread):
            raise StoreWriteError("Could not save notifications")
        self.db.commit()
        return len(unread)
