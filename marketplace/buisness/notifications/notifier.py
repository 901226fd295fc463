"""
Best-effort notification dispatch.

Business operations queue a ``PendingNotification`` while they run and call
``NotificationDispatcher.dispatch`` after their own commit. Delivery failures
are logged and swallowed so they never undo or fail the primary operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from marketplace import db
from marketplace.data.notifications.notification import Notification
from marketplace.buisness.errors import NotFound
from marketplace.logger import get_logger

logger = get_logger("marketplace.notifications")


class Notifier(Protocol):
    def notify(self, user_id: int, event_type: str, title: str, message: str,
               data: Optional[Dict[str, Any]] = None) -> None:
        ...


@dataclass(frozen=True)
class PendingNotification:
    user_id: int
    event_type: str
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


class DatabaseNotifier:
    """Persists notifications as in-app Notification rows"""

    def notify(self, user_id, event_type, title, message, data=None):
        notification = Notification(
            user_id=user_id,
            type=event_type,
            title=title,
            message=message,
            data=dict(data or {}),
        )
        db.session.add(notification)
        db.session.commit()
        logger.debug(f"Notification '{event_type}' stored for user {user_id}")


class NotificationDispatcher:
    """Sends queued notifications through a Notifier without propagating failures"""

    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier or DatabaseNotifier()

    def dispatch(self, pending: List[PendingNotification]) -> int:
        """
        Deliver every queued notification.

        Returns:
            int: Number of notifications delivered successfully
        """
        delivered = 0
        for item in pending:
            try:
                self.notifier.notify(item.user_id, item.event_type, item.title, item.message, item.data)
                delivered += 1
            except Exception:
                db.session.rollback()
                logger.exception(
                    f"Notification '{item.event_type}' for user {item.user_id} could not be delivered"
                )
        return delivered


_default_notifier: Optional[Notifier] = None


def set_default_notifier(notifier: Optional[Notifier]) -> None:
    """Replace the process-wide notifier (None restores the database notifier)"""
    global _default_notifier
    _default_notifier = notifier


def get_dispatcher(notifier: Optional[Notifier] = None) -> NotificationDispatcher:
    return NotificationDispatcher(notifier or _default_notifier)


def mark_read(actor, notification_id: Optional[int] = None) -> int:
    """
    Mark one of the actor's notifications (or all of them) as read.

    Returns:
        int: Number of notifications updated
    """
    query = Notification.query.filter_by(user_id=actor.id, read=False)
    if notification_id is not None:
        notification = db.session.get(Notification, notification_id)
        if notification is None or notification.user_id != actor.id:
            raise NotFound(f"Notification {notification_id} not found")
        query = query.filter(Notification.id == notification_id)
    try:
        updated = query.update({'read': True}, synchronize_session=False)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return updated
