"""
Notification Service
Read-side queries for a user's in-app notifications.
"""

from typing import List

from marketplace.data.notifications.notification import Notification


class NotificationService:

    @staticmethod
    def for_user(user_id: int, unread_only: bool = False) -> List[Notification]:
        query = Notification.query.filter_by(user_id=user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()

    @staticmethod
    def unread_count(user_id: int) -> int:
        return Notification.query.filter_by(user_id=user_id).filter(Notification.read.is_(False)).count()
