"""Repository for in-app notification inbox entries."""

from __future__ import annotations

from typing import List, Optional, cast

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.notification import Notification
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Data access for inbox entries."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Notification)

    def get_user_notifications(self, user_id: str, limit: int = 20) -> List[Notification]:
        query = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return cast(List[Notification], query.all())

    def get_unread_count(self, user_id: str) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .count()
        )

    def get_user_notification(self, user_id: str, notification_id: str) -> Optional[Notification]:
        query = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        return cast(Optional[Notification], query.first())

    def mark_as_read(self, user_id: str, notification_id: str) -> Optional[Notification]:
        notification = self.get_user_notification(user_id, notification_id)
        if notification is None:
            return None
        if not notification.read:
            notification.read = True
            self.db.flush()
        return notification

    def mark_all_as_read(self, user_id: str) -> int:
        try:
            result = self.db.execute(
                update(Notification)
                .where(Notification.user_id == user_id, Notification.read.is_(False))
                .values(read=True)
                .execution_options(synchronize_session="fetch")
            )
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking notifications read for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to mark notifications read: {str(e)}")
