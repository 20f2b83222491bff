# backend/skillsphere/services/notification_service.py
"""
Notification Service for SkillSphere

Writes in-app inbox entries for booking lifecycle events and serves the
inbox. Emission is best-effort: a failed write is logged and swallowed so the
booking transition that triggered it is never affected.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.enums import NotificationType
from ..core.exceptions import NotFoundException
from ..models.notification import Notification
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.notification_repository import NotificationRepository
from .base import BaseService
from .notification_templates import NOTIFICATION_TEMPLATES, NotificationContext

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """Inbox writer and reader."""

    def __init__(
        self,
        db: Session,
        notification_repository: Optional[NotificationRepository] = None,
    ) -> None:
        super().__init__(db)
        self.notification_repository = (
            notification_repository or RepositoryFactory.create_notification_repository(db)
        )

    @BaseService.measure_operation("emit_notification")
    def emit(
        self,
        user_id: str,
        notification_type: NotificationType | str,
        booking_id: str,
        context: NotificationContext,
    ) -> Optional[Notification]:
        """
        Persist one inbox entry inside a SAVEPOINT.

        Returns the notification, or None when it could not be written. The
        caller's transaction is left intact either way.
        """
        type_value = getattr(notification_type, "value", notification_type)
        try:
            template = NOTIFICATION_TEMPLATES[NotificationType(type_value)]
            message = template.render(context)
            with self.db.begin_nested():
                notification = self.notification_repository.create(
                    user_id=user_id,
                    type=template.type.value,
                    booking_id=booking_id,
                    message=message,
                    read=False,
                    mentor_name=context.mentor_name,
                    learner_name=context.learner_name,
                    booking_date=context.booking_date,
                    booking_time=context.booking_time,
                )
        except Exception as exc:
            self.logger.error(
                "Failed to emit %s notification for booking %s: %s",
                type_value,
                booking_id,
                exc,
                exc_info=True,
            )
            prometheus_metrics.record_notification(str(type_value), "failed")
            return None

        prometheus_metrics.record_notification(template.type.value, "stored")
        self.log_operation(
            "emit_notification",
            notification_type=template.type.value,
            booking_id=booking_id,
            recipient_id=user_id,
        )
        return notification

    @BaseService.measure_operation("list_notifications")
    def list_notifications(self, user_id: str, limit: int = DEFAULT_NOTIFICATION_LIMIT) -> Dict[str, Any]:
        """Most recent entries first, with the caller's total unread count."""
        notifications = self.notification_repository.get_user_notifications(user_id, limit=limit)
        unread_count = self.notification_repository.get_unread_count(user_id)
        return {"notifications": notifications, "unread_count": unread_count}

    @BaseService.measure_operation("mark_notification_read")
    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        with self.transaction():
            notification = self.notification_repository.mark_as_read(user_id, notification_id)
            if notification is None:
                raise NotFoundException("Notification not found")
        return notification

    @BaseService.measure_operation("mark_all_notifications_read")
    def mark_all_read(self, user_id: str) -> int:
        with self.transaction():
            updated = self.notification_repository.mark_all_as_read(user_id)
        self.log_operation("mark_all_notifications_read", user_id=user_id, updated=updated)
        return updated
