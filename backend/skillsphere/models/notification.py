"""
Notification model for SkillSphere.

In-app inbox entries for booking lifecycle events. Participant names and the
booking date/time are snapshotted when the entry is written and are never
re-derived from the current user records.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base

NOTIFICATION_TYPES = (
    "new_booking_request",
    "booking_confirmed",
    "booking_rejected",
    "booking_cancelled",
)


class Notification(Base):
    """In-app notification inbox entry."""

    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(50), nullable=False)
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)

    mentor_name = Column(String(120), nullable=True)
    learner_name = Column(String(120), nullable=True)
    booking_date = Column(Date, nullable=True)
    booking_time = Column(String(5), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "type IN ('new_booking_request', 'booking_confirmed', 'booking_rejected', 'booking_cancelled')",
            name="ck_notifications_type",
        ),
        Index("ix_notifications_user_read", "user_id", "read"),
        Index("ix_notifications_user_created_at", "user_id", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Notification {self.id} {self.type} -> {self.user_id} read={self.read}>"


__all__ = ["Notification", "NOTIFICATION_TYPES"]
