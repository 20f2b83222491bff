# backend/skillsphere/models/booking.py
"""
Booking model for the SkillSphere platform.

A booking is a learner's request for a mentoring slot: a mentor, a calendar
date and an hourly slot label. Bookings are never hard-deleted; cancellation
is a status. Status changes go through BookingRepository.transition_status so
that the status check and the write happen in a single conditional UPDATE.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Optional, cast

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus
from ..database import Base

logger = logging.getLogger(__name__)


class Booking(Base):
    """Mentoring slot request between a learner and a mentor."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    mentor_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    learner_id = Column(String(26), ForeignKey("users.id"), nullable=False)

    booking_date = Column(Date, nullable=False, index=True)
    booking_time = Column(String(5), nullable=False)
    message = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    mentor = relationship("User", foreign_keys=[mentor_id])
    learner = relationship("User", foreign_keys=[learner_id])
    session = relationship("MentoringSession", back_populates="booking", uselist=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name="ck_bookings_status",
        ),
        CheckConstraint("length(message) <= 500", name="ck_bookings_message_length"),
        Index("ix_bookings_mentor_created", "mentor_id", "created_at"),
        Index("ix_bookings_learner_created", "learner_id", "created_at"),
        Index("ix_bookings_mentor_date_time", "mentor_id", "booking_date", "booking_time"),
        # At most one live booking per mentor slot
        Index(
            "uq_bookings_active_slot",
            "mentor_id",
            "booking_date",
            "booking_time",
            unique=True,
            sqlite_where=text("status IN ('pending', 'confirmed')"),
            postgresql_where=text("status IN ('pending', 'confirmed')"),
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        logger.info(f"Creating booking for learner {self.learner_id} with mentor {self.mentor_id}")

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: learner={self.learner_id}, mentor={self.mentor_id}, "
            f"date={self.booking_date}, time={self.booking_time}, status={self.status}>"
        )

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.learner_id, self.mentor_id)

    def role_of(self, user_id: str) -> Optional[str]:
        """Return 'mentor' or 'learner' for a participant, None otherwise."""
        if user_id == self.mentor_id:
            return "mentor"
        if user_id == self.learner_id:
            return "learner"
        return None

    def counterpart_of(self, user_id: str) -> str:
        return cast(str, self.learner_id if user_id == self.mentor_id else self.mentor_id)
