"""Mentoring session satellite table: chat/video rooms for a confirmed booking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, cast

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import SessionStatus
from ..database import Base


class MentoringSession(Base):
    """Live-meeting record created once per confirmed booking."""

    __tablename__ = "sessions"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    mentor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    learner_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    # Provider room identifiers, both set before the row is written
    chat_room_id = Column(String(100), nullable=False)
    video_room_id = Column(String(100), nullable=False)

    status = Column(String(20), nullable=False, default=SessionStatus.UPCOMING.value)

    mentor_joined_at = Column(DateTime(timezone=True), nullable=True)
    learner_joined_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    booking = relationship("Booking", back_populates="session")
    mentor = relationship("User", foreign_keys=[mentor_id])
    learner = relationship("User", foreign_keys=[learner_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('upcoming', 'in_progress', 'completed')",
            name="ck_sessions_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<MentoringSession booking={self.booking_id} chat={self.chat_room_id}>"

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.mentor_id, self.learner_id)

    def role_of(self, user_id: str) -> str | None:
        if user_id == self.mentor_id:
            return "mentor"
        if user_id == self.learner_id:
            return "learner"
        return None

    def mark_completed(self, ended_at: datetime) -> None:
        """Close the session; duration is whole minutes since start, 0 if it never started."""
        self.status = SessionStatus.COMPLETED.value
        self.ended_at = ended_at
        started_at = cast(Optional[datetime], self.started_at)
        if started_at is None:
            self.duration_minutes = 0
            return
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)
        elapsed = (ended_at - started_at).total_seconds()
        self.duration_minutes = max(0, int(elapsed // 60))
