"""
Feedback model for SkillSphere.

A learner's rating of a completed booking:
- one feedback per booking, enforced by a unique booking_id
- rating is an integer from 1 to 5
- public listings never expose the learner, so feedback is anonymous by default
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base

MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 1000


class Feedback(Base):
    """Per-booking rating submitted by the learner."""

    __tablename__ = "feedback"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True)
    mentor_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    learner_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False, default="")
    is_anonymous = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    booking = relationship("Booking")
    mentor = relationship("User", foreign_keys=[mentor_id])

    __table_args__ = (
        CheckConstraint(f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}", name="ck_feedback_rating_range"),
        CheckConstraint(f"length(comment) <= {MAX_COMMENT_LENGTH}", name="ck_feedback_comment_length"),
        Index("ix_feedback_mentor_created", "mentor_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Feedback {self.id} booking={self.booking_id} rating={self.rating}>"
