"""
Transcript model for recorded mentoring sessions.

One transcript per booking. Segments and the generated summary live in JSON
columns; full_text is always derived from the segment list so the two never
drift apart.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, cast

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import SpeakerRole, TranscriptJobState
from ..database import Base


def render_full_text(segments: list[dict[str, Any]]) -> str:
    """Flatten segments into one '[speaker]: text' line per segment."""
    return "\n".join(f"[{segment.get('speaker', 'unknown')}]: {segment.get('text', '')}" for segment in segments)


class Transcript(Base):
    """Speaker-attributed transcript of one mentoring session."""

    __tablename__ = "transcripts"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    session_id = Column(String(100), nullable=False, unique=True, index=True)

    learner_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    mentor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    learner_name = Column(String(120), nullable=True)
    mentor_name = Column(String(120), nullable=True)

    segments = Column(JSON, nullable=False, default=list)
    full_text = Column(Text, nullable=False, default="")
    duration_seconds = Column(Integer, nullable=False, default=0)

    external_job_state = Column(String(20), nullable=False, default=TranscriptJobState.QUEUED.value)
    provider_job_id = Column(String(100), nullable=True, unique=True)
    webhook_received = Column(Boolean, nullable=False, default=False)
    error_message = Column(Text, nullable=True)

    audio_url = Column(String(500), nullable=True)
    audio_filename = Column(String(255), nullable=True)
    audio_size_bytes = Column(Integer, nullable=True)

    # Provider label -> participant role, set by a participant to override inference
    speaker_labels = Column(JSON, nullable=True)
    summary = Column(JSON, nullable=True)

    session_started_at = Column(DateTime(timezone=True), nullable=False)
    session_ended_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    booking = relationship("Booking")

    __table_args__ = (
        CheckConstraint(
            "external_job_state IN ('queued', 'processing', 'completed', 'error')",
            name="ck_transcripts_job_state",
        ),
    )

    def __repr__(self) -> str:
        return f"<Transcript {self.session_id} state={self.external_job_state}>"

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.learner_id, self.mentor_id)

    def role_of(self, user_id: str) -> Optional[SpeakerRole]:
        if user_id == self.mentor_id:
            return SpeakerRole.MENTOR
        if user_id == self.learner_id:
            return SpeakerRole.LEARNER
        return None

    def replace_segments(self, segments: list[dict[str, Any]]) -> None:
        """Assign a new segment list and recompute full_text from it."""
        # Reassign rather than mutate so the JSON column is flagged dirty
        self.segments = list(segments)
        self.full_text = render_full_text(cast(list[dict[str, Any]], self.segments))


__all__ = ["Transcript", "render_full_text"]
