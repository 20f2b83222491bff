"""Repository for session transcripts."""

from __future__ import annotations

from typing import List, Optional, Tuple, cast

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.transcript import Transcript
from .base_repository import BaseRepository


class TranscriptRepository(BaseRepository[Transcript]):
    """Data access for Transcript rows."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Transcript)

    def get_by_booking_id(self, booking_id: str) -> Optional[Transcript]:
        return self.find_one_by(booking_id=booking_id)

    def get_by_session_id(self, session_id: str) -> Optional[Transcript]:
        return self.find_one_by(session_id=session_id)

    def get_by_provider_job_id(self, provider_job_id: str) -> Optional[Transcript]:
        return self.find_one_by(provider_job_id=provider_job_id)

    def list_for_participant(self, user_id: str, page: int = 1, limit: int = 10) -> Tuple[List[Transcript], int]:
        """One page of the user's transcripts, newest first, plus the total count."""
        query = self.db.query(Transcript).filter(
            or_(Transcript.learner_id == user_id, Transcript.mentor_id == user_id)
        )
        total = query.count()
        items = (
            query.order_by(Transcript.created_at.desc(), Transcript.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return cast(List[Transcript], items), total
