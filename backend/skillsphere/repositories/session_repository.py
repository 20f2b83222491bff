"""Repository for mentoring session (chat/video room) records."""

from __future__ import annotations

import logging
from typing import List, Optional, cast

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.session import MentoringSession
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SessionRepository(BaseRepository[MentoringSession]):
    """Data access for MentoringSession rows."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, MentoringSession)

    def get_by_booking_id(self, booking_id: str) -> Optional[MentoringSession]:
        try:
            query = self._apply_eager_loading(self._build_query()).filter(
                MentoringSession.booking_id == booking_id
            )
            return cast(Optional[MentoringSession], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting session for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to get session: {str(e)}")

    def get_sessions_for_user(self, user_id: str) -> List[MentoringSession]:
        """Sessions the user takes part in, most recently created first."""
        try:
            query = (
                self._apply_eager_loading(self._build_query())
                .filter(
                    or_(
                        MentoringSession.mentor_id == user_id,
                        MentoringSession.learner_id == user_id,
                    )
                )
                .order_by(MentoringSession.created_at.desc(), MentoringSession.id.desc())
            )
            return cast(List[MentoringSession], query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting sessions for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to get sessions: {str(e)}")

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(MentoringSession.booking),
            joinedload(MentoringSession.mentor),
            joinedload(MentoringSession.learner),
        )


__all__ = ["SessionRepository"]
