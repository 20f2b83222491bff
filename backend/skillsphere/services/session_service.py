# backend/skillsphere/services/session_service.py
"""
Session Service for SkillSphere

Participant-facing lifecycle of a provisioned session: lookup, the
conversation list, join/leave with video tokens, notes and chat tokens.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BookingStatus, RoleName, SessionStatus
from ..core.exceptions import (
    ConflictException,
    ExternalServiceException,
    ForbiddenException,
    NotFoundException,
)
from ..integrations.base import ProviderError
from ..integrations.hundredms_client import VideoProvider
from ..integrations.stream_chat_client import ChatProvider
from ..models.session import MentoringSession
from ..models.user import User
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService

logger = logging.getLogger(__name__)

# 100ms template roles
VIDEO_ROLE_BY_PARTICIPANT = {"mentor": "host", "learner": "guest"}


class SessionService(BaseService):
    """Join/leave, notes and token issuance for mentoring sessions."""

    def __init__(
        self,
        db: Session,
        chat_client: ChatProvider,
        video_client: VideoProvider,
        session_repository: Optional[SessionRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        video_token_ttl_seconds: Optional[int] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
    ) -> None:
        super().__init__(db)
        self.chat_client = chat_client
        self.video_client = video_client
        self.session_repository = session_repository or RepositoryFactory.create_session_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.video_token_ttl_seconds = video_token_ttl_seconds or settings.video_token_ttl_seconds
        self._now = now_fn or (lambda: datetime.now(timezone.utc))

    @BaseService.measure_operation("get_session_for_booking")
    def get_session_for_booking(self, booking_id: str, user_id: str) -> MentoringSession:
        booking = self.booking_repository.get_by_id(booking_id, load_relationships=False)
        if booking is None:
            raise NotFoundException("Booking not found")
        if not booking.is_participant(user_id):
            raise ForbiddenException("Not authorized")

        session = self.session_repository.get_by_booking_id(booking_id)
        if session is None:
            raise NotFoundException("Session not found")
        return session

    @BaseService.measure_operation("get_conversations")
    def get_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        """One entry per session, described from the caller's side."""
        conversations: List[Dict[str, Any]] = []
        for session in self.session_repository.get_sessions_for_user(user_id):
            is_mentor = session.mentor_id == user_id
            other: Optional[User] = session.learner if is_mentor else session.mentor
            booking = session.booking
            conversations.append(
                {
                    "session_id": session.id,
                    "booking_id": session.booking_id,
                    "chat_room_id": session.chat_room_id,
                    "video_room_id": session.video_room_id,
                    "session_status": session.status,
                    "other_participant": {
                        "id": other.id if other else None,
                        "name": other.full_name if other else None,
                        "avatar_url": other.avatar_url if other else None,
                        "role": RoleName.LEARNER.value if is_mentor else RoleName.MENTOR.value,
                    },
                    "booking": {
                        "date": booking.booking_date if booking else None,
                        "time": booking.booking_time if booking else None,
                        "status": booking.status if booking else None,
                        "message": booking.message if booking else None,
                    },
                    "created_at": session.created_at,
                }
            )
        return conversations

    @BaseService.measure_operation("join_session")
    def join_session(self, session_id: str, user_id: str) -> Dict[str, Any]:
        """
        Stamp the caller's join time and hand back a video room token.

        The first join by either participant moves the session to in_progress.
        Only sessions whose booking is still confirmed can be joined.
        """
        session = self._get_for_participant(session_id, user_id)
        self._require_confirmed_booking(session, "join")
        role = session.role_of(user_id) or RoleName.LEARNER.value

        try:
            token = self.video_client.issue_room_token(
                session.video_room_id,
                user_id,
                VIDEO_ROLE_BY_PARTICIPANT[role],
                self.video_token_ttl_seconds,
            )
        except ProviderError as exc:
            self.logger.error("Video token issuance failed for session %s: %s", session_id, exc.message)
            raise ExternalServiceException(
                "Video service is temporarily unavailable",
                provider=exc.provider,
                details={"session_id": session_id},
            ) from exc

        now = self._now()
        with self.transaction():
            if role == RoleName.MENTOR.value:
                session.mentor_joined_at = now
            else:
                session.learner_joined_at = now
            if session.status == SessionStatus.UPCOMING.value:
                session.status = SessionStatus.IN_PROGRESS.value
                session.started_at = now

        self.log_operation("join_session", session_id=session_id, role=role)
        return {
            "session": session,
            "video_token": token,
            "video_room_id": session.video_room_id,
            "role": role,
        }

    @BaseService.measure_operation("leave_session")
    def leave_session(self, session_id: str, user_id: str) -> MentoringSession:
        """
        Close the session and complete its booking if it is still confirmed.

        A session already in progress when its booking was cancelled can still
        be closed; one that never started cannot.
        """
        session = self._get_for_participant(session_id, user_id)
        if session.status == SessionStatus.UPCOMING.value:
            self._require_confirmed_booking(session, "leave")
        now = self._now()
        with self.transaction():
            if session.status != SessionStatus.COMPLETED.value:
                session.mark_completed(now)
            self.booking_repository.transition_status(
                session.booking_id,
                [BookingStatus.CONFIRMED],
                BookingStatus.COMPLETED,
                completed_at=now,
                updated_at=now,
            )

        self.log_operation("leave_session", session_id=session_id, duration_minutes=session.duration_minutes)
        return session

    @BaseService.measure_operation("update_session_notes")
    def update_notes(self, session_id: str, user_id: str, notes: str) -> MentoringSession:
        session = self._get_for_participant(session_id, user_id)
        with self.transaction():
            session.notes = notes
        return session

    @BaseService.measure_operation("issue_chat_token")
    def issue_chat_token(self, user: User) -> Dict[str, Any]:
        """Register the caller with the chat provider and sign a client token."""
        role = RoleName.MENTOR.value if user.is_mentor else RoleName.LEARNER.value
        try:
            self.chat_client.upsert_participants(
                [{"id": user.id, "name": user.full_name, "role": role, "image": user.avatar_url}]
            )
            token = self.chat_client.issue_user_token(user.id)
        except ProviderError as exc:
            self.logger.error("Chat token issuance failed for user %s: %s", user.id, exc.message)
            raise ExternalServiceException(
                "Chat service is temporarily unavailable", provider=exc.provider
            ) from exc

        return {
            "token": token,
            "user_id": user.id,
            "api_key": settings.stream_api_key,
        }

    def _get_for_participant(self, session_id: str, user_id: str) -> MentoringSession:
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise NotFoundException("Session not found")
        if not session.is_participant(user_id):
            raise ForbiddenException("Not authorized")
        return session

    @staticmethod
    def _require_confirmed_booking(session: MentoringSession, action: str) -> None:
        booking = session.booking
        if booking is None or booking.status != BookingStatus.CONFIRMED.value:
            raise ConflictException(
                f"Cannot {action} a session whose booking is not confirmed",
                details={
                    "session_id": session.id,
                    "booking_status": booking.status if booking else None,
                },
            )
