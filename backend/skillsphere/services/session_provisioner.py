# backend/skillsphere/services/session_provisioner.py
"""
Session Provisioning Service for SkillSphere

Creates the chat room and video room identifiers for a confirmed booking and
persists the MentoringSession that holds them.

Provisioning is idempotent per booking:
- an existing session is returned without touching the chat provider
- the chat room id is derived from the booking id, so retries land on the
  same room
- a concurrent insert that loses the unique booking_id race returns the row
  that won
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..core.constants import CHAT_ROOM_PREFIX, VIDEO_ROOM_PREFIX
from ..core.enums import BookingStatus, RoleName, SessionStatus
from ..core.exceptions import (
    ConflictException,
    DuplicateRecordException,
    ExternalServiceException,
    ForbiddenException,
    NotFoundException,
    ServiceException,
)
from ..integrations.base import ProviderError
from ..integrations.stream_chat_client import ChatProvider
from ..models.booking import Booking
from ..models.session import MentoringSession
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def chat_room_id_for(booking_id: str) -> str:
    return f"{CHAT_ROOM_PREFIX}{booking_id}"


def video_room_id_for(booking_id: str, now: datetime) -> str:
    """Video rooms are ephemeral; the timestamp only has to be unique per booking."""
    return f"{VIDEO_ROOM_PREFIX}{booking_id}_{int(now.timestamp() * 1000)}"


class SessionProvisioningService(BaseService):
    """Provisions chat/video rooms for confirmed bookings."""

    def __init__(
        self,
        db: Session,
        chat_client: ChatProvider,
        session_repository: Optional[SessionRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
    ) -> None:
        super().__init__(db)
        self.chat_client = chat_client
        self.session_repository = session_repository or RepositoryFactory.create_session_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self._now = now_fn or (lambda: datetime.now(timezone.utc))

    @BaseService.measure_operation("provision_session")
    def provision(self, booking: Booking) -> MentoringSession:
        """
        Return the session for a confirmed booking, creating it if needed.

        Raises:
            ConflictException: booking is not confirmed
            ExternalServiceException: chat provider failed; nothing was written
        """
        if booking.status != BookingStatus.CONFIRMED.value:
            raise ConflictException(
                "Sessions can only be provisioned for confirmed bookings",
                details={"booking_id": booking.id, "status": booking.status},
            )

        existing = self.session_repository.get_by_booking_id(booking.id)
        if existing is not None:
            prometheus_metrics.record_provisioning("existing")
            self.logger.debug("Session already provisioned for booking %s", booking.id)
            return existing

        chat_room_id = chat_room_id_for(booking.id)
        video_room_id = video_room_id_for(booking.id, self._now())
        mentor = booking.mentor
        learner = booking.learner

        try:
            self.chat_client.upsert_participants(
                [
                    {
                        "id": booking.mentor_id,
                        "name": mentor.full_name if mentor else None,
                        "role": RoleName.MENTOR.value,
                        "image": mentor.avatar_url if mentor else None,
                    },
                    {
                        "id": booking.learner_id,
                        "name": learner.full_name if learner else None,
                        "role": RoleName.LEARNER.value,
                        "image": learner.avatar_url if learner else None,
                    },
                ]
            )
            self.chat_client.create_or_get_room(
                chat_room_id,
                [booking.mentor_id, booking.learner_id],
                {
                    "name": self._room_name(booking),
                    "booking_id": booking.id,
                    "booking_date": booking.booking_date.isoformat(),
                    "booking_time": booking.booking_time,
                },
            )
        except ProviderError as exc:
            prometheus_metrics.record_provisioning("provider_error")
            self.logger.error(
                "Chat provider failed while provisioning booking %s: %s",
                booking.id,
                exc.message,
                extra={"booking_id": booking.id, "provider": exc.provider},
            )
            raise ExternalServiceException(
                "Chat service is temporarily unavailable",
                provider=exc.provider,
                details={"booking_id": booking.id},
            ) from exc

        try:
            with self.transaction():
                session = self.session_repository.create(
                    booking_id=booking.id,
                    mentor_id=booking.mentor_id,
                    learner_id=booking.learner_id,
                    chat_room_id=chat_room_id,
                    video_room_id=video_room_id,
                    status=SessionStatus.UPCOMING.value,
                )
        except DuplicateRecordException:
            winner = self.session_repository.get_by_booking_id(booking.id)
            if winner is None:
                raise ServiceException("Session insert conflicted but no session was found")
            prometheus_metrics.record_provisioning("race_lost")
            self.logger.info("Concurrent provisioning for booking %s resolved to %s", booking.id, winner.id)
            return winner

        prometheus_metrics.record_provisioning("created")
        self.log_operation(
            "provision_session",
            booking_id=booking.id,
            session_id=session.id,
            chat_room_id=chat_room_id,
        )
        return session

    @BaseService.measure_operation("ensure_session")
    def ensure_session(self, booking_id: str, actor_id: str) -> MentoringSession:
        """Participant-facing retry of provisioning for an already confirmed booking."""
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if not booking.is_participant(actor_id):
            raise ForbiddenException("Not authorized to access this booking's session")
        return self.provision(booking)

    @staticmethod
    def _room_name(booking: Booking) -> str:
        mentor_name = booking.mentor.full_name if booking.mentor else "Mentor"
        learner_name = booking.learner.full_name if booking.learner else "Learner"
        return f"Session: {mentor_name} & {learner_name}"
