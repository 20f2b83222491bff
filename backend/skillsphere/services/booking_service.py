# backend/skillsphere/services/booking_service.py
"""
Booking Service for SkillSphere

Owns the booking state machine:

    pending -> confirmed -> completed
    pending -> cancelled
    confirmed -> cancelled   (mentor only)

Every transition is a guarded UPDATE keyed on the expected prior status, so
a second concurrent caller gets a ConflictException instead of applying the
transition twice. Side effects run after the status change is committed:
session provisioning and notifications may fail without undoing it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
import logging
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_BOOKING_MESSAGE_LENGTH
from ..core.enums import BookingStatus, NotificationType
from ..core.exceptions import (
    BookingConflictException,
    DuplicateRecordException,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from ..models.booking import Booking
from ..models.session import MentoringSession
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from ..repositories.user_repository import UserRepository
from .availability_service import daily_slot_grid
from .base import BaseService
from .notification_service import NotificationService
from .notification_templates import NotificationContext
from .session_provisioner import SessionProvisioningService

logger = logging.getLogger(__name__)

PROVISIONING_WARNING = (
    "Booking confirmed, but the chat room could not be set up yet. "
    "It will be created when you open the session."
)


@dataclass
class BookingActionResult:
    """Outcome of a transition plus any auxiliary side-effect warning."""

    booking: Booking
    session: Optional[MentoringSession] = None
    warning: Optional[str] = None


class BookingService(BaseService):
    """Booking lifecycle: creation, guarded transitions and participant reads."""

    def __init__(
        self,
        db: Session,
        provisioning_service: SessionProvisioningService,
        notification_service: Optional[NotificationService] = None,
        repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
        session_repository: Optional[SessionRepository] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            provisioning_service: Creates chat/video rooms after confirmation
            notification_service: Optional notification service instance
            repository: Optional BookingRepository instance
            user_repository: Optional UserRepository instance
            session_repository: Optional SessionRepository instance
            now_fn: Clock returning an aware UTC datetime
        """
        super().__init__(db)
        self.provisioning_service = provisioning_service
        self.notification_service = notification_service or NotificationService(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.session_repository = session_repository or RepositoryFactory.create_session_repository(db)
        self._now = now_fn or (lambda: datetime.now(timezone.utc))

    # ── Creation ────────────────────────────────────────────────────────

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        learner_id: str,
        mentor_id: Optional[str],
        booking_date: Optional[date],
        booking_time: Optional[str],
        message: Optional[str] = None,
    ) -> Booking:
        """
        Create a pending booking and notify the mentor.

        Raises:
            NotFoundException: learner account is unknown
            ForbiddenException: caller does not hold the learner role
            ValidationException: missing fields, bad slot, past date, long message
                or mentor not bookable
            BookingConflictException: slot already held by a live booking
        """
        learner = self.user_repository.get_active(learner_id)
        if learner is None:
            raise NotFoundException("User not found")
        if not learner.is_learner:
            raise ForbiddenException("Only learners can create bookings")

        if not mentor_id or booking_date is None or not booking_time:
            raise ValidationException("Mentor, date, and time are required")
        if booking_time not in daily_slot_grid():
            raise ValidationException(
                "Time must be one of the hourly slots",
                details={"booking_time": booking_time, "slots": daily_slot_grid()},
            )
        if message is not None and len(message) > MAX_BOOKING_MESSAGE_LENGTH:
            raise ValidationException(
                f"Message cannot exceed {MAX_BOOKING_MESSAGE_LENGTH} characters"
            )

        hour, minute = (int(part) for part in booking_time.split(":"))
        starts_at = datetime.combine(booking_date, time(hour, minute), tzinfo=timezone.utc)
        if starts_at <= self._now():
            raise ValidationException("Booking date must be in the future")

        if mentor_id == learner_id:
            raise ValidationException("You cannot book a session with yourself")
        mentor = self.user_repository.get_active(mentor_id)
        if mentor is None or not mentor.is_bookable_mentor:
            raise ValidationException("Mentor not found or not available for booking")

        if self.repository.is_slot_taken(mentor_id, booking_date, booking_time):
            raise BookingConflictException(
                details={"mentor_id": mentor_id, "date": booking_date.isoformat(), "time": booking_time}
            )

        try:
            with self.transaction():
                booking = self.repository.create(
                    mentor_id=mentor_id,
                    learner_id=learner_id,
                    booking_date=booking_date,
                    booking_time=booking_time,
                    message=message or "",
                    status=BookingStatus.PENDING.value,
                )
                self.notification_service.emit(
                    mentor_id,
                    NotificationType.NEW_BOOKING_REQUEST,
                    booking.id,
                    NotificationContext(
                        mentor_name=mentor.full_name,
                        learner_name=learner.full_name,
                        booking_date=booking_date,
                        booking_time=booking_time,
                    ),
                )
        except DuplicateRecordException as exc:
            raise BookingConflictException(
                details={"mentor_id": mentor_id, "date": booking_date.isoformat(), "time": booking_time}
            ) from exc

        self.log_operation("create_booking", booking_id=booking.id, mentor_id=mentor_id, learner_id=learner_id)
        return booking

    # ── Mentor decisions ────────────────────────────────────────────────

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, booking_id: str, actor_id: str) -> BookingActionResult:
        """
        Confirm a pending booking, then provision its session and notify the learner.

        The confirmation is committed before provisioning starts. A provisioning
        failure is logged and reported as ``warning``; the booking stays confirmed
        and provisioning can be retried through SessionProvisioningService.ensure_session.
        """
        booking = self._get_booking_or_404(booking_id)
        if actor_id != booking.mentor_id:
            raise ForbiddenException("You can only confirm your own bookings")
        self._require_status(booking, BookingStatus.PENDING, "Only pending bookings can be confirmed")

        now = self._now()
        with self.transaction():
            self._apply_transition(
                booking,
                [BookingStatus.PENDING],
                BookingStatus.CONFIRMED,
                confirmed_at=now,
                updated_at=now,
            )

        result = BookingActionResult(booking=booking)
        try:
            result.session = self.provisioning_service.provision(booking)
        except Exception as exc:
            self.logger.error(
                "Provisioning failed after confirming booking %s: %s",
                booking_id,
                exc,
                exc_info=True,
                extra={"booking_id": booking_id},
            )
            result.warning = PROVISIONING_WARNING

        with self.transaction():
            self._notify(booking, booking.learner_id, NotificationType.BOOKING_CONFIRMED)
        self.log_operation("confirm_booking", booking_id=booking_id, provisioned=result.session is not None)
        return result

    @BaseService.measure_operation("reject_booking")
    def reject_booking(self, booking_id: str, actor_id: str) -> BookingActionResult:
        booking = self._get_booking_or_404(booking_id)
        if actor_id != booking.mentor_id:
            raise ForbiddenException("You can only reject your own bookings")
        self._require_status(booking, BookingStatus.PENDING, "Only pending bookings can be rejected")

        now = self._now()
        with self.transaction():
            self._apply_transition(
                booking,
                [BookingStatus.PENDING],
                BookingStatus.CANCELLED,
                cancelled_at=now,
                cancelled_by_id=actor_id,
                cancellation_reason="rejected",
                updated_at=now,
            )
            self._notify(booking, booking.learner_id, NotificationType.BOOKING_REJECTED)

        self.log_operation("reject_booking", booking_id=booking_id)
        return BookingActionResult(booking=booking)

    # ── Either participant ──────────────────────────────────────────────

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self, booking_id: str, actor_id: str, reason: Optional[str] = None
    ) -> BookingActionResult:
        """
        Cancel a booking on behalf of one participant and notify the other.

        Learners may only withdraw pending requests; mentors may also cancel
        confirmed bookings.
        """
        booking = self._get_booking_or_404(booking_id)
        if not booking.is_participant(actor_id):
            raise ForbiddenException("You can only cancel your own bookings")
        if booking.status_enum.is_terminal:
            raise InvalidTransitionException(
                "Cannot cancel completed or already cancelled bookings",
                current_status=booking.status,
            )

        if actor_id == booking.mentor_id:
            expected = [BookingStatus.PENDING, BookingStatus.CONFIRMED]
        else:
            if booking.status == BookingStatus.CONFIRMED.value:
                raise ForbiddenException(
                    "Learners can only cancel pending bookings; ask your mentor to cancel a confirmed session",
                    details={"current_status": booking.status},
                )
            expected = [BookingStatus.PENDING]

        actor = booking.mentor if actor_id == booking.mentor_id else booking.learner
        now = self._now()
        with self.transaction():
            self._apply_transition(
                booking,
                expected,
                BookingStatus.CANCELLED,
                cancelled_at=now,
                cancelled_by_id=actor_id,
                cancellation_reason=reason,
                updated_at=now,
            )
            self._notify(
                booking,
                booking.counterpart_of(actor_id),
                NotificationType.BOOKING_CANCELLED,
                actor_name=actor.full_name if actor else None,
            )

        self.log_operation("cancel_booking", booking_id=booking_id, cancelled_by=booking.role_of(actor_id))
        return BookingActionResult(booking=booking)

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, booking_id: str, actor_id: str) -> BookingActionResult:
        booking = self._get_booking_or_404(booking_id)
        if not booking.is_participant(actor_id):
            raise ForbiddenException("You can only complete your own bookings")
        self._require_status(booking, BookingStatus.CONFIRMED, "Only confirmed bookings can be completed")

        now = self._now()
        with self.transaction():
            self._apply_transition(
                booking,
                [BookingStatus.CONFIRMED],
                BookingStatus.COMPLETED,
                completed_at=now,
                updated_at=now,
            )

        result = BookingActionResult(booking=booking)
        try:
            with self.transaction():
                session = self.session_repository.get_by_booking_id(booking_id)
                if session is not None and session.ended_at is None:
                    session.mark_completed(now)
                result.session = session
        except Exception as exc:
            self.logger.error(
                "Could not close session for completed booking %s: %s",
                booking_id,
                exc,
                exc_info=True,
            )
            result.warning = "Booking completed, but the session record could not be closed."

        self.log_operation("complete_booking", booking_id=booking_id)
        return result

    # ── Reads ───────────────────────────────────────────────────────────

    @BaseService.measure_operation("get_bookings_for_user")
    def get_bookings_for_user(
        self, user_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        return self.repository.get_bookings_for_user(user_id, status=status)

    @BaseService.measure_operation("get_booking_for_user")
    def get_booking_for_user(self, booking_id: str, user_id: str) -> Booking:
        booking = self._get_booking_or_404(booking_id)
        if not booking.is_participant(user_id):
            raise ForbiddenException("Access denied")
        return booking

    # ── Helpers ─────────────────────────────────────────────────────────

    def _get_booking_or_404(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    @staticmethod
    def _require_status(booking: Booking, expected: BookingStatus, message: str) -> None:
        if booking.status != expected.value:
            raise InvalidTransitionException(message, current_status=booking.status)

    def _apply_transition(
        self,
        booking: Booking,
        expected: List[BookingStatus],
        target: BookingStatus,
        **fields: object,
    ) -> None:
        """Run the guarded UPDATE; losing the race is a conflict for the caller."""
        if not self.repository.transition_status(booking.id, expected, target, **fields):
            prometheus_metrics.record_booking_transition(target.value, "conflict")
            self.db.refresh(booking)
            raise InvalidTransitionException(
                "Booking was updated by another request",
                current_status=booking.status,
            )
        prometheus_metrics.record_booking_transition(target.value, "applied")

    def _notify(
        self,
        booking: Booking,
        recipient_id: str,
        notification_type: NotificationType,
        actor_name: Optional[str] = None,
    ) -> None:
        """Emit within the caller's transaction; the emitter swallows its own failures."""
        context = NotificationContext.from_booking(booking, actor_name=actor_name)
        self.notification_service.emit(recipient_id, notification_type, booking.id, context)
