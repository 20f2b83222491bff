# backend/skillsphere/repositories/factory.py
"""
Repository Factory for SkillSphere

Provides centralized creation of repository instances so services never
construct data access objects directly.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .feedback_repository import FeedbackRepository
    from .notification_repository import NotificationRepository
    from .session_repository import SessionRepository
    from .transcript_repository import TranscriptRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_session_repository(db: Session) -> "SessionRepository":
        """Create repository for chat/video session records."""
        from .session_repository import SessionRepository

        return SessionRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)

    @staticmethod
    def create_transcript_repository(db: Session) -> "TranscriptRepository":
        from .transcript_repository import TranscriptRepository

        return TranscriptRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_feedback_repository(db: Session) -> "FeedbackRepository":
        """Create repository for learner feedback and mentor rating aggregates."""
        from .feedback_repository import FeedbackRepository

        return FeedbackRepository(db)
