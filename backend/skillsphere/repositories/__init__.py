# backend/skillsphere/repositories/__init__.py
"""
Repository Pattern Implementation for SkillSphere

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from skillsphere.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_booking_repository(db)
    bookings = repository.get_bookings_for_user(user_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .feedback_repository import FeedbackRepository
from .notification_repository import NotificationRepository
from .session_repository import SessionRepository
from .transcript_repository import TranscriptRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "FeedbackRepository",
    "NotificationRepository",
    "RepositoryFactory",
    "SessionRepository",
    "TranscriptRepository",
    "UserRepository",
]
