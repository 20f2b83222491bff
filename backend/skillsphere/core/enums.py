# backend/skillsphere/core/enums.py
"""
Core enums for the SkillSphere platform.

Status values are stored as their lowercase string values so they line up
with the values exchanged with the frontend.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles issued by the identity provider."""

    ADMIN = "admin"
    MENTOR = "mentor"
    LEARNER = "learner"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.CANCELLED, BookingStatus.COMPLETED)


class SessionStatus(str, Enum):
    """Live meeting statuses for a provisioned session."""

    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class NotificationType(str, Enum):
    """Booking lifecycle events surfaced in the notification inbox."""

    NEW_BOOKING_REQUEST = "new_booking_request"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLED = "booking_cancelled"


class TranscriptJobState(str, Enum):
    """Speech-to-text pipeline state for a transcript."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class SpeakerRole(str, Enum):
    LEARNER = "learner"
    MENTOR = "mentor"
    UNKNOWN = "unknown"
