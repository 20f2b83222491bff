"""
Database models for the SkillSphere platform.

- User: learners, mentors and their approval flags
- Booking: slot requests and their lifecycle
- MentoringSession: chat/video rooms for a confirmed booking
- Notification: in-app inbox entries
- Transcript: recorded session transcripts and summaries
- Feedback: learner ratings of completed bookings
"""

from .booking import Booking
from .feedback import Feedback
from .notification import NOTIFICATION_TYPES, Notification
from .session import MentoringSession
from .transcript import Transcript
from .user import User

__all__ = [
    "Booking",
    "Feedback",
    "MentoringSession",
    "NOTIFICATION_TYPES",
    "Notification",
    "Transcript",
    "User",
]
