# backend/skillsphere/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
All new endpoints should be added here.
"""

from . import assistant, bookings, chat, feedback, sessions, transcripts

__all__ = [
    "assistant",
    "bookings",
    "chat",
    "feedback",
    "sessions",
    "transcripts",
]
