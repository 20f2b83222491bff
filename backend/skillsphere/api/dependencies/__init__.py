# backend/skillsphere/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_caller_identity, get_current_user, get_identity_provider
from .database import get_db
from .services import (
    get_assistant_service,
    get_availability_service,
    get_booking_service,
    get_chat_client,
    get_feedback_service,
    get_notification_service,
    get_provisioning_service,
    get_session_service,
    get_speech_to_text_client,
    get_text_generator,
    get_transcript_service,
    get_video_client,
)

__all__ = [
    # Auth
    "get_identity_provider",
    "get_caller_identity",
    "get_current_user",
    # Database
    "get_db",
    # Provider clients
    "get_chat_client",
    "get_video_client",
    "get_speech_to_text_client",
    "get_text_generator",
    # Services
    "get_notification_service",
    "get_provisioning_service",
    "get_booking_service",
    "get_availability_service",
    "get_session_service",
    "get_transcript_service",
    "get_assistant_service",
    "get_feedback_service",
]
