# backend/skillsphere/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. Provider clients are
process-wide; a provider that is disabled or missing credentials gets its
in-memory fake so the capability is always present.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...integrations import (
    AssemblyAIClient,
    ChatProvider,
    DisabledTextGenerator,
    FakeAssemblyAIClient,
    FakeHundredMsClient,
    FakeStreamChatClient,
    GeminiClient,
    HundredMsClient,
    SpeechToTextProvider,
    StreamChatClient,
    TextGenerator,
    VideoProvider,
)
from ...services.assistant_service import AssistantService
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.feedback_service import FeedbackService
from ...services.notification_service import NotificationService
from ...services.session_provisioner import SessionProvisioningService
from ...services.session_service import SessionService
from ...services.transcript_service import TranscriptService
from .database import get_db

logger = logging.getLogger(__name__)


# ── Provider clients ────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_chat_client() -> ChatProvider:
    """Stream Chat client, or the in-memory fake when chat is disabled."""
    if settings.stream_enabled and settings.stream_api_key and settings.stream_api_secret:
        return StreamChatClient(
            api_key=settings.stream_api_key,
            api_secret=settings.stream_api_secret,
            base_url=settings.stream_base_url,
            timeout=settings.external_timeout_seconds,
        )
    logger.info("Chat provider disabled, using FakeStreamChatClient", extra={"provider": "stream"})
    return FakeStreamChatClient()


@lru_cache(maxsize=1)
def get_video_client() -> VideoProvider:
    """100ms client, or the in-memory fake when video is disabled."""
    if settings.hundredms_enabled and settings.hundredms_access_key and settings.hundredms_app_secret:
        return HundredMsClient(
            access_key=settings.hundredms_access_key,
            app_secret=settings.hundredms_app_secret,
            base_url=settings.hundredms_base_url,
            template_id=settings.hundredms_template_id or None,
            timeout=settings.external_timeout_seconds,
        )
    logger.info("Video provider disabled, using FakeHundredMsClient", extra={"provider": "100ms"})
    return FakeHundredMsClient()


@lru_cache(maxsize=1)
def get_speech_to_text_client() -> SpeechToTextProvider:
    """AssemblyAI client, or the in-memory fake when transcription is disabled."""
    if settings.assemblyai_enabled and settings.assemblyai_api_key:
        return AssemblyAIClient(
            api_key=settings.assemblyai_api_key,
            base_url=settings.assemblyai_base_url,
            timeout=settings.external_timeout_seconds,
        )
    logger.info("Speech-to-text disabled, using FakeAssemblyAIClient", extra={"provider": "assemblyai"})
    return FakeAssemblyAIClient()


@lru_cache(maxsize=1)
def get_text_generator() -> TextGenerator:
    """Gemini client; without an API key every call falls back to static answers."""
    if settings.gemini_api_key:
        return GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.external_timeout_seconds,
        )
    return DisabledTextGenerator()


# ── Services ────────────────────────────────────────────────────────


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_provisioning_service(
    db: Session = Depends(get_db),
    chat_client: ChatProvider = Depends(get_chat_client),
) -> SessionProvisioningService:
    return SessionProvisioningService(db, chat_client)


def get_booking_service(
    db: Session = Depends(get_db),
    provisioning_service: SessionProvisioningService = Depends(get_provisioning_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        provisioning_service: Creates chat/video rooms on confirmation
        notification_service: Persists in-app notifications

    Returns:
        BookingService instance
    """
    return BookingService(db, provisioning_service, notification_service)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_session_service(
    db: Session = Depends(get_db),
    chat_client: ChatProvider = Depends(get_chat_client),
    video_client: VideoProvider = Depends(get_video_client),
) -> SessionService:
    return SessionService(
        db,
        chat_client,
        video_client,
        video_token_ttl_seconds=settings.video_token_ttl_seconds,
    )


def get_transcript_service(
    db: Session = Depends(get_db),
    stt_client: SpeechToTextProvider = Depends(get_speech_to_text_client),
) -> TranscriptService:
    return TranscriptService(
        db,
        stt_client,
        webhook_url=settings.transcript_webhook_url,
        webhook_secret=settings.transcript_webhook_secret.get_secret_value(),
        max_audio_bytes=settings.max_audio_upload_bytes,
    )


def get_assistant_service(
    db: Session = Depends(get_db),
    text_generator: TextGenerator = Depends(get_text_generator),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> AssistantService:
    return AssistantService(db, text_generator, transcript_service)


def get_feedback_service(db: Session = Depends(get_db)) -> FeedbackService:
    return FeedbackService(db)
