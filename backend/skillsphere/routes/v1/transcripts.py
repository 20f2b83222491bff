# backend/skillsphere/routes/v1/transcripts.py
"""
Transcript routes - API v1

Mounted under /api/v1/transcripts.

Endpoints:
    POST /start-session - Create (or return) the transcript for a confirmed booking
    POST /upload-audio/{session_id} - Submit the recording for transcription
    POST /webhook - Speech-to-text completion callback (shared-secret header)
    GET /my-transcripts - Paginated transcripts of the caller
    GET /booking/{booking_id} - Transcript for a booking
    GET /status/{session_id} - Processing status
    POST /{session_id}/entries - Append a caption line
    PUT /{session_id}/speakers - Pin provider speaker labels to roles
    DELETE /{transcript_id} - Delete permanently
"""

import asyncio
import logging
import secrets as _secrets
from typing import Any, Dict, NoReturn

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status

from ...api.dependencies import get_current_user, get_transcript_service
from ...core.config import settings
from ...core.exceptions import DomainException
from ...models.user import User
from ...monitoring.prometheus_metrics import prometheus_metrics
from ...schemas.base_responses import SuccessResponse
from ...schemas.transcript import (
    AppendEntryRequest,
    PaginationInfo,
    SpeakerLabelsRequest,
    StartTranscriptRequest,
    TranscriptEnvelope,
    TranscriptListItem,
    TranscriptListResponse,
    TranscriptResponse,
    TranscriptStatusResponse,
    WebhookAck,
)
from ...services.transcript_service import TranscriptService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transcripts-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _envelope(transcript: object, message: str) -> TranscriptEnvelope:
    return TranscriptEnvelope(message=message, transcript=TranscriptResponse.model_validate(transcript))


def _verify_webhook_secret(request: Request) -> None:
    """Verify the ``Authorization: Bearer <secret>`` header echoed by the provider."""
    expected = settings.transcript_webhook_secret.get_secret_value()
    header = request.headers.get("authorization") or ""
    scheme, _, provided = header.partition(" ")
    if scheme.lower() != "bearer" or not _secrets.compare_digest(provided.strip(), expected):
        logger.warning(
            "Transcript webhook secret mismatch",
            extra={"evt": "transcript_webhook_invalid_secret"},
        )
        prometheus_metrics.record_transcript_callback("rejected")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")


# ============================================================================
# SECTION 1: Static routes
# ============================================================================


@router.post("/start-session", response_model=TranscriptEnvelope, status_code=status.HTTP_201_CREATED)
async def start_transcript_session(
    payload: StartTranscriptRequest,
    current_user: User = Depends(get_current_user),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptEnvelope:
    try:
        transcript = await asyncio.to_thread(
            transcript_service.start, payload.booking_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(transcript, "Transcript session started")


@router.post("/upload-audio/{session_id}", response_model=TranscriptEnvelope)
async def upload_audio(
    session_id: str,
    audio: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptEnvelope:
    """Multipart upload; the recording is forwarded to the speech-to-text provider."""
    # One byte past the cap is enough for the service to reject oversized audio
    content = await audio.read(transcript_service.max_audio_bytes + 1)
    try:
        transcript = await asyncio.to_thread(
            transcript_service.attach_audio,
            session_id,
            current_user.id,
            content,
            audio.filename,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(transcript, "Audio uploaded, transcription in progress")


@router.post("/webhook", response_model=WebhookAck)
async def transcript_webhook(
    request: Request,
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> WebhookAck:
    """Completion callback keyed by the provider job id; replays are acknowledged as no-ops."""
    _verify_webhook_secret(request)
    try:
        body: Dict[str, Any] = await request.json()
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")

    job_id = body.get("transcript_id") or body.get("id")
    if not job_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="transcript_id is required")

    try:
        transcript = await asyncio.to_thread(
            transcript_service.on_provider_completion, str(job_id), body
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return WebhookAck(message="Webhook processed", status=transcript.external_job_state)


@router.get("/my-transcripts", response_model=TranscriptListResponse)
async def list_my_transcripts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptListResponse:
    try:
        result = await asyncio.to_thread(
            transcript_service.list_for_user, current_user.id, page, limit
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return TranscriptListResponse(
        message="Transcripts retrieved successfully",
        transcripts=[TranscriptListItem.model_validate(t) for t in result["transcripts"]],
        pagination=PaginationInfo(**result["pagination"]),
    )


@router.get("/booking/{booking_id}", response_model=TranscriptEnvelope)
async def get_transcript_by_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptEnvelope:
    try:
        transcript = await asyncio.to_thread(
            transcript_service.get_by_booking, booking_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(transcript, "Transcript retrieved successfully")


@router.get("/status/{session_id}", response_model=TranscriptStatusResponse)
async def get_transcript_status(
    session_id: str,
    current_user: User = Depends(get_current_user),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptStatusResponse:
    try:
        result = await asyncio.to_thread(
            transcript_service.get_status, session_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return TranscriptStatusResponse(message="Transcript status retrieved", **result)


# ============================================================================
# SECTION 2: Dynamic routes
# ============================================================================


@router.post("/{session_id}/entries", response_model=TranscriptEnvelope)
async def append_transcript_entry(
    session_id: str,
    payload: AppendEntryRequest,
    current_user: User = Depends(get_current_user),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptEnvelope:
    try:
        transcript = await asyncio.to_thread(
            transcript_service.append_entry,
            session_id,
            current_user.id,
            payload.speaker,
            payload.text,
            payload.timestamp,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(transcript, "Entry added")


@router.put("/{session_id}/speakers", response_model=TranscriptEnvelope)
async def set_speaker_labels(
    session_id: str,
    payload: SpeakerLabelsRequest,
    current_user: User = Depends(get_current_user),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> TranscriptEnvelope:
    try:
        transcript = await asyncio.to_thread(
            transcript_service.set_speaker_labels, session_id, current_user.id, payload.labels
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(transcript, "Speaker labels updated")


@router.delete("/{transcript_id}", response_model=SuccessResponse)
async def delete_transcript(
    transcript_id: str,
    current_user: User = Depends(get_current_user),
    transcript_service: TranscriptService = Depends(get_transcript_service),
) -> SuccessResponse:
    try:
        await asyncio.to_thread(transcript_service.delete, transcript_id, current_user.id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return SuccessResponse(message="Transcript deleted successfully")
