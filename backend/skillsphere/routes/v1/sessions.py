# backend/skillsphere/routes/v1/sessions.py
"""
Session routes - API v1

Mounted under /api/v1/sessions.

Endpoints:
    GET /conversations/my - Sessions of the caller, described from their side
    GET /{booking_id} - Session provisioned for a booking
    POST /{booking_id}/provision - Retry chat/video provisioning for a confirmed booking
    POST /{session_id}/join - Join and receive a video room token
    POST /{session_id}/leave - Leave and close the session
    PUT /{session_id}/notes - Update shared session notes
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from ...api.dependencies import get_current_user, get_provisioning_service, get_session_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.session import (
    ConversationListResponse,
    ConversationResponse,
    JoinSessionResponse,
    SessionEnvelope,
    SessionNotesUpdate,
    SessionResponse,
)
from ...services.session_provisioner import SessionProvisioningService
from ...services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _envelope(session: object, message: str) -> SessionEnvelope:
    return SessionEnvelope(message=message, session=SessionResponse.model_validate(session))


@router.get("/conversations/my", response_model=ConversationListResponse)
async def get_my_conversations(
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service),
) -> ConversationListResponse:
    try:
        conversations = await asyncio.to_thread(session_service.get_conversations, current_user.id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ConversationListResponse(
        message="Conversations retrieved successfully",
        conversations=[ConversationResponse(**c) for c in conversations],
    )


@router.get("/{booking_id}", response_model=SessionEnvelope)
async def get_session_for_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service),
) -> SessionEnvelope:
    try:
        session = await asyncio.to_thread(
            session_service.get_session_for_booking, booking_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(session, "Session retrieved successfully")


@router.post("/{booking_id}/provision", response_model=SessionEnvelope)
async def provision_session(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    provisioning_service: SessionProvisioningService = Depends(get_provisioning_service),
) -> SessionEnvelope:
    """Create the chat room for a confirmed booking, or return the existing session."""
    try:
        session = await asyncio.to_thread(
            provisioning_service.ensure_session, booking_id, current_user.id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(session, "Session is ready")


@router.post("/{session_id}/join", response_model=JoinSessionResponse)
async def join_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service),
) -> JoinSessionResponse:
    try:
        result = await asyncio.to_thread(session_service.join_session, session_id, current_user.id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return JoinSessionResponse(
        message="Joined session successfully",
        session=SessionResponse.model_validate(result["session"]),
        video_token=result["video_token"],
        video_room_id=result["video_room_id"],
        role=result["role"],
    )


@router.post("/{session_id}/leave", response_model=SessionEnvelope)
async def leave_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service),
) -> SessionEnvelope:
    try:
        session = await asyncio.to_thread(session_service.leave_session, session_id, current_user.id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(session, "Left session successfully")


@router.put("/{session_id}/notes", response_model=SessionEnvelope)
async def update_session_notes(
    session_id: str,
    payload: SessionNotesUpdate,
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service),
) -> SessionEnvelope:
    try:
        session = await asyncio.to_thread(
            session_service.update_notes, session_id, current_user.id, payload.notes
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return _envelope(session, "Notes updated successfully")
