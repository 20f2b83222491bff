# backend/skillsphere/routes/v1/chat.py
"""
Chat routes - API v1

Mounted under /api/v1/chat.
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from ...api.dependencies import get_current_user, get_session_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.session import ChatTokenResponse
from ...services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/token", response_model=ChatTokenResponse)
async def get_chat_token(
    current_user: User = Depends(get_current_user),
    session_service: SessionService = Depends(get_session_service),
) -> ChatTokenResponse:
    """Register the caller with the chat provider and return a client token."""
    try:
        result = await asyncio.to_thread(session_service.issue_chat_token, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ChatTokenResponse(message="Chat token generated successfully", **result)
