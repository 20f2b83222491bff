# backend/skillsphere/routes/v1/assistant.py
"""
Assistant routes - API v1

Mounted under /api/v1/assistant. Both endpoints answer even when the
generative provider is down; ``is_ai`` tells the client which kind of
answer it received.
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from ...api.dependencies import get_assistant_service, get_current_user
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.assistant import AskRequest, AskResponse, SummarizeRequest, SummarizeResponse
from ...services.assistant_service import AssistantService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assistant-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/ask", response_model=AskResponse)
async def ask_assistant(
    payload: AskRequest,
    current_user: User = Depends(get_current_user),
    assistant_service: AssistantService = Depends(get_assistant_service),
) -> AskResponse:
    history = [entry.model_dump() for entry in payload.chat_history]
    try:
        result = await asyncio.to_thread(
            assistant_service.ask,
            payload.question or "",
            current_user,
            history,
            payload.mentor_type,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return AskResponse(message="Answer generated", **result)


@router.post("/summarize-session", response_model=SummarizeResponse)
async def summarize_session(
    payload: SummarizeRequest,
    current_user: User = Depends(get_current_user),
    assistant_service: AssistantService = Depends(get_assistant_service),
) -> SummarizeResponse:
    """Summarize raw transcript text, or a stored transcript when ``session_id`` is given."""
    try:
        if payload.session_id:
            result = await asyncio.to_thread(
                assistant_service.summarize_transcript, payload.session_id, current_user.id
            )
        else:
            result = await asyncio.to_thread(
                assistant_service.summarize_session, payload.transcript or ""
            )
    except DomainException as exc:
        handle_domain_exception(exc)
    return SummarizeResponse(message="Summary generated", **result)
