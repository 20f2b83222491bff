# backend/skillsphere/schemas/assistant.py
"""Schemas for the assistant endpoints."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel


class ChatHistoryEntry(StrictRequestModel):
    text: str
    is_user: bool = False


class AskRequest(StrictRequestModel):
    question: Optional[str] = None
    chat_history: List[ChatHistoryEntry] = Field(default_factory=list)
    mentor_type: Optional[str] = Field(default=None, description="e.g. software-dev, business")


class AskResponse(StrictModel):
    success: bool = True
    message: str
    response: str
    is_ai: bool


class SummarizeRequest(StrictRequestModel):
    """Either raw transcript text or the id of a stored transcript session."""

    transcript: Optional[str] = None
    session_id: Optional[str] = None


class SummarizeResponse(StrictModel):
    success: bool = True
    message: str
    summary: str
    resources: List[str]
    is_ai: bool
