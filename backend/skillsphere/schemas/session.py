# backend/skillsphere/schemas/session.py
"""Schemas for mentoring sessions, conversations and chat tokens."""

from __future__ import annotations

from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import Field

from ._strict_base import OrmModel, StrictModel, StrictRequestModel


class SessionResponse(OrmModel):
    id: str
    booking_id: str
    mentor_id: str
    learner_id: str
    chat_room_id: str
    video_room_id: str
    status: str
    mentor_joined_at: Optional[datetime] = None
    learner_joined_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SessionEnvelope(StrictModel):
    success: bool = True
    message: str
    session: SessionResponse


class JoinSessionResponse(StrictModel):
    success: bool = True
    message: str
    session: SessionResponse
    video_token: str
    video_room_id: str
    role: str


class SessionNotesUpdate(StrictRequestModel):
    notes: str = Field(max_length=10000)


class ConversationParticipant(StrictModel):
    id: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str


class ConversationBooking(StrictModel):
    date: Optional[date_type] = None
    time: Optional[str] = None
    status: Optional[str] = None
    message: Optional[str] = None


class ConversationResponse(StrictModel):
    session_id: str
    booking_id: str
    chat_room_id: str
    video_room_id: str
    session_status: str
    other_participant: ConversationParticipant
    booking: ConversationBooking
    created_at: Optional[datetime] = None


class ConversationListResponse(StrictModel):
    success: bool = True
    message: str
    conversations: List[ConversationResponse]


class ChatTokenResponse(StrictModel):
    success: bool = True
    message: str
    token: str
    user_id: str
    api_key: str
