# backend/skillsphere/schemas/transcript.py
"""Schemas for transcript lifecycle endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from ._strict_base import OrmModel, StrictModel, StrictRequestModel


class TranscriptSegment(StrictModel):
    speaker: str
    text: str
    start_time_ms: int
    end_time_ms: int
    confidence: float = Field(ge=0.0, le=1.0)
    label: Optional[str] = Field(default=None, description="Provider speaker label, when diarized")


class TranscriptSummary(StrictModel):
    key_points: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    sentiment: Optional[str] = None


class TranscriptResponse(OrmModel):
    id: str
    booking_id: str
    session_id: str
    learner_id: str
    learner_name: Optional[str] = None
    mentor_id: str
    mentor_name: Optional[str] = None
    segments: List[TranscriptSegment] = Field(default_factory=list)
    full_text: str = ""
    duration_seconds: int = 0
    external_job_state: str
    provider_job_id: Optional[str] = None
    webhook_received: bool = False
    error_message: Optional[str] = None
    audio_filename: Optional[str] = None
    audio_size_bytes: Optional[int] = None
    speaker_labels: Optional[Dict[str, str]] = None
    summary: Optional[TranscriptSummary] = None
    session_started_at: datetime
    session_ended_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TranscriptListItem(OrmModel):
    """List rows omit segments and full text."""

    id: str
    booking_id: str
    session_id: str
    learner_name: Optional[str] = None
    mentor_name: Optional[str] = None
    duration_seconds: int = 0
    external_job_state: str
    session_started_at: datetime
    created_at: Optional[datetime] = None


class StartTranscriptRequest(StrictRequestModel):
    booking_id: str


class AppendEntryRequest(StrictRequestModel):
    speaker: str = Field(description="learner, mentor, or a participant's display name")
    text: str
    timestamp: Optional[datetime] = None


class SpeakerLabelsRequest(StrictRequestModel):
    labels: Dict[str, str] = Field(description="Provider speaker label -> learner|mentor|unknown")


class TranscriptEnvelope(StrictModel):
    success: bool = True
    message: str
    transcript: TranscriptResponse


class TranscriptStatusResponse(StrictModel):
    success: bool = True
    message: str
    session_id: str
    status: str
    has_transcript: bool
    duration_seconds: int
    created_at: Optional[datetime] = None


class PaginationInfo(StrictModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool


class TranscriptListResponse(StrictModel):
    success: bool = True
    message: str
    transcripts: List[TranscriptListItem]
    pagination: PaginationInfo


class WebhookAck(StrictModel):
    success: bool = True
    message: str
    status: Optional[str] = None
