# backend/skillsphere/services/transcript_service.py
"""
Transcript Service for SkillSphere

Lifecycle of a session transcript:

    queued -> processing -> completed
                         -> error

- start() creates one transcript per confirmed booking (idempotent)
- attach_audio() hands the recording to the speech-to-text provider
- on_provider_completion() applies the provider callback, keyed by job id,
  so replayed callbacks are no-ops
- append_entry() is the manual/live-caption path and works in any state

Only the booking's two participants may read, change or delete a transcript.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
import logging
import math
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import VIDEO_ROOM_PREFIX
from ..core.enums import BookingStatus, SpeakerRole, TranscriptJobState
from ..core.exceptions import (
    ConflictException,
    DuplicateRecordException,
    ExternalServiceException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..integrations.assemblyai_client import SpeechToTextProvider, normalize_result
from ..integrations.base import ProviderError
from ..models.transcript import Transcript
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.transcript_repository import TranscriptRepository
from .base import BaseService
from .speaker_mapping import FirstSeenSpeakerPolicy, SpeakerMappingPolicy, policy_for

logger = logging.getLogger(__name__)

MAX_KEY_POINTS = 5
MAX_TOPICS = 10
TERMINAL_JOB_STATES = (TranscriptJobState.COMPLETED.value, TranscriptJobState.ERROR.value)


def build_summary(result: Mapping[str, Any]) -> Dict[str, Any]:
    """Key points from highlights, topics from entities, majority sentiment."""
    key_points = [h.get("text", "") for h in result.get("highlights", [])[:MAX_KEY_POINTS]]

    topics: List[str] = []
    for entity in result.get("entities", []):
        text = entity.get("text")
        if text and text not in topics:
            topics.append(text)
        if len(topics) == MAX_TOPICS:
            break

    votes = Counter(result.get("sentiment", []))
    sentiment = "neutral"
    if votes["POSITIVE"] > votes["NEGATIVE"]:
        sentiment = "positive"
    elif votes["NEGATIVE"] > votes["POSITIVE"]:
        sentiment = "negative"

    return {"key_points": key_points, "action_items": [], "topics": topics, "sentiment": sentiment}


class TranscriptService(BaseService):
    """Transcript creation, provider pipeline and participant reads."""

    def __init__(
        self,
        db: Session,
        stt_client: SpeechToTextProvider,
        speaker_policy: Optional[SpeakerMappingPolicy] = None,
        repository: Optional[TranscriptRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        webhook_url: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        max_audio_bytes: Optional[int] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
    ) -> None:
        super().__init__(db)
        self.stt_client = stt_client
        self.speaker_policy: SpeakerMappingPolicy = speaker_policy or FirstSeenSpeakerPolicy()
        self.repository = repository or RepositoryFactory.create_transcript_repository(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.webhook_url = webhook_url or settings.transcript_webhook_url
        self.webhook_secret = (
            webhook_secret
            if webhook_secret is not None
            else settings.transcript_webhook_secret.get_secret_value()
        )
        self.max_audio_bytes = max_audio_bytes or settings.max_audio_upload_bytes
        self._now = now_fn or (lambda: datetime.now(timezone.utc))

    # ── Creation ────────────────────────────────────────────────────────

    @BaseService.measure_operation("start_transcript")
    def start(self, booking_id: str, initiator_id: str) -> Transcript:
        """Create the transcript shell for a confirmed booking, or return the existing one."""
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if not booking.is_participant(initiator_id):
            raise ForbiddenException("Not authorized to record this session")

        existing = self.repository.get_by_booking_id(booking_id)
        if existing is not None:
            return existing

        if booking.status != BookingStatus.CONFIRMED.value:
            raise ConflictException(
                "Transcripts can only be started for confirmed bookings",
                details={"current_status": booking.status},
            )

        now = self._now()
        session_id = f"{VIDEO_ROOM_PREFIX}{booking_id}_{int(now.timestamp() * 1000)}"
        try:
            with self.transaction():
                transcript = self.repository.create(
                    booking_id=booking_id,
                    session_id=session_id,
                    learner_id=booking.learner_id,
                    learner_name=booking.learner.full_name if booking.learner else None,
                    mentor_id=booking.mentor_id,
                    mentor_name=booking.mentor.full_name if booking.mentor else None,
                    segments=[],
                    full_text="",
                    duration_seconds=0,
                    external_job_state=TranscriptJobState.QUEUED.value,
                    session_started_at=now,
                )
        except DuplicateRecordException:
            winner = self.repository.get_by_booking_id(booking_id)
            if winner is None:
                raise
            return winner

        self.log_operation("start_transcript", booking_id=booking_id, session_id=session_id)
        return transcript

    # ── Provider pipeline ───────────────────────────────────────────────

    @BaseService.measure_operation("attach_audio")
    def attach_audio(
        self, session_id: str, user_id: str, audio: bytes, audio_name: Optional[str] = None
    ) -> Transcript:
        """Upload the recording and start a provider job; state moves to processing."""
        transcript = self._get_for_participant_by_session(session_id, user_id)
        if not audio:
            raise ValidationException("No audio file provided")
        if len(audio) > self.max_audio_bytes:
            raise ValidationException(
                "Audio file is too large", details={"max_bytes": self.max_audio_bytes}
            )
        if transcript.external_job_state != TranscriptJobState.QUEUED.value:
            raise ConflictException(
                "Audio has already been submitted for this session",
                details={"current_state": transcript.external_job_state},
            )

        try:
            audio_url = self.stt_client.upload(audio)
            job_id = self.stt_client.start_job(audio_url, self.webhook_url, self.webhook_secret)
        except ProviderError as exc:
            self.logger.error("Speech-to-text submission failed for %s: %s", session_id, exc.message)
            raise ExternalServiceException(
                "Transcription service is temporarily unavailable",
                provider=exc.provider,
                details={"session_id": session_id},
            ) from exc

        with self.transaction():
            transcript.provider_job_id = job_id
            transcript.audio_url = audio_url
            transcript.audio_filename = audio_name
            transcript.audio_size_bytes = len(audio)
            transcript.external_job_state = TranscriptJobState.PROCESSING.value
            if transcript.session_ended_at is None:
                transcript.session_ended_at = self._now()

        self.log_operation("attach_audio", session_id=session_id, provider_job_id=job_id, size_bytes=len(audio))
        return transcript

    @BaseService.measure_operation("on_provider_completion")
    def on_provider_completion(self, provider_job_id: str, raw_result: Mapping[str, Any]) -> Transcript:
        """
        Apply a provider callback to the transcript that owns ``provider_job_id``.

        Callbacks for a transcript already completed or errored are ignored.
        Fetch failures and malformed results move the transcript to error
        instead of raising. The full result is fetched before any database
        transaction is opened.
        """
        transcript = self.repository.get_by_provider_job_id(provider_job_id)
        if transcript is None:
            raise NotFoundException("Transcript not found for provider job")

        if transcript.external_job_state in TERMINAL_JOB_STATES:
            prometheus_metrics.record_transcript_callback("replay")
            self.logger.info("Ignoring replayed callback for job %s", provider_job_id)
            return transcript

        failure: Optional[str] = None
        applied: Optional[Dict[str, Any]] = None
        try:
            result = normalize_result(raw_result)
            if result["status"] == TranscriptJobState.ERROR.value:
                failure = result.get("error") or "Provider reported an error"
            elif result["status"] == TranscriptJobState.COMPLETED.value:
                if result["utterances"] is None:
                    result = self.stt_client.fetch_result(provider_job_id)
                if result["status"] != TranscriptJobState.COMPLETED.value:
                    failure = result.get("error") or f"Unexpected status {result['status']}"
                else:
                    applied = self._map_result(transcript, result)
        except ProviderError as exc:
            failure = f"Failed to fetch result: {exc.message}"
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            failure = f"Malformed provider result: {exc}"

        with self.transaction():
            transcript.webhook_received = True
            if failure is not None:
                self._mark_error(transcript, failure)
                return transcript
            if applied is None:
                prometheus_metrics.record_transcript_callback("pending")
                return transcript

            transcript.replace_segments(applied["segments"])
            transcript.duration_seconds = applied["duration_seconds"]
            transcript.summary = applied["summary"]
            transcript.external_job_state = TranscriptJobState.COMPLETED.value
            transcript.error_message = None

        prometheus_metrics.record_transcript_callback("completed")
        self.log_operation(
            "transcript_completed",
            session_id=transcript.session_id,
            segment_count=len(transcript.segments or []),
        )
        return transcript

    def _map_result(self, transcript: Transcript, result: Mapping[str, Any]) -> Dict[str, Any]:
        """Turn a normalized provider result into segment, duration and summary values."""
        utterances = result["utterances"] or []
        policy = policy_for(transcript.speaker_labels, self.speaker_policy)
        roles = policy.map_labels(u["speaker"] for u in utterances)

        segments = [
            {
                "speaker": roles.get(u["speaker"], SpeakerRole.UNKNOWN).value,
                "label": u["speaker"],
                "text": u["text"],
                "start_time_ms": u["start"],
                "end_time_ms": u["end"],
                "confidence": min(max(u["confidence"], 0.0), 1.0),
            }
            for u in utterances
        ]

        duration_ms = result.get("duration_ms")
        if duration_ms is None:
            duration_ms = max((u["end"] for u in utterances), default=0)
        return {
            "segments": segments,
            "duration_seconds": int(round(duration_ms / 1000)),
            "summary": build_summary(result),
        }

    def _mark_error(self, transcript: Transcript, message: str) -> None:
        transcript.external_job_state = TranscriptJobState.ERROR.value
        transcript.error_message = message
        prometheus_metrics.record_transcript_callback("error")
        self.logger.warning(
            "Transcript %s moved to error: %s",
            transcript.session_id,
            message,
            extra={"provider_job_id": transcript.provider_job_id},
        )

    # ── Manual entries and speaker labels ───────────────────────────────

    @BaseService.measure_operation("append_transcript_entry")
    def append_entry(
        self,
        session_id: str,
        user_id: str,
        speaker_name: str,
        text: str,
        timestamp: Optional[datetime] = None,
    ) -> Transcript:
        """Append one caption line and recompute full_text from all segments."""
        transcript = self._get_for_participant_by_session(session_id, user_id)
        if not text or not text.strip():
            raise ValidationException("Entry text is required")

        at = timestamp or self._now()
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        started = transcript.session_started_at
        if started.tzinfo is None:
            started = started.replace(tzinfo=timezone.utc)
        offset_ms = max(0, int((at - started).total_seconds() * 1000))

        segment = {
            "speaker": self._resolve_speaker(transcript, speaker_name).value,
            "text": text.strip(),
            "start_time_ms": offset_ms,
            "end_time_ms": offset_ms,
            "confidence": 1.0,
        }
        with self.transaction():
            transcript.replace_segments([*(transcript.segments or []), segment])
            transcript.duration_seconds = max(
                transcript.duration_seconds or 0, int(math.ceil(offset_ms / 1000))
            )
        return transcript

    @staticmethod
    def _resolve_speaker(transcript: Transcript, speaker_name: Optional[str]) -> SpeakerRole:
        name = (speaker_name or "").strip().lower()
        if name in (SpeakerRole.LEARNER.value, SpeakerRole.MENTOR.value):
            return SpeakerRole(name)
        if name and name == (transcript.learner_name or "").strip().lower():
            return SpeakerRole.LEARNER
        if name and name == (transcript.mentor_name or "").strip().lower():
            return SpeakerRole.MENTOR
        return SpeakerRole.UNKNOWN

    @BaseService.measure_operation("set_speaker_labels")
    def set_speaker_labels(self, session_id: str, user_id: str, labels: Mapping[str, str]) -> Transcript:
        """
        Pin provider labels to participant roles for this transcript.

        Segments already produced by the provider are re-attributed at once;
        manual entries carry no provider label and keep their speaker.
        """
        transcript = self._get_for_participant_by_session(session_id, user_id)
        try:
            cleaned = {str(label): SpeakerRole(role).value for label, role in labels.items()}
        except ValueError as exc:
            raise ValidationException(
                "Speaker roles must be one of learner, mentor or unknown"
            ) from exc

        with self.transaction():
            transcript.speaker_labels = cleaned
            segments = transcript.segments or []
            if any("label" in segment for segment in segments):
                transcript.replace_segments(
                    [
                        {**segment, "speaker": cleaned.get(segment["label"], SpeakerRole.UNKNOWN.value)}
                        if "label" in segment
                        else segment
                        for segment in segments
                    ]
                )
        return transcript

    # ── Reads and deletion ──────────────────────────────────────────────

    @BaseService.measure_operation("get_transcript_by_booking")
    def get_by_booking(self, booking_id: str, user_id: str) -> Transcript:
        transcript = self.repository.get_by_booking_id(booking_id)
        if transcript is None:
            raise NotFoundException("Transcript not found")
        self._require_participant(transcript, user_id)
        return transcript

    @BaseService.measure_operation("get_transcript_by_session")
    def get_by_session(self, session_id: str, user_id: str) -> Transcript:
        return self._get_for_participant_by_session(session_id, user_id)

    @BaseService.measure_operation("get_transcript_status")
    def get_status(self, session_id: str, user_id: str) -> Dict[str, Any]:
        transcript = self._get_for_participant_by_session(session_id, user_id)
        return {
            "session_id": transcript.session_id,
            "status": transcript.external_job_state,
            "has_transcript": bool(transcript.segments),
            "duration_seconds": transcript.duration_seconds,
            "created_at": transcript.created_at,
        }

    @BaseService.measure_operation("list_transcripts_for_user")
    def list_for_user(self, user_id: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        items, total = self.repository.list_for_participant(user_id, page=page, limit=limit)
        total_pages = math.ceil(total / limit) if total else 0
        return {
            "transcripts": items,
            "pagination": {
                "current_page": page,
                "total_pages": total_pages,
                "total_count": total,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    @BaseService.measure_operation("delete_transcript")
    def delete(self, transcript_id: str, user_id: str) -> None:
        """Hard delete; there is no way to recover a removed transcript."""
        transcript = self.repository.get_by_id(transcript_id, load_relationships=False)
        if transcript is None:
            raise NotFoundException("Transcript not found")
        self._require_participant(transcript, user_id)
        with self.transaction():
            self.repository.delete(transcript_id)
        self.log_operation("delete_transcript", transcript_id=transcript_id, deleted_by=user_id)

    def _get_for_participant_by_session(self, session_id: str, user_id: str) -> Transcript:
        transcript = self.repository.get_by_session_id(session_id)
        if transcript is None:
            raise NotFoundException("Transcript session not found")
        self._require_participant(transcript, user_id)
        return transcript

    @staticmethod
    def _require_participant(transcript: Transcript, user_id: str) -> None:
        if not transcript.is_participant(user_id):
            raise ForbiddenException("Not authorized to access this transcript")
