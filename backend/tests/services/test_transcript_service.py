# backend/tests/services/test_transcript_service.py
"""Tests for TranscriptService: creation, provider pipeline, manual entries, access."""

from datetime import datetime, timedelta, timezone

import pytest

from skillsphere.core.enums import BookingStatus, TranscriptJobState
from skillsphere.core.exceptions import (
    ConflictException,
    ExternalServiceException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from skillsphere.integrations import AssemblyAIError
from skillsphere.models.transcript import Transcript
from skillsphere.services.transcript_service import build_summary

FIXED_NOW = datetime(2030, 1, 10, 12, 0, tzinfo=timezone.utc)

COMPLETED_PAYLOAD = {
    "id": "job_1",
    "status": "completed",
    "audio_duration": 95.4,
    "utterances": [
        {"speaker": "A", "text": "How do I structure a FastAPI app?", "start": 0, "end": 4000, "confidence": 0.93},
        {"speaker": "B", "text": "Start with routers per resource.", "start": 4200, "end": 9000, "confidence": 1.2},
        {"speaker": "A", "text": "Thanks!", "start": 9100, "end": 9800, "confidence": 0.88},
    ],
    "auto_highlights_result": {"results": [{"text": "routers per resource"}]},
    "entities": [{"text": "FastAPI"}, {"text": "FastAPI"}, {"text": "routers"}],
    "sentiment_analysis_results": [
        {"sentiment": "POSITIVE"},
        {"sentiment": "NEUTRAL"},
        {"sentiment": "POSITIVE"},
    ],
}


@pytest.fixture
def transcript(transcript_service, confirmed_booking, learner):
    return transcript_service.start(confirmed_booking.id, learner.id)


@pytest.fixture
def processing(transcript_service, stt_client, transcript, learner):
    transcript_service.attach_audio(transcript.session_id, learner.id, b"RIFF....", "session.wav")
    return transcript


def test_build_summary_majority_sentiment():
    summary = build_summary(
        {
            "highlights": [{"text": f"point {i}"} for i in range(8)],
            "entities": [{"text": "SQL"}, {"text": "SQL"}, {"text": "Python"}],
            "sentiment": ["NEGATIVE", "NEGATIVE", "POSITIVE"],
        }
    )
    assert summary["key_points"] == [f"point {i}" for i in range(5)]
    assert summary["topics"] == ["SQL", "Python"]
    assert summary["action_items"] == []
    assert summary["sentiment"] == "negative"


def test_build_summary_tie_is_neutral():
    assert build_summary({"sentiment": ["POSITIVE", "NEGATIVE"]})["sentiment"] == "neutral"


class TestStart:
    def test_creates_queued_shell(self, transcript, confirmed_booking, learner, mentor):
        assert transcript.booking_id == confirmed_booking.id
        assert transcript.session_id == f"session_{confirmed_booking.id}_{int(FIXED_NOW.timestamp() * 1000)}"
        assert transcript.external_job_state == TranscriptJobState.QUEUED.value
        assert transcript.segments == []
        assert transcript.full_text == ""
        assert transcript.learner_name == "Lena Learner"
        assert transcript.mentor_name == "Marco Mentor"

    def test_second_start_returns_existing(self, db, transcript_service, transcript, confirmed_booking, mentor):
        again = transcript_service.start(confirmed_booking.id, mentor.id)
        assert again.id == transcript.id
        assert db.query(Transcript).count() == 1

    def test_requires_confirmed_booking(self, transcript_service, make_booking, learner):
        booking = make_booking(BookingStatus.PENDING, booking_time="11:00")
        with pytest.raises(ConflictException):
            transcript_service.start(booking.id, learner.id)

    def test_outsider_forbidden(self, transcript_service, confirmed_booking, outsider):
        with pytest.raises(ForbiddenException):
            transcript_service.start(confirmed_booking.id, outsider.id)

    def test_unknown_booking(self, transcript_service, learner):
        with pytest.raises(NotFoundException):
            transcript_service.start("01HZZZZZZZZZZZZZZZZZZZZZZZ", learner.id)


class TestAttachAudio:
    def test_moves_to_processing(self, transcript_service, stt_client, processing):
        assert processing.external_job_state == TranscriptJobState.PROCESSING.value
        assert processing.provider_job_id.startswith("fake_job_")
        assert processing.audio_filename == "session.wav"
        assert processing.audio_size_bytes == 8
        assert processing.session_ended_at == FIXED_NOW

        [call] = stt_client._calls[1:]
        assert call["method"] == "start_job"
        assert call["webhook_url"] == "https://api.example.test/api/v1/transcripts/webhook"

    def test_empty_audio(self, transcript_service, transcript, learner):
        with pytest.raises(ValidationException, match="No audio"):
            transcript_service.attach_audio(transcript.session_id, learner.id, b"")

    def test_oversized_audio(self, transcript_service, transcript, learner):
        with pytest.raises(ValidationException, match="too large"):
            transcript_service.attach_audio(transcript.session_id, learner.id, b"x" * 1025)

    def test_second_submission_conflicts(self, transcript_service, processing, mentor):
        with pytest.raises(ConflictException):
            transcript_service.attach_audio(processing.session_id, mentor.id, b"more audio")

    def test_provider_failure_keeps_queued(self, transcript_service, stt_client, transcript, learner):
        stt_client.set_error("upload", AssemblyAIError("quota exceeded", 429))

        with pytest.raises(ExternalServiceException):
            transcript_service.attach_audio(transcript.session_id, learner.id, b"audio")
        assert transcript.external_job_state == TranscriptJobState.QUEUED.value
        assert transcript.provider_job_id is None

    def test_outsider_forbidden(self, transcript_service, transcript, outsider):
        with pytest.raises(ForbiddenException):
            transcript_service.attach_audio(transcript.session_id, outsider.id, b"audio")


class TestProviderCompletion:
    def test_full_payload_is_applied(self, transcript_service, processing):
        result = transcript_service.on_provider_completion(processing.provider_job_id, COMPLETED_PAYLOAD)

        assert result.external_job_state == TranscriptJobState.COMPLETED.value
        assert result.webhook_received is True
        assert [s["speaker"] for s in result.segments] == ["learner", "mentor", "learner"]
        assert [s["label"] for s in result.segments] == ["A", "B", "A"]
        assert result.segments[1]["confidence"] == 1.0
        assert result.duration_seconds == 95
        assert result.full_text.splitlines()[0] == "[learner]: How do I structure a FastAPI app?"
        assert result.summary["sentiment"] == "positive"
        assert result.summary["topics"] == ["FastAPI", "routers"]

    def test_status_only_callback_fetches_result(self, transcript_service, stt_client, processing):
        stt_client.set_result(processing.provider_job_id, {**COMPLETED_PAYLOAD, "id": processing.provider_job_id})

        result = transcript_service.on_provider_completion(
            processing.provider_job_id,
            {"transcript_id": processing.provider_job_id, "status": "completed"},
        )

        assert [c["method"] for c in stt_client._calls][-1] == "fetch_result"
        assert len(result.segments) == 3
        assert result.external_job_state == TranscriptJobState.COMPLETED.value

    def test_replayed_callback_is_ignored(self, transcript_service, processing):
        transcript_service.on_provider_completion(processing.provider_job_id, COMPLETED_PAYLOAD)
        replay = {**COMPLETED_PAYLOAD, "utterances": [{"speaker": "A", "text": "different"}]}

        result = transcript_service.on_provider_completion(processing.provider_job_id, replay)

        assert len(result.segments) == 3

    def test_provider_error_status(self, transcript_service, processing):
        result = transcript_service.on_provider_completion(
            processing.provider_job_id,
            {"transcript_id": processing.provider_job_id, "status": "error", "error": "Audio unreadable"},
        )
        assert result.external_job_state == TranscriptJobState.ERROR.value
        assert result.error_message == "Audio unreadable"

    def test_fetch_failure_moves_to_error(self, transcript_service, stt_client, processing):
        stt_client.set_error("fetch_result", AssemblyAIError("gateway timeout", 504))

        result = transcript_service.on_provider_completion(
            processing.provider_job_id,
            {"transcript_id": processing.provider_job_id, "status": "completed"},
        )

        assert result.external_job_state == TranscriptJobState.ERROR.value
        assert "gateway timeout" in result.error_message

    def test_malformed_utterance_moves_to_error(self, transcript_service, processing):
        payload = {**COMPLETED_PAYLOAD, "utterances": [{"speaker": "A", "text": "hi", "start": "x"}]}

        result = transcript_service.on_provider_completion(processing.provider_job_id, payload)

        assert result.external_job_state == TranscriptJobState.ERROR.value
        assert result.error_message.startswith("Malformed provider result")
        assert result.webhook_received is True
        assert result.segments == []

        replay = transcript_service.on_provider_completion(processing.provider_job_id, COMPLETED_PAYLOAD)
        assert replay.external_job_state == TranscriptJobState.ERROR.value

    def test_malformed_fetched_result_moves_to_error(self, transcript_service, stt_client, processing):
        stt_client.set_result(
            processing.provider_job_id,
            {"id": processing.provider_job_id, "status": "completed", "utterances": [{"end": "later"}]},
        )

        result = transcript_service.on_provider_completion(
            processing.provider_job_id,
            {"transcript_id": processing.provider_job_id, "status": "completed"},
        )

        assert result.external_job_state == TranscriptJobState.ERROR.value
        assert result.segments == []

    def test_result_is_fetched_before_any_write(self, db, transcript_service, stt_client, processing, monkeypatch):
        seen = {}
        fetch = stt_client.fetch_result

        def _fetch(job_id):
            seen["dirty"] = list(db.dirty)
            seen["webhook_received"] = processing.webhook_received
            return fetch(job_id)

        monkeypatch.setattr(stt_client, "fetch_result", _fetch)

        result = transcript_service.on_provider_completion(
            processing.provider_job_id,
            {"transcript_id": processing.provider_job_id, "status": "completed"},
        )

        assert seen["dirty"] == []
        assert not seen["webhook_received"]
        assert result.webhook_received is True

    def test_intermediate_status_keeps_processing(self, transcript_service, processing):
        result = transcript_service.on_provider_completion(
            processing.provider_job_id,
            {"transcript_id": processing.provider_job_id, "status": "processing"},
        )
        assert result.external_job_state == TranscriptJobState.PROCESSING.value
        assert result.webhook_received is True

    def test_unknown_job(self, transcript_service):
        with pytest.raises(NotFoundException):
            transcript_service.on_provider_completion("nope", {"status": "completed"})

    def test_explicit_labels_override_first_seen(self, transcript_service, processing, learner):
        transcript_service.set_speaker_labels(processing.session_id, learner.id, {"A": "mentor", "B": "learner"})

        result = transcript_service.on_provider_completion(processing.provider_job_id, COMPLETED_PAYLOAD)

        assert [s["speaker"] for s in result.segments] == ["mentor", "learner", "mentor"]


class TestManualEntriesAndLabels:
    def test_append_entry_resolves_speaker_and_offset(self, transcript_service, transcript, learner):
        result = transcript_service.append_entry(
            transcript.session_id,
            learner.id,
            "Marco Mentor",
            "  Let's review your PR.  ",
            timestamp=FIXED_NOW + timedelta(seconds=90, milliseconds=500),
        )

        [segment] = result.segments
        assert segment["speaker"] == "mentor"
        assert segment["text"] == "Let's review your PR."
        assert segment["start_time_ms"] == 90500
        assert result.duration_seconds == 91
        assert result.full_text == "[mentor]: Let's review your PR."

    def test_append_entry_accepts_role_names_and_unknown(self, transcript_service, transcript, mentor):
        transcript_service.append_entry(transcript.session_id, mentor.id, "learner", "Hi")
        result = transcript_service.append_entry(transcript.session_id, mentor.id, "Guest", "Hello all")

        assert [s["speaker"] for s in result.segments] == ["learner", "unknown"]
        assert result.full_text == "[learner]: Hi\n[unknown]: Hello all"

    def test_append_entry_before_start_clamps_to_zero(self, transcript_service, transcript, learner):
        result = transcript_service.append_entry(
            transcript.session_id, learner.id, "learner", "early", timestamp=FIXED_NOW - timedelta(minutes=1)
        )
        assert result.segments[0]["start_time_ms"] == 0

    def test_blank_entry_rejected(self, transcript_service, transcript, learner):
        with pytest.raises(ValidationException):
            transcript_service.append_entry(transcript.session_id, learner.id, "learner", "   ")

    def test_relabel_reattributes_provider_segments_only(
        self, transcript_service, processing, learner
    ):
        transcript_service.on_provider_completion(processing.provider_job_id, COMPLETED_PAYLOAD)
        transcript_service.append_entry(processing.session_id, learner.id, "learner", "manual note")

        result = transcript_service.set_speaker_labels(
            processing.session_id, learner.id, {"A": "mentor", "B": "learner"}
        )

        assert [s["speaker"] for s in result.segments] == ["mentor", "learner", "mentor", "learner"]
        assert result.speaker_labels == {"A": "mentor", "B": "learner"}
        assert result.full_text.splitlines()[0].startswith("[mentor]:")

    def test_invalid_role_rejected(self, transcript_service, transcript, learner):
        with pytest.raises(ValidationException):
            transcript_service.set_speaker_labels(transcript.session_id, learner.id, {"A": "host"})


class TestReadsAndDeletion:
    def test_get_by_booking_and_session(self, transcript_service, transcript, confirmed_booking, mentor):
        assert transcript_service.get_by_booking(confirmed_booking.id, mentor.id).id == transcript.id
        assert transcript_service.get_by_session(transcript.session_id, mentor.id).id == transcript.id

    def test_outsider_cannot_read(self, transcript_service, transcript, confirmed_booking, outsider):
        with pytest.raises(ForbiddenException):
            transcript_service.get_by_booking(confirmed_booking.id, outsider.id)
        with pytest.raises(ForbiddenException):
            transcript_service.get_status(transcript.session_id, outsider.id)

    def test_status(self, transcript_service, transcript, learner):
        status = transcript_service.get_status(transcript.session_id, learner.id)
        assert status["session_id"] == transcript.session_id
        assert status["status"] == "queued"
        assert status["has_transcript"] is False
        assert status["duration_seconds"] == 0

    def test_unknown_session(self, transcript_service, learner):
        with pytest.raises(NotFoundException):
            transcript_service.get_status("session_missing_1", learner.id)

    def test_list_for_user_paginates(self, transcript_service, transcript, learner, outsider):
        result = transcript_service.list_for_user(learner.id, page=1, limit=10)

        assert [t.id for t in result["transcripts"]] == [transcript.id]
        assert result["pagination"] == {
            "current_page": 1,
            "total_pages": 1,
            "total_count": 1,
            "has_next": False,
            "has_prev": False,
        }
        assert transcript_service.list_for_user(outsider.id)["pagination"]["total_count"] == 0

    def test_participant_deletes(self, db, transcript_service, transcript, mentor):
        transcript_service.delete(transcript.id, mentor.id)
        assert db.query(Transcript).count() == 0

    def test_outsider_cannot_delete(self, db, transcript_service, transcript, outsider):
        with pytest.raises(ForbiddenException):
            transcript_service.delete(transcript.id, outsider.id)
        assert db.query(Transcript).count() == 1

    def test_delete_unknown(self, transcript_service, learner):
        with pytest.raises(NotFoundException):
            transcript_service.delete("01HZZZZZZZZZZZZZZZZZZZZZZZ", learner.id)
