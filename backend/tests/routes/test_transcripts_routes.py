# backend/tests/routes/test_transcripts_routes.py
"""HTTP tests for /api/v1/transcripts including the provider webhook."""

import pytest
from starlette.datastructures import UploadFile as StarletteUploadFile

from skillsphere.core.config import settings

BASE = "/api/v1/transcripts"
WEBHOOK_HEADERS = {"Authorization": "Bearer test-webhook-secret"}


@pytest.fixture
def started(client, confirmed_booking, learner_headers):
    response = client.post(
        f"{BASE}/start-session", json={"booking_id": confirmed_booking.id}, headers=learner_headers
    )
    assert response.status_code == 201
    return response.json()["transcript"]


@pytest.fixture
def uploaded(client, started, learner_headers):
    response = client.post(
        f"{BASE}/upload-audio/{started['session_id']}",
        files={"audio": ("session.webm", b"\x1aE\xdf\xa3 fake webm", "audio/webm")},
        headers=learner_headers,
    )
    assert response.status_code == 200
    return response.json()["transcript"]


class TestStartAndUpload:
    def test_start_is_idempotent(self, client, started, confirmed_booking, mentor_headers):
        again = client.post(
            f"{BASE}/start-session", json={"booking_id": confirmed_booking.id}, headers=mentor_headers
        )
        assert again.json()["transcript"]["id"] == started["id"]
        assert started["external_job_state"] == "queued"

    def test_upload_moves_to_processing(self, uploaded):
        assert uploaded["external_job_state"] == "processing"
        assert uploaded["audio_filename"] == "session.webm"
        assert uploaded["provider_job_id"].startswith("fake_job_")

    def test_upload_requires_file(self, client, started, learner_headers):
        response = client.post(f"{BASE}/upload-audio/{started['session_id']}", headers=learner_headers)
        assert response.status_code == 422

    def test_empty_upload_rejected(self, client, started, learner_headers):
        response = client.post(
            f"{BASE}/upload-audio/{started['session_id']}",
            files={"audio": ("empty.webm", b"", "audio/webm")},
            headers=learner_headers,
        )
        assert response.status_code == 400

    def test_oversized_upload_is_read_only_up_to_the_cap(
        self, client, started, learner_headers, stt_client, monkeypatch
    ):
        monkeypatch.setattr(settings, "max_audio_upload_bytes", 16)
        read_sizes = []
        original_read = StarletteUploadFile.read

        async def _spy_read(self, size=-1):
            read_sizes.append(size)
            return await original_read(self, size)

        monkeypatch.setattr(StarletteUploadFile, "read", _spy_read)

        response = client.post(
            f"{BASE}/upload-audio/{started['session_id']}",
            files={"audio": ("long.webm", b"x" * 4096, "audio/webm")},
            headers=learner_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Audio file is too large"
        assert read_sizes == [17]
        assert stt_client._calls == []


class TestWebhook:
    def test_rejects_missing_secret(self, client, uploaded):
        response = client.post(
            f"{BASE}/webhook", json={"transcript_id": uploaded["provider_job_id"], "status": "completed"}
        )
        assert response.status_code == 401

    def test_rejects_wrong_secret(self, client, uploaded):
        response = client.post(
            f"{BASE}/webhook",
            json={"transcript_id": uploaded["provider_job_id"], "status": "completed"},
            headers={"Authorization": "Bearer guessed"},
        )
        assert response.status_code == 401

    def test_completion_and_replay(self, client, uploaded, stt_client, learner_headers):
        job_id = uploaded["provider_job_id"]
        stt_client.set_result(
            job_id,
            {
                "id": job_id,
                "status": "completed",
                "audio_duration": 12,
                "utterances": [
                    {"speaker": "A", "text": "Hello", "start": 0, "end": 1500, "confidence": 0.9},
                    {"speaker": "B", "text": "Welcome", "start": 1600, "end": 3000, "confidence": 0.95},
                ],
            },
        )
        payload = {"transcript_id": job_id, "status": "completed"}

        first = client.post(f"{BASE}/webhook", json=payload, headers=WEBHOOK_HEADERS)
        second = client.post(f"{BASE}/webhook", json=payload, headers=WEBHOOK_HEADERS)

        assert first.status_code == 200
        assert first.json()["status"] == "completed"
        assert second.status_code == 200
        assert second.json()["status"] == "completed"

        status_body = client.get(f"{BASE}/status/{uploaded['session_id']}", headers=learner_headers).json()
        assert status_body["has_transcript"] is True
        assert status_body["duration_seconds"] == 12

    def test_unknown_job(self, client):
        response = client.post(
            f"{BASE}/webhook", json={"transcript_id": "nope", "status": "completed"}, headers=WEBHOOK_HEADERS
        )
        assert response.status_code == 404

    def test_missing_job_id(self, client):
        response = client.post(f"{BASE}/webhook", json={"status": "completed"}, headers=WEBHOOK_HEADERS)
        assert response.status_code == 400

    def test_malformed_body(self, client):
        response = client.post(
            f"{BASE}/webhook",
            content=b"not json",
            headers={**WEBHOOK_HEADERS, "Content-Type": "application/json"},
        )
        assert response.status_code == 400


class TestReadsEditsAndDelete:
    def test_entries_and_speakers(self, client, started, mentor_headers):
        entry = client.post(
            f"{BASE}/{started['session_id']}/entries",
            json={"speaker": "Lena Learner", "text": "Can we cover testing?"},
            headers=mentor_headers,
        )
        assert entry.status_code == 200
        transcript = entry.json()["transcript"]
        assert transcript["segments"][0]["speaker"] == "learner"
        assert transcript["full_text"] == "[learner]: Can we cover testing?"

        labels = client.put(
            f"{BASE}/{started['session_id']}/speakers",
            json={"labels": {"A": "mentor"}},
            headers=mentor_headers,
        )
        assert labels.json()["transcript"]["speaker_labels"] == {"A": "mentor"}

    def test_by_booking_and_listing(self, client, started, confirmed_booking, learner_headers):
        by_booking = client.get(f"{BASE}/booking/{confirmed_booking.id}", headers=learner_headers)
        assert by_booking.json()["transcript"]["id"] == started["id"]

        listing = client.get(f"{BASE}/my-transcripts", headers=learner_headers).json()
        assert listing["pagination"]["total_count"] == 1
        assert listing["transcripts"][0]["session_id"] == started["session_id"]

    def test_outsider_cannot_read(self, client, started, outsider, auth_headers):
        response = client.get(f"{BASE}/status/{started['session_id']}", headers=auth_headers(outsider))
        assert response.status_code == 403

    def test_delete(self, client, started, mentor_headers):
        response = client.delete(f"{BASE}/{started['id']}", headers=mentor_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        gone = client.get(f"{BASE}/status/{started['session_id']}", headers=mentor_headers)
        assert gone.status_code == 404
