"""AssemblyAI speech-to-text Integration Client.

Uploads session audio, starts a diarized transcription job that reports back
through our webhook, and fetches finished results. Results are normalized by
``normalize_result`` so the transcript pipeline never reads raw provider keys.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol
import uuid

import httpx
from pydantic import SecretStr

from .base import JsonApiClient, ProviderError

EXPECTED_SPEAKERS = 2


class AssemblyAIError(ProviderError):
    """Raised when the AssemblyAI API responds with an error."""

    provider = "assemblyai"


class SpeechToTextProvider(Protocol):
    def upload(self, audio: bytes) -> str:
        ...

    def start_job(self, audio_ref: str, webhook_url: str, webhook_secret: str | None = None) -> str:
        ...

    def fetch_result(self, job_id: str) -> dict[str, Any]:
        ...


def normalize_result(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Map an AssemblyAI transcript payload onto the fields the pipeline reads.

    Webhook callbacks carry only ``transcript_id`` and ``status``; in that case
    ``utterances`` is None and the caller fetches the full result.
    """
    raw_utterances = raw.get("utterances")
    utterances = None
    if raw_utterances is not None:
        utterances = [
            {
                "speaker": str(item.get("speaker", "")),
                "text": item.get("text", ""),
                "start": int(item.get("start") or 0),
                "end": int(item.get("end") or 0),
                "confidence": float(item.get("confidence") or 0.0),
            }
            for item in raw_utterances
        ]

    highlights_block = raw.get("auto_highlights_result") or raw.get("auto_highlights")
    if not isinstance(highlights_block, Mapping):
        highlights_block = {}
    highlights = list(highlights_block.get("results") or raw.get("highlights") or [])

    sentiments = [
        str(item.get("sentiment", "")).upper()
        for item in (raw.get("sentiment_analysis_results") or [])
        if item.get("sentiment")
    ]

    audio_duration = raw.get("audio_duration")
    duration_ms = raw.get("duration_ms")
    if duration_ms is None and audio_duration is not None:
        duration_ms = int(float(audio_duration) * 1000)

    return {
        "job_id": raw.get("id") or raw.get("transcript_id"),
        "status": str(raw.get("status") or "").lower(),
        "error": raw.get("error"),
        "utterances": utterances,
        "highlights": highlights,
        "entities": list(raw.get("entities") or []),
        "sentiment": sentiments,
        "duration_ms": int(duration_ms) if duration_ms is not None else None,
    }


class AssemblyAIClient(JsonApiClient):
    """HTTP client for the AssemblyAI v2 REST API."""

    error_cls = AssemblyAIError
    label = "AssemblyAI"

    def __init__(
        self,
        *,
        api_key: str | SecretStr,
        base_url: str = "https://api.assemblyai.com/v2",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self._api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key

    def _auth_headers(self) -> dict[str, str]:
        return {"authorization": self._api_key}

    def upload(self, audio: bytes) -> str:
        """Upload raw audio bytes and return the provider-hosted URL."""
        body = self._send(
            "POST",
            "upload",
            content=audio,
            headers={"Content-Type": "application/octet-stream"},
        )
        upload_url = body.get("upload_url")
        if not upload_url:
            raise AssemblyAIError(message="AssemblyAI upload response missing upload_url", details=body)
        return str(upload_url)

    def start_job(self, audio_ref: str, webhook_url: str, webhook_secret: str | None = None) -> str:
        """Queue a diarized transcription job; completion is delivered to ``webhook_url``."""
        payload: dict[str, Any] = {
            "audio_url": audio_ref,
            "speaker_labels": True,
            "speakers_expected": EXPECTED_SPEAKERS,
            "auto_highlights": True,
            "sentiment_analysis": True,
            "entity_detection": True,
            "webhook_url": webhook_url,
        }
        if webhook_secret:
            payload["webhook_auth_header_name"] = "authorization"
            payload["webhook_auth_header_value"] = f"Bearer {webhook_secret}"

        body = self._send("POST", "transcript", json_body=payload)
        job_id = body.get("id")
        if not job_id:
            raise AssemblyAIError(message="AssemblyAI transcript response missing id", details=body)
        return str(job_id)

    def fetch_result(self, job_id: str) -> dict[str, Any]:
        return normalize_result(self._send("GET", f"transcript/{job_id}"))


class FakeAssemblyAIClient:
    """In-memory stub for testing/non-production environments."""

    def __init__(self, **kwargs: Any) -> None:
        self._calls: list[dict[str, Any]] = []
        self._errors: dict[str, AssemblyAIError] = {}
        self.results: dict[str, dict[str, Any]] = {}

    def set_error(self, method: str, error: AssemblyAIError) -> None:
        """Inject a method-specific error for deterministic failure testing."""
        self._errors[method] = error

    def clear_errors(self) -> None:
        self._errors.clear()

    def _raise_if_injected(self, method: str) -> None:
        error = self._errors.get(method)
        if error is not None:
            raise error

    def set_result(self, job_id: str, raw: Mapping[str, Any]) -> None:
        """Register the raw payload returned by fetch_result for ``job_id``."""
        self.results[job_id] = dict(raw)

    def upload(self, audio: bytes) -> str:
        self._calls.append({"method": "upload", "size": len(audio)})
        self._raise_if_injected("upload")
        return f"https://cdn.fake-assemblyai.test/upload/{uuid.uuid4().hex[:12]}"

    def start_job(self, audio_ref: str, webhook_url: str, webhook_secret: str | None = None) -> str:
        self._calls.append(
            {"method": "start_job", "audio_ref": audio_ref, "webhook_url": webhook_url}
        )
        self._raise_if_injected("start_job")
        return f"fake_job_{uuid.uuid4().hex[:12]}"

    def fetch_result(self, job_id: str) -> dict[str, Any]:
        self._calls.append({"method": "fetch_result", "job_id": job_id})
        self._raise_if_injected("fetch_result")
        raw = self.results.get(job_id, {"id": job_id, "status": "completed", "utterances": []})
        return normalize_result(raw)
