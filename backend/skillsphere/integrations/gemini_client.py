"""Gemini generative-text Integration Client."""

from __future__ import annotations

from typing import Any, Protocol

import httpx
from pydantic import SecretStr

from .base import JsonApiClient, ProviderError


class GeminiError(ProviderError):
    """Raised when the Gemini API responds with an error or an empty answer."""

    provider = "gemini"


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str:
        ...


class GeminiClient(JsonApiClient):
    """HTTP client for the Gemini ``generateContent`` endpoint."""

    error_cls = GeminiError
    label = "Gemini"

    def __init__(
        self,
        *,
        api_key: str | SecretStr,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self._api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self._model = model

    def _default_params(self) -> dict[str, Any]:
        return {"key": self._api_key}

    def generate(self, prompt: str) -> str:
        body = self._send(
            "POST",
            f"models/{self._model}:generateContent",
            json_body={"contents": [{"parts": [{"text": prompt}]}]},
            headers={"Content-Type": "application/json"},
        )
        candidates = body.get("candidates") or []
        for candidate in candidates:
            parts = (candidate.get("content") or {}).get("parts") or []
            text = "".join(str(part.get("text", "")) for part in parts).strip()
            if text:
                return text
        raise GeminiError(message="Gemini returned no text", details=body)


class DisabledTextGenerator:
    """Always-present stand-in when no Gemini key is configured."""

    def generate(self, prompt: str) -> str:
        raise GeminiError(message="Generative text provider is not configured")


class FakeTextGenerator:
    """In-memory stub for tests: replays queued answers or raises an injected error."""

    def __init__(self, answers: list[str] | None = None) -> None:
        self._calls: list[dict[str, Any]] = []
        self._answers = list(answers or [])
        self._error: GeminiError | None = None

    def set_error(self, error: GeminiError | None) -> None:
        self._error = error

    def generate(self, prompt: str) -> str:
        self._calls.append({"method": "generate", "prompt": prompt})
        if self._error is not None:
            raise self._error
        if self._answers:
            return self._answers.pop(0)
        return "Fake answer"
