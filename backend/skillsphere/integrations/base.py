"""Shared plumbing for outbound provider HTTP clients."""

from __future__ import annotations

import logging
from typing import Any, cast

import httpx

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Raised when an external provider is unreachable or responds with an error."""

    provider: str = "external"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class JsonApiClient:
    """Base for the httpx-backed provider clients.

    Subclasses supply ``_auth_headers`` and an error class; ``transport`` lets
    tests swap in ``httpx.MockTransport``.
    """

    error_cls: type[ProviderError] = ProviderError
    label = "provider"

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _auth_headers(self) -> dict[str, str]:
        return {}

    def _default_params(self) -> dict[str, Any]:
        return {}

    def _send(
        self,
        method: str,
        path: str,
        *,
        json_body: Any | None = None,
        content: bytes | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request and return the decoded JSON body."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        merged_headers = {**self._auth_headers(), **(headers or {})}
        merged_params = {**self._default_params(), **(params or {})}

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.request(
                    method,
                    url,
                    headers=merged_headers,
                    json=json_body,
                    content=content,
                    params=merged_params or None,
                )
        except httpx.TransportError as exc:
            logger.error("%s API unreachable for %s %s: %s", self.label, method, path, exc)
            raise self.error_cls(message=f"{self.label} API unreachable: {exc}", status_code=None) from exc

        if response.status_code >= 400:
            error_body: dict[str, Any] = {}
            try:
                parsed_body = response.json()
                if isinstance(parsed_body, dict):
                    error_body = parsed_body
                else:
                    error_body = {"raw": response.text[:500]}
            except ValueError:
                error_body = {"raw": response.text[:500]}

            nested = error_body.get("error")
            if isinstance(nested, dict):
                error_body = {**error_body, **nested}
            message = (
                error_body.get("message")
                or error_body.get("error")
                or error_body.get("description")
                or response.text[:500]
            )
            logger.error(
                "%s API error %s for %s %s: %s",
                self.label,
                response.status_code,
                method,
                path,
                response.text[:500],
            )
            raise self.error_cls(
                message=str(message),
                status_code=response.status_code,
                details=error_body,
            )

        if not response.content:
            return {}
        return cast(dict[str, Any], response.json())
