"""100ms Video Platform Integration Client.

Handles room creation with a management token for server-to-server calls to
the 100ms REST API, and per-participant auth tokens for joining rooms.
"""

from __future__ import annotations

import json
import time
from typing import Any, Protocol
import uuid

import httpx
import jwt
from pydantic import SecretStr

from .base import JsonApiClient, ProviderError


class HundredMsError(ProviderError):
    """Raised when the 100ms API responds with an error."""

    provider = "hundredms"


class VideoProvider(Protocol):
    """Issues room-scoped RTC tokens for a named video room."""

    def issue_room_token(self, room_name: str, user_id: str, role: str, ttl_seconds: int) -> str:
        ...


class HundredMsClient(JsonApiClient):
    """HTTP client for 100ms REST API."""

    error_cls = HundredMsError
    label = "100ms"

    def __init__(
        self,
        *,
        access_key: str,
        app_secret: str | SecretStr,
        base_url: str = "https://api.100ms.live/v2",
        template_id: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self._access_key = access_key
        self._app_secret = (
            app_secret.get_secret_value() if isinstance(app_secret, SecretStr) else app_secret
        )
        self._template_id = template_id
        self._mgmt_token: str | None = None
        self._mgmt_token_refresh_at: float = 0.0

    def _generate_management_token(self) -> str:
        """Generate a management token for server-to-server API calls.

        This is a JWT signed with HS256 using our app_secret.
        """
        now = int(time.time())
        payload = {
            "access_key": self._access_key,
            "type": "management",
            "version": 2,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "nbf": now,
            "exp": now + 3600,
        }
        token: str = jwt.encode(
            payload,
            self._app_secret,
            algorithm="HS256",
            headers={"alg": "HS256", "typ": "JWT"},
        )
        return token

    def _get_management_token(self) -> str:
        """Return a cached management token, refreshing before expiry."""
        now = time.monotonic()
        if self._mgmt_token is None or now >= self._mgmt_token_refresh_at:
            self._mgmt_token = self._generate_management_token()
            # Token lifetime is 60 minutes; rotate after 50.
            self._mgmt_token_refresh_at = now + (50 * 60)
        return self._mgmt_token

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._get_management_token()}",
            "Content-Type": "application/json",
        }

    # ── High-level API methods ──────────────────────────────────────────

    def create_room(
        self,
        *,
        name: str,
        description: str | None = None,
        template_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a 100ms room.

        If a room with the same name already exists, 100ms returns the existing
        room, so calling this again for the same session name is safe.
        """
        body: dict[str, Any] = {"name": name}
        tid = template_id or self._template_id
        if tid:
            body["template_id"] = tid
        if description:
            body["description"] = description

        return self._send("POST", "rooms", json_body=body)

    def generate_auth_token(
        self,
        *,
        room_id: str,
        user_id: str,
        role: str,
        validity_seconds: int = 3600,
    ) -> str:
        """Generate a per-participant auth token for joining a 100ms room."""
        now = int(time.time())
        payload = {
            "access_key": self._access_key,
            "room_id": room_id,
            "user_id": user_id,
            "role": role,
            "type": "app",
            "version": 2,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "nbf": now,
            "exp": now + validity_seconds,
            "metadata": json.dumps({"user_id": user_id}),
        }
        token: str = jwt.encode(
            payload,
            self._app_secret,
            algorithm="HS256",
            headers={"alg": "HS256", "typ": "JWT"},
        )
        return token

    def issue_room_token(self, room_name: str, user_id: str, role: str, ttl_seconds: int) -> str:
        """Resolve (or create) the room by name and sign a join token for it."""
        room = self.create_room(name=room_name)
        room_id = room.get("id")
        if not room_id:
            raise HundredMsError(message="100ms create_room response missing id", details=room)
        return self.generate_auth_token(
            room_id=str(room_id),
            user_id=user_id,
            role=role,
            validity_seconds=ttl_seconds,
        )


class FakeHundredMsClient:
    """In-memory stub for testing/non-production environments."""

    def __init__(self, **kwargs: Any) -> None:
        self._calls: list[dict[str, Any]] = []
        self._errors: dict[str, HundredMsError] = {}
        self._rooms: dict[str, str] = {}

    def set_error(self, method: str, error: HundredMsError) -> None:
        """Inject a method-specific error for deterministic failure testing."""
        self._errors[method] = error

    def clear_errors(self) -> None:
        self._errors.clear()

    def _raise_if_injected(self, method: str) -> None:
        error = self._errors.get(method)
        if error is not None:
            raise error

    def create_room(self, *, name: str, **kwargs: Any) -> dict[str, Any]:
        self._calls.append({"method": "create_room", "name": name, **kwargs})
        self._raise_if_injected("create_room")
        room_id = self._rooms.setdefault(name, f"fake_room_{uuid.uuid4().hex[:12]}")
        return {"id": room_id, "name": name, "enabled": True}

    def issue_room_token(self, room_name: str, user_id: str, role: str, ttl_seconds: int) -> str:
        self._calls.append(
            {
                "method": "issue_room_token",
                "room_name": room_name,
                "user_id": user_id,
                "role": role,
                "ttl_seconds": ttl_seconds,
            }
        )
        self._raise_if_injected("issue_room_token")
        return f"fake_auth_token_{room_name}_{user_id}"
