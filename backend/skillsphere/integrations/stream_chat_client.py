"""Stream Chat Integration Client.

Server-side calls against the Stream Chat REST API: upserting users,
creating messaging channels and signing user tokens for the frontend SDK.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol

import httpx
import jwt
from pydantic import SecretStr

from .base import JsonApiClient, ProviderError

CHANNEL_TYPE = "messaging"


class StreamChatError(ProviderError):
    """Raised when the Stream Chat API responds with an error."""

    provider = "stream_chat"


class ChatProvider(Protocol):
    """Chat capability consumed by session provisioning."""

    def upsert_participants(self, participants: Iterable[Mapping[str, Any]]) -> None:
        ...

    def create_or_get_room(
        self, room_id: str, members: list[str], metadata: Mapping[str, Any] | None = None
    ) -> None:
        ...

    def issue_user_token(self, user_id: str) -> str:
        ...


class StreamChatClient(JsonApiClient):
    """HTTP client for the Stream Chat server API."""

    error_cls = StreamChatError
    label = "Stream Chat"

    def __init__(
        self,
        *,
        api_key: str,
        api_secret: str | SecretStr,
        base_url: str = "https://chat.stream-io-api.com",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self._api_key = api_key
        self._api_secret = (
            api_secret.get_secret_value() if isinstance(api_secret, SecretStr) else api_secret
        )

    def _server_token(self) -> str:
        token: str = jwt.encode({"server": True}, self._api_secret, algorithm="HS256")
        return token

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": self._server_token(),
            "stream-auth-type": "jwt",
            "Content-Type": "application/json",
        }

    def _default_params(self) -> dict[str, Any]:
        return {"api_key": self._api_key}

    def upsert_participants(self, participants: Iterable[Mapping[str, Any]]) -> None:
        """Create or update chat users. Safe to repeat."""
        users: dict[str, dict[str, Any]] = {}
        for participant in participants:
            user_id = str(participant["id"])
            users[user_id] = {
                "id": user_id,
                "name": participant.get("name") or user_id,
                # Stream's built-in "user" role; the marketplace role travels as custom data
                "role": "user",
                "skillsphere_role": participant.get("role"),
            }
            if participant.get("image"):
                users[user_id]["image"] = participant["image"]
        if not users:
            return
        self._send("POST", "users", json_body={"users": users})

    def create_or_get_room(
        self, room_id: str, members: list[str], metadata: Mapping[str, Any] | None = None
    ) -> None:
        """Create a messaging channel, returning normally when it already exists.

        The channel query endpoint is get-or-create, so an existing channel is
        not an error.
        """
        data: dict[str, Any] = {"members": list(members), **dict(metadata or {})}
        if members:
            data.setdefault("created_by_id", members[0])
        self._send(
            "POST",
            f"channels/{CHANNEL_TYPE}/{room_id}/query",
            json_body={"data": data, "state": False, "watch": False, "presence": False},
        )

    def issue_user_token(self, user_id: str) -> str:
        """Sign a frontend token for ``user_id``; no network call."""
        token: str = jwt.encode({"user_id": user_id}, self._api_secret, algorithm="HS256")
        return token


class FakeStreamChatClient:
    """In-memory stub for testing/non-production environments."""

    def __init__(self, **kwargs: Any) -> None:
        self._calls: list[dict[str, Any]] = []
        self._errors: dict[str, StreamChatError] = {}
        self.users: dict[str, dict[str, Any]] = {}
        self.rooms: dict[str, dict[str, Any]] = {}

    def set_error(self, method: str, error: StreamChatError) -> None:
        """Inject a method-specific error for deterministic failure testing."""
        self._errors[method] = error

    def clear_errors(self) -> None:
        self._errors.clear()

    def _raise_if_injected(self, method: str) -> None:
        error = self._errors.get(method)
        if error is not None:
            raise error

    def calls_for(self, method: str) -> list[dict[str, Any]]:
        return [call for call in self._calls if call["method"] == method]

    def upsert_participants(self, participants: Iterable[Mapping[str, Any]]) -> None:
        batch = [dict(participant) for participant in participants]
        self._calls.append({"method": "upsert_participants", "participants": batch})
        self._raise_if_injected("upsert_participants")
        for participant in batch:
            self.users[str(participant["id"])] = participant

    def create_or_get_room(
        self, room_id: str, members: list[str], metadata: Mapping[str, Any] | None = None
    ) -> None:
        self._calls.append(
            {
                "method": "create_or_get_room",
                "room_id": room_id,
                "members": list(members),
                "metadata": dict(metadata or {}),
            }
        )
        self._raise_if_injected("create_or_get_room")
        self.rooms.setdefault(room_id, {"members": list(members), **dict(metadata or {})})

    def issue_user_token(self, user_id: str) -> str:
        self._calls.append({"method": "issue_user_token", "user_id": user_id})
        self._raise_if_injected("issue_user_token")
        return f"fake_chat_token_{user_id}"
