"""Client for the external identity provider (GoTrue-compatible REST API)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Identity provider rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_rejection(self) -> bool:
        """True when the provider answered with a 4xx."""
        return self.status_code is not None and 400 <= self.status_code < 500

    @property
    def is_duplicate(self) -> bool:
        lowered = self.message.lower()
        return "already registered" in lowered or "already exists" in lowered


@dataclass(frozen=True)
class IdentityUser:
    id: str
    email: str
    user_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def avatar_url(self) -> str | None:
        value = self.user_metadata.get("avatar_url")
        return str(value) if value else None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> IdentityUser:
        user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        user_id = user.get("id")
        if not user_id:
            raise IdentityError("Identity provider returned no user")
        metadata = user.get("user_metadata")
        return cls(
            id=str(user_id),
            email=str(user.get("email") or ""),
            user_metadata=metadata if isinstance(metadata, dict) else {},
        )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return f"HTTP {response.status_code}"


class IdentityClient:
    """HTTP client for sign-up and access-token verification."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"apikey": api_key, "Accept": "application/json"}

    def _request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        headers: dict | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}/auth/v1{path}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.request(
                    method, url, json=json, headers={**self.headers, **(headers or {})}
                )
        except httpx.RequestError as exc:
            logger.error("Identity provider request error: %s", exc)
            raise IdentityError(f"Request error: {exc}") from exc

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "identity_request_failed path=%s status=%s message=%s",
                path,
                response.status_code,
                message,
            )
            raise IdentityError(message, response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise IdentityError("Invalid JSON response from identity provider") from exc
        if not isinstance(payload, dict):
            raise IdentityError("Invalid response structure from identity provider")
        return payload

    def sign_up(self, email: str, password: str, name: str | None = None) -> IdentityUser:
        body: dict[str, Any] = {"email": email, "password": password}
        if name:
            body["data"] = {"name": name}
        payload = self._request("POST", "/signup", json=body)
        return IdentityUser.from_payload(payload)

    def get_user(self, access_token: str) -> IdentityUser:
        payload = self._request(
            "GET", "/user", headers={"Authorization": f"Bearer {access_token}"}
        )
        return IdentityUser.from_payload(payload)


@lru_cache(maxsize=1)
def get_identity_client() -> IdentityClient:
    settings.validate_identity_config()
    return IdentityClient(
        base_url=settings.identity_url,
        api_key=settings.identity_anon_key or "",
        timeout=settings.identity_timeout_seconds,
    )
