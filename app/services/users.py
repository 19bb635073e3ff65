"""Resolution of the acting user behind a request token."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from app.core.config import get_settings

logger = logging.getLogger("app.services.users")

CURRENT_USER_PATH = "/api/v1/users/me"


class UserResolutionError(Exception):
    """Raised when the token does not identify a valid user."""


class UserService(Protocol):
    def get_logged_in_user(self, token: str) -> int:
        ...


class UnconfiguredUserService:
    """Used when no authorizer is configured; identifies nobody."""

    def get_logged_in_user(self, token: str) -> int:
        raise UserResolutionError("user resolution is not configured")


class RemoteUserService:
    """Asks the authorizer which user a token belongs to."""

    def __init__(self, client: httpx.Client, *, token_header: str = "token") -> None:
        self._client = client
        self._token_header = token_header

    def close(self) -> None:
        self._client.close()

    def get_logged_in_user(self, token: str) -> int:
        if not token:
            raise UserResolutionError("missing token")
        try:
            response = self._client.get(CURRENT_USER_PATH, headers={self._token_header: token})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise UserResolutionError(f"user lookup rejected: {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            logger.error("user_lookup_request_error", extra={"error": str(exc)})
            raise UserResolutionError(f"failed to reach authorizer: {exc}") from exc
        except ValueError as exc:
            raise UserResolutionError("authorizer returned a non-JSON response") from exc

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
            raise UserResolutionError("token does not identify a user")
        return user_id


_shared_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """Return the process-wide user service, built from settings on first use."""

    global _shared_user_service
    if _shared_user_service is not None:
        return _shared_user_service

    settings = get_settings()
    if settings.authorizer_url:
        client = httpx.Client(
            base_url=settings.authorizer_url.rstrip("/"),
            timeout=settings.authorizer_timeout_seconds,
        )
        _shared_user_service = RemoteUserService(client, token_header=settings.token_header)
    else:
        _shared_user_service = UnconfiguredUserService()
    return _shared_user_service


def close_user_service() -> None:
    global _shared_user_service
    service, _shared_user_service = _shared_user_service, None
    if isinstance(service, RemoteUserService):
        service.close()
