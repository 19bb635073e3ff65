"""Client for the external batch enforcement endpoint."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol, Sequence

import httpx

from app.core.config import get_settings
from app.services.cache import DecisionCache, DecisionCacheKey, get_decision_cache, token_digest

logger = logging.getLogger("app.services.enforcer")

ENFORCE_BATCH_PATH = "/api/v1/enforce/batch"


class EnforcerError(Exception):
    """Raised when the enforcement backend cannot produce decisions."""


class Enforcer(Protocol):
    def enforce_in_batch(
        self,
        token: str,
        resource: str,
        action: str,
        objects: Sequence[str],
    ) -> Dict[str, bool]:
        ...


class DenyAllEnforcer:
    """Stand-in used when no authorizer is configured: every object is denied."""

    def enforce_in_batch(
        self,
        token: str,
        resource: str,
        action: str,
        objects: Sequence[str],
    ) -> Dict[str, bool]:
        logger.warning(
            "enforcer_not_configured",
            extra={"resource": resource, "action": action, "object_count": len(objects)},
        )
        return {obj: False for obj in objects}


class HttpEnforcer:
    """Posts batch checks to the authorizer, caching decisions per object."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        token_header: str = "token",
        cache: Optional[DecisionCache] = None,
    ) -> None:
        self._client = client
        self._token_header = token_header
        self._cache = cache or get_decision_cache()

    def close(self) -> None:
        self._client.close()

    def enforce_in_batch(
        self,
        token: str,
        resource: str,
        action: str,
        objects: Sequence[str],
    ) -> Dict[str, bool]:
        digest = token_digest(token)
        keys: Dict[str, DecisionCacheKey] = {obj: (digest, resource, action, obj) for obj in objects}
        cached = self._cache.get_many(keys.values())
        result = {obj: cached[key] for obj, key in keys.items() if key in cached}

        pending: List[str] = [obj for obj in keys if obj not in result]
        if not pending:
            return result

        decisions = self._fetch(token, resource, action, pending)
        fetched = {obj: allowed for obj, allowed in decisions.items() if obj in keys}
        self._cache.set_many({keys[obj]: allowed for obj, allowed in fetched.items()})
        result.update(fetched)
        return result

    def _fetch(self, token: str, resource: str, action: str, objects: List[str]) -> Dict[str, bool]:
        try:
            response = self._client.post(
                ENFORCE_BATCH_PATH,
                json={"resource": resource, "action": action, "objects": objects},
                headers={self._token_header: token},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "enforcer_http_error",
                extra={"resource": resource, "action": action, "status_code": exc.response.status_code},
            )
            raise EnforcerError(f"batch enforcement failed: {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            logger.error(
                "enforcer_request_error",
                extra={"resource": resource, "action": action, "error": str(exc)},
            )
            raise EnforcerError(f"failed to reach authorizer: {exc}") from exc
        except ValueError as exc:
            raise EnforcerError("authorizer returned a non-JSON response") from exc

        decisions = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(decisions, dict):
            raise EnforcerError("authorizer response has no result map")
        return {str(obj): bool(allowed) for obj, allowed in decisions.items()}


_shared_enforcer: Optional[Enforcer] = None


def get_enforcer() -> Enforcer:
    """Return the process-wide enforcer, built from settings on first use."""

    global _shared_enforcer
    if _shared_enforcer is not None:
        return _shared_enforcer

    settings = get_settings()
    if settings.authorizer_url:
        client = httpx.Client(
            base_url=settings.authorizer_url.rstrip("/"),
            timeout=settings.authorizer_timeout_seconds,
        )
        _shared_enforcer = HttpEnforcer(client, token_header=settings.token_header)
    else:
        _shared_enforcer = DenyAllEnforcer()
    return _shared_enforcer


def close_enforcer() -> None:
    """Release the process-wide enforcer; the next call to get_enforcer rebuilds it."""

    global _shared_enforcer
    enforcer, _shared_enforcer = _shared_enforcer, None
    if isinstance(enforcer, HttpEnforcer):
        enforcer.close()
