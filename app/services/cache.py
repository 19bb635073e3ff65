"""Short-lived cache of batch enforcement decisions."""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Callable, Dict, Iterable, Optional, Protocol, Tuple

from app.core.config import get_settings

# (token digest, resource kind, action, object id)
DecisionCacheKey = Tuple[str, str, str, str]


def token_digest(token: str) -> str:
    """Cache keys never hold the raw credential."""

    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class DecisionCache(Protocol):
    """Contract for caching per-object enforcement decisions."""

    def get_many(self, keys: Iterable[DecisionCacheKey]) -> Dict[DecisionCacheKey, bool]:
        ...

    def set_many(self, decisions: Dict[DecisionCacheKey, bool]) -> None:
        ...

    def invalidate(self) -> None:
        ...


@dataclass
class InMemoryDecisionCache(DecisionCache):
    """Thread-safe in-memory cache with per-entry expiry."""

    ttl_seconds: int = 30
    clock: Callable[[], float] = field(default=time.monotonic)

    def __post_init__(self) -> None:
        self._store: Dict[DecisionCacheKey, Tuple[bool, float]] = {}
        self._lock = RLock()

    def get_many(self, keys: Iterable[DecisionCacheKey]) -> Dict[DecisionCacheKey, bool]:
        now = self.clock()
        found: Dict[DecisionCacheKey, bool] = {}
        with self._lock:
            for key in keys:
                entry = self._store.get(key)
                if entry is None:
                    continue
                value, expires_at = entry
                if expires_at <= now:
                    del self._store[key]
                    continue
                found[key] = value
        return found

    def set_many(self, decisions: Dict[DecisionCacheKey, bool]) -> None:
        if self.ttl_seconds <= 0:
            return
        now = self.clock()
        expires_at = now + self.ttl_seconds
        with self._lock:
            # Keys carry the token digest, so entries of rotated tokens are never read again.
            expired = [key for key, (_, entry_expiry) in self._store.items() if entry_expiry <= now]
            for key in expired:
                del self._store[key]
            for key, value in decisions.items():
                self._store[key] = (value, expires_at)

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def invalidate(self) -> None:
        with self._lock:
            self._store.clear()


_shared_cache: Optional[DecisionCache] = None


def get_decision_cache() -> DecisionCache:
    """Return the process-wide decision cache instance."""

    global _shared_cache
    if _shared_cache is None:
        _shared_cache = InMemoryDecisionCache(ttl_seconds=get_settings().decision_cache_ttl)
    return _shared_cache
