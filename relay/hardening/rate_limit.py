"""Sliding-window rate limiting keyed by client identity."""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol

from relay.config import runtime_config

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    # Oldest first; pruned lazily on each check.
    timestamps: List[float] = field(default_factory=list)


class RateLimitStorage(Protocol):
    """Per-identity timestamp store.

    Called synchronously under a per-identity lock from async request
    handlers, so implementations must not block on network I/O.
    """

    def load(self, key: str) -> Optional[RateLimitEntry]:
        ...

    def save(self, key: str, entry: RateLimitEntry) -> None:
        ...


class InMemoryRateLimitStorage:
    """Process-lifetime store. Entries are never evicted."""

    def __init__(self) -> None:
        self._store: Dict[str, RateLimitEntry] = {}

    def load(self, key: str) -> Optional[RateLimitEntry]:
        return self._store.get(key)

    def save(self, key: str, entry: RateLimitEntry) -> None:
        self._store[key] = entry

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: float = 0.0

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds the caller should wait, rounded up."""
        if self.allowed:
            return 0
        return max(1, math.ceil(self.retry_after))


class RateLimitService:
    def __init__(
        self,
        storage: Optional[RateLimitStorage] = None,
        limit: Optional[int] = None,
        window: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.storage = storage if storage is not None else InMemoryRateLimitStorage()
        self._limit = limit
        self._window = window
        self._clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit if self._limit is not None else runtime_config.get_rate_limit_max_requests()

    @property
    def window(self) -> float:
        return self._window if self._window is not None else runtime_config.get_rate_limit_window()

    def _lock_for(self, identity: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(identity)
            if lock is None:
                lock = threading.Lock()
                self._locks[identity] = lock
            return lock

    def check(self, identity: str) -> RateLimitDecision:
        limit = self.limit
        window = self.window
        with self._lock_for(identity):
            now = self._clock()
            entry = self.storage.load(identity) or RateLimitEntry()
            cutoff = now - window
            entry.timestamps = [ts for ts in entry.timestamps if ts > cutoff]

            if len(entry.timestamps) >= limit:
                retry_after = entry.timestamps[0] + window - now
                self.storage.save(identity, entry)
                logger.warning(
                    "Rate limit exceeded for identity=%s (%d requests in %.0fs window)",
                    identity,
                    len(entry.timestamps),
                    window,
                )
                return RateLimitDecision(allowed=False, retry_after=retry_after)

            entry.timestamps.append(now)
            self.storage.save(identity, entry)
            return RateLimitDecision(allowed=True)


_default_limiter = RateLimitService()


def get_rate_limiter() -> RateLimitService:
    return _default_limiter


def set_rate_limiter(limiter: RateLimitService) -> None:
    global _default_limiter
    _default_limiter = limiter
