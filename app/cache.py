"""In-memory TTL cache used for registry searches and weather forecasts."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache")

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Payload with the time it was stored and the TTL it was stored under."""
    value: T
    stored_at: float
    ttl_seconds: float

    def expired(self, now: float) -> bool:
        """Return True once the entry is older than its TTL."""
        return now - self.stored_at > self.ttl_seconds


class TTLCache(Generic[T]):
    """Thread-safe, TTL-aware key/value store.

    Expiry is lazy: `get` treats a stale entry as absent but leaves it in place
    until it is replaced or a size-cap purge runs. Entries are never mutated;
    `put` swaps in a new `CacheEntry`.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Clock = time.monotonic,
        max_entries: int | None = None,
        name: str = "cache",
    ) -> None:
        """Initialize with a TTL (seconds), a clock and an optional size cap."""
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self.name = name
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._inflight: Dict[Hashable, threading.Lock] = {}
        self._inflight_lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[T]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            logger.debug("Cache entry expired", extra={"cache": self.name, "key": key})
            return None
        return entry.value

    def put(self, key: Hashable, value: T) -> None:
        """Store `value` under `key`, replacing any previous entry."""
        entry = CacheEntry(value=value, stored_at=self._clock(), ttl_seconds=self.ttl)
        with self._lock:
            self._entries[key] = entry
            self._enforce_cap()

    def get_or_fetch(self, key: Hashable, fetch: Callable[[], T]) -> T:
        """Return the cached value or call `fetch` once and cache its result.

        Concurrent callers missing on the same key wait for a single in-flight
        fetch instead of each going to the network. Exceptions from `fetch`
        propagate and leave the cache untouched.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        with self._inflight_lock:
            key_lock = self._inflight.setdefault(key, threading.Lock())

        with key_lock:
            # another caller may have filled it while we waited
            cached = self.get(key)
            if cached is not None:
                return cached
            try:
                value = fetch()
                self.put(key, value)
                return value
            finally:
                with self._inflight_lock:
                    self._inflight.pop(key, None)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _enforce_cap(self) -> None:
        """Purge expired entries, then the oldest, until under the cap. Caller holds the lock."""
        if self.max_entries is None or len(self._entries) <= self.max_entries:
            return
        now = self._clock()
        for k in [k for k, e in self._entries.items() if e.expired(now)]:
            del self._entries[k]
        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            oldest = sorted(self._entries.items(), key=lambda kv: kv[1].stored_at)[:overflow]
            for k, _entry in oldest:
                del self._entries[k]
            logger.debug("Evicted oldest cache entries", extra={"cache": self.name, "evicted": overflow})
