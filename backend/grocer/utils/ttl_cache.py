"""In-process TTL cache with stale-on-error serving.

One instance per cached concern (promotions, image URLs), created at process
start and owned by ``GroceryServices``. Keys are hashed from their parts so
callers can pass raw user input. A lock guards the entry map; generation
itself runs outside the lock, so two concurrent misses may both regenerate
and the later write wins.
"""

from __future__ import annotations

import hashlib
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    key: str
    value: T
    created_at: float


class TTLCache(Generic[T]):
    """Key → value map with a single TTL; ``ttl_seconds=None`` never expires."""

    def __init__(
        self,
        namespace: str,
        ttl_seconds: float | None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(*parts: str) -> str:
        raw = "|".join(parts)
        return hashlib.sha256(raw.encode()).hexdigest()[:20]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_fresh(self, entry: CacheEntry[T]) -> bool:
        if self.ttl_seconds is None:
            return True
        return self._clock() - entry.created_at <= self.ttl_seconds

    def get(self, key: str) -> T | None:
        """Return the value if present and within TTL."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            return None
        return entry.value

    def get_stale(self, key: str) -> T | None:
        """Return the value regardless of age."""
        with self._lock:
            entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, created_at=self._clock())

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def get_or_generate(
        self,
        key: str,
        generate: Callable[[], Awaitable[T]],
        *,
        refresh: bool = False,
    ) -> T:
        """Serve a fresh entry, else regenerate; fall back to a stale entry on failure.

        ``refresh=True`` drops the entry first, so a failed refresh has no
        stale copy to fall back to and the error propagates.
        """
        if refresh:
            self.invalidate(key)
        else:
            cached = self.get(key)
            if cached is not None:
                logger.info("cache_hit", namespace=self.namespace)
                return cached

        logger.info("cache_miss", namespace=self.namespace, refresh=refresh)
        try:
            value = await generate()
        except Exception as exc:
            stale = self.get_stale(key)
            if stale is None:
                raise
            logger.warning(
                "cache_serving_stale",
                namespace=self.namespace,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return stale

        self.set(key, value)
        return value
