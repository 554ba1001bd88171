"""
In-process key/value cache with expiry.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from app.domain.ports import Cache
from app.domain.value_objects import ReadingStatus

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 900
DEFAULT_SLIDING_SECONDS = 300


@dataclass
class _Entry:
    value: Any
    expires_at: float
    """Absolute expiry (monotonic clock)"""
    last_access: float


class MemoryCache(Cache):
    """
    Thread-safe in-memory cache.

    Every entry has an absolute expiry (its TTL). When `sliding_seconds` is
    set, an entry also expires after that long without being read, whichever
    comes first.

    Usage:
        cache = MemoryCache(default_ttl_seconds=900, sliding_seconds=300)
        cache.set("key", value)
        cache.get("key")  # value, or None once expired
    """

    def __init__(
        self,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sliding_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError(f"default_ttl_seconds must be positive, got {default_ttl_seconds}")
        if sliding_seconds is not None and sliding_seconds <= 0:
            raise ValueError(f"sliding_seconds must be positive, got {sliding_seconds}")

        self._default_ttl = default_ttl_seconds
        self._sliding = sliding_seconds
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

        # Expired entries that are never read again are swept from set(),
        # at most once per expiry interval.
        self._sweep_interval = min(default_ttl_seconds, sliding_seconds or default_ttl_seconds)
        self._next_sweep = clock() + self._sweep_interval

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss: {key}")
                return None

            if self._is_expired(entry, now):
                del self._entries[key]
                logger.debug(f"Cache expired: {key}")
                return None

            entry.last_access = now
            logger.debug(f"Cache hit: {key}")
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        if ttl <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl}")

        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._purge_expired(now)
            self._entries[key] = _Entry(value=value, expires_at=now + ttl, last_access=now)

    def purge_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            return self._purge_expired(now)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for entry in self._entries.values() if not self._is_expired(entry, now))

    def _purge_expired(self, now: float) -> int:
        """Caller must hold the lock."""
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug(f"Cache sweep removed {len(expired)} expired entries")
        return len(expired)

    def _is_expired(self, entry: _Entry, now: float) -> bool:
        if now >= entry.expires_at:
            return True
        return self._sliding is not None and now - entry.last_access >= self._sliding


class CacheKeys:
    """Builds the cache keys shared by the caching decorators."""

    @staticmethod
    def user_book(user_book_id: UUID) -> str:
        return f"user_book_{user_book_id}"

    @staticmethod
    def user_books(user_id: UUID) -> str:
        return f"user_books_{user_id}"

    @staticmethod
    def user_books_by_status(user_id: UUID, status: ReadingStatus) -> str:
        return f"user_books_{user_id}_{status.value}"

    @staticmethod
    def book_search(query: str, max_results: int) -> str:
        return f"book_search_{query.strip().lower()}_{max_results}"

    @staticmethod
    def book_isbn(isbn: str) -> str:
        return f"book_isbn_{isbn}"
