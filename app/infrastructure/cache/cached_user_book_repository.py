"""
Caching decorator for the UserBookRepository port.
"""

import copy
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from app.domain.entities import UserBook
from app.domain.ports import Cache, UserBookRepository
from app.domain.value_objects import ReadingStatus, UserBookPage

from .memory_cache import CacheKeys

logger = logging.getLogger(__name__)

DEFAULT_USER_BOOK_TTL_SECONDS = 1800


class CachedUserBookRepository(UserBookRepository):
    """
    Wraps another repository and caches the hot read paths
    (get_by_id, get_by_user_id, find_by_status).

    Writes go to the inner repository first; on success the entry and every
    list cached for its owner are invalidated. Other queries pass through.

    Aggregates are mutable, so values are deep-copied on the way into and out
    of the cache.
    """

    def __init__(
        self,
        inner: UserBookRepository,
        cache: Cache,
        ttl_seconds: float = DEFAULT_USER_BOOK_TTL_SECONDS,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._ttl = ttl_seconds

    # =========================================================================
    # Cached reads
    # =========================================================================

    def get_by_id(self, user_book_id: UUID) -> Optional[UserBook]:
        key = CacheKeys.user_book(user_book_id)
        cached = self._cache.get(key)
        if cached is not None:
            return copy.deepcopy(cached)

        user_book = self._inner.get_by_id(user_book_id)
        if user_book is not None:
            self._cache.set(key, copy.deepcopy(user_book), self._ttl)
        return user_book

    def get_by_user_id(self, user_id: UUID) -> List[UserBook]:
        return self._cached_list(
            CacheKeys.user_books(user_id), lambda: self._inner.get_by_user_id(user_id)
        )

    def find_by_status(self, user_id: UUID, status: ReadingStatus) -> List[UserBook]:
        return self._cached_list(
            CacheKeys.user_books_by_status(user_id, status),
            lambda: self._inner.find_by_status(user_id, status),
        )

    def _cached_list(self, key: str, load) -> List[UserBook]:
        cached = self._cache.get(key)
        if cached is not None:
            return copy.deepcopy(cached)

        user_books = load()
        self._cache.set(key, copy.deepcopy(user_books), self._ttl)
        return user_books

    # =========================================================================
    # Writes
    # =========================================================================

    def add(self, user_book: UserBook) -> None:
        self._inner.add(user_book)
        self._invalidate(user_book.user_book_id, user_book.user_id)

    def update(self, user_book: UserBook) -> None:
        try:
            self._inner.update(user_book)
        finally:
            # A failed update (e.g. a version conflict) means the cached copy is stale.
            self._invalidate(user_book.user_book_id, user_book.user_id)

    def delete(self, user_book_id: UUID) -> bool:
        existing = self.get_by_id(user_book_id)
        deleted = self._inner.delete(user_book_id)
        if existing is not None:
            self._invalidate(user_book_id, existing.user_id)
        else:
            self._cache.remove(CacheKeys.user_book(user_book_id))
        return deleted

    def _invalidate(self, user_book_id: UUID, user_id: UUID) -> None:
        self._cache.remove(CacheKeys.user_book(user_book_id))
        self._cache.remove(CacheKeys.user_books(user_id))
        for status in ReadingStatus:
            self._cache.remove(CacheKeys.user_books_by_status(user_id, status))
        logger.debug(f"Invalidated cached library entries of user {user_id}")

    # =========================================================================
    # Pass-through
    # =========================================================================

    def get_by_user_and_book(self, user_id: UUID, book_id: str) -> Optional[UserBook]:
        return self._inner.get_by_user_and_book(user_id, book_id)

    def find_currently_reading(self, user_id: UUID) -> List[UserBook]:
        return self.find_by_status(user_id, ReadingStatus.READING)

    def find_recently_finished(self, user_id: UUID, days: int = 30) -> List[UserBook]:
        return self._inner.find_recently_finished(user_id, days)

    def find_by_rating(self, user_id: UUID, rating: int) -> List[UserBook]:
        return self._inner.find_by_rating(user_id, rating)

    def search(self, user_id: UUID, search_term: str) -> List[UserBook]:
        return self._inner.search(user_id, search_term)

    def find_by_author(self, user_id: UUID, author: str) -> List[UserBook]:
        return self._inner.find_by_author(user_id, author)

    def find_by_date_range(
        self, user_id: UUID, start_date: datetime, end_date: datetime
    ) -> List[UserBook]:
        return self._inner.find_by_date_range(user_id, start_date, end_date)

    def get_total_books_count(self, user_id: UUID) -> int:
        return self._inner.get_total_books_count(user_id)

    def get_books_count_by_status(self, user_id: UUID, status: ReadingStatus) -> int:
        return self._inner.get_books_count_by_status(user_id, status)

    def has_user_book(self, user_id: UUID, book_id: str) -> bool:
        return self._inner.has_user_book(user_id, book_id)

    def get_paged(
        self,
        user_id: UUID,
        page_number: int,
        page_size: int,
        status_filter: Optional[ReadingStatus] = None,
        search_term: Optional[str] = None,
    ) -> UserBookPage:
        return self._inner.get_paged(
            user_id, page_number, page_size, status_filter=status_filter, search_term=search_term
        )
