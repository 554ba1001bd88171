"""
Caching decorator for the BookSearchProvider port.
"""

import logging
from typing import List, Optional

from app.domain.ports import BookSearchProvider, Cache
from app.domain.value_objects import BookInfo

from .memory_cache import CacheKeys

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_TTL_SECONDS = 7200
DEFAULT_ISBN_TTL_SECONDS = 86400


class CachedBookSearchProvider(BookSearchProvider):
    """
    Wraps a catalog provider and caches its answers.

    BookInfo is immutable, so cached values are shared as is. ISBN misses
    are not cached; a book that appears in the catalog later is found on the
    next lookup. Provider errors propagate and are never cached.
    """

    def __init__(
        self,
        inner: BookSearchProvider,
        cache: Cache,
        search_ttl: float = DEFAULT_SEARCH_TTL_SECONDS,
        isbn_ttl: float = DEFAULT_ISBN_TTL_SECONDS,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._search_ttl = search_ttl
        self._isbn_ttl = isbn_ttl

    def search_books(self, query: str, max_results: int = 10) -> List[BookInfo]:
        key = CacheKeys.book_search(query, max_results)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        books = self._inner.search_books(query, max_results)
        self._cache.set(key, tuple(books), self._search_ttl)
        return books

    def get_book_by_isbn(self, isbn: str) -> Optional[BookInfo]:
        key = CacheKeys.book_isbn(isbn)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        book = self._inner.get_book_by_isbn(isbn)
        if book is not None:
            self._cache.set(key, book, self._isbn_ttl)
        else:
            logger.debug(f"ISBN {isbn} not found; not caching the miss")
        return book
