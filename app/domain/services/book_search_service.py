"""
Catalog lookups used when adding books to a library.
"""

import logging
from typing import List, Optional

from app.domain.ports import BookSearchProvider
from app.domain.value_objects import BookInfo

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 40


def normalize_isbn(isbn: str) -> str:
    """Strip whitespace, spaces and dashes from an ISBN."""
    return isbn.strip().replace("-", "").replace(" ", "")


class BookSearchService:
    """
    Thin use-case layer over a BookSearchProvider.

    Validates and normalizes input before it reaches the (possibly cached)
    external catalog.
    """

    def __init__(self, provider: BookSearchProvider) -> None:
        self._provider = provider

    def search_books(self, query: str, max_results: int = 10) -> List[BookInfo]:
        """
        Search the external catalog.

        A blank query returns no results without calling the provider.
        max_results is clamped to [1, 40].

        Raises:
            RuntimeError: If the catalog is unavailable
        """
        if not query or not query.strip():
            return []

        max_results = max(1, min(max_results, MAX_SEARCH_RESULTS))
        books = self._provider.search_books(query.strip(), max_results)
        logger.info(f"Catalog search '{query.strip()}' returned {len(books)} books")
        return books

    def get_book_by_isbn(self, isbn: str) -> Optional[BookInfo]:
        """
        Look up a book by ISBN (dashes and spaces are ignored).

        Raises:
            RuntimeError: If the catalog is unavailable
        """
        if not isbn or not normalize_isbn(isbn):
            return None

        return self._provider.get_book_by_isbn(normalize_isbn(isbn))
