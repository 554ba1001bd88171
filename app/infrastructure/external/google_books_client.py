"""
Google Books API client implementing the BookSearchProvider port.

The client translates Google Books volume JSON into BookInfo value objects,
so nothing outside this module knows about the API's field names.

The constructor accepts an optional `session` parameter:
- In production: uses requests.Session() by default
- In tests: inject a fake session that returns canned responses
"""

import logging
import random
import re
import time
from typing import Any, List, Optional

import requests

from app.domain.ports import BookSearchProvider
from app.domain.value_objects import BookInfo

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown Author"
COVER_IMAGE_PREFERENCE = ("medium", "small", "thumbnail", "large")


class GoogleBooksClient(BookSearchProvider):
    """
    Google Books API client for catalog lookups.

    Features:
    - Free-text search and ISBN lookup (`isbn:` query)
    - Retries with exponential backoff on transient failures
    - Graceful handling of missing/partial data from the API
    - Dependency-injected HTTP session for testability

    Usage:
        # Production
        client = GoogleBooksClient(api_key="your-api-key")
        books = client.search_books("the hobbit", max_results=10)

        # Testing (with fake session)
        client = GoogleBooksClient(session=fake_session)
        books = client.search_books("test query")
    """

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"
    MAX_RESULTS_PER_REQUEST = 40

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[Any] = None,
        timeout_s: float = 10,
        max_retries: int = 3,
        base_backoff_s: float = 0.5,
    ) -> None:
        """
        Initialize the Google Books client.

        Args:
            api_key: Optional Google API key for higher rate limits.
                    Without a key, requests are limited but still work.
            session: Optional HTTP session for dependency injection.
                    If None, creates a new requests.Session().
            timeout_s: Per-request timeout in seconds
            max_retries: Retries for transient failures (0 disables retrying)
            base_backoff_s: First backoff delay; doubles on each retry
        """
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._base_backoff_s = base_backoff_s

        if session is not None:
            self._session = session
        else:
            self._session = requests.Session()
            self._session.headers.update({
                "User-Agent": "ReadingTracker/1.0",
                "Accept": "application/json",
            })

    def search_books(self, query: str, max_results: int = 10) -> List[BookInfo]:
        """
        Search for books in Google Books.

        Args:
            query: Search query (e.g., "tolkien hobbit")
            max_results: Maximum number of books to return (1-40)

        Returns:
            List of BookInfo parsed from the response; volumes without a
            title are skipped

        Raises:
            ValueError: If query is empty or blank
            RuntimeError: If the API request fails
        """
        if not query or not query.strip():
            raise ValueError("query cannot be empty")

        params = {
            "q": query.strip(),
            "maxResults": max(1, min(max_results, self.MAX_RESULTS_PER_REQUEST)),
        }

        data = self._fetch(params)
        books = []
        for item in data.get("items", []):
            book = self._parse_volume(item)
            if book is not None:
                books.append(book)

        logger.info(f"Google Books search '{query.strip()}' returned {len(books)} books")
        return books

    def get_book_by_isbn(self, isbn: str) -> Optional[BookInfo]:
        """
        Look up a book by ISBN.

        Returns:
            BookInfo of the first matching volume, None if nothing matches

        Raises:
            RuntimeError: If the API request fails
        """
        if not isbn or not isbn.strip():
            return None

        data = self._fetch({"q": f"isbn:{isbn.strip()}", "maxResults": 1})
        for item in data.get("items", []):
            book = self._parse_volume(item)
            if book is not None:
                return book

        logger.info(f"No Google Books volume found for ISBN {isbn.strip()}")
        return None

    # =========================================================================
    # Private helper methods
    # =========================================================================

    def _fetch(self, params: dict) -> dict:
        if self._api_key:
            params["key"] = self._api_key

        response = self._get_with_retries(self.BASE_URL, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise RuntimeError(f"Invalid JSON response from Google Books API: {e}") from e

    def _get_with_retries(self, url: str, *, params: dict) -> requests.Response:
        retryable_statuses = {429, 500, 502, 503, 504}

        attempt = 0
        while True:
            try:
                response = self._session.get(url, params=params, timeout=self._timeout_s)
                response.raise_for_status()
                return response
            except requests.exceptions.HTTPError as e:
                status_code = getattr(getattr(e, "response", None), "status_code", None)
                if status_code in retryable_statuses and attempt < self._max_retries:
                    sleep_s = self._backoff(attempt)
                    logger.warning(
                        "Google Books API transient HTTP %s; retrying in %.2fs (attempt %s/%s)",
                        status_code,
                        sleep_s,
                        attempt + 1,
                        self._max_retries,
                    )
                    time.sleep(sleep_s)
                    attempt += 1
                    continue
                raise RuntimeError(f"Google Books API request failed: {e}") from e
            except requests.exceptions.RequestException as e:
                if attempt < self._max_retries:
                    sleep_s = self._backoff(attempt)
                    logger.warning(
                        "Google Books API request failed (%s); retrying in %.2fs (attempt %s/%s)",
                        type(e).__name__,
                        sleep_s,
                        attempt + 1,
                        self._max_retries,
                    )
                    time.sleep(sleep_s)
                    attempt += 1
                    continue
                raise RuntimeError(f"Google Books API request failed: {e}") from e

    def _backoff(self, attempt: int) -> float:
        return self._base_backoff_s * (2 ** attempt) + random.uniform(0, 0.2)

    def _parse_volume(self, volume: dict) -> Optional[BookInfo]:
        """
        Parse a Google Books volume JSON object into a BookInfo.

        Handles missing fields gracefully: a volume without a title is
        skipped, missing authors become "Unknown Author", and values that
        fail BookInfo validation (page count, year) are dropped.

        Args:
            volume: Raw JSON object from Google Books API

        Returns:
            BookInfo if the volume has a title, None otherwise
        """
        volume_info = volume.get("volumeInfo") or {}

        title = (volume_info.get("title") or "").strip()
        if not title:
            return None

        authors = [a.strip() for a in volume_info.get("authors") or [] if a and a.strip()]
        author = ", ".join(authors) if authors else UNKNOWN_AUTHOR

        page_count = volume_info.get("pageCount")
        total_pages = page_count if isinstance(page_count, int) and page_count > 0 else None

        categories = volume_info.get("categories") or []

        fields = dict(
            title=title,
            author=author,
            isbn=self._extract_isbn(volume_info),
            publisher=volume_info.get("publisher"),
            publication_year=self._parse_year(volume_info.get("publishedDate")),
            total_pages=total_pages,
            genre=categories[0] if categories else None,
            description=volume_info.get("description"),
            cover_image_url=self._extract_cover(volume_info),
        )

        try:
            return BookInfo(**fields)
        except ValueError as e:
            logger.warning(f"Dropping publication year of '{title}': {e}")
            fields["publication_year"] = None
            return BookInfo(**fields)

    @staticmethod
    def _extract_isbn(volume_info: dict) -> Optional[str]:
        """Prefer ISBN_13, fall back to ISBN_10."""
        isbn_10 = None
        for identifier in volume_info.get("industryIdentifiers") or []:
            id_type = identifier.get("type", "")
            value = identifier.get("identifier")
            if id_type == "ISBN_13" and value:
                return value
            if id_type == "ISBN_10" and value:
                isbn_10 = value
        return isbn_10

    @staticmethod
    def _parse_year(date_str: Optional[str]) -> Optional[int]:
        """
        Google Books returns dates as "2024", "2024-06" or "2024-06-15";
        only the year is kept.
        """
        if not date_str:
            return None

        match = re.match(r"^(\d{4})", date_str)
        return int(match.group(1)) if match else None

    @staticmethod
    def _extract_cover(volume_info: dict) -> Optional[str]:
        image_links = volume_info.get("imageLinks") or {}
        for size in COVER_IMAGE_PREFERENCE:
            if image_links.get(size):
                return image_links[size]
        return None
