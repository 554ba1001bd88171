"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of repositories and services
for use with FastAPI's Depends() system.

Note: We use module-level singletons instead of @lru_cache with Depends()
parameters, which is an antipattern that can cause unexpected behavior.
"""

import os
from pathlib import Path
from typing import Optional
from uuid import UUID

from app.domain.ports import BookSearchProvider, Cache, DomainEventDispatcher, UserBookRepository
from app.domain.services import BookSearchService, LibraryService, ReadingStatisticsService
from app.infrastructure.cache import CachedBookSearchProvider, CachedUserBookRepository, MemoryCache
from app.infrastructure.db.sqlite_user_book_repository import SqliteUserBookRepository
from app.infrastructure.events.logging_event_dispatcher import LoggingDomainEventDispatcher
from app.infrastructure.external.google_books_client import GoogleBooksClient

# Configuration from environment
DB_PATH = Path(os.getenv("DB_PATH", "data/reading_tracker.db"))
GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")
GOOGLE_BOOKS_TIMEOUT_S = float(os.getenv("GOOGLE_BOOKS_TIMEOUT_S", "10"))
CACHE_DEFAULT_TTL_S = float(os.getenv("CACHE_DEFAULT_TTL_S", "900"))
CACHE_SLIDING_TTL_S = float(os.getenv("CACHE_SLIDING_TTL_S", "300"))
USER_BOOK_CACHE_TTL_S = float(os.getenv("USER_BOOK_CACHE_TTL_S", "1800"))
BOOK_SEARCH_CACHE_TTL_S = float(os.getenv("BOOK_SEARCH_CACHE_TTL_S", "7200"))
BOOK_ISBN_CACHE_TTL_S = float(os.getenv("BOOK_ISBN_CACHE_TTL_S", "86400"))
DEFAULT_USER_ID = UUID(os.getenv("DEFAULT_USER_ID", "12345678-1234-1234-1234-123456789012"))

# Module-level singletons (initialized lazily)
_cache: Optional[Cache] = None
_user_book_repository: Optional[UserBookRepository] = None
_book_search_provider: Optional[BookSearchProvider] = None
_event_dispatcher: Optional[DomainEventDispatcher] = None
_library_service: Optional[LibraryService] = None
_statistics_service: Optional[ReadingStatisticsService] = None
_book_search_service: Optional[BookSearchService] = None


def get_current_user_id() -> UUID:
    """The library owner. Single-user deployment: always the configured user."""
    return DEFAULT_USER_ID


def get_cache() -> Cache:
    """Provide the shared in-memory cache."""
    global _cache
    if _cache is None:
        _cache = MemoryCache(
            default_ttl_seconds=CACHE_DEFAULT_TTL_S,
            sliding_seconds=CACHE_SLIDING_TTL_S,
        )
    return _cache


def get_user_book_repository() -> UserBookRepository:
    """Provide the cached SQLite library repository."""
    global _user_book_repository
    if _user_book_repository is None:
        _user_book_repository = CachedUserBookRepository(
            SqliteUserBookRepository(DB_PATH),
            get_cache(),
            ttl_seconds=USER_BOOK_CACHE_TTL_S,
        )
    return _user_book_repository


def get_book_search_provider() -> BookSearchProvider:
    """Provide the cached Google Books provider."""
    global _book_search_provider
    if _book_search_provider is None:
        _book_search_provider = CachedBookSearchProvider(
            GoogleBooksClient(api_key=GOOGLE_BOOKS_API_KEY, timeout_s=GOOGLE_BOOKS_TIMEOUT_S),
            get_cache(),
            search_ttl=BOOK_SEARCH_CACHE_TTL_S,
            isbn_ttl=BOOK_ISBN_CACHE_TTL_S,
        )
    return _book_search_provider


def get_event_dispatcher() -> DomainEventDispatcher:
    global _event_dispatcher
    if _event_dispatcher is None:
        _event_dispatcher = LoggingDomainEventDispatcher()
    return _event_dispatcher


def get_library_service() -> LibraryService:
    """Provide the Library Service with all dependencies wired."""
    global _library_service
    if _library_service is None:
        _library_service = LibraryService(
            repository=get_user_book_repository(),
            event_dispatcher=get_event_dispatcher(),
        )
    return _library_service


def get_statistics_service() -> ReadingStatisticsService:
    global _statistics_service
    if _statistics_service is None:
        _statistics_service = ReadingStatisticsService(get_user_book_repository())
    return _statistics_service


def get_book_search_service() -> BookSearchService:
    global _book_search_service
    if _book_search_service is None:
        _book_search_service = BookSearchService(get_book_search_provider())
    return _book_search_service


def reset_dependencies() -> None:
    """
    Reset all singletons. Useful for testing.

    This allows tests to inject mock dependencies by resetting
    the module state between test cases.
    """
    global _cache, _user_book_repository, _book_search_provider, _event_dispatcher
    global _library_service, _statistics_service, _book_search_service

    _cache = None
    _user_book_repository = None
    _book_search_provider = None
    _event_dispatcher = None
    _library_service = None
    _statistics_service = None
    _book_search_service = None
