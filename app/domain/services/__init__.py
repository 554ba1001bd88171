"""
Domain services package.

Services orchestrate domain logic that doesn't naturally belong to a single
entity. They coordinate between entities and ports to implement use cases.

Following Hexagonal Architecture principles, services depend only on domain
entities, value objects, and port protocols (never on concrete implementations).
"""

from .library_service import LibraryService
from .reading_statistics_service import ReadingStatisticsService
from .book_search_service import BookSearchService

__all__ = [
    "LibraryService",
    "ReadingStatisticsService",
    "BookSearchService",
]
