"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
They are implemented by adapters in the infrastructure layer, allowing
the domain to remain independent of technical details.

Following Hexagonal Architecture principles, the domain layer depends only
on these abstract protocols, never on concrete implementations.
"""

from datetime import datetime
from typing import Protocol, List, Optional, Any, Iterable
from uuid import UUID

from .entities import UserBook
from .events import DomainEvent
from .value_objects import BookInfo, ReadingStatus, UserBookPage


class UserBookRepository(Protocol):
    """
    Port for persisting and querying library entries.

    The repository loads and saves the whole UserBook aggregate, reading
    sessions included, in a single unit. Listing operations are scoped to
    one user and return entries most recently added first.

    Implementations should handle:
    - Atomic persistence of an aggregate and its sessions
    - Optimistic concurrency on update (UserBook.version)
    - Translating storage errors (ValueError for constraint violations,
      RuntimeError for other storage failures)
    """

    def get_by_id(self, user_book_id: UUID) -> Optional[UserBook]:
        """
        Retrieve a library entry by its identifier.

        Returns:
            The UserBook if found, None otherwise
        """
        ...

    def get_by_user_and_book(self, user_id: UUID, book_id: str) -> Optional[UserBook]:
        """Retrieve a user's entry for an external book id, if any."""
        ...

    def get_by_user_id(self, user_id: UUID) -> List[UserBook]:
        """Retrieve every entry in a user's library."""
        ...

    def add(self, user_book: UserBook) -> None:
        """
        Persist a new library entry.

        Raises:
            ValueError: If the user already has an entry for this book
            RuntimeError: If a storage error occurs
        """
        ...

    def update(self, user_book: UserBook) -> None:
        """
        Persist changes to an existing library entry.

        On success user_book.version is incremented.

        Raises:
            ConcurrencyConflictError: If the stored version differs from
                user_book.version
            UserBookNotFoundError: If the entry does not exist
            RuntimeError: If a storage error occurs
        """
        ...

    def delete(self, user_book_id: UUID) -> bool:
        """
        Delete a library entry and its sessions.

        Returns:
            True if the entry was deleted, False if not found
        """
        ...

    def find_by_status(self, user_id: UUID, status: ReadingStatus) -> List[UserBook]:
        ...

    def find_currently_reading(self, user_id: UUID) -> List[UserBook]:
        ...

    def find_recently_finished(self, user_id: UUID, days: int = 30) -> List[UserBook]:
        """Finished entries with a finished date within the last `days` days, latest first."""
        ...

    def find_by_rating(self, user_id: UUID, rating: int) -> List[UserBook]:
        ...

    def search(self, user_id: UUID, search_term: str) -> List[UserBook]:
        """
        Case-insensitive search over title, author, genre and personal notes.

        A blank term returns the whole library.
        """
        ...

    def find_by_author(self, user_id: UUID, author: str) -> List[UserBook]:
        """Case-insensitive partial match on author. A blank author returns []."""
        ...

    def find_by_date_range(
        self, user_id: UUID, start_date: datetime, end_date: datetime
    ) -> List[UserBook]:
        """Entries added between start_date and end_date (inclusive)."""
        ...

    def get_total_books_count(self, user_id: UUID) -> int:
        ...

    def get_books_count_by_status(self, user_id: UUID, status: ReadingStatus) -> int:
        ...

    def has_user_book(self, user_id: UUID, book_id: str) -> bool:
        ...

    def get_paged(
        self,
        user_id: UUID,
        page_number: int,
        page_size: int,
        status_filter: Optional[ReadingStatus] = None,
        search_term: Optional[str] = None,
    ) -> UserBookPage:
        """
        Retrieve one page of a user's library.

        Args:
            user_id: Owner of the library
            page_number: 1-indexed page number
            page_size: Maximum entries per page
            status_filter: Optional status restriction
            search_term: Optional text filter (same fields as search())

        Returns:
            UserBookPage with the entries and the total matching count
        """
        ...


class BookSearchProvider(Protocol):
    """
    Port for looking up books in an external catalog.

    The provider normalizes external responses into BookInfo value objects.
    The domain only consumes those values and never depends on the catalog
    itself.
    """

    def search_books(self, query: str, max_results: int = 10) -> List[BookInfo]:
        """
        Search the catalog.

        Args:
            query: Free-text search query
            max_results: Maximum number of books to return

        Returns:
            List of BookInfo (possibly empty)

        Raises:
            RuntimeError: If the catalog cannot be reached
        """
        ...

    def get_book_by_isbn(self, isbn: str) -> Optional[BookInfo]:
        """
        Look up a single book by ISBN.

        Returns:
            BookInfo if found, None otherwise

        Raises:
            RuntimeError: If the catalog cannot be reached
        """
        ...


class Cache(Protocol):
    """Port for a process-local key/value cache with expiry."""

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        ...

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store a value; ttl_seconds overrides the cache's default expiry."""
        ...

    def remove(self, key: str) -> None:
        ...


class DomainEventDispatcher(Protocol):
    """
    Port for handing drained domain events to interested parties.

    Dispatch happens after the aggregate has been persisted. Events are
    informational; a dispatcher must not change domain state.
    """

    def dispatch(self, events: Iterable[DomainEvent]) -> None:
        ...
