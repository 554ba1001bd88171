"""
Library use cases.

Each command loads one UserBook aggregate, applies a single domain
operation, persists the aggregate and only then drains its domain events
and hands them to the dispatcher. Queries read through the repository port.

The service depends only on ports, so it works the same against SQLite,
the caching decorator or a fake in tests.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from app.domain.entities import ReadingSession, UserBook
from app.domain.exceptions import (
    BookAlreadyInLibraryError,
    InvalidOperationError,
    UserBookNotFoundError,
)
from app.domain.ports import DomainEventDispatcher, UserBookRepository
from app.domain.value_objects import BookInfo, ReadingStatus, UserBookPage

logger = logging.getLogger(__name__)


class LibraryService:
    """
    Orchestrates changes to a user's library.

    Ownership is checked on every command: an entry that belongs to another
    user is reported as not found.

    Usage:
        service = LibraryService(repository, event_dispatcher)
        user_book = service.add_book_to_library(user_id, "978-1", book_info)
        service.log_reading_session(user_id, user_book.user_book_id, now, 0, 40)
    """

    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    def __init__(
        self,
        repository: UserBookRepository,
        event_dispatcher: Optional[DomainEventDispatcher] = None,
    ) -> None:
        """
        Initialize the library service.

        Args:
            repository: Persistence port for UserBook aggregates
            event_dispatcher: Optional sink for drained domain events. When
                None, events are drained and discarded.
        """
        self._repository = repository
        self._event_dispatcher = event_dispatcher

    # =========================================================================
    # Commands
    # =========================================================================

    def add_book_to_library(
        self,
        user_id: UUID,
        book_id: str,
        book_info: BookInfo,
        personal_notes: Optional[str] = None,
    ) -> UserBook:
        """
        Add a book to a user's library.

        Raises:
            BookAlreadyInLibraryError: If the user already has this book
            InvalidArgumentError: If book_id or user_id is invalid
        """
        if book_id and self._repository.has_user_book(user_id, book_id.strip()):
            raise BookAlreadyInLibraryError(user_id, book_id.strip())

        user_book = UserBook(book_id, user_id, book_info, personal_notes)
        self._repository.add(user_book)
        self._publish(user_book)

        logger.info(f"Added book '{user_book.book_id}' to library of user {user_id}")
        return user_book

    def change_status(
        self,
        user_id: UUID,
        user_book_id: UUID,
        new_status: ReadingStatus,
        date: Optional[datetime] = None,
    ) -> UserBook:
        """
        Move a library entry to a new reading status.

        READING resumes a book on hold and starts any other book. Going back
        to TO_READ is not supported.

        Raises:
            InvalidOperationError: If the transition is not allowed
            UserBookNotFoundError: If the entry does not exist for this user
        """
        user_book = self.get_user_book(user_id, user_book_id)

        if new_status == ReadingStatus.READING:
            if user_book.status == ReadingStatus.ON_HOLD:
                user_book.resume_reading()
            else:
                user_book.start_reading(date)
        elif new_status == ReadingStatus.FINISHED:
            user_book.mark_as_finished(date)
        elif new_status == ReadingStatus.ON_HOLD:
            user_book.put_on_hold()
        elif new_status == ReadingStatus.DROPPED:
            user_book.drop_book()
        else:
            raise InvalidOperationError(
                f"Cannot change status back to '{ReadingStatus.TO_READ.value}'"
            )

        self._save(user_book)
        logger.info(f"Changed status of {user_book_id} to {new_status.value}")
        return user_book

    def log_reading_session(
        self,
        user_id: UUID,
        user_book_id: UUID,
        session_date: datetime,
        start_page: int,
        end_page: int,
        end_time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ReadingSession:
        """
        Record a reading session. A book still on the to-read list is
        started first, on the session date.

        Returns:
            The recorded session
        """
        user_book = self.get_user_book(user_id, user_book_id)

        if user_book.status == ReadingStatus.TO_READ:
            user_book.start_reading(session_date)

        session = user_book.log_reading_session(
            session_date, start_page, end_page, end_time=end_time, notes=notes
        )

        self._save(user_book)
        logger.info(
            f"Logged reading session for {user_book_id}: pages {start_page}-{end_page}"
        )
        return session

    def update_progress(self, user_id: UUID, user_book_id: UUID, page_number: int) -> UserBook:
        """Move the reading position. A book still on the to-read list is started first."""
        user_book = self.get_user_book(user_id, user_book_id)

        if user_book.status == ReadingStatus.TO_READ:
            user_book.start_reading()

        user_book.update_progress(page_number)

        self._save(user_book)
        logger.info(f"Updated progress of {user_book_id} to page {page_number}")
        return user_book

    def rate_book(self, user_id: UUID, user_book_id: UUID, rating: int) -> UserBook:
        user_book = self.get_user_book(user_id, user_book_id)
        user_book.rate_book(rating)
        self._save(user_book)
        return user_book

    def remove_rating(self, user_id: UUID, user_book_id: UUID) -> UserBook:
        user_book = self.get_user_book(user_id, user_book_id)
        user_book.remove_rating()
        self._save(user_book)
        return user_book

    def update_personal_notes(
        self, user_id: UUID, user_book_id: UUID, notes: Optional[str]
    ) -> UserBook:
        user_book = self.get_user_book(user_id, user_book_id)
        user_book.update_personal_notes(notes)
        self._save(user_book)
        return user_book

    def delete_book(self, user_id: UUID, user_book_id: UUID) -> None:
        """
        Remove a book and its sessions from a user's library.

        Raises:
            UserBookNotFoundError: If the entry does not exist for this user
        """
        self.get_user_book(user_id, user_book_id)
        self._repository.delete(user_book_id)
        logger.info(f"Deleted {user_book_id} from library of user {user_id}")

    # =========================================================================
    # Queries
    # =========================================================================

    def get_user_book(self, user_id: UUID, user_book_id: UUID) -> UserBook:
        """
        Load a library entry owned by the user.

        Raises:
            UserBookNotFoundError: If missing or owned by someone else
        """
        user_book = self._repository.get_by_id(user_book_id)
        if user_book is None or user_book.user_id != user_id:
            raise UserBookNotFoundError(user_book_id)
        return user_book

    def list_user_books(
        self,
        user_id: UUID,
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        status: Optional[ReadingStatus] = None,
        search_term: Optional[str] = None,
    ) -> UserBookPage:
        """List a user's library one page at a time, most recently added first."""
        page_size = min(page_size, self.MAX_PAGE_SIZE)
        return self._repository.get_paged(
            user_id,
            page_number,
            page_size,
            status_filter=status,
            search_term=search_term,
        )

    def search_library(
        self,
        user_id: UUID,
        search_term: str,
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> UserBookPage:
        """Search a user's library. A blank term matches nothing."""
        if not search_term or not search_term.strip():
            return UserBookPage(items=[], total_count=0, page_number=page_number, page_size=page_size)

        return self.list_user_books(
            user_id, page_number, page_size, search_term=search_term.strip()
        )

    def find_by_status(self, user_id: UUID, status: ReadingStatus) -> List[UserBook]:
        return self._repository.find_by_status(user_id, status)

    def find_recently_finished(self, user_id: UUID, days: int = 30) -> List[UserBook]:
        return self._repository.find_recently_finished(user_id, days)

    def find_by_rating(self, user_id: UUID, rating: int) -> List[UserBook]:
        return self._repository.find_by_rating(user_id, rating)

    def find_by_author(self, user_id: UUID, author: str) -> List[UserBook]:
        return self._repository.find_by_author(user_id, author)

    def get_status_counts(self, user_id: UUID) -> Dict[ReadingStatus, int]:
        """Number of entries per reading status (every status present)."""
        return {
            status: self._repository.get_books_count_by_status(user_id, status)
            for status in ReadingStatus
        }

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _save(self, user_book: UserBook) -> None:
        self._repository.update(user_book)
        self._publish(user_book)

    def _publish(self, user_book: UserBook) -> None:
        """Drain the aggregate's events; dispatch them when a sink is configured."""
        events = user_book.pull_domain_events()
        if self._event_dispatcher is not None and events:
            self._event_dispatcher.dispatch(events)
