"""
Domain entities for the reading tracker.

Entities are objects with a unique identity that runs through time and
different representations. UserBook is the aggregate root: a book in a
user's library together with its reading sessions. Every change to a
library entry goes through its methods, which enforce the reading-status
state machine and the progress invariants.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, List
from uuid import UUID

from .events import DomainEvent, BookAddedToLibrary, ReadingSessionLogged, BookFinished
from .exceptions import InvalidArgumentError, InvalidOperationError
from .utils.clock import ensure_utc, utc_now
from .utils.uuid7 import uuid7
from .value_objects import BookInfo, Progress, ReadingStatus


@dataclass(frozen=True, eq=False)
class ReadingSession:
    """
    A stretch of reading between two pages.

    Sessions are recorded fully formed by UserBook.log_reading_session and
    never change afterwards.
    """

    start_date: datetime
    """When the session started"""

    start_page: int
    """Page where the session started"""

    end_page: int
    """Page where the session ended"""

    end_date: Optional[datetime] = None
    """When the session ended, if recorded"""

    notes: Optional[str] = None
    """Free-text notes about the session"""

    session_id: UUID = field(default_factory=uuid7)
    """Unique identifier of the session"""

    created_at: datetime = field(default_factory=utc_now)
    """When the session was recorded"""

    def __post_init__(self) -> None:
        """Validate session data."""
        if self.start_page < 0:
            raise InvalidArgumentError(
                f"Start page cannot be negative, got {self.start_page}", field="start_page"
            )

        if self.end_page < self.start_page:
            raise InvalidArgumentError(
                f"End page ({self.end_page}) cannot be less than start page ({self.start_page})",
                field="end_page",
            )

        start_date = ensure_utc(self.start_date)
        end_date = ensure_utc(self.end_date)
        if end_date is not None and end_date < start_date:
            raise InvalidArgumentError("End date cannot be before start date", field="end_date")

        object.__setattr__(self, "start_date", start_date)
        object.__setattr__(self, "end_date", end_date)
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        object.__setattr__(self, "notes", self.notes.strip() if self.notes is not None else None)

    def __eq__(self, other: object) -> bool:
        """Two sessions are equal if they have the same ID."""
        if not isinstance(other, ReadingSession):
            return NotImplemented
        return self.session_id == other.session_id

    def __hash__(self) -> int:
        return hash(self.session_id)

    @property
    def duration(self) -> Optional[timedelta]:
        """Time spent reading, when the end date is known."""
        if self.end_date is None:
            return None
        return self.end_date - self.start_date

    @property
    def pages_read(self) -> int:
        """Number of pages covered by the session (may be zero)."""
        return self.end_page - self.start_page

    def __str__(self) -> str:
        duration = self.duration
        if duration is None:
            duration_str = "no duration"
        else:
            minutes = int(duration.total_seconds() // 60)
            duration_str = f"{minutes // 60:02d}:{minutes % 60:02d}"
        return f"Session on {self.start_date:%Y-%m-%d}: {self.pages_read} pages ({duration_str})"


class UserBook:
    """
    A book in a user's library (aggregate root).

    Owns the reading sessions and the current progress, and enforces the
    reading-status state machine:

        TO_READ -> READING -> FINISHED
        READING <-> ON_HOLD
        TO_READ / READING / ON_HOLD -> DROPPED

    Illegal transitions raise InvalidOperationError and malformed values
    raise InvalidArgumentError. A failing call leaves the aggregate
    unchanged.

    Significant changes queue a DomainEvent. The aggregate never dispatches
    them; the caller drains the queue after saving (pull_domain_events).
    """

    def __init__(
        self,
        book_id: str,
        user_id: UUID,
        book_info: BookInfo,
        personal_notes: Optional[str] = None,
    ) -> None:
        """
        Add a book to a user's library.

        Args:
            book_id: External identifier of the book (e.g. ISBN)
            user_id: Owner of the library entry
            book_info: Descriptive information about the book
            personal_notes: Optional notes, trimmed

        Raises:
            InvalidArgumentError: If book_id is blank, user_id is nil or
                book_info is missing
        """
        if not book_id or not book_id.strip():
            raise InvalidArgumentError("Book ID cannot be empty", field="book_id")

        if user_id is None or user_id.int == 0:
            raise InvalidArgumentError("User ID cannot be empty", field="user_id")

        if book_info is None:
            raise InvalidArgumentError("Book info is required", field="book_info")

        self._user_book_id = uuid7()
        self._book_id = book_id.strip()
        self._user_id = user_id
        self._book_info = book_info
        self._status = ReadingStatus.TO_READ
        self._current_progress = Progress.from_page(0, book_info.total_pages)
        self._added_date = utc_now()
        self._started_date: Optional[datetime] = None
        self._finished_date: Optional[datetime] = None
        self._personal_notes = personal_notes.strip() if personal_notes is not None else None
        self._personal_rating: Optional[int] = None
        self._reading_sessions: List[ReadingSession] = []
        self._domain_events: List[DomainEvent] = []

        self.version = 0
        """Concurrency token, managed by the repository"""

        self._domain_events.append(
            BookAddedToLibrary(
                user_book_id=self._user_book_id,
                user_id=self._user_id,
                book_id=self._book_id,
                book_info=self._book_info,
            )
        )

    @classmethod
    def restore(
        cls,
        user_book_id: UUID,
        book_id: str,
        user_id: UUID,
        book_info: BookInfo,
        status: ReadingStatus,
        current_progress: Progress,
        added_date: datetime,
        started_date: Optional[datetime] = None,
        finished_date: Optional[datetime] = None,
        personal_notes: Optional[str] = None,
        personal_rating: Optional[int] = None,
        reading_sessions: Optional[List[ReadingSession]] = None,
        version: int = 0,
    ) -> "UserBook":
        """
        Rebuild a persisted aggregate.

        Used by repositories. No domain events are raised.
        """
        user_book = cls.__new__(cls)
        user_book._user_book_id = user_book_id
        user_book._book_id = book_id
        user_book._user_id = user_id
        user_book._book_info = book_info
        user_book._status = status
        user_book._current_progress = current_progress
        user_book._added_date = ensure_utc(added_date)
        user_book._started_date = ensure_utc(started_date)
        user_book._finished_date = ensure_utc(finished_date)
        user_book._personal_notes = personal_notes
        user_book._personal_rating = personal_rating
        user_book._reading_sessions = list(reading_sessions or [])
        user_book._domain_events = []
        user_book.version = version
        return user_book

    # =========================================================================
    # State
    # =========================================================================

    @property
    def user_book_id(self) -> UUID:
        return self._user_book_id

    @property
    def book_id(self) -> str:
        return self._book_id

    @property
    def user_id(self) -> UUID:
        return self._user_id

    @property
    def book_info(self) -> BookInfo:
        return self._book_info

    @property
    def status(self) -> ReadingStatus:
        return self._status

    @property
    def current_progress(self) -> Progress:
        return self._current_progress

    @property
    def added_date(self) -> datetime:
        return self._added_date

    @property
    def started_date(self) -> Optional[datetime]:
        return self._started_date

    @property
    def finished_date(self) -> Optional[datetime]:
        return self._finished_date

    @property
    def personal_notes(self) -> Optional[str]:
        return self._personal_notes

    @property
    def personal_rating(self) -> Optional[int]:
        """Personal rating from 1 to 5 stars"""
        return self._personal_rating

    @property
    def reading_sessions(self) -> List[ReadingSession]:
        """Sessions in logging order (copy)."""
        return list(self._reading_sessions)

    @property
    def domain_events(self) -> List[DomainEvent]:
        """Events raised since the queue was last cleared (copy)."""
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def pull_domain_events(self) -> List[DomainEvent]:
        """Return the queued events and clear the queue."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    # =========================================================================
    # Status transitions
    # =========================================================================

    def start_reading(self, start_date: Optional[datetime] = None) -> None:
        """Start (or restart) reading a book that is not being read nor finished."""
        if self._status == ReadingStatus.READING:
            raise InvalidOperationError("Book is already being read")

        if self._status == ReadingStatus.FINISHED:
            raise InvalidOperationError("Cannot start reading a finished book")

        self._status = ReadingStatus.READING
        self._started_date = ensure_utc(start_date) or utc_now()

    def log_reading_session(
        self,
        session_date: datetime,
        start_page: int,
        end_page: int,
        end_time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ReadingSession:
        """
        Record a reading session for a book being read.

        Progress moves to the highest page reached so far. Reaching the last
        page finishes the book; BookFinished is then queued ahead of
        ReadingSessionLogged.

        Args:
            session_date: When the session started
            start_page: First page read
            end_page: Last page reached
            end_time: When the session ended, if known
            notes: Optional notes about the session

        Returns:
            The recorded session

        Raises:
            InvalidOperationError: If the book is not being read
            InvalidArgumentError: If pages or dates are inconsistent, or
                end_page is beyond the book's page count
        """
        self._ensure_status(ReadingStatus.READING, "log a reading session")

        session = ReadingSession(
            start_date=session_date,
            start_page=start_page,
            end_page=end_page,
            end_date=end_time,
            notes=notes,
        )
        new_progress = self._progress_at(max(self._current_progress.page_number, end_page))

        self._reading_sessions.append(session)
        self._current_progress = new_progress

        if new_progress.is_complete:
            self.mark_as_finished()

        self._domain_events.append(
            ReadingSessionLogged(
                user_book_id=self._user_book_id,
                user_id=self._user_id,
                session_id=session.session_id,
                session_date=session.start_date,
                pages_read=session.pages_read,
                new_progress=new_progress,
            )
        )

        return session

    def update_progress(self, page_number: int) -> None:
        """
        Move the reading position of a book being read.

        Raises:
            InvalidOperationError: If the book is not being read
            InvalidArgumentError: If the page is negative or beyond the page count
        """
        self._ensure_status(ReadingStatus.READING, "update progress")

        self._current_progress = self._progress_at(page_number)

        if self._current_progress.is_complete:
            self.mark_as_finished()

    def mark_as_finished(self, finished_date: Optional[datetime] = None) -> None:
        """
        Mark the book as finished.

        Progress is forced to the last page when the page count is known.
        """
        if self._status == ReadingStatus.FINISHED:
            raise InvalidOperationError("Book is already finished")

        self._status = ReadingStatus.FINISHED
        self._finished_date = ensure_utc(finished_date) or utc_now()

        if self._book_info.total_pages is not None:
            self._current_progress = Progress.from_page(
                self._book_info.total_pages, self._book_info.total_pages
            )

        self._domain_events.append(
            BookFinished(
                user_book_id=self._user_book_id,
                user_id=self._user_id,
                book_id=self._book_id,
                book_info=self._book_info,
                finished_date=self._finished_date,
                total_reading_time=self.total_reading_time,
                total_pages_read=self.total_pages_read,
            )
        )

    def put_on_hold(self) -> None:
        if self._status == ReadingStatus.FINISHED:
            raise InvalidOperationError("Cannot put a finished book on hold")

        self._status = ReadingStatus.ON_HOLD

    def drop_book(self) -> None:
        if self._status == ReadingStatus.FINISHED:
            raise InvalidOperationError("Cannot drop a finished book")

        self._status = ReadingStatus.DROPPED

    def resume_reading(self) -> None:
        if self._status != ReadingStatus.ON_HOLD:
            raise InvalidOperationError("Can only resume books that are on hold")

        self._status = ReadingStatus.READING

    # =========================================================================
    # Personal data
    # =========================================================================

    def update_personal_notes(self, notes: Optional[str]) -> None:
        self._personal_notes = notes.strip() if notes is not None else None

    def rate_book(self, rating: int) -> None:
        """Rate the book from 1 to 5 stars."""
        if not isinstance(rating, int) or isinstance(rating, bool):
            raise InvalidArgumentError(
                f"Rating must be a whole number, got {rating!r}", field="rating"
            )

        if not (1 <= rating <= 5):
            raise InvalidArgumentError(
                f"Rating must be between 1 and 5, got {rating}", field="rating"
            )

        self._personal_rating = rating

    def remove_rating(self) -> None:
        self._personal_rating = None

    # =========================================================================
    # Statistics
    # =========================================================================

    @property
    def total_pages_read(self) -> int:
        return sum(session.pages_read for session in self._reading_sessions)

    @property
    def total_reading_time(self) -> timedelta:
        """Sum of session durations; sessions without an end date count as zero."""
        return sum(
            (session.duration for session in self._reading_sessions if session.duration is not None),
            timedelta(0),
        )

    @property
    def total_reading_sessions(self) -> int:
        return len(self._reading_sessions)

    @property
    def last_reading_session_date(self) -> Optional[datetime]:
        if not self._reading_sessions:
            return None
        return max(session.start_date for session in self._reading_sessions)

    @property
    def time_since_last_session(self) -> Optional[timedelta]:
        last = self.last_reading_session_date
        if last is None:
            return None
        return utc_now() - last

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _ensure_status(self, expected: ReadingStatus, operation: str) -> None:
        if self._status != expected:
            raise InvalidOperationError(
                f"Cannot {operation} when book status is '{self._status.value}'"
            )

    def _progress_at(self, page_number: int) -> Progress:
        return Progress.from_page(page_number, self._book_info.total_pages)

    def __eq__(self, other: object) -> bool:
        """Two library entries are equal if they have the same ID."""
        if not isinstance(other, UserBook):
            return NotImplemented
        return self._user_book_id == other._user_book_id

    def __hash__(self) -> int:
        return hash(self._user_book_id)

    def __str__(self) -> str:
        return f"{self._book_info.title} - {self._status.value} ({self._current_progress})"

    def __repr__(self) -> str:
        return (
            f"UserBook(user_book_id={self._user_book_id!r}, book_id={self._book_id!r}, "
            f"status={self._status.value!r}, progress={self._current_progress.page_number})"
        )
