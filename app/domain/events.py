"""
Domain events raised by the UserBook aggregate.

Events are immutable records of something that already happened. The
aggregate only queues them; the application service drains the queue after
a successful save and hands the events to a DomainEventDispatcher. They are
informational and never replayed to rebuild state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from .utils.clock import utc_now
from .utils.uuid7 import uuid7
from .value_objects import BookInfo, Progress


@dataclass(frozen=True)
class DomainEvent:
    """Base class for domain events."""

    event_id: UUID = field(default_factory=uuid7, kw_only=True)
    occurred_at: datetime = field(default_factory=utc_now, kw_only=True)

    @property
    def event_type(self) -> str:
        """Event type name, used for logging and serialization."""
        return self.__class__.__name__

    def to_dict(self) -> dict:
        """Flatten the event into JSON-friendly primitives."""
        result = {}
        for key, value in self.__dict__.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
            elif isinstance(value, UUID):
                result[key] = str(value)
            elif isinstance(value, timedelta):
                result[key] = value.total_seconds()
            elif isinstance(value, (BookInfo, Progress)):
                result[key] = str(value)
            else:
                result[key] = value
        result["event_type"] = self.event_type
        return result


@dataclass(frozen=True)
class BookAddedToLibrary(DomainEvent):
    """A book was added to a user's library."""

    user_book_id: UUID
    user_id: UUID
    book_id: str
    book_info: BookInfo


@dataclass(frozen=True)
class ReadingSessionLogged(DomainEvent):
    """A reading session was recorded for a book being read."""

    user_book_id: UUID
    user_id: UUID
    session_id: UUID
    session_date: datetime
    pages_read: int
    new_progress: Progress


@dataclass(frozen=True)
class BookFinished(DomainEvent):
    """A book was marked as finished, explicitly or by reaching its last page."""

    user_book_id: UUID
    user_id: UUID
    book_id: str
    book_info: BookInfo
    finished_date: datetime
    total_reading_time: timedelta
    total_pages_read: int
