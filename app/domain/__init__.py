"""
Domain layer - Core business logic and entities.

This layer contains the UserBook aggregate, its value objects and events,
and defines the ports (interfaces) that the infrastructure layer must
implement.

It has NO dependencies on external frameworks, databases, or APIs.
"""

from .entities import UserBook, ReadingSession
from .events import DomainEvent, BookAddedToLibrary, ReadingSessionLogged, BookFinished
from .exceptions import (
    DomainError,
    InvalidArgumentError,
    InvalidOperationError,
    BookAlreadyInLibraryError,
    UserBookNotFoundError,
    ConcurrencyConflictError,
)
from .value_objects import BookInfo, Progress, ReadingStatus, UserBookPage

__all__ = [
    # Entities
    "UserBook",
    "ReadingSession",
    # Value Objects
    "BookInfo",
    "Progress",
    "ReadingStatus",
    "UserBookPage",
    # Events
    "DomainEvent",
    "BookAddedToLibrary",
    "ReadingSessionLogged",
    "BookFinished",
    # Errors
    "DomainError",
    "InvalidArgumentError",
    "InvalidOperationError",
    "BookAlreadyInLibraryError",
    "UserBookNotFoundError",
    "ConcurrencyConflictError",
]
