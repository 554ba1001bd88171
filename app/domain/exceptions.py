"""
Domain exceptions for the reading tracker.

Two kinds of errors originate inside the domain model:

- InvalidArgumentError: a malformed value was passed to a constructor or
  setter (negative page, rating out of range, blank title...).
- InvalidOperationError: an operation was attempted from a reading status
  that forbids it (logging a session on a book that is not being read...).

The remaining errors are raised by application services and adapters when
a collaborator cannot satisfy a request. None of them are retried or logged
by the domain itself; callers translate them (e.g. into HTTP 4xx responses).
"""

from typing import Optional
from uuid import UUID


class DomainError(Exception):
    """Base class for all reading tracker domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidArgumentError(DomainError, ValueError):
    """
    Raised when a value violates a domain constraint.

    Also a ValueError, so code that validates input the usual Python way
    keeps working.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidOperationError(DomainError):
    """Raised when an operation is not allowed in the current reading status."""


class BookAlreadyInLibraryError(InvalidOperationError):
    """Raised when a user adds a book that is already in their library."""

    def __init__(self, user_id: UUID, book_id: str) -> None:
        super().__init__(f"Book '{book_id}' is already in the library of user '{user_id}'")
        self.user_id = user_id
        self.book_id = book_id


class UserBookNotFoundError(DomainError):
    """Raised when a library entry does not exist or belongs to another user."""

    def __init__(self, user_book_id: UUID) -> None:
        super().__init__(f"UserBook with ID '{user_book_id}' was not found")
        self.user_book_id = user_book_id


class ConcurrencyConflictError(DomainError):
    """Raised when a library entry was modified by someone else since it was loaded."""

    def __init__(self, user_book_id: UUID, expected_version: int) -> None:
        super().__init__(
            f"UserBook '{user_book_id}' was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.user_book_id = user_book_id
        self.expected_version = expected_version
