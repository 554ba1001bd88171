"""
Value objects for the domain layer.

Value objects are immutable objects that represent descriptive aspects
of the domain with no conceptual identity. Two instances with equal fields
are interchangeable.
"""

import math
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Optional, List

from .exceptions import InvalidArgumentError
from .utils.clock import utc_now

MIN_PUBLICATION_YEAR = 1000
MAX_PUBLICATION_YEAR_AHEAD = 10


class ReadingStatus(str, Enum):
    """Where a book stands in a user's reading lifecycle."""

    TO_READ = "to_read"
    READING = "reading"
    FINISHED = "finished"
    ON_HOLD = "on_hold"
    DROPPED = "dropped"


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class BookInfo:
    """
    Descriptive information about a book, as known when it was added.

    Usually built from an external catalog lookup. Strings are trimmed on
    construction and blank optional strings are stored as None.
    """

    title: str
    """Book title"""

    author: str
    """Author name(s), comma separated when there are several"""

    isbn: Optional[str] = None
    """ISBN-13 or ISBN-10"""

    publisher: Optional[str] = None
    """Publisher name"""

    publication_year: Optional[int] = None
    """Year of publication"""

    total_pages: Optional[int] = None
    """Number of pages, when known"""

    genre: Optional[str] = None
    """Main genre/category"""

    description: Optional[str] = None
    """Book description/summary"""

    cover_image_url: Optional[str] = None
    """URL to the cover image"""

    def __post_init__(self) -> None:
        """Validate and normalize book information."""
        if not self.title or not self.title.strip():
            raise InvalidArgumentError("Title cannot be empty", field="title")

        if not self.author or not self.author.strip():
            raise InvalidArgumentError("Author cannot be empty", field="author")

        if self.total_pages is not None and self.total_pages <= 0:
            raise InvalidArgumentError(
                f"Total pages must be positive, got {self.total_pages}",
                field="total_pages",
            )

        if self.publication_year is not None:
            max_year = utc_now().year + MAX_PUBLICATION_YEAR_AHEAD
            if not (MIN_PUBLICATION_YEAR <= self.publication_year <= max_year):
                raise InvalidArgumentError(
                    f"Publication year must be between {MIN_PUBLICATION_YEAR} and "
                    f"{max_year}, got {self.publication_year}",
                    field="publication_year",
                )

        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "title", self.title.strip())
        object.__setattr__(self, "author", self.author.strip())
        for name in ("isbn", "publisher", "genre", "description", "cover_image_url"):
            object.__setattr__(self, name, _clean_optional(getattr(self, name)))

    def __str__(self) -> str:
        return f"{self.title} by {self.author}"


@dataclass(frozen=True)
class Progress:
    """
    Reading position within a book.

    Build instances through the factories (from_page, from_percentage).
    The percentage is only defined when the total page count is known.
    """

    page_number: int
    """Current page (0 means not started)"""

    total_pages: Optional[int] = None
    """Total page count of the book, if known"""

    def __post_init__(self) -> None:
        """Validate progress constraints."""
        if self.page_number < 0:
            raise InvalidArgumentError(
                f"Page number cannot be negative, got {self.page_number}",
                field="page_number",
            )

        if self.total_pages is not None:
            if self.total_pages <= 0:
                raise InvalidArgumentError(
                    f"Total pages must be positive, got {self.total_pages}",
                    field="total_pages",
                )
            if self.page_number > self.total_pages:
                raise InvalidArgumentError(
                    f"Page number ({self.page_number}) cannot exceed "
                    f"total pages ({self.total_pages})",
                    field="page_number",
                )

    @classmethod
    def from_page(cls, page_number: int, total_pages: Optional[int] = None) -> "Progress":
        """Progress at a given page, optionally relative to a total page count."""
        return cls(page_number=page_number, total_pages=total_pages)

    @classmethod
    def from_percentage(cls, percentage: float, total_pages: int) -> "Progress":
        """
        Progress from a completion percentage.

        Args:
            percentage: Completion in [0, 100]
            total_pages: Total page count (must be positive)

        Returns:
            Progress at round(percentage / 100 * total_pages)
        """
        if not (0 <= percentage <= 100):
            raise InvalidArgumentError(
                f"Percentage must be between 0 and 100, got {percentage}",
                field="percentage",
            )

        if total_pages <= 0:
            raise InvalidArgumentError(
                f"Total pages must be positive, got {total_pages}",
                field="total_pages",
            )

        return cls(page_number=int(round(percentage / 100 * total_pages)), total_pages=total_pages)

    @property
    def percentage(self) -> Optional[float]:
        """Completion percentage rounded to two decimals, None without a total."""
        if self.total_pages is None:
            return None
        return round(self.page_number / self.total_pages * 100, 2)

    @property
    def is_complete(self) -> bool:
        """True when the total is known and the last page has been reached."""
        return self.total_pages is not None and self.page_number >= self.total_pages

    def __str__(self) -> str:
        if self.total_pages is not None:
            return f"Page {self.page_number} of {self.total_pages} ({self.percentage:.1f}%)"
        return f"Page {self.page_number}"


@dataclass(frozen=True)
class UserBookPage:
    """
    One page of a user's library listing.
    """

    items: list
    """List of UserBook aggregates on this page"""

    total_count: int
    """Number of entries matching the listing, across all pages"""

    page_number: int
    """1-indexed page number"""

    page_size: int
    """Maximum number of entries per page"""

    def __post_init__(self) -> None:
        """Validate paging constraints."""
        if self.page_number < 1:
            raise InvalidArgumentError(
                f"page_number must be >= 1, got {self.page_number}", field="page_number"
            )
        if self.page_size < 1:
            raise InvalidArgumentError(
                f"page_size must be >= 1, got {self.page_size}", field="page_size"
            )
        if self.total_count < 0:
            raise InvalidArgumentError(
                f"total_count cannot be negative, got {self.total_count}", field="total_count"
            )

    @property
    def total_pages(self) -> int:
        """Number of pages needed to list every matching entry."""
        return math.ceil(self.total_count / self.page_size)


@dataclass(frozen=True)
class ReadingGoalProgress:
    """Progress towards a yearly number of finished books."""

    target_books: int
    completed_books: int
    progress_percentage: float
    is_achieved: bool


@dataclass(frozen=True)
class MonthlyReading:
    """Reading activity of the books finished in one month."""

    month: int
    month_name: str
    books_finished: int
    pages_read: int
    reading_time: timedelta


@dataclass(frozen=True)
class ReadingStatistics:
    """
    Aggregated reading statistics for a user.

    Built by ReadingStatisticsService from the user's whole library.
    """

    total_books: int
    books_to_read: int
    books_reading: int
    books_finished: int
    books_on_hold: int
    books_dropped: int
    total_pages_read: int
    total_reading_sessions: int
    total_reading_time: timedelta
    average_rating: float
    """Average personal rating over rated books (0.0 when none is rated)"""

    books_with_rating: int
    yearly_goal: Optional[ReadingGoalProgress] = None
    monthly_progress: List[MonthlyReading] = field(default_factory=list)
