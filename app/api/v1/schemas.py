"""
Request and response models for the reading tracker API.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.domain.value_objects import ReadingStatus


# =============================================================================
# Books
# =============================================================================

class BookInfo(BaseModel):
    """
    Descriptive information about a book, as stored in a library entry or
    returned by a catalog lookup.
    """
    title: str = Field(description="Book title")
    author: str = Field(description="Author name(s), comma separated")
    isbn: str | None = Field(default=None, description="ISBN-13 or ISBN-10")
    publisher: str | None = None
    publication_year: int | None = Field(default=None, description="Year of publication")
    total_pages: int | None = Field(default=None, description="Page count, when known")
    genre: str | None = None
    description: str | None = Field(default=None, description="Book description/summary")
    cover_image_url: str | None = None


class BookSearchResponse(BaseModel):
    query: str = Field(description="The query as received")
    results: list[BookInfo] = Field(description="Books found in the external catalog")


# =============================================================================
# Library entries
# =============================================================================

class Progress(BaseModel):
    page_number: int = Field(description="Current page (0 = not started)")
    total_pages: int | None = None
    percentage: float | None = Field(
        default=None, description="Completion percentage, when the page count is known"
    )
    is_complete: bool = False


class ReadingSession(BaseModel):
    session_id: UUID
    start_date: datetime
    end_date: datetime | None = None
    start_page: int
    end_page: int
    pages_read: int
    duration_minutes: float | None = Field(
        default=None, description="Session length, when the end time was recorded"
    )
    notes: str | None = None


class UserBook(BaseModel):
    """
    API representation of a book in the user's library.
    """
    id: UUID = Field(description="Identifier of the library entry")
    book_id: str = Field(description="External identifier of the book (e.g. ISBN)")
    user_id: UUID
    book_info: BookInfo
    status: ReadingStatus
    progress: Progress
    added_date: datetime
    started_date: datetime | None = None
    finished_date: datetime | None = None
    personal_notes: str | None = None
    personal_rating: int | None = Field(default=None, description="1-5 stars")
    total_pages_read: int = 0
    total_reading_time_minutes: float = 0.0
    total_reading_sessions: int = 0
    last_reading_session_date: datetime | None = None
    reading_sessions: list[ReadingSession] = Field(default_factory=list)
    version: int = Field(description="Concurrency token")


class UserBookPage(BaseModel):
    items: list[UserBook]
    total_count: int = Field(ge=0, description="Entries matching the filters, all pages")
    page_number: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_pages: int = Field(ge=0)


class AddBookRequest(BaseModel):
    """
    Request body for POST /library.
    """
    book_id: str = Field(description="External identifier of the book (e.g. ISBN)")
    book_info: BookInfo
    personal_notes: str | None = None


class ChangeStatusRequest(BaseModel):
    status: ReadingStatus = Field(description="Target reading status")
    date: datetime | None = Field(
        default=None,
        description="Start or finish date for READING/FINISHED (default: now)",
    )


class LogSessionRequest(BaseModel):
    """
    Request body for POST /library/{id}/sessions.
    """
    session_date: datetime = Field(description="When the session started")
    start_page: int
    end_page: int
    end_time: datetime | None = Field(default=None, description="When the session ended")
    notes: str | None = None


class UpdateProgressRequest(BaseModel):
    page_number: int


class RateBookRequest(BaseModel):
    rating: int = Field(description="1-5 stars")


class UpdateNotesRequest(BaseModel):
    notes: str | None = Field(default=None, description="Personal notes; null clears them")


# =============================================================================
# Statistics
# =============================================================================

class ReadingGoalProgress(BaseModel):
    target_books: int
    completed_books: int
    progress_percentage: float
    is_achieved: bool


class MonthlyReading(BaseModel):
    month: int = Field(ge=1, le=12)
    month_name: str
    books_finished: int
    pages_read: int
    reading_time_minutes: float


class ReadingStatistics(BaseModel):
    """
    Response body for GET /statistics.
    """
    total_books: int
    books_to_read: int
    books_reading: int
    books_finished: int
    books_on_hold: int
    books_dropped: int
    total_pages_read: int
    total_reading_sessions: int
    total_reading_time_minutes: float
    average_rating: float
    books_with_rating: int
    reading_streak: int = Field(
        default=0, description="Consecutive finished books with at most a week between them"
    )
    yearly_goal: ReadingGoalProgress | None = None
    monthly_progress: list[MonthlyReading] = Field(default_factory=list)


class StatusCounts(BaseModel):
    counts: dict[ReadingStatus, int] = Field(description="Number of entries per status")
    total: int
