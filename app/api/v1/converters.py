"""
Converters between domain entities/value objects and API schemas.

This module centralizes all conversion logic between the domain layer
and the API layer, maintaining clean separation of concerns.
"""

from dataclasses import asdict
from datetime import timedelta
from typing import Dict, Optional

from app.domain import entities as domain
from app.domain import value_objects as domain_vo
from app.api.v1 import schemas as api


def _minutes(value: Optional[timedelta]) -> Optional[float]:
    if value is None:
        return None
    return round(value.total_seconds() / 60, 2)


def api_book_info_to_domain(book_info: api.BookInfo) -> domain_vo.BookInfo:
    """
    Convert an API BookInfo model to the domain value object.

    Raises:
        InvalidArgumentError: If the values fail domain validation
    """
    return domain_vo.BookInfo(**book_info.model_dump())


def domain_book_info_to_api(book_info: domain_vo.BookInfo) -> api.BookInfo:
    return api.BookInfo(**asdict(book_info))


def domain_progress_to_api(progress: domain_vo.Progress) -> api.Progress:
    return api.Progress(
        page_number=progress.page_number,
        total_pages=progress.total_pages,
        percentage=progress.percentage,
        is_complete=progress.is_complete,
    )


def domain_session_to_api(session: domain.ReadingSession) -> api.ReadingSession:
    return api.ReadingSession(
        session_id=session.session_id,
        start_date=session.start_date,
        end_date=session.end_date,
        start_page=session.start_page,
        end_page=session.end_page,
        pages_read=session.pages_read,
        duration_minutes=_minutes(session.duration),
        notes=session.notes,
    )


def domain_user_book_to_api(user_book: domain.UserBook) -> api.UserBook:
    """
    Convert a UserBook aggregate to its API representation, including the
    derived reading totals and the session log.

    Args:
        user_book: Domain UserBook aggregate

    Returns:
        API UserBook model
    """
    return api.UserBook(
        id=user_book.user_book_id,
        book_id=user_book.book_id,
        user_id=user_book.user_id,
        book_info=domain_book_info_to_api(user_book.book_info),
        status=user_book.status,
        progress=domain_progress_to_api(user_book.current_progress),
        added_date=user_book.added_date,
        started_date=user_book.started_date,
        finished_date=user_book.finished_date,
        personal_notes=user_book.personal_notes,
        personal_rating=user_book.personal_rating,
        total_pages_read=user_book.total_pages_read,
        total_reading_time_minutes=_minutes(user_book.total_reading_time),
        total_reading_sessions=user_book.total_reading_sessions,
        last_reading_session_date=user_book.last_reading_session_date,
        reading_sessions=[domain_session_to_api(s) for s in user_book.reading_sessions],
        version=user_book.version,
    )


def domain_page_to_api(page: domain_vo.UserBookPage) -> api.UserBookPage:
    return api.UserBookPage(
        items=[domain_user_book_to_api(item) for item in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


def domain_statistics_to_api(
    statistics: domain_vo.ReadingStatistics,
    *,
    reading_streak: int = 0,
) -> api.ReadingStatistics:
    """
    Convert domain ReadingStatistics to the API model.

    Durations are exposed in minutes.

    Args:
        statistics: Domain statistics value object
        reading_streak: Current streak, computed separately

    Returns:
        API ReadingStatistics model
    """
    yearly_goal = None
    if statistics.yearly_goal is not None:
        yearly_goal = api.ReadingGoalProgress(**asdict(statistics.yearly_goal))

    monthly = [
        api.MonthlyReading(
            month=m.month,
            month_name=m.month_name,
            books_finished=m.books_finished,
            pages_read=m.pages_read,
            reading_time_minutes=_minutes(m.reading_time),
        )
        for m in statistics.monthly_progress
    ]

    return api.ReadingStatistics(
        total_books=statistics.total_books,
        books_to_read=statistics.books_to_read,
        books_reading=statistics.books_reading,
        books_finished=statistics.books_finished,
        books_on_hold=statistics.books_on_hold,
        books_dropped=statistics.books_dropped,
        total_pages_read=statistics.total_pages_read,
        total_reading_sessions=statistics.total_reading_sessions,
        total_reading_time_minutes=_minutes(statistics.total_reading_time),
        average_rating=round(statistics.average_rating, 2),
        books_with_rating=statistics.books_with_rating,
        reading_streak=reading_streak,
        yearly_goal=yearly_goal,
        monthly_progress=monthly,
    )


def domain_status_counts_to_api(counts: Dict[domain_vo.ReadingStatus, int]) -> api.StatusCounts:
    return api.StatusCounts(counts=counts, total=sum(counts.values()))
