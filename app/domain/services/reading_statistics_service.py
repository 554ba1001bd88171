"""
Reading statistics and goals.

All figures are derived from the UserBook aggregates returned by the
repository; nothing is stored.
"""

import calendar
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from app.domain.entities import UserBook
from app.domain.exceptions import InvalidArgumentError
from app.domain.ports import UserBookRepository
from app.domain.utils.clock import utc_now
from app.domain.value_objects import (
    MonthlyReading,
    ReadingGoalProgress,
    ReadingStatistics,
    ReadingStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_YEARLY_GOAL = 12
STREAK_MAX_GAP_DAYS = 7


class ReadingStatisticsService:
    """
    Computes library-wide reading statistics for a user.

    Usage:
        stats = ReadingStatisticsService(repository).get_reading_statistics(user_id)
        print(stats.books_finished, stats.total_pages_read)
    """

    def __init__(self, repository: UserBookRepository) -> None:
        self._repository = repository

    def get_reading_statistics(
        self,
        user_id: UUID,
        year: Optional[int] = None,
        yearly_goal: int = DEFAULT_YEARLY_GOAL,
    ) -> ReadingStatistics:
        """
        Build the statistics overview for a user.

        Args:
            user_id: Owner of the library
            year: Year used for the goal and monthly breakdown (default: current year)
            yearly_goal: Target number of finished books for the year

        Returns:
            ReadingStatistics over the whole library, with the yearly goal
            progress and one MonthlyReading per month of `year`
        """
        if yearly_goal <= 0:
            raise InvalidArgumentError(
                f"yearly_goal must be positive, got {yearly_goal}", field="yearly_goal"
            )

        year = year if year is not None else utc_now().year
        books = self._repository.get_by_user_id(user_id)
        logger.debug(f"Computing statistics for user {user_id} over {len(books)} books")

        def count(status: ReadingStatus) -> int:
            return sum(1 for book in books if book.status == status)

        rated = [book.personal_rating for book in books if book.personal_rating is not None]
        average_rating = sum(rated) / len(rated) if rated else 0.0

        finished_in_year = [
            book for book in self._finished_books(books)
            if book.finished_date.year == year
        ]
        completed = len(finished_in_year)
        yearly = ReadingGoalProgress(
            target_books=yearly_goal,
            completed_books=completed,
            progress_percentage=min(100.0, completed / yearly_goal * 100.0),
            is_achieved=completed >= yearly_goal,
        )

        return ReadingStatistics(
            total_books=len(books),
            books_to_read=count(ReadingStatus.TO_READ),
            books_reading=count(ReadingStatus.READING),
            books_finished=count(ReadingStatus.FINISHED),
            books_on_hold=count(ReadingStatus.ON_HOLD),
            books_dropped=count(ReadingStatus.DROPPED),
            total_pages_read=sum(book.total_pages_read for book in books),
            total_reading_sessions=sum(book.total_reading_sessions for book in books),
            total_reading_time=sum((book.total_reading_time for book in books), timedelta(0)),
            average_rating=average_rating,
            books_with_rating=len(rated),
            yearly_goal=yearly,
            monthly_progress=self._monthly_progress(finished_in_year),
        )

    def is_reading_goal_met(self, user_id: UUID, target_books_per_year: int) -> bool:
        """True when the user finished at least `target_books_per_year` books this year."""
        current_year = utc_now().year
        books = self._repository.get_by_user_id(user_id)
        finished = sum(
            1 for book in self._finished_books(books)
            if book.finished_date.year == current_year
        )
        return finished >= target_books_per_year

    def calculate_reading_streak(self, user_id: UUID) -> int:
        """
        Number of consecutive finished books, counted back from today.

        The streak breaks at the first gap longer than a week between two
        finishes (or between today and the latest finish).
        """
        books = self._repository.get_by_user_id(user_id)
        finished = sorted(
            self._finished_books(books), key=lambda book: book.finished_date, reverse=True
        )

        streak = 0
        current_date = utc_now().date()
        for book in finished:
            finished_date = book.finished_date.date()
            if (current_date - finished_date).days > STREAK_MAX_GAP_DAYS:
                break
            streak += 1
            current_date = finished_date

        return streak

    def get_average_reading_time_per_day(self, user_id: UUID, days: int = 30) -> timedelta:
        """
        Reading time of sessions started within the last `days` days,
        spread over the whole period (not only the days with sessions).
        """
        if days <= 0:
            raise InvalidArgumentError(f"days must be positive, got {days}", field="days")

        cutoff = utc_now() - timedelta(days=days)
        books = self._repository.get_by_user_id(user_id)

        total = timedelta(0)
        for book in books:
            for session in book.reading_sessions:
                if session.start_date >= cutoff and session.duration is not None:
                    total += session.duration

        return total / days

    @staticmethod
    def _finished_books(books: List[UserBook]) -> List[UserBook]:
        return [
            book for book in books
            if book.status == ReadingStatus.FINISHED and book.finished_date is not None
        ]

    @staticmethod
    def _monthly_progress(finished_in_year: List[UserBook]) -> List[MonthlyReading]:
        monthly = []
        for month in range(1, 13):
            in_month = [book for book in finished_in_year if book.finished_date.month == month]
            monthly.append(
                MonthlyReading(
                    month=month,
                    month_name=calendar.month_name[month],
                    books_finished=len(in_month),
                    pages_read=sum(book.total_pages_read for book in in_month),
                    reading_time=sum(
                        (book.total_reading_time for book in in_month), timedelta(0)
                    ),
                )
            )
        return monthly
