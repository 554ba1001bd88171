"""
API endpoints for reading statistics.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.v1 import schemas as api
from app.api.v1.converters import domain_statistics_to_api, domain_status_counts_to_api
from app.api.v1.dependencies import get_current_user_id, get_library_service, get_statistics_service
from app.api.v1.errors import to_http_exception
from app.domain.exceptions import DomainError
from app.domain.services import LibraryService, ReadingStatisticsService

router = APIRouter()


@router.get("/statistics", response_model=api.ReadingStatistics)
def get_statistics(
    year: int | None = Query(default=None, description="Year for the goal and monthly breakdown"),
    goal: int = Query(default=12, ge=1, description="Books to finish in the year"),
    user_id: UUID = Depends(get_current_user_id),
    service: ReadingStatisticsService = Depends(get_statistics_service),
) -> api.ReadingStatistics:
    """
    Reading overview: counts per status, pages and time read, average
    rating, yearly goal progress, monthly breakdown and current streak.
    """
    try:
        statistics = service.get_reading_statistics(user_id, year=year, yearly_goal=goal)
        streak = service.calculate_reading_streak(user_id)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)

    return domain_statistics_to_api(statistics, reading_streak=streak)


@router.get("/statistics/counts", response_model=api.StatusCounts)
def get_status_counts(
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.StatusCounts:
    """Number of library entries per reading status."""
    try:
        counts = service.get_status_counts(user_id)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)

    return domain_status_counts_to_api(counts)
