"""
API endpoints for the user's library.

This module defines the FastAPI routes for adding books, tracking reading
progress and managing personal data. It handles HTTP concerns and delegates
to the LibraryService.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.v1 import schemas as api
from app.api.v1.converters import (
    api_book_info_to_domain,
    domain_page_to_api,
    domain_session_to_api,
    domain_user_book_to_api,
)
from app.api.v1.dependencies import get_current_user_id, get_library_service
from app.api.v1.errors import to_http_exception
from app.domain.exceptions import DomainError
from app.domain.services import LibraryService
from app.domain.value_objects import ReadingStatus

router = APIRouter()


@router.get("/library", response_model=api.UserBookPage)
def list_library(
    page: int = Query(default=1, ge=1, description="1-indexed page number"),
    page_size: int = Query(default=LibraryService.DEFAULT_PAGE_SIZE, ge=1, le=LibraryService.MAX_PAGE_SIZE),
    status_filter: ReadingStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, description="Filter on title, author, genre or notes"),
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBookPage:
    """
    List the user's library, most recently added first.
    """
    try:
        result = service.list_user_books(
            user_id, page, page_size, status=status_filter, search_term=search
        )
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_page_to_api(result)


@router.get("/library/search", response_model=api.UserBookPage)
def search_library(
    q: str = Query(description="Search term"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=LibraryService.DEFAULT_PAGE_SIZE, ge=1, le=LibraryService.MAX_PAGE_SIZE),
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBookPage:
    """Search the user's library. A blank term returns an empty page."""
    try:
        result = service.search_library(user_id, q, page, page_size)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_page_to_api(result)


@router.get("/library/{user_book_id}", response_model=api.UserBook)
def get_user_book(
    user_book_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBook:
    """
    Get a library entry with its reading sessions.

    Raises:
        404: Entry not found
    """
    try:
        user_book = service.get_user_book(user_id, user_book_id)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_user_book_to_api(user_book)


@router.post("/library", response_model=api.UserBook, status_code=status.HTTP_201_CREATED)
def add_book(
    request: api.AddBookRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBook:
    """
    Add a book to the user's library.

    Raises:
        400: Invalid book information
        409: The book is already in the library
    """
    try:
        user_book = service.add_book_to_library(
            user_id,
            request.book_id,
            api_book_info_to_domain(request.book_info),
            personal_notes=request.personal_notes,
        )
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_user_book_to_api(user_book)


@router.put("/library/{user_book_id}/status", response_model=api.UserBook)
def change_status(
    user_book_id: UUID,
    request: api.ChangeStatusRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBook:
    """
    Move an entry to another reading status.

    Raises:
        400: Transition not allowed from the current status
        404: Entry not found
        409: Entry was modified concurrently
    """
    try:
        user_book = service.change_status(user_id, user_book_id, request.status, request.date)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_user_book_to_api(user_book)


@router.post(
    "/library/{user_book_id}/sessions",
    response_model=api.ReadingSession,
    status_code=status.HTTP_201_CREATED,
)
def log_reading_session(
    user_book_id: UUID,
    request: api.LogSessionRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.ReadingSession:
    """
    Record a reading session. Reaching the last page finishes the book.
    """
    try:
        session = service.log_reading_session(
            user_id,
            user_book_id,
            request.session_date,
            request.start_page,
            request.end_page,
            end_time=request.end_time,
            notes=request.notes,
        )
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_session_to_api(session)


@router.put("/library/{user_book_id}/progress", response_model=api.UserBook)
def update_progress(
    user_book_id: UUID,
    request: api.UpdateProgressRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBook:
    try:
        user_book = service.update_progress(user_id, user_book_id, request.page_number)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_user_book_to_api(user_book)


@router.put("/library/{user_book_id}/rating", response_model=api.UserBook)
def rate_book(
    user_book_id: UUID,
    request: api.RateBookRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBook:
    try:
        user_book = service.rate_book(user_id, user_book_id, request.rating)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_user_book_to_api(user_book)


@router.delete("/library/{user_book_id}/rating", response_model=api.UserBook)
def remove_rating(
    user_book_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBook:
    try:
        user_book = service.remove_rating(user_id, user_book_id)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_user_book_to_api(user_book)


@router.put("/library/{user_book_id}/notes", response_model=api.UserBook)
def update_notes(
    user_book_id: UUID,
    request: api.UpdateNotesRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> api.UserBook:
    try:
        user_book = service.update_personal_notes(user_id, user_book_id, request.notes)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return domain_user_book_to_api(user_book)


@router.delete("/library/{user_book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    user_book_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> Response:
    """
    Remove a book and its reading sessions from the library.

    Raises:
        404: Entry not found
    """
    try:
        service.delete_book(user_id, user_book_id)
    except (DomainError, ValueError, RuntimeError) as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
