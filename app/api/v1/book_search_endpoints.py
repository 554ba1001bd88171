"""
API endpoints for external catalog lookups (Google Books).
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1 import schemas as api
from app.api.v1.converters import domain_book_info_to_api
from app.api.v1.dependencies import get_book_search_service
from app.api.v1.errors import to_http_exception
from app.domain.services import BookSearchService

router = APIRouter()


@router.get("/books/search", response_model=api.BookSearchResponse)
def search_books(
    q: str = Query(description="Free-text query (title, author, ...)"),
    max_results: int = Query(default=10, ge=1, le=40),
    service: BookSearchService = Depends(get_book_search_service),
) -> api.BookSearchResponse:
    """
    Search the external catalog for books to add to the library.

    Raises:
        503: The catalog is unavailable
    """
    try:
        books = service.search_books(q, max_results)
    except (ValueError, RuntimeError) as e:
        raise to_http_exception(e)

    return api.BookSearchResponse(
        query=q,
        results=[domain_book_info_to_api(book) for book in books],
    )


@router.get("/books/isbn/{isbn}", response_model=api.BookInfo)
def get_book_by_isbn(
    isbn: str,
    service: BookSearchService = Depends(get_book_search_service),
) -> api.BookInfo:
    """
    Look up a book by ISBN (dashes and spaces are ignored).

    Raises:
        404: No book with this ISBN
        503: The catalog is unavailable
    """
    try:
        book = service.get_book_by_isbn(isbn)
    except RuntimeError as e:
        raise to_http_exception(e)

    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with ISBN '{isbn}' not found",
        )

    return domain_book_info_to_api(book)
