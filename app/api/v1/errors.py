"""
Translation of domain and adapter errors into HTTP errors.
"""

from fastapi import HTTPException, status

from app.domain.exceptions import (
    BookAlreadyInLibraryError,
    ConcurrencyConflictError,
    DomainError,
    UserBookNotFoundError,
)


def to_http_exception(error: Exception) -> HTTPException:
    """
    Map an error raised by a use case to the HTTPException to return.

    Conflicts must be tested before the generic 400 case, since
    BookAlreadyInLibraryError is also an InvalidOperationError.
    """
    if isinstance(error, UserBookNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, (BookAlreadyInLibraryError, ConcurrencyConflictError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, (DomainError, ValueError)):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, RuntimeError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return HTTPException(status_code=code, detail=str(error))
