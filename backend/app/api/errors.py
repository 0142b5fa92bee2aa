"""
Translation of domain errors into HTTP responses.
"""
from fastapi import HTTPException, status

from app.errors import (
    InvalidTransitionError,
    PhotoJournalError,
    UnauthorizedError,
    ValidationError,
)


def to_http_exception(error: PhotoJournalError) -> HTTPException:
    """Map an application error onto the status code the client sees."""
    if isinstance(error, UnauthorizedError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, InvalidTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    # Storage failures and anything else are internal errors
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)
