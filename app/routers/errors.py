"""Translate service errors into HTTP errors."""
from fastapi import HTTPException, status

from app.services.errors import (
    Conflict,
    InvalidRange,
    InvalidState,
    NotFound,
    ServiceError,
    TimerAlreadyRunning,
    Unauthorized,
)

STATUS_CODES = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    InvalidRange: status.HTTP_400_BAD_REQUEST,
    InvalidState: status.HTTP_409_CONFLICT,
    TimerAlreadyRunning: status.HTTP_409_CONFLICT,
    Conflict: status.HTTP_409_CONFLICT,
}


def to_http_exception(error: ServiceError) -> HTTPException:
    """
    Map a service error to an HTTPException carrying its message.

    Unknown service errors are treated as bad requests.
    """
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
