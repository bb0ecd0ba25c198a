"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from notification_engine.domain.errors import (
    InvalidStateTransitionError,
    NotFoundError,
    NotificationError,
)


def to_http_exception(exc: NotificationError) -> HTTPException:
    """Return the HTTP error matching a use case exception."""

    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, InvalidStateTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


__all__ = ["to_http_exception"]
