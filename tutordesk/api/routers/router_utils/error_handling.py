"""
Service error handling for routers.

Maps the tutordesk exception hierarchy onto HTTP status codes in one
decorator so every endpoint reports failures the same way.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from tutordesk.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PartialDeletionFailure,
    PermissionDenied,
    TransientStoreFailure,
    TutorDeskException,
    ValidationError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def status_for(exc: TutorDeskException) -> int:
    """HTTP status code for a service exception."""
    if isinstance(exc, PermissionDenied):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, InvalidTransitionError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, TransientStoreFailure):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def handle_service_errors(func: F) -> F:
    """
    Decorator turning service exceptions into HTTPExceptions.

    PartialDeletionFailure keeps its resume context in the response body.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except PartialDeletionFailure as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"message": e.message, **e.details},
            )
        except TutorDeskException as e:
            code = status_for(e)
            if code >= 500:
                logger.error(f"{func.__name__} failed: {e}", extra={"error_type": type(e).__name__})
            else:
                logger.info(f"{func.__name__} rejected: {e}", extra={"status_code": code})
            raise HTTPException(status_code=code, detail=e.message)

    return wrapper  # type: ignore[return-value]
