"""
Rating error taxonomy and FastAPI exception handlers
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .logging import get_logger

logger = get_logger(__name__)


class RatingServiceError(Exception):
    """Base class for errors surfaced to API callers with a stable code"""

    code = "RATING_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RatingValidationError(RatingServiceError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class SelfRatingError(RatingServiceError):
    code = "SELF_RATING"
    status_code = status.HTTP_403_FORBIDDEN


class EligibilityError(RatingServiceError):
    code = "MESSAGE_EXCHANGE_REQUIRED"
    status_code = status.HTTP_403_FORBIDDEN


class DuplicateRatingError(RatingServiceError):
    code = "DUPLICATE_RATING"
    status_code = status.HTTP_409_CONFLICT


class RatingAuthorizationError(RatingServiceError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(RatingServiceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


async def rating_error_handler(request: Request, exc: RatingServiceError):
    """Return rating errors as JSON with their stable code"""
    logger.info(
        "%s %s rejected: %s (%s)",
        request.method,
        request.url.path,
        exc.message,
        exc.code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures and hide their details from the caller"""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        str(exc),
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "INTERNAL_ERROR"},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RatingServiceError, rating_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
