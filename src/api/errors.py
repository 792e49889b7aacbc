"""Translation of portal errors into HTTP responses."""

import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    PortalError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def to_http_exception(
    error: PortalError, conflict_status: int = status.HTTP_409_CONFLICT
) -> HTTPException:
    """Map a portal error onto an HTTPException carrying its message.

    Args:
        error: The error raised by a manager.
        conflict_status: Status used for ConflictError; the drive access
            request endpoint answers duplicates with 400.

    Returns:
        HTTPException to raise from the route.
    """
    if isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, AuthenticationError):
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(error, AuthorizationError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ConflictError):
        code = conflict_status
    elif isinstance(error, DependencyError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        logger.error("Unmapped portal error: %r", error)
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))


def _describe(error: dict) -> str:
    location = [str(part) for part in error.get("loc", ()) if part != "body"]
    field = ".".join(location)
    message = error.get("msg", "Invalid value")
    return f"Invalid value for '{field}': {message}" if field else message


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer malformed request input with 400 and a readable message.

    Body, path and query values that fail schema validation are reported the
    same way as ValidationError raised by the managers.
    """
    errors = exc.errors()
    detail = "; ".join(_describe(error) for error in errors) or "Invalid request"
    logger.info("Rejected malformed request to %s: %s", request.url.path, detail)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail},
    )
