"""Failure taxonomy shared by services, and its mapping onto HTTP responses."""

import logging
from enum import Enum
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    """Classes of failure a service result can carry."""

    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSPORT = "transport"
    VALIDATION = "validation"


FAILURE_STATUS_CODES: dict[FailureKind, int] = {
    FailureKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.CONFLICT: status.HTTP_409_CONFLICT,
    FailureKind.TRANSPORT: status.HTTP_503_SERVICE_UNAVAILABLE,
    FailureKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
}


def status_for(kind: FailureKind | None) -> int:
    """Return the HTTP status for a failure kind (400 when unclassified)."""
    if kind is None:
        return status.HTTP_400_BAD_REQUEST
    return FAILURE_STATUS_CODES[kind]


class ServiceError(Exception):
    """Raised by handlers to turn a failed service result into an HTTP response."""

    def __init__(
        self,
        message: str,
        kind: FailureKind | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.errors = errors


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ServiceError as a JSON failure body."""
    body: dict[str, Any] = {"success": False, "message": exc.message}
    if exc.errors:
        body["errors"] = exc.errors
    return JSONResponse(status_code=status_for(exc.kind), content=body)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected exception and hide its details from the client."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={"error_type": "unhandled_exception", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "An internal server error occurred"},
    )
