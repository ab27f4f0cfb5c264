"""Mapping of domain and persistence errors onto HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.logging.context import current_request_id
from app.matching.exceptions import (
    InvalidTargetError,
    MatchingError,
    NotFoundError,
    RoleMismatchError,
    StorageFailureError,
)
from app.persistence.exceptions import DataIntegrityError, PersistenceError

from .auth import ForbiddenError, UnauthorizedError
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)

# Starlette renamed the 422 constant; the literal works across versions
HTTP_UNPROCESSABLE = 422

STATUS_BY_ERROR = (
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (RoleMismatchError, status.HTTP_409_CONFLICT),
    (InvalidTargetError, HTTP_UNPROCESSABLE),
    (StorageFailureError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def _error_response(request: Request, status_code: int, exc: Exception, retryable: bool = False) -> JSONResponse:
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=str(exc),
        request_id=request.headers.get("X-Request-ID") or current_request_id(),
        retryable=retryable,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def matching_error_handler(request: Request, exc: MatchingError) -> JSONResponse:
    """Translate consent, matching and auth errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break

    retryable = isinstance(exc, StorageFailureError)
    log = logger.error if retryable else logger.info
    log(
        f"Request failed: {exc}",
        extra={
            "event": "api.request.failed",
            "error_type": type(exc).__name__,
            "status_code": status_code,
        },
    )
    return _error_response(request, status_code, exc, retryable=retryable)


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Translate persistence errors that escaped the matching engine."""
    if isinstance(exc, DataIntegrityError):
        logger.info(
            f"Constraint violation: {exc}",
            extra={"event": "api.request.conflict", "error_type": type(exc).__name__},
        )
        return _error_response(request, status.HTTP_409_CONFLICT, exc)

    logger.error(
        f"Storage failure: {exc}",
        extra={"event": "api.request.storage_failure", "error_type": type(exc).__name__},
    )
    return _error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, exc, retryable=True)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Translate domain model validation failures raised inside a route."""
    logger.info(
        f"Rejected invalid data: {exc.error_count()} error(s)",
        extra={"event": "api.request.invalid", "error_type": type(exc).__name__},
    )
    return _error_response(request, HTTP_UNPROCESSABLE, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error handlers on an application."""
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(MatchingError, matching_error_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
