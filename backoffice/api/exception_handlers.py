"""Global exception handlers that map domain exceptions to HTTP responses."""

import logging
import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backoffice.core.config import settings
from backoffice.errors import (
    CONFLICT,
    DATA_QUALITY_ERROR,
    FORBIDDEN,
    INTERNAL_ERROR,
    NOT_FOUND,
    TRANSACTION_ERROR,
    UNAUTHORIZED,
    VALIDATION_ERROR,
    ConflictError,
    DataQualityError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
    TransactionError,
    UnauthorizedError,
)
from backoffice.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(
    status_code: int, detail: str, code: str, traceback_lines: list[str] | None = None
) -> JSONResponse:
    """Return a standardized error response with detail and machine-readable code."""
    body = ErrorResponse(detail=detail, code=code, traceback=traceback_lines)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        str(exc),
        VALIDATION_ERROR,
    )


def request_validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "; ".join(messages) or "Invalid request",
        VALIDATION_ERROR,
    )


def conflict_error_handler(_request: Request, exc: ConflictError) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        str(exc),
        CONFLICT,
    )


def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(
        status.HTTP_404_NOT_FOUND,
        str(exc),
        NOT_FOUND,
    )


def forbidden_error_handler(_request: Request, exc: ForbiddenError) -> JSONResponse:
    return _error_response(
        status.HTTP_403_FORBIDDEN,
        str(exc),
        FORBIDDEN,
    )


def unauthorized_error_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    return _error_response(
        status.HTTP_401_UNAUTHORIZED,
        str(exc),
        UNAUTHORIZED,
    )


def transaction_error_handler(_request: Request, exc: TransactionError) -> JSONResponse:
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc),
        TRANSACTION_ERROR,
    )


def data_quality_error_handler(_request: Request, exc: DataQualityError) -> JSONResponse:
    logger.error("Data quality error: %s", exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc),
        DATA_QUALITY_ERROR,
    )


def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    traceback_lines = None
    if settings.debug:
        traceback_lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        INTERNAL_ERROR,
        traceback_lines,
    )


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(ForbiddenError, forbidden_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(TransactionError, transaction_error_handler)
    app.add_exception_handler(DataQualityError, data_quality_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
