"""Error Handlers — maps relay failures on the REST surface to the JSON error envelope.

Invariants:
    - RelayError → its own http_status and to_response() body
    - 503 responses (database down, relay shutting down) carry Retry-After
    - Query validation failures → 400 VALIDATION_ERROR with per-field details
    - Anything else → 500 INTERNAL_ERROR, no internal details in the body

Design Decisions:
    - Only the audit log route touches the database, so DatabaseError is the one
      infrastructure error REST callers normally see
    - Client errors logged at warning, server errors at error: a bad query string is not an incident
    - Tool-call failures never reach these handlers: they travel back over the
      embed channel as TOOL_RESPONSE errors
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from deckrelay.core.errors import ErrorCategory, ErrorSeverity, RelayError

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 5


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(RelayError, _handle_relay_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)


async def _handle_relay_error(request: Request, exc: RelayError) -> JSONResponse:
    level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
    logger.log(
        level,
        f"{exc.code} on {request.url.path}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    headers = None
    if exc.http_status == status.HTTP_503_SERVICE_UNAVAILABLE:
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def _handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected query on {request.url.path}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid request data",
        ErrorCategory.VALIDATION, ErrorSeverity.ERROR, details=details,
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}", exc_info=True,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR",
        "An unexpected error occurred",
        ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
    )


def _error_response(
    status_code: int,
    code: str,
    message: str,
    category: ErrorCategory,
    severity: ErrorSeverity,
    **extra,
) -> JSONResponse:
    error = {
        "code": code,
        "message": message,
        "category": category.value,
        "severity": severity.value,
        **extra,
    }
    return JSONResponse(status_code=status_code, content={"error": error})
