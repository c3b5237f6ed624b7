"""Error Hierarchy — typed, categorized exceptions for all DeckRelay failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are reported back to the embed; infrastructure errors (500-level) are critical
    - to_response() produces REST envelope; to_tool_error() produces the TOOL_RESPONSE error string
    - Engine faults are wrapped (original exception kept as __cause__), never reinterpreted

Design Decisions:
    - Single hierarchy with RelayError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - No retry flag: nothing in the relay retries, retry policy belongs to the remote caller
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    PROTOCOL = "protocol"
    ENGINE = "engine"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    tool_name: str | None = None
    debug_info: dict[str, Any] | None = None


class RelayError(Exception):
    """Base exception for all DeckRelay errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "request_id": self.context.request_id,
                    "tool_name": self.context.tool_name,
                },
            }
        }

    def to_tool_error(self) -> str:
        """Error string carried by a failed TOOL_RESPONSE."""
        return self.message


# ─── Domain Errors (400-level) ──────────────────────────────────

class ToolValidationError(RelayError):
    """Tool arguments are missing, mistyped, or out of range."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class UnknownOperationError(RelayError):
    """No handler registered for the requested operation name."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f'Unknown operation: "{operation}"',
            "UNKNOWN_OPERATION", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.operation = operation


class InvalidEnvelopeError(RelayError):
    """Inbound message has a known type tag but a malformed payload."""
    def __init__(self, message: str, envelope_type: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed {envelope_type} envelope: {message}",
            "INVALID_ENVELOPE", ErrorCategory.PROTOCOL,
            ErrorSeverity.WARNING, context, 400,
        )
        self.envelope_type = envelope_type


class OriginRejectedError(RelayError):
    """Message or connection did not come from the expected embed origin."""
    def __init__(self, origin: str | None, context: ErrorContext | None = None):
        super().__init__(
            f"Origin '{origin}' is not allowed",
            "ORIGIN_REJECTED", ErrorCategory.PROTOCOL,
            ErrorSeverity.WARNING, context, 403,
        )
        self.origin = origin


class ConcurrencyError(RelayError):
    """A second operation entered the single-writer engine while one was running."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.CRITICAL, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class EngineOperationError(RelayError):
    """The engine failed while executing an operation."""
    def __init__(self, operation: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"{operation} failed: {message}",
            "ENGINE_ERROR", ErrorCategory.ENGINE,
            ErrorSeverity.ERROR, context, 502,
        )
        self.operation = operation


class DatabaseError(RelayError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
