"""Error Hierarchy — typed, categorized exceptions for every process-api failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Per-request errors (400/500/504) never affect other in-flight requests
    - to_response() produces the wire envelope: a single `error` field, no internals
    - Fatal errors (startup/shutdown) terminate the process with a non-zero exit code

Design Decisions:
    - Single hierarchy with ProcessApiError base: FastAPI global handler catches all
    - public_message separate from message: message goes to logs, public_message to clients
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from process_api.core.domain_types import CancelCause, Outcome


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    INTERNAL = "internal"
    CONFIGURATION = "configuration"
    LIFECYCLE = "lifecycle"


@dataclass
class ErrorContext:
    """Context attached to an error for server-side logs only."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    debug_info: dict[str, Any] | None = None


class ProcessApiError(Exception):
    """Base exception for all process-api errors."""

    outcome: Outcome = Outcome.INTERNAL_ERROR

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

    @property
    def public_message(self) -> str:
        return self.outcome.wire_error or "internal"

    def to_response(self) -> dict:
        """Convert to the REST error envelope."""
        return {"error": self.public_message}


# ─── Per-request Errors ─────────────────────────────────────────

class InvalidPayloadError(ProcessApiError):
    """Request body is not a valid process payload."""

    outcome = Outcome.BAD_INPUT

    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid request body: {reason}",
            "INVALID_JSON", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.reason = reason


class ExecutionCancelledError(ProcessApiError):
    """Unit of work refused or abandoned because its scope was cancelled."""

    outcome = Outcome.TIMEOUT

    def __init__(
        self, cause: CancelCause | None = None, context: ErrorContext | None = None,
    ):
        cause = cause or CancelCause.DEADLINE_EXCEEDED
        super().__init__(
            f"Execution cancelled: {cause.value}",
            "EXECUTION_CANCELLED", ErrorCategory.TIMEOUT,
            ErrorSeverity.WARNING, context, 504,
        )
        self.cause = cause


class ProcessingFailedError(ProcessApiError):
    """Unit of work failed for a reason unrelated to cancellation."""

    outcome = Outcome.INTERNAL_ERROR

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Processing failed: {message}",
            "PROCESSING_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.ERROR, context, 500,
        )


# ─── Fatal Errors (process exits non-zero) ──────────────────────

class FatalStartupError(ProcessApiError):
    """Invalid configuration or listen address could not be bound."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "FATAL_STARTUP", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


class FatalShutdownError(ProcessApiError):
    """In-flight requests did not drain within the grace period."""
    def __init__(self, grace_period: float, context: ErrorContext | None = None):
        super().__init__(
            f"Shutdown grace period exceeded ({grace_period:g}s)",
            "FATAL_SHUTDOWN", ErrorCategory.LIFECYCLE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.grace_period = grace_period
