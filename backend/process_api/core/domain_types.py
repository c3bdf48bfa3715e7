"""Domain Types — enums and constants shared by the request pipeline.

Invariants:
    - Every request is classified into exactly one Outcome
    - Outcome carries its own HTTP status and wire error string
    - ShutdownState only moves forward (RUNNING → SHUTDOWN_REQUESTED → DRAINING → STOPPED)

Design Decisions:
    - str Enums: serialize to JSON and log records without custom encoders
    - NewType for RequestId: zero runtime cost, still distinct for type checkers
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

RequestId = NewType("RequestId", str)


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_REQUEST_ID = RequestId("none")
REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_PAYLOAD = "hello"
RESULT_PREFIX = "processed:"


# ─── Enums ───────────────────────────────────────────────────────

class Outcome(str, Enum):
    """Final classification of one /process request."""
    SUCCESS = "success"
    BAD_INPUT = "bad_input"
    TIMEOUT = "timeout"
    INTERNAL_ERROR = "internal_error"

    @property
    def http_status(self) -> int:
        return _OUTCOME_STATUS[self]

    @property
    def wire_error(self) -> str | None:
        """Value of the `error` field in the response body (None on success)."""
        return _OUTCOME_WIRE_ERROR[self]


_OUTCOME_STATUS = {
    Outcome.SUCCESS: 200,
    Outcome.BAD_INPUT: 400,
    Outcome.TIMEOUT: 504,
    Outcome.INTERNAL_ERROR: 500,
}

_OUTCOME_WIRE_ERROR = {
    Outcome.SUCCESS: None,
    Outcome.BAD_INPUT: "invalid json",
    Outcome.TIMEOUT: "timeout",
    Outcome.INTERNAL_ERROR: "internal",
}


class CancelCause(str, Enum):
    """Why a cancellation scope fired; logged, never shown to clients."""
    DEADLINE_EXCEEDED = "deadline_exceeded"
    CANCELLED = "cancelled"


class ShutdownState(str, Enum):
    """Shutdown coordinator lifecycle states."""
    RUNNING = "running"
    SHUTDOWN_REQUESTED = "shutdown_requested"
    DRAINING = "draining"
    STOPPED = "stopped"
