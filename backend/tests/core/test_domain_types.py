"""Domain Types — verifies outcome, cancel cause and shutdown state enums.

Tests:
    - Each Outcome maps to its HTTP status and wire error
    - Enums serialize to their string values
    - ShutdownState has exactly four states
"""

from process_api.core.domain_types import (
    CancelCause, DEFAULT_PAYLOAD, DEFAULT_REQUEST_ID, Outcome, RESULT_PREFIX,
    ShutdownState,
)


def test_outcome_http_statuses():
    assert Outcome.SUCCESS.http_status == 200
    assert Outcome.BAD_INPUT.http_status == 400
    assert Outcome.TIMEOUT.http_status == 504
    assert Outcome.INTERNAL_ERROR.http_status == 500


def test_outcome_wire_errors():
    assert Outcome.SUCCESS.wire_error is None
    assert Outcome.BAD_INPUT.wire_error == "invalid json"
    assert Outcome.TIMEOUT.wire_error == "timeout"
    assert Outcome.INTERNAL_ERROR.wire_error == "internal"


def test_outcome_has_exactly_four_members():
    assert len(Outcome) == 4


def test_enums_are_strings():
    assert Outcome.TIMEOUT == "timeout"
    assert CancelCause.DEADLINE_EXCEEDED.value == "deadline_exceeded"
    assert ShutdownState.DRAINING.value == "draining"


def test_shutdown_state_has_four_states():
    assert [s.value for s in ShutdownState] == [
        "running", "shutdown_requested", "draining", "stopped",
    ]


def test_constants():
    assert DEFAULT_REQUEST_ID == "none"
    assert DEFAULT_PAYLOAD == "hello"
    assert RESULT_PREFIX == "processed:"
