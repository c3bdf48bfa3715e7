"""Outcome Classifier — maps an execution attempt to exactly one Outcome.

Invariants:
    - error is None → SUCCESS, regardless of the scope's state (no post-hoc invalidation)
    - error and cancelled scope → TIMEOUT; error and live scope → INTERNAL_ERROR
    - Malformed input never reaches the executor; it is classified as BAD_INPUT directly

Design Decisions:
    - Pure function over (error, scope): the route owns IO, the classifier owns policy
    - Deadline expiry and explicit cancellation share TIMEOUT; the cause is kept for logs
"""

from dataclasses import dataclass

from process_api.core.cancel_scope import CancelScope
from process_api.core.domain_types import CancelCause, Outcome
from process_api.core.work import WorkResult


@dataclass(frozen=True)
class Classification:
    """One request's final outcome plus what the client gets to see."""
    outcome: Outcome
    result: WorkResult | None = None
    cause: CancelCause | None = None

    @property
    def status(self) -> int:
        return self.outcome.http_status


def classify(
    result: WorkResult | None, error: BaseException | None, scope: CancelScope,
) -> Classification:
    """Classify an execution attempt. Scope state is read only on error."""
    if error is None:
        return Classification(Outcome.SUCCESS, result=result)
    cause = scope.cause
    if cause is not None:
        return Classification(Outcome.TIMEOUT, cause=cause)
    return Classification(Outcome.INTERNAL_ERROR)


def classify_bad_input() -> Classification:
    return Classification(Outcome.BAD_INPUT)
