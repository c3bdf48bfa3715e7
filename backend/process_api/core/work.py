"""Unit-of-Work Values — immutable input and result of one execution.

Invariants:
    - WorkInput and WorkResult are frozen; a result is produced at most once per execution
    - apply_defaults() runs before the executor: an empty payload becomes DEFAULT_PAYLOAD
    - transform() is the only business rule: echo keeps the payload, otherwise prefix it
"""

from dataclasses import dataclass, replace

from process_api.core.domain_types import DEFAULT_PAYLOAD, RESULT_PREFIX


@dataclass(frozen=True)
class WorkInput:
    payload: str = ""
    echo: bool = False


@dataclass(frozen=True)
class WorkResult:
    result: str
    processed_at_unix: int


def apply_defaults(work: WorkInput) -> WorkInput:
    if work.payload:
        return work
    return replace(work, payload=DEFAULT_PAYLOAD)


def transform(work: WorkInput) -> str:
    if work.echo:
        return work.payload
    return RESULT_PREFIX + work.payload
