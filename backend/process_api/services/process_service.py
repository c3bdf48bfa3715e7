"""Process Service — the unit-of-work executor and its execution counter.

Invariants:
    - A scope cancelled at entry fails immediately: no work, no counter increment
    - Each completed execution increments the counter exactly once
    - execute() never suspends (no await inside); it returns within microseconds

Design Decisions:
    - Counter owned by the executor instance, not module-global state
    - threading.Lock around the increment: correct under asyncio and under worker threads
"""

import threading
import time

from process_api.core.cancel_scope import CancelScope
from process_api.core.errors import ExecutionCancelledError
from process_api.core.work import WorkInput, WorkResult, transform


class ExecutionCounter:
    """Monotonic count of completed executions, increment-only."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        """Atomically add one and return the new total."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        return self._value


class ProcessService:
    """Echoes or prefixes the payload and stamps the completion time."""

    def __init__(self, counter: ExecutionCounter | None = None):
        self.counter = counter or ExecutionCounter()

    async def execute(self, scope: CancelScope, work: WorkInput) -> WorkResult:
        if scope.cancelled:
            raise ExecutionCancelledError(scope.cause)
        result = transform(work)
        processed_at = int(time.time())
        self.counter.increment()
        return WorkResult(result=result, processed_at_unix=processed_at)
