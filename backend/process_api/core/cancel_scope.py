"""Cancel Scope — hierarchical cancellation with deadlines for one request.

Invariants:
    - Cancellation propagates top-down only (parent → child, never child → parent)
    - A scope transitions to cancelled at most once; the first cause wins
    - A child's deadline is min(parent deadline, now + timeout)
    - bind_deadline releases its timer on every exit path

Design Decisions:
    - Deadlines on time.monotonic (same clock as the default asyncio loop) so the
      lazy `cancelled` check and the call_later timer never disagree
    - Lazy deadline check in `cause`: a zero timeout is cancelled on entry even
      before the timer callback has had a chance to run
"""

import asyncio
import time
from contextlib import contextmanager
from typing import Awaitable, Iterator, TypeVar

from process_api.core.domain_types import CancelCause
from process_api.core.errors import ExecutionCancelledError

T = TypeVar("T")


class CancelScope:
    """Cancellation state for one unit of request handling."""

    def __init__(
        self, deadline: float | None = None, parent: "CancelScope | None" = None,
    ):
        self.deadline = deadline
        self._parent = parent
        self._cause: CancelCause | None = None
        self._event = asyncio.Event()
        self._children: list[CancelScope] = []
        self._timer: asyncio.TimerHandle | None = None

    @property
    def cause(self) -> CancelCause | None:
        if (
            self._cause is None
            and self.deadline is not None
            and time.monotonic() >= self.deadline
        ):
            self.cancel(CancelCause.DEADLINE_EXCEEDED)
        return self._cause

    @property
    def cancelled(self) -> bool:
        return self.cause is not None

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def cancel(self, cause: CancelCause = CancelCause.CANCELLED) -> None:
        """Cancel this scope and every scope derived from it."""
        if self._cause is not None:
            return
        self._cause = cause
        self._event.set()
        self._disarm()
        for child in list(self._children):
            child.cancel(cause)

    async def wait(self) -> None:
        """Suspend until the scope is cancelled."""
        if self.cancelled:
            return
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Run work racing against cancellation of this scope.

        Work that finishes first wins, even if the scope fired in the same
        loop iteration. Otherwise the work is cancelled and
        ExecutionCancelledError is raised.
        """
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()
        if not work.done():
            await asyncio.wait({work})
        if work.cancelled():
            raise ExecutionCancelledError(self.cause)
        return work.result()

    def _arm(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._cause is not None or self.deadline is None:
            return
        delay = max(self.deadline - time.monotonic(), 0.0)
        self._timer = loop.call_later(
            delay, self.cancel, CancelCause.DEADLINE_EXCEEDED,
        )

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _attach(self, child: "CancelScope") -> None:
        self._children.append(child)
        if self.cancelled:
            child.cancel(self._cause)

    def _detach(self, child: "CancelScope") -> None:
        if child in self._children:
            self._children.remove(child)


@contextmanager
def bind_deadline(parent: CancelScope, timeout: float) -> Iterator[CancelScope]:
    """Derive a scope from `parent` that also expires `timeout` seconds from now.

    Must be entered from inside a running event loop.
    """
    loop = asyncio.get_running_loop()
    deadline = time.monotonic() + max(timeout, 0.0)
    if parent.deadline is not None:
        deadline = min(deadline, parent.deadline)
    scope = CancelScope(deadline=deadline, parent=parent)
    parent._attach(scope)
    scope._arm(loop)
    try:
        yield scope
    finally:
        scope._disarm()
        parent._detach(scope)
