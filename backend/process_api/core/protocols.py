"""Boundary Protocols — contracts between the pipeline core and its collaborators.

Invariants:
    - The pipeline depends on capabilities, never on concrete executors or servers
    - Implementations provided by the shell (or tests) via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no inheritance
    - WorkExecutor.execute is async so slow doubles can suspend; the production
      executor never does
"""

from typing import Protocol

from process_api.core.cancel_scope import CancelScope
from process_api.core.work import WorkInput, WorkResult


class WorkExecutor(Protocol):
    """Anything that can run one unit of work under a cancellation scope."""
    async def execute(self, scope: CancelScope, work: WorkInput) -> WorkResult: ...


class LifecycleObserver(Protocol):
    """Receives start/end events for each /process request."""
    def on_start(self, method: str, path: str, request_id: str) -> None: ...
    def on_end(
        self, method: str, path: str, request_id: str,
        status: int, duration_ms: int,
    ) -> None: ...


class ServingBackend(Protocol):
    """Structural contract met by uvicorn.Server: a serve loop stopped via should_exit."""
    should_exit: bool

    async def serve(self, sockets: list | None = None) -> None: ...