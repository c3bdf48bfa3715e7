"""Shutdown Coordinator — signal-driven drain of the serving backend.

Invariants:
    - States only move forward: RUNNING → SHUTDOWN_REQUESTED → DRAINING → STOPPED
    - Exactly one shutdown request is processed; later signals are logged and ignored
    - Draining stops new connections but lets accepted requests finish
    - Drain longer than the grace period raises FatalShutdownError
    - The signal watcher is an owned task, cancelled and joined before run() returns

Design Decisions:
    - Signals are pushed into a single-consumer asyncio.Queue instead of acting inside
      the handler: the handler only enqueues, the watcher task owns the transition
    - The backend is any ServingBackend (uvicorn.Server in production, a fake in tests)
"""

import asyncio
import logging
import signal
from typing import Sequence

from process_api.core.domain_types import ShutdownState
from process_api.core.errors import FatalShutdownError
from process_api.core.protocols import ServingBackend

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ShutdownCoordinator:
    """Supervises one serving backend from start to a bounded, draining stop."""

    def __init__(
        self,
        backend: ServingBackend,
        grace_period: float,
        sockets: list | None = None,
        signals: Sequence[signal.Signals] = TERMINATION_SIGNALS,
    ):
        self.backend = backend
        self.grace_period = grace_period
        self.sockets = sockets
        self.signals = tuple(signals)
        self.state = ShutdownState.RUNNING
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._requested = asyncio.Event()

    def notify(self, reason: str) -> None:
        """Enqueue a termination request; safe to call from a signal handler."""
        self._queue.put_nowait(reason)

    def request_shutdown(self, reason: str) -> bool:
        """Perform the single RUNNING → SHUTDOWN_REQUESTED transition.

        Returns False (and changes nothing) if shutdown was already requested.
        """
        if self.state is not ShutdownState.RUNNING:
            logger.info(
                "shutdown already in progress, signal ignored",
                extra={"signal": reason, "state": self.state.value},
            )
            return False
        self.state = ShutdownState.SHUTDOWN_REQUESTED
        logger.info("shutdown signal received", extra={"signal": reason})
        self.backend.should_exit = True
        self._requested.set()
        return True

    async def run(self) -> None:
        """Serve until a termination request, then drain within the grace period."""
        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop)
        serving = asyncio.create_task(
            self.backend.serve(sockets=self.sockets), name="serving-backend",
        )
        watcher = asyncio.create_task(
            self._watch_signals(), name="shutdown-signal-watcher",
        )
        requested = asyncio.create_task(self._requested.wait())
        try:
            await asyncio.wait(
                {serving, requested}, return_when=asyncio.FIRST_COMPLETED,
            )
            if serving.done() and not self._requested.is_set():
                self.state = ShutdownState.STOPPED
                serving.result()
                return
            await self._drain(serving)
        finally:
            for task in (requested, watcher, serving):
                if not task.done():
                    task.cancel()
            await asyncio.wait({requested, watcher, serving})
            self._remove_signal_handlers(loop, installed)

    async def _drain(self, serving: asyncio.Task) -> None:
        self.state = ShutdownState.DRAINING
        logger.info(
            "draining in-flight requests",
            extra={"state": self.state.value},
        )
        try:
            await asyncio.wait_for(serving, timeout=self.grace_period)
        except asyncio.TimeoutError as e:
            self.state = ShutdownState.STOPPED
            logger.error(
                "server shutdown error",
                extra={"error": f"grace period of {self.grace_period:g}s exceeded"},
            )
            raise FatalShutdownError(self.grace_period) from e
        self.state = ShutdownState.STOPPED
        logger.info("server stopped gracefully", extra={"state": self.state.value})

    async def _watch_signals(self) -> None:
        while True:
            reason = await self._queue.get()
            self.request_shutdown(reason)

    def _install_signal_handlers(
        self, loop: asyncio.AbstractEventLoop,
    ) -> list[signal.Signals]:
        installed = []
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self.notify, sig.name)
            except (NotImplementedError, RuntimeError):
                logger.warning(
                    "cannot install signal handler", extra={"signal": sig.name},
                )
                continue
            installed.append(sig)
        return installed

    def _remove_signal_handlers(
        self, loop: asyncio.AbstractEventLoop, installed: list[signal.Signals],
    ) -> None:
        for sig in installed:
            loop.remove_signal_handler(sig)
