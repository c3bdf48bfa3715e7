"""Server Entry Point — config, logging, socket bind, and supervised uvicorn run.

Invariants:
    - Invalid config or a failed bind exits with code 1 before serving anything
    - The listen socket is bound here, so bind errors surface as FatalStartupError
    - Signals belong to ShutdownCoordinator, never to uvicorn
    - Exit code 0 only after a clean drain; a forced shutdown exits 1

Design Decisions:
    - uvicorn.Server driven through serve(sockets=...) with signal capture disabled:
      the coordinator owns the termination state machine and the grace period
    - log_config=None: uvicorn logs through the root JSON handler from setup_logging()
"""

import asyncio
import logging
import socket
from contextlib import contextmanager

import uvicorn
from fastapi import FastAPI

from process_api.config import Settings, load_settings
from process_api.core.errors import FatalShutdownError, FatalStartupError
from process_api.infrastructure.observability import log_error, setup_logging
from process_api.main import create_app
from process_api.services.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 2048


class CoordinatedServer(uvicorn.Server):
    """uvicorn server whose termination signals are handled by the coordinator."""

    @contextmanager
    def capture_signals(self):
        yield


def bind_listener(host: str, port: int) -> socket.socket:
    """Bind and listen on host:port, mapping OS errors to FatalStartupError."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
        sock.listen(LISTEN_BACKLOG)
    except OSError as e:
        sock.close()
        raise FatalStartupError(f"cannot listen on {host}:{port}: {e}") from e
    return sock


def build_server(app: FastAPI) -> CoordinatedServer:
    config = uvicorn.Config(
        app, log_config=None, access_log=False, lifespan="on",
    )
    return CoordinatedServer(config)


async def serve(settings: Settings, app: FastAPI | None = None) -> None:
    """Serve until a termination signal, then drain within shutdown_timeout."""
    sock = bind_listener(settings.listen_host, settings.listen_port)
    server = build_server(app or create_app(settings))
    coordinator = ShutdownCoordinator(
        server, settings.shutdown_timeout, sockets=[sock],
    )
    logger.info("server listening", extra={"addr": settings.http_addr})
    try:
        await coordinator.run()
    finally:
        sock.close()


def main() -> int:
    """Run the service; returns the process exit code."""
    try:
        settings = load_settings()
    except FatalStartupError as e:
        setup_logging()
        log_error(logger, e, "invalid config")
        return 1

    setup_logging(settings.log_level, settings.log_format)
    try:
        asyncio.run(serve(settings))
    except FatalStartupError as e:
        log_error(logger, e, "server failed")
        return 1
    except FatalShutdownError as e:
        log_error(logger, e, "server shutdown error")
        return 1
    return 0
