"""Process API — FastAPI application factory.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - /health is independent of the pipeline; /process goes through it
    - Global error handlers map every failure to a single-field JSON error body
    - The executor is injectable: anything implementing WorkExecutor

Design Decisions:
    - create_app() factory over a module-level app: settings and collaborators are
      passed in, so tests build isolated apps with doubles
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from process_api.api.error_handlers import register_error_handlers
from process_api.api.middleware import WriteTimeoutMiddleware
from process_api.api.routes import health, process
from process_api.config import Settings, get_settings
from process_api.core.protocols import LifecycleObserver, WorkExecutor
from process_api.infrastructure.observability import LoggingLifecycleObserver
from process_api.services.pipeline import RequestPipeline
from process_api.services.process_service import ProcessService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logger.info("Process API started")
    yield
    counter = getattr(app.state.executor, "counter", None)
    logger.info(
        "Process API shutting down",
        extra={"executions": counter.value if counter is not None else None},
    )


def create_app(
    settings: Settings | None = None,
    executor: WorkExecutor | None = None,
    observer: LifecycleObserver | None = None,
) -> FastAPI:
    """Build the FastAPI app with its pipeline collaborators wired in."""
    settings = settings or get_settings()
    app = FastAPI(title="Process API", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.executor = executor or ProcessService()
    app.state.pipeline = RequestPipeline(
        executor=app.state.executor,
        observer=observer or LoggingLifecycleObserver(),
        request_timeout=settings.request_timeout,
    )

    app.add_middleware(
        WriteTimeoutMiddleware, timeout=settings.http_write_timeout,
    )

    # Routes: explicit registration
    app.include_router(health.router)
    app.include_router(process.router)

    register_error_handlers(app)
    return app
