"""Process Route — HTTP boundary of the request execution pipeline.

Invariants:
    - Only GET and POST reach the pipeline; other methods get 405 from the router
    - POST bodies are decoded before any deadline is bound; decode failures are BAD_INPUT
    - GET skips decoding and runs with default input (and still counts as an execution)
    - Body reads are bounded by the read timeout; expiry is TIMEOUT
    - A client disconnect before or during execution cancels the ambient scope
      (cause CANCELLED), which cancels the derived deadline scope and the work
    - The disconnect watcher is an owned task, cancelled and joined before the
      response is written
    - The lifecycle end status equals the status written to the response

Design Decisions:
    - Raw body + ProcessRequest.decode instead of a FastAPI body parameter:
      malformed JSON must map to {"error": "invalid json"}, not a 422 validation envelope
    - X-Request-ID only feeds log events, never the response body
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from process_api.config import Settings
from process_api.core.domain_types import CancelCause, REQUEST_ID_HEADER
from process_api.core.errors import ExecutionCancelledError, InvalidPayloadError
from process_api.core.outcome import Classification, classify, classify_bad_input
from process_api.core.request_context import RequestContext
from process_api.core.work import WorkInput
from process_api.infrastructure.observability import log_error
from process_api.schemas.process import (
    ErrorResponse, ProcessRequest, ProcessResponse,
)
from process_api.services.pipeline import RequestPipeline

logger = logging.getLogger(__name__)
router = APIRouter(tags=["process"])


def get_pipeline(request: Request) -> RequestPipeline:
    return request.app.state.pipeline


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.api_route(
    "/process",
    methods=["GET", "POST"],
    response_model=ProcessResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def process(
    request: Request,
    pipeline: RequestPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_app_settings),
):
    """Run one unit of work. GET behaves like POST with an empty payload."""
    ctx = RequestContext.create(
        request.method, request.url.path, request.headers.get(REQUEST_ID_HEADER),
    )
    with pipeline.observe(ctx) as timing:
        classification = await _handle(request, ctx, pipeline, settings)
        timing.status = classification.status
        return JSONResponse(
            status_code=classification.status,
            content=_encode(classification),
        )


async def _handle(
    request: Request,
    ctx: RequestContext,
    pipeline: RequestPipeline,
    settings: Settings,
) -> Classification:
    try:
        work = await _read_work_input(request, settings.http_read_timeout)
    except InvalidPayloadError as e:
        log_error(logger, e, "decode request body", request_id=ctx.request_id)
        return classify_bad_input()
    except asyncio.TimeoutError:
        ctx.scope.cancel(CancelCause.DEADLINE_EXCEEDED)
        err = ExecutionCancelledError(ctx.scope.cause)
        log_error(logger, err, "request body read timeout", request_id=ctx.request_id)
        return classify(None, err, ctx.scope)

    if await request.is_disconnected():
        ctx.scope.cancel(CancelCause.CANCELLED)
    async with _cancel_on_disconnect(request, ctx):
        return await pipeline.run(ctx, work)


@asynccontextmanager
async def _cancel_on_disconnect(
    request: Request, ctx: RequestContext,
) -> AsyncIterator[None]:
    """Cancel the ambient scope if the client disconnects while the block runs."""
    watcher = asyncio.create_task(
        _watch_disconnect(request, ctx), name="client-disconnect-watcher",
    )
    try:
        yield
    finally:
        watcher.cancel()
        await asyncio.wait({watcher})
        if not watcher.cancelled() and watcher.exception() is not None:
            log_error(
                logger, watcher.exception(), "disconnect watcher failed",
                request_id=ctx.request_id,
            )


async def _watch_disconnect(request: Request, ctx: RequestContext) -> None:
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            ctx.scope.cancel(CancelCause.CANCELLED)
            return


async def _read_work_input(request: Request, read_timeout: float) -> WorkInput:
    if request.method != "POST":
        return WorkInput()
    body = await asyncio.wait_for(request.body(), timeout=read_timeout or None)
    return ProcessRequest.decode(body)


def _encode(classification: Classification) -> dict:
    if classification.result is not None:
        return ProcessResponse.from_result(classification.result).model_dump()
    return ErrorResponse(error=classification.outcome.wire_error).model_dump()
