"""Request Pipeline — observe, bind a deadline, execute, classify.

Invariants:
    - observe() emits exactly one start and exactly one end event per request,
      start strictly before end, end from a finally block
    - The end status is whatever the handler finalized, or the escaping error's status
    - run() classifies every execution attempt into exactly one Outcome
    - Executor failures are contained in the request's classification

Design Decisions:
    - Completion hook as a context manager: end event fires on every exit path,
      including failures while encoding the response
    - Executor is any WorkExecutor (Protocol) so tests substitute slow or failing doubles
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from process_api.core.cancel_scope import bind_deadline
from process_api.core.domain_types import Outcome
from process_api.core.errors import ProcessApiError
from process_api.core.outcome import Classification, classify
from process_api.core.protocols import LifecycleObserver, WorkExecutor
from process_api.core.request_context import RequestContext
from process_api.core.work import WorkInput, apply_defaults
from process_api.infrastructure.observability import log_error

logger = logging.getLogger(__name__)


@dataclass
class RequestTiming:
    """Mutable status slot the handler fills before the end event fires."""
    status: int = 200


class RequestPipeline:
    """Runs one unit of work per request under a bounded deadline."""

    def __init__(
        self,
        executor: WorkExecutor,
        observer: LifecycleObserver,
        request_timeout: float,
    ):
        self.executor = executor
        self.observer = observer
        self.request_timeout = request_timeout

    @contextmanager
    def observe(self, ctx: RequestContext) -> Iterator[RequestTiming]:
        """Bracket a request with lifecycle events."""
        self.observer.on_start(ctx.method, ctx.path, ctx.request_id)
        timing = RequestTiming()
        try:
            yield timing
        except ProcessApiError as e:
            timing.status = e.http_status
            raise
        except Exception:
            timing.status = 500
            raise
        finally:
            self.observer.on_end(
                ctx.method, ctx.path, ctx.request_id,
                timing.status, ctx.elapsed_ms(),
            )

    async def run(self, ctx: RequestContext, work: WorkInput) -> Classification:
        """Execute `work` under the request's deadline and classify the result."""
        work = apply_defaults(work)
        with bind_deadline(ctx.scope, self.request_timeout) as scope:
            try:
                result = await scope.guard(self.executor.execute(scope, work))
            except Exception as e:
                classification = classify(None, e, scope)
                self._log_failure(ctx, e, classification)
                return classification
            return classify(result, None, scope)

    def _log_failure(
        self, ctx: RequestContext, err: Exception, classification: Classification,
    ) -> None:
        if classification.outcome is Outcome.TIMEOUT:
            log_error(
                logger, err, "request cancelled or timeout",
                request_id=ctx.request_id, cause=classification.cause,
            )
        else:
            log_error(logger, err, "process failed", request_id=ctx.request_id)
