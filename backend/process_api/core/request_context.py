"""Request Context — identity and ambient cancellation for one inbound call.

Invariants:
    - request_id is the caller-supplied correlation id, or DEFAULT_REQUEST_ID
    - The ambient scope has no deadline; only client disconnect cancels it
    - Owned by a single handling flow; never shared across requests
"""

import time
from dataclasses import dataclass, field

from process_api.core.cancel_scope import CancelScope
from process_api.core.domain_types import DEFAULT_REQUEST_ID, RequestId


@dataclass
class RequestContext:
    method: str
    path: str
    request_id: RequestId = DEFAULT_REQUEST_ID
    scope: CancelScope = field(default_factory=CancelScope)
    started_at: float = field(default_factory=time.monotonic)

    @classmethod
    def create(cls, method: str, path: str, request_id: str | None) -> "RequestContext":
        """Build a context, falling back to the sentinel id when none was supplied."""
        return cls(
            method=method,
            path=path,
            request_id=RequestId(request_id) if request_id else DEFAULT_REQUEST_ID,
        )

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)
