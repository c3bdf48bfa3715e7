"""Error Handlers and Middleware — uniform JSON errors and bounded writes.

Invariants:
    - ProcessApiError escaping a route renders {"error": public_message}
    - WriteTimeoutMiddleware bounds each send; 0 disables the bound
"""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from process_api.api.middleware import WriteTimeoutMiddleware
from process_api.config import Settings
from process_api.core.errors import ExecutionCancelledError, InvalidPayloadError
from process_api.main import create_app


@pytest.fixture
async def raising_client():
    app = create_app(Settings(_env_file=None))

    async def bad_input():
        raise InvalidPayloadError("raw parser message")

    async def cancelled():
        raise ExecutionCancelledError()

    app.add_api_route("/raise/bad-input", bad_input)
    app.add_api_route("/raise/cancelled", cancelled)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


async def test_domain_error_renders_public_message(raising_client):
    res = await raising_client.get("/raise/bad-input")
    assert res.status_code == 400
    assert res.json() == {"error": "invalid json"}
    assert "raw parser" not in res.text


async def test_cancelled_error_renders_timeout(raising_client):
    res = await raising_client.get("/raise/cancelled")
    assert res.status_code == 504
    assert res.json() == {"error": "timeout"}


# ==============================================================================
# WriteTimeoutMiddleware
# ==============================================================================


async def _app(scope, receive, send):
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"ok"})


async def test_send_within_timeout_passes_through():
    sent = []

    async def send(message):
        sent.append(message["type"])

    await WriteTimeoutMiddleware(_app, timeout=1)({"type": "http"}, None, send)
    assert sent == ["http.response.start", "http.response.body"]


async def test_stalled_send_times_out():
    async def stalled_send(message):
        await asyncio.sleep(10)

    with pytest.raises(asyncio.TimeoutError):
        await WriteTimeoutMiddleware(_app, timeout=0.02)(
            {"type": "http"}, None, stalled_send,
        )


async def test_zero_timeout_disables_bound():
    calls = []

    async def slow_send(message):
        await asyncio.sleep(0.01)
        calls.append(message["type"])

    await WriteTimeoutMiddleware(_app, timeout=0)({"type": "http"}, None, slow_send)
    assert len(calls) == 2
