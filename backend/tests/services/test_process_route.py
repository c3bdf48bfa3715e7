"""Process Route — end-to-end HTTP behaviour of GET/POST /process.

Invariants:
    - POST {"payload": "abc"} → 200 processed:abc; echo=true → 200 abc
    - Malformed bodies → 400 {"error": "invalid json"}, executor never called
    - `null` bodies and `null` fields use the defaults
    - Zero request timeout → 504 {"error": "timeout"}
    - A client disconnect mid-execution cancels the work → 504
    - Executor failures → 500 {"error": "internal"} with no internal details
    - Exactly one lifecycle end event per request, status matching the response
    - Unsupported methods → 405 without touching the pipeline

Design Decisions:
    - RecordingObserver (from conftest) instead of log scraping for event counts;
      one test checks the real logging observer through caplog
"""

import asyncio
import logging

import pytest

from process_api.config import Settings
from process_api.main import create_app

from tests.services.doubles import FailingExecutor, SlowExecutor


def _http_scope(method, path):
    return {
        "type": "http", "asgi": {"version": "3.0"}, "http_version": "1.1",
        "method": method, "scheme": "http", "path": path,
        "raw_path": path.encode(), "root_path": "", "query_string": b"",
        "headers": [(b"host", b"test"), (b"content-type", b"application/json")],
        "client": ("127.0.0.1", 50000), "server": ("test", 80),
    }


# ==============================================================================
# Success
# ==============================================================================


async def test_post_transforms_payload(client):
    res = await client.post("/process", json={"payload": "abc"})

    assert res.status_code == 200
    assert res.headers["content-type"] == "application/json"
    body = res.json()
    assert body["result"] == "processed:abc"
    assert isinstance(body["processed_at_unix"], int)
    assert set(body) == {"result", "processed_at_unix"}


async def test_post_echo_returns_payload(client):
    res = await client.post("/process", json={"payload": "abc", "echo": True})
    assert res.status_code == 200
    assert res.json()["result"] == "abc"


async def test_post_empty_payload_uses_default(client):
    res = await client.post("/process", json={"payload": ""})
    assert res.json()["result"] == "processed:hello"


@pytest.mark.parametrize("body", [b"null", b'{"payload": null}'])
async def test_null_body_or_field_uses_defaults(client, body):
    res = await client.post(
        "/process", content=body, headers={"content-type": "application/json"},
    )
    assert res.status_code == 200
    assert res.json()["result"] == "processed:hello"


async def test_get_behaves_like_post_with_defaults(client):
    res = await client.get("/process")
    assert res.status_code == 200
    assert res.json()["result"] == "processed:hello"


async def test_repeated_identical_posts(client):
    first = await client.post("/process", json={"payload": "same"})
    second = await client.post("/process", json={"payload": "same"})

    assert first.json()["result"] == second.json()["result"]
    assert second.json()["processed_at_unix"] >= first.json()["processed_at_unix"]


async def test_get_and_post_both_count_as_executions(make_client):
    executor = SlowExecutor(delay=0)
    async with make_client(executor=executor) as c:
        await c.get("/process")
        await c.post("/process", json={"payload": "abc"})
    assert executor.counter.value == 2


# ==============================================================================
# Client errors
# ==============================================================================


@pytest.mark.parametrize("body", [
    b"not-json", b"", b"[1, 2]", b'{"payload": 1}', b'{"echo": "yes"}',
])
async def test_malformed_body_is_400(make_client, body):
    executor = FailingExecutor(RuntimeError("must not run"))
    async with make_client(executor=executor) as c:
        res = await c.post(
            "/process", content=body, headers={"content-type": "application/json"},
        )

    assert res.status_code == 400
    assert res.json() == {"error": "invalid json"}
    assert executor.calls == 0


@pytest.mark.parametrize("method", ["PUT", "DELETE", "PATCH"])
async def test_unsupported_method_is_405(client, observer, method):
    res = await client.request(method, "/process")

    assert res.status_code == 405
    assert res.json() == {"error": "method not allowed"}
    assert "POST" in res.headers["allow"]
    assert observer.events == []


async def test_unknown_path_is_404(client):
    res = await client.get("/nope")
    assert res.status_code == 404
    assert res.json() == {"error": "not found"}


# ==============================================================================
# Timeouts and failures
# ==============================================================================


async def test_zero_request_timeout_is_504(make_client):
    async with make_client(request_timeout=0) as c:
        res = await c.post("/process", json={"payload": "abc"})
    assert res.status_code == 504
    assert res.json() == {"error": "timeout"}


async def test_slow_executor_past_deadline_is_504(make_client):
    executor = SlowExecutor(delay=5)
    async with make_client(executor=executor, request_timeout=0.05) as c:
        res = await c.post("/process", json={"payload": "abc"})
    assert res.status_code == 504
    assert executor.cancelled


async def test_slow_body_past_read_timeout_is_504(make_client):
    async def slow_body():
        await asyncio.sleep(1)
        yield b'{"payload": "abc"}'

    async with make_client(http_read_timeout=0.05) as c:
        res = await c.post("/process", content=slow_body())
    assert res.status_code == 504
    assert res.json() == {"error": "timeout"}


async def test_client_disconnect_mid_execution_is_504(observer):
    executor = SlowExecutor(delay=5)
    app = create_app(
        Settings(_env_file=None), executor=executor, observer=observer,
    )
    inbox: asyncio.Queue = asyncio.Queue()
    await inbox.put({
        "type": "http.request", "body": b'{"payload": "abc"}', "more_body": False,
    })
    sent = []

    async def send(message):
        sent.append(message)

    call = asyncio.create_task(app(_http_scope("POST", "/process"), inbox.get, send))
    await asyncio.wait_for(executor.started.wait(), timeout=2)
    await inbox.put({"type": "http.disconnect"})
    await asyncio.wait_for(call, timeout=2)

    assert executor.cancelled
    assert executor.counter.value == 0
    assert sent[0]["status"] == 504
    assert [e[4] for e in observer.ends] == [504]


async def test_executor_failure_is_500_without_details(make_client):
    executor = FailingExecutor(RuntimeError("secret stack detail"))
    async with make_client(executor=executor) as c:
        res = await c.post("/process", json={"payload": "abc"})

    assert res.status_code == 500
    assert res.json() == {"error": "internal"}
    assert "secret" not in res.text


# ==============================================================================
# Lifecycle events
# ==============================================================================


@pytest.mark.parametrize("settings, kwargs, expected", [
    ({}, {"json": {"payload": "abc"}}, 200),
    ({}, {"content": b"not-json"}, 400),
    ({"request_timeout": 0}, {"json": {"payload": "abc"}}, 504),
])
async def test_exactly_one_end_event_matching_status(
    make_client, observer, settings, kwargs, expected,
):
    async with make_client(**settings) as c:
        res = await c.post("/process", **kwargs)

    assert res.status_code == expected
    assert [e[0] for e in observer.events] == ["start", "end"]
    assert observer.ends[0][4] == expected


async def test_end_event_for_internal_error(make_client, observer):
    async with make_client(executor=FailingExecutor(RuntimeError("x"))) as c:
        await c.post("/process", json={"payload": "abc"})
    assert [e[4] for e in observer.ends] == [500]


async def test_request_id_header_reaches_events_only(client, observer):
    res = await client.post(
        "/process", json={"payload": "abc"}, headers={"X-Request-ID": "corr-42"},
    )
    assert observer.starts == [("start", "POST", "/process", "corr-42")]
    assert "corr-42" not in res.text


async def test_missing_request_id_is_none(client, observer):
    await client.get("/process")
    assert observer.starts == [("start", "GET", "/process", "none")]


async def test_concurrent_requests_each_get_one_end_event(make_client, observer):
    executor = SlowExecutor(delay=0.02)
    async with make_client(executor=executor) as c:
        responses = await asyncio.gather(*(
            c.post("/process", json={"payload": str(i)}) for i in range(20)
        ))

    assert all(r.status_code == 200 for r in responses)
    assert len(observer.starts) == 20
    assert len(observer.ends) == 20
    assert executor.counter.value == 20


async def test_logging_observer_writes_start_and_end(caplog):
    from httpx import ASGITransport, AsyncClient

    caplog.set_level(logging.INFO, logger="process_api.requests")
    app = create_app(Settings(_env_file=None))
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        await c.post("/process", json={"payload": "abc"}, headers={"X-Request-ID": "r1"})

    records = [r for r in caplog.records if r.name == "process_api.requests"]
    assert [r.getMessage() for r in records] == ["request start", "request end"]
    end = records[1]
    assert end.status == 200
    assert end.request_id == "r1"
    assert end.duration_ms >= 0
