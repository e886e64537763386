import json
from uuid import uuid4

import httpx
import pytest

from cs2logs.client import CS2LogsClient


class Recorder:
    """Mock transport handler that records requests and answers with canned JSON."""

    def __init__(self, payload=None, status_code: int = 200, text: str | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.payload = payload if payload is not None else {}
        self.status_code = status_code
        self.text = text

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)


def _client(recorder: Recorder) -> CS2LogsClient:
    return CS2LogsClient("http://cs2logs.test/", transport=httpx.MockTransport(recorder))


async def test_parse_test_posts_logs() -> None:
    recorder = Recorder({"total_lines": 1, "parsed_count": 1, "failed_count": 0, "results": []})
    async with _client(recorder) as client:
        result = await client.parse_test('World triggered "Round_Start"')

    assert result["parsed_count"] == 1
    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url == "http://cs2logs.test/api/parse-test"
    assert json.loads(request.content) == {"logs": 'World triggered "Round_Start"'}


async def test_push_logs_sends_plain_text_and_key() -> None:
    server_id = uuid4()
    recorder = Recorder({"received": True})
    async with _client(recorder) as client:
        await client.push_logs(server_id, "line one\nline two", key="secret")

    request = recorder.requests[0]
    assert request.url.path == f"/logs/{server_id}"
    assert request.url.params["key"] == "secret"
    assert request.headers["content-type"] == "text/plain"
    assert request.content == b"line one\nline two"


async def test_list_logs_maps_filters_to_query_params() -> None:
    server_id = uuid4()
    recorder = Recorder({"items": [], "total": 0, "limit": 10, "offset": 10})
    async with _client(recorder) as client:
        await client.list_logs("failed", page=2, page_size=10, server_id=server_id)

    params = recorder.requests[0].url.params
    assert recorder.requests[0].url.path == "/api/logs/failed"
    assert params["currentPage"] == "2"
    assert params["pageSize"] == "10"
    assert params["serverId"] == str(server_id)
    assert "eventType" not in params


async def test_download_returns_text() -> None:
    recorder = Recorder(text="[2025-08-19T15:12:44+00:00] abc: hello\n")
    async with _client(recorder) as client:
        text = await client.download_logs("parsed")

    assert text.startswith("[2025-08-19")
    assert recorder.requests[0].url.params["type"] == "parsed"


async def test_error_status_raises() -> None:
    recorder = Recorder({"status_code": 400, "detail": "bad"}, status_code=400)
    async with _client(recorder) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.parse_test("")


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("event_types", "/api/logs/event-types"),
        ("servers", "/api/servers"),
        ("stats", "/api/stats"),
        ("health", "/health"),
        ("sessions", "/api/sessions"),
    ],
)
async def test_simple_getters(method: str, path: str) -> None:
    recorder = Recorder({"ok": True})
    async with _client(recorder) as client:
        await getattr(client, method)()

    assert recorder.requests[0].method == "GET"
    assert recorder.requests[0].url.path == path
