"""Tests for the streaming chat relay endpoint."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from scope.core.errors import (
    UpstreamAuthError,
    UpstreamBadRequest,
    UpstreamRateLimited,
    UpstreamServerError,
    error_for_status,
)
from scope.main import create_app
from scope.providers.openai import THINK_HARDER_HINT, WEB_SEARCH_HINT
from tests.mocks.upstream import SSE_DONE, ChunkStream, FakeUpstream, sse_event

CHAT_URL = "/api/v1/chat"
MESSAGES = [{"role": "user", "content": "Say hello"}]


def test_streams_upstream_body_verbatim(client: TestClient, upstream: FakeUpstream) -> None:
    """The relayed body is byte-identical to the upstream SSE body."""
    chunks = [sse_event("Hel")[:10], sse_event("Hel")[10:] + sse_event("lo"), SSE_DONE]
    stream = ChunkStream(chunks)
    upstream.handler = lambda request: httpx.Response(200, stream=stream)

    resp = client.post(CHAT_URL, json={"messages": MESSAGES})

    assert resp.status_code == 200
    assert resp.content == b"".join(chunks)
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["cache-control"] == "no-cache, no-transform"
    assert stream.closed


def test_upstream_request_shape(client: TestClient, upstream: FakeUpstream) -> None:
    client.post(CHAT_URL, json={"messages": MESSAGES})

    request = upstream.requests[-1]
    assert request.method == "POST"
    assert str(request.url) == "https://upstream.test/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-env-default"
    assert upstream.last_json == {"model": "gpt-4o-mini", "stream": True, "messages": MESSAGES}


def test_mode_flags_become_leading_system_message(client: TestClient, upstream: FakeUpstream) -> None:
    client.post(CHAT_URL, json={"messages": MESSAGES, "webSearch": True, "thinkHarder": True})

    sent = upstream.last_json["messages"]
    assert sent[0] == {"role": "system", "content": f"{WEB_SEARCH_HINT}\n{THINK_HARDER_HINT}"}
    assert sent[1:] == MESSAGES


def test_single_mode_flag(client: TestClient, upstream: FakeUpstream) -> None:
    client.post(CHAT_URL, json={"messages": MESSAGES, "thinkHarder": True})

    assert upstream.last_json["messages"][0] == {"role": "system", "content": THINK_HARDER_HINT}


def test_model_resolution_order(client: TestClient, upstream: FakeUpstream) -> None:
    client.post(CHAT_URL, json={"messages": MESSAGES})
    assert upstream.last_json["model"] == "gpt-4o-mini"

    client.post("/api/v1/settings/selected-model", json={"value": "gpt-4o"})
    client.post(CHAT_URL, json={"messages": MESSAGES})
    assert upstream.last_json["model"] == "gpt-4o"

    client.post(CHAT_URL, json={"messages": MESSAGES, "model": "gpt-4.1"})
    assert upstream.last_json["model"] == "gpt-4.1"


def test_stored_credential_takes_priority(client: TestClient, upstream: FakeUpstream) -> None:
    client.post("/api/v1/settings/openai-key", json={"value": "sk-user-stored"})

    client.post(CHAT_URL, json={"messages": MESSAGES})

    assert upstream.requests[-1].headers["authorization"] == "Bearer sk-user-stored"


def test_missing_credential_returns_503_without_upstream_call(settings, upstream: FakeUpstream) -> None:
    settings.openai_api_key = None
    app = create_app(settings, transport=httpx.MockTransport(upstream))
    with TestClient(app) as client:
        resp = client.post(CHAT_URL, json={"messages": MESSAGES})

    assert resp.status_code == 503
    assert "API key" in resp.json()["error"]
    assert upstream.requests == []


@pytest.mark.parametrize(
    ("upstream_status", "expected_status"),
    [(401, 503), (429, 429), (500, 503), (502, 503), (400, 400), (404, 400)],
)
def test_upstream_status_mapping(
    client: TestClient,
    upstream: FakeUpstream,
    upstream_status: int,
    expected_status: int,
) -> None:
    upstream.handler = lambda request: httpx.Response(
        upstream_status, json={"error": {"message": "Incorrect API key provided: sk-leaky"}}
    )

    resp = client.post(CHAT_URL, json={"messages": MESSAGES})

    assert resp.status_code == expected_status
    assert resp.headers["content-type"].startswith("application/json")
    assert "sk-leaky" not in resp.text
    assert "data:" not in resp.text


def test_rate_limited_has_no_stream_body(client: TestClient, upstream: FakeUpstream) -> None:
    upstream.handler = lambda request: httpx.Response(429, text="slow down")

    resp = client.post(CHAT_URL, json={"messages": MESSAGES})

    assert resp.status_code == 429
    assert resp.json() == {"error": UpstreamRateLimited.default_message}


def test_network_failure_is_internal_error(client: TestClient, upstream: FakeUpstream) -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = fail

    resp = client.post(CHAT_URL, json={"messages": MESSAGES})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Upstream request failed"}


def test_interrupted_upstream_aborts_stream(client: TestClient, upstream: FakeUpstream) -> None:
    """A mid-stream upstream failure breaks the relayed body instead of ending it cleanly."""
    stream = ChunkStream([sse_event("Hel")], error=httpx.ReadError("reset by peer"))
    upstream.handler = lambda request: httpx.Response(200, stream=stream)

    with pytest.raises(httpx.ReadError):
        client.post(CHAT_URL, json={"messages": MESSAGES})

    assert stream.closed


def test_unexpected_failure_uses_error_body(client: TestClient, upstream: FakeUpstream) -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("boom")

    upstream.handler = fail

    resp = client.post(CHAT_URL, json={"messages": MESSAGES})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"{}",
        b'{"messages": []}',
        b'{"messages": [{"role": "wizard", "content": "hi"}]}',
    ],
)
def test_malformed_body_is_400(client: TestClient, upstream: FakeUpstream, body: bytes) -> None:
    resp = client.post(CHAT_URL, content=body, headers={"content-type": "application/json"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Malformed request body"}
    assert upstream.requests == []


@pytest.mark.parametrize(
    ("status", "error_type"),
    [
        (401, UpstreamAuthError),
        (429, UpstreamRateLimited),
        (500, UpstreamServerError),
        (503, UpstreamServerError),
        (403, UpstreamBadRequest),
        (422, UpstreamBadRequest),
    ],
)
def test_error_for_status(status: int, error_type: type) -> None:
    err = error_for_status(status)
    assert isinstance(err, error_type)
    assert err.upstream_status == status
