"""Tests for app wiring and logging helpers."""

from __future__ import annotations

import logging

from fastapi.testclient import TestClient

from scope.core.logging import RedactingFormatter, redact
from scope.main import __version__


def test_health(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}


def test_root(client: TestClient) -> None:
    assert client.get("/").json() == {"service": "scope", "version": __version__}


def test_cors_allows_local_ui(client: TestClient) -> None:
    resp = client.options(
        "/api/v1/chat",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )

    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_redact_masks_keys_and_bearer_tokens() -> None:
    text = "key=sk-abcdefghijklmnopqrstuvwxyz123 header=Bearer abc.def-ghi_123456"

    redacted = redact(text)

    assert "sk-abcdefghijklmnopqrstuvwxyz123" not in redacted
    assert "abc.def-ghi_123456" not in redacted
    assert redacted.count("***") == 2


def test_formatter_redacts_args() -> None:
    formatter = RedactingFormatter(fmt="%(message)s")
    record = logging.LogRecord(
        "scope", logging.INFO, __file__, 1, "using %s", ("sk-abcdefghijklmnopqrstuvwxyz123",), None
    )

    assert formatter.format(record) == "using ***"
