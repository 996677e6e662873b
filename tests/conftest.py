"""Shared test fixtures and configuration."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scope.config import Settings
from scope.main import create_app
from tests.mocks.upstream import FakeUpstream

UPSTREAM_BASE_URL = "https://upstream.test/v1"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Set default timeout for all tests."""
    for item in items:
        with contextlib.suppress(AttributeError):
            item.add_marker(pytest.mark.timeout(10))


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'scope.db'}",
        openai_api_key="sk-env-default",
        openai_base_url=UPSTREAM_BASE_URL,
        default_model="gpt-4o-mini",
    )


@pytest.fixture
def app(settings: Settings, upstream: FakeUpstream) -> FastAPI:
    return create_app(settings, transport=httpx.MockTransport(upstream))


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as c:
        yield c
