from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import httpx

from scope.config import Settings
from scope.core.errors import ConfigurationError
from scope.db import queries
from scope.db.session import get_session

# Settings store keys written by the UI
OPENAI_KEY_SETTING = "openai-key"
SELECTED_MODEL_SETTING = "selected-model"


@dataclass(frozen=True)
class UpstreamConfig:
    """Provider configuration resolved once per request."""

    api_key: str
    base_url: str
    model: str


async def resolve_upstream_config(settings: Settings, requested_model: Optional[str] = None) -> UpstreamConfig:
    """Resolve credential and model: stored setting first, then process settings.

    Raises ConfigurationError when no credential is available anywhere.
    """
    async with get_session() as session:
        stored_key = await queries.get_setting(session, OPENAI_KEY_SETTING)
        stored_model = None if requested_model else await queries.get_setting(session, SELECTED_MODEL_SETTING)

    api_key = (stored_key or "").strip() or settings.openai_api_key
    if not api_key:
        raise ConfigurationError()
    model = requested_model or stored_model or settings.default_model
    return UpstreamConfig(api_key=api_key, base_url=settings.openai_base_url, model=model)


def build_upstream_client(
    settings: Settings,
    config: UpstreamConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    timeout = httpx.Timeout(
        connect=settings.upstream_connect_timeout,
        read=settings.upstream_read_timeout,
        write=30.0,
        pool=10.0,
    )
    return httpx.AsyncClient(
        base_url=config.base_url,
        timeout=timeout,
        trust_env=True,
        transport=transport,
        headers={"Authorization": f"Bearer {config.api_key}"},
    )
