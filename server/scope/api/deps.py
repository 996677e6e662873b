from __future__ import annotations
from typing import Optional
import httpx
from fastapi import Request

from scope.config import Settings
from scope.providers.base import build_upstream_client, resolve_upstream_config
from scope.providers.openai import OpenAIProvider


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_upstream_transport(request: Request) -> Optional[httpx.AsyncBaseTransport]:
    # Tests install an httpx.MockTransport here; production uses the default transport
    return getattr(request.app.state, "upstream_transport", None)


async def open_provider(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport],
    model: Optional[str] = None,
) -> OpenAIProvider:
    """Resolve the per-request upstream config and bind a fresh client to it.

    The caller closes ``provider.client``.
    """
    config = await resolve_upstream_config(settings, model)
    return OpenAIProvider(config, build_upstream_client(settings, config, transport))
