from typing import Optional
import logging
import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from scope.api.deps import get_app_settings, get_upstream_transport, open_provider
from scope.config import Settings
from scope.core.errors import ScopeError
from scope.providers.openai import relay_body
from scope.schemas.chat import ChatRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/chat")
async def stream_chat(
    request: ChatRequest,
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
):
    """Relay a streamed chat completion from the provider without re-framing it."""
    provider = await open_provider(settings, transport, request.model)
    logger.info("/chat start model=%s messages=%d", provider.config.model, len(request.messages))
    try:
        upstream = await provider.open_chat_stream(request)
    except ScopeError:
        await provider.client.aclose()
        raise
    except Exception as e:
        await provider.client.aclose()
        logger.exception("/chat error model=%s: %s", provider.config.model, e)
        raise ScopeError() from e

    return StreamingResponse(
        relay_body(upstream, provider.client),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "Connection": "keep-alive",
        },
    )
