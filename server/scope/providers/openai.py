from __future__ import annotations
import logging
from typing import Any, AsyncIterator, Dict, List, Optional
import httpx

from scope.core.errors import UpstreamUnavailable, error_for_status
from scope.providers.base import UpstreamConfig
from scope.schemas.chat import ChatRequest, ModelInfo

logger = logging.getLogger(__name__)

WEB_SEARCH_HINT = (
    "Web search mode is on. Prefer current, verifiable information and cite sources when you can."
)
THINK_HARDER_HINT = "Think step by step and reason carefully before giving your final answer."

# Substrings that mark non-chat models in the provider's model list
NON_CHAT_MARKERS = ("instruct", "whisper", "tts", "embedding", "moderation")


def compose_messages(request: ChatRequest) -> List[Dict[str, str]]:
    """Wire messages for the provider, with mode flags folded into a leading system message."""
    hints = []
    if request.webSearch:
        hints.append(WEB_SEARCH_HINT)
    if request.thinkHarder:
        hints.append(THINK_HARDER_HINT)
    messages = [m.model_dump() for m in request.messages]
    if hints:
        messages.insert(0, {"role": "system", "content": "\n".join(hints)})
    return messages


def _model_sort_key(model: ModelInfo):
    return ("4o" not in model.id, "4" not in model.id, model.id)


class OpenAIProvider:
    id = "openai"

    def __init__(self, config: UpstreamConfig, client: httpx.AsyncClient) -> None:
        self.config = config
        self.client = client

    async def _send(self, request: httpx.Request) -> httpx.Response:
        try:
            resp = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning("[%s] %s %s failed: %s", self.id, request.method, request.url.path, e)
            raise UpstreamUnavailable() from e
        if not resp.is_success:
            # Provider bodies stay in the log; callers only see the mapped error
            body = await resp.aread()
            await resp.aclose()
            logger.warning(
                "[%s] %s %s -> %d: %s",
                self.id,
                request.method,
                request.url.path,
                resp.status_code,
                body.decode("utf-8", errors="ignore")[:500],
            )
            raise error_for_status(resp.status_code)
        return resp

    async def open_chat_stream(self, request: ChatRequest) -> httpx.Response:
        """Start a streamed completion and return the open response.

        The caller owns the returned response and must close it.
        """
        payload = {
            "model": self.config.model,
            "stream": True,
            "messages": compose_messages(request),
        }
        req = self.client.build_request("POST", "/chat/completions", json=payload)
        return await self._send(req)

    async def list_models(self) -> List[ModelInfo]:
        resp = await self._send(self.client.build_request("GET", "/models"))
        try:
            await resp.aread()
            data = resp.json().get("data", [])
        finally:
            await resp.aclose()
        models = [ModelInfo.model_validate(m) for m in data if isinstance(m, dict) and m.get("id")]
        chat_models = [
            m for m in models
            if "gpt" in m.id and not any(marker in m.id for marker in NON_CHAT_MARKERS)
        ]
        chat_models.sort(key=_model_sort_key)
        return chat_models

    async def transcribe(self, filename: str, data: bytes, content_type: Optional[str], model: str) -> str:
        files = {"file": (filename or "audio.webm", data, content_type or "application/octet-stream")}
        req = self.client.build_request("POST", "/audio/transcriptions", files=files, data={"model": model})
        resp = await self._send(req)
        try:
            await resp.aread()
            return resp.json().get("text") or ""
        finally:
            await resp.aclose()

    async def create_realtime_session(self, model: str, voice: str, transcription_model: str) -> Dict[str, Any]:
        body = {
            "model": model,
            "voice": voice,
            "input_audio_transcription": {"model": transcription_model},
            "modalities": ["audio", "text"],
        }
        req = self.client.build_request(
            "POST", "/realtime/sessions", json=body, headers={"OpenAI-Beta": "realtime=v1"}
        )
        resp = await self._send(req)
        try:
            await resp.aread()
            return resp.json()
        finally:
            await resp.aclose()


async def relay_body(response: httpx.Response, client: httpx.AsyncClient) -> AsyncIterator[bytes]:
    """Yield the upstream body chunk by chunk, then release the response and client.

    Body closure ends the relay normally. A transport error mid-stream is logged
    and re-raised so the server aborts the chunked body instead of terminating it
    cleanly; the caller then sees a broken connection rather than a short reply.
    """
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.HTTPError as e:
        logger.warning("Upstream stream interrupted: %s", e)
        raise
    finally:
        await response.aclose()
        await client.aclose()
