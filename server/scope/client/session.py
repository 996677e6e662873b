"""
Chat turn orchestration against a running Scope server.

``ChatClient.send`` plays the browser's part of a turn: persist the user
message, call the relay, decode the stream into deltas and commit them into
an assistant placeholder at a bounded rate.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from scope.client.decoder import StreamDecoder
from scope.client.errors import ChatStreamError
from scope.client.render import FRAME_INTERVAL, RenderAccumulator
from scope.schemas.chat import ChatMessage
from scope.schemas.conversations import ConversationDetail, ConversationOut

logger = logging.getLogger(__name__)

CONNECTION_LOST_NOTICE = "⚠️ Connection lost. Please try again."
TITLE_LENGTH = 32


class ChatClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_prefix: str = "/api/v1",
        model: Optional[str] = None,
        web_search: bool = False,
        think_harder: bool = False,
        on_update: Optional[Callable[[List[ChatMessage]], None]] = None,
        frame_interval: float = FRAME_INTERVAL,
    ) -> None:
        self.client = client
        self.api_prefix = api_prefix.rstrip("/")
        self.model = model
        self.web_search = web_search
        self.think_harder = think_harder
        self.on_update = on_update
        self.frame_interval = frame_interval
        self.messages: List[ChatMessage] = []
        self.conversation_id: Optional[str] = None
        self.loading = False
        self._aborted = False

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}{path}"

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.messages)

    # Conversations
    async def list_conversations(self) -> List[ConversationOut]:
        resp = await self.client.get(self._url("/conversations"))
        resp.raise_for_status()
        return [ConversationOut.model_validate(c) for c in resp.json()]

    async def new_conversation(self, title: str = "New Chat") -> str:
        resp = await self.client.post(self._url("/conversations"), json={"title": title})
        resp.raise_for_status()
        self.conversation_id = resp.json()["id"]
        self.messages = []
        self._notify()
        return self.conversation_id

    async def open_conversation(self, conversation_id: str) -> List[ChatMessage]:
        resp = await self.client.get(self._url(f"/conversations/{conversation_id}"))
        resp.raise_for_status()
        detail = ConversationDetail.model_validate(resp.json())
        self.conversation_id = conversation_id
        self.messages = [ChatMessage(role=m.role, content=m.content) for m in detail.messages]
        self._notify()
        return self.messages

    async def _save_message(self, role: str, content: str) -> None:
        try:
            resp = await self.client.post(
                self._url(f"/conversations/{self.conversation_id}/messages"),
                json={"role": role, "content": content},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            # History is best effort; the visible conversation is unaffected
            logger.error("Failed to save %s message: %s", role, e)

    # Settings
    async def get_setting(self, key: str) -> Optional[str]:
        resp = await self.client.get(self._url(f"/settings/{key}"))
        resp.raise_for_status()
        return resp.json().get("value")

    async def set_setting(self, key: str, value: str) -> None:
        resp = await self.client.post(self._url(f"/settings/{key}"), json={"value": value})
        resp.raise_for_status()

    # Streaming turn
    def abort(self) -> None:
        """Stop the in-flight turn at the next chunk or delta, keeping what arrived.

        A read that is stalled waiting on the network only returns when bytes
        arrive; cancel the task running ``send`` to end it immediately.
        """
        self._aborted = True

    async def _chunks(self, resp: httpx.Response):
        async for chunk in resp.aiter_bytes():
            if self._aborted:
                return
            yield chunk

    def _commit(self, content: str) -> None:
        self.messages[-1].content = content
        self._notify()

    def _payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "messages": [m.model_dump() for m in self.messages],
            "webSearch": self.web_search,
            "thinkHarder": self.think_harder,
        }
        if self.model:
            payload["model"] = self.model
        return payload

    async def send(self, text: str) -> Optional[str]:
        """Run one chat turn; return the final assistant content, or None on failure."""
        text = text.strip()
        if not text or self.loading:
            return None

        if self.conversation_id is None:
            await self.new_conversation(text[:TITLE_LENGTH])

        self.messages.append(ChatMessage(role="user", content=text))
        self._notify()
        self.loading = True
        self._aborted = False
        await self._save_message("user", text)

        try:
            content = await self._stream_turn()
        except (httpx.HTTPError, ChatStreamError) as e:
            logger.warning("Chat turn failed: %s", e)
            self.messages.append(ChatMessage(role="assistant", content=CONNECTION_LOST_NOTICE))
            self._notify()
            return None
        finally:
            self.loading = False

        if content:
            await self._save_message("assistant", content)
        return content

    async def _stream_turn(self) -> str:
        async with self.client.stream("POST", self._url("/chat"), json=self._payload()) as resp:
            if not resp.is_success:
                body = await resp.aread()
                message = None
                try:
                    message = resp.json().get("error")
                except ValueError:
                    message = body.decode("utf-8", errors="ignore") or None
                raise ChatStreamError(resp.status_code, message)

            self.messages.append(ChatMessage(role="assistant", content=""))
            self._notify()
            accumulator = RenderAccumulator(self._commit, interval=self.frame_interval)
            deltas = StreamDecoder().decode(self._chunks(resp))
            return await accumulator.consume(deltas, should_stop=lambda: self._aborted)
