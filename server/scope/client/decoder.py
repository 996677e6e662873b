"""
Incremental decoder for OpenAI-style chat completion streams.

Turns a raw byte stream (chunked at arbitrary boundaries) into the sequence of
text deltas carried in ``choices[0].delta.content``.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Iterator, Optional

logger = logging.getLogger(__name__)

EVENT_DELIMITER = "\n\n"
DATA_PREFIX = "data:"
TERMINATOR = "[DONE]"


class _Terminated(Exception):
    """Raised internally when the terminator line is reached."""


def extract_delta(payload: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` if it is a string, else None."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class StreamDecoder:
    """Decode one SSE byte stream into text deltas.

    A decoder instance is single-use: call :meth:`decode` once per stream.
    ``skipped_frames`` counts ``data:`` lines whose payload was not valid JSON.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._started = False
        self.skipped_frames = 0
        self.finished = False

    def _event_deltas(self, event: str) -> Iterator[str]:
        for line in event.split("\n"):
            s = line.strip()
            if not s.startswith(DATA_PREFIX):
                continue
            data = s[len(DATA_PREFIX):].strip()
            if data == TERMINATOR:
                raise _Terminated()
            try:
                payload = json.loads(data)
            except ValueError:
                self.skipped_frames += 1
                logger.debug("Skipping malformed stream frame: %.200s", data)
                continue
            delta = extract_delta(payload)
            if delta is not None:
                yield delta

    def _drain(self) -> Iterator[str]:
        while True:
            idx = self._buffer.find(EVENT_DELIMITER)
            if idx == -1:
                return
            event = self._buffer[:idx]
            self._buffer = self._buffer[idx + len(EVENT_DELIMITER):]
            yield from self._event_deltas(event)

    async def decode(self, source: AsyncIterable[bytes]) -> AsyncIterator[str]:
        if self._started:
            raise RuntimeError("StreamDecoder instances decode a single stream")
        self._started = True
        try:
            async for raw in source:
                self._buffer += self._utf8.decode(raw)
                try:
                    for delta in self._drain():
                        yield delta
                except _Terminated:
                    return
            # A trailing partial event without its blank line is discarded
        finally:
            self.finished = True
            if self.skipped_frames:
                logger.info("Stream finished with %d malformed frame(s) skipped", self.skipped_frames)
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()


def decode_stream(source: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Lazily decode ``source`` into text deltas with a fresh decoder."""
    return StreamDecoder().decode(source)
