from __future__ import annotations

from typing import Optional


class ChatStreamError(Exception):
    """The relay answered a chat turn with a non-success status."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"Chat relay returned HTTP {status_code}")
        self.status_code = status_code
        self.message = message
