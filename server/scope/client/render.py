from __future__ import annotations

import time
from typing import AsyncIterable, Callable, Optional

# One frame at 60 Hz
FRAME_INTERVAL = 0.016


class RenderAccumulator:
    """Concatenate streamed deltas and commit the running text at most once per frame.

    ``commit`` receives the whole accumulated text each time, so every committed
    value is a prefix of the next one. :meth:`flush` always commits, which makes
    the last committed value the full concatenation.
    """

    def __init__(
        self,
        commit: Callable[[str], None],
        interval: float = FRAME_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._commit = commit
        self.interval = interval
        self._clock = clock
        self.content = ""
        self.commits = 0
        self._last_commit = clock()

    def push(self, delta: str) -> bool:
        """Append ``delta``; return True if it was committed."""
        self.content += delta
        now = self._clock()
        if now - self._last_commit < self.interval:
            return False
        self._do_commit(now)
        return True

    def flush(self) -> str:
        self._do_commit(self._clock())
        return self.content

    def _do_commit(self, now: float) -> None:
        self._commit(self.content)
        self.commits += 1
        self._last_commit = now

    async def consume(
        self,
        deltas: AsyncIterable[str],
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> str:
        """Drain ``deltas`` (or stop early when ``should_stop()`` turns true), then flush."""
        try:
            async for delta in deltas:
                self.push(delta)
                if should_stop is not None and should_stop():
                    break
        finally:
            self.flush()
            aclose = getattr(deltas, "aclose", None)
            if aclose is not None:
                await aclose()
        return self.content
