"""Fixed-window request rate limiter."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from game_vault.core.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Admit at most ``limit`` requests per ``window`` seconds.

    Callers that arrive after the window is exhausted are delayed until it
    resets; nothing is ever dropped. Waiting is a plain ``asyncio.sleep``, so
    cancelling the waiting task aborts the wait.

    Args:
        limit: Number of requests admitted per window
        window: Window length in seconds

    Example:
        limiter = RateLimiter(limit=4, window=1.0)
        async with limiter:
            await send_request()
    """

    def __init__(self, limit: int, window: float) -> None:
        if limit < 1:
            raise InvalidConfigurationError(f"rate limit must be at least 1, got {limit}")
        if window <= 0:
            raise InvalidConfigurationError(f"rate window must be positive, got {window}")

        self.limit = limit
        self.window = window
        self._count = 0
        # The first request opens the first window
        self._window_start = float("-inf")
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Wait until a request may be sent."""
        while True:
            async with self._lock:
                now = time.monotonic()
                elapsed = now - self._window_start

                if elapsed >= self.window:
                    self._window_start = now
                    self._count = 0
                    elapsed = 0.0

                if self._count < self.limit:
                    self._count += 1
                    return

                remaining = max(self.window - elapsed, 0.0)

            # Several waiters can wake at once, so re-check after sleeping
            logger.debug("Rate limit reached, waiting %.3fs", remaining)
            await asyncio.sleep(remaining)

    @property
    def available(self) -> int:
        """Requests still admissible in the current window."""
        if time.monotonic() - self._window_start >= self.window:
            return self.limit
        return self.limit - self._count

    async def __aenter__(self) -> RateLimiter:
        await self.wait()
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass
