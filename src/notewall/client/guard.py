"""
Single-slot concurrency guard with a depth-1, latest-wins pending intent.

At most one operation runs at a time. An operation submitted while another
is in flight is not started; it becomes the *pending intent*, replacing any
older pending intent (which is discarded). When the in-flight operation
settles, the pending intent is started immediately.

Nothing in flight is ever cancelled.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from notewall.core.settings import get_logger

Operation = Callable[[], Awaitable[None]]

logger = get_logger("notewall.guard")


class SingleFlight:
    """Serialize async operations through one slot."""

    def __init__(self) -> None:
        self._busy = False
        self._pending: Operation | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self.deferred = 0
        self.discarded = 0

    @property
    def busy(self) -> bool:
        """True while an operation is in flight."""
        return self._busy

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    async def run(self, operation: Operation) -> bool:
        """Run ``operation`` now, or park it as the pending intent.

        Returns
        -------
        bool
            True if the operation (and any intents queued behind it) ran in
            this call; False if it was deferred behind an in-flight one.
        """
        if self._busy:
            if self._pending is not None:
                self.discarded += 1
                logger.debug("discarding older pending intent")
            self._pending = operation
            self.deferred += 1
            return False

        self._busy = True
        self._idle.clear()
        try:
            current: Operation | None = operation
            while current is not None:
                await current()
                current, self._pending = self._pending, None
        except BaseException:
            self._pending = None
            raise
        finally:
            self._busy = False
            self._idle.set()
        return True

    async def idle(self) -> None:
        """Wait until nothing is in flight and nothing is pending."""
        while self._busy:
            await self._idle.wait()


__all__ = ["Operation", "SingleFlight"]
