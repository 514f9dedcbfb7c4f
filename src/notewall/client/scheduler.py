"""
Cancellable scheduled task (the debounce timer).

`ScheduledTask` wraps one coroutine function and one delay:

- ``schedule()`` arms it; an arm that is still waiting is cancelled first,
  so a burst of calls only ever fires once, ``delay`` after the last one.
- ``cancel()`` disarms it.
- each arm fires at most once; the action runs as its own asyncio task so
  a later ``schedule()`` never cancels an action that already started.

Must be used from inside a running event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

Action = Callable[[], Awaitable[None]]


class ScheduledTask:
    """Reset-on-rearm timer that runs an async action after a quiet period."""

    def __init__(self, delay: float, action: Action) -> None:
        self.delay = delay
        self._action = action
        self._timer: asyncio.TimerHandle | None = None
        self._running: set[asyncio.Task[None]] = set()
        self.fired = 0

    @property
    def pending(self) -> bool:
        """True while an arm is waiting to fire."""
        return self._timer is not None

    def schedule(self) -> None:
        """Arm the timer, restarting it if it was already armed."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Disarm the timer. Returns True if an arm was pending."""
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        return True

    async def wait(self) -> None:
        """Wait for every action started by this timer to finish."""
        while self._running:
            await asyncio.gather(*tuple(self._running), return_exceptions=True)

    def _fire(self) -> None:
        self._timer = None
        self.fired += 1
        task = asyncio.get_running_loop().create_task(self._action())
        self._running.add(task)
        task.add_done_callback(self._running.discard)


__all__ = ["Action", "ScheduledTask"]
