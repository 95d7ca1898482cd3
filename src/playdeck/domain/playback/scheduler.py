"""
Cooperative scheduling for playback continuations.

Every delayed step in the orchestrator (settle delay before play, completion
polling, deferred advance, restore seek) goes through a Scheduler, so all of
them interleave on one timeline. The default implementation uses the running
asyncio event loop.
"""

import asyncio
from typing import Callable, Optional, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Schedules callbacks on a single cooperative timeline."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...

    def call_soon(self, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Without an explicit loop, the loop running at call time is used, so the
    orchestrator must be driven from inside that loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._get_loop().call_later(delay, callback)

    def call_soon(self, callback: Callable[[], None]) -> asyncio.Handle:
        return self._get_loop().call_soon(callback)
