"""
Track completion monitor.

The audio engine has no end-of-track callback, so completion is inferred by
polling ``is_playing()`` on a fixed interval. A negative reading is turned
into exactly one completion notification followed by exactly one deferred
advance.

Guarantees:
1. The poll timer is cleared the moment completion is detected, so no second
   tick can fire before the orchestrator has advanced.
2. The advance runs on a later scheduler turn, outside the polling callback,
   and only if the orchestrator is not stopping at that point.
3. cancel() drops both the poll timer and a pending advance; callbacks left
   over from an earlier start() are ignored via a generation counter.
4. Adapter or advance failures are logged and end monitoring; they never
   propagate into the event loop.
"""

from typing import Callable, Optional

from loguru import logger

from .scheduler import Cancellable, Scheduler
from .transport import TransportAdapter

DEFAULT_INTERVAL = 0.5


class CompletionMonitor:
    """Polls a transport and reports when the current track has finished."""

    def __init__(
        self,
        transport: TransportAdapter,
        scheduler: Scheduler,
        interval: float = DEFAULT_INTERVAL,
        is_stopping: Callable[[], bool] = lambda: False,
    ):
        self._transport = transport
        self._scheduler = scheduler
        self.interval = interval
        self._is_stopping = is_stopping

        self._generation = 0
        self._timer: Optional[Cancellable] = None
        self._pending_advance: Optional[Cancellable] = None
        self._on_completed: Optional[Callable[[], None]] = None
        self._on_advance: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        """True while the poll timer is armed."""
        return self._timer is not None

    @property
    def advance_pending(self) -> bool:
        return self._pending_advance is not None

    def start(
        self,
        on_completed: Callable[[], None],
        on_advance: Callable[[], None],
    ) -> None:
        """Begin polling, replacing any previous monitoring.

        Args:
            on_completed: Called synchronously when completion is detected
            on_advance: Called on a later scheduler turn to move to the next track
        """
        self.cancel()
        self._on_completed = on_completed
        self._on_advance = on_advance
        self._arm(self._generation)

    def cancel(self) -> None:
        """Stop polling and drop any pending advance."""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending_advance is not None:
            self._pending_advance.cancel()
            self._pending_advance = None

    def _arm(self, generation: int) -> None:
        self._timer = self._scheduler.call_later(
            self.interval, lambda: self._tick(generation)
        )

    def _tick(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._timer = None

        if self._is_stopping():
            # Stop in progress: skip this reading but keep the interval alive
            self._arm(generation)
            return

        try:
            playing = self._transport.is_playing()
        except Exception:
            logger.exception("Completion monitor failed to query transport; monitoring stopped")
            self.cancel()
            return

        if playing:
            self._arm(generation)
            return

        logger.debug("Completion monitor: transport no longer playing")
        on_completed = self._on_completed
        if on_completed is not None:
            on_completed()

        # on_completed may have cancelled or restarted monitoring
        if generation != self._generation:
            return
        self._pending_advance = self._scheduler.call_soon(
            lambda: self._advance(generation)
        )

    def _advance(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._pending_advance = None

        if self._is_stopping():
            logger.debug("Completion monitor: advance suppressed by stop")
            return

        on_advance = self._on_advance
        if on_advance is None:
            return
        try:
            on_advance()
        except Exception:
            logger.exception("Automatic advance to next track failed; monitoring stopped")
            if generation == self._generation:
                self.cancel()
