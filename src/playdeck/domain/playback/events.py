"""
Playback lifecycle events.

Each event kind has a single handler slot; registering again replaces the
previous handler.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger


class TrackEvent(Enum):
    TRACK_START = "trackStart"  # handler(track, index)
    TRACK_END = "trackEnd"  # handler(track, index, reason)
    PLAYLIST_END = "playlistEnd"  # handler()


class TrackEndReason(Enum):
    COMPLETED = "completed"  # Detected by the completion monitor
    MANUAL = "manual"  # Caller skipped ahead


Handler = Callable[..., Any]


@dataclass
class EventHandlers:
    """One optional handler per event kind."""

    track_start: Optional[Handler] = None
    track_end: Optional[Handler] = None
    playlist_end: Optional[Handler] = None

    _SLOTS = {
        TrackEvent.TRACK_START: "track_start",
        TrackEvent.TRACK_END: "track_end",
        TrackEvent.PLAYLIST_END: "playlist_end",
    }

    def set(self, event: TrackEvent, handler: Optional[Handler]) -> None:
        setattr(self, self._SLOTS[TrackEvent(event)], handler)

    def get(self, event: TrackEvent) -> Optional[Handler]:
        return getattr(self, self._SLOTS[TrackEvent(event)])

    def clear(self) -> None:
        self.track_start = None
        self.track_end = None
        self.playlist_end = None

    def emit(self, event: TrackEvent, *args: Any) -> None:
        """Invoke the handler for event, logging (not raising) handler errors."""
        handler = self.get(event)
        if handler is None:
            return
        try:
            handler(*args)
        except Exception:
            logger.exception(f"Handler for {TrackEvent(event).name} raised")
