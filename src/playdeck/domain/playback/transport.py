"""
Transport adapter contract.

The orchestrator drives exactly one single-track audio engine through this
facade. Implementations are synchronous and raise playback exceptions on
invalid input (volume outside [0, 1], seek beyond the duration, play before
any load).
"""

from enum import Enum
from typing import Protocol, runtime_checkable


class PlaybackState(Enum):
    """Engine-level state of the currently loaded track."""

    STOPPED = "stopped"
    LOADED = "loaded"
    PLAYING = "playing"
    PAUSED = "paused"


@runtime_checkable
class TransportAdapter(Protocol):
    """Single-track audio engine facade.

    load_file/load_buffer replace whatever was loaded before; only one track
    is ever current.
    """

    def load_file(self, path: str) -> None: ...

    def load_buffer(self, data: bytes) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def seek_to(self, seconds: float) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def get_volume(self) -> float: ...

    def get_current_time(self) -> float: ...

    def get_duration(self) -> float: ...

    def is_playing(self) -> bool: ...

    def get_state(self) -> PlaybackState: ...

    def close(self) -> None: ...
