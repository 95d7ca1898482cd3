"""
Saving and restoring playback position.

A snapshot is stored as one JSON object under a caller-chosen key. On restore,
volume and loop always apply; the track position is resumed only when the
snapshot is younger than the resume window, otherwise the cursor is moved to
the saved track without starting playback.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

from loguru import logger

from .exceptions import PlaybackError

if TYPE_CHECKING:
    from .orchestrator import PlaylistManager

RESUME_WINDOW_SECONDS = 3600.0
DEFAULT_AUTOSAVE_INTERVAL = 10.0


class KeyValueStore(Protocol):
    async def set(self, key: str, value: Any) -> None: ...

    async def get(self, key: str) -> Optional[Any]: ...


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Playback position as persisted (camelCase keys on disk)."""

    current_track_index: int
    current_time: float
    volume: float
    loop: bool
    timestamp: float  # Epoch seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentTrackIndex": self.current_track_index,
            "currentTime": self.current_time,
            "volume": self.volume,
            "loop": self.loop,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PlaybackSnapshot":
        """Parse a stored snapshot.

        Volume outside [0, 1] is clamped; a negative time restarts the track.

        Raises:
            ValueError: If the data is not a usable snapshot
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")

        try:
            index = data["currentTrackIndex"]
            current_time = float(data.get("currentTime", 0.0))
            volume = float(data.get("volume", 0.7))
            loop = data.get("loop", False)
            timestamp = float(data["timestamp"])
        except KeyError as e:
            raise ValueError(f"missing field {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"bad field value: {e}") from e

        if isinstance(index, bool) or not isinstance(index, int):
            raise ValueError(f"currentTrackIndex must be an integer, got {index!r}")
        if not isinstance(loop, bool):
            raise ValueError(f"loop must be a boolean, got {loop!r}")
        if any(math.isnan(v) for v in (current_time, volume, timestamp)):
            raise ValueError("snapshot contains NaN")

        return cls(
            current_track_index=index,
            current_time=max(current_time, 0.0),
            volume=min(max(volume, 0.0), 1.0),
            loop=loop,
            timestamp=timestamp,
        )

    def age(self, now: float) -> float:
        return now - self.timestamp


def take_snapshot(
    manager: "PlaylistManager", clock: Callable[[], float] = time.time
) -> PlaybackSnapshot:
    return PlaybackSnapshot(
        current_track_index=manager.get_current_index(),
        current_time=manager.get_current_time(),
        volume=manager.get_volume(),
        loop=manager.is_loop(),
        timestamp=clock(),
    )


async def save_state(
    manager: "PlaylistManager",
    store: KeyValueStore,
    key: str,
    clock: Callable[[], float] = time.time,
) -> PlaybackSnapshot:
    """Write the manager's current position to store under key."""
    snapshot = take_snapshot(manager, clock)
    await store.set(key, snapshot.to_dict())
    logger.debug(
        f"Saved playback state: track {snapshot.current_track_index + 1} "
        f"at {snapshot.current_time:.1f}s"
    )
    return snapshot


async def load_state(
    manager: "PlaylistManager",
    store: KeyValueStore,
    key: str,
    clock: Callable[[], float] = time.time,
    resume_window: float = RESUME_WINDOW_SECONDS,
    seek_delay: Optional[float] = None,
) -> bool:
    """Restore a saved position into manager.

    Returns:
        True if a snapshot was found and applied, False if there was none or
        it could not be applied (malformed, or index outside the playlist)
    """
    try:
        data = await store.get(key)
    except ValueError as e:
        logger.warning(f"Ignoring unreadable playback state: {e}")
        return False
    if data is None:
        logger.info("No saved playback state")
        return False

    try:
        snapshot = PlaybackSnapshot.from_dict(data)
    except ValueError as e:
        logger.warning(f"Ignoring malformed playback state: {e}")
        return False

    total = manager.get_total_tracks()
    index = snapshot.current_track_index
    if not 0 <= index < total:
        logger.warning(
            f"Saved track index {index} is outside the playlist ({total} tracks); not restoring"
        )
        return False

    manager.set_volume(snapshot.volume)
    manager.set_loop(snapshot.loop)

    age = snapshot.age(clock())
    if 0 <= age < resume_window:
        logger.info(
            f"Resuming track {index + 1} at {snapshot.current_time:.1f}s "
            f"(saved {age / 60:.0f} min ago)"
        )
        try:
            manager.go_to_track(index)
        except PlaybackError as e:
            logger.warning(f"Could not resume saved track: {e}")
            manager.cue_track(index)
            return True
        if snapshot.current_time > 0:
            manager.schedule_seek(snapshot.current_time, seek_delay)
    else:
        logger.info(f"Saved state is {age / 3600:.1f}h old; selecting track {index + 1} only")
        manager.cue_track(index)

    return True


async def autosave(
    manager: "PlaylistManager",
    store: KeyValueStore,
    key: str,
    interval: float = DEFAULT_AUTOSAVE_INTERVAL,
) -> None:
    """Save state every interval seconds until cancelled.

    Nothing is written while the playlist is empty.
    """
    while True:
        await asyncio.sleep(interval)
        if manager.get_total_tracks() == 0:
            continue
        try:
            await manager.save_state(store, key)
        except Exception:
            logger.exception("Autosave failed")
