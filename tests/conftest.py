"""Shared fixtures: an in-memory transport, a manual scheduler and a memory store."""

import json
import random
from typing import Any, Callable, Optional

import pytest

from playdeck.domain.playback.exceptions import (
    FileNotFound,
    InvalidSeek,
    InvalidVolume,
    TransportError,
)
from playdeck.domain.playback.orchestrator import PlaylistManager
from playdeck.domain.playback.transport import PlaybackState

DEFAULT_DURATION = 180.0


class FakeTransport:
    """In-memory transport that records calls and lets tests end tracks."""

    def __init__(self, durations: Optional[dict[str, float]] = None):
        self.durations = durations or {}
        self.calls: list[tuple] = []
        self.loaded: Any = None
        self.state = PlaybackState.STOPPED
        self.position = 0.0
        self.duration = 0.0
        self.volume = 1.0
        self.missing_paths: set[str] = set()
        self.fail_stop = False
        self.fail_is_playing = False
        self.closed = False

    def _open(self, source: Any, duration: float) -> None:
        self.loaded = source
        self.state = PlaybackState.LOADED
        self.position = 0.0
        self.duration = duration

    def load_file(self, path: str) -> None:
        self.calls.append(("load_file", path))
        if path in self.missing_paths:
            raise FileNotFound(path)
        self._open(path, self.durations.get(path, DEFAULT_DURATION))

    def load_buffer(self, data: bytes) -> None:
        self.calls.append(("load_buffer", len(data)))
        self._open(data, DEFAULT_DURATION)

    def play(self) -> None:
        self.calls.append(("play",))
        if self.loaded is None:
            raise TransportError("nothing loaded")
        if self.position >= self.duration:
            self.position = 0.0
        self.state = PlaybackState.PLAYING

    def pause(self) -> None:
        self.calls.append(("pause",))
        self.state = PlaybackState.PAUSED

    def stop(self) -> None:
        self.calls.append(("stop",))
        if self.fail_stop:
            raise TransportError("device gone")
        self.loaded = None
        self.state = PlaybackState.STOPPED
        self.position = 0.0
        self.duration = 0.0

    def seek_to(self, seconds: float) -> None:
        self.calls.append(("seek_to", seconds))
        if not 0 <= seconds <= self.duration:
            raise InvalidSeek(f"cannot seek to {seconds}")
        self.position = seconds

    def set_volume(self, volume: float) -> None:
        if not 0.0 <= volume <= 1.0:
            raise InvalidVolume(volume)
        self.volume = volume

    def get_volume(self) -> float:
        return self.volume

    def get_current_time(self) -> float:
        return self.position

    def get_duration(self) -> float:
        return self.duration

    def is_playing(self) -> bool:
        if self.fail_is_playing:
            raise TransportError("engine crashed")
        return self.state is PlaybackState.PLAYING

    def get_state(self) -> PlaybackState:
        return self.state

    def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True

    # Test helpers

    def finish(self) -> None:
        """Simulate the current track reaching its natural end."""
        self.position = self.duration
        self.state = PlaybackState.STOPPED

    def loads(self) -> list[Any]:
        return [call[1] for call in self.calls if call[0] in ("load_file", "load_buffer")]

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class ManualHandle:
    def __init__(self, when: float, seq: int, callback: Callable[[], None]):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler with a virtual clock."""

    def __init__(self):
        self.now = 0.0
        self._handles: list[ManualHandle] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        self._seq += 1
        handle = ManualHandle(self.now + delay, self._seq, callback)
        self._handles.append(handle)
        return handle

    def call_soon(self, callback: Callable[[], None]) -> ManualHandle:
        return self.call_later(0.0, callback)

    def pending(self) -> list[ManualHandle]:
        self._handles = [h for h in self._handles if not h.cancelled]
        return sorted(self._handles, key=lambda h: (h.when, h.seq))

    def run_next(self) -> bool:
        """Run the earliest pending callback, moving the clock to it."""
        pending = self.pending()
        if not pending:
            return False
        handle = pending[0]
        self._handles.remove(handle)
        self.now = max(self.now, handle.when)
        handle.callback()
        return True

    def advance(self, seconds: float) -> None:
        """Run everything due within the next `seconds`, in time order."""
        target = self.now + seconds
        while True:
            pending = self.pending()
            if not pending or pending[0].when > target:
                break
            self.run_next()
        self.now = target


class MemoryStore:
    """Async key-value store that keeps JSON-serialised copies in a dict."""

    def __init__(self):
        self.data: dict[str, str] = {}

    async def set(self, key: str, value: Any) -> None:
        self.data[key] = json.dumps(value)

    async def get(self, key: str) -> Optional[Any]:
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> Callable[[], float]:
    """Fixed wall clock for snapshot timestamps; tests may set clock.value."""

    def now() -> float:
        return now.value

    now.value = 1_700_000_000.0
    return now


@pytest.fixture
def manager(transport: FakeTransport, scheduler: ManualScheduler, clock) -> PlaylistManager:
    return PlaylistManager(transport, scheduler, rng=random.Random(1234), clock=clock)


@pytest.fixture
def three_tracks() -> list[str]:
    return ["/music/a.mp3", "/music/b.flac", "/music/c.ogg"]
