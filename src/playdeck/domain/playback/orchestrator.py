"""
Playlist orchestration over a single transport.

PlaylistManager owns the track store, the transport adapter and one
completion monitor, and exposes the playback control surface. Everything runs
on one cooperative timeline: delayed steps (settle delay before play,
completion polling, restore seek) are scheduler continuations, and the
``_is_stopping`` guard plus handle cancellation keep a stop from racing a
pending continuation.
"""

import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from loguru import logger

from playdeck.domain.library.models import SongMetadata, Track, as_track

from . import persistence
from .events import EventHandlers, TrackEndReason, TrackEvent
from .exceptions import InvalidVolume
from .monitor import DEFAULT_INTERVAL, CompletionMonitor
from .scheduler import AsyncioScheduler, Cancellable, Scheduler
from .track_store import TrackStore
from .transport import PlaybackState, TransportAdapter

if TYPE_CHECKING:
    from playdeck.core.config import Config

DEFAULT_VOLUME = 0.7
DEFAULT_SETTLE_DELAY = 0.05
DEFAULT_SEEK_DELAY = 0.1


class PlayerState(Enum):
    """Lifecycle state of the orchestrator."""

    IDLE = "idle"  # Nothing loaded yet
    LOADING = "loading"  # Track loaded, play() pending the settle delay
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"  # Explicit stop, index reset
    ENDED = "ended"  # Non-looping playlist exhausted


ACTIVE_STATES = (PlayerState.LOADING, PlayerState.PLAYING, PlayerState.PAUSED)


@dataclass(frozen=True)
class PlayerStatus:
    """Point-in-time view of the orchestrator for display."""

    state: PlayerState
    current_index: int
    total_tracks: int
    current_track: Optional[str]
    is_playing: bool
    volume: float
    loop: bool
    shuffle: bool
    current_time: float
    duration: float
    total_duration: int


class PlaylistManager:
    """Sequences tracks through one transport adapter."""

    def __init__(
        self,
        transport: TransportAdapter,
        scheduler: Optional[Scheduler] = None,
        *,
        volume: float = DEFAULT_VOLUME,
        loop: bool = False,
        shuffle: bool = False,
        supported_formats: Optional[Iterable[str]] = None,
        monitor_interval: float = DEFAULT_INTERVAL,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        seek_delay: float = DEFAULT_SEEK_DELAY,
        resume_window: float = persistence.RESUME_WINDOW_SECONDS,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        if not 0.0 <= volume <= 1.0:
            raise InvalidVolume(volume)

        self._transport = transport
        self._scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._store = TrackStore(supported_formats)
        self._handlers = EventHandlers()
        self._monitor = CompletionMonitor(
            transport,
            self._scheduler,
            interval=monitor_interval,
            is_stopping=lambda: self._is_stopping,
        )

        self.settle_delay = settle_delay
        self.seek_delay = seek_delay
        self.resume_window = resume_window
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock

        self._current_index = 0
        self._loop = loop
        self._shuffle = shuffle
        self._shuffle_order: Optional[list[int]] = None  # None: regenerate on demand
        self._volume = volume
        self._state = PlayerState.IDLE
        self._is_stopping = False
        self._pending_play: Optional[Cancellable] = None
        self._pending_seek: Optional[Cancellable] = None
        self._load_token = 0
        self._track_started = False  # play() has run for the loaded track
        self._disposed = False

        self._transport.set_volume(volume)

    @classmethod
    def from_config(
        cls,
        config: "Config",
        transport: TransportAdapter,
        scheduler: Optional[Scheduler] = None,
    ) -> "PlaylistManager":
        player = config.player
        return cls(
            transport,
            scheduler,
            volume=player.volume,
            loop=player.loop,
            shuffle=player.shuffle,
            supported_formats=config.library.supported_formats,
            monitor_interval=player.monitor_interval,
            settle_delay=player.settle_delay,
            seek_delay=player.seek_delay,
            resume_window=config.storage.resume_window_s,
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: Union[TrackEvent, str], handler: Callable[..., Any]) -> None:
        """Register the handler for event, replacing any previous one."""
        self._handlers.set(TrackEvent(event), handler)

    def remove_listener(self, event: Union[TrackEvent, str]) -> None:
        self._handlers.set(TrackEvent(event), None)

    # ------------------------------------------------------------------
    # Track store
    # ------------------------------------------------------------------

    def load_tracks(self, sources: Iterable[Any]) -> int:
        """Replace the playlist; unsupported files are skipped.

        Halts any active playback and moves the cursor to the first track.

        Raises:
            TypeError: If a source is not a path, buffer or track (playback
                is left untouched)
        """
        tracks = [as_track(source) for source in sources]
        self._halt_if_active()
        count = self._store.load_tracks(tracks)
        self._reset_cursor()
        return count

    def load_songs(self, songs: Iterable[Union[SongMetadata, dict]]) -> int:
        """Replace the playlist and its metadata from song records.

        Raises:
            ValueError: If a record has no path (playback is left untouched)
        """
        records = [
            song if isinstance(song, SongMetadata) else SongMetadata.from_dict(song)
            for song in songs
        ]
        self._halt_if_active()
        count = self._store.load_songs(records)
        self._reset_cursor()
        return count

    def add_track(self, source: Any, metadata: Optional[SongMetadata] = None) -> Track:
        track = self._store.add_track(source, metadata)
        if self._shuffle_order is not None:
            new_index = len(self._store) - 1
            self._shuffle_order.insert(
                self._rng.randint(0, len(self._shuffle_order)), new_index
            )
        return track

    def remove_track(self, index: int) -> Track:
        """Remove a track, keeping the cursor on the same logical position.

        Removing a track before the cursor shifts the cursor down by one.
        Removing the current track halts playback and clamps the cursor.

        Raises:
            IndexOutOfRange: If index is not valid
        """
        self._store.track_at(index)  # validates

        if index == self._current_index:
            self._halt_if_active()

        removed = self._store.remove_track(index)

        if index < self._current_index:
            self._current_index -= 1
        elif index == self._current_index:
            self._current_index = min(self._current_index, max(len(self._store) - 1, 0))

        if self._shuffle_order is not None:
            self._shuffle_order = [
                i - 1 if i > index else i for i in self._shuffle_order if i != index
            ]

        if len(self._store) == 0:
            self._state = PlayerState.IDLE

        logger.info(f"Removed track #{index + 1}: {removed.name}")
        return removed

    # ------------------------------------------------------------------
    # Transport control
    # ------------------------------------------------------------------

    def play_current_track(self) -> None:
        """Load the current track and start it after the settle delay.

        A no-op on an empty playlist. Load failures propagate to the caller.
        """
        if len(self._store) == 0:
            logger.debug("play_current_track: playlist is empty")
            return

        self._monitor.cancel()
        self._cancel_pending()

        index = self._current_index
        track = self._store.track_at(index)
        self._load_token += 1
        token = self._load_token
        self._track_started = False
        self._state = PlayerState.LOADING
        logger.info(
            f"Loading track {index + 1}/{len(self._store)}: {self._store.display_name(index)}"
        )

        try:
            track.load_into(self._transport)
            self._transport.set_volume(self._volume)
        except Exception:
            self._state = PlayerState.STOPPED
            raise

        if self.settle_delay > 0:
            self._pending_play = self._scheduler.call_later(
                self.settle_delay, lambda: self._start_playback(token, track)
            )
        else:
            self._start_playback(token, track)

    def _start_playback(self, token: int, track: Track) -> None:
        self._pending_play = None
        # A newer load or a stop supersedes this start
        if self._is_stopping or token != self._load_token:
            return

        try:
            self._transport.play()
        except Exception:
            logger.exception(f"Failed to start playback of {track.name}")
            self._state = PlayerState.STOPPED
            return

        self._track_started = True
        self._state = PlayerState.PLAYING
        self._start_monitor()
        self._handlers.emit(TrackEvent.TRACK_START, track, self._current_index)

    def _start_monitor(self) -> None:
        self._monitor.start(on_completed=self._on_track_completed, on_advance=self.next_track)

    def _on_track_completed(self) -> None:
        index = self._current_index
        track = self._store.track_at(index)
        logger.info(f"Track finished: {self._store.display_name(index)}")
        self._handlers.emit(TrackEvent.TRACK_END, track, index, TrackEndReason.COMPLETED)

    def next_track(self) -> None:
        """Advance to the next track, wrapping or ending the playlist."""
        if len(self._store) == 0:
            logger.debug("next_track: playlist is empty")
            return

        next_index = self._next_index()
        if next_index is None:
            self._end_playlist()
            return

        self._current_index = next_index
        self.play_current_track()

    def _next_index(self) -> Optional[int]:
        if self._shuffle:
            return self._next_shuffled_index()

        candidate = self._current_index + 1
        if candidate < len(self._store):
            return candidate
        if self._loop:
            logger.info("Looping playlist")
            return 0
        return None

    def _next_shuffled_index(self) -> Optional[int]:
        if self._shuffle_order is None:
            self._shuffle_order = self._new_shuffle_order()

        if not self._shuffle_order:
            if not self._loop:
                return None
            logger.info("Looping playlist (new shuffle order)")
            self._shuffle_order = self._new_shuffle_order()
            if not self._shuffle_order:
                # Single track: replay it
                return self._current_index

        return self._shuffle_order.pop(0)

    def _new_shuffle_order(self) -> list[int]:
        order = [i for i in range(len(self._store)) if i != self._current_index]
        self._rng.shuffle(order)
        return order

    def _end_playlist(self) -> None:
        logger.info("End of playlist reached")
        self._monitor.cancel()
        self._cancel_pending()
        if self._transport.is_playing():
            self._stop_transport()
        self._state = PlayerState.ENDED
        self._handlers.emit(TrackEvent.PLAYLIST_END)

    def previous_track(self) -> None:
        """Go back one track (no wraparound below the first track)."""
        if len(self._store) == 0:
            logger.debug("previous_track: playlist is empty")
            return

        self._current_index = max(self._current_index - 1, 0)
        self.play_current_track()

    def go_to_track(self, index: int) -> None:
        """Jump to index and play it.

        Raises:
            IndexOutOfRange: If index is not valid
        """
        self.cue_track(index)
        self.play_current_track()

    def cue_track(self, index: int) -> None:
        """Move the cursor to index without starting playback.

        Raises:
            IndexOutOfRange: If index is not valid
        """
        self._store.track_at(index)  # validates
        if index != self._current_index:
            self._halt_if_active()
        self._current_index = index
        if self._shuffle_order is not None and index in self._shuffle_order:
            self._shuffle_order.remove(index)

    def pause(self) -> None:
        if self._state == PlayerState.PLAYING:
            self._transport.pause()
        elif self._state != PlayerState.LOADING:
            logger.debug(f"pause: nothing to pause (state={self._state.value})")
            return

        # A paused track must not be mistaken for a finished one
        self._monitor.cancel()
        self._cancel_pending()
        self._state = PlayerState.PAUSED
        logger.info("Paused")

    def resume(self) -> None:
        """Continue the loaded track, or load the current one if none is loaded."""
        if self._state in (PlayerState.PLAYING, PlayerState.LOADING) or len(self._store) == 0:
            return  # LOADING: the pending start will play it

        engine_state = self._transport.get_state()
        if (
            engine_state in (PlaybackState.LOADED, PlaybackState.PAUSED)
            and self._transport.get_duration() > 0
        ):
            if not self._track_started:
                # Paused during the settle delay; take the regular start path
                self._load_token += 1
                self._start_playback(self._load_token, self._store.track_at(self._current_index))
                return
            self._transport.play()
            self._state = PlayerState.PLAYING
            self._start_monitor()
            logger.info("Resumed")
            return

        self.play_current_track()

    def stop(self) -> None:
        """Stop playback and reset the cursor to the first track."""
        self._halt()
        self._current_index = 0
        self._shuffle_order = None
        logger.info("Stopped")

    def skip(self) -> None:
        """Manually advance: ends the current track with reason MANUAL, then next."""
        if len(self._store) == 0:
            return

        index = self._current_index
        track = self._store.track_at(index)
        was_active = self._state in ACTIVE_STATES

        self._halt_if_active()
        if was_active:
            self._handlers.emit(TrackEvent.TRACK_END, track, index, TrackEndReason.MANUAL)
        self.next_track()

    def _halt_if_active(self) -> None:
        if self._state in ACTIVE_STATES:
            self._halt()

    def _halt(self) -> None:
        """Stop the engine and every pending continuation, keeping the cursor."""
        self._is_stopping = True
        try:
            self._monitor.cancel()
            self._cancel_pending()
            self._load_token += 1
            self._stop_transport()
            self._state = PlayerState.STOPPED if len(self._store) else PlayerState.IDLE
        finally:
            self._is_stopping = False

    def _stop_transport(self) -> None:
        try:
            self._transport.stop()
        except Exception:
            logger.exception("Transport stop failed; continuing with a clean state")

    def _cancel_pending(self) -> None:
        if self._pending_play is not None:
            self._pending_play.cancel()
            self._pending_play = None
        if self._pending_seek is not None:
            self._pending_seek.cancel()
            self._pending_seek = None

    def _reset_cursor(self) -> None:
        self._current_index = 0
        self._shuffle_order = None
        self._state = PlayerState.IDLE

    # ------------------------------------------------------------------
    # Volume, loop, shuffle, seek
    # ------------------------------------------------------------------

    def set_volume(self, volume: float) -> None:
        """Set volume in [0.0, 1.0].

        Raises:
            InvalidVolume: If volume is out of range
        """
        if not 0.0 <= volume <= 1.0:
            raise InvalidVolume(volume)
        self._transport.set_volume(volume)
        self._volume = volume
        logger.debug(f"Volume: {volume:.0%}")

    def set_loop(self, enabled: bool) -> None:
        self._loop = bool(enabled)
        logger.info(f"Loop {'on' if self._loop else 'off'}")

    def set_shuffle(self, enabled: bool) -> None:
        self._shuffle = bool(enabled)
        self._shuffle_order = None
        logger.info(f"Shuffle {'on' if self._shuffle else 'off'}")

    def seek(self, percent: float) -> None:
        """Seek to a fraction of the track (0.0 - 1.0); invalid input is ignored."""
        duration = self._transport.get_duration()
        if duration <= 0:
            logger.warning("Cannot seek: track duration unknown")
            return
        if not 0.0 <= percent <= 1.0:
            logger.warning(f"Ignoring seek to {percent}: must be between 0.0 and 1.0")
            return
        self._transport.seek_to(percent * duration)

    def seek_seconds(self, seconds: float) -> None:
        """Seek to an absolute position; invalid input is ignored."""
        duration = self._transport.get_duration()
        if duration <= 0:
            logger.warning("Cannot seek: track duration unknown")
            return
        if not 0.0 <= seconds <= duration:
            logger.warning(
                f"Ignoring seek to {seconds}s: must be between 0 and {duration:.2f}s"
            )
            return
        self._transport.seek_to(seconds)

    def schedule_seek(self, seconds: float, delay: Optional[float] = None) -> None:
        """Seek once the engine has had time to open the current track."""
        if self._pending_seek is not None:
            self._pending_seek.cancel()

        def run_seek() -> None:
            self._pending_seek = None
            try:
                self.seek_seconds(seconds)
            except Exception:
                logger.exception(f"Deferred seek to {seconds}s failed")

        self._pending_seek = self._scheduler.call_later(
            self.seek_delay if delay is None else delay, run_seek
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_current_time(self) -> float:
        return self._transport.get_current_time()

    def get_duration(self) -> float:
        return self._transport.get_duration()

    def get_progress(self) -> float:
        """Fraction of the current track played, in [0.0, 1.0]."""
        duration = self._transport.get_duration()
        if duration <= 0:
            return 0.0
        return min(max(self._transport.get_current_time() / duration, 0.0), 1.0)

    def get_volume(self) -> float:
        return self._volume

    def get_current_index(self) -> int:
        return self._current_index

    def get_total_tracks(self) -> int:
        return len(self._store)

    def get_state(self) -> PlayerState:
        return self._state

    def is_loop(self) -> bool:
        return self._loop

    def is_shuffle(self) -> bool:
        return self._shuffle

    def get_current_track(self) -> Optional[Track]:
        if len(self._store) == 0:
            return None
        return self._store.track_at(self._current_index)

    def get_track_metadata(self, index: int) -> Optional[SongMetadata]:
        return self._store.metadata_at(index)

    def get_current_track_metadata(self) -> Optional[SongMetadata]:
        return self._store.metadata_at(self._current_index)

    def get_tracks(self) -> list[Track]:
        return self._store.tracks()

    def get_display_name(self, index: int) -> str:
        return self._store.display_name(index)

    def get_status(self) -> PlayerStatus:
        has_tracks = len(self._store) > 0
        return PlayerStatus(
            state=self._state,
            current_index=self._current_index,
            total_tracks=len(self._store),
            current_track=self._store.display_name(self._current_index) if has_tracks else None,
            is_playing=self._state == PlayerState.PLAYING,
            volume=self._volume,
            loop=self._loop,
            shuffle=self._shuffle,
            current_time=self._transport.get_current_time(),
            duration=self._transport.get_duration(),
            total_duration=self._store.total_duration(),
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save_state(self, store: persistence.KeyValueStore, key: str) -> None:
        await persistence.save_state(self, store, key, clock=self._clock)

    async def load_state(self, store: persistence.KeyValueStore, key: str) -> bool:
        return await persistence.load_state(
            self,
            store,
            key,
            clock=self._clock,
            resume_window=self.resume_window,
            seek_delay=self.seek_delay,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Stop playback, release the engine and clear all state. Idempotent."""
        if self._disposed:
            return

        self.stop()
        self._handlers.clear()
        self._store.clear()
        self._reset_cursor()
        try:
            self._transport.close()
        except Exception:
            logger.exception("Failed to close transport")
        self._disposed = True
        logger.info("Playlist manager disposed")
