"""Playback domain - playlist sequencing over an audio engine.

This domain handles:
- The transport contract and the MPV implementation
- Track completion monitoring and auto-advance
- Playlist state (index, loop, shuffle, volume)
- Saving and restoring playback position
"""

# Errors
from .exceptions import (
    PlaybackError,
    ValidationError,
    IndexOutOfRange,
    InvalidVolume,
    InvalidSeek,
    ResourceError,
    UnsupportedFormat,
    FileNotFound,
    DecodeError,
    TransportError,
)

# Transport
from .transport import PlaybackState, TransportAdapter
from .mpv_transport import MpvTransport, check_mpv_available

# Orchestration
from .events import TrackEndReason, TrackEvent
from .orchestrator import PlayerState, PlayerStatus, PlaylistManager
from .scheduler import AsyncioScheduler, Scheduler

# Persistence
from .persistence import PlaybackSnapshot, autosave, load_state, save_state

__all__ = [
    # Errors
    "PlaybackError",
    "ValidationError",
    "IndexOutOfRange",
    "InvalidVolume",
    "InvalidSeek",
    "ResourceError",
    "UnsupportedFormat",
    "FileNotFound",
    "DecodeError",
    "TransportError",
    # Transport
    "PlaybackState",
    "TransportAdapter",
    "MpvTransport",
    "check_mpv_available",
    # Orchestration
    "TrackEndReason",
    "TrackEvent",
    "PlayerState",
    "PlayerStatus",
    "PlaylistManager",
    "AsyncioScheduler",
    "Scheduler",
    # Persistence
    "PlaybackSnapshot",
    "autosave",
    "load_state",
    "save_state",
]
