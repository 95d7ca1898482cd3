"""Application context for explicit state passing.

The REPL threads one AppContext through every command handler instead of
reaching for module globals.
"""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from playdeck.core.config import Config
from playdeck.core.storage import JSONStorage
from playdeck.domain.playback.orchestrator import PlaylistManager


@dataclass
class AppContext:
    """Application context passed to all command handlers.

    Attributes:
        config: Application configuration
        manager: Playlist orchestrator driving the audio engine
        storage: Key-value store for playback state and the song list
        console: Rich Console for formatted output
    """

    config: Config
    manager: PlaylistManager
    storage: JSONStorage
    console: Optional[Console] = None

    @property
    def state_key(self) -> str:
        return self.config.storage.state_key

    @property
    def songs_key(self) -> str:
        return self.config.storage.songs_key
