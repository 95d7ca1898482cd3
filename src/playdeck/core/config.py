"""
Configuration management for playdeck
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

# Formats the audio engine can decode
DEFAULT_SUPPORTED_FORMATS = [".wav", ".mp3", ".flac", ".ogg", ".aac", ".m4a", ".opus"]


@dataclass
class LibraryConfig:
    """Configuration for track collection."""

    library_paths: List[str] = field(
        default_factory=lambda: [str(Path.home() / "Music")]
    )
    supported_formats: List[str] = field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_FORMATS)
    )
    scan_recursive: bool = True


@dataclass
class PlayerConfig:
    """Configuration for playback behaviour and timing."""

    mpv_socket_path: Optional[str] = None
    volume: float = 0.7  # 0.0 - 1.0
    loop: bool = False
    shuffle: bool = False
    monitor_interval_ms: int = 500  # Completion polling interval
    settle_delay_ms: int = 50  # Pause between load and play
    seek_delay_ms: int = 100  # Pause between restore load and seek

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 0.0 <= self.volume <= 1.0:
            raise ValueError(f"volume must be between 0.0 and 1.0, got {self.volume}")
        if self.monitor_interval_ms <= 0:
            raise ValueError(
                f"monitor_interval_ms must be positive, got {self.monitor_interval_ms}"
            )
        if self.settle_delay_ms < 0 or self.seek_delay_ms < 0:
            raise ValueError("settle_delay_ms and seek_delay_ms must not be negative")

    @property
    def monitor_interval(self) -> float:
        return self.monitor_interval_ms / 1000

    @property
    def settle_delay(self) -> float:
        return self.settle_delay_ms / 1000

    @property
    def seek_delay(self) -> float:
        return self.seek_delay_ms / 1000


@dataclass
class StorageConfig:
    """Configuration for state persistence."""

    state_dir: Optional[str] = None  # Default: <data dir>/state
    state_key: str = "player_state"
    songs_key: str = "songs"
    autosave_interval_s: int = 10
    resume_window_s: int = 3600  # Only resume positions saved this recently


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/playdeck/playdeck.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of backup files to keep
    console_output: bool = False  # Also output to stderr (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "playdeck"
    return Path.home() / ".config" / "playdeck"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    try:
        current = Path(__file__).resolve().parent
        for parent in [current] + list(current.parents):
            if (parent / "pyproject.toml").exists():
                config_path = parent / "config.toml"
                if config_path.exists():
                    return config_path
                return None
    except OSError:
        pass
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/playdeck (or ~/.config/playdeck)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "playdeck"
    return Path.home() / ".local" / "share" / "playdeck"


def get_state_dir(config: Config) -> Path:
    """Directory holding the JSON key-value store."""
    if config.storage.state_dir:
        return Path(config.storage.state_dir).expanduser()
    return get_data_dir() / "state"


def get_log_file_path(config: Config) -> Path:
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / "playdeck.log"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# playdeck Configuration

[library]
# Paths to collect audio files from when no saved song list exists
library_paths = ["~/Music"]

# Supported audio file formats
supported_formats = [".wav", ".mp3", ".flac", ".ogg", ".aac", ".m4a", ".opus"]

# Recursively scan subdirectories
scan_recursive = true

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/playdeck-mpv.sock"

# Default volume (0.0-1.0)
volume = 0.7

# Start over from the first track after the last one
loop = false

# Play tracks in shuffled order
shuffle = false

# How often to check whether the current track has finished
monitor_interval_ms = 500

# Pause between loading a track and starting it
settle_delay_ms = 50

# Pause between loading a restored track and seeking into it
seek_delay_ms = 100

[storage]
# Directory for saved state (default: ~/.local/share/playdeck/state)
# state_dir = "~/.local/share/playdeck/state"

# Save playback position every N seconds
autosave_interval_s = 10

# Only resume the exact position of sessions saved within this window
resume_window_s = 3600

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/playdeck/playdeck.log)
# log_file = "/path/to/custom/playdeck.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - PLAYDECK_STATE_DIR
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        logger.info(f"Created default configuration at: {config_path}")
        config = Config()
        _apply_env_overrides(config)
        return config

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Error loading configuration from {config_path}: {e}")
        logger.warning("Using default configuration.")
        config = Config()
        _apply_env_overrides(config)
        return config

    config = parse_config(toml_data)
    _apply_env_overrides(config)
    return config


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data, falling back to defaults per section."""
    config = Config()

    if "library" in toml_data:
        library_data = toml_data["library"]
        config.library = LibraryConfig(
            library_paths=[
                str(Path(p).expanduser())
                for p in library_data.get("library_paths", config.library.library_paths)
            ],
            supported_formats=[
                fmt.lower() if fmt.startswith(".") else f".{fmt.lower()}"
                for fmt in library_data.get(
                    "supported_formats", config.library.supported_formats
                )
            ],
            scan_recursive=library_data.get(
                "scan_recursive", config.library.scan_recursive
            ),
        )

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_socket_path=player_data.get("mpv_socket_path"),
            volume=float(player_data.get("volume", config.player.volume)),
            loop=player_data.get("loop", config.player.loop),
            shuffle=player_data.get("shuffle", config.player.shuffle),
            monitor_interval_ms=player_data.get(
                "monitor_interval_ms", config.player.monitor_interval_ms
            ),
            settle_delay_ms=player_data.get(
                "settle_delay_ms", config.player.settle_delay_ms
            ),
            seek_delay_ms=player_data.get("seek_delay_ms", config.player.seek_delay_ms),
        )
        try:
            config.player.validate()
        except ValueError as e:
            logger.warning(f"Invalid player configuration: {e}")
            logger.warning("Using default player configuration.")
            config.player = PlayerConfig()

    if "storage" in toml_data:
        storage_data = toml_data["storage"]
        config.storage = StorageConfig(
            state_dir=storage_data.get("state_dir"),
            state_key=storage_data.get("state_key", config.storage.state_key),
            songs_key=storage_data.get("songs_key", config.storage.songs_key),
            autosave_interval_s=storage_data.get(
                "autosave_interval_s", config.storage.autosave_interval_s
            ),
            resume_window_s=storage_data.get(
                "resume_window_s", config.storage.resume_window_s
            ),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> None:
    state_dir = os.environ.get("PLAYDECK_STATE_DIR")
    if state_dir:
        config.storage.state_dir = state_dir


def ensure_directories(config: Config) -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
    get_state_dir(config).mkdir(parents=True, exist_ok=True)
