"""
MPV transport adapter using JSON IPC.

Runs ``mpv --idle`` as a subprocess and drives it over its Unix socket. mpv
does all decoding and device output; this module only translates the
transport contract into IPC commands and property reads.
"""

import json
import os
import socket
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from playdeck.core.config import PlayerConfig

from .exceptions import FileNotFound, InvalidSeek, InvalidVolume, TransportError
from .transport import PlaybackState

SOCKET_TIMEOUT = 2.0
SOCKET_WAIT_TIMEOUT = 5.0


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def send_mpv_command(socket_path: Optional[str], command: dict[str, Any]) -> bool:
    """Send JSON IPC command to MPV. Returns True on success."""
    response = _request(socket_path, command)
    return response is not None and response.get("error") == "success"


def get_mpv_property(socket_path: Optional[str], property_name: str) -> Any:
    """Get a property value from MPV, or None if unavailable."""
    response = _request(socket_path, {"command": ["get_property", property_name]})
    if response and response.get("error") == "success":
        return response.get("data")
    return None


def _request(socket_path: Optional[str], command: dict[str, Any]) -> Optional[dict]:
    if not socket_path or not os.path.exists(socket_path):
        return None

    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(SOCKET_TIMEOUT)
            sock.connect(socket_path)
            sock.sendall((json.dumps(command) + "\n").encode("utf-8"))
            raw = sock.recv(4096).decode("utf-8")
    except (socket.error, OSError):
        return None

    # mpv may interleave event lines with the reply; the reply carries "error"
    for line in raw.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            continue
        if "error" in message:
            return message
    return None


class MpvTransport:
    """Transport adapter backed by an mpv subprocess."""

    def __init__(
        self,
        socket_path: str,
        process: Optional[subprocess.Popen] = None,
        volume: float = 1.0,
    ):
        self.socket_path = socket_path
        self.process = process
        self._volume = volume
        self._loaded = False
        self._started = False  # play() issued since the last load
        self._buffer_file: Optional[str] = None

    @classmethod
    def start(cls, config: PlayerConfig) -> "MpvTransport":
        """Start MPV with JSON IPC and return a connected transport.

        Raises:
            TransportError: If mpv cannot be started or does not answer
        """
        if config.mpv_socket_path:
            socket_path = config.mpv_socket_path
        else:
            socket_path = str(Path(tempfile.gettempdir()) / f"playdeck-mpv-{os.getpid()}")

        logger.info(f"Starting MPV player with socket: {socket_path}")

        if os.path.exists(socket_path):
            logger.debug(f"Removing existing socket: {socket_path}")
            os.unlink(socket_path)

        cmd = [
            "mpv",
            "--idle=yes",
            "--no-video",
            "--no-terminal",
            f"--input-ipc-server={socket_path}",
            f"--volume={round(config.volume * 100)}",
            "--keep-open=yes",
            "--pause",
            "--load-scripts=no",
        ]

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise TransportError(f"failed to start mpv: {e}") from e

        start_time = time.time()
        while not os.path.exists(socket_path):
            if time.time() - start_time > SOCKET_WAIT_TIMEOUT:
                process.kill()
                raise TransportError(
                    f"mpv socket creation timeout after {SOCKET_WAIT_TIMEOUT}s"
                )
            time.sleep(0.1)

        if get_mpv_property(socket_path, "idle-active") is None:
            process.kill()
            raise TransportError("mpv socket connection test failed")

        logger.info("MPV started successfully")
        return cls(socket_path=socket_path, process=process, volume=config.volume)

    # --- IPC helpers ---

    def _ensure_running(self) -> None:
        if self.process is None or self.process.poll() is not None:
            raise TransportError("mpv is not running")

    def _command(self, *args: Any) -> None:
        self._ensure_running()
        if not send_mpv_command(self.socket_path, {"command": list(args)}):
            raise TransportError(f"mpv command failed: {args[0]}")

    def _property(self, name: str) -> Any:
        if self.process is None or self.process.poll() is not None:
            return None
        return get_mpv_property(self.socket_path, name)

    def _discard_buffer_file(self) -> None:
        if self._buffer_file:
            try:
                os.unlink(self._buffer_file)
            except OSError:
                pass
            self._buffer_file = None

    # --- Transport contract ---

    def load_file(self, path: str) -> None:
        if not os.path.isfile(path):
            raise FileNotFound(path)
        self._load(path)
        self._discard_buffer_file()

    def load_buffer(self, data: bytes) -> None:
        # mpv only reads from paths, so buffers go through a temp file
        with tempfile.NamedTemporaryFile(prefix="playdeck-", delete=False) as f:
            f.write(data)
            buffer_path = f.name
        try:
            self._load(buffer_path)
        except TransportError:
            os.unlink(buffer_path)
            raise
        self._discard_buffer_file()
        self._buffer_file = buffer_path

    def _load(self, path: str) -> None:
        # Pause first so the new file opens without starting playback
        self._command("set_property", "pause", True)
        self._command("loadfile", path, "replace")
        self._loaded = True
        self._started = False
        logger.debug(f"Loaded into mpv: {path}")

    def play(self) -> None:
        if not self._loaded:
            raise TransportError("play called before any track was loaded")
        if self._property("eof-reached") is True:
            self._command("seek", 0, "absolute")
        self._command("set_property", "pause", False)
        self._started = True

    def pause(self) -> None:
        if not self._loaded:
            raise TransportError("pause called before any track was loaded")
        self._command("set_property", "pause", True)

    def stop(self) -> None:
        self._command("stop")
        self._loaded = False
        self._started = False
        self._discard_buffer_file()

    def seek_to(self, seconds: float) -> None:
        duration = self.get_duration()
        if seconds < 0 or (duration > 0 and seconds > duration):
            raise InvalidSeek(f"cannot seek to {seconds}s in a {duration:.2f}s track")
        self._command("seek", seconds, "absolute")

    def set_volume(self, volume: float) -> None:
        if not 0.0 <= volume <= 1.0:
            raise InvalidVolume(volume)
        self._command("set_property", "volume", round(volume * 100))
        self._volume = volume

    def get_volume(self) -> float:
        return self._volume

    def get_current_time(self) -> float:
        position = self._property("time-pos")
        return float(position) if position is not None else 0.0

    def get_duration(self) -> float:
        duration = self._property("duration")
        return float(duration) if duration is not None else 0.0

    def is_playing(self) -> bool:
        return self.get_state() is PlaybackState.PLAYING

    def get_state(self) -> PlaybackState:
        if not self._loaded:
            return PlaybackState.STOPPED
        if self._property("idle-active") is True or self._property("eof-reached") is True:
            return PlaybackState.STOPPED

        paused = self._property("pause")
        if paused is False:
            return PlaybackState.PLAYING
        if not self._started:
            return PlaybackState.LOADED
        return PlaybackState.PAUSED

    def close(self) -> None:
        """Stop MPV process and cleanup."""
        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired):
                pass
            self.process = None

        if self.socket_path and os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass

        self._loaded = False
        self._discard_buffer_file()
