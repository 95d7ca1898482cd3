"""Playback exceptions for error handling.

Errors fall into three categories, each with its own base class and message
prefix so callers can branch on either:

- ValidationError: the caller asked for something invalid (bad index, volume, seek)
- ResourceError: a track could not be used (missing file, unknown format, decode failure)
- TransportError: the audio engine itself failed
"""


class PlaybackError(Exception):
    """Base exception for playback operations."""

    category = "playback"

    def __init__(self, message: str):
        self.detail = message
        super().__init__(f"{self.category}: {message}")


class ValidationError(PlaybackError):
    """Raised when a requested operation has invalid arguments."""

    category = "validation"


class IndexOutOfRange(ValidationError):
    """Raised when a track index is outside the playlist."""

    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(f"track index {index} out of range (playlist has {count} tracks)")


class InvalidVolume(ValidationError):
    """Raised when volume is outside [0.0, 1.0]."""

    def __init__(self, volume: float):
        self.volume = volume
        super().__init__(f"volume must be between 0.0 and 1.0, got {volume}")


class InvalidSeek(ValidationError):
    """Raised by transports when a seek target is outside the track."""

    pass


class ResourceError(PlaybackError):
    """Base exception for track resources that cannot be used."""

    category = "resource"


class UnsupportedFormat(ResourceError):
    """Raised when a file extension is not in the supported-format set."""

    def __init__(self, path: str, message: str = None):
        self.path = path
        super().__init__(message or f"unsupported format: {path}")


class FileNotFound(ResourceError):
    """Raised when a track file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"file not found: {path}")


class DecodeError(ResourceError):
    """Raised when the engine cannot open or decode a track."""

    pass


class TransportError(PlaybackError):
    """Raised when the audio engine fails or is used out of order."""

    category = "transport"
