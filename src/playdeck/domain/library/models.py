"""
Track library domain models.

Contains the track reference union (file path or in-memory buffer) and the
optional per-track song metadata produced by an external scanner.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from playdeck.domain.playback.transport import TransportAdapter


@dataclass(frozen=True)
class FileTrack:
    """A track backed by a file on disk."""

    path: str

    @property
    def name(self) -> str:
        return Path(self.path).name

    @property
    def extension(self) -> str:
        """Lowercase extension without the leading dot."""
        return Path(self.path).suffix.lower().lstrip(".")

    def load_into(self, transport: "TransportAdapter") -> None:
        transport.load_file(self.path)


@dataclass(frozen=True)
class BufferTrack:
    """A track held in memory as raw encoded audio bytes."""

    data: bytes
    name: str = "buffer"

    def load_into(self, transport: "TransportAdapter") -> None:
        transport.load_buffer(self.data)

    def __repr__(self) -> str:
        return f"BufferTrack(name={self.name!r}, size={len(self.data)})"


Track = Union[FileTrack, BufferTrack]


def as_track(source: Any) -> Track:
    """Coerce a path, bytes-like object or existing track into a Track.

    Raises:
        TypeError: If source cannot be interpreted as a track
    """
    if isinstance(source, (FileTrack, BufferTrack)):
        return source
    if isinstance(source, (str, os.PathLike)):
        return FileTrack(path=os.fspath(source))
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BufferTrack(data=bytes(source))
    raise TypeError(f"Cannot use {type(source).__name__} as a track")


@dataclass(frozen=True)
class SongMetadata:
    """Display metadata for a track, keyed by the same index as the track store.

    Field names in stored JSON follow the scanner's format ('cover-url',
    'sampleRate'), so from_dict/to_dict translate them.
    """

    path: str
    title: str = ""
    artist: str = ""
    album: str = ""
    duration: int = 0  # seconds, rounded
    cover_url: str = ""
    sample_rate: int = 0
    channels: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SongMetadata":
        """Build metadata from a scanner/storage dict.

        Raises:
            ValueError: If the record has no path
        """
        path = data.get("path")
        if not path:
            raise ValueError(f"Song record has no path: {data!r}")

        return cls(
            path=str(path),
            title=data.get("title") or "",
            artist=data.get("artist") or "",
            album=data.get("album") or "",
            duration=int(round(float(data.get("duration") or 0))),
            cover_url=data.get("cover-url", data.get("cover_url")) or "",
            sample_rate=int(data.get("sampleRate", data.get("sample_rate")) or 0),
            channels=int(data.get("channels") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration": self.duration,
            "cover-url": self.cover_url,
            "path": self.path,
            "sampleRate": self.sample_rate,
            "channels": self.channels,
        }

    def display_name(self) -> str:
        """'Artist - Title' when both are known, else whatever is available."""
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        return self.title or Path(self.path).name
