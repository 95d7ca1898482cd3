"""
Ordered track list with parallel song metadata.

Tracks are addressed by index only. The store has a single owner (the
orchestrator) and is never shared between threads.
"""

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from loguru import logger

from playdeck.core.config import DEFAULT_SUPPORTED_FORMATS
from playdeck.domain.library.models import FileTrack, SongMetadata, Track, as_track

from .exceptions import FileNotFound, IndexOutOfRange, UnsupportedFormat


def normalize_formats(formats: Iterable[str]) -> frozenset[str]:
    """Lowercase extensions without leading dots ('.MP3' -> 'mp3')."""
    return frozenset(fmt.lower().lstrip(".") for fmt in formats)


class TrackStore:
    """Index-addressable tracks plus optional metadata per track."""

    def __init__(self, supported_formats: Optional[Iterable[str]] = None):
        self.supported_formats = normalize_formats(
            supported_formats if supported_formats is not None else DEFAULT_SUPPORTED_FORMATS
        )
        self._tracks: list[Track] = []
        self._metadata: list[Optional[SongMetadata]] = []

    def __len__(self) -> int:
        return len(self._tracks)

    def count(self) -> int:
        return len(self._tracks)

    def is_supported(self, path: Union[str, os.PathLike]) -> bool:
        return Path(path).suffix.lower().lstrip(".") in self.supported_formats

    def load_tracks(self, sources: Iterable[Any]) -> int:
        """Replace the store with sources, dropping files of unsupported formats.

        Buffers are accepted without inspecting their contents.

        Returns:
            Number of tracks kept
        """
        tracks: list[Track] = []
        for source in sources:
            track = as_track(source)
            if isinstance(track, FileTrack) and not self.is_supported(track.path):
                logger.warning(f"Skipping unsupported format: {track.path}")
                continue
            tracks.append(track)

        self._tracks = tracks
        self._metadata = [None] * len(tracks)
        logger.info(f"Loaded {len(tracks)} tracks")
        return len(tracks)

    def load_songs(self, songs: Iterable[Union[SongMetadata, dict]]) -> int:
        """Replace tracks and metadata together from scanner song records.

        Raises:
            ValueError: If a record has no path (nothing is replaced)
        """
        metadata = [
            song if isinstance(song, SongMetadata) else SongMetadata.from_dict(song)
            for song in songs
        ]
        self._tracks = [FileTrack(path=song.path) for song in metadata]
        self._metadata = list(metadata)
        logger.info(f"Loaded {len(metadata)} songs")
        return len(metadata)

    def add_track(self, source: Any, metadata: Optional[SongMetadata] = None) -> Track:
        """Append a track.

        Raises:
            UnsupportedFormat: If a file track has an unknown extension
            FileNotFound: If a file track does not exist right now
        """
        track = as_track(source)
        if isinstance(track, FileTrack):
            if not self.is_supported(track.path):
                raise UnsupportedFormat(track.path)
            if not os.path.isfile(track.path):
                raise FileNotFound(track.path)

        self._tracks.append(track)
        self._metadata.append(metadata)
        logger.debug(f"Added track #{len(self._tracks) - 1}: {track.name}")
        return track

    def remove_track(self, index: int) -> Track:
        """Remove and return the track at index, with its metadata.

        Raises:
            IndexOutOfRange: If index is not valid
        """
        self._check_index(index)
        self._metadata.pop(index)
        track = self._tracks.pop(index)
        logger.debug(f"Removed track #{index}: {track.name}")
        return track

    def clear(self) -> None:
        self._tracks = []
        self._metadata = []

    def track_at(self, index: int) -> Track:
        self._check_index(index)
        return self._tracks[index]

    def metadata_at(self, index: int) -> Optional[SongMetadata]:
        """Metadata for index, or None when absent or index is invalid."""
        if 0 <= index < len(self._metadata):
            return self._metadata[index]
        return None

    def tracks(self) -> list[Track]:
        return list(self._tracks)

    def total_duration(self) -> int:
        """Sum of known metadata durations in seconds."""
        return sum(meta.duration for meta in self._metadata if meta is not None)

    def display_name(self, index: int) -> str:
        meta = self.metadata_at(index)
        if meta is not None:
            return meta.display_name()
        track = self.track_at(index)
        return track.name

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or not 0 <= index < len(self._tracks):
            raise IndexOutOfRange(index, len(self._tracks))
