"""Library domain - track references and song metadata.

This domain handles:
- Track references (file paths and in-memory buffers)
- Song metadata records
- Discovering audio files on disk
"""

# Models
from .models import BufferTrack, FileTrack, SongMetadata, Track, as_track

# Library scanning
from .scanner import (
    is_supported_format,
    collect_audio_files,
    metadata_from_filename,
    scan_library,
)

__all__ = [
    # Models
    "BufferTrack",
    "FileTrack",
    "SongMetadata",
    "Track",
    "as_track",
    # Scanner
    "is_supported_format",
    "collect_audio_files",
    "metadata_from_filename",
    "scan_library",
]
