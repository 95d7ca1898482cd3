"""
Audio file discovery.

Collects playable files from the configured library paths (or paths given on
the command line) and builds filename-derived song records for them. Reading
embedded tags is left to external scanners that write the songs list.
"""

from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from playdeck.core.config import Config

from .models import SongMetadata


def is_supported_format(local_path: Path, supported_formats: Iterable[str]) -> bool:
    """Check if file format is supported."""
    return local_path.suffix.lower() in {
        fmt.lower() if fmt.startswith(".") else f".{fmt.lower()}" for fmt in supported_formats
    }


def collect_audio_files(
    paths: Iterable[str],
    supported_formats: Iterable[str],
    recursive: bool = True,
) -> list[Path]:
    """Expand files and directories into a sorted list of supported audio files.

    Missing paths and unsupported files are logged and skipped.
    """
    formats = list(supported_formats)
    files: list[Path] = []

    for raw_path in paths:
        path = Path(raw_path).expanduser()
        if not path.exists():
            logger.warning(f"Library path does not exist: {path}")
            continue

        if path.is_file():
            if is_supported_format(path, formats):
                files.append(path)
            else:
                logger.warning(f"Skipping unsupported file: {path}")
            continue

        try:
            candidates = path.rglob("*") if recursive else path.glob("*")
            found = sorted(
                p for p in candidates if p.is_file() and is_supported_format(p, formats)
            )
        except PermissionError:
            logger.warning(f"Permission denied accessing: {path}")
            continue

        logger.info(f"Found {len(found)} audio files in {path}")
        files.extend(found)

    return files


def metadata_from_filename(local_path: Path) -> SongMetadata:
    """Derive title and artist from an 'Artist - Title.ext' file name."""
    title = local_path.stem
    artist = ""

    if " - " in title:
        artist, title = (part.strip() for part in title.split(" - ", 1))

    return SongMetadata(path=str(local_path), title=title, artist=artist)


def scan_library(config: Config, paths: Optional[Iterable[str]] = None) -> list[SongMetadata]:
    """Scan paths (default: the configured library paths) into song records."""
    library = config.library
    files = collect_audio_files(
        paths if paths is not None else library.library_paths,
        library.supported_formats,
        recursive=library.scan_recursive,
    )
    songs = [metadata_from_filename(path) for path in files]
    logger.info(f"Library scan complete: {len(songs)} tracks found")
    return songs
