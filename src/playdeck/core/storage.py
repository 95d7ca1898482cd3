"""
JSON file key-value store.

Each key maps to ``<storage_dir>/<key>.json``. Methods are coroutines so the
store satisfies the async key-value interface used by state persistence; the
blocking file I/O runs in a worker thread.
"""

import asyncio
import json
import shutil
from pathlib import Path
from typing import Any, Optional

from loguru import logger


class JSONStorage:
    """Directory-backed JSON key-value store."""

    def __init__(self, storage_dir: Path):
        self.storage_dir = Path(storage_dir)

    def _path_for(self, key: str) -> Path:
        filename = key if key.endswith(".json") else f"{key}.json"
        return self.storage_dir / filename

    async def set(self, key: str, value: Any) -> None:
        """Serialize value to JSON and write it under key."""
        path = self._path_for(key)
        content = json.dumps(value, indent=2)
        await asyncio.to_thread(_write_text, path, content)
        logger.debug(f"Stored {key} ({len(content)} bytes) at {path}")

    async def get(self, key: str) -> Optional[Any]:
        """Read and parse the value stored under key, or None if absent."""
        path = self._path_for(key)
        content = await asyncio.to_thread(_read_text, path)
        if content is None:
            return None
        return json.loads(content)

    async def has(self, key: str) -> bool:
        return await asyncio.to_thread(self._path_for(key).exists)

    async def remove(self, key: str) -> None:
        """Delete key; missing keys are ignored."""
        await asyncio.to_thread(self._path_for(key).unlink, missing_ok=True)

    async def clear(self) -> None:
        """Delete the whole storage directory."""
        await asyncio.to_thread(shutil.rmtree, self.storage_dir, ignore_errors=True)


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
