"""
File-backed Local Storage

Each key is stored as one UTF-8 file inside a data directory.

DESIGN DECISION: Writes go to a temporary file in the same directory and
are moved into place with os.replace(). A crash mid-write leaves the
previous value intact instead of a truncated file, which matters because
the engine rewrites the whole collection on every mutation.

File I/O runs in a worker thread so a slow disk does not stall the
event loop that background syncs run on.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from myexpenses.services.storage.interface import LocalStorageInterface, StorageError


logger = structlog.get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
_SUFFIX = ".json"


class JsonFileStorage(LocalStorageInterface):
    """
    Stores each key as `<data_dir>/<key>.json`.

    Keys are restricted to letters, digits, '_', '-' and '.' so they
    map onto file names safely.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir).expanduser()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}", key=key)
        return self._data_dir / f"{key}{_SUFFIX}"

    def _write(self, path: Path, value: str) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=".tmp-", suffix=_SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def save(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value)
        except OSError as e:
            raise StorageError(f"Failed to save {key!r}: {e}", key=key) from e

    async def load(self, key: str) -> Optional[str]:
        try:
            path = self._path_for(key)
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, StorageError) as e:
            logger.warning("storage_load_failed", key=key, error=str(e))
            return None

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {key!r}: {e}", key=key) from e

    def _clear(self) -> None:
        if not self._data_dir.exists():
            return
        for path in self._data_dir.glob(f"*{_SUFFIX}"):
            path.unlink(missing_ok=True)

    async def clear(self) -> None:
        try:
            await asyncio.to_thread(self._clear)
        except OSError as e:
            raise StorageError(f"Failed to clear {self._data_dir}: {e}") from e
