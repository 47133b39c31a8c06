"""Key-value storage abstraction for scoreboard records.

Records are opaque byte blobs (JSON documents) addressed by string keys.
The engine never talks to a backend directly; repositories receive a
KeyValueStore and everything above them stays storage-agnostic.

LocalKeyValueStore keeps one file per key with owner-only permissions
(0o600) inside an owner-only directory (0o700).
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Protocol
from urllib.parse import quote, unquote

import structlog

logger = structlog.get_logger()

# Owner-only directory permissions for record storage.
_STORE_DIR_MODE = 0o700

# Owner-only file permissions for record files.
_STORE_FILE_MODE = 0o600

_RECORD_SUFFIX = ".json"


class KeyValueStore(Protocol):
    """Protocol for a synchronous get/set store keyed by string id."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def list(self, prefix: str = "") -> list[str]: ...


class InMemoryKeyValueStore:
    """Dict-backed store. Data lives only as long as the instance."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def list(self, prefix: str = "") -> list[str]:
        return sorted(key for key in self._data if key.startswith(prefix))


class LocalKeyValueStore:
    """Stores each key as a file under the configured directory.

    Keys are percent-encoded into file names so arbitrary ids map to a
    single flat directory. Writes are atomic via temp-file-then-rename.
    """

    def __init__(self, store_dir: str | Path) -> None:
        self._store_dir = Path(store_dir).resolve()

    def _path_for(self, key: str) -> Path:
        if not key:
            raise ValueError("Storage key must not be empty")
        target = (self._store_dir / f"{quote(key, safe='')}{_RECORD_SUFFIX}").resolve()
        if target.parent != self._store_dir:
            raise ValueError(f"Path traversal rejected: '{key}' resolves outside store directory")
        return target

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None when the key is absent or unreadable."""
        target = self._path_for(key)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("failed to read record", key=key, error=str(exc))
            return None

    def set(self, key: str, value: bytes) -> None:
        """Write a record atomically, creating the directory lazily on first write."""
        target = self._path_for(key)

        self._store_dir.mkdir(mode=_STORE_DIR_MODE, parents=True, exist_ok=True)
        self._store_dir.chmod(_STORE_DIR_MODE)

        fd, tmp_path = tempfile.mkstemp(dir=str(self._store_dir), suffix=".tmp", prefix=".record_")
        fd_owned = True
        try:
            with os.fdopen(fd, "wb") as f:
                fd_owned = False  # os.fdopen took ownership; it will close fd
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, _STORE_FILE_MODE)  # noqa: PTH101
            Path(tmp_path).replace(target)
        except BaseException:
            if fd_owned:
                with contextlib.suppress(OSError):
                    os.close(fd)
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise
        logger.debug("stored record", key=key, path=str(target))

    def delete(self, key: str) -> None:
        target = self._path_for(key)
        with contextlib.suppress(FileNotFoundError):
            target.unlink()

    def list(self, prefix: str = "") -> list[str]:
        if not self._store_dir.is_dir():
            return []
        keys = (unquote(path.name.removesuffix(_RECORD_SUFFIX)) for path in self._store_dir.glob(f"*{_RECORD_SUFFIX}"))
        return sorted(key for key in keys if key.startswith(prefix))
