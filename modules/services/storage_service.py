"""Key/value persistence backends with explicit result objects."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from modules.errors import StorageError

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9._-]")


@dataclass(frozen=True)
class StorageResult:
    """Outcome of a storage call: either ``value`` or ``error``."""

    value: Any = None
    error: Optional[StorageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "StorageResult":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str, key: Optional[str] = None) -> "StorageResult":
        return cls(error=StorageError(message, key=key))


class KeyValueStorage(Protocol):
    """Storage medium holding one serialized string per key."""

    def read(self, key: str) -> StorageResult:
        """Return the stored string, ``None`` when the key is missing."""

    def write(self, key: str, payload: str) -> StorageResult:
        ...

    def remove(self, key: str) -> StorageResult:
        ...

    def size(self, key: str) -> int:
        """Return the byte size of the stored value (0 if missing)."""

    def version(self, key: str) -> Optional[int]:
        """Return a token that changes whenever the value is rewritten."""


def _encoded_size(payload: str) -> int:
    return len(payload.encode("utf-8"))


class JsonFileStorage:
    """Store each key as a file under ``root``, enforcing a byte quota."""

    def __init__(self, root: Path, quota_bytes: Optional[int] = None) -> None:
        self.root = Path(root)
        self.quota_bytes = quota_bytes

    def _path_for(self, key: str) -> Path:
        return self.root / f"{_SAFE_KEY.sub('_', key)}.json"

    def read(self, key: str) -> StorageResult:
        path = self._path_for(key)
        if not path.exists():
            return StorageResult.success(None)
        try:
            return StorageResult.success(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            return StorageResult.failure(f"Cannot read {path}: {exc}", key=key)

    def write(self, key: str, payload: str) -> StorageResult:
        size = _encoded_size(payload)
        if self.quota_bytes is not None and size > self.quota_bytes:
            return StorageResult.failure(
                f"Quota exceeded: {size} bytes > {self.quota_bytes} bytes", key=key
            )
        path = self._path_for(key)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            # 先写临时文件再替换，避免读到半截内容
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fp:
                    fp.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            return StorageResult.failure(f"Cannot write {path}: {exc}", key=key)
        return StorageResult.success(size)

    def remove(self, key: str) -> StorageResult:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            return StorageResult.failure(f"Cannot remove {key}: {exc}", key=key)
        return StorageResult.success()

    def size(self, key: str) -> int:
        try:
            return self._path_for(key).stat().st_size
        except OSError:
            return 0

    def version(self, key: str) -> Optional[int]:
        try:
            return self._path_for(key).stat().st_mtime_ns
        except OSError:
            return None


class MemoryStorage:
    """Process-local storage used when history should not touch disk."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}
        self._versions: Dict[str, int] = {}
        self._counter = 0

    def _bump(self, key: str) -> None:
        self._counter += 1
        self._versions[key] = self._counter

    def read(self, key: str) -> StorageResult:
        return StorageResult.success(self._data.get(key))

    def write(self, key: str, payload: str) -> StorageResult:
        size = _encoded_size(payload)
        if self.quota_bytes is not None and size > self.quota_bytes:
            return StorageResult.failure(
                f"Quota exceeded: {size} bytes > {self.quota_bytes} bytes", key=key
            )
        self._data[key] = payload
        self._bump(key)
        return StorageResult.success(size)

    def remove(self, key: str) -> StorageResult:
        if self._data.pop(key, None) is not None:
            self._bump(key)
        return StorageResult.success()

    def size(self, key: str) -> int:
        payload = self._data.get(key)
        return _encoded_size(payload) if payload is not None else 0

    def version(self, key: str) -> Optional[int]:
        return self._versions.get(key)


def create_storage(backend: str, root: Path, quota_bytes: Optional[int] = None) -> KeyValueStorage:
    """Build the storage backend named in configuration."""
    if backend == "memory":
        logger.info("History is kept in memory only")
        return MemoryStorage(quota_bytes=quota_bytes)
    return JsonFileStorage(root, quota_bytes=quota_bytes)
