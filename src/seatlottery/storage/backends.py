"""Key-value store backends.

``MemoryStore`` mirrors browser local storage: values are kept as JSON text
and an optional byte quota can be imposed.  ``JsonFileStore`` keeps one
``<key>.json`` document per key inside a directory.
"""

from __future__ import annotations

import errno
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .interfaces import StorageQuotaExceeded, StorageSerializationError, StorageUnavailable

__all__ = ["JsonFileStore", "MemoryStore", "StorageUsage"]

logger = logging.getLogger(__name__)


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise StorageSerializationError(f"value for '{key}' is not JSON-serialisable") from exc


def _size(key: str, payload: str) -> int:
    return len(key.encode("utf-8")) + len(payload.encode("utf-8"))


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageSerializationError(f"stored value for '{key}' is not valid JSON") from exc


@dataclass(frozen=True)
class StorageUsage:
    used: int
    total: int | None

    @property
    def available(self) -> int | None:
        return None if self.total is None else max(0, self.total - self.used)

    @property
    def used_pct(self) -> int:
        if not self.total:
            return 0
        return round(100 * self.used / self.total)


class MemoryStore:
    def __init__(self, *, quota_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._quota = quota_bytes
        self.available = True

    def _ensure_available(self) -> None:
        if not self.available:
            raise StorageUnavailable("storage is not available")

    def save(self, key: str, value: Any) -> None:
        self._ensure_available()
        payload = _encode(key, value)
        if self._quota is not None:
            others = sum(_size(k, v) for k, v in self._data.items() if k != key)
            if others + _size(key, payload) > self._quota:
                raise StorageQuotaExceeded(f"saving '{key}' would exceed the {self._quota}-byte quota")
        self._data[key] = payload

    def load(self, key: str) -> Any | None:
        self._ensure_available()
        raw = self._data.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def remove(self, key: str) -> None:
        self._ensure_available()
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def usage(self) -> StorageUsage:
        used = sum(_size(k, v) for k, v in self._data.items())
        return StorageUsage(used=used, total=self._quota)


class JsonFileStore:
    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        payload = _encode(key, value)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            if exc.errno in (errno.ENOSPC, errno.EDQUOT):
                raise StorageQuotaExceeded(f"no space left to save '{key}'") from exc
            raise StorageUnavailable(f"could not write '{path}'") from exc
        logger.debug("Saved %s", key, extra={"path": str(path), "bytes": len(payload)})

    def load(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            with path.open("r", encoding="utf-8") as fh:
                raw = fh.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageUnavailable(f"could not read '{path}'") from exc
        return _decode(key, raw)

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"could not remove '{path}'") from exc

    def usage(self) -> StorageUsage:
        if not self._directory.exists():
            return StorageUsage(used=0, total=None)
        used = sum(path.stat().st_size for path in self._directory.glob("*.json"))
        return StorageUsage(used=used, total=None)
