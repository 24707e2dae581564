from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

__all__ = [
    "KeyValueStore",
    "StorageError",
    "StorageQuotaExceeded",
    "StorageSerializationError",
    "StorageUnavailable",
]


class StorageError(RuntimeError):
    """Base class for every failure raised by a storage backend."""


class StorageUnavailable(StorageError):
    pass


class StorageQuotaExceeded(StorageError):
    pass


class StorageSerializationError(StorageError):
    """Value could not be encoded, or stored bytes could not be decoded."""


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal persistence contract; values must be JSON-serialisable."""

    def save(self, key: str, value: Any) -> None: ...

    def load(self, key: str) -> Any | None: ...

    def remove(self, key: str) -> None: ...
