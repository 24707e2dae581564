"""Persistence collaborators: store protocol, backends and the typed repository."""

from .backends import JsonFileStore, MemoryStore, StorageUsage
from .interfaces import (
    KeyValueStore,
    StorageError,
    StorageQuotaExceeded,
    StorageSerializationError,
    StorageUnavailable,
)
from .repository import ClassroomRepository, StorageKeys

__all__ = [
    "ClassroomRepository",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "StorageError",
    "StorageKeys",
    "StorageQuotaExceeded",
    "StorageSerializationError",
    "StorageUnavailable",
    "StorageUsage",
]
