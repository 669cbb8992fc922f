"""Persistent key-value storage.

:class:`KeyedStore` layers JSON serialization and self-healing reads
over a raw string :class:`StorageBackend`.
"""

from clientutils.storage.backends import JsonFileBackend, MemoryBackend, StorageBackend
from clientutils.storage.store import KeyedStore, ReadResult, ReadStatus

__all__ = [
    "JsonFileBackend",
    "KeyedStore",
    "MemoryBackend",
    "ReadResult",
    "ReadStatus",
    "StorageBackend",
]
