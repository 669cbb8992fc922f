"""JSON key-value store with self-healing reads.

Persistent stores outlive the code that writes them.  An entry that no
longer parses is deleted and reported as absent instead of breaking the
caller.
"""

from __future__ import annotations

import json
import logging
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from clientutils.exceptions import StoreWriteError
from clientutils.storage.backends import MemoryBackend, StorageBackend

_logger = logging.getLogger(__name__)


class ReadStatus(StrEnum):
    OK = "ok"
    ABSENT = "absent"
    CORRUPT_RECOVERED = "corrupt_recovered"


class ReadResult(BaseModel):
    """Outcome of a single :meth:`KeyedStore.read`."""

    model_config = ConfigDict(frozen=True)

    status: ReadStatus
    value: Any = None

    @property
    def found(self) -> bool:
        return self.status is ReadStatus.OK


_ABSENT = ReadResult(status=ReadStatus.ABSENT)
_RECOVERED = ReadResult(status=ReadStatus.CORRUPT_RECOVERED)


def _serialize(value: Any) -> str:
    # NaN/Infinity are not JSON; reject them rather than store unreadable data.
    return json.dumps(value, separators=(",", ":"), allow_nan=False)


class KeyedStore:
    """Safe get/set/remove/clear over a :class:`StorageBackend`.

    Parameters
    ----------
    backend : StorageBackend or None
        Raw string store.  Defaults to a fresh :class:`MemoryBackend`.
    namespace : str or None
        When set, keys are stored as ``"<namespace>:<key>"`` and
        :meth:`clear` only removes entries under that prefix.
    """

    def __init__(self, backend: StorageBackend | None = None, *, namespace: str | None = None) -> None:
        self._backend: StorageBackend = backend if backend is not None else MemoryBackend()
        self._namespace = namespace

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def namespace(self) -> str | None:
        return self._namespace

    def _raw_key(self, key: str) -> str:
        if self._namespace is None:
            return key
        return f"{self._namespace}:{key}"

    def _discard(self, raw_key: str) -> None:
        try:
            self._backend.remove_item(raw_key)
        except OSError:
            _logger.warning("Could not remove storage entry %r", raw_key, exc_info=True)

    def read(self, key: str) -> ReadResult:
        """Read *key*, reporting whether the entry was absent or had to be healed."""
        raw_key = self._raw_key(key)
        try:
            item = self._backend.get_item(raw_key)
        except OSError:
            _logger.warning("Storage read failed for %r; discarding entry", raw_key, exc_info=True)
            self._discard(raw_key)
            return _RECOVERED

        if item is None:
            return _ABSENT

        try:
            value = json.loads(item)
        except (ValueError, RecursionError):
            _logger.warning("Discarding corrupt storage entry %r", raw_key)
            self._discard(raw_key)
            return _RECOVERED
        return ReadResult(status=ReadStatus.OK, value=value)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for *key*, or *default* if absent or corrupt."""
        result = self.read(key)
        return result.value if result.found else default

    def set(self, key: str, value: Any) -> None:
        """Serialize *value* as JSON and store it under *key*.

        Raises
        ------
        StoreWriteError
            The value is not JSON-serializable or the backend rejected the
            write.  The previous entry, if any, is unchanged.
        """
        try:
            item = _serialize(value)
        except (TypeError, ValueError, RecursionError) as exc:
            raise StoreWriteError(f"storage.set failed for {key!r}: {exc}", key=key, cause=exc) from exc

        try:
            self._backend.set_item(self._raw_key(key), item)
        except Exception as exc:
            raise StoreWriteError(f"storage.set failed for {key!r}: {exc}", key=key, cause=exc) from exc

    def remove(self, key: str) -> None:
        self._discard(self._raw_key(key))

    def clear(self) -> None:
        """Remove every entry owned by this store."""
        if self._namespace is None:
            try:
                self._backend.clear()
            except OSError:
                _logger.warning("Could not clear storage backend", exc_info=True)
            return

        prefix = f"{self._namespace}:"
        try:
            raw_keys = self._backend.keys()
        except OSError:
            _logger.warning("Could not list storage keys for %r", self._namespace, exc_info=True)
            return
        for raw_key in raw_keys:
            if raw_key.startswith(prefix):
                self._discard(raw_key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        try:
            return self._backend.get_item(self._raw_key(key)) is not None
        except OSError:
            _logger.warning("Storage read failed for %r", self._raw_key(key), exc_info=True)
            return False
