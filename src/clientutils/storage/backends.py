"""Raw key-value backends consumed by :class:`~clientutils.storage.KeyedStore`.

Backends deal in strings only.  Serialization and corruption handling
live one layer up.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from clientutils.exceptions import StorageQuotaExceededError

_logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Structural interface for a persistent string store.

    Keeping this a protocol lets tests hand in minimal doubles while the
    shipped backends stay concrete.
    """

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def keys(self) -> list[str]: ...


def _entries_size(entries: dict[str, str]) -> int:
    return sum(len(k) + len(v) for k, v in entries.items())


def _check_quota(entries: dict[str, str], key: str, value: str, max_bytes: int | None) -> None:
    """Raise if writing *key* would push *entries* over *max_bytes*."""
    if max_bytes is None:
        return
    required = _entries_size(entries) - (len(key) + len(entries[key]) if key in entries else 0)
    required += len(key) + len(value)
    if required > max_bytes:
        raise StorageQuotaExceededError(
            f"Writing {key!r} needs {required} bytes, quota is {max_bytes}",
            max_bytes=max_bytes,
            required_bytes=required,
        )


class MemoryBackend:
    """Process-local dict backend with an optional size quota."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self._max_bytes = max_bytes
        self._entries: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._entries.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self._entries, key, value, self._max_bytes)
        self._entries[key] = value

    def remove_item(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries)


class JsonFileBackend:
    """Backend persisting every entry in a single JSON object file.

    The file is read once on construction and rewritten atomically on
    each mutation.  In-memory state is only updated after the file
    write succeeded, so a failed write leaves both views unchanged.
    """

    def __init__(self, path: str | os.PathLike[str], max_bytes: int | None = None) -> None:
        self._path = Path(path)
        self._max_bytes = max_bytes
        self._entries = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError:
            _logger.warning("Storage file %s is not valid UTF-8; starting empty", self._path)
            return {}
        except OSError:
            _logger.warning("Could not read storage file %s; starting empty", self._path, exc_info=True)
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("Storage file %s is not valid JSON; starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            _logger.warning("Storage file %s does not hold an object; starting empty", self._path)
            return {}
        # Non-string values cannot have come from set_item; drop them.
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, entries: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle, separators=(",", ":"))
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        _logger.debug("Wrote %d entries to %s", len(entries), self._path)

    def get_item(self, key: str) -> str | None:
        return self._entries.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self._entries, key, value, self._max_bytes)
        updated = dict(self._entries)
        updated[key] = value
        self._write(updated)
        self._entries = updated

    def remove_item(self, key: str) -> None:
        if key not in self._entries:
            return
        updated = dict(self._entries)
        del updated[key]
        self._write(updated)
        self._entries = updated

    def clear(self) -> None:
        self._write({})
        self._entries = {}

    def keys(self) -> list[str]:
        return list(self._entries)
