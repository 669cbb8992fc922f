from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from clientutils.exceptions import StorageQuotaExceededError
from clientutils.storage import JsonFileBackend, MemoryBackend


def test_memory_quota_counts_replaced_entry_once() -> None:
    backend = MemoryBackend(max_bytes=10)
    backend.set_item("k", "123456789")
    backend.set_item("k", "987654321")
    assert backend.get_item("k") == "987654321"

    with pytest.raises(StorageQuotaExceededError) as exc_info:
        backend.set_item("j", "1")
    assert exc_info.value.required_bytes == 12
    assert backend.get_item("j") is None


def test_file_backend_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    first = JsonFileBackend(path)
    first.set_item("a", '{"x":1}')
    first.set_item("b", "2")
    first.remove_item("b")

    second = JsonFileBackend(path)
    assert second.get_item("a") == '{"x":1}'
    assert second.get_item("b") is None
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": '{"x":1}'}


def test_file_backend_missing_file_is_empty(tmp_path: Path) -> None:
    backend = JsonFileBackend(tmp_path / "nested" / "store.json")
    assert backend.keys() == []
    backend.set_item("a", "1")
    assert (tmp_path / "nested" / "store.json").is_file()


def test_file_backend_corrupt_file_starts_empty(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "store.json"
    path.write_text("{broken", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="clientutils.storage.backends"):
        backend = JsonFileBackend(path)

    assert backend.keys() == []
    assert "not valid JSON" in caplog.text
    backend.set_item("a", "1")
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1"}


def test_file_backend_non_utf8_file_starts_empty(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "store.json"
    path.write_bytes(b"\xff\xfe{bad")

    with caplog.at_level(logging.WARNING, logger="clientutils.storage.backends"):
        backend = JsonFileBackend(path)

    assert backend.keys() == []
    assert "not valid UTF-8" in caplog.text


def test_file_backend_drops_non_string_values(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"good": "1", "bad": 2}), encoding="utf-8")
    backend = JsonFileBackend(path)
    assert backend.keys() == ["good"]


def test_file_backend_failed_write_leaves_state_unchanged(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "store.json"
    backend = JsonFileBackend(path)
    backend.set_item("a", "old")

    def _fail(*_args: object, **_kwargs: object) -> None:
        raise OSError("read-only file system")

    monkeypatch.setattr("clientutils.storage.backends.os.replace", _fail)

    with pytest.raises(OSError):
        backend.set_item("a", "new")

    assert backend.get_item("a") == "old"
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": "old"}
    assert sorted(p.name for p in tmp_path.iterdir()) == ["store.json"]


def test_file_backend_clear(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    backend = JsonFileBackend(path)
    backend.set_item("a", "1")
    backend.clear()
    assert backend.keys() == []
    assert JsonFileBackend(path).keys() == []
