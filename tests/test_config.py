from __future__ import annotations

import os

import pytest

from clientutils.config import PositionOptions, ToolkitConfig
from clientutils.exceptions import ClientUtilsConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("CLIENTUTILS_"):
            monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = ToolkitConfig()
    assert config.storage_path is None
    assert config.storage_namespace is None
    assert config.geo_url is None
    assert config.id_prefix == "id"
    assert config.geo == PositionOptions(enable_high_accuracy=True, timeout=10.0, maximum_age=600.0)


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLIENTUTILS_STORAGE_PATH", "/tmp/store.json")
    monkeypatch.setenv("CLIENTUTILS_STORAGE_NAMESPACE", "app")
    monkeypatch.setenv("CLIENTUTILS_STORAGE_MAX_BYTES", "4096")
    monkeypatch.setenv("CLIENTUTILS_GEO_URL", "https://geo.example/json")
    monkeypatch.setenv("CLIENTUTILS_GEO_TIMEOUT", "2.5")
    monkeypatch.setenv("CLIENTUTILS_GEO_MAXIMUM_AGE", "30")
    monkeypatch.setenv("CLIENTUTILS_GEO_HIGH_ACCURACY", "off")
    monkeypatch.setenv("CLIENTUTILS_ID_PREFIX", "evt")

    config = ToolkitConfig.from_env()

    assert config.storage_path == "/tmp/store.json"
    assert config.storage_namespace == "app"
    assert config.storage_max_bytes == 4096
    assert config.geo_url == "https://geo.example/json"
    assert config.geo == PositionOptions(enable_high_accuracy=False, timeout=2.5, maximum_age=30.0)
    assert config.id_prefix == "evt"


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLIENTUTILS_ID_PREFIX", "evt")
    monkeypatch.setenv("CLIENTUTILS_STORAGE_MAX_BYTES", "not-used")
    monkeypatch.setenv("CLIENTUTILS_GEO_TIMEOUT", "2.5")

    config = ToolkitConfig.from_env(id_prefix="req", storage_max_bytes=10, geo={"maximum_age": 0.0})

    assert config.id_prefix == "req"
    assert config.storage_max_bytes == 10
    assert config.geo.timeout == 2.5
    assert config.geo.maximum_age == 0.0


def test_from_env_geo_options_instance_replaces_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLIENTUTILS_GEO_TIMEOUT", "2.5")
    options = PositionOptions(timeout=1.0)
    assert ToolkitConfig.from_env(geo=options).geo == options


def test_from_env_unknown_bool_keeps_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLIENTUTILS_GEO_HIGH_ACCURACY", "maybe")
    assert ToolkitConfig.from_env().geo.enable_high_accuracy is True


def test_from_env_empty_strings_are_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLIENTUTILS_STORAGE_PATH", "")
    assert ToolkitConfig.from_env().storage_path is None


@pytest.mark.parametrize("key", ["CLIENTUTILS_GEO_TIMEOUT", "CLIENTUTILS_STORAGE_MAX_BYTES"])
def test_from_env_bad_number_raises(monkeypatch: pytest.MonkeyPatch, key: str) -> None:
    monkeypatch.setenv(key, "ten")
    with pytest.raises(ClientUtilsConfigError, match=key):
        ToolkitConfig.from_env()
