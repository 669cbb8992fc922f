from __future__ import annotations

import re
import threading
from pathlib import Path

import aiohttp
import pytest

import clientutils
from clientutils import Toolkit, ToolkitConfig
from clientutils.geo import HttpPositionProvider, StaticPositionProvider
from clientutils.ids import IdGenerator
from clientutils.storage import JsonFileBackend, KeyedStore, MemoryBackend
from clientutils.timing import Debounced, Perf, Throttled


def test_scenario_from_readme() -> None:
    utils = Toolkit()

    utils.storage.set("a", {"x": 1})
    assert utils.storage.get("a") == {"x": 1}
    assert utils.storage.get("missing", "fallback") == "fallback"
    assert re.match(r"^u-\d+-\d+-[0-9a-z]{5}$", utils.id.create("u"))
    assert utils.perf.measure(lambda: 42) >= 0.0


def test_namespaces_have_expected_types() -> None:
    utils = Toolkit()
    assert isinstance(utils.storage, KeyedStore)
    assert isinstance(utils.storage.backend, MemoryBackend)
    assert isinstance(utils.perf, Perf)
    assert isinstance(utils.id, IdGenerator)
    assert not utils.geo.supported


def test_toolkits_do_not_share_state() -> None:
    first, second = Toolkit(), Toolkit()
    first.storage.set("k", 1)
    assert second.storage.get("k") is None


def test_module_level_default_toolkit() -> None:
    assert isinstance(clientutils.utils, Toolkit)
    assert clientutils.utils.id.create().startswith("id-")


def test_config_selects_file_backend_and_namespace(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    config = ToolkitConfig(storage_path=str(path), storage_namespace="app", id_prefix="evt")
    utils = Toolkit(config)

    utils.storage.set("a", [1, 2])

    assert isinstance(utils.storage.backend, JsonFileBackend)
    assert Toolkit(config).storage.get("a") == [1, 2]
    assert utils.storage.backend.keys() == ["app:a"]
    assert utils.id.create().startswith("evt-")


def test_explicit_collaborators_win() -> None:
    backend = MemoryBackend()
    utils = Toolkit(
        ToolkitConfig(geo_url="https://geo.example/json"),
        backend=backend,
        provider=StaticPositionProvider(1.0, 2.0),
    )
    assert utils.storage.backend is backend
    assert utils._http_provider is None  # noqa: SLF001


def test_perf_wrappers_use_toolkit_scheduler() -> None:
    class _Scheduler:
        def __init__(self) -> None:
            self.armed: list[float] = []

        def call_later(self, delay: float, callback: object, *args: object) -> _Scheduler:
            self.armed.append(delay)
            return self

        def cancel(self) -> None:
            pass

        def now(self) -> float:
            return 0.0

        def spawn(self, awaitable: object) -> None:  # pragma: no cover
            pass

    scheduler = _Scheduler()
    utils = Toolkit(scheduler=scheduler)

    debounced = utils.perf.debounce(lambda: None, 0.25)
    throttled = utils.perf.throttle(lambda: "ran", 1.0)
    debounced()

    assert isinstance(debounced, Debounced)
    assert isinstance(throttled, Throttled)
    assert scheduler.armed == [0.25]
    assert throttled() == "ran"
    assert throttled() is None


@pytest.mark.asyncio
async def test_geo_static_provider_through_facade() -> None:
    utils = Toolkit(provider=StaticPositionProvider(52.0, 4.0, accuracy=10.0))
    position = await utils.geo.get_current()
    assert (position.lat, position.lng) == (52.0, 4.0)


@pytest.mark.asyncio
async def test_context_manager_owns_http_session() -> None:
    utils = Toolkit(ToolkitConfig(geo_url="https://geo.example/json"))
    provider = utils._http_provider  # noqa: SLF001
    assert isinstance(provider, HttpPositionProvider)

    async with utils as entered:
        assert entered is utils
        session = utils._http_session  # noqa: SLF001
        assert isinstance(session, aiohttp.ClientSession)
        assert provider._session is session  # noqa: SLF001

    assert session.closed
    assert utils._http_session is None  # noqa: SLF001
    assert provider._session is None  # noqa: SLF001


@pytest.mark.asyncio
async def test_context_manager_leaves_external_session_open() -> None:
    async with aiohttp.ClientSession() as session:
        async with Toolkit(ToolkitConfig(geo_url="https://geo.example/json"), http_session=session):
            pass
        assert not session.closed


def test_perf_debounce_outside_event_loop() -> None:
    fired = threading.Event()
    utils = Toolkit()

    utils.perf.debounce(lambda value: fired.set(), 0.01)(1)

    assert fired.wait(timeout=2.0)
