"""Facade bundling the storage, geo, perf and id helpers."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from clientutils.config import ToolkitConfig
from clientutils.geo.locator import Geolocator
from clientutils.geo.providers import HttpPositionProvider, PositionProvider
from clientutils.ids import IdGenerator
from clientutils.storage.backends import JsonFileBackend, MemoryBackend, StorageBackend
from clientutils.storage.store import KeyedStore
from clientutils.timing import Perf, Scheduler

_logger = logging.getLogger(__name__)


def _build_backend(config: ToolkitConfig) -> StorageBackend:
    if config.storage_path:
        return JsonFileBackend(config.storage_path, max_bytes=config.storage_max_bytes)
    return MemoryBackend(max_bytes=config.storage_max_bytes)


class Toolkit:
    """Four independent helper namespaces.

    * ``storage`` -- :class:`KeyedStore` (get, set, remove, clear)
    * ``geo`` -- :class:`Geolocator` (get_current)
    * ``perf`` -- :class:`Perf` (measure, debounce, throttle)
    * ``id`` -- :class:`IdGenerator` (create)

    The namespaces share no state.  Usage::

        async with Toolkit(ToolkitConfig.from_env()) as utils:
            utils.storage.set("a", {"x": 1})
            here = await utils.geo.get_current()

    Entering the context creates an :class:`aiohttp.ClientSession` for
    the HTTP position provider unless one was passed in.
    """

    def __init__(
        self,
        config: ToolkitConfig | None = None,
        *,
        backend: StorageBackend | None = None,
        provider: PositionProvider | None = None,
        scheduler: Scheduler | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config if config is not None else ToolkitConfig()
        self._external_session = http_session is not None
        self._http_session = http_session
        self._http_provider: HttpPositionProvider | None = None
        if provider is None and self._config.geo_url:
            self._http_provider = HttpPositionProvider(self._config.geo_url, session=http_session)
            provider = self._http_provider

        self.storage = KeyedStore(
            backend if backend is not None else _build_backend(self._config),
            namespace=self._config.storage_namespace,
        )
        self.geo = Geolocator(provider, self._config.geo)
        self.perf = Perf(scheduler)
        self.id = IdGenerator(self._config.id_prefix)

    @property
    def config(self) -> ToolkitConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Toolkit:
        if self._http_provider is not None and self._http_session is None:
            self._http_session = aiohttp.ClientSession()
            self._http_provider.attach_session(self._http_session)
            _logger.debug("Opened HTTP session for %s", self._http_provider.url)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            if self._http_provider is not None:
                self._http_provider.attach_session(None)
