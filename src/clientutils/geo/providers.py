"""Position providers.

A provider performs one position request and either returns a
:class:`Position` or raises :class:`PositionProviderError` carrying a
:class:`PositionErrorCode`.  Timeouts and fix caching are handled by
:class:`~clientutils.geo.Geolocator`, not here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from clientutils._constants import USER_AGENT
from clientutils.config import PositionOptions
from clientutils.geo.models import Position, PositionErrorCode, PositionProviderError

_logger = logging.getLogger(__name__)


class PositionProvider(Protocol):
    async def request_position(self, options: PositionOptions) -> Position: ...


class StaticPositionProvider:
    """Always report the same coordinates."""

    def __init__(self, lat: float, lng: float, accuracy: float | None = None) -> None:
        self._lat = lat
        self._lng = lng
        self._accuracy = accuracy

    async def request_position(self, options: PositionOptions) -> Position:
        return Position(lat=self._lat, lng=self._lng, accuracy=self._accuracy)


class HttpPositionProvider:
    """Look up the host's position from an IP-geolocation JSON endpoint.

    The endpoint must answer ``GET`` with an object carrying latitude and
    longitude (``lat``/``latitude`` and ``lng``/``lon``/``longitude``).
    IP lookups have a fixed, coarse resolution, so
    ``enable_high_accuracy`` has no effect here.
    """

    def __init__(self, url: str, *, session: aiohttp.ClientSession | None = None) -> None:
        self._url = url
        self._session = session

    @property
    def url(self) -> str:
        return self._url

    def attach_session(self, session: aiohttp.ClientSession | None) -> None:
        """Reuse *session* for requests; ``None`` opens one per request."""
        self._session = session

    async def request_position(self, options: PositionOptions) -> Position:
        if self._session is not None:
            return await self._fetch(self._session)
        async with aiohttp.ClientSession() as session:
            return await self._fetch(session)

    async def _fetch(self, session: aiohttp.ClientSession) -> Position:
        headers = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("GET %s", self._url)

        try:
            async with session.get(self._url, headers=headers) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise PositionProviderError(
                PositionErrorCode.POSITION_UNAVAILABLE,
                f"Request to {self._url} failed: {exc}",
            ) from exc

        if status in (401, 403):
            raise PositionProviderError(
                PositionErrorCode.PERMISSION_DENIED,
                f"HTTP {status} from {self._url}",
            )
        if status != 200:
            raise PositionProviderError(
                PositionErrorCode.POSITION_UNAVAILABLE,
                f"HTTP {status} from {self._url}: {text[:200]}",
            )

        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PositionProviderError(
                PositionErrorCode.POSITION_UNAVAILABLE,
                f"Invalid JSON from {self._url}: {text[:200]}",
            ) from exc
        if not isinstance(data, dict):
            raise PositionProviderError(
                PositionErrorCode.POSITION_UNAVAILABLE,
                f"Unexpected payload from {self._url}",
            )

        try:
            return Position.model_validate(data)
        except ValidationError as exc:
            raise PositionProviderError(
                PositionErrorCode.POSITION_UNAVAILABLE,
                f"No usable coordinates from {self._url}",
            ) from exc
