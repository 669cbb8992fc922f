"""One-shot current-position requests with timeout and fix caching."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from clientutils.config import PositionOptions
from clientutils.exceptions import (
    GeolocationError,
    GeolocationPermissionDenied,
    GeolocationTimeout,
    GeolocationUnavailable,
    GeolocationUnknown,
)
from clientutils.geo.models import Position, PositionErrorCode, PositionProviderError
from clientutils.geo.providers import PositionProvider

_logger = logging.getLogger(__name__)


def classify_position_error(code: int) -> GeolocationError:
    """Map a provider error code to the matching exception."""
    if code == PositionErrorCode.PERMISSION_DENIED:
        return GeolocationPermissionDenied("Location permission denied")
    if code == PositionErrorCode.POSITION_UNAVAILABLE:
        return GeolocationUnavailable("Location unavailable")
    if code == PositionErrorCode.TIMEOUT:
        return GeolocationTimeout("Location timeout")
    return GeolocationUnknown("Unknown geolocation error")


class Geolocator:
    """Request the current position from a :class:`PositionProvider`.

    A fix no older than ``options.maximum_age`` seconds is reused without
    asking the provider again.  Requests that outlast ``options.timeout``
    raise :class:`GeolocationTimeout`.
    """

    def __init__(
        self,
        provider: PositionProvider | None = None,
        options: PositionOptions | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._options = options if options is not None else PositionOptions()
        self._clock = clock
        self._cached: Position | None = None
        self._cached_at: float | None = None

    @property
    def options(self) -> PositionOptions:
        return self._options

    @property
    def supported(self) -> bool:
        return self._provider is not None

    def _cached_fix(self) -> Position | None:
        if self._cached is None or self._cached_at is None:
            return None
        if self._options.maximum_age <= 0:
            return None
        if self._clock() - self._cached_at > self._options.maximum_age:
            return None
        return self._cached

    async def get_current(self) -> Position:
        """Return the current position.

        Raises
        ------
        GeolocationPermissionDenied, GeolocationUnavailable,
        GeolocationTimeout, GeolocationUnknown
            Classified from the provider's error code.  Any other provider
            failure is raised as :class:`GeolocationUnknown`.
        """
        if self._provider is None:
            raise GeolocationUnavailable("Geolocation not supported")

        cached = self._cached_fix()
        if cached is not None:
            _logger.debug("Using cached position fix")
            return cached

        try:
            async with asyncio.timeout(self._options.timeout):
                position = await self._provider.request_position(self._options)
        except TimeoutError as exc:
            raise GeolocationTimeout("Location timeout") from exc
        except PositionProviderError as exc:
            _logger.debug("Position request failed code=%s: %s", exc.code, exc)
            raise classify_position_error(exc.code) from exc
        except GeolocationError:
            raise
        except Exception as exc:
            _logger.debug("Position provider raised %s", type(exc).__name__, exc_info=True)
            raise GeolocationUnknown("Unknown geolocation error") from exc

        self._cached = position
        self._cached_at = self._clock()
        return position
