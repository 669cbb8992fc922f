"""Current-position lookup."""

from clientutils.config import PositionOptions
from clientutils.geo.locator import Geolocator, classify_position_error
from clientutils.geo.models import Position, PositionErrorCode, PositionProviderError
from clientutils.geo.providers import HttpPositionProvider, PositionProvider, StaticPositionProvider

__all__ = [
    "Geolocator",
    "HttpPositionProvider",
    "Position",
    "PositionErrorCode",
    "PositionOptions",
    "PositionProvider",
    "PositionProviderError",
    "StaticPositionProvider",
    "classify_position_error",
]
