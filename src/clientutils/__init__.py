"""clientutils - storage, geolocation, timing and id helpers behind one facade."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyclientutils")
except PackageNotFoundError:
    __version__ = "0+local"
from clientutils.config import PositionOptions, ToolkitConfig
from clientutils.exceptions import (
    ClientUtilsConfigError,
    ClientUtilsError,
    GeolocationError,
    GeolocationPermissionDenied,
    GeolocationTimeout,
    GeolocationUnavailable,
    GeolocationUnknown,
    StorageQuotaExceededError,
    StoreError,
    StoreWriteError,
)
from clientutils.geo import Geolocator, HttpPositionProvider, Position, StaticPositionProvider
from clientutils.ids import GeneratedId, IdGenerator
from clientutils.storage import JsonFileBackend, KeyedStore, MemoryBackend
from clientutils.timing import AsyncioScheduler, ThreadScheduler, debounce, measure, throttle
from clientutils.toolkit import Toolkit

#: Default toolkit: in-memory storage, no position provider.
utils = Toolkit()

__all__ = [
    "__version__",
    "AsyncioScheduler",
    "ClientUtilsConfigError",
    "ClientUtilsError",
    "GeneratedId",
    "GeolocationError",
    "GeolocationPermissionDenied",
    "GeolocationTimeout",
    "GeolocationUnavailable",
    "GeolocationUnknown",
    "Geolocator",
    "HttpPositionProvider",
    "IdGenerator",
    "JsonFileBackend",
    "KeyedStore",
    "MemoryBackend",
    "Position",
    "PositionOptions",
    "StaticPositionProvider",
    "StorageQuotaExceededError",
    "StoreError",
    "StoreWriteError",
    "ThreadScheduler",
    "Toolkit",
    "ToolkitConfig",
    "debounce",
    "measure",
    "throttle",
    "utils",
]
