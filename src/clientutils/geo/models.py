"""Position model and provider error codes."""

from __future__ import annotations

import enum
import time
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from clientutils._normalize import safe_float


class PositionErrorCode(enum.IntEnum):
    """Failure codes a position provider reports (browser geolocation numbering)."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class PositionProviderError(Exception):
    """Raised by a position provider; classified by :class:`~clientutils.geo.Geolocator`."""

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        super().__init__(message or f"position provider error code={code}")


class Position(BaseModel):
    """A single position fix.

    Parameters
    ----------
    lat : float
        Latitude in degrees.
    lng : float
        Longitude in degrees.
    accuracy : float or None
        Accuracy radius in metres, when the source reports one.
    timestamp : float
        Epoch seconds at which the fix was taken.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    lat: float = Field(validation_alias=AliasChoices("lat", "latitude"))
    lng: float = Field(validation_alias=AliasChoices("lng", "lon", "longitude"))
    accuracy: float | None = Field(default=None, validation_alias=AliasChoices("accuracy", "accuracy_m"))
    timestamp: float = Field(default_factory=time.time)

    @field_validator("lat", "lng", "accuracy", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("lat")
    @classmethod
    def _check_lat(cls, value: float) -> float:
        if not -90.0 <= value <= 90.0:
            raise ValueError(f"latitude out of range: {value}")
        return value

    @field_validator("lng")
    @classmethod
    def _check_lng(cls, value: float) -> float:
        if not -180.0 <= value <= 180.0:
            raise ValueError(f"longitude out of range: {value}")
        return value
