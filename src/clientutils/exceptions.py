"""Custom exception hierarchy for clientutils."""

from __future__ import annotations


class ClientUtilsError(Exception):
    """Base exception for all clientutils errors."""


class ClientUtilsConfigError(ClientUtilsError):
    """Invalid configuration value."""


class StoreError(ClientUtilsError):
    """Key-value storage failure."""


class StorageQuotaExceededError(StoreError):
    """Backend refused a write because it would exceed its size limit."""

    def __init__(self, message: str, *, max_bytes: int, required_bytes: int) -> None:
        self.max_bytes = max_bytes
        self.required_bytes = required_bytes
        super().__init__(message)


class StoreWriteError(StoreError):
    """A value could not be serialized or written.

    The underlying exception is available as ``cause`` (and as
    ``__cause__`` when raised with ``raise ... from``).  The previously
    stored entry, if any, is left untouched.
    """

    def __init__(self, message: str, *, key: str = "", cause: BaseException | None = None) -> None:
        self.key = key
        self.cause = cause
        super().__init__(message)


class GeolocationError(ClientUtilsError):
    """Base for failed position requests."""


class GeolocationPermissionDenied(GeolocationError):
    """The position source refused access."""


class GeolocationUnavailable(GeolocationError):
    """No position could be determined (or no position source is configured)."""


class GeolocationTimeout(GeolocationError):
    """The position request did not complete within the configured timeout."""


class GeolocationUnknown(GeolocationError):
    """The position source failed with an unclassified error code."""
