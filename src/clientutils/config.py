"""Toolkit configuration for clientutils."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from clientutils._constants import DEFAULT_ID_PREFIX, ENV_PREFIX, GEO_MAXIMUM_AGE_S, GEO_TIMEOUT_S
from clientutils.exceptions import ClientUtilsConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value)
    except ValueError as exc:
        raise ClientUtilsConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class PositionOptions:
    """Options applied to every position request.

    These mirror the knobs a browser geolocation request takes.
    """

    enable_high_accuracy: bool = True
    timeout: float = GEO_TIMEOUT_S
    maximum_age: float = GEO_MAXIMUM_AGE_S


@dataclasses.dataclass(frozen=True)
class ToolkitConfig:
    """Toolkit configuration.

    Parameters
    ----------
    storage_path : str or None
        JSON file used as the persistent store.  ``None`` keeps entries
        in memory for the lifetime of the process.
    storage_namespace : str or None
        Key prefix owned by the toolkit's store.  When set, ``clear()``
        only removes entries under this prefix.
    storage_max_bytes : int or None
        Size limit for the backend (sum of key and value lengths).
        ``None`` disables the limit.
    geo_url : str or None
        IP-geolocation JSON endpoint queried by the HTTP position
        provider.  ``None`` leaves geolocation unsupported.
    geo : PositionOptions
        Accuracy preference, request timeout and cached-fix tolerance.
    id_prefix : str
        Default prefix for generated identifiers.
    """

    storage_path: str | None = None
    storage_namespace: str | None = None
    storage_max_bytes: int | None = None
    geo_url: str | None = None
    geo: PositionOptions = dataclasses.field(default_factory=PositionOptions)
    id_prefix: str = DEFAULT_ID_PREFIX

    @classmethod
    def from_env(cls, **overrides: Any) -> ToolkitConfig:
        """Create configuration from ``CLIENTUTILS_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        ClientUtilsConfigError
            A numeric variable could not be parsed.
        """
        env = os.environ

        geo_kwargs: dict[str, Any] = {}
        timeout_env = env.get(f"{ENV_PREFIX}GEO_TIMEOUT")
        if timeout_env is not None:
            geo_kwargs["timeout"] = _env_number(f"{ENV_PREFIX}GEO_TIMEOUT", timeout_env, float)
        max_age_env = env.get(f"{ENV_PREFIX}GEO_MAXIMUM_AGE")
        if max_age_env is not None:
            geo_kwargs["maximum_age"] = _env_number(f"{ENV_PREFIX}GEO_MAXIMUM_AGE", max_age_env, float)
        geo_kwargs["enable_high_accuracy"] = _env_bool(env.get(f"{ENV_PREFIX}GEO_HIGH_ACCURACY"), True)

        # Allow overriding geo fields via a nested dict
        geo_overrides = overrides.pop("geo", None)
        if isinstance(geo_overrides, dict):
            geo_kwargs.update(geo_overrides)
        elif isinstance(geo_overrides, PositionOptions):
            geo_kwargs = dataclasses.asdict(geo_overrides)

        _ENV_CONFIG_MAP = {
            f"{ENV_PREFIX}STORAGE_PATH": "storage_path",
            f"{ENV_PREFIX}STORAGE_NAMESPACE": "storage_namespace",
            f"{ENV_PREFIX}GEO_URL": "geo_url",
            f"{ENV_PREFIX}ID_PREFIX": "id_prefix",
        }
        config_kwargs: dict[str, Any] = {"geo": PositionOptions(**geo_kwargs)}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        max_bytes_env = env.get(f"{ENV_PREFIX}STORAGE_MAX_BYTES")
        if max_bytes_env is not None and "storage_max_bytes" not in overrides:
            config_kwargs["storage_max_bytes"] = _env_number(
                f"{ENV_PREFIX}STORAGE_MAX_BYTES",
                max_bytes_env,
                int,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
