from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from redis_memoize.domain.errors import ConfigurationError

DEFAULT_KEY_PREFIX = "prmem:"
DEFAULT_STATS_INTERVAL = 60


def get_env_int(
    env_name: str,
    default_value: Optional[int],
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> Optional[int]:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default_value

    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_name} must be an integer, got {raw_value!r}"
        ) from exc

    if min_value is not None and value < min_value:
        raise ConfigurationError(f"{env_name} must be >= {min_value}, got {value}")
    if max_value is not None and value > max_value:
        raise ConfigurationError(f"{env_name} must be <= {max_value}, got {value}")
    return value


def get_env_bool(env_name: str, default_value: bool) -> bool:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default_value

    normalized = raw_value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False

    raise ConfigurationError(f"{env_name} must be a boolean, got {raw_value!r}")


class MemoizeSettings(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True, extra="forbid")

    key_prefix: str = Field(default=DEFAULT_KEY_PREFIX, min_length=1)
    ttl_seconds: int = Field(gt=0)
    stats_interval_seconds: Optional[int] = Field(default=DEFAULT_STATS_INTERVAL, gt=0)
    fallback_on_read_error: bool = False


def build_settings(
    settings: MemoizeSettings | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> MemoizeSettings:
    if isinstance(settings, MemoizeSettings):
        values = settings.model_dump()
    elif settings is None:
        values = {}
    else:
        values = dict(settings)
    values.update(overrides)

    try:
        return MemoizeSettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid memoize settings: {exc}") from exc


def load_settings(**overrides: Any) -> MemoizeSettings:
    values: dict[str, Any] = {
        "key_prefix": os.getenv("MEMOIZE_KEY_PREFIX", DEFAULT_KEY_PREFIX),
        "fallback_on_read_error": get_env_bool("MEMOIZE_FALLBACK_ON_READ_ERROR", False),
    }

    ttl_seconds = get_env_int("MEMOIZE_TTL_SECONDS", None, min_value=1)
    if ttl_seconds is not None:
        values["ttl_seconds"] = ttl_seconds

    raw_interval = os.getenv("MEMOIZE_STATS_INTERVAL")
    if raw_interval is not None and raw_interval.strip().lower() in {"0", "off", "none"}:
        values["stats_interval_seconds"] = None
    else:
        values["stats_interval_seconds"] = get_env_int(
            "MEMOIZE_STATS_INTERVAL", DEFAULT_STATS_INTERVAL, min_value=1
        )

    values.update(overrides)
    return build_settings(values)


def load_redis_url() -> Optional[str]:
    return os.getenv("MEMOIZE_REDIS_URL") or None
