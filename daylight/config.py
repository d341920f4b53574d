"""Environment-driven settings for the daylight service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .sun import DEFAULT_SUN_TIMES, SunTimeAngle, add_time

__all__ = ["ConfigurationError", "Settings", "load_settings"]

DEFAULT_CORS_ORIGINS = ("http://localhost:3000",)


class ConfigurationError(ValueError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: int = logging.INFO
    sun_times: Tuple[SunTimeAngle, ...] = DEFAULT_SUN_TIMES


def _parse_log_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {value}")
    return level


def _parse_extra_times(value: str) -> Tuple[SunTimeAngle, ...]:
    """Parse ``angle:rise_name:set_name`` entries separated by ``;``."""

    times = DEFAULT_SUN_TIMES
    for raw in value.split(";"):
        raw = raw.strip()
        if not raw:
            continue
        parts = [part.strip() for part in raw.split(":")]
        if len(parts) != 3 or not all(parts):
            raise ConfigurationError(
                f"Sun time must look like 'angle:rise_name:set_name': {raw}"
            )
        angle, rise_name, set_name = parts
        try:
            times = add_time(float(angle), rise_name, set_name, times)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid sun time '{raw}': {exc}") from exc
    return times


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``DAYLIGHT_*`` environment variables."""

    env = os.environ if environ is None else environ

    origins = DEFAULT_CORS_ORIGINS
    raw_origins = env.get("DAYLIGHT_CORS_ORIGINS")
    if raw_origins:
        origins = tuple(origin.strip() for origin in raw_origins.split(",") if origin.strip())

    log_level = logging.INFO
    raw_level = env.get("DAYLIGHT_LOG_LEVEL")
    if raw_level:
        log_level = _parse_log_level(raw_level)

    sun_times = DEFAULT_SUN_TIMES
    raw_times = env.get("DAYLIGHT_EXTRA_TIMES")
    if raw_times:
        sun_times = _parse_extra_times(raw_times)

    return Settings(cors_origins=origins, log_level=log_level, sun_times=sun_times)
