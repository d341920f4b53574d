"""Time scales and spherical astronomy primitives shared by the sun and moon code.

The formulas follow http://aa.quae.nl/en/reken/zonpositie.html. Every
primitive is written against :mod:`numpy` so it evaluates equally on scalars
and on arrays of days.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import Tuple

import numpy as np

__all__ = [
    "CoordinateError",
    "J1970",
    "J2000",
    "RAD",
    "astro_refraction",
    "azimuth",
    "altitude",
    "check_coordinates",
    "day_start",
    "declination",
    "from_julian",
    "observer_angles",
    "right_ascension",
    "round_half_up",
    "shift_days",
    "sidereal_time",
    "to_days",
    "to_julian",
]

RAD = math.pi / 180.0

J1970 = 2440588.0
J2000 = 2451545.0
OBLIQUITY = RAD * 23.4397  # Obliquity of the Earth.

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_DAY = timedelta(days=1)
_MILLISECOND = timedelta(milliseconds=1)


class CoordinateError(ValueError):
    """Raised when a latitude or longitude lies outside the geographic domain."""


def _require_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError("datetime must be timezone-aware")
    return dt


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going towards +infinity."""

    return math.floor(value + 0.5)


def to_julian(dt: datetime) -> float:
    """Return the Julian day of the timezone-aware instant *dt*."""

    return (_require_aware(dt) - _UNIX_EPOCH) / _DAY - 0.5 + J1970


def from_julian(j: float) -> datetime:
    """Return the UTC instant for Julian day *j*, rounded to the millisecond."""

    elapsed = timedelta(days=j + 0.5 - J1970)
    milliseconds = round_half_up(elapsed / _MILLISECOND)
    return _UNIX_EPOCH + milliseconds * _MILLISECOND


def to_days(dt: datetime) -> float:
    """Days elapsed since the J2000 epoch."""

    return to_julian(dt) - J2000


def shift_days(dt: datetime, days: int) -> datetime:
    """Move *dt* by whole calendar days, keeping its wall-clock time.

    Arithmetic happens in the instant's own timezone, so a shift across a
    daylight-saving change keeps the local hour rather than the elapsed
    seconds.
    """

    _require_aware(dt)
    shifted = dt.replace(tzinfo=None) + timedelta(days=days)
    return shifted.replace(tzinfo=dt.tzinfo)


def day_start(dt: datetime, in_utc: bool = False) -> datetime:
    """Return midnight of the day containing *dt*.

    With ``in_utc`` the boundary is UTC midnight, otherwise midnight in the
    timezone *dt* is expressed in.
    """

    _require_aware(dt)
    if in_utc:
        dt = dt.astimezone(UTC)
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def check_coordinates(lat: float, lng: float) -> None:
    """Reject latitudes outside [-90, 90] and longitudes outside [-180, 180]."""

    if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
        raise CoordinateError(f"Latitude out of range [-90, 90]: {lat}")
    if not (math.isfinite(lng) and -180.0 <= lng <= 180.0):
        raise CoordinateError(f"Longitude out of range [-180, 180]: {lng}")


def observer_angles(lat: float, lng: float) -> Tuple[float, float]:
    """Return ``(lw, phi)``: west longitude and latitude in radians."""

    check_coordinates(lat, lng)
    return RAD * -lng, RAD * lat


def right_ascension(l, b):
    return np.arctan2(np.sin(l) * math.cos(OBLIQUITY) - np.tan(b) * math.sin(OBLIQUITY), np.cos(l))


def declination(l, b):
    return np.arcsin(np.sin(b) * math.cos(OBLIQUITY) + np.cos(b) * math.sin(OBLIQUITY) * np.sin(l))


def azimuth(H, phi, dec):
    """Azimuth measured from south, positive westward."""

    return np.arctan2(np.sin(H), np.cos(H) * np.sin(phi) - np.tan(dec) * np.cos(phi))


def altitude(H, phi, dec):
    return np.arcsin(np.sin(phi) * np.sin(dec) + np.cos(phi) * np.cos(dec) * np.cos(H))


def sidereal_time(d, lw):
    return RAD * (280.16 + 360.9856235 * d) - lw


def astro_refraction(h):
    """Atmospheric refraction in radians for apparent altitude *h*.

    Meeus, *Astronomical Algorithms* (2nd ed.), formula 16.4, converted to
    radians. Negative altitudes are evaluated at the horizon, the formula
    diverges at h = -0.08901179.
    """

    h = np.maximum(h, 0.0)
    return 0.0002967 / np.tan(h + 0.00312536 / (h + 0.08901179))
