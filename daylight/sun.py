"""Sun position and the daily table of sun times (sunrise, dusk, golden hour...)."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np

from .astro import (
    J2000,
    RAD,
    altitude,
    azimuth,
    declination,
    from_julian,
    observer_angles,
    right_ascension,
    round_half_up,
    sidereal_time,
    to_days,
)

__all__ = [
    "DEFAULT_SUN_TIMES",
    "EquatorialCoordinates",
    "SunPosition",
    "SunTimeAngle",
    "SunTimes",
    "add_time",
    "get_position",
    "get_times",
    "sun_coords",
]

LOGGER = logging.getLogger(__name__)

J0 = 0.0009
PERIHELION = RAD * 102.9372  # Perihelion of the Earth.


@dataclass(frozen=True)
class EquatorialCoordinates:
    """Geocentric right ascension and declination in radians.

    Fields hold numpy arrays when the coordinates were computed for an
    array of days.
    """

    ra: float
    dec: float
    dist: Optional[float] = None  # km, only known for the moon


@dataclass(frozen=True)
class SunPosition:
    azimuth: float
    altitude: float


@dataclass(frozen=True)
class SunTimeAngle:
    """A sun altitude (degrees) and the names of its morning and evening events."""

    angle: float
    rise_name: str
    set_name: str


DEFAULT_SUN_TIMES: Tuple[SunTimeAngle, ...] = (
    SunTimeAngle(-0.833, "sunrise", "sunset"),
    SunTimeAngle(-0.3, "sunrise_end", "sunset_start"),
    SunTimeAngle(-6.0, "dawn", "dusk"),
    SunTimeAngle(-12.0, "nautical_dawn", "nautical_dusk"),
    SunTimeAngle(-18.0, "night_end", "night"),
    SunTimeAngle(6.0, "golden_hour_end", "golden_hour"),
)

_RESERVED_NAMES = frozenset({"solar_noon", "nadir"})


@dataclass(frozen=True)
class SunTimes:
    """Sun events of one day.

    ``events`` maps each configured event name to its UTC instant, or to
    ``None`` when the sun never reaches that altitude on this day.
    """

    solar_noon: datetime
    nadir: datetime
    events: Mapping[str, Optional[datetime]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "events", MappingProxyType(dict(self.events)))

    def __getitem__(self, name: str) -> Optional[datetime]:
        if name == "solar_noon":
            return self.solar_noon
        if name == "nadir":
            return self.nadir
        return self.events[name]

    def __iter__(self) -> Iterator[str]:
        yield "solar_noon"
        yield "nadir"
        yield from self.events

    def get(self, name: str, default: Optional[datetime] = None) -> Optional[datetime]:
        try:
            return self[name]
        except KeyError:
            return default

    def as_dict(self) -> dict:
        return {name: self[name] for name in self}


def add_time(
    angle: float,
    rise_name: str,
    set_name: str,
    times: Sequence[SunTimeAngle] = DEFAULT_SUN_TIMES,
) -> Tuple[SunTimeAngle, ...]:
    """Return *times* extended with a custom sun altitude.

    The input sequence is left untouched. Event names must be unique across
    the table and may not shadow ``solar_noon`` or ``nadir``.
    """

    taken = set(_RESERVED_NAMES)
    for entry in times:
        taken.update((entry.rise_name, entry.set_name))
    for name in (rise_name, set_name):
        if name in taken:
            raise ValueError(f"Sun time name already in use: {name}")
    if rise_name == set_name:
        raise ValueError(f"Rise and set names must differ: {rise_name}")
    return tuple(times) + (SunTimeAngle(float(angle), rise_name, set_name),)


def solar_mean_anomaly(d):
    return RAD * (357.5291 + 0.98560028 * d)


def ecliptic_longitude(M):
    C = RAD * (1.9148 * np.sin(M) + 0.02 * np.sin(2 * M) + 0.0003 * np.sin(3 * M))  # equation of center
    return M + C + PERIHELION + math.pi


def sun_coords(d) -> EquatorialCoordinates:
    M = solar_mean_anomaly(d)
    L = ecliptic_longitude(M)
    return EquatorialCoordinates(ra=right_ascension(L, 0.0), dec=declination(L, 0.0))


def get_position(date: datetime, lat: float, lng: float) -> SunPosition:
    """Compute the sun's azimuth and altitude (radians) for an observer."""

    lw, phi = observer_angles(lat, lng)
    d = to_days(date)
    c = sun_coords(d)
    H = sidereal_time(d, lw) - c.ra
    return SunPosition(
        azimuth=float(azimuth(H, phi, c.dec)),
        altitude=float(altitude(H, phi, c.dec)),
    )


def _julian_cycle(d: float, lw: float) -> int:
    return round_half_up(d - J0 - lw / (2 * math.pi))


def _approx_transit(Ht: float, lw: float, n: int) -> float:
    return J0 + (Ht + lw) / (2 * math.pi) + n


def _solar_transit_j(ds: float, M: float, L: float) -> float:
    return J2000 + ds + 0.0053 * math.sin(M) - 0.0069 * math.sin(2 * L)


def _hour_angle(h: float, phi: float, dec: float) -> Optional[float]:
    cos_w = (math.sin(h) - math.sin(phi) * math.sin(dec)) / (math.cos(phi) * math.cos(dec))
    if not -1.0 <= cos_w <= 1.0:
        return None
    return math.acos(cos_w)


def get_times(
    date: datetime,
    lat: float,
    lng: float,
    times: Sequence[SunTimeAngle] = DEFAULT_SUN_TIMES,
) -> SunTimes:
    """Compute solar noon, nadir and the rise/set pair of every entry in *times*.

    Parameters
    ----------
    date:
        Timezone-aware instant selecting the day.
    lat, lng:
        Observer coordinates in degrees (east-positive longitude).
    times:
        Sun altitudes to solve for, defaults to :data:`DEFAULT_SUN_TIMES`.

    Returns
    -------
    SunTimes
        Event instants in UTC. An entry whose altitude is never crossed on
        this day (polar day or night) maps both its names to ``None``.
    """

    lw, phi = observer_angles(lat, lng)
    d = to_days(date)
    n = _julian_cycle(d, lw)
    ds = _approx_transit(0.0, lw, n)

    M = float(solar_mean_anomaly(ds))
    L = float(ecliptic_longitude(M))
    dec = float(declination(L, 0.0))

    j_noon = _solar_transit_j(ds, M, L)

    events: dict = {}
    for entry in times:
        w = _hour_angle(entry.angle * RAD, phi, dec)
        if w is None:
            LOGGER.debug(
                json.dumps(
                    {
                        "event": "sun_time_undefined",
                        "angle": entry.angle,
                        "names": [entry.rise_name, entry.set_name],
                        "lat": lat,
                        "lon": lng,
                    }
                )
            )
            events[entry.rise_name] = None
            events[entry.set_name] = None
            continue
        j_set = _solar_transit_j(_approx_transit(w, lw, n), M, L)
        j_rise = j_noon - (j_set - j_noon)
        events[entry.rise_name] = from_julian(j_rise)
        events[entry.set_name] = from_julian(j_set)

    return SunTimes(
        solar_noon=from_julian(j_noon),
        nadir=from_julian(j_noon - 0.5),
        events=events,
    )
