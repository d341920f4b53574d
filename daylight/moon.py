"""Moon position, illumination and daily rise/set times.

Positions follow http://aa.quae.nl/en/reken/hemelpositie.html, illumination
follows Meeus, *Astronomical Algorithms* (2nd ed.) chapter 48, and rise/set
times use the quadratic interpolation described at
http://www.stargazing.net/kepler/moonrise.html.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np

from .astro import (
    RAD,
    altitude,
    astro_refraction,
    azimuth,
    day_start,
    declination,
    from_julian,
    observer_angles,
    right_ascension,
    sidereal_time,
    to_days,
    to_julian,
)
from .sun import EquatorialCoordinates, sun_coords

__all__ = [
    "MoonIllumination",
    "MoonPosition",
    "MoonTimes",
    "get_moon_illumination",
    "get_moon_position",
    "get_moon_times",
    "moon_coords",
]

LOGGER = logging.getLogger(__name__)

SUN_DISTANCE_KM = 149598000.0  # Mean Earth-Sun distance.
HORIZON_CORRECTION = 0.133 * RAD  # Apparent lunar radius plus refraction at the horizon.


@dataclass(frozen=True)
class MoonPosition:
    azimuth: float
    altitude: float
    distance: float
    parallactic_angle: float


@dataclass(frozen=True)
class MoonIllumination:
    """Illuminated fraction, phase and bright limb angle of the moon.

    ``phase`` runs from 0 (new moon) through 0.25 (first quarter), 0.5 (full
    moon) and 0.75 (last quarter) back to 1.
    """

    fraction: float
    phase: float
    angle: float

    @property
    def signed_phase(self) -> float:
        """Phase offset from full moon in [-0.5, 0.5]; positive while waxing."""

        return self.phase - 0.5


@dataclass(frozen=True)
class MoonTimes:
    """Moonrise and moonset of one day.

    Exactly one of these holds: the moon rises and/or sets, it stays above
    the horizon all day (``always_up``), or below it (``always_down``).
    """

    rise: Optional[datetime] = None
    set: Optional[datetime] = None
    always_up: bool = False
    always_down: bool = False

    def __post_init__(self) -> None:
        crosses = self.rise is not None or self.set is not None
        if crosses + self.always_up + self.always_down != 1:
            raise ValueError(
                "MoonTimes needs a rise/set or exactly one of always_up/always_down"
            )


def moon_coords(d) -> EquatorialCoordinates:
    """Geocentric ecliptic position of the moon, rotated to equatorial coordinates."""

    L = RAD * (218.316 + 13.176396 * d)  # ecliptic longitude
    M = RAD * (134.963 + 13.064993 * d)  # mean anomaly
    F = RAD * (93.272 + 13.229350 * d)  # mean distance

    l = L + RAD * 6.289 * np.sin(M)
    b = RAD * 5.128 * np.sin(F)
    dt = 385001 - 20905 * np.cos(M)  # km

    return EquatorialCoordinates(ra=right_ascension(l, b), dec=declination(l, b), dist=dt)


def _apparent_altitude(d, lw: float, phi: float):
    c = moon_coords(d)
    H = sidereal_time(d, lw) - c.ra
    h = altitude(H, phi, c.dec)
    return h + astro_refraction(h)


def get_moon_position(date: datetime, lat: float, lng: float) -> MoonPosition:
    """Compute the moon's position for an observer.

    The altitude includes the refraction correction; the parallactic angle
    follows Meeus formula 14.1.
    """

    lw, phi = observer_angles(lat, lng)
    d = to_days(date)
    c = moon_coords(d)
    H = sidereal_time(d, lw) - c.ra
    h = altitude(H, phi, c.dec)
    pa = np.arctan2(np.sin(H), np.tan(phi) * np.cos(c.dec) - np.sin(c.dec) * np.cos(H))

    return MoonPosition(
        azimuth=float(azimuth(H, phi, c.dec)),
        altitude=float(h + astro_refraction(h)),
        distance=float(c.dist),
        parallactic_angle=float(pa),
    )


def get_moon_illumination(date: datetime) -> MoonIllumination:
    d = to_days(date)
    s = sun_coords(d)
    m = moon_coords(d)

    phi = math.acos(
        math.sin(s.dec) * math.sin(m.dec)
        + math.cos(s.dec) * math.cos(m.dec) * math.cos(s.ra - m.ra)
    )
    inc = math.atan2(SUN_DISTANCE_KM * math.sin(phi), m.dist - SUN_DISTANCE_KM * math.cos(phi))
    angle = math.atan2(
        math.cos(s.dec) * math.sin(s.ra - m.ra),
        math.sin(s.dec) * math.cos(m.dec) - math.cos(s.dec) * math.sin(m.dec) * math.cos(s.ra - m.ra),
    )
    sign = -1.0 if angle < 0 else 1.0

    return MoonIllumination(
        fraction=(1 + math.cos(inc)) / 2,
        phase=0.5 + 0.5 * inc * sign / math.pi,
        angle=angle,
    )


def _hours_later(start: datetime, hours: float) -> datetime:
    return from_julian(to_julian(start) + hours / 24.0)


def _window_crossings(h0, h1, h2):
    """Fit a parabola through three altitudes sampled one hour apart.

    Returns ``(roots, x1, x2, ye)``: how many horizon crossings fall inside
    the window, the crossing offsets in hours from the middle sample and the
    altitude at the vertex. When only ``x2`` is inside the window it is also
    returned as ``x1``.
    """

    h0, h1, h2 = np.float64(h0), np.float64(h1), np.float64(h2)
    x1 = x2 = np.nan
    roots = 0

    # A flat window divides by zero; the resulting inf/nan fail every root
    # test below instead of raising.
    with np.errstate(divide="ignore", invalid="ignore"):
        a = (h0 + h2) / 2 - h1
        b = (h2 - h0) / 2
        xe = -b / (2 * a)
        ye = (a * xe + b) * xe + h1
        disc = b * b - 4 * a * h1

        if disc >= 0:
            dx = np.sqrt(disc) / (abs(a) * 2)
            x1 = xe - dx
            x2 = xe + dx
            if abs(x1) <= 1:
                roots += 1
            if abs(x2) <= 1:
                roots += 1
            if x1 < -1:
                x1 = x2

    return roots, float(x1), float(x2), float(ye)


def get_moon_times(
    date: datetime,
    lat: float,
    lng: float,
    in_utc: bool = False,
) -> MoonTimes:
    """Find moonrise and moonset during the day containing *date*.

    The day starts at midnight in the timezone of *date*, or at UTC midnight
    when ``in_utc`` is set. Altitudes are sampled hourly and every two-hour
    window is fitted with a parabola whose roots give the horizon crossings.

    Returns
    -------
    MoonTimes
        Rise and/or set instants in UTC, or ``always_up``/``always_down``
        when the moon does not cross the horizon that day.
    """

    lw, phi = observer_angles(lat, lng)
    t = day_start(date, in_utc)
    hours = np.arange(25, dtype=float)
    heights = _apparent_altitude(to_days(t) + hours / 24.0, lw, phi) - HORIZON_CORRECTION

    rise = None
    set_ = None
    ye = np.nan

    h0 = heights[0]
    for i in range(1, 24, 2):
        h1 = heights[i]
        h2 = heights[i + 1]
        roots, x1, x2, ye = _window_crossings(h0, h1, h2)

        if roots == 1:
            if h0 < 0:
                rise = i + x1
            else:
                set_ = i + x1
        elif roots == 2:
            rise = i + (x2 if ye < 0 else x1)
            set_ = i + (x1 if ye < 0 else x2)

        if rise is not None and set_ is not None:
            break

        h0 = h2

    if rise is None and set_ is None:
        always_up = bool(ye > 0)
        LOGGER.debug(
            json.dumps(
                {
                    "event": "moon_always_up" if always_up else "moon_always_down",
                    "day_start": t.isoformat(),
                    "lat": lat,
                    "lon": lng,
                }
            )
        )
        return MoonTimes(always_up=always_up, always_down=not always_up)

    return MoonTimes(
        rise=_hours_later(t, float(rise)) if rise is not None else None,
        set=_hours_later(t, float(set_)) if set_ is not None else None,
    )
