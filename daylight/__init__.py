"""Sun and moon calculations for the daylight service."""

from .astro import CoordinateError, from_julian, to_days, to_julian
from .moon import get_moon_illumination, get_moon_position, get_moon_times
from .sun import DEFAULT_SUN_TIMES, SunTimeAngle, add_time, get_position, get_times

__all__ = [
    "CoordinateError",
    "DEFAULT_SUN_TIMES",
    "SunTimeAngle",
    "add_time",
    "from_julian",
    "get_moon_illumination",
    "get_moon_position",
    "get_moon_times",
    "get_position",
    "get_times",
    "to_days",
    "to_julian",
]
