from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta, timezone

import pytest

from daylight.astro import (
    J2000,
    CoordinateError,
    astro_refraction,
    check_coordinates,
    day_start,
    from_julian,
    round_half_up,
    shift_days,
    to_days,
    to_julian,
)


def test_j2000_epoch() -> None:
    epoch = datetime(2000, 1, 1, 12, tzinfo=UTC)
    assert to_julian(epoch) == J2000
    assert to_days(epoch) == 0.0
    assert from_julian(J2000) == epoch


def test_unix_epoch_julian_day() -> None:
    assert to_julian(datetime(1970, 1, 1, tzinfo=UTC)) == 2440587.5


@pytest.mark.parametrize(
    "instant",
    [
        datetime(2013, 3, 5, tzinfo=UTC),
        datetime(2013, 3, 5, 4, 34, 56, 123000, tzinfo=UTC),
        datetime(1900, 2, 28, 23, 59, 59, 999000, tzinfo=UTC),
        datetime(2099, 12, 31, 0, 0, 0, 1000, tzinfo=UTC),
        datetime(2024, 6, 21, 9, 30, tzinfo=timezone(timedelta(hours=-7))),
    ],
)
def test_julian_round_trip(instant: datetime) -> None:
    assert from_julian(to_julian(instant)) == instant


def test_from_julian_returns_utc() -> None:
    assert from_julian(J2000 + 0.25).tzinfo == UTC


def test_naive_datetime_rejected() -> None:
    with pytest.raises(ValueError):
        to_julian(datetime(2013, 3, 5))


def test_round_half_up_matches_ties_upward() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(1.5) == 2
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.6) == -2


def test_refraction_uses_horizon_value_below_horizon() -> None:
    at_horizon = astro_refraction(0.0)
    assert at_horizon == pytest.approx(0.0002967 / math.tan(0.00312536 / 0.08901179))
    assert astro_refraction(-0.2) == at_horizon
    # Near the singularity of the raw formula the clamp keeps the value finite.
    assert math.isfinite(astro_refraction(-0.08901179))


def test_refraction_decreases_with_altitude() -> None:
    assert astro_refraction(0.1) < astro_refraction(0.01) < astro_refraction(0.0)
    assert astro_refraction(math.pi / 2) == pytest.approx(0.0, abs=1e-6)


def test_shift_days_keeps_wall_clock() -> None:
    tz = timezone(timedelta(hours=2))
    now = datetime(2013, 3, 1, 18, 45, tzinfo=tz)
    assert shift_days(now, -1) == datetime(2013, 2, 28, 18, 45, tzinfo=tz)
    assert shift_days(now, 1) == datetime(2013, 3, 2, 18, 45, tzinfo=tz)
    assert now == datetime(2013, 3, 1, 18, 45, tzinfo=tz)


def test_day_start_local_and_utc() -> None:
    tz = timezone(timedelta(hours=3))
    instant = datetime(2013, 3, 5, 1, 30, tzinfo=tz)  # 2013-03-04 22:30 UTC
    assert day_start(instant) == datetime(2013, 3, 5, tzinfo=tz)
    assert day_start(instant, in_utc=True) == datetime(2013, 3, 4, tzinfo=UTC)


@pytest.mark.parametrize(
    "lat, lon",
    [(90.5, 0.0), (-91.0, 0.0), (0.0, 180.1), (0.0, -200.0), (math.nan, 0.0), (0.0, math.inf)],
)
def test_out_of_domain_coordinates_rejected(lat: float, lon: float) -> None:
    with pytest.raises(CoordinateError):
        check_coordinates(lat, lon)


def test_domain_edges_accepted() -> None:
    check_coordinates(90.0, 180.0)
    check_coordinates(-90.0, -180.0)
