from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import numpy as np
import pytest

from conftest import REFERENCE_LAT, REFERENCE_LON
from daylight.astro import CoordinateError
from daylight.moon import (
    HORIZON_CORRECTION,
    MoonTimes,
    get_moon_illumination,
    get_moon_position,
    get_moon_times,
    moon_coords,
    _window_crossings,
)


def test_reference_moon_position(reference_date: datetime) -> None:
    position = get_moon_position(reference_date, REFERENCE_LAT, REFERENCE_LON)
    assert position.azimuth == pytest.approx(-0.9783999522438226, abs=1e-9)
    assert position.altitude == pytest.approx(0.014551482243892251, abs=1e-9)
    assert position.distance == pytest.approx(364121.37256256194, abs=1e-6)


def test_reference_moon_illumination(reference_date: datetime) -> None:
    illumination = get_moon_illumination(reference_date)
    assert illumination.fraction == pytest.approx(0.4848068202456373, abs=1e-9)
    assert illumination.phase == pytest.approx(0.7548368838538762, abs=1e-9)
    assert illumination.angle == pytest.approx(1.6732942678578346, abs=1e-9)
    assert illumination.signed_phase == pytest.approx(0.2548368838538762, abs=1e-9)


def test_reference_moon_times() -> None:
    times = get_moon_times(datetime(2013, 3, 4, tzinfo=UTC), REFERENCE_LAT, REFERENCE_LON, in_utc=True)
    assert times.rise is not None and times.set is not None
    assert abs(times.rise - datetime(2013, 3, 4, 23, 54, 29, tzinfo=UTC)) <= timedelta(seconds=2)
    assert abs(times.set - datetime(2013, 3, 4, 7, 47, 58, tzinfo=UTC)) <= timedelta(seconds=2)
    assert not times.always_up
    assert not times.always_down


def test_moon_below_horizon_after_moonset() -> None:
    # The moon set around 08:30 UTC and rises again after midnight.
    position = get_moon_position(datetime(2013, 3, 5, 12, tzinfo=UTC), REFERENCE_LAT, REFERENCE_LON)
    assert position.altitude < 0


def test_moon_distance_range() -> None:
    start = datetime(2020, 1, 1, tzinfo=UTC)
    for day in range(0, 60):
        coords = moon_coords((start - datetime(2000, 1, 1, 12, tzinfo=UTC)).days + day)
        assert 364096 <= coords.dist <= 405906


def test_illumination_ranges_over_two_months() -> None:
    start = datetime(2021, 1, 1, tzinfo=UTC)
    for step in range(0, 60 * 4):
        illumination = get_moon_illumination(start + timedelta(hours=6 * step))
        assert 0.0 <= illumination.fraction <= 1.0
        assert 0.0 <= illumination.phase <= 1.0
        assert -0.5 <= illumination.signed_phase <= 0.5


def test_full_and_new_moon_fractions() -> None:
    # 2021-01-28 19:16 UTC full moon, 2021-01-13 05:00 UTC new moon.
    full = get_moon_illumination(datetime(2021, 1, 28, 19, 16, tzinfo=UTC))
    new = get_moon_illumination(datetime(2021, 1, 13, 5, 0, tzinfo=UTC))
    assert full.fraction > 0.98
    assert new.fraction < 0.02
    assert full.phase == pytest.approx(0.5, abs=0.03)


def _category(times: MoonTimes) -> str:
    if times.always_up:
        return "always_up"
    if times.always_down:
        return "always_down"
    if times.rise is not None and times.set is not None:
        return "rise_and_set"
    return "rise_only" if times.rise is not None else "set_only"


@pytest.mark.parametrize("lat, lon", [(50.5, 30.5), (78.2232, 15.6469), (-33.87, 151.21), (0.0, 0.0)])
def test_moon_times_always_one_category_within_day(lat: float, lon: float) -> None:
    seen = set()
    start = datetime(2021, 1, 1, tzinfo=UTC)
    for day in range(0, 40):
        day_start = start + timedelta(days=day)
        times = get_moon_times(day_start, lat, lon, in_utc=True)
        seen.add(_category(times))
        for event in (times.rise, times.set):
            if event is not None:
                assert day_start <= event <= day_start + timedelta(hours=24)
    assert seen


def test_high_latitude_reports_always_flags() -> None:
    start = datetime(2021, 1, 1, tzinfo=UTC)
    categories = {
        _category(get_moon_times(start + timedelta(days=day), 78.2232, 15.6469, in_utc=True))
        for day in range(0, 30)
    }
    assert "always_up" in categories
    assert "always_down" in categories


def test_mid_latitude_month_has_days_with_single_event() -> None:
    start = datetime(2013, 3, 1, tzinfo=UTC)
    categories = [
        _category(get_moon_times(start + timedelta(days=day), REFERENCE_LAT, REFERENCE_LON, in_utc=True))
        for day in range(0, 30)
    ]
    # The moon rises about 50 minutes later each day, so at least one day a
    # month misses either the rise or the set.
    assert "rise_only" in categories or "set_only" in categories
    assert categories.count("rise_and_set") > 20


def test_local_midnight_day_boundary() -> None:
    tz = timezone(timedelta(hours=2))
    instant = datetime(2013, 3, 4, 15, 0, tzinfo=tz)
    times = get_moon_times(instant, REFERENCE_LAT, REFERENCE_LON)
    local_midnight = datetime(2013, 3, 4, tzinfo=tz)
    for event in (times.rise, times.set):
        if event is not None:
            assert local_midnight <= event <= local_midnight + timedelta(hours=24)
    utc_times = get_moon_times(instant, REFERENCE_LAT, REFERENCE_LON, in_utc=True)
    assert utc_times != times


def test_moon_times_rejects_invalid_latitude() -> None:
    with pytest.raises(CoordinateError):
        get_moon_times(datetime(2013, 3, 4, tzinfo=UTC), 91.0, 0.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"always_up": True, "always_down": True},
        {"rise": datetime(2013, 3, 4, tzinfo=UTC), "always_up": True},
    ],
)
def test_moon_times_rejects_inconsistent_states(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        MoonTimes(**kwargs)


def test_window_dipping_below_horizon_sets_before_rising() -> None:
    roots, x1, x2, ye = _window_crossings(0.1, -0.1, 0.1)
    assert roots == 2
    assert ye < 0
    assert x1 == pytest.approx(-np.sqrt(0.5))
    assert x2 == pytest.approx(np.sqrt(0.5))


def test_window_rising_above_horizon() -> None:
    roots, x1, x2, ye = _window_crossings(-0.1, 0.1, -0.1)
    assert roots == 2
    assert ye > 0
    assert x1 < x2


def test_window_single_crossing_moves_into_first_slot() -> None:
    # The left root lies before the window, so the right one is reported.
    roots, x1, x2, ye = _window_crossings(-0.3, -0.1, 0.3)
    assert roots == 1
    assert x1 == x2
    assert x1 == pytest.approx(-1.5 + np.sqrt(0.13) / 0.2)
    assert ye < 0


@pytest.mark.parametrize("heights", [(1.0, 0.5, 1.0), (0.1, 0.2, 0.1)])
def test_window_without_crossing(heights: tuple) -> None:
    roots, _, _, ye = _window_crossings(*heights)
    assert roots == 0
    assert ye > 0


def test_flat_window_has_no_crossing() -> None:
    roots, _, _, ye = _window_crossings(0.0, 0.0, 0.0)
    assert roots == 0
    assert np.isnan(ye)


def _fake_altitudes(monkeypatch: pytest.MonkeyPatch, values: list) -> None:
    heights = np.asarray(values, dtype=float) + HORIZON_CORRECTION
    monkeypatch.setattr("daylight.moon._apparent_altitude", lambda d, lw, phi: heights)


def test_moon_dips_and_returns_within_one_window(monkeypatch: pytest.MonkeyPatch) -> None:
    _fake_altitudes(monkeypatch, [0.1, -0.1] + [0.1] * 23)
    start = datetime(2013, 3, 4, tzinfo=UTC)
    times = get_moon_times(start, REFERENCE_LAT, REFERENCE_LON, in_utc=True)

    assert times.rise is not None and times.set is not None
    assert times.set < times.rise
    offset = timedelta(hours=np.sqrt(0.5))
    assert abs(times.set - (start + timedelta(hours=1) - offset)) <= timedelta(seconds=1)
    assert abs(times.rise - (start + timedelta(hours=1) + offset)) <= timedelta(seconds=1)


def test_moon_rises_and_sets_within_one_window(monkeypatch: pytest.MonkeyPatch) -> None:
    _fake_altitudes(monkeypatch, [-0.1, 0.1] + [-0.1] * 23)
    start = datetime(2013, 3, 4, tzinfo=UTC)
    times = get_moon_times(start, REFERENCE_LAT, REFERENCE_LON, in_utc=True)

    assert times.rise is not None and times.set is not None
    assert times.rise < times.set
    span = timedelta(hours=2 * np.sqrt(0.5))
    assert abs((times.set - times.rise) - span) <= timedelta(seconds=1)


def test_flat_altitude_curve_is_always_down(monkeypatch: pytest.MonkeyPatch) -> None:
    _fake_altitudes(monkeypatch, [0.0] * 25)
    times = get_moon_times(datetime(2013, 3, 4, tzinfo=UTC), REFERENCE_LAT, REFERENCE_LON, in_utc=True)
    assert times.always_down
    assert times.rise is None and times.set is None
