from __future__ import annotations

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Location used by the test fixtures published with SunCalc (mourner/suncalc).
REFERENCE_LAT = 50.5
REFERENCE_LON = 30.5


@pytest.fixture
def reference_date() -> datetime:
    return datetime(2013, 3, 5, tzinfo=UTC)
