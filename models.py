"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class LocationQueryParams(BaseModel):
    """Validated query parameters shared by every sun and moon endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")
    at: Optional[datetime] = Field(
        None,
        description="Instant (ISO-8601 with UTC offset); defaults to now",
    )


class MoonTimesQueryParams(LocationQueryParams):
    utc: bool = Field(
        False,
        description="Start the day at UTC midnight instead of midnight at the given offset",
    )


class DayQueryParams(LocationQueryParams):
    seed: Optional[int] = Field(
        None, description="Seed for the sentence picker, for reproducible output"
    )


class LocationResponse(BaseModel):
    ok: bool = True
    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")
    at_utc: str = Field(..., description="Instant the values were computed for (UTC)")


class SunPositionResponse(LocationResponse):
    azimuth: float = Field(..., description="Azimuth in radians, from south, westward")
    altitude: float = Field(..., description="Altitude above the horizon in radians")


class SunTimesResponse(LocationResponse):
    times: Dict[str, Optional[str]] = Field(
        ..., description="Event name to UTC instant; null when the event does not occur"
    )


class MoonPositionResponse(LocationResponse):
    azimuth: float
    altitude: float = Field(..., description="Refraction-corrected altitude in radians")
    distance_km: float
    parallactic_angle: float


class MoonIlluminationResponse(BaseModel):
    ok: bool = True
    at_utc: str
    fraction: float = Field(..., ge=0.0, le=1.0, description="Illuminated fraction")
    phase: float = Field(..., description="0 new, 0.25 first quarter, 0.5 full, 0.75 last quarter")
    angle: float = Field(..., description="Bright limb position angle in radians")


class MoonTimesResponse(LocationResponse):
    rise_utc: Optional[str] = None
    set_utc: Optional[str] = None
    always_up: bool = False
    always_down: bool = False


class ThemeModel(BaseModel):
    name: str
    text_rgb: Tuple[int, int, int]
    background_rgb: Tuple[int, int, int]


class FragmentModel(BaseModel):
    text: str
    emphasize: bool


class DayResponse(LocationResponse):
    theme: ThemeModel
    sentence: List[FragmentModel]
    minutes: int = Field(..., description="Change in daylight length in minutes")
    sunrise_utc: Optional[str] = None
    sunset_utc: Optional[str] = None
    kind: Optional[str] = Field(
        None, description="Daylight change category, e.g. longer_more_than_a_minute"
    )


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    sun_times: List[str] = Field(..., description="Configured sun event names")


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
