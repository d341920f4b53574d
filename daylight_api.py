"""FastAPI application exposing sun and moon computations."""

from __future__ import annotations

import json
import logging
import random
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Callable, Optional, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from daylight.config import load_settings
from daylight.day import get_day
from daylight.moon import get_moon_illumination, get_moon_position, get_moon_times
from daylight.sun import get_position, get_times
from models import (
    DayQueryParams,
    DayResponse,
    ErrorResponse,
    FragmentModel,
    HealthResponse,
    LocationQueryParams,
    MoonIlluminationResponse,
    MoonPositionResponse,
    MoonTimesQueryParams,
    MoonTimesResponse,
    SunPositionResponse,
    SunTimesResponse,
    ThemeModel,
)

SETTINGS = load_settings()

logging.basicConfig(level=SETTINGS.log_level, format="%(message)s")
LOGGER = logging.getLogger("daylight-api")

APP_DESCRIPTION = "Sun and moon positions, rise/set times and moon phase for any place on Earth"

T = TypeVar("T")


@asynccontextmanager
async def lifespan(app: FastAPI):
    LOGGER.info(
        json.dumps(
            {
                "event": "startup",
                "cors_origins": list(SETTINGS.cors_origins),
                "sun_times": [entry.rise_name for entry in SETTINGS.sun_times],
            }
        )
    )
    yield


app = FastAPI(
    title="Daylight API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _format_utc(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _instant(params: LocationQueryParams) -> datetime:
    return params.at if params.at is not None else datetime.now(UTC)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


def _compute(event: str, params: LocationQueryParams, func: Callable[[], T]) -> T:
    """Run *func*, mapping invalid input to HTTP 400 and logging the timing."""

    start_time = time.perf_counter()
    try:
        result = func()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    duration_ms = (time.perf_counter() - start_time) * 1000.0
    LOGGER.info(
        json.dumps(
            {
                "event": event,
                "lat": params.lat,
                "lon": params.lon,
                "at": params.at.isoformat() if params.at is not None else None,
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return result


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    elif isinstance(detail, list):
        message = ", ".join(str(item) for item in detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    names = []
    for entry in SETTINGS.sun_times:
        names.extend((entry.rise_name, entry.set_name))
    return HealthResponse(ok=True, sun_times=names)


@app.get("/sun/position", response_model=SunPositionResponse, responses=ERROR_RESPONSES)
def sun_position_endpoint(params: LocationQueryParams = Depends()) -> SunPositionResponse:
    at = _instant(params)
    position = _compute("sun_position", params, lambda: get_position(at, params.lat, params.lon))
    return SunPositionResponse(
        latitude=params.lat,
        longitude=params.lon,
        at_utc=_format_utc(at),
        azimuth=position.azimuth,
        altitude=position.altitude,
    )


@app.get("/sun/times", response_model=SunTimesResponse, responses=ERROR_RESPONSES)
def sun_times_endpoint(params: LocationQueryParams = Depends()) -> SunTimesResponse:
    at = _instant(params)
    times = _compute(
        "sun_times",
        params,
        lambda: get_times(at, params.lat, params.lon, SETTINGS.sun_times),
    )
    return SunTimesResponse(
        latitude=params.lat,
        longitude=params.lon,
        at_utc=_format_utc(at),
        times={name: _format_utc(value) for name, value in times.as_dict().items()},
    )


@app.get("/moon/position", response_model=MoonPositionResponse, responses=ERROR_RESPONSES)
def moon_position_endpoint(params: LocationQueryParams = Depends()) -> MoonPositionResponse:
    at = _instant(params)
    position = _compute(
        "moon_position", params, lambda: get_moon_position(at, params.lat, params.lon)
    )
    return MoonPositionResponse(
        latitude=params.lat,
        longitude=params.lon,
        at_utc=_format_utc(at),
        azimuth=position.azimuth,
        altitude=position.altitude,
        distance_km=position.distance,
        parallactic_angle=position.parallactic_angle,
    )


@app.get(
    "/moon/illumination",
    response_model=MoonIlluminationResponse,
    responses=ERROR_RESPONSES,
)
def moon_illumination_endpoint(
    params: LocationQueryParams = Depends(),
) -> MoonIlluminationResponse:
    at = _instant(params)
    illumination = _compute("moon_illumination", params, lambda: get_moon_illumination(at))
    return MoonIlluminationResponse(
        at_utc=_format_utc(at),
        fraction=illumination.fraction,
        phase=illumination.phase,
        angle=illumination.angle,
    )


@app.get("/moon/times", response_model=MoonTimesResponse, responses=ERROR_RESPONSES)
def moon_times_endpoint(params: MoonTimesQueryParams = Depends()) -> MoonTimesResponse:
    at = _instant(params)
    result = _compute(
        "moon_times",
        params,
        lambda: get_moon_times(at, params.lat, params.lon, in_utc=params.utc),
    )
    return MoonTimesResponse(
        latitude=params.lat,
        longitude=params.lon,
        at_utc=_format_utc(at),
        rise_utc=_format_utc(result.rise),
        set_utc=_format_utc(result.set),
        always_up=result.always_up,
        always_down=result.always_down,
    )


@app.get("/day", response_model=DayResponse, responses=ERROR_RESPONSES)
def day_endpoint(params: DayQueryParams = Depends()) -> DayResponse:
    at = _instant(params)
    rng = random.Random(params.seed) if params.seed is not None else None
    summary = _compute(
        "day",
        params,
        lambda: get_day(at, params.lat, params.lon, rng=rng, times=SETTINGS.sun_times),
    )
    return DayResponse(
        latitude=params.lat,
        longitude=params.lon,
        at_utc=_format_utc(at),
        theme=ThemeModel(
            name=summary.theme.name,
            text_rgb=summary.theme.text_rgb,
            background_rgb=summary.theme.background_rgb,
        ),
        sentence=[
            FragmentModel(text=fragment.text, emphasize=fragment.emphasize)
            for fragment in summary.sentence
        ],
        minutes=summary.minutes,
        sunrise_utc=_format_utc(summary.sunrise),
        sunset_utc=_format_utc(summary.sunset),
        kind=summary.kind.name.lower() if summary.kind is not None else None,
    )
