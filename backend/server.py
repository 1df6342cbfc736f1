from fastapi import FastAPI, APIRouter, HTTPException
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
import os
import logging
from pathlib import Path
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime, timedelta, timezone
from providers import get_providers
from common.errors import InvalidInput
from solar_position_service import (
    GeoInstant,
    SolarPositionService,
    antisolar_azimuth,
    compass_direction,
    normalize_longitude,
)
from weather_snapshot import WeatherSnapshot
from rainbow_probability_service import RainbowProbabilityService, ScoringConfig
from rainbow_forecast_service import next_optimal, scan, summarize

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# Set up logging
logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO').upper())
logger = logging.getLogger(__name__)

# Tunables
OPTIMAL_THRESHOLD = float(os.environ.get('RAINBOW_OPTIMAL_THRESHOLD', '60'))
FORECAST_HOURS = int(os.environ.get('RAINBOW_FORECAST_HOURS', '24'))

# Beyond this longitude a UTC instant is a transport timestamp, not the observer's clock
UTC_CLOCK_MAX_LONGITUDE = 30.0

# Scoring weights are read once at startup
scorer = RainbowProbabilityService(ScoringConfig.from_env())

app = FastAPI(title="Rainbow Finder API")

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")

# ==================== Models ====================

class LocationRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float
    instant: Optional[datetime] = None  # ISO 8601; defaults to now when utc_offset_hours is given
    utc_offset_hours: Optional[float] = None  # Observer's civil offset

class RecentRainInput(BaseModel):
    has_recent_rain: bool = False
    hours_since_rain: Optional[float] = None
    is_optimal: bool = False

class WeatherInput(BaseModel):
    temperature_c: float
    humidity_pct: float
    cloud_cover_pct: float
    condition: str
    pressure_hpa: Optional[float] = None
    visibility_m: float = 10000
    wind_speed_ms: float = 0
    precipitation_mm_h: float = 0
    uv_index: Optional[float] = None
    recent_rain: Optional[RecentRainInput] = None

class AssessRequest(LocationRequest):
    weather: Optional[WeatherInput] = None  # Fetched from the provider when omitted

class ForecastRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float
    hours: int = Field(default=FORECAST_HOURS, ge=1, le=120)
    threshold: float = Field(default=OPTIMAL_THRESHOLD, ge=0, le=100)

class SunPositionResponse(BaseModel):
    instant: str
    altitude_deg: float
    azimuth_deg: float
    compass: str
    distance_au: float
    declination_deg: float
    hour_angle_deg: float
    is_daytime: bool
    antisolar_azimuth_deg: float

class SolarEventsResponse(BaseModel):
    date: str
    solar_noon: str
    sunrise: Optional[str] = None
    sunset: Optional[str] = None
    civil_dawn: Optional[str] = None
    civil_dusk: Optional[str] = None
    nautical_dawn: Optional[str] = None
    nautical_dusk: Optional[str] = None
    astronomical_dawn: Optional[str] = None
    astronomical_dusk: Optional[str] = None
    golden_hour_morning_end: Optional[str] = None
    golden_hour_evening_start: Optional[str] = None
    is_polar_day: bool
    is_polar_night: bool
    day_length_hours: Optional[float] = None

class RainbowAssessmentResponse(BaseModel):
    probability: float
    quality: str
    direction: Optional[Dict[str, Any]] = None
    factors: Dict[str, float]
    conditions: List[Dict[str, str]]
    recommendations: List[str]
    sun: Dict[str, float]
    instant: str
    base_probability: float
    time_modifier: float
    environment_modifier: float

class ForecastHour(BaseModel):
    instant: str
    probability: float
    quality: str
    direction_deg: Optional[float] = None

class ForecastResponse(BaseModel):
    lat: float
    lon: float
    hours: List[ForecastHour]
    next_optimal: Optional[str] = None
    summary: Dict[str, Any]

# ==================== Helpers ====================

def resolve_instant(instant: Optional[datetime], utc_offset_hours: Optional[float], lon: float) -> datetime:
    """
    Pick the observer instant on the observer's own clock.

    Night lockout, golden hour and the calendar day of solar events all read
    the wall clock, so the offset must be explicit: utc_offset_hours, or an
    instant carrying the local offset. A UTC instant counts as local time only
    within UTC_CLOCK_MAX_LONGITUDE of the prime meridian.
    """
    if utc_offset_hours is not None:
        return SolarPositionService.with_utc_offset(instant or datetime.now(timezone.utc), utc_offset_hours)
    if instant is None:
        raise InvalidInput("utc_offset_hours is required when instant is omitted")
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise InvalidInput("instant must include a UTC offset, or pass utc_offset_hours")
    if instant.utcoffset() == timedelta(0) and abs(normalize_longitude(lon)) > UTC_CLOCK_MAX_LONGITUDE:
        raise InvalidInput(
            f"UTC instant is not a local clock at longitude {lon}; "
            "send the local offset or pass utc_offset_hours"
        )
    return instant

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None

# ==================== API Routes ====================

@api_router.get("/")
async def root():
    return {"message": "Rainbow Finder API", "version": "1.0"}

@api_router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "mode": get_providers().mode,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@api_router.post("/sun/position", response_model=SunPositionResponse)
async def sun_position(request: LocationRequest):
    """Sun altitude and azimuth for an observer."""
    try:
        instant = resolve_instant(request.instant, request.utc_offset_hours, request.lon)
        geo = GeoInstant(request.lat, request.lon, instant)
        position = SolarPositionService.compute_sun_position(geo.latitude, geo.longitude, geo.instant)
    except ValueError as e:
        logger.error(f"Invalid parameters for sun position: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid parameters: {str(e)}")

    return SunPositionResponse(
        instant=geo.instant.isoformat(),
        altitude_deg=round(position.altitude_deg, 3),
        azimuth_deg=round(position.azimuth_deg, 3),
        compass=compass_direction(position.azimuth_deg),
        distance_au=round(position.distance_au, 6),
        declination_deg=round(position.declination_deg, 3),
        hour_angle_deg=round(position.hour_angle_deg, 3),
        is_daytime=position.altitude_deg > 0,
        antisolar_azimuth_deg=round(antisolar_azimuth(position.azimuth_deg), 3),
    )

@api_router.post("/sun/events", response_model=SolarEventsResponse)
async def sun_events(request: LocationRequest):
    """Sunrise, sunset, twilights and golden-hour bounds in the observer's offset."""
    try:
        instant = resolve_instant(request.instant, request.utc_offset_hours, request.lon)
        geo = GeoInstant(request.lat, request.lon, instant)
        events = SolarPositionService.compute_solar_events(geo.latitude, geo.longitude, geo.instant)
    except ValueError as e:
        logger.error(f"Invalid parameters for solar events: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid parameters: {str(e)}")

    day_length = events.day_length
    return SolarEventsResponse(
        date=events.date.isoformat(),
        solar_noon=events.solar_noon.isoformat(),
        sunrise=_iso(events.sunrise),
        sunset=_iso(events.sunset),
        civil_dawn=_iso(events.civil_dawn),
        civil_dusk=_iso(events.civil_dusk),
        nautical_dawn=_iso(events.nautical_dawn),
        nautical_dusk=_iso(events.nautical_dusk),
        astronomical_dawn=_iso(events.astronomical_dawn),
        astronomical_dusk=_iso(events.astronomical_dusk),
        golden_hour_morning_end=_iso(events.golden_hour_morning_end),
        golden_hour_evening_start=_iso(events.golden_hour_evening_start),
        is_polar_day=events.is_polar_day,
        is_polar_night=events.is_polar_night,
        day_length_hours=round(day_length.total_seconds() / 3600.0, 3) if day_length else None,
    )

@api_router.post("/rainbow/assess", response_model=RainbowAssessmentResponse)
async def assess_rainbow(request: AssessRequest):
    """
    Rainbow probability, quality and viewing direction right now.

    Uses the inline weather when supplied, otherwise the configured provider.
    """
    logger.info(f"Rainbow assessment requested for {request.lat},{request.lon}")

    try:
        instant = resolve_instant(request.instant, request.utc_offset_hours, request.lon)
        if request.weather is not None:
            weather = WeatherSnapshot.from_dict(request.weather.model_dump())
        else:
            weather = None
    except ValueError as e:
        logger.error(f"Invalid parameters for rainbow assessment: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid parameters: {str(e)}")

    if weather is None:
        weather = await get_providers().weather.get_weather(request.lat, request.lon)
        if weather is None:
            logger.warning(f"No weather available for {request.lat},{request.lon}")
            raise HTTPException(status_code=502, detail="Weather data unavailable")

    try:
        assessment = scorer.assess(request.lat, request.lon, instant, weather)
    except ValueError as e:
        logger.error(f"Invalid parameters for rainbow assessment: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid parameters: {str(e)}")

    logger.info(f"Rainbow probability {assessment.probability}% ({assessment.quality.value})")
    return RainbowAssessmentResponse(**assessment.to_dict())

@api_router.post("/rainbow/forecast", response_model=ForecastResponse)
async def forecast_rainbows(request: ForecastRequest):
    """Hour-by-hour rainbow probability over the provider's forecast."""
    logger.info(f"Rainbow forecast requested for {request.lat},{request.lon} ({request.hours}h)")

    hourly = await get_providers().weather.get_hourly_forecast(request.lat, request.lon, request.hours)
    if not hourly:
        logger.warning(f"No forecast available for {request.lat},{request.lon}")
        raise HTTPException(status_code=502, detail="Forecast data unavailable")

    try:
        assessments = list(scan(request.lat, request.lon, hourly, scorer))
    except ValueError as e:
        logger.error(f"Invalid parameters for rainbow forecast: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid parameters: {str(e)}")

    best_next = next_optimal(assessments, request.threshold)
    summary = summarize(assessments, request.threshold)

    return ForecastResponse(
        lat=request.lat,
        lon=request.lon,
        hours=[
            ForecastHour(
                instant=a.instant.isoformat(),
                probability=a.probability,
                quality=a.quality.value,
                direction_deg=round(a.direction.center_deg, 1) if a.direction else None,
            )
            for a in assessments
        ],
        next_optimal=_iso(best_next),
        summary=summary.to_dict(),
    )

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers in the main app
app.include_router(api_router)
