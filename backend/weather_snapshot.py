"""
Weather Snapshot - Normalized Weather Observation & Recent-Rain Signal

Units are fixed at the boundary and never converted again downstream:
  temperature °C, humidity %, pressure hPa, visibility meters,
  cloud cover %, wind m/s, precipitation mm/h.

Recent rain matters more to a rainbow than anything else except the sun,
so it travels with the snapshot as a RecentRainSignal. Three ways to get one:
- recent_rain_from_history(): from timestamped observations
- infer_recent_rain(): heuristic from the current condition text,
  humidity and cloud cover (for providers without history)
- explicit: callers pass RecentRainSignal(...) themselves

All functions are pure and deterministic.
"""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from math import isfinite
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from common.errors import InvalidWeatherData

RAIN_KEYWORDS = ("rain", "shower", "drizzle", "thunderstorm", "storm")
MIST_KEYWORDS = ("mist", "fog", "haze")

# Upper bounds (exclusive) of each precipitation intensity band, mm/h
INTENSITY_BANDS = [
    (0.1, "trace"),
    (0.5, "very_light"),
    (2.0, "light"),
    (10.0, "moderate"),
    (50.0, "heavy"),
]


@dataclass(frozen=True)
class RecentRainSignal:
    """
    Whether it rained recently, and how long ago.

    Attributes:
        has_recent_rain: True if rain was observed or inferred
        hours_since_rain: Hours since the rain ended (None if unknown)
        is_optimal: Rain within the last hour
    """
    has_recent_rain: bool
    hours_since_rain: Optional[float] = None
    is_optimal: bool = False

    @property
    def description(self) -> str:
        if not self.has_recent_rain:
            return "No rain in the last few hours"
        if self.hours_since_rain is None:
            return "Rain earlier, timing unknown"
        if self.hours_since_rain < 0.5:
            return "Rain less than 30 minutes ago - excellent for rainbows"
        if self.hours_since_rain < 1:
            return "Rain within the last hour - good for rainbows"
        if self.hours_since_rain < 2:
            return "Rain 1-2 hours ago - a rainbow is possible"
        return "Rain more than 2 hours ago"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_recent_rain": self.has_recent_rain,
            "hours_since_rain": self.hours_since_rain,
            "is_optimal": self.is_optimal,
            "description": self.description,
        }


NO_RECENT_RAIN = RecentRainSignal(has_recent_rain=False)


@dataclass(frozen=True)
class WeatherSnapshot:
    """Normalized weather at one place and time."""
    temperature_c: float
    humidity_pct: float
    cloud_cover_pct: float
    condition: str
    pressure_hpa: Optional[float] = None
    visibility_m: float = 10000.0
    wind_speed_ms: float = 0.0
    precipitation_mm_h: float = 0.0
    uv_index: Optional[float] = None
    recent_rain: Optional[RecentRainSignal] = None

    def __post_init__(self):
        validate_snapshot(self)

    @property
    def is_rainy(self) -> bool:
        return is_rain_condition(self.condition)

    def with_recent_rain(self, signal: Optional[RecentRainSignal]) -> "WeatherSnapshot":
        return replace(self, recent_rain=signal)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "WeatherSnapshot":
        """
        Build a snapshot from a plain mapping (fixture JSON, request body).

        Keys match the field names. `recent_rain` may be a nested mapping with
        has_recent_rain / hours_since_rain / is_optimal.

        Raises:
            InvalidWeatherData: Missing required field or non-numeric value
        """
        if not isinstance(payload, Mapping):
            raise InvalidWeatherData(f"Weather payload must be a mapping, got {type(payload).__name__}")

        for name in ("temperature_c", "humidity_pct", "cloud_cover_pct", "condition"):
            if payload.get(name) is None:
                raise InvalidWeatherData(f"Missing required weather field: {name}", field=name)

        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in payload.items() if k in known and v is not None}

        rain = kwargs.get("recent_rain")
        if isinstance(rain, Mapping):
            hours = rain.get("hours_since_rain")
            kwargs["recent_rain"] = RecentRainSignal(
                has_recent_rain=bool(rain.get("has_recent_rain", False)),
                hours_since_rain=_as_float(hours, "recent_rain.hours_since_rain") if hours is not None else None,
                is_optimal=bool(rain.get("is_optimal", False)),
            )
        elif rain is not None and not isinstance(rain, RecentRainSignal):
            raise InvalidWeatherData("recent_rain must be a mapping", field="recent_rain")

        for name in (
            "temperature_c", "humidity_pct", "cloud_cover_pct", "pressure_hpa",
            "visibility_m", "wind_speed_ms", "precipitation_mm_h", "uv_index",
        ):
            if name in kwargs:
                kwargs[name] = _as_float(kwargs[name], name)
        kwargs["condition"] = str(kwargs["condition"])

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature_c": self.temperature_c,
            "humidity_pct": self.humidity_pct,
            "cloud_cover_pct": self.cloud_cover_pct,
            "condition": self.condition,
            "pressure_hpa": self.pressure_hpa,
            "visibility_m": self.visibility_m,
            "wind_speed_ms": self.wind_speed_ms,
            "precipitation_mm_h": self.precipitation_mm_h,
            "uv_index": self.uv_index,
            "recent_rain": self.recent_rain.to_dict() if self.recent_rain else None,
        }


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidWeatherData(f"{name} must be numeric, got {value!r}", field=name)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidWeatherData(f"{name} must be numeric, got {value!r}", field=name)


def _check_number(value: Any, name: str, low: float = None, high: float = None) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidWeatherData(f"{name} must be numeric, got {value!r}", field=name)
    if not isfinite(value):
        raise InvalidWeatherData(f"{name} must be finite, got {value}", field=name)
    if low is not None and value < low:
        raise InvalidWeatherData(f"{name} must be >= {low}, got {value}", field=name)
    if high is not None and value > high:
        raise InvalidWeatherData(f"{name} must be <= {high}, got {value}", field=name)


def validate_snapshot(snapshot: Any) -> "WeatherSnapshot":
    """
    Check field types and ranges of a snapshot.

    Raises:
        InvalidWeatherData: Wrong type, non-finite number or value out of range
    """
    if not isinstance(snapshot, WeatherSnapshot):
        raise InvalidWeatherData(f"Expected WeatherSnapshot, got {type(snapshot).__name__}")

    _check_number(snapshot.temperature_c, "temperature_c")
    _check_number(snapshot.humidity_pct, "humidity_pct", 0, 100)
    _check_number(snapshot.cloud_cover_pct, "cloud_cover_pct", 0, 100)
    _check_number(snapshot.visibility_m, "visibility_m", 0)
    _check_number(snapshot.wind_speed_ms, "wind_speed_ms", 0)
    _check_number(snapshot.precipitation_mm_h, "precipitation_mm_h", 0)
    if snapshot.pressure_hpa is not None:
        _check_number(snapshot.pressure_hpa, "pressure_hpa", 0)
    if snapshot.uv_index is not None:
        _check_number(snapshot.uv_index, "uv_index", 0)
    if not isinstance(snapshot.condition, str):
        raise InvalidWeatherData("condition must be a string", field="condition")

    rain = snapshot.recent_rain
    if rain is not None:
        if not isinstance(rain, RecentRainSignal):
            raise InvalidWeatherData("recent_rain must be a RecentRainSignal", field="recent_rain")
        if rain.hours_since_rain is not None:
            _check_number(rain.hours_since_rain, "recent_rain.hours_since_rain", 0)

    return snapshot


def is_rain_condition(condition: str) -> bool:
    """True for rain-like condition text (rain, shower, drizzle, storm)."""
    text = (condition or "").lower()
    return any(keyword in text for keyword in RAIN_KEYWORDS)


def is_mist_condition(condition: str) -> bool:
    text = (condition or "").lower()
    return any(keyword in text for keyword in MIST_KEYWORDS)


def rain_intensity(precipitation_mm_h: float) -> str:
    """
    Classify a precipitation rate.

    Returns:
        "none", "trace", "very_light", "light", "moderate", "heavy" or "violent"
    """
    if precipitation_mm_h <= 0:
        return "none"
    for upper, label in INTENSITY_BANDS:
        if precipitation_mm_h < upper:
            return label
    return "violent"


def _signal_for_hours(hours: float) -> RecentRainSignal:
    return RecentRainSignal(
        has_recent_rain=True,
        hours_since_rain=hours,
        is_optimal=hours < 1,
    )


def recent_rain_from_history(
    observations: Iterable[Tuple[datetime, WeatherSnapshot]],
    now: datetime,
) -> RecentRainSignal:
    """
    Derive the recent-rain signal from timestamped observations.

    Looks at observations at or before `now` and takes the latest one with
    precipitation > 0 or a rain-like condition.

    Args:
        observations: (timezone-aware instant, snapshot) pairs, any order
        now: Reference instant (timezone-aware)

    Returns:
        RecentRainSignal; NO_RECENT_RAIN if nothing rainy was observed
    """
    latest_rain = None
    for observed_at, snapshot in observations:
        if observed_at > now:
            continue
        rainy = snapshot.precipitation_mm_h > 0 or snapshot.is_rainy
        if rainy and (latest_rain is None or observed_at > latest_rain):
            latest_rain = observed_at

    if latest_rain is None:
        return NO_RECENT_RAIN

    hours = (now - latest_rain).total_seconds() / 3600.0
    return _signal_for_hours(hours)


def infer_recent_rain(snapshot: WeatherSnapshot) -> RecentRainSignal:
    """
    Guess the recent-rain signal from current conditions alone.

    Rain is assumed when the condition text is rain-like, or when humidity
    above 85% coincides with cloud cover above 70%. The more saturated the
    air, the more recent the rain:
      humidity > 95 → 0.25 h, > 90 → 0.5 h, > 85 → 1 h, otherwise 2 h
    """
    humid_overcast = snapshot.humidity_pct > 85 and snapshot.cloud_cover_pct > 70
    if not (snapshot.is_rainy or snapshot.precipitation_mm_h > 0 or humid_overcast):
        return NO_RECENT_RAIN

    humidity = snapshot.humidity_pct
    if humidity > 95:
        hours = 0.25
    elif humidity > 90:
        hours = 0.5
    elif humidity > 85:
        hours = 1.0
    else:
        hours = 2.0
    return _signal_for_hours(hours)
