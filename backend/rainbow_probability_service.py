"""
Rainbow Probability Scoring (Pure & Deterministic)

Estimates the probability (0-100) that a primary rainbow is visible right now,
and where to look for it.

A rainbow needs three things at once: sunlight, falling or suspended water
droplets in front of the observer, and a sun low enough (< 42°) that the arc
around the antisolar point clears the horizon.

Pipeline:
  1. Hard gate: sun at or below the horizon → probability 0
  2. Factor sub-scores (each 0.0-1.0): sun angle, weather, atmosphere
  3. Base = 100 × weighted sum (weights normalized to 1.0)
  4. × time-of-day × season × (airmass scattering × droplet distribution)
  5. Rule-based bonuses and penalties, then the physical/night gate
  6. Clamp to [0, 100], round to 1 decimal, derive direction and quality tier

Usage:
  score(sun_position, weather, instant) -> RainbowAssessment
  RainbowProbabilityService(config).assess(lat, lon, instant, weather)

Nothing here performs I/O; logging only.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from math import cos, isfinite, radians
from typing import Dict, List, Mapping, Optional, Tuple

from solar_position_service import (
    GeoInstant,
    SolarPositionService,
    SunPosition,
    antisolar_azimuth,
    compass_direction,
    require_aware,
)
from weather_snapshot import (
    WeatherSnapshot,
    is_mist_condition,
    is_rain_condition,
    validate_snapshot,
)

logger = logging.getLogger(__name__)

FALLBACK_RECOMMENDATION = "Conditions unclear - watch the sky opposite the sun"


class QualityTier(str, Enum):
    """Discretized probability band, ordered weakest to strongest."""
    NONE = "none"
    VERY_WEAK = "very_weak"
    WEAK = "weak"
    MODERATE = "moderate"
    GOOD = "good"
    EXCELLENT = "excellent"


class ConditionSeverity(str, Enum):
    CRITICAL = "critical"
    POSITIVE = "positive"


@dataclass(frozen=True)
class ConditionFlag:
    """Human-readable observation about current conditions."""
    severity: ConditionSeverity
    message: str


@dataclass(frozen=True)
class RainbowDirection:
    """Where the primary bow stands, as seen by the observer."""
    center_deg: float  # Antisolar azimuth, clockwise from north
    half_width_deg: float  # Angular half-width of the arc sector
    elevation_deg: float  # 42° - sun altitude (top of the bow)
    start_deg: float
    end_deg: float
    compass: str  # 16-point label of center_deg
    bow: str = "primary"


@dataclass(frozen=True)
class RainbowAssessment:
    """Result of one scoring call."""
    probability: float  # 0-100, 1 decimal
    quality: QualityTier
    direction: Optional[RainbowDirection]
    factors: Dict[str, float]  # Named sub-scores 0.0-1.0
    conditions: Tuple[ConditionFlag, ...]
    recommendations: Tuple[str, ...]
    sun_position: SunPosition
    instant: datetime
    base_probability: float = 0.0
    time_modifier: float = 0.0
    environment_modifier: float = 0.0

    def to_dict(self) -> Dict:
        direction = None
        if self.direction is not None:
            direction = {
                "center_deg": round(self.direction.center_deg, 1),
                "half_width_deg": self.direction.half_width_deg,
                "elevation_deg": round(self.direction.elevation_deg, 1),
                "start_deg": round(self.direction.start_deg, 1),
                "end_deg": round(self.direction.end_deg, 1),
                "compass": self.direction.compass,
                "bow": self.direction.bow,
            }
        return {
            "probability": self.probability,
            "quality": self.quality.value,
            "direction": direction,
            "factors": {name: round(value, 3) for name, value in self.factors.items()},
            "conditions": [
                {"severity": c.severity.value, "message": c.message} for c in self.conditions
            ],
            "recommendations": list(self.recommendations),
            "sun": {
                "altitude_deg": round(self.sun_position.altitude_deg, 2),
                "azimuth_deg": round(self.sun_position.azimuth_deg, 2),
            },
            "instant": self.instant.isoformat(),
            "base_probability": round(self.base_probability, 1),
            "time_modifier": round(self.time_modifier, 3),
            "environment_modifier": round(self.environment_modifier, 3),
        }


@dataclass(frozen=True)
class Weights:
    """Named weights for each factor. Internally normalized to sum to 1.0."""
    recent_rain: float = 0.40
    sun_angle: float = 0.30
    sunlight: float = 0.15
    cloud: float = 0.065
    visibility: float = 0.04
    humidity: float = 0.02
    wind: float = 0.01
    current_rain: float = 0.005
    scattering: float = 0.005
    pressure: float = 0.005

    def normalize(self) -> "Weights":
        """Return a normalized copy where all weights sum to 1.0."""
        values = self.as_dict()
        total = sum(values.values())
        if total == 0:
            total = 1  # Avoid division by zero
        return Weights(**{name: value / total for name, value in values.items()})

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


WEIGHTED_FACTORS = tuple(f.name for f in fields(Weights))


@dataclass(frozen=True)
class ScoringConfig:
    """Every tunable of the scorer. Defaults reflect field experience."""
    weights: Weights = field(default_factory=Weights)

    # Sun geometry (degrees)
    min_sun_angle: float = 5.0
    optimal_sun_low: float = 15.0
    optimal_sun_high: float = 25.0
    max_sun_angle: float = 42.0
    low_sun_factor: float = 0.3  # sun_angle factor at min_sun_angle
    high_sun_factor: float = 0.2  # sun_angle factor at max_sun_angle
    rainbow_angle: float = 42.0  # Descartes' angle of the primary bow
    arc_half_width: float = 1.0

    # Humidity (%)
    min_humidity: float = 60.0
    optimal_humidity_low: float = 75.0
    optimal_humidity_high: float = 90.0

    # Visibility (meters)
    optimal_visibility_m: float = 10000.0
    min_visibility_m: float = 5000.0

    # Wind (m/s)
    calm_wind_ms: float = 3.0
    max_wind_ms: float = 10.0

    # Cloud cover (%)
    optimal_cloud_low: float = 20.0
    optimal_cloud_high: float = 70.0
    heavy_cloud: float = 85.0

    # Pressure (hPa)
    stable_pressure_low: float = 1000.0
    stable_pressure_high: float = 1020.0

    heavy_rain_mm_h: float = 4.0

    # Local clock hours
    night_hours: frozenset = frozenset({22, 23, 0, 1, 2, 3, 4})
    golden_hour_start: int = 17
    golden_hour_end: int = 19

    # Bonuses and penalties (multipliers)
    rain_low_sun_bonus: float = 1.2
    rain_low_sun_max_altitude: float = 30.0
    golden_hour_bonus: float = 1.1
    dry_air_humidity: float = 50.0
    dry_air_penalty: float = 0.5
    overcast_cloud: float = 90.0
    overcast_penalty: float = 0.3

    # Lower probability bound of each tier, strongest first
    quality_thresholds: Tuple[Tuple[float, QualityTier], ...] = (
        (90.0, QualityTier.EXCELLENT),
        (75.0, QualityTier.GOOD),
        (60.0, QualityTier.MODERATE),
        (40.0, QualityTier.WEAK),
        (20.0, QualityTier.VERY_WEAK),
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ScoringConfig":
        """
        Build a config with weight overrides from RAINBOW_WEIGHT_<FACTOR>.

        Example: RAINBOW_WEIGHT_RECENT_RAIN=0.25

        Raises:
            ValueError: If an override is not a finite, non-negative number
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for name in WEIGHTED_FACTORS:
            key = f"RAINBOW_WEIGHT_{name.upper()}"
            raw = environ.get(key)
            if raw is None or raw.strip() == "":
                continue
            try:
                value = float(raw)
            except ValueError:
                raise ValueError(f"{key} must be a number, got {raw!r}")
            if not isfinite(value) or value < 0:
                raise ValueError(f"{key} must be a finite non-negative number, got {raw!r}")
            overrides[name] = value

        if overrides:
            logger.info(f"Scoring weight overrides from environment: {overrides}")
        return cls(weights=Weights(**{**Weights().as_dict(), **overrides}))


def quality_tier_for(probability: float, config: Optional[ScoringConfig] = None) -> QualityTier:
    """Map a probability to its tier (59.9 → weak, 60.0 → moderate)."""
    config = config or ScoringConfig()
    for threshold, tier in config.quality_thresholds:
        if probability >= threshold:
            return tier
    return QualityTier.NONE


def _clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp value to [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def _lerp(x: float, x0: float, x1: float, y0: float, y1: float) -> float:
    """Linear interpolation of x over [x0, x1] onto [y0, y1]."""
    return y0 + (y1 - y0) * (x - x0) / (x1 - x0)


def _factor_sun_angle(altitude: float, cfg: ScoringConfig) -> float:
    """
    Sun altitude → factor.

    - below min or above max angle: 0
    - optimal band [15°, 25°]: 1.0
    - ramps 0.3 → 1.0 below the band and 1.0 → 0.2 above it
    """
    if altitude < cfg.min_sun_angle or altitude > cfg.max_sun_angle:
        return 0.0
    if altitude < cfg.optimal_sun_low:
        return _lerp(altitude, cfg.min_sun_angle, cfg.optimal_sun_low, cfg.low_sun_factor, 1.0)
    if altitude <= cfg.optimal_sun_high:
        return 1.0
    return _lerp(altitude, cfg.optimal_sun_high, cfg.max_sun_angle, 1.0, cfg.high_sun_factor)


def _factor_recent_rain(weather: WeatherSnapshot) -> float:
    rain = weather.recent_rain
    if rain is None or not rain.has_recent_rain:
        return 0.0
    hours = rain.hours_since_rain
    if rain.is_optimal or (hours is not None and hours < 1):
        return 1.0
    if hours is None:
        return 0.3
    if hours < 2:
        return 0.9
    if hours < 4:
        return 0.7
    if hours < 8:
        return 0.5
    return 0.3


def _factor_sunlight(weather: WeatherSnapshot) -> float:
    text = weather.condition.lower()
    if "clear" in text or "sunny" in text:
        return 1.0
    if "partly" in text:
        return 0.8
    if weather.cloud_cover_pct < 50:
        return 0.7
    if weather.cloud_cover_pct < 80:
        return 0.4
    return 0.1


def _factor_cloud(cloud: float, cfg: ScoringConfig) -> float:
    """Broken cloud is ideal: sun through the gaps, rain behind."""
    if cfg.optimal_cloud_low <= cloud <= cfg.optimal_cloud_high:
        return 1.0
    if cloud < cfg.optimal_cloud_low:
        return 0.3
    if cloud <= cfg.heavy_cloud:
        return 0.6
    return 0.1


def _factor_visibility(visibility_m: float, cfg: ScoringConfig) -> float:
    if visibility_m >= cfg.optimal_visibility_m:
        return 1.0
    if visibility_m >= cfg.min_visibility_m:
        return visibility_m / cfg.optimal_visibility_m
    return 0.2


def _factor_humidity(humidity: float, cfg: ScoringConfig) -> float:
    if humidity < cfg.min_humidity:
        return 0.0
    if humidity < cfg.optimal_humidity_low:
        return _lerp(humidity, cfg.min_humidity, cfg.optimal_humidity_low, 0.5, 1.0)
    if humidity <= cfg.optimal_humidity_high:
        return 1.0
    # Saturated air favours fog over distinct droplets
    return _lerp(humidity, cfg.optimal_humidity_high, 100.0, 1.0, 0.5)


def _factor_wind(wind_ms: float, cfg: ScoringConfig) -> float:
    if wind_ms <= cfg.calm_wind_ms:
        return 1.0
    if wind_ms <= cfg.max_wind_ms:
        return _lerp(wind_ms, cfg.calm_wind_ms, cfg.max_wind_ms, 1.0, 0.2)
    return 0.2


def _factor_current_rain(weather: WeatherSnapshot, cfg: ScoringConfig) -> float:
    """Rain falling on the observer hides the bow; droplets nearby help."""
    text = weather.condition.lower()
    if is_rain_condition(text):
        if "heavy" in text or weather.precipitation_mm_h >= cfg.heavy_rain_mm_h:
            return 0.1
        return 0.3
    if is_mist_condition(text):
        return 0.6
    if weather.humidity_pct > 70:
        return 0.6
    if weather.humidity_pct > 50:
        return 0.4
    return 0.2


def estimate_uv_index(latitude: float, cloud_cover_pct: float) -> float:
    """Rough UV index from latitude and cloud cover when none is measured."""
    cloud = _clamp(cloud_cover_pct, 0.0, 100.0)
    return max(0.0, 10.0 - abs(latitude) / 9.0) * (1.0 - cloud / 100.0)


def _factor_scattering(weather: WeatherSnapshot, latitude: float) -> float:
    uv = weather.uv_index
    if uv is None:
        uv = estimate_uv_index(latitude, weather.cloud_cover_pct)
    return min(1.0, uv / 5.0)


def _factor_pressure(pressure_hpa: Optional[float], cfg: ScoringConfig) -> float:
    if pressure_hpa is None:
        return 1.0
    if cfg.stable_pressure_low <= pressure_hpa <= cfg.stable_pressure_high:
        return 1.0
    return 0.8


def _factor_airmass_scattering(altitude: float) -> float:
    """Longer light path through the atmosphere washes out colours."""
    airmass = 1.0 / cos(radians(90.0 - altitude))
    return max(0.3, 1.0 - (airmass - 1.0) * 0.05)


def _factor_droplet_distribution(weather: WeatherSnapshot) -> float:
    humidity = weather.humidity_pct
    if humidity > 70 and 5 < weather.temperature_c < 30:
        return 0.9 + 0.1 * (humidity - 70) / 30
    return 0.5


def _time_of_day_factor(local_hour: float) -> float:
    if 6 <= local_hour <= 10 or 16 <= local_hour <= 20:
        return 1.0
    if 10 < local_hour <= 12 or 14 <= local_hour < 16:
        return 0.6
    if 5 <= local_hour < 6 or 20 < local_hour <= 21:
        return 0.4
    return 0.1


def _seasonal_factor(month: int, latitude: float) -> float:
    """Warm-season months favour convective showers; mirrored south of the equator."""
    if latitude < 0:
        month = (month + 5) % 12 + 1
    if 4 <= month <= 9:
        return 1.0
    if month in (3, 10):
        return 0.9
    return 0.8


def rainbow_direction(sun_position: SunPosition, config: Optional[ScoringConfig] = None) -> RainbowDirection:
    """Antisolar arc sector for a sun position (independent of weather)."""
    cfg = config or ScoringConfig()
    center = antisolar_azimuth(sun_position.azimuth_deg)
    return RainbowDirection(
        center_deg=center,
        half_width_deg=cfg.arc_half_width,
        elevation_deg=cfg.rainbow_angle - sun_position.altitude_deg,
        start_deg=(center - cfg.arc_half_width) % 360.0,
        end_deg=(center + cfg.arc_half_width) % 360.0,
        compass=compass_direction(center),
    )


class RainbowProbabilityService:
    """Scores rainbow visibility for a sun position and weather snapshot."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()
        self._weights = self.config.weights.normalize()

    def assess(
        self,
        latitude: float,
        longitude: float,
        instant: datetime,
        weather: WeatherSnapshot,
    ) -> RainbowAssessment:
        """
        Validate the location, compute the sun position, then score.

        Raises:
            InvalidInput: Bad coordinates or naive instant
            InvalidWeatherData: Weather values out of range or malformed
        """
        geo = GeoInstant(latitude, longitude, instant)
        position = SolarPositionService.compute_sun_position(geo.latitude, geo.longitude, geo.instant)
        return self.score(position, weather, geo.instant)

    def compute_factors(self, sun_position: SunPosition, weather: WeatherSnapshot) -> Dict[str, float]:
        """All sub-scores (0.0-1.0), weighted and multiplicative."""
        cfg = self.config
        altitude = sun_position.altitude_deg
        return {
            "recent_rain": _factor_recent_rain(weather),
            "sun_angle": _factor_sun_angle(altitude, cfg),
            "sunlight": _factor_sunlight(weather),
            "cloud": _factor_cloud(weather.cloud_cover_pct, cfg),
            "visibility": _factor_visibility(weather.visibility_m, cfg),
            "humidity": _factor_humidity(weather.humidity_pct, cfg),
            "wind": _factor_wind(weather.wind_speed_ms, cfg),
            "current_rain": _factor_current_rain(weather, cfg),
            "scattering": _factor_scattering(weather, sun_position.latitude),
            "pressure": _factor_pressure(weather.pressure_hpa, cfg),
            "airmass_scattering": _factor_airmass_scattering(altitude),
            "droplet_distribution": _factor_droplet_distribution(weather),
        }

    def score(
        self,
        sun_position: SunPosition,
        weather: WeatherSnapshot,
        instant: datetime,
    ) -> RainbowAssessment:
        """
        Score rainbow visibility.

        Args:
            sun_position: Sun position for the observer (carries its latitude)
            weather: Validated WeatherSnapshot
            instant: Timezone-aware instant; its clock is the observer's local time

        Returns:
            RainbowAssessment with probability, tier, direction and explanations

        Raises:
            InvalidWeatherData: Weather values out of range or malformed
            InvalidInput: Naive instant
        """
        validate_snapshot(weather)
        require_aware(instant)
        cfg = self.config
        altitude = sun_position.altitude_deg

        if altitude <= 0:
            return self._below_horizon(sun_position, weather, instant)

        factors = self.compute_factors(sun_position, weather)
        weights = self._weights.as_dict()
        base = 100.0 * sum(factors[name] * weights[name] for name in WEIGHTED_FACTORS)

        local_hour = instant.hour + instant.minute / 60.0
        time_of_day = _time_of_day_factor(local_hour)
        seasonal = _seasonal_factor(instant.month, sun_position.latitude)
        factors["time_of_day"] = time_of_day
        factors["seasonal"] = seasonal
        time_modifier = time_of_day * seasonal
        environment_modifier = factors["airmass_scattering"] * factors["droplet_distribution"]

        probability = base * time_modifier * environment_modifier
        probability = self._apply_bonuses_and_penalties(probability, weather, altitude, instant.hour)

        if self._is_gated(altitude, instant.hour):
            probability = 0.0

        probability = round(_clamp(probability, 0.0, 100.0), 1)
        logger.debug(
            f"Rainbow score alt={altitude:.1f} base={base:.1f} "
            f"time={time_modifier:.2f} env={environment_modifier:.3f} -> {probability}"
        )

        direction = rainbow_direction(sun_position, cfg)
        return RainbowAssessment(
            probability=probability,
            quality=quality_tier_for(probability, cfg),
            direction=direction,
            factors=factors,
            conditions=tuple(self._analyze_conditions(sun_position, weather, instant, time_of_day)),
            recommendations=self._build_recommendations(probability, sun_position, weather, instant, direction),
            sun_position=sun_position,
            instant=instant,
            base_probability=base,
            time_modifier=time_modifier,
            environment_modifier=environment_modifier,
        )

    def _below_horizon(
        self,
        sun_position: SunPosition,
        weather: WeatherSnapshot,
        instant: datetime,
    ) -> RainbowAssessment:
        return RainbowAssessment(
            probability=0.0,
            quality=QualityTier.NONE,
            direction=None,
            factors={"sun_angle": 0.0},
            conditions=(ConditionFlag(ConditionSeverity.CRITICAL, "Sun is below the horizon"),),
            recommendations=self._build_recommendations(0.0, sun_position, weather, instant, None),
            sun_position=sun_position,
            instant=instant,
        )

    def _apply_bonuses_and_penalties(
        self,
        probability: float,
        weather: WeatherSnapshot,
        altitude: float,
        hour: int,
    ) -> float:
        cfg = self.config
        if weather.is_rainy and cfg.min_sun_angle < altitude < cfg.rain_low_sun_max_altitude:
            probability *= cfg.rain_low_sun_bonus
        if cfg.golden_hour_start <= hour <= cfg.golden_hour_end:
            probability *= cfg.golden_hour_bonus
        if weather.humidity_pct < cfg.dry_air_humidity:
            probability *= cfg.dry_air_penalty
        if weather.cloud_cover_pct > cfg.overcast_cloud:
            probability *= cfg.overcast_penalty
        return probability

    def _is_gated(self, altitude: float, hour: int) -> bool:
        """Physical and night lockout: no rainbow regardless of weather."""
        cfg = self.config
        if altitude < cfg.min_sun_angle or altitude >= cfg.max_sun_angle:
            return True
        return hour in cfg.night_hours

    def _analyze_conditions(
        self,
        sun_position: SunPosition,
        weather: WeatherSnapshot,
        instant: datetime,
        time_of_day: float,
    ) -> List[ConditionFlag]:
        cfg = self.config
        altitude = sun_position.altitude_deg
        conditions = []

        if altitude < cfg.min_sun_angle:
            conditions.append(ConditionFlag(ConditionSeverity.CRITICAL, "Sun is too low for a rainbow"))
        elif altitude >= cfg.max_sun_angle:
            conditions.append(ConditionFlag(ConditionSeverity.CRITICAL, "Sun is too high for a rainbow"))
        elif cfg.optimal_sun_low <= altitude <= cfg.optimal_sun_high:
            conditions.append(ConditionFlag(ConditionSeverity.POSITIVE, "Ideal sun angle"))

        if instant.hour in cfg.night_hours:
            conditions.append(ConditionFlag(ConditionSeverity.CRITICAL, "Night hours"))
        if weather.cloud_cover_pct > cfg.overcast_cloud:
            conditions.append(ConditionFlag(ConditionSeverity.CRITICAL, "Overcast sky blocks the sun"))

        if weather.is_rainy:
            conditions.append(ConditionFlag(ConditionSeverity.POSITIVE, "Rain in the area"))
        if weather.recent_rain is not None and weather.recent_rain.is_optimal:
            conditions.append(ConditionFlag(ConditionSeverity.POSITIVE, "Rain within the last hour"))
        if weather.humidity_pct > 80:
            conditions.append(ConditionFlag(ConditionSeverity.POSITIVE, "High humidity"))
        if cfg.optimal_cloud_low < weather.cloud_cover_pct < cfg.optimal_cloud_high:
            conditions.append(ConditionFlag(ConditionSeverity.POSITIVE, "Broken clouds"))
        if time_of_day == 1.0:
            conditions.append(ConditionFlag(ConditionSeverity.POSITIVE, "Good time of day"))

        return conditions

    def _build_recommendations(
        self,
        probability: float,
        sun_position: SunPosition,
        weather: WeatherSnapshot,
        instant: datetime,
        direction: Optional[RainbowDirection],
    ) -> Tuple[str, ...]:
        """Recommendations never fail the assessment; fall back to generic advice."""
        try:
            return tuple(self._derive_recommendations(probability, sun_position, weather, instant, direction))
        except Exception as e:
            logger.warning(f"Recommendation derivation failed, using fallback: {e}")
            return (FALLBACK_RECOMMENDATION,)

    def _derive_recommendations(
        self,
        probability: float,
        sun_position: SunPosition,
        weather: WeatherSnapshot,
        instant: datetime,
        direction: Optional[RainbowDirection],
    ) -> List[str]:
        cfg = self.config
        recommendations = []
        altitude = sun_position.altitude_deg

        if altitude <= 0:
            recommendations.append("Wait for sunrise")
            event = SolarPositionService.next_sun_event(
                sun_position.latitude, sun_position.longitude, instant, max_days=2
            )
            if event is not None and event.kind == "sunrise":
                recommendations.append(f"Next sunrise at {event.at.strftime('%H:%M')}")
            return recommendations

        look = ""
        if direction is not None:
            look = f"Look toward {direction.center_deg:.0f}° ({direction.compass})"

        if probability > 80:
            recommendations.append("Excellent conditions - a rainbow is very likely")
            recommendations.append(look)
            if weather.recent_rain is not None and weather.recent_rain.is_optimal:
                recommendations.append("Fresh rain plus sunshine - ideal")
        elif probability > 60:
            recommendations.append("Good conditions for spotting a rainbow")
            recommendations.append(look)
        elif probability > 40:
            recommendations.append("Moderate conditions, keep an eye on the sky")
        elif probability > 20:
            recommendations.append("Weak conditions, but a rainbow is possible")
        else:
            recommendations.append("Conditions are unfavourable for rainbows")

        if altitude >= cfg.max_sun_angle:
            events = SolarPositionService.compute_solar_events(
                sun_position.latitude, sun_position.longitude, instant
            )
            later = events.golden_hour_evening_start or events.sunset
            if later is not None and later > instant:
                recommendations.append(f"Sun is too high - try again after {later.strftime('%H:%M')}")

        rain = weather.recent_rain
        if rain is not None:
            if not rain.has_recent_rain:
                recommendations.append("Wait for a shower followed by sunshine")
            elif rain.hours_since_rain is not None and rain.hours_since_rain > 2:
                recommendations.append("The last rain was a while ago - a fresh shower would help")

        if weather.cloud_cover_pct > 80:
            recommendations.append("Wait for the sun to break through the clouds")

        return [r for r in recommendations if r]


def score(
    sun_position: SunPosition,
    weather: WeatherSnapshot,
    instant: datetime,
    config: Optional[ScoringConfig] = None,
) -> RainbowAssessment:
    """Score with the default (or given) configuration."""
    return RainbowProbabilityService(config).score(sun_position, weather, instant)
