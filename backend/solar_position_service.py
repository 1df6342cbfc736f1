"""
Solar Position Service - Sun Altitude, Azimuth & Daily Solar Events

Pure domain logic for locating the sun as seen by an observer on the ground,
and for finding the instants at which it crosses fixed altitudes during a day.

All functions are pure and deterministic (no I/O, no clock reads, no state).

Astronomy Model (Meeus "Astronomical Algorithms" / NOAA solar calculator):
- Time: Julian day of a timezone-aware instant, centuries since J2000.0
- Sun: geometric mean longitude, mean anomaly, orbit eccentricity,
  equation of center, apparent longitude (nutation + aberration term),
  obliquity of the ecliptic
- Equatorial: right ascension and declination
- Horizontal: Greenwich / local mean sidereal time, hour angle,
  altitude (degrees above horizon, negative below) and
  azimuth (degrees clockwise from true north, 0-360)
- Events: meridian transit, then the hour angle at fixed zenith angles
  * 90.833°: apparent sunrise/sunset (refraction + solar radius)
  * 96° / 102° / 108°: civil / nautical / astronomical twilight
  * 84°: golden hour bound (sun 6° above the horizon)

Accuracy:
- Position: ~0.01° for dates within a few centuries of J2000, degrading
  slowly further out (every datetime year 1-9999 still yields a finite result)
- Sunrise/sunset: about one minute away from the polar circles

Timezones:
- Instants must be timezone-aware; naive datetimes raise InvalidInput
- Solar events are reported in the timezone of the instant passed in, which is
  the observer's local civil time. Attach an explicit UTC offset with
  with_utc_offset(); the runtime's local clock is never consulted.

Input ranges:
- Latitude: -90 to +90. compute_* functions do not reject other values (the
  output is then meaningless); validate at the boundary with GeoInstant.
- Longitude: any finite value, normalized into (-180, +180] before use.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from math import acos, asin, atan2, cos, degrees, isfinite, radians, sin, tan
from typing import Optional, Tuple

from common.errors import InvalidInput

UTC = timezone.utc
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

COMPASS_POINTS = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


@dataclass(frozen=True)
class GeoInstant:
    """
    Validated observer location and moment.

    Attributes:
        latitude: Degrees north (-90 to +90)
        longitude: Degrees east, normalized into (-180, +180]
        instant: Timezone-aware datetime
    """
    latitude: float
    longitude: float
    instant: datetime

    def __post_init__(self):
        lat, lon = validate_coordinates(self.latitude, self.longitude)
        require_aware(self.instant)
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)


@dataclass(frozen=True)
class SunPosition:
    """
    Sun position for one observer at one instant.

    Attributes:
        altitude_deg: Angle above the horizon (negative = below)
        azimuth_deg: Compass bearing, clockwise from true north (0-360)
        latitude: Observer latitude the position was computed for
        longitude: Observer longitude (normalized)
        distance_au: Earth-Sun distance in astronomical units
        declination_deg: Solar declination
        right_ascension_deg: Solar right ascension (0-360)
        hour_angle_deg: Local hour angle (-180 to +180, negative = before transit)

    The scorer reads the observer latitude from here (season, UV, sun events),
    so it has no default.
    """
    altitude_deg: float
    azimuth_deg: float
    latitude: float
    longitude: float
    distance_au: float = 1.0
    declination_deg: float = 0.0
    right_ascension_deg: float = 0.0
    hour_angle_deg: float = 0.0


@dataclass(frozen=True)
class SolarEvents:
    """
    Solar events for the calendar day of the requested instant.

    All datetimes share the timezone of the requested instant. A bound is None
    when the sun never crosses the corresponding altitude that day.
    is_polar_day / is_polar_night describe the sunrise threshold: the sun stays
    above it (midnight sun) or below it (polar night) for the whole day.
    """
    date: date
    solar_noon: datetime
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    civil_dawn: Optional[datetime]
    civil_dusk: Optional[datetime]
    nautical_dawn: Optional[datetime]
    nautical_dusk: Optional[datetime]
    astronomical_dawn: Optional[datetime]
    astronomical_dusk: Optional[datetime]
    golden_hour_morning_end: Optional[datetime]
    golden_hour_evening_start: Optional[datetime]
    is_polar_day: bool = False
    is_polar_night: bool = False

    @property
    def is_polar_degenerate(self) -> bool:
        """True when sunrise/sunset are undefined at this latitude and date."""
        return self.is_polar_day or self.is_polar_night

    @property
    def day_length(self) -> Optional[timedelta]:
        if self.sunrise is None or self.sunset is None:
            return None
        return self.sunset - self.sunrise


@dataclass(frozen=True)
class SunEvent:
    """Next sunrise or sunset after a given instant."""
    kind: str  # "sunrise" or "sunset"
    at: datetime
    time_until: timedelta


@dataclass(frozen=True)
class _SunCoordinates:
    declination_deg: float
    right_ascension_deg: float
    equation_of_time_min: float
    distance_au: float


def _require_finite(value, name: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if not isfinite(value):
        raise InvalidInput(f"{name} must be finite, got {value}")
    return value


def require_aware(instant) -> datetime:
    if not isinstance(instant, datetime):
        raise InvalidInput(f"Instant must be a datetime, got {type(instant).__name__}")
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise InvalidInput(f"Instant must be timezone-aware, got naive {instant.isoformat()}")
    return instant


def normalize_longitude(longitude: float) -> float:
    """Wrap a longitude into (-180, +180]."""
    lon = float(longitude) % 360.0
    if lon > 180.0:
        lon -= 360.0
    return lon


def validate_coordinates(latitude, longitude) -> Tuple[float, float]:
    """
    Check an observer location.

    Returns:
        (latitude, normalized longitude)

    Raises:
        InvalidInput: Non-numeric, non-finite or latitude outside ±90
    """
    lat = _require_finite(latitude, "latitude")
    lon = _require_finite(longitude, "longitude")
    if lat < -90 or lat > 90:
        raise InvalidInput(f"Latitude must be -90 to 90, got {lat}")
    return lat, normalize_longitude(lon)


def _clamp_unit(value: float) -> float:
    return max(-1.0, min(1.0, value))


class SolarPositionService:
    """
    Pure solar ephemeris calculations.

    All methods are static and deterministic.
    """

    J2000 = 2451545.0  # Julian day of the J2000.0 epoch
    DAYS_PER_CENTURY = 36525.0
    MINUTES_PER_DEGREE = 4.0  # Sun's hour angle advances 15° per hour

    # Zenith angles for solar events
    SUNRISE_ZENITH = 90.833
    CIVIL_ZENITH = 96.0
    NAUTICAL_ZENITH = 102.0
    ASTRONOMICAL_ZENITH = 108.0
    GOLDEN_HOUR_ZENITH = 84.0

    # Rainbow timing window
    RAINBOW_MIN_ALTITUDE = 5.0
    RAINBOW_MAX_ALTITUDE = 42.0
    RAINBOW_WINDOW_HOURS = 3

    MAX_UTC_OFFSET_HOURS = 14

    @staticmethod
    def julian_day(instant: datetime) -> float:
        """
        Convert a timezone-aware instant to a Julian day number.

        Raises:
            InvalidInput: If the instant is naive or not a datetime
        """
        require_aware(instant)
        elapsed = instant - UNIX_EPOCH
        return elapsed.total_seconds() / 86400.0 + 2440587.5

    @staticmethod
    def _sun_coordinates(jd: float) -> _SunCoordinates:
        t = (jd - SolarPositionService.J2000) / SolarPositionService.DAYS_PER_CENTURY

        mean_longitude = (280.46646 + t * (36000.76983 + t * 0.0003032)) % 360.0
        mean_anomaly = 357.52911 + t * (35999.05029 - 0.0001537 * t)
        eccentricity = 0.016708634 - t * (0.000042037 + 0.0000001267 * t)

        m = radians(mean_anomaly)
        center = (
            sin(m) * (1.914602 - t * (0.004817 + 0.000014 * t))
            + sin(2 * m) * (0.019993 - 0.000101 * t)
            + sin(3 * m) * 0.000289
        )
        true_longitude = mean_longitude + center
        true_anomaly = radians(mean_anomaly + center)

        distance = (
            1.000001018 * (1 - eccentricity ** 2)
            / (1 + eccentricity * cos(true_anomaly))
        )

        omega = radians(125.04 - 1934.136 * t)
        apparent_longitude = radians(true_longitude - 0.00569 - 0.00478 * sin(omega))

        mean_obliquity = 23.0 + (
            26.0 + (21.448 - t * (46.815 + t * (0.00059 - t * 0.001813))) / 60.0
        ) / 60.0
        obliquity = radians(mean_obliquity + 0.00256 * cos(omega))

        right_ascension = degrees(
            atan2(cos(obliquity) * sin(apparent_longitude), cos(apparent_longitude))
        ) % 360.0
        declination = degrees(asin(sin(obliquity) * sin(apparent_longitude)))

        y = tan(obliquity / 2) ** 2
        l0 = radians(mean_longitude)
        equation_of_time = 4 * degrees(
            y * sin(2 * l0)
            - 2 * eccentricity * sin(m)
            + 4 * eccentricity * y * sin(m) * cos(2 * l0)
            - 0.5 * y * y * sin(4 * l0)
            - 1.25 * eccentricity * eccentricity * sin(2 * m)
        )

        return _SunCoordinates(
            declination_deg=declination,
            right_ascension_deg=right_ascension,
            equation_of_time_min=equation_of_time,
            distance_au=distance,
        )

    @staticmethod
    def _hour_angle(jd: float, longitude: float, right_ascension_deg: float) -> float:
        """Local hour angle in degrees, wrapped into [-180, 180)."""
        t = (jd - SolarPositionService.J2000) / SolarPositionService.DAYS_PER_CENTURY
        gmst = (
            280.46061837
            + 360.98564736629 * (jd - SolarPositionService.J2000)
            + 0.000387933 * t * t
            - t * t * t / 38710000.0
        ) % 360.0
        local_sidereal = gmst + longitude
        return (local_sidereal - right_ascension_deg + 180.0) % 360.0 - 180.0

    @staticmethod
    def compute_sun_position(latitude: float, longitude: float, instant: datetime) -> SunPosition:
        """
        Compute the sun's horizontal position for an observer.

        Args:
            latitude: Observer latitude in degrees (-90 to +90, not validated)
            longitude: Observer longitude in degrees (normalized modulo 360)
            instant: Timezone-aware datetime

        Returns:
            SunPosition with altitude, azimuth and Earth-Sun distance

        Raises:
            InvalidInput: If the instant is naive
        """
        jd = SolarPositionService.julian_day(instant)
        lon = normalize_longitude(longitude)
        lat = float(latitude)

        coords = SolarPositionService._sun_coordinates(jd)
        hour_angle = SolarPositionService._hour_angle(jd, lon, coords.right_ascension_deg)

        lat_rad = radians(lat)
        dec_rad = radians(coords.declination_deg)
        ha_rad = radians(hour_angle)

        sin_altitude = sin(lat_rad) * sin(dec_rad) + cos(lat_rad) * cos(dec_rad) * cos(ha_rad)
        altitude = degrees(asin(_clamp_unit(sin_altitude)))

        # Measured from south, westward; shifted by 180° to a north-based bearing
        azimuth = (
            degrees(atan2(sin(ha_rad), cos(ha_rad) * sin(lat_rad) - tan(dec_rad) * cos(lat_rad)))
            + 180.0
        ) % 360.0

        return SunPosition(
            altitude_deg=altitude,
            azimuth_deg=azimuth,
            distance_au=coords.distance_au,
            latitude=lat,
            longitude=lon,
            declination_deg=coords.declination_deg,
            right_ascension_deg=coords.right_ascension_deg,
            hour_angle_deg=hour_angle,
        )

    @staticmethod
    def equation_of_time_minutes(instant: datetime) -> float:
        """Apparent minus mean solar time, in minutes (about -14 to +16)."""
        jd = SolarPositionService.julian_day(instant)
        return SolarPositionService._sun_coordinates(jd).equation_of_time_min

    @staticmethod
    def _transit_near(guess: datetime, longitude: float) -> datetime:
        """Meridian transit closest to `guess`, in UTC."""
        moment = guess.astimezone(UTC)
        for _ in range(3):
            jd = SolarPositionService.julian_day(moment)
            coords = SolarPositionService._sun_coordinates(jd)
            hour_angle = SolarPositionService._hour_angle(jd, longitude, coords.right_ascension_deg)
            moment -= timedelta(minutes=hour_angle * SolarPositionService.MINUTES_PER_DEGREE)
        return moment

    @staticmethod
    def _cos_hour_angle(latitude: float, declination_deg: float, zenith_deg: float) -> float:
        """
        Cosine of the hour angle at which the sun reaches `zenith_deg`.

        > 1 means the sun never climbs to that zenith angle (stays below),
        < -1 means it never sinks to it (stays above).
        """
        lat_rad = radians(latitude)
        dec_rad = radians(declination_deg)
        denominator = cos(lat_rad) * cos(dec_rad)
        numerator = cos(radians(zenith_deg)) - sin(lat_rad) * sin(dec_rad)
        if abs(denominator) < 1e-12:
            # At the poles the altitude is constant through the day
            return -2.0 if numerator < 0 else 2.0
        return numerator / denominator

    @staticmethod
    def _crossings(noon_utc: datetime, latitude: float, zenith_deg: float):
        """
        Morning and evening crossings of `zenith_deg` around a transit.

        Returns:
            (morning, evening, cos_hour_angle); crossings are None when the
            sun never reaches the zenith angle that day.
        """
        jd = SolarPositionService.julian_day(noon_utc)
        declination = SolarPositionService._sun_coordinates(jd).declination_deg
        cos_h = SolarPositionService._cos_hour_angle(latitude, declination, zenith_deg)
        if cos_h > 1.0 or cos_h < -1.0:
            return None, None, cos_h

        crossings = []
        for direction in (-1, 1):
            hour_angle = degrees(acos(cos_h))
            estimate = noon_utc + timedelta(
                minutes=direction * hour_angle * SolarPositionService.MINUTES_PER_DEGREE
            )
            # Refine once with the declination at the estimated crossing
            refined_dec = SolarPositionService._sun_coordinates(
                SolarPositionService.julian_day(estimate)
            ).declination_deg
            refined_cos = SolarPositionService._cos_hour_angle(latitude, refined_dec, zenith_deg)
            if -1.0 <= refined_cos <= 1.0:
                hour_angle = degrees(acos(refined_cos))
                estimate = noon_utc + timedelta(
                    minutes=direction * hour_angle * SolarPositionService.MINUTES_PER_DEGREE
                )
            crossings.append(estimate)

        return crossings[0], crossings[1], cos_h

    @staticmethod
    def compute_solar_events(latitude: float, longitude: float, instant: datetime) -> SolarEvents:
        """
        Compute sunrise, solar noon, sunset, twilights and golden-hour bounds.

        The day is the calendar date of `instant` in its own timezone, and every
        returned datetime is expressed in that timezone.

        Args:
            latitude: Observer latitude in degrees (-90 to +90, not validated)
            longitude: Observer longitude in degrees (normalized modulo 360)
            instant: Timezone-aware datetime selecting the day and the timezone

        Returns:
            SolarEvents. At polar latitudes sunrise/sunset are None and
            is_polar_day / is_polar_night is set; this is not an error.

        Raises:
            InvalidInput: If the instant is naive
        """
        require_aware(instant)
        lon = normalize_longitude(longitude)
        lat = float(latitude)
        tz = instant.tzinfo

        local_noon = instant.replace(hour=12, minute=0, second=0, microsecond=0)
        noon_utc = SolarPositionService._transit_near(local_noon, lon)

        def local(moment):
            return moment.astimezone(tz) if moment is not None else None

        sunrise, sunset, cos_sunrise = SolarPositionService._crossings(
            noon_utc, lat, SolarPositionService.SUNRISE_ZENITH
        )
        civil_dawn, civil_dusk, _ = SolarPositionService._crossings(
            noon_utc, lat, SolarPositionService.CIVIL_ZENITH
        )
        nautical_dawn, nautical_dusk, _ = SolarPositionService._crossings(
            noon_utc, lat, SolarPositionService.NAUTICAL_ZENITH
        )
        astro_dawn, astro_dusk, _ = SolarPositionService._crossings(
            noon_utc, lat, SolarPositionService.ASTRONOMICAL_ZENITH
        )
        golden_end, golden_start, _ = SolarPositionService._crossings(
            noon_utc, lat, SolarPositionService.GOLDEN_HOUR_ZENITH
        )

        return SolarEvents(
            date=instant.date(),
            solar_noon=local(noon_utc),
            sunrise=local(sunrise),
            sunset=local(sunset),
            civil_dawn=local(civil_dawn),
            civil_dusk=local(civil_dusk),
            nautical_dawn=local(nautical_dawn),
            nautical_dusk=local(nautical_dusk),
            astronomical_dawn=local(astro_dawn),
            astronomical_dusk=local(astro_dusk),
            golden_hour_morning_end=local(golden_end),
            golden_hour_evening_start=local(golden_start),
            is_polar_day=cos_sunrise < -1.0,
            is_polar_night=cos_sunrise > 1.0,
        )

    @staticmethod
    def is_daytime(latitude: float, longitude: float, instant: datetime) -> bool:
        """True when the sun is above the horizon."""
        position = SolarPositionService.compute_sun_position(latitude, longitude, instant)
        return position.altitude_deg > 0

    @staticmethod
    def is_optimal_rainbow_time(latitude: float, longitude: float, instant: datetime) -> bool:
        """
        True when both sun altitude and time of day favour a rainbow.

        Requires altitude within 5°-42° and the instant within three hours
        after sunrise or three hours before sunset. On polar days only the
        altitude condition applies.
        """
        position = SolarPositionService.compute_sun_position(latitude, longitude, instant)
        if not (
            SolarPositionService.RAINBOW_MIN_ALTITUDE
            <= position.altitude_deg
            <= SolarPositionService.RAINBOW_MAX_ALTITUDE
        ):
            return False

        events = SolarPositionService.compute_solar_events(latitude, longitude, instant)
        if events.sunrise is None or events.sunset is None:
            return events.is_polar_day

        window = timedelta(hours=SolarPositionService.RAINBOW_WINDOW_HOURS)
        in_morning = events.sunrise <= instant <= events.sunrise + window
        in_evening = events.sunset - window <= instant <= events.sunset
        return in_morning or in_evening

    @staticmethod
    def next_sun_event(
        latitude: float,
        longitude: float,
        instant: datetime,
        max_days: int = 190,
    ) -> Optional[SunEvent]:
        """
        Find the next sunrise or sunset strictly after `instant`.

        Walks forward day by day so polar nights and midnight-sun periods are
        crossed. Returns None if neither event occurs within `max_days`.
        """
        require_aware(instant)
        for offset in range(max_days + 1):
            day = instant + timedelta(days=offset)
            events = SolarPositionService.compute_solar_events(latitude, longitude, day)
            candidates = [
                ("sunrise", events.sunrise),
                ("sunset", events.sunset),
            ]
            upcoming = [(kind, at) for kind, at in candidates if at is not None and at > instant]
            if upcoming:
                kind, at = min(upcoming, key=lambda item: item[1])
                return SunEvent(kind=kind, at=at, time_until=at - instant)
        return None

    @staticmethod
    def with_utc_offset(instant: datetime, offset_hours: float) -> datetime:
        """
        Express an instant in an explicit observer UTC offset.

        A naive datetime is interpreted as wall-clock time at that offset;
        an aware one is converted.

        Raises:
            InvalidInput: If the offset is outside ±14 hours
        """
        offset_hours = _require_finite(offset_hours, "utc_offset_hours")
        if abs(offset_hours) > SolarPositionService.MAX_UTC_OFFSET_HOURS:
            raise InvalidInput(f"UTC offset must be within ±14 hours, got {offset_hours}")
        if not isinstance(instant, datetime):
            raise InvalidInput(f"Instant must be a datetime, got {type(instant).__name__}")
        tz = timezone(timedelta(hours=offset_hours))
        if instant.tzinfo is None:
            return instant.replace(tzinfo=tz)
        return instant.astimezone(tz)


def antisolar_azimuth(azimuth_deg: float) -> float:
    """Bearing of the point directly opposite the sun."""
    return (azimuth_deg + 180.0) % 360.0


def compass_direction(azimuth_deg: float) -> str:
    """16-point compass label for a bearing."""
    index = int((azimuth_deg % 360.0) / 22.5 + 0.5) % 16
    return COMPASS_POINTS[index]
