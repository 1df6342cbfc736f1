from __future__ import annotations

import logging
import math
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from weather_snapshot import WeatherSnapshot, infer_recent_rain, recent_rain_from_history

from .contracts import HourlyForecast, WeatherProvider

logger = logging.getLogger(__name__)

DEFAULT_OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
FORECAST_STEP_HOURS = 3


class OpenWeatherMapProvider(WeatherProvider):
    """
    Current weather and 3-hourly forecast from OpenWeatherMap (metric units).

    Failures are logged and reported as None / [] so callers can decide how to
    respond; there are no retries.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.environ.get("OPENWEATHER_API_KEY", "")
        self.base_url = (
            base_url or os.environ.get("OPENWEATHER_BASE_URL") or DEFAULT_OPENWEATHER_BASE_URL
        ).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _get_json(self, endpoint: str, lat: float, lon: float) -> Optional[Dict[str, Any]]:
        if not self.api_key:
            logger.warning("OPENWEATHER_API_KEY is not set; weather unavailable")
            return None
        params = {"lat": lat, "lon": lon, "appid": self.api_key, "units": "metric"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(f"{self.base_url}/{endpoint}", params=params)
            response.raise_for_status()
            return response.json()

    async def get_weather(self, lat: float, lon: float) -> Optional[WeatherSnapshot]:
        try:
            data = await self._get_json("weather", lat, lon)
            if data is None:
                return None
            snapshot = self.normalize_current(data)
            return snapshot.with_recent_rain(infer_recent_rain(snapshot))
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"OpenWeatherMap current weather failed for {lat},{lon}: {e}")
            return None

    async def get_hourly_forecast(self, lat: float, lon: float, hours: int = 24) -> HourlyForecast:
        try:
            data = await self._get_json("forecast", lat, lon)
            if data is None:
                return []
            return self.normalize_forecast(data, hours)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"OpenWeatherMap forecast failed for {lat},{lon}: {e}")
            return []

    @staticmethod
    def normalize_current(data: Dict[str, Any]) -> WeatherSnapshot:
        """Map an OpenWeatherMap weather/forecast item onto a WeatherSnapshot."""
        main = data["main"]
        weather = (data.get("weather") or [{}])[0]
        rain = data.get("rain") or {}
        if "1h" in rain:
            precipitation = float(rain["1h"])
        elif "3h" in rain:
            precipitation = float(rain["3h"]) / FORECAST_STEP_HOURS
        else:
            precipitation = 0.0

        return WeatherSnapshot.from_dict({
            "temperature_c": main.get("temp"),
            "humidity_pct": main.get("humidity"),
            "pressure_hpa": main.get("pressure"),
            "cloud_cover_pct": (data.get("clouds") or {}).get("all", 0),
            "condition": weather.get("description") or weather.get("main") or "",
            "visibility_m": data.get("visibility", 10000),
            "wind_speed_ms": (data.get("wind") or {}).get("speed", 0),
            "precipitation_mm_h": precipitation,
        })

    @staticmethod
    def normalize_forecast(data: Dict[str, Any], hours: int = 24) -> HourlyForecast:
        """
        Map a forecast payload to (local instant, snapshot) pairs.

        Instants carry the city's UTC offset. Each entry's recent-rain signal
        is derived from the entries up to and including it.
        """
        offset_s = (data.get("city") or {}).get("timezone", 0)
        tz = timezone(timedelta(seconds=offset_s))
        limit = max(1, math.ceil(hours / FORECAST_STEP_HOURS))

        entries: List = []
        for item in data.get("list", [])[:limit]:
            at = datetime.fromtimestamp(item["dt"], tz=tz)
            entries.append((at, OpenWeatherMapProvider.normalize_current(item)))

        forecast: HourlyForecast = []
        for index, (at, snapshot) in enumerate(entries):
            signal = recent_rain_from_history(entries[: index + 1], at)
            forecast.append((at, snapshot.with_recent_rain(signal)))
        return forecast
