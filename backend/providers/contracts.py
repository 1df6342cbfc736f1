from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from weather_snapshot import WeatherSnapshot

HourlyForecast = List[Tuple[datetime, WeatherSnapshot]]


class WeatherProvider(Protocol):
    async def get_weather(self, lat: float, lon: float) -> Optional[WeatherSnapshot]:
        ...

    async def get_hourly_forecast(self, lat: float, lon: float, hours: int = 24) -> HourlyForecast:
        ...
