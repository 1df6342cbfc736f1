from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from weather_snapshot import WeatherSnapshot

from .contracts import HourlyForecast, WeatherProvider

FIXTURES_ROOT = Path(__file__).parent.parent / "fixtures" / "demo"
MATCH_RADIUS_DEG = 0.5


class _FixtureLoader:
    def __init__(self, fixture_name: str):
        self.path = FIXTURES_ROOT / fixture_name / "data.json"
        with self.path.open("r", encoding="utf-8") as f:
            self.data = json.load(f)

    def _point_near(self, lat: float, lon: float) -> Optional[Dict[str, Any]]:
        for point in self.data.get("points", []):
            if (
                abs(point["lat"] - lat) < MATCH_RADIUS_DEG
                and abs(point["lon"] - lon) < MATCH_RADIUS_DEG
            ):
                return point
        return None


class FakeWeatherProvider(WeatherProvider, _FixtureLoader):
    """Deterministic weather from fixtures/demo/weather/data.json."""

    def __init__(self) -> None:
        _FixtureLoader.__init__(self, "weather")

    async def get_weather(self, lat: float, lon: float) -> Optional[WeatherSnapshot]:
        point = self._point_near(lat, lon)
        if point is None or "weather" not in point:
            return None
        return WeatherSnapshot.from_dict(point["weather"])

    async def get_hourly_forecast(self, lat: float, lon: float, hours: int = 24) -> HourlyForecast:
        point = self._point_near(lat, lon)
        if point is None:
            return []
        return [
            (datetime.fromisoformat(entry["time"]), WeatherSnapshot.from_dict(entry["weather"]))
            for entry in point.get("hourly", [])[:hours]
        ]
