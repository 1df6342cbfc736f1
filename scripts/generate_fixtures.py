#!/usr/bin/env python3
"""
Generate the demo weather fixture for the Rainbow Finder backend

Writes backend/fixtures/demo/weather/data.json, read by FakeWeatherProvider
when RAINBOW_MODE is demo or test. All values come from the literal tables
below, so the output is deterministic and reproducible.

Usage:
    python scripts/generate_fixtures.py
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

FIXTURE_PATH = Path(__file__).resolve().parent.parent / "backend" / "fixtures" / "demo" / "weather" / "data.json"

# Moscow, 15 May 2024: dawn showers clearing into a bright morning
MOSCOW_START = datetime(2024, 5, 15, 5, 0, tzinfo=timezone(timedelta(hours=3)))
MOSCOW_HOURLY = [
    # condition, temp °C, humidity %, cloud %, pressure hPa, visibility m, wind m/s, rain mm/h, hours since rain
    ("Moderate rain", 12, 96, 90, 1006, 6000, 4.0, 2.5, 0.0),
    ("Heavy rain", 12, 97, 95, 1005, 4000, 5.0, 6.0, 0.0),
    ("Partly cloudy", 14, 88, 50, 1008, 9000, 3.0, 0.0, 0.5),
    ("Clear", 16, 80, 30, 1010, 10000, 2.5, 0.0, 1.5),
    ("Clear", 17, 76, 25, 1011, 10000, 2.0, 0.0, 2.5),
    ("Few clouds", 18, 70, 20, 1012, 10000, 2.0, 0.0, 3.5),
    ("Scattered clouds", 19, 65, 35, 1012, 10000, 3.0, 0.0, 4.5),
    ("Scattered clouds", 20, 60, 40, 1013, 10000, 3.5, 0.0, 5.5),
    ("Broken clouds", 20, 62, 60, 1013, 10000, 4.0, 0.0, 6.5),
    ("Broken clouds", 19, 68, 75, 1012, 9000, 4.5, 0.0, 7.5),
    ("Light rain", 17, 85, 80, 1011, 8000, 4.0, 0.8, 0.0),
    ("Partly cloudy", 17, 84, 55, 1011, 10000, 3.0, 0.0, 0.5),
]

# Seattle, 15 May 2024: grey and drizzly
SEATTLE_START = datetime(2024, 5, 15, 6, 0, tzinfo=timezone(timedelta(hours=-7)))
SEATTLE_HOURLY = [
    ("Overcast clouds", 10, 86, 100, 1016, 9000, 3.0, 0.0, None),
    ("Light rain", 10, 92, 100, 1015, 7000, 3.5, 0.6, 0.0),
    ("Overcast clouds", 11, 90, 95, 1015, 8000, 3.6, 0.0, 0.5),
]


def _weather(row) -> Dict[str, Any]:
    condition, temp, humidity, cloud, pressure, visibility, wind, rain, since = row
    return {
        "temperature_c": temp,
        "humidity_pct": humidity,
        "cloud_cover_pct": cloud,
        "condition": condition,
        "pressure_hpa": pressure,
        "visibility_m": visibility,
        "wind_speed_ms": wind,
        "precipitation_mm_h": rain,
        "recent_rain": {
            "has_recent_rain": since is not None,
            "hours_since_rain": since,
            "is_optimal": since is not None and since < 1,
        },
    }


def _hourly(start: datetime, rows) -> List[Dict[str, Any]]:
    return [
        {"time": (start + timedelta(hours=i)).isoformat(), "weather": _weather(row)}
        for i, row in enumerate(rows)
    ]


def generate_weather_fixture() -> Dict[str, Any]:
    return {
        "version": "1.0",
        "description": "Deterministic demo weather for the Rainbow Finder backend",
        "points": [
            {
                "name": "Moscow",
                "lat": 55.75,
                "lon": 37.62,
                "utc_offset_hours": 3,
                "weather": _weather(("Clear", 18, 82, 45, 1013, 10000, 2.0, 0.0, 0.5)),
                "hourly": _hourly(MOSCOW_START, MOSCOW_HOURLY),
            },
            {
                "name": "Seattle",
                "lat": 47.6062,
                "lon": -122.3321,
                "utc_offset_hours": -7,
                "weather": _weather(("Overcast clouds", 11, 78, 95, 1016, 10000, 3.6, 0.0, None)),
                "hourly": _hourly(SEATTLE_START, SEATTLE_HOURLY),
            },
        ],
    }


def main():
    FIXTURE_PATH.parent.mkdir(parents=True, exist_ok=True)
    with FIXTURE_PATH.open("w", encoding="utf-8") as f:
        json.dump(generate_weather_fixture(), f, indent=2)
        f.write("\n")
    print(f"✓ Wrote {FIXTURE_PATH}")


if __name__ == "__main__":
    main()
