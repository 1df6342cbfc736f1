from datetime import datetime, timedelta, timezone

import httpx
import pytest

from providers.fake_providers import FakeWeatherProvider
from providers.registry import get_providers, reload_providers
from providers.real_providers import OpenWeatherMapProvider
from rainbow_forecast_service import next_optimal, scan
from weather_snapshot import RecentRainSignal

MOSCOW = (55.75, 37.62)
MSK = timezone(timedelta(hours=3))

CURRENT_PAYLOAD = {
    "weather": [{"main": "Rain", "description": "light rain"}],
    "main": {"temp": 14.2, "humidity": 93, "pressure": 1008},
    "visibility": 8000,
    "wind": {"speed": 3.1},
    "clouds": {"all": 75},
    "rain": {"1h": 0.6},
    "dt": 1715747400,
}

FORECAST_PAYLOAD = {
    "city": {"timezone": 10800},
    "list": [
        {
            "dt": 1715745600,  # 2024-05-15 07:00 +03:00
            "weather": [{"main": "Clouds", "description": "broken clouds"}],
            "main": {"temp": 12, "humidity": 80, "pressure": 1009},
            "clouds": {"all": 70},
            "wind": {"speed": 2},
        },
        {
            "dt": 1715756400,  # 10:00
            "weather": [{"main": "Rain", "description": "moderate rain"}],
            "main": {"temp": 13, "humidity": 94, "pressure": 1007},
            "clouds": {"all": 90},
            "wind": {"speed": 4},
            "rain": {"3h": 4.5},
        },
        {
            "dt": 1715767200,  # 13:00
            "weather": [{"main": "Clear", "description": "clear sky"}],
            "main": {"temp": 16, "humidity": 75, "pressure": 1010},
            "clouds": {"all": 20},
            "wind": {"speed": 2},
        },
    ],
}


@pytest.fixture(autouse=True)
def _demo_mode(monkeypatch):
    monkeypatch.setenv("RAINBOW_MODE", "demo")
    reload_providers()
    yield
    reload_providers("prod")


def _transport(payload, status=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload)
    return httpx.MockTransport(handler)


def test_demo_mode_uses_fakes():
    providers = get_providers()
    assert isinstance(providers.weather, FakeWeatherProvider)
    assert providers.mode == "demo"


def test_prod_mode_switch(monkeypatch):
    monkeypatch.setenv("RAINBOW_MODE", "prod")
    reload_providers()
    providers = get_providers()
    assert isinstance(providers.weather, OpenWeatherMapProvider)


def test_explicit_mode_overrides_environment():
    assert isinstance(reload_providers("test").weather, FakeWeatherProvider)
    assert isinstance(reload_providers("prod").weather, OpenWeatherMapProvider)


def test_providers_are_cached():
    assert get_providers() is get_providers()


@pytest.mark.asyncio
async def test_fake_weather_deterministic():
    providers = get_providers()
    first = await providers.weather.get_weather(*MOSCOW)
    second = await providers.weather.get_weather(55.9, 37.5)  # within 0.5°
    assert first == second
    assert first.condition == "Clear"
    assert first.humidity_pct == 82
    assert first.recent_rain == RecentRainSignal(True, 0.5, True)


@pytest.mark.asyncio
async def test_fake_weather_unknown_location():
    assert await get_providers().weather.get_weather(0.0, 0.0) is None
    assert await get_providers().weather.get_hourly_forecast(0.0, 0.0) == []


@pytest.mark.asyncio
async def test_fake_hourly_forecast():
    hourly = await get_providers().weather.get_hourly_forecast(*MOSCOW, hours=24)
    assert len(hourly) == 12
    assert hourly[0][0] == datetime(2024, 5, 15, 5, 0, tzinfo=MSK)
    assert hourly[0][0].utcoffset() == timedelta(hours=3)
    assert len(await get_providers().weather.get_hourly_forecast(*MOSCOW, hours=3)) == 3


@pytest.mark.asyncio
async def test_fake_forecast_first_optimal_hour():
    """Dawn showers clear at 07:00; earlier hours are too low or overcast."""
    hourly = await get_providers().weather.get_hourly_forecast(*MOSCOW)
    assessments = list(scan(*MOSCOW, hourly))
    assert next_optimal(assessments, threshold=60) == datetime(2024, 5, 15, 7, 0, tzinfo=MSK)


class TestOpenWeatherMapNormalization:
    def test_current(self):
        snapshot = OpenWeatherMapProvider.normalize_current(CURRENT_PAYLOAD)
        assert snapshot.temperature_c == 14.2
        assert snapshot.humidity_pct == 93
        assert snapshot.pressure_hpa == 1008
        assert snapshot.cloud_cover_pct == 75
        assert snapshot.condition == "light rain"
        assert snapshot.visibility_m == 8000
        assert snapshot.wind_speed_ms == 3.1
        assert snapshot.precipitation_mm_h == pytest.approx(0.6)

    def test_missing_visibility_defaults(self):
        payload = dict(CURRENT_PAYLOAD)
        del payload["visibility"]
        assert OpenWeatherMapProvider.normalize_current(payload).visibility_m == 10000

    def test_forecast_local_times_and_recent_rain(self):
        forecast = OpenWeatherMapProvider.normalize_forecast(FORECAST_PAYLOAD, hours=9)
        assert [at for at, _ in forecast] == [
            datetime(2024, 5, 15, 7, 0, tzinfo=MSK),
            datetime(2024, 5, 15, 10, 0, tzinfo=MSK),
            datetime(2024, 5, 15, 13, 0, tzinfo=MSK),
        ]
        assert forecast[0][1].recent_rain.has_recent_rain is False
        assert forecast[1][1].precipitation_mm_h == pytest.approx(1.5)
        assert forecast[1][1].recent_rain.hours_since_rain == 0.0
        assert forecast[2][1].recent_rain.hours_since_rain == pytest.approx(3.0)

    def test_forecast_hours_limit(self):
        assert len(OpenWeatherMapProvider.normalize_forecast(FORECAST_PAYLOAD, hours=3)) == 1


@pytest.mark.asyncio
async def test_openweather_current_over_http():
    seen = []
    provider = OpenWeatherMapProvider(
        api_key="test-key", base_url="https://owm.test/data/2.5", transport=_transport(CURRENT_PAYLOAD, seen=seen)
    )
    snapshot = await provider.get_weather(*MOSCOW)
    assert snapshot.condition == "light rain"
    # 93% humidity with rain → inferred 30 minutes since rain
    assert snapshot.recent_rain == RecentRainSignal(True, 0.5, True)
    request = seen[0]
    assert request.url.path == "/data/2.5/weather"
    assert request.url.params["appid"] == "test-key"
    assert request.url.params["units"] == "metric"


@pytest.mark.asyncio
async def test_openweather_forecast_over_http():
    provider = OpenWeatherMapProvider(api_key="test-key", transport=_transport(FORECAST_PAYLOAD))
    forecast = await provider.get_hourly_forecast(*MOSCOW, hours=6)
    assert len(forecast) == 2


@pytest.mark.asyncio
async def test_openweather_http_error_reported_as_none():
    provider = OpenWeatherMapProvider(api_key="test-key", transport=_transport({"message": "boom"}, status=500))
    assert await provider.get_weather(*MOSCOW) is None
    assert await provider.get_hourly_forecast(*MOSCOW) == []


@pytest.mark.asyncio
async def test_openweather_malformed_payload_reported_as_none():
    provider = OpenWeatherMapProvider(api_key="test-key", transport=_transport({"weather": []}))
    assert await provider.get_weather(*MOSCOW) is None


@pytest.mark.asyncio
async def test_openweather_without_api_key(monkeypatch):
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    seen = []
    provider = OpenWeatherMapProvider(transport=_transport(CURRENT_PAYLOAD, seen=seen))
    assert await provider.get_weather(*MOSCOW) is None
    assert seen == []
