"""
Tests for the Rainbow Finder HTTP API

Runs the FastAPI app in-process against the demo fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from providers import reload_providers
from server import app

BST = timezone(timedelta(hours=1))

MOSCOW_MORNING = {"lat": 55.75, "lon": 37.62, "instant": "2024-05-15T07:30:00+03:00"}

FRESH_SHOWER_WEATHER = {
    "temperature_c": 18,
    "humidity_pct": 82,
    "cloud_cover_pct": 45,
    "condition": "Clear",
    "pressure_hpa": 1013,
    "visibility_m": 10000,
    "wind_speed_ms": 2,
    "recent_rain": {"has_recent_rain": True, "hours_since_rain": 0.5, "is_optimal": True},
}


@pytest.fixture(autouse=True)
def demo_providers(monkeypatch):
    monkeypatch.setenv("RAINBOW_MODE", "demo")
    reload_providers()
    yield
    reload_providers("prod")


@pytest.fixture
def client():
    return TestClient(app)


class TestHealth:
    def test_root(self, client):
        response = client.get("/api/")
        assert response.status_code == 200
        assert response.json()["message"] == "Rainbow Finder API"

    def test_health_reports_mode(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["mode"] == "demo"


class TestSunPosition:
    def test_moscow_morning(self, client):
        response = client.post("/api/sun/position", json=MOSCOW_MORNING)
        assert response.status_code == 200
        body = response.json()
        assert 5 < body["altitude_deg"] < 30
        assert 45 < body["azimuth_deg"] < 135  # morning sun in the east
        assert body["is_daytime"] is True
        assert body["antisolar_azimuth_deg"] == pytest.approx((body["azimuth_deg"] + 180) % 360, abs=0.01)

    def test_missing_instant_needs_offset(self, client):
        response = client.post("/api/sun/position", json={"lat": 55.75, "lon": 37.62})
        assert response.status_code == 400

    def test_missing_instant_with_offset_uses_now(self, client):
        response = client.post("/api/sun/position", json={"lat": 55.75, "lon": 37.62, "utc_offset_hours": 3})
        assert response.status_code == 200
        assert response.json()["instant"].endswith("+03:00")

    def test_utc_instant_far_from_greenwich_rejected(self, client):
        response = client.post(
            "/api/sun/position", json={"lat": 47.61, "lon": -122.33, "instant": "2024-05-16T02:00:00Z"}
        )
        assert response.status_code == 400

    def test_utc_instant_near_greenwich_accepted(self, client):
        response = client.post(
            "/api/sun/position", json={"lat": 51.5074, "lon": -0.1278, "instant": "2024-12-21T12:00:00Z"}
        )
        assert response.status_code == 200

    def test_naive_instant_rejected(self, client):
        response = client.post(
            "/api/sun/position", json={"lat": 55.75, "lon": 37.62, "instant": "2024-05-15T07:30:00"}
        )
        assert response.status_code == 400

    def test_naive_instant_with_offset(self, client):
        response = client.post(
            "/api/sun/position",
            json={"lat": 55.75, "lon": 37.62, "instant": "2024-05-15T07:30:00", "utc_offset_hours": 3},
        )
        assert response.status_code == 200
        assert response.json()["instant"].endswith("+03:00")

    def test_out_of_range_offset(self, client):
        response = client.post(
            "/api/sun/position",
            json={"lat": 55.75, "lon": 37.62, "instant": "2024-05-15T07:30:00", "utc_offset_hours": 20},
        )
        assert response.status_code == 400

    def test_latitude_out_of_range(self, client):
        response = client.post("/api/sun/position", json={"lat": 95, "lon": 0})
        assert response.status_code == 422


class TestSunEvents:
    def test_london_sunrise(self, client):
        response = client.post(
            "/api/sun/events", json={"lat": 51.5074, "lon": -0.1278, "instant": "2024-06-21T12:00:00+01:00"}
        )
        assert response.status_code == 200
        body = response.json()
        sunrise = datetime.fromisoformat(body["sunrise"])
        expected = datetime(2024, 6, 21, 4, 43, tzinfo=BST)
        assert abs((sunrise - expected).total_seconds()) < 180
        assert body["is_polar_night"] is False
        assert 16 < body["day_length_hours"] < 17

    def test_calendar_day_follows_observer_offset(self, client):
        """09:00 UTC is 18:00 in Tokyo; events belong to the Tokyo date."""
        tokyo = {"lat": 35.68, "lon": 139.69, "instant": "2024-05-15T09:00:00Z"}
        assert client.post("/api/sun/events", json=tokyo).status_code == 400

        body = client.post("/api/sun/events", json={**tokyo, "utc_offset_hours": 9}).json()
        assert body["date"] == "2024-05-15"
        sunrise = datetime.fromisoformat(body["sunrise"])
        assert sunrise.utcoffset() == timedelta(hours=9)
        assert sunrise.date().isoformat() == "2024-05-15"

    def test_tromso_polar_night(self, client):
        response = client.post(
            "/api/sun/events", json={"lat": 69.65, "lon": 18.96, "instant": "2024-12-21T12:00:00+01:00"}
        )
        body = response.json()
        assert body["is_polar_night"] is True
        assert body["sunrise"] is None
        assert body["sunset"] is None
        assert body["day_length_hours"] is None


class TestRainbowAssess:
    def test_inline_weather(self, client):
        response = client.post("/api/rainbow/assess", json={**MOSCOW_MORNING, "weather": FRESH_SHOWER_WEATHER})
        assert response.status_code == 200
        body = response.json()
        assert body["probability"] >= 75
        assert body["quality"] in ("good", "excellent")
        assert body["direction"]["bow"] == "primary"
        assert body["recommendations"]
        assert body["instant"] == "2024-05-15T07:30:00+03:00"

    def test_provider_weather_matches_inline(self, client):
        """The demo fixture for Moscow carries the same conditions as the inline payload."""
        inline = client.post("/api/rainbow/assess", json={**MOSCOW_MORNING, "weather": FRESH_SHOWER_WEATHER})
        fetched = client.post("/api/rainbow/assess", json=MOSCOW_MORNING)
        assert fetched.status_code == 200
        assert fetched.json()["probability"] == inline.json()["probability"]

    def test_unknown_location_without_weather(self, client):
        response = client.post(
            "/api/rainbow/assess", json={"lat": 0.0, "lon": 0.0, "instant": "2024-05-15T07:30:00+00:00"}
        )
        assert response.status_code == 502

    def test_invalid_humidity(self, client):
        weather = {**FRESH_SHOWER_WEATHER, "humidity_pct": 150}
        response = client.post("/api/rainbow/assess", json={**MOSCOW_MORNING, "weather": weather})
        assert response.status_code == 400
        assert "humidity" in response.json()["detail"]

    def test_same_moment_scores_the_same_in_any_notation(self, client):
        """Seattle evening sent as UTC plus an offset, or as local time."""
        seattle = {"lat": 47.61, "lon": -122.33, "weather": FRESH_SHOWER_WEATHER}
        from_utc = client.post(
            "/api/rainbow/assess", json={**seattle, "instant": "2024-05-16T02:00:00Z", "utc_offset_hours": -7}
        ).json()
        from_local = client.post(
            "/api/rainbow/assess", json={**seattle, "instant": "2024-05-15T19:00:00-07:00"}
        ).json()
        assert from_utc["instant"] == from_local["instant"] == "2024-05-15T19:00:00-07:00"
        assert from_utc["probability"] == from_local["probability"]
        assert from_local["probability"] > 50

    def test_utc_instant_without_offset_rejected(self, client):
        payload = {"lat": 47.61, "lon": -122.33, "instant": "2024-05-16T02:00:00Z", "weather": FRESH_SHOWER_WEATHER}
        assert client.post("/api/rainbow/assess", json=payload).status_code == 400

    def test_night_scores_zero(self, client):
        payload = {**MOSCOW_MORNING, "instant": "2024-05-15T23:30:00+03:00", "weather": FRESH_SHOWER_WEATHER}
        body = client.post("/api/rainbow/assess", json=payload).json()
        assert body["probability"] == 0.0
        assert body["quality"] == "none"


class TestRainbowForecast:
    def test_moscow_forecast(self, client):
        response = client.post("/api/rainbow/forecast", json={"lat": 55.75, "lon": 37.62})
        assert response.status_code == 200
        body = response.json()
        assert len(body["hours"]) == 12
        assert body["hours"][0]["probability"] == 0.0
        assert body["next_optimal"] == "2024-05-15T07:00:00+03:00"
        assert body["summary"]["count"] == 12

    def test_hours_limit(self, client):
        body = client.post("/api/rainbow/forecast", json={"lat": 55.75, "lon": 37.62, "hours": 3}).json()
        assert len(body["hours"]) == 3

    def test_unknown_location(self, client):
        response = client.post("/api/rainbow/forecast", json={"lat": 0.0, "lon": 0.0})
        assert response.status_code == 502

    def test_hours_validated(self, client):
        response = client.post("/api/rainbow/forecast", json={"lat": 55.75, "lon": 37.62, "hours": 0})
        assert response.status_code == 422
