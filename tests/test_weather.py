from datetime import datetime

import pytest
import requests

from conftest import build_weather
from core.exceptions import IntegrationError
from services.weather import (
    Season,
    WeatherClient,
    adjust_interval_for_weather,
    describe_weather_code,
    get_current_season,
    get_seasonal_tips,
    get_weather_alerts,
    is_good_day_for_outdoor_care,
)

OPEN_METEO_PAYLOAD = {
    "timezone": "Europe/Berlin",
    "current": {
        "temperature_2m": 18.2,
        "relative_humidity_2m": 64,
        "precipitation": 0.1,
        "weather_code": 3,
    },
    "daily": {
        "time": ["2026-06-01", "2026-06-02"],
        "temperature_2m_max": [22.0, 24.5],
        "temperature_2m_min": [11.0, 12.5],
        "precipitation_sum": [0.0, 2.4],
        "weather_code": [3, 61],
    },
}


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error:
            raise self.error
        return self.response


def test_fetch_weather_parses_forecast():
    session = FakeSession(FakeResponse(OPEN_METEO_PAYLOAD))
    client = WeatherClient("https://weather.test/forecast", timeout=5, session=session)

    weather = client.fetch_weather(52.5, 13.4)

    assert weather.current.temperature == 18.2
    assert weather.current.humidity == 64
    assert [d.precipitation_sum for d in weather.daily] == [0.0, 2.4]
    assert str(weather.daily[1].date) == "2026-06-02"

    url, params, timeout = session.calls[0]
    assert url == "https://weather.test/forecast"
    assert params["forecast_days"] == 7
    assert params["timezone"] == "auto"
    assert timeout == 5


@pytest.mark.parametrize("response", [
    FakeResponse({"current": {}}),
    FakeResponse({**OPEN_METEO_PAYLOAD, "current": {"temperature_2m": 1}}),
    FakeResponse(ValueError("not json")),
    FakeResponse(OPEN_METEO_PAYLOAD, status_code=500),
])
def test_fetch_weather_rejects_bad_responses(response):
    client = WeatherClient("https://weather.test/forecast", session=FakeSession(response))

    with pytest.raises(IntegrationError):
        client.fetch_weather(0, 0)


def test_fetch_weather_network_error():
    session = FakeSession(error=requests.ConnectionError("down"))
    client = WeatherClient("https://weather.test/forecast", session=session)

    with pytest.raises(IntegrationError):
        client.fetch_weather(0, 0)


@pytest.mark.parametrize("month, latitude, season", [
    (1, 50, Season.WINTER),
    (4, 50, Season.SPRING),
    (7, 50, Season.SUMMER),
    (10, 50, Season.AUTUMN),
    (1, -33, Season.SUMMER),
    (7, -33, Season.WINTER),
])
def test_current_season(month, latitude, season):
    assert get_current_season(latitude, datetime(2026, month, 15)) == season


def test_seasonal_tips():
    tips = get_seasonal_tips(Season.WINTER)
    assert "Most plants need less water" in tips
    assert len(tips) == 4


def alert_types(weather, outdoor=True):
    return {(a.type, a.severity) for a in get_weather_alerts(weather, outdoor)}


def test_mild_weather_has_no_alerts():
    assert get_weather_alerts(build_weather(), True) == []


def test_frost_alerts():
    assert alert_types(build_weather(tomorrow_min=3)) == {("frost", "warning")}
    assert alert_types(build_weather(tomorrow_min=-2)) == {("frost", "critical")}


def test_heatwave_alerts():
    assert alert_types(build_weather(tomorrow_max=37)) == {("heatwave", "warning")}
    assert alert_types(build_weather(tomorrow_max=41)) == {("heatwave", "critical")}


def test_heavy_rain_only_matters_outdoors():
    assert alert_types(build_weather(tomorrow_rain=30)) == {("heavy-rain", "warning")}
    assert alert_types(build_weather(tomorrow_rain=60)) == {("heavy-rain", "critical")}
    assert alert_types(build_weather(tomorrow_rain=60), outdoor=False) == set()


def test_low_humidity_alert():
    assert alert_types(build_weather(humidity=25), outdoor=False) == {("low-humidity", "warning")}


def test_indoor_interval_adjustment():
    weather = build_weather()
    assert adjust_interval_for_weather(10, weather, True, Season.WINTER) == (13, "Extended for winter dormancy")
    assert adjust_interval_for_weather(10, weather, True, Season.SUMMER) == (10, None)


def test_outdoor_interval_adjustment():
    rainy = build_weather(humidity=80, tomorrow_rain=15)
    interval, reason = adjust_interval_for_weather(7, rainy, False, Season.SPRING)
    assert interval == 10
    assert reason == "Extended due to rain forecast, high humidity"

    hot = build_weather(temperature=36)
    interval, reason = adjust_interval_for_weather(2, hot, False, Season.SUMMER)
    assert interval == 1
    assert reason.startswith("Shortened")


def test_good_day_for_outdoor_care():
    assert is_good_day_for_outdoor_care(build_weather()) == (True, "Good conditions for outdoor care")
    assert is_good_day_for_outdoor_care(build_weather(today_rain=8)) == (False, "Rain expected today")


def test_describe_weather_code():
    assert describe_weather_code(0) == "Clear sky"
    assert describe_weather_code(1234) == "Unknown"
