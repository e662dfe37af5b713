"""
Weather lookup (Open-Meteo) and the care advice derived from it.

``WeatherClient`` is the only part that does I/O. Everything else takes a
``WeatherData`` and is pure, so alerts and interval adjustments can be tested
without the network.
"""
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

import requests
from pydantic import BaseModel

from core.exceptions import IntegrationError
from core.logger import integration_logger


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


class CurrentWeather(BaseModel):
    temperature: float
    humidity: float
    precipitation: float
    weather_code: int


class DailyForecast(BaseModel):
    date: date
    temperature_max: float
    temperature_min: float
    precipitation_sum: float
    weather_code: int


class WeatherData(BaseModel):
    current: CurrentWeather
    daily: List[DailyForecast]
    timezone: str


class WeatherAlert(BaseModel):
    type: str  # frost | heatwave | heavy-rain | low-humidity
    severity: str  # warning | critical
    title: str
    message: str


WEATHER_CODE_DESCRIPTIONS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}

SEASONAL_TIPS = {
    Season.SPRING: [
        "Resume regular fertilizing schedule",
        "Good time to repot root-bound plants",
        "Increase watering as plants grow",
        "Watch for new pest activity",
    ],
    Season.SUMMER: [
        "Water more frequently in heat",
        "Provide shade for sensitive plants",
        "Check soil moisture daily",
        "Best time for outdoor plants",
    ],
    Season.AUTUMN: [
        "Reduce watering frequency",
        "Bring tropical plants inside before frost",
        "Last chance to fertilize before winter",
        "Clean up fallen leaves",
    ],
    Season.WINTER: [
        "Most plants need less water",
        "Keep plants away from cold drafts",
        "Pause fertilizing for most plants",
        "Increase humidity for indoor plants",
    ],
}


class WeatherClient:

    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_weather(self, latitude: float, longitude: float) -> WeatherData:
        """Current conditions plus a 7 day forecast for the coordinates."""
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": "temperature_2m,relative_humidity_2m,precipitation,weather_code",
            "daily": "temperature_2m_max,temperature_2m_min,precipitation_sum,weather_code",
            "timezone": "auto",
            "forecast_days": 7,
        }
        integration_logger.log_request("open-meteo", "forecast", params)

        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            integration_logger.log_error("open-meteo", e)
            raise IntegrationError(f"Failed to fetch weather data: {e}")

        if response.status_code != 200:
            raise IntegrationError(f"Weather API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise IntegrationError("Failed to parse weather API response")

        return parse_forecast(data)


def parse_forecast(data) -> WeatherData:
    if not isinstance(data, dict) or not all(k in data for k in ("current", "daily", "timezone")):
        raise IntegrationError("Invalid weather data structure from API")

    try:
        current = data["current"]
        daily = data["daily"]
        return WeatherData(
            current=CurrentWeather(
                temperature=current["temperature_2m"],
                humidity=current["relative_humidity_2m"],
                precipitation=current["precipitation"],
                weather_code=current["weather_code"],
            ),
            daily=[
                DailyForecast(
                    date=day,
                    temperature_max=daily["temperature_2m_max"][i],
                    temperature_min=daily["temperature_2m_min"][i],
                    precipitation_sum=daily["precipitation_sum"][i],
                    weather_code=daily["weather_code"][i],
                )
                for i, day in enumerate(daily["time"])
            ],
            timezone=data["timezone"],
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise IntegrationError(f"Invalid weather data structure from API: {e}")


def describe_weather_code(code: int) -> str:
    return WEATHER_CODE_DESCRIPTIONS.get(code, "Unknown")


def get_current_season(latitude: float, when: Optional[datetime] = None) -> Season:
    """Meteorological season; southern latitudes are shifted by half a year."""
    month = (when or datetime.now()).month
    northern = latitude >= 0

    if month in (3, 4, 5):
        return Season.SPRING if northern else Season.AUTUMN
    if month in (6, 7, 8):
        return Season.SUMMER if northern else Season.WINTER
    if month in (9, 10, 11):
        return Season.AUTUMN if northern else Season.SPRING
    return Season.WINTER if northern else Season.SUMMER


def get_seasonal_tips(season: Season) -> List[str]:
    return list(SEASONAL_TIPS[Season(season)])


def get_weather_alerts(weather: WeatherData, has_outdoor_plants: bool) -> List[WeatherAlert]:
    alerts = []
    tomorrow = weather.daily[1] if len(weather.daily) > 1 else None

    if tomorrow is not None:
        if tomorrow.temperature_min < 5:
            freezing = tomorrow.temperature_min < 0
            alerts.append(WeatherAlert(
                type="frost",
                severity="critical" if freezing else "warning",
                title="Frost Warning",
                message=(
                    f"Freezing temperatures expected ({tomorrow.temperature_min}°C). "
                    "Move outdoor plants inside immediately."
                    if freezing else
                    f"Cold temperatures expected ({tomorrow.temperature_min}°C). "
                    "Consider protecting sensitive plants."
                ),
            ))

        if tomorrow.temperature_max > 35:
            alerts.append(WeatherAlert(
                type="heatwave",
                severity="critical" if tomorrow.temperature_max > 40 else "warning",
                title="Heatwave Alert",
                message=(
                    f"High temperatures expected ({tomorrow.temperature_max}°C). "
                    "Increase watering and provide shade for plants."
                ),
            ))

        # rain only matters for plants that are outside
        if has_outdoor_plants and tomorrow.precipitation_sum > 20:
            alerts.append(WeatherAlert(
                type="heavy-rain",
                severity="critical" if tomorrow.precipitation_sum > 50 else "warning",
                title="Heavy Rain Expected",
                message=f"{tomorrow.precipitation_sum}mm of rain expected. Skip watering outdoor plants.",
            ))

    if weather.current.humidity < 30:
        alerts.append(WeatherAlert(
            type="low-humidity",
            severity="warning",
            title="Low Humidity",
            message=f"Current humidity is {weather.current.humidity}%. Consider misting tropical plants.",
        ))

    return alerts


def adjust_interval_for_weather(
        base_interval: int,
        weather: WeatherData,
        is_indoor: bool,
        season: Season,
) -> Tuple[int, Optional[str]]:
    """Return the adjusted watering interval and a reason, or (base, None)."""
    if is_indoor:
        if season == Season.WINTER:
            return round(base_interval * 1.3), "Extended for winter dormancy"
        return base_interval, None

    adjustment = 0
    reasons = []

    rain_next_two_days = sum(day.precipitation_sum for day in weather.daily[:2])
    if rain_next_two_days > 10:
        adjustment += 2
        reasons.append("rain forecast")

    if weather.current.humidity > 70:
        adjustment += 1
        reasons.append("high humidity")

    if weather.current.temperature > 35:
        adjustment -= 1
        reasons.append("high temperature")

    if season == Season.WINTER:
        adjustment += 3
        reasons.append("winter season")
    elif season == Season.SUMMER and weather.current.temperature > 30:
        adjustment -= 1
        reasons.append("summer heat")

    if adjustment == 0:
        return base_interval, None

    direction = "Extended" if adjustment > 0 else "Shortened"
    return max(1, base_interval + adjustment), f"{direction} due to {', '.join(reasons)}"


def is_good_day_for_outdoor_care(weather: WeatherData) -> Tuple[bool, str]:
    today = weather.daily[0]

    if today.precipitation_sum > 5:
        return False, "Rain expected today"
    if today.temperature_min < 5:
        return False, "Too cold for outdoor work"
    if today.temperature_max > 38:
        return False, "Too hot for outdoor work"
    if today.weather_code >= 95:
        return False, "Storms expected"

    return True, "Good conditions for outdoor care"
