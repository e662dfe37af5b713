from typing import Optional

from fastapi.concurrency import run_in_threadpool

from core.exceptions import IntegrationError, NotFoundError, ValidationError
from core.logger import db_logger, integration_logger
from models.plant import Plant, PlantLocation
from models.user import User, UserLocation
from services.geocoding import GeocodingClient
from services.reminders import utcnow
from services.validation import validate_coordinates
from services.weather import (
    WeatherClient,
    describe_weather_code,
    get_current_season,
    get_seasonal_tips,
    get_weather_alerts,
    is_good_day_for_outdoor_care,
)

NO_LOCATION = "No location set. Please set your location first."


def serialize_location(location: UserLocation):
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "city": location.city,
        "country": location.country,
        "timezone": location.timezone,
        "updated_at": location.updated_at,
    }


class LocationService:

    @staticmethod
    async def get_location(user: User):
        location = await UserLocation.get_or_none(user_id=user.id)
        return serialize_location(location) if location else None

    @staticmethod
    async def save_location(
            user: User,
            latitude,
            longitude,
            city: Optional[str] = None,
            country: Optional[str] = None,
            timezone: Optional[str] = None,
            geocoder: Optional[GeocodingClient] = None,
    ):
        errors = validate_coordinates(latitude, longitude)
        if errors:
            raise ValidationError(errors=errors)

        if geocoder is not None and not (city and country):
            try:
                place = await run_in_threadpool(geocoder.reverse, latitude, longitude)
            except IntegrationError as e:
                # the coordinates are still worth saving without a place name
                integration_logger.log_error("geocoding", e)
            else:
                city = city or place.get("city")
                country = country or place.get("country")

        location, created = await UserLocation.update_or_create(
            defaults={
                "latitude": latitude,
                "longitude": longitude,
                "city": city,
                "country": country,
                "timezone": timezone,
            },
            user_id=user.id,
        )

        if created:
            db_logger.log_create("UserLocation", {"id": location.id, "user_id": user.id})
        else:
            db_logger.log_update("UserLocation", location.id, {"latitude": latitude, "longitude": longitude})

        return serialize_location(location)

    @staticmethod
    async def delete_location(user: User):
        deleted = await UserLocation.filter(user_id=user.id).delete()
        if deleted:
            db_logger.log_delete("UserLocation", user.id)
        return {"success": True}

    @staticmethod
    async def get_weather(user: User, client: WeatherClient):
        location = await UserLocation.get_or_none(user_id=user.id)
        if location is None:
            raise NotFoundError(NO_LOCATION)

        weather = await run_in_threadpool(client.fetch_weather, location.latitude, location.longitude)
        season = get_current_season(location.latitude, utcnow())
        good_day, reason = is_good_day_for_outdoor_care(weather)

        current = weather.current.model_dump()
        current["description"] = describe_weather_code(weather.current.weather_code)

        return {
            "location": serialize_location(location),
            "current": current,
            "daily": [
                {**day.model_dump(), "description": describe_weather_code(day.weather_code)}
                for day in weather.daily
            ],
            "timezone": weather.timezone,
            "season": season.value,
            "tips": get_seasonal_tips(season),
            "outdoor_care": {"good_day": good_day, "reason": reason},
        }

    @staticmethod
    async def get_alerts(user: User, client: WeatherClient):
        location = await UserLocation.get_or_none(user_id=user.id)
        if location is None:
            return {"alerts": [], "message": "Set your location to receive weather alerts"}

        weather = await run_in_threadpool(client.fetch_weather, location.latitude, location.longitude)
        has_outdoor_plants = await Plant.exists(
            user_id=user.id,
            location=PlantLocation.OUTDOOR,
            deleted_at__isnull=True
        )

        alerts = get_weather_alerts(weather, has_outdoor_plants)
        return {
            "alerts": [a.model_dump() for a in alerts],
            "has_outdoor_plants": has_outdoor_plants,
        }
