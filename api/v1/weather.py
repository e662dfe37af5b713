from fastapi import APIRouter, Depends, status

from api.deps import get_current_user, get_geocoder, get_weather_client
from core.exceptions import NotFoundError
from models.user import User
from schemas.user import LocationIn
from services.geocoding import GeocodingClient
from services.location_service import LocationService
from services.weather import WeatherClient

router = APIRouter(prefix="/api/v1", tags=["Weather"])


@router.get("/location")
async def get_location(current_user: User = Depends(get_current_user)):
    location = await LocationService.get_location(current_user)
    if location is None:
        raise NotFoundError("No location set")
    return location


@router.post("/location", status_code=status.HTTP_200_OK)
async def save_location(
        data: LocationIn,
        current_user: User = Depends(get_current_user),
        geocoder: GeocodingClient = Depends(get_geocoder),
):
    return await LocationService.save_location(
        current_user,
        data.latitude,
        data.longitude,
        city=data.city,
        country=data.country,
        timezone=data.timezone,
        geocoder=geocoder,
    )


@router.delete("/location")
async def delete_location(current_user: User = Depends(get_current_user)):
    return await LocationService.delete_location(current_user)


@router.get("/weather")
async def get_weather(
        current_user: User = Depends(get_current_user),
        client: WeatherClient = Depends(get_weather_client),
):
    return await LocationService.get_weather(current_user, client)


@router.get("/weather/alerts")
async def get_weather_alerts(
        current_user: User = Depends(get_current_user),
        client: WeatherClient = Depends(get_weather_client),
):
    return await LocationService.get_alerts(current_user, client)
