import secrets
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import settings
from core.exceptions import AuthenticationError, FeatureDisabledError
from core.security import decode_access_token
from models.user import User
from services.geocoding import GeocodingClient
from services.plant_identifier import PlantIdentifierService
from services.weather import WeatherClient

security = HTTPBearer(auto_error=False)


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> User:
    if credentials is None:
        raise AuthenticationError()

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise AuthenticationError("Could not validate credentials")

    user = await User.get_or_none(id=user_id)
    if user is None:
        raise AuthenticationError("Could not validate credentials")
    return user


def get_weather_client(request: Request) -> WeatherClient:
    client = getattr(request.app.state, "weather_client", None)
    if client is None:
        raise FeatureDisabledError("Weather service is not configured")
    return client


def get_geocoder(request: Request) -> Optional[GeocodingClient]:
    return getattr(request.app.state, "geocoder", None)


def get_identifier(request: Request) -> Optional[PlantIdentifierService]:
    # None is a valid value: the tools service answers 503 for it
    return getattr(request.app.state, "identifier", None)


async def require_cron_secret(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    if not settings.CRON_SECRET:
        raise FeatureDisabledError("Maintenance endpoints are not configured")

    if credentials is None or not secrets.compare_digest(credentials.credentials, settings.CRON_SECRET):
        raise AuthenticationError()
