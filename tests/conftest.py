from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise, connections

from core.security import create_access_token
from init_db import MODEL_MODULES
from main import app
from models.garden import Garden, GardenMember
from models.plant import Plant, PlantLocation
from models.user import User
from services.plant_identifier import PlantIdentifierService
from services.weather import CurrentWeather, DailyForecast, WeatherData

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
async def db():
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": MODEL_MODULES},
        use_tz=True,
        timezone="UTC",
    )
    await Tortoise.generate_schemas()
    yield
    await connections.close_all(discard=True)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    async def _make_user(email=None, name=None):
        counter["n"] += 1
        return await User.create(
            email=email or f"user{counter['n']}@example.com",
            name=name or f"User {counter['n']}",
        )

    return _make_user


@pytest.fixture
def make_plant(db):
    async def _make_plant(user, name="Monstera", location=PlantLocation.INDOOR, **kwargs):
        return await Plant.create(user=user, name=name, location=location, **kwargs)

    return _make_plant


@pytest.fixture
def make_garden(db):
    async def _make_garden(owner, name="Backyard", members=()):
        garden = await Garden.create(name=name, owner=owner)
        for user, role in members:
            await GardenMember.create(garden=garden, user=user, role=role)
        return garden

    return _make_garden


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


def build_weather(
        temperature=20.0,
        humidity=50.0,
        tomorrow_min=10.0,
        tomorrow_max=25.0,
        tomorrow_rain=0.0,
        today_rain=0.0,
) -> WeatherData:
    today = date(2026, 6, 1)
    daily = [
        DailyForecast(
            date=today,
            temperature_max=25.0,
            temperature_min=12.0,
            precipitation_sum=today_rain,
            weather_code=1,
        ),
        DailyForecast(
            date=today + timedelta(days=1),
            temperature_max=tomorrow_max,
            temperature_min=tomorrow_min,
            precipitation_sum=tomorrow_rain,
            weather_code=2,
        ),
    ]
    return WeatherData(
        current=CurrentWeather(temperature=temperature, humidity=humidity, precipitation=0.0, weather_code=1),
        daily=daily,
        timezone="Europe/Berlin",
    )


class FakeWeatherClient:
    def __init__(self, weather=None):
        self.weather = weather or build_weather()
        self.calls = []

    def fetch_weather(self, latitude, longitude):
        self.calls.append((latitude, longitude))
        return self.weather


class FakeGeocoder:
    def __init__(self, place=None):
        self.place = place or {"city": "Berlin", "country": "Germany"}

    def reverse(self, latitude, longitude):
        return self.place


def fake_openai(content):
    """Object shaped like an OpenAI client whose completions always return ``content``."""
    requests = []

    def create(**kwargs):
        requests.append(kwargs)
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    client.requests = requests
    return client


@pytest.fixture
async def client(db):
    app.state.weather_client = FakeWeatherClient()
    app.state.geocoder = FakeGeocoder()
    app.state.identifier = None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def identifier_with():
    def _install(content):
        identifier = PlantIdentifierService(fake_openai(content), "gpt-4o")
        app.state.identifier = identifier
        return identifier

    return _install
