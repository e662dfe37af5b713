import json

import pytest

from conftest import PNG_BYTES, FakeWeatherClient, build_weather
from core.config import settings
from main import app
from models.plant import HealthAssessment, PlantLocation, Species
from models.usage import ToolType, UsageLog
from models.user import UserLocation


async def test_location_roundtrip_with_reverse_geocoding(client, make_user, auth_headers):
    user = await make_user()
    headers = auth_headers(user)

    response = await client.get("/api/v1/location", headers=headers)
    assert response.status_code == 404

    response = await client.post("/api/v1/location", json={"latitude": 52.52, "longitude": 13.4}, headers=headers)
    assert response.status_code == 200
    assert response.json()["city"] == "Berlin"
    assert response.json()["country"] == "Germany"

    response = await client.post("/api/v1/location", json={"latitude": 95, "longitude": 13.4}, headers=headers)
    assert response.status_code == 400

    response = await client.delete("/api/v1/location", headers=headers)
    assert response.status_code == 200
    assert await UserLocation.all().count() == 0


async def test_weather_requires_location(client, make_user, auth_headers):
    user = await make_user()

    response = await client.get("/api/v1/weather", headers=auth_headers(user))
    assert response.status_code == 404

    response = await client.get("/api/v1/weather/alerts", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["alerts"] == []
    assert "message" in response.json()


async def test_weather_and_alerts(client, make_user, make_plant, auth_headers):
    user = await make_user()
    await UserLocation.create(user=user, latitude=48.1, longitude=11.6)
    await make_plant(user, location=PlantLocation.OUTDOOR)
    app.state.weather_client = FakeWeatherClient(build_weather(tomorrow_min=-3, tomorrow_rain=25))

    response = await client.get("/api/v1/weather", headers=auth_headers(user))
    assert response.status_code == 200
    body = response.json()
    assert body["current"]["description"] == "Mainly clear"
    assert len(body["daily"]) == 2
    assert len(body["tips"]) == 4

    response = await client.get("/api/v1/weather/alerts", headers=auth_headers(user))
    types = {(a["type"], a["severity"]) for a in response.json()["alerts"]}
    assert types == {("frost", "critical"), ("heavy-rain", "warning")}


async def test_ai_features_disabled_without_identifier(client, make_user, auth_headers):
    user = await make_user()

    response = await client.post(
        "/api/v1/tools/identify-plant",
        files={"image": ("plant.png", PNG_BYTES, "image/png")},
        headers=auth_headers(user),
    )
    assert response.status_code == 503


async def test_identify_plant_with_catalog_matches(client, make_user, auth_headers, identifier_with):
    user = await make_user()
    await Species.create(common_name="Snake Plant", scientific_name="Dracaena trifasciata")
    identifier_with(json.dumps({
        "species": "Snake Plant",
        "scientific_name": "Dracaena trifasciata",
        "confidence": 0.9,
        "alternatives": [],
        "reasoning": "Sword-shaped leaves.",
        "care": {},
    }))

    response = await client.post(
        "/api/v1/tools/identify-plant",
        files={"image": ("plant.png", PNG_BYTES, "image/png")},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    body = response.json()
    assert [m["common_name"] for m in body["matches"]] == ["Snake Plant"]
    assert body["remaining"] == settings.IDENTIFY_HOURLY_LIMIT - 1


async def test_identify_plant_rate_limit(client, make_user, auth_headers, identifier_with):
    user = await make_user()
    identifier_with(json.dumps({"species": None, "reasoning": "No plant"}))
    for _ in range(settings.IDENTIFY_HOURLY_LIMIT):
        await UsageLog.create(user=user, tool_type=ToolType.PLANT_IDENTIFY)

    response = await client.post(
        "/api/v1/tools/identify-plant",
        files={"image": ("plant.png", PNG_BYTES, "image/png")},
        headers=auth_headers(user),
    )

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0


async def test_identify_rejects_non_images(client, make_user, auth_headers, identifier_with):
    user = await make_user()
    identifier_with("{}")

    response = await client.post(
        "/api/v1/tools/identify-plant",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(user),
    )
    assert response.status_code == 400


async def test_health_assessment_is_stored(client, make_user, make_plant, auth_headers, identifier_with):
    user = await make_user()
    other = await make_user()
    plant = await make_plant(user)
    identifier_with("HEALTH STATUS: Needs attention\nISSUES:\n- Brown tips\nRECOMMENDATIONS:\n- Mist daily")
    url = f"/api/v1/plants/{plant.id}/assessments"
    files = {"image": ("leaf.png", PNG_BYTES, "image/png")}

    response = await client.post(url, files=files, headers=auth_headers(other))
    assert response.status_code == 404

    response = await client.post(url, files=files, headers=auth_headers(user))
    assert response.status_code == 201
    assert response.json()["health_status"] == "Needs attention"

    assessment = await HealthAssessment.get(plant_id=plant.id)
    assert assessment.issues == "Brown tips"

    response = await client.get(f"/api/v1/plants/{plant.id}", headers=auth_headers(user))
    assert response.json()["assessments"][0]["recommendations"] == "Mist daily"


async def test_species_search(client, make_user, auth_headers):
    user = await make_user()
    await Species.create(common_name="Lavender", suitable_for=["OUTDOOR"])
    await Species.create(common_name="Peace Lily", suitable_for=["INDOOR"])

    response = await client.get("/api/v1/species?location=INDOOR", headers=auth_headers(user))
    assert [s["common_name"] for s in response.json()["species"]] == ["Peace Lily"]


@pytest.fixture
def registration_settings(monkeypatch):
    monkeypatch.setattr(settings, "MAX_USERS", 2)
    monkeypatch.setattr(settings, "ADMIN_EMAILS", ["boss@example.com"])
    monkeypatch.setattr(settings, "ENABLE_DEV_AUTH", True)


async def test_check_registration(client, make_user, registration_settings):
    await make_user(email="a@example.com")
    await make_user(email="b@example.com")

    response = await client.post("/api/v1/auth/check-registration", json={"email": "new@example.com"})
    assert response.json() == {"allowed": False, "remaining_slots": 0, "max_users": 2}

    response = await client.post("/api/v1/auth/check-registration", json={"email": "A@example.com"})
    assert response.json()["allowed"] is True

    response = await client.post("/api/v1/auth/check-registration", json={"email": "boss@example.com"})
    assert response.json()["allowed"] is True


async def test_dev_login(client, registration_settings):
    response = await client.post("/api/v1/auth/dev-login", json={"email": "alice@example.com"})
    assert response.status_code == 400

    response = await client.post("/api/v1/auth/dev-login", json={"email": "alice@garden-optimus.local", "name": "Alice"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "alice@garden-optimus.local"
    assert response.json()["name"] == "Alice"


async def test_dev_login_disabled(client, monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_DEV_AUTH", False)

    response = await client.post("/api/v1/auth/dev-login", json={"email": "alice@garden-optimus.local"})
    assert response.status_code == 503


async def test_purge_requires_cron_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")

    response = await client.post("/api/v1/maintenance/purge-deleted-plants")
    assert response.status_code == 401

    response = await client.post("/api/v1/maintenance/purge-deleted-plants",
                                 headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401

    response = await client.post("/api/v1/maintenance/purge-deleted-plants",
                                 headers={"Authorization": "Bearer s3cret"})
    assert response.status_code == 200
    assert response.json()["deleted_count"] == 0


async def test_health(client):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
