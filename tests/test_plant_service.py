from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import NotFoundError, ValidationError
from models.care import CareLog, CareType
from models.garden import GardenRole
from models.plant import Plant, Species
from services.plant_service import PlantService, days_until_permanent_delete


async def test_create_plant_requires_name_and_location(make_user):
    user = await make_user()

    with pytest.raises(ValidationError) as exc:
        await PlantService.create_plant(user, {"name": "Fern"})
    assert exc.value.message == "Name and location are required"

    with pytest.raises(ValidationError):
        await PlantService.create_plant(user, {"name": "Fern", "location": "ATTIC"})


async def test_create_plant_with_species(make_user):
    user = await make_user()
    species = await Species.create(common_name="Boston Fern", water_frequency="Weekly")

    data = await PlantService.create_plant(user, {
        "name": " Fern ",
        "location": "INDOOR",
        "species_id": species.id,
        "nickname": "",
    })

    assert data["name"] == "Fern"
    assert data["nickname"] is None
    assert data["location"] == "INDOOR"
    assert data["species_id"] == species.id


async def test_unknown_species_is_rejected(make_user):
    user = await make_user()

    with pytest.raises(ValidationError) as exc:
        await PlantService.create_plant(user, {"name": "Fern", "location": "INDOOR", "species_id": 42})
    assert exc.value.errors[0].field == "species_id"


async def test_other_users_plant_is_not_found(make_user, make_plant):
    owner = await make_user()
    other = await make_user()
    plant = await make_plant(owner)

    with pytest.raises(NotFoundError):
        await PlantService.update_plant(other, plant.id, {"name": "Mine now"})
    with pytest.raises(NotFoundError):
        await PlantService.get_plant_detail(other, plant.id)


async def test_garden_member_reads_plant_detail(make_user, make_garden, make_plant):
    owner = await make_user()
    viewer = await make_user()
    garden = await make_garden(owner, members=[(viewer, GardenRole.VIEWER)])
    plant = await make_plant(owner, garden=garden)
    await CareLog.create(plant=plant, type=CareType.WATERING)

    data = await PlantService.get_plant_detail(viewer, plant.id)

    assert data["read_only"] is True
    assert len(data["care_logs"]) == 1
    assert data["assessments"] == []


async def test_trash_and_restore(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)

    await PlantService.soft_delete_plant(user, plant.id)
    assert await PlantService.list_plants(user) == []

    deleted = await PlantService.list_deleted_plants(user)
    assert [p["id"] for p in deleted] == [plant.id]
    assert deleted[0]["days_until_permanent_delete"] == 7

    with pytest.raises(NotFoundError):
        await PlantService.soft_delete_plant(user, plant.id)

    restored = await PlantService.restore_plant(user, plant.id)
    assert restored["deleted_at"] is None
    assert len(await PlantService.list_plants(user)) == 1


async def test_permanent_delete_only_from_trash(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)

    with pytest.raises(NotFoundError) as exc:
        await PlantService.permanently_delete_plant(user, plant.id)
    assert exc.value.message == "Deleted plant not found"

    await PlantService.soft_delete_plant(user, plant.id)
    await PlantService.permanently_delete_plant(user, plant.id)
    assert not await Plant.exists(id=plant.id)


async def test_purge_removes_only_expired(make_user, make_plant):
    user = await make_user()
    now = datetime(2026, 3, 20, 12, tzinfo=timezone.utc)
    old = await make_plant(user, name="Old", deleted_at=now - timedelta(days=8))
    recent = await make_plant(user, name="Recent", deleted_at=now - timedelta(days=2))
    active = await make_plant(user, name="Active")

    result = await PlantService.purge_expired_plants(now)

    assert result["success"] is True
    assert result["deleted_count"] == 1
    assert result["error_count"] == 0
    assert not await Plant.exists(id=old.id)
    assert await Plant.exists(id=recent.id)
    assert await Plant.exists(id=active.id)


def test_days_until_permanent_delete():
    deleted_at = datetime(2026, 3, 1, tzinfo=timezone.utc)

    assert days_until_permanent_delete(deleted_at, deleted_at) == 7
    assert days_until_permanent_delete(deleted_at, deleted_at + timedelta(days=6, hours=1)) == 1
    assert days_until_permanent_delete(deleted_at, deleted_at + timedelta(days=9)) == 0
