import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import NotFoundError, ValidationError
from models.care import CareLog, CareSchedule, CareType
from models.plant import Species
from models.user import UserLocation
from services.care_service import CareService, upsert_schedule

NOW = datetime(2026, 4, 1, 15, 0, tzinfo=timezone.utc)


async def test_upsert_twice_keeps_one_row(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)

    first = await upsert_schedule(plant.id, "WATERING", 7, now=NOW)
    second = await upsert_schedule(plant.id, "WATERING", 3, now=NOW)

    assert first.id == second.id
    assert await CareSchedule.filter(plant_id=plant.id).count() == 1
    schedule = await CareSchedule.get(id=first.id)
    assert schedule.interval_days == 3
    assert schedule.next_due_date == NOW + timedelta(days=3)


async def test_concurrent_upserts_keep_one_row(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)

    await asyncio.gather(*[
        upsert_schedule(plant.id, "WATERING", days, now=NOW) for days in (3, 5, 7, 9)
    ])

    schedules = await CareSchedule.filter(plant_id=plant.id, care_type=CareType.WATERING)
    assert len(schedules) == 1
    assert schedules[0].interval_days in (3, 5, 7, 9)


async def test_upsert_reenables_schedule(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)
    schedule = await upsert_schedule(plant.id, CareType.FERTILIZING, 30, now=NOW)
    schedule.enabled = False
    await schedule.save()

    again = await upsert_schedule(plant.id, CareType.FERTILIZING, 30, now=NOW)
    assert again.enabled is True


@pytest.mark.parametrize("care_type, interval", [("WATER", 7), ("WATERING", 0), ("WATERING", 400)])
async def test_upsert_validates_input(make_user, make_plant, care_type, interval):
    user = await make_user()
    plant = await make_plant(user)

    with pytest.raises(ValidationError):
        await upsert_schedule(plant.id, care_type, interval)
    assert await CareSchedule.all().count() == 0


async def test_schedule_for_foreign_plant_is_not_found(make_user, make_plant):
    owner = await make_user()
    other = await make_user()
    plant = await make_plant(owner)

    with pytest.raises(NotFoundError):
        await CareService.save_plant_schedule(other, plant.id, "WATERING", 7)


async def test_log_care_reschedules_existing(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)
    await upsert_schedule(plant.id, CareType.FERTILIZING, 14, now=NOW - timedelta(days=20))

    log = await CareService.log_care(user, plant.id, "FERTILIZING", notes="half dose", now=NOW)

    assert log["type"] == "FERTILIZING"
    schedule = await CareSchedule.get(plant_id=plant.id, care_type=CareType.FERTILIZING)
    assert schedule.last_cared_at == NOW
    assert schedule.next_due_date == datetime(2026, 4, 15, tzinfo=timezone.utc)


async def test_log_watering_creates_schedule_from_species(make_user, make_plant):
    user = await make_user()
    species = await Species.create(common_name="Snake Plant", water_frequency="Every 2-3 weeks")
    plant = await make_plant(user, species=species)

    await CareService.log_care(user, plant.id, "WATERING", now=NOW)

    schedule = await CareSchedule.get(plant_id=plant.id, care_type=CareType.WATERING)
    assert schedule.interval_days == 18
    assert schedule.next_due_date == datetime(2026, 4, 19, tzinfo=timezone.utc)
    assert await CareLog.filter(plant_id=plant.id).count() == 1


async def test_log_other_care_does_not_create_schedule(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)

    await CareService.log_care(user, plant.id, "PRUNING", now=NOW)

    assert await CareSchedule.all().count() == 0


async def test_log_care_requires_plant_and_type(make_user):
    user = await make_user()

    with pytest.raises(ValidationError) as exc:
        await CareService.log_care(user, None, "WATERING")
    assert exc.value.message == "Plant ID and care type are required"


async def test_due_list_filters_and_orders(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)
    trashed = await make_plant(user, name="Trashed", deleted_at=NOW)
    await upsert_schedule(plant.id, CareType.WATERING, 7, next_due_date=NOW - timedelta(days=2))
    await upsert_schedule(plant.id, CareType.PRUNING, 30, next_due_date=NOW + timedelta(days=20))
    await upsert_schedule(plant.id, CareType.FERTILIZING, 14, next_due_date=NOW + timedelta(days=1))
    await upsert_schedule(trashed.id, CareType.WATERING, 7, next_due_date=NOW)

    schedules = await CareService.list_due_schedules(user, now=NOW)
    assert [s["care_type"] for s in schedules] == ["WATERING", "FERTILIZING", "PRUNING"]
    assert schedules[0]["status_info"]["status"] == "overdue"
    assert schedules[0]["plant"]["name"] == plant.name

    soon = await CareService.list_due_schedules(user, due_within=7, now=NOW)
    assert [s["care_type"] for s in soon] == ["WATERING", "FERTILIZING"]

    overdue = await CareService.list_due_schedules(user, status="overdue", now=NOW)
    assert [s["care_type"] for s in overdue] == ["WATERING"]

    with pytest.raises(ValidationError):
        await CareService.list_due_schedules(user, status="late", now=NOW)


async def test_update_and_delete_schedule(make_user, make_plant):
    user = await make_user()
    other = await make_user()
    plant = await make_plant(user)
    schedule = await upsert_schedule(plant.id, CareType.WATERING, 7)

    data = await CareService.update_schedule(user, schedule.id, {"enabled": False, "interval_days": 10})
    assert data["enabled"] is False
    assert data["interval_days"] == 10

    with pytest.raises(ValidationError):
        await CareService.update_schedule(user, schedule.id, {"interval_days": 0})
    with pytest.raises(NotFoundError):
        await CareService.delete_schedule(other, schedule.id)

    await CareService.delete_schedule(user, schedule.id)
    assert not await CareSchedule.exists(id=schedule.id)


async def test_due_status_uses_location_timezone(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)
    # 17:00 on April 1st in Los Angeles, already April 2nd in UTC
    await upsert_schedule(plant.id, CareType.WATERING, 7, next_due_date=datetime(2026, 4, 2, 0, 0, tzinfo=timezone.utc))

    schedules = await CareService.list_due_schedules(user, now=NOW)
    assert schedules[0]["status_info"]["status"] == "due-soon"

    await UserLocation.create(user=user, latitude=34.05, longitude=-118.24, timezone="America/Los_Angeles")

    schedules = await CareService.list_due_schedules(user, now=NOW)
    assert schedules[0]["status_info"]["status"] == "due-today"


async def test_unknown_location_timezone_falls_back_to_utc(make_user, make_plant):
    user = await make_user()
    plant = await make_plant(user)
    await upsert_schedule(plant.id, CareType.WATERING, 7, next_due_date=datetime(2026, 4, 2, 0, 0, tzinfo=timezone.utc))
    await UserLocation.create(user=user, latitude=0.0, longitude=0.0, timezone="Mars/Olympus_Mons")

    schedules = await CareService.list_due_schedules(user, now=NOW)
    assert schedules[0]["status_info"]["status"] == "due-soon"
