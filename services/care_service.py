from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from tortoise.transactions import in_transaction

from core.exceptions import NotFoundError, ValidationError
from core.logger import db_logger
from models.care import CareLog, CareSchedule, CareType
from models.user import User, UserLocation
from services.plant_service import PlantService
from services.reminders import (
    DueStatus,
    calculate_next_due_date,
    classify_due_status,
    default_next_due_date,
    in_timezone,
    suggest_interval_from_species,
    utcnow,
)
from services.validation import FieldError, validate_care_type, validate_interval_days


def serialize_schedule(schedule: CareSchedule, now: Optional[datetime] = None, include_plant: bool = False):
    data = {
        "id": schedule.id,
        "plant_id": schedule.plant_id,
        "care_type": schedule.care_type.value,
        "interval_days": schedule.interval_days,
        "next_due_date": schedule.next_due_date,
        "last_cared_at": schedule.last_cared_at,
        "enabled": schedule.enabled,
        "status_info": classify_due_status(schedule.next_due_date, now).to_dict(),
    }
    if include_plant:
        plant = schedule.plant
        data["plant"] = {
            "id": plant.id,
            "name": plant.name,
            "nickname": plant.nickname,
            "location": plant.location.value,
        }
    return data


def serialize_care_log(log: CareLog):
    return {
        "id": log.id,
        "plant_id": log.plant_id,
        "type": log.type.value,
        "amount": log.amount,
        "notes": log.notes,
        "logged_at": log.logged_at,
    }


def check_schedule_input(care_type: Any, interval_days: Any):
    errors = []

    message = validate_care_type(care_type)
    if message:
        errors.append(FieldError("care_type", message))

    message = validate_interval_days(interval_days)
    if message:
        errors.append(FieldError("interval_days", message))

    if errors:
        raise ValidationError(errors=errors)


async def upsert_schedule(
        plant_id: int,
        care_type: Any,
        interval_days: Any,
        next_due_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
) -> CareSchedule:
    """
    Create or update the schedule for (plant, care type).

    Without ``next_due_date`` the schedule falls due ``interval_days`` from
    now. Saving again re-enables a disabled schedule. The unique
    (plant, care_type) constraint plus update_or_create keep concurrent
    saves down to one row.
    """
    check_schedule_input(care_type, interval_days)

    due = next_due_date or default_next_due_date(interval_days, now)

    schedule, created = await CareSchedule.update_or_create(
        defaults={
            "interval_days": interval_days,
            "next_due_date": due,
            "enabled": True,
        },
        plant_id=plant_id,
        care_type=CareType(care_type),
    )

    if created:
        db_logger.log_create("CareSchedule", {
            "id": schedule.id,
            "plant_id": plant_id,
            "care_type": schedule.care_type.value,
            "interval_days": interval_days
        })
    else:
        db_logger.log_update("CareSchedule", schedule.id, {
            "interval_days": interval_days,
            "next_due_date": due
        })

    return schedule


class CareService:

    @staticmethod
    async def _user_now(user: User, now: Optional[datetime] = None) -> datetime:
        """Current time in the zone of the user's saved location, UTC without one."""
        location = await UserLocation.get_or_none(user_id=user.id)
        return in_timezone(now or utcnow(), location.timezone if location else None)

    @staticmethod
    async def _get_owned_schedule(user: User, schedule_id: int) -> CareSchedule:
        schedule = await CareSchedule.get_or_none(
            id=schedule_id,
            plant__user_id=user.id
        ).prefetch_related("plant")

        if schedule is None:
            raise NotFoundError("Schedule not found or access denied")
        return schedule

    @staticmethod
    async def list_plant_schedules(user: User, plant_id: int):
        plant = await PlantService.get_owned_plant(user, plant_id)

        schedules = await CareSchedule.filter(plant_id=plant.id).order_by("next_due_date")
        now = await CareService._user_now(user)
        return [serialize_schedule(s, now) for s in schedules]

    @staticmethod
    async def save_plant_schedule(
            user: User,
            plant_id: int,
            care_type: Any,
            interval_days: Any,
            next_due_date: Optional[datetime] = None,
    ):
        plant = await PlantService.get_owned_plant(user, plant_id)

        schedule = await upsert_schedule(plant.id, care_type, interval_days, next_due_date)
        return serialize_schedule(schedule, await CareService._user_now(user))

    @staticmethod
    async def list_due_schedules(
            user: User,
            due_within: Optional[int] = None,
            status: Optional[str] = None,
            now: Optional[datetime] = None,
    ):
        """Enabled schedules across the user's active plants, soonest first."""
        if status is not None and status not in [s.value for s in DueStatus]:
            raise ValidationError(errors=[FieldError(
                "status", f"Invalid status. Must be one of: {', '.join(s.value for s in DueStatus)}"
            )])

        now = await CareService._user_now(user, now)
        query = CareSchedule.filter(
            plant__user_id=user.id,
            plant__deleted_at__isnull=True,
            enabled=True
        )
        if due_within is not None:
            query = query.filter(next_due_date__lte=now + timedelta(days=due_within))

        schedules = await query.prefetch_related("plant").order_by("next_due_date")

        results = [serialize_schedule(s, now, include_plant=True) for s in schedules]
        if status is not None:
            results = [r for r in results if r["status_info"]["status"] == status]
        return results

    @staticmethod
    async def get_schedule(user: User, schedule_id: int):
        schedule = await CareService._get_owned_schedule(user, schedule_id)
        return serialize_schedule(schedule, await CareService._user_now(user), include_plant=True)

    @staticmethod
    async def update_schedule(user: User, schedule_id: int, changes: Dict[str, Any]):
        schedule = await CareService._get_owned_schedule(user, schedule_id)

        applied = {}
        if changes.get("interval_days") is not None:
            message = validate_interval_days(changes["interval_days"])
            if message:
                raise ValidationError(errors=[FieldError("interval_days", message)])
            applied["interval_days"] = changes["interval_days"]

        if changes.get("next_due_date") is not None:
            applied["next_due_date"] = changes["next_due_date"]

        if isinstance(changes.get("enabled"), bool):
            applied["enabled"] = changes["enabled"]

        for key, value in applied.items():
            setattr(schedule, key, value)
        await schedule.save()

        db_logger.log_update("CareSchedule", schedule.id, applied)
        return serialize_schedule(schedule, await CareService._user_now(user), include_plant=True)

    @staticmethod
    async def delete_schedule(user: User, schedule_id: int):
        schedule = await CareService._get_owned_schedule(user, schedule_id)

        await schedule.delete()
        db_logger.log_delete("CareSchedule", schedule_id)

        return {"success": True}

    @staticmethod
    async def log_care(
            user: User,
            plant_id: Optional[int],
            care_type: Any,
            amount: Optional[str] = None,
            notes: Optional[str] = None,
            now: Optional[datetime] = None,
    ):
        """
        Record a care action and move the matching schedule forward.

        If the plant has a schedule for this care type it becomes due one
        interval from today. Watering a plant without a watering schedule
        creates one, with the interval taken from the species' watering
        frequency when known.
        """
        if plant_id is None or care_type is None:
            raise ValidationError("Plant ID and care type are required")

        message = validate_care_type(care_type)
        if message:
            raise ValidationError(errors=[FieldError("type", message)])
        care_type = CareType(care_type)

        plant = await PlantService.get_owned_plant(user, plant_id)
        await plant.fetch_related("species")
        now = now or utcnow()

        async with in_transaction() as conn:
            log = await CareLog.create(
                plant_id=plant.id,
                type=care_type,
                amount=amount or None,
                notes=notes or None,
                using_db=conn,
            )

            await plant.save(update_fields=["updated_at"], using_db=conn)

            schedule = await CareSchedule.filter(
                plant_id=plant.id,
                care_type=care_type
            ).using_db(conn).first()

            if schedule is not None:
                schedule.last_cared_at = now
                schedule.next_due_date = calculate_next_due_date(now, schedule.interval_days)
                await schedule.save(using_db=conn)
            elif care_type == CareType.WATERING:
                frequency = plant.species.water_frequency if plant.species else None
                interval = suggest_interval_from_species(frequency)
                await CareSchedule.create(
                    plant_id=plant.id,
                    care_type=CareType.WATERING,
                    interval_days=interval,
                    next_due_date=calculate_next_due_date(now, interval),
                    last_cared_at=now,
                    enabled=True,
                    using_db=conn,
                )

        db_logger.log_create("CareLog", {
            "id": log.id,
            "plant_id": plant.id,
            "type": care_type.value
        })

        return serialize_care_log(log)

    @staticmethod
    async def list_care_logs(user: User, plant_id: int, limit: int = 50):
        plant = await PlantService.get_readable_plant(user, plant_id)

        logs = await CareLog.filter(plant_id=plant.id).order_by("-logged_at").limit(limit)
        return [serialize_care_log(log) for log in logs]
