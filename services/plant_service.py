import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from core.config import settings
from core.exceptions import NotFoundError, ValidationError
from core.logger import db_logger
from models.plant import Plant, PlantLocation, Species
from models.user import User
from services.permissions import can_view_garden
from services.reminders import utcnow
from services.validation import FieldError, validate_location

PLANT_FIELDS = ("name", "nickname", "species_id", "location", "area", "acquired_at", "notes")


def expiration_date(deleted_at: datetime) -> datetime:
    return deleted_at + timedelta(days=settings.TRASH_RETENTION_DAYS)


def days_until_permanent_delete(deleted_at: datetime, now: Optional[datetime] = None) -> int:
    """Whole days left in the trash, rounded up; 0 once the retention period is over."""
    remaining = expiration_date(deleted_at) - (now or utcnow())
    return max(0, math.ceil(remaining.total_seconds() / 86400))


def serialize_species(species: Optional[Species]):
    if species is None:
        return None
    return {
        "id": species.id,
        "common_name": species.common_name,
        "scientific_name": species.scientific_name,
        "description": species.description,
        "light_needs": species.light_needs,
        "water_frequency": species.water_frequency,
        "humidity": species.humidity,
        "temperature": species.temperature,
        "toxicity": species.toxicity,
        "suitable_for": species.suitable_for or [],
        "image_url": species.image_url,
    }


def serialize_plant(plant: Plant, include_species: bool = False) -> Dict[str, Any]:
    data = {
        "id": plant.id,
        "user_id": plant.user_id,
        "name": plant.name,
        "nickname": plant.nickname,
        "species_id": plant.species_id,
        "location": plant.location.value if plant.location else None,
        "area": plant.area,
        "acquired_at": plant.acquired_at,
        "notes": plant.notes,
        "garden_id": plant.garden_id,
        "deleted_at": plant.deleted_at,
        "created_at": plant.created_at,
        "updated_at": plant.updated_at,
    }
    if include_species:
        data["species"] = serialize_species(plant.species) if plant.species_id else None
    return data


class PlantService:

    @staticmethod
    async def get_owned_plant(user: User, plant_id: int, deleted: Optional[bool] = False) -> Plant:
        """
        Fetch a plant owned by ``user``.

        ``deleted`` selects active plants (False), trashed plants (True) or
        either (None). Anything else is reported as not found.
        """
        query = Plant.filter(id=plant_id, user_id=user.id)
        if deleted is not None:
            query = query.filter(deleted_at__isnull=not deleted)

        plant = await query.first()
        if plant is None:
            raise NotFoundError("Deleted plant not found" if deleted else "Plant not found")
        return plant

    @staticmethod
    async def get_readable_plant(user: User, plant_id: int) -> Plant:
        """Owner access, or read-only access through a garden the user can view."""
        plant = await Plant.get_or_none(id=plant_id, deleted_at__isnull=True)
        if plant is None:
            raise NotFoundError("Plant not found")

        if plant.user_id == user.id:
            return plant
        if plant.garden_id is not None and await can_view_garden(user.id, plant.garden_id):
            return plant

        raise NotFoundError("Plant not found")

    @staticmethod
    async def _check_fields(data: Dict[str, Any]):
        errors = []

        if "name" in data and not (data["name"] or "").strip():
            errors.append(FieldError("name", "Name is required"))

        if "location" in data:
            message = validate_location(data["location"])
            if message:
                errors.append(FieldError("location", message))

        if data.get("species_id") is not None:
            if not await Species.exists(id=data["species_id"]):
                errors.append(FieldError("species_id", "Unknown species"))

        if errors:
            raise ValidationError(errors=errors)

    @staticmethod
    def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for key in PLANT_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if isinstance(value, str):
                value = value.strip() or None
            if key == "location" and value is not None:
                value = PlantLocation(value)
            cleaned[key] = value
        return cleaned

    @staticmethod
    async def list_plants(user: User):
        plants = await Plant.filter(
            user_id=user.id,
            deleted_at__isnull=True
        ).prefetch_related("species").order_by("-updated_at")

        return [serialize_plant(p, include_species=True) for p in plants]

    @staticmethod
    async def create_plant(user: User, data: Dict[str, Any]):
        missing = [FieldError(f, f"{f.capitalize()} is required") for f in ("name", "location") if not data.get(f)]
        if missing:
            raise ValidationError("Name and location are required", errors=missing)

        await PlantService._check_fields(data)

        plant = await Plant.create(user=user, **PlantService._clean(data))

        db_logger.log_create("Plant", {
            "id": plant.id,
            "user_id": user.id,
            "name": plant.name
        })

        return serialize_plant(plant)

    @staticmethod
    async def get_plant_detail(user: User, plant_id: int):
        plant = await PlantService.get_readable_plant(user, plant_id)
        await plant.fetch_related("species")

        care_logs = await plant.care_logs.all().order_by("-logged_at").limit(10)
        assessments = await plant.assessments.all().order_by("-assessed_at").limit(5)

        data = serialize_plant(plant, include_species=True)
        data["read_only"] = plant.user_id != user.id
        data["care_logs"] = [
            {
                "id": log.id,
                "type": log.type.value,
                "amount": log.amount,
                "notes": log.notes,
                "logged_at": log.logged_at,
            }
            for log in care_logs
        ]
        data["assessments"] = [
            {
                "id": a.id,
                "health_status": a.health_status,
                "issues": a.issues,
                "recommendations": a.recommendations,
                "assessed_at": a.assessed_at,
            }
            for a in assessments
        ]
        return data

    @staticmethod
    async def update_plant(user: User, plant_id: int, data: Dict[str, Any]):
        plant = await PlantService.get_owned_plant(user, plant_id)

        await PlantService._check_fields(data)
        changes = PlantService._clean(data)

        for key, value in changes.items():
            setattr(plant, key, value)
        await plant.save()

        db_logger.log_update("Plant", plant.id, changes)

        return serialize_plant(plant)

    @staticmethod
    async def soft_delete_plant(user: User, plant_id: int):
        plant = await PlantService.get_owned_plant(user, plant_id)

        plant.deleted_at = utcnow()
        await plant.save(update_fields=["deleted_at", "updated_at"])

        db_logger.log_update("Plant", plant.id, {"deleted_at": plant.deleted_at})
        return {"success": True}

    @staticmethod
    async def list_deleted_plants(user: User, now: Optional[datetime] = None):
        plants = await Plant.filter(
            user_id=user.id,
            deleted_at__isnull=False
        ).prefetch_related("species").order_by("-deleted_at")

        results = []
        for plant in plants:
            data = serialize_plant(plant, include_species=True)
            data["days_until_permanent_delete"] = days_until_permanent_delete(plant.deleted_at, now)
            results.append(data)
        return results

    @staticmethod
    async def restore_plant(user: User, plant_id: int):
        plant = await PlantService.get_owned_plant(user, plant_id, deleted=True)

        plant.deleted_at = None
        await plant.save(update_fields=["deleted_at", "updated_at"])

        db_logger.log_update("Plant", plant.id, {"deleted_at": None})
        return serialize_plant(plant)

    @staticmethod
    async def permanently_delete_plant(user: User, plant_id: int):
        """Hard delete a trashed plant; schedules, logs and assessments go with it."""
        plant = await PlantService.get_owned_plant(user, plant_id, deleted=True)

        await plant.delete()
        db_logger.log_delete("Plant", plant_id)

        return {"success": True}

    @staticmethod
    async def purge_expired_plants(now: Optional[datetime] = None):
        now = now or utcnow()
        cutoff = now - timedelta(days=settings.TRASH_RETENTION_DAYS)

        expired = await Plant.filter(deleted_at__isnull=False, deleted_at__lt=cutoff)
        db_logger.logger.info(f"Found {len(expired)} expired plants to clean up")

        deleted_count = 0
        error_count = 0
        for plant in expired:
            try:
                await plant.delete()
            except Exception as e:
                # one bad row must not stop the rest of the purge
                db_logger.log_error(f"purge plant {plant.id}", e)
                error_count += 1
                continue
            db_logger.log_delete("Plant", plant.id)
            deleted_count += 1

        return {
            "success": True,
            "message": f"Cleanup complete. Deleted {deleted_count} plants, {error_count} errors.",
            "deleted_count": deleted_count,
            "error_count": error_count,
        }
