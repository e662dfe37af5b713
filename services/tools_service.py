from typing import Optional

from fastapi.concurrency import run_in_threadpool

from core.exceptions import FeatureDisabledError
from core.logger import db_logger
from models.plant import HealthAssessment
from models.usage import ToolType
from models.user import User
from services.plant_identifier import PlantIdentifierService
from services.plant_service import PlantService, serialize_species
from services.species_service import SpeciesService
from services.usage import UsageService


def serialize_assessment(assessment: HealthAssessment):
    return {
        "id": assessment.id,
        "plant_id": assessment.plant_id,
        "health_status": assessment.health_status,
        "issues": assessment.issues,
        "recommendations": assessment.recommendations,
        "assessed_at": assessment.assessed_at,
    }


def _require_identifier(identifier: Optional[PlantIdentifierService]) -> PlantIdentifierService:
    if identifier is None:
        raise FeatureDisabledError("AI features are not configured")
    return identifier


class ToolsService:

    @staticmethod
    async def identify_plant(
            user: User,
            identifier: Optional[PlantIdentifierService],
            image: bytes,
            mime_type: Optional[str],
    ):
        identifier = _require_identifier(identifier)
        remaining = await UsageService.check_and_record_usage(user.id, ToolType.PLANT_IDENTIFY)

        result = await run_in_threadpool(identifier.identify, image, mime_type)

        matches = []
        if result["species"]:
            matches = await SpeciesService.match(result["species"], result["scientific_name"])

        result["matches"] = [serialize_species(s) for s in matches]
        result["remaining"] = remaining
        return result

    @staticmethod
    async def assess_plant_health(
            user: User,
            identifier: Optional[PlantIdentifierService],
            plant_id: int,
            image: bytes,
            mime_type: Optional[str],
    ):
        """Assess an owned, active plant from a photo and store the result."""
        identifier = _require_identifier(identifier)
        plant = await PlantService.get_owned_plant(user, plant_id)
        remaining = await UsageService.check_and_record_usage(user.id, ToolType.HEALTH_ASSESSMENT)

        result = await run_in_threadpool(identifier.assess_health, image, mime_type)

        assessment = await HealthAssessment.create(
            plant_id=plant.id,
            health_status=result["health_status"],
            issues="\n".join(result["issues"]) or None,
            recommendations="\n".join(result["recommendations"]) or None,
            raw_response=result.get("raw_response"),
        )

        db_logger.log_create("HealthAssessment", {
            "id": assessment.id,
            "plant_id": plant.id,
            "health_status": assessment.health_status
        })

        data = serialize_assessment(assessment)
        data["remaining"] = remaining
        return data
