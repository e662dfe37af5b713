from fastapi import APIRouter, Depends

from api.deps import require_cron_secret
from services.plant_service import PlantService

router = APIRouter(prefix="/api/v1/maintenance", tags=["Maintenance"])


@router.post("/purge-deleted-plants", dependencies=[Depends(require_cron_secret)])
async def purge_deleted_plants():
    """Hard delete plants that have been in the trash longer than the retention period."""
    return await PlantService.purge_expired_plants()
