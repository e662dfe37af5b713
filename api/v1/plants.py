from fastapi import APIRouter, Depends, File, UploadFile, status

from api.deps import get_current_user, get_identifier
from models.user import User
from schemas.care import CareScheduleCreate
from schemas.plant import PlantCreate, PlantUpdate
from services.care_service import CareService
from services.plant_identifier import PlantIdentifierService
from services.plant_service import PlantService
from services.tools_service import ToolsService

router = APIRouter(prefix="/api/v1/plants", tags=["Plants"])


@router.get("")
async def list_plants(current_user: User = Depends(get_current_user)):
    return await PlantService.list_plants(current_user)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_plant(data: PlantCreate, current_user: User = Depends(get_current_user)):
    return await PlantService.create_plant(current_user, data.model_dump(exclude_unset=True))


# declared before /{plant_id} so "deleted" is not parsed as an id
@router.get("/deleted")
async def list_deleted_plants(current_user: User = Depends(get_current_user)):
    return await PlantService.list_deleted_plants(current_user)


@router.get("/{plant_id}")
async def get_plant(plant_id: int, current_user: User = Depends(get_current_user)):
    return await PlantService.get_plant_detail(current_user, plant_id)


@router.put("/{plant_id}")
async def update_plant(plant_id: int, data: PlantUpdate, current_user: User = Depends(get_current_user)):
    return await PlantService.update_plant(current_user, plant_id, data.model_dump(exclude_unset=True))


@router.delete("/{plant_id}")
async def delete_plant(plant_id: int, current_user: User = Depends(get_current_user)):
    return await PlantService.soft_delete_plant(current_user, plant_id)


@router.post("/{plant_id}/restore")
async def restore_plant(plant_id: int, current_user: User = Depends(get_current_user)):
    return await PlantService.restore_plant(current_user, plant_id)


@router.delete("/{plant_id}/permanent")
async def permanently_delete_plant(plant_id: int, current_user: User = Depends(get_current_user)):
    return await PlantService.permanently_delete_plant(current_user, plant_id)


@router.get("/{plant_id}/care-schedules")
async def list_plant_schedules(plant_id: int, current_user: User = Depends(get_current_user)):
    return await CareService.list_plant_schedules(current_user, plant_id)


@router.post("/{plant_id}/care-schedules")
async def save_plant_schedule(
        plant_id: int,
        data: CareScheduleCreate,
        current_user: User = Depends(get_current_user)
):
    return await CareService.save_plant_schedule(
        current_user,
        plant_id,
        data.care_type,
        data.interval_days,
        data.next_due_date,
    )


@router.get("/{plant_id}/care-logs")
async def list_care_logs(plant_id: int, current_user: User = Depends(get_current_user)):
    return await CareService.list_care_logs(current_user, plant_id)


@router.post("/{plant_id}/assessments", status_code=status.HTTP_201_CREATED)
async def assess_plant_health(
        plant_id: int,
        file: UploadFile = File(..., alias="image"),
        current_user: User = Depends(get_current_user),
        identifier: PlantIdentifierService = Depends(get_identifier),
):
    image = await file.read()
    return await ToolsService.assess_plant_health(current_user, identifier, plant_id, image, file.content_type)
