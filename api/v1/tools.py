from fastapi import APIRouter, Depends, File, UploadFile

from api.deps import get_current_user, get_identifier
from models.user import User
from services.plant_identifier import PlantIdentifierService
from services.tools_service import ToolsService

router = APIRouter(prefix="/api/v1/tools", tags=["Tools"])


@router.post("/identify-plant")
async def identify_plant(
        file: UploadFile = File(..., alias="image"),
        current_user: User = Depends(get_current_user),
        identifier: PlantIdentifierService = Depends(get_identifier),
):
    image = await file.read()
    return await ToolsService.identify_plant(current_user, identifier, image, file.content_type)
