from fastapi import APIRouter, Depends, status

from api.deps import get_current_user
from models.user import User
from schemas.garden import (
    GardenCreate,
    GardenPlantRequest,
    GardenUpdate,
    MemberInvite,
    MemberRoleUpdate,
)
from services.garden_service import GardenService

router = APIRouter(prefix="/api/v1/gardens", tags=["Gardens"])


@router.get("")
async def list_gardens(current_user: User = Depends(get_current_user)):
    return await GardenService.list_gardens(current_user)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_garden(data: GardenCreate, current_user: User = Depends(get_current_user)):
    return await GardenService.create_garden(current_user, data.name, data.description)


@router.get("/{garden_id}")
async def get_garden(garden_id: int, current_user: User = Depends(get_current_user)):
    return await GardenService.get_garden(current_user, garden_id)


@router.put("/{garden_id}")
async def update_garden(garden_id: int, data: GardenUpdate, current_user: User = Depends(get_current_user)):
    return await GardenService.update_garden(current_user, garden_id, data.model_dump(exclude_unset=True))


@router.delete("/{garden_id}")
async def delete_garden(garden_id: int, current_user: User = Depends(get_current_user)):
    return await GardenService.delete_garden(current_user, garden_id)


@router.get("/{garden_id}/members")
async def list_members(garden_id: int, current_user: User = Depends(get_current_user)):
    return await GardenService.list_members(current_user, garden_id)


@router.post("/{garden_id}/members", status_code=status.HTTP_201_CREATED)
async def invite_member(garden_id: int, data: MemberInvite, current_user: User = Depends(get_current_user)):
    return await GardenService.invite_member(current_user, garden_id, data.email, data.member_role)


@router.put("/{garden_id}/members/{member_id}")
async def update_member_role(
        garden_id: int,
        member_id: int,
        data: MemberRoleUpdate,
        current_user: User = Depends(get_current_user)
):
    return await GardenService.update_member_role(current_user, garden_id, member_id, data.role)


@router.delete("/{garden_id}/members/{member_id}")
async def remove_member(garden_id: int, member_id: int, current_user: User = Depends(get_current_user)):
    return await GardenService.remove_member(current_user, garden_id, member_id)


@router.post("/{garden_id}/leave")
async def leave_garden(garden_id: int, current_user: User = Depends(get_current_user)):
    return await GardenService.leave_garden(current_user, garden_id)


@router.post("/{garden_id}/plants")
async def add_plant_to_garden(
        garden_id: int,
        data: GardenPlantRequest,
        current_user: User = Depends(get_current_user)
):
    return await GardenService.add_plant(current_user, garden_id, data.plant_id)


@router.delete("/{garden_id}/plants")
async def remove_plant_from_garden(
        garden_id: int,
        data: GardenPlantRequest,
        current_user: User = Depends(get_current_user)
):
    return await GardenService.remove_plant(current_user, garden_id, data.plant_id)
