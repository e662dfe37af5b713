from typing import Any, Optional

from pydantic import BaseModel, Field


class GardenCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class GardenUpdate(BaseModel):
    # partial update: only fields sent by the client are applied
    name: Optional[str] = None
    description: Optional[str] = None


class MemberInvite(BaseModel):
    email: Optional[str] = None
    member_role: Any = Field(None, alias="memberRole")

    class Config:
        populate_by_name = True


class MemberRoleUpdate(BaseModel):
    role: Any = None


class GardenPlantRequest(BaseModel):
    plant_id: Optional[int] = Field(None, alias="plantId")

    class Config:
        populate_by_name = True
