from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class PlantBase(BaseModel):
    name: Optional[str] = None
    nickname: Optional[str] = None
    species_id: Optional[int] = Field(None, alias="speciesId")
    location: Any = None
    area: Optional[str] = None
    acquired_at: Optional[datetime] = Field(None, alias="acquiredAt")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class PlantCreate(PlantBase):
    pass


class PlantUpdate(PlantBase):
    pass
