from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class CareScheduleCreate(BaseModel):
    # care_type and interval_days are checked by the care service so the
    # error messages match the rest of the API
    care_type: Any = Field(None, alias="careType")
    interval_days: Any = Field(None, alias="intervalDays")
    next_due_date: Optional[datetime] = Field(None, alias="nextDueDate")

    class Config:
        populate_by_name = True


class CareScheduleUpdate(BaseModel):
    interval_days: Any = Field(None, alias="intervalDays")
    next_due_date: Optional[datetime] = Field(None, alias="nextDueDate")
    enabled: Optional[bool] = None

    class Config:
        populate_by_name = True


class CareLogCreate(BaseModel):
    plant_id: Optional[int] = Field(None, alias="plantId")
    type: Any = None
    amount: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        populate_by_name = True
