from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserOut(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    image: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LocationIn(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    city: Optional[str] = None
    country: Optional[str] = None
    timezone: Optional[str] = None
