from typing import Optional

from pydantic import BaseModel

from schemas.user import UserOut


class RegistrationCheckRequest(BaseModel):
    email: str


class RegistrationCheckResponse(BaseModel):
    allowed: bool
    remaining_slots: int
    max_users: int


class DevLoginRequest(BaseModel):
    email: str
    name: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
