from fastapi import APIRouter

from core.config import settings
from core.exceptions import FeatureDisabledError, PermissionDeniedError, ValidationError
from core.security import create_access_token
from schemas.auth import (
    DevLoginRequest,
    RegistrationCheckRequest,
    RegistrationCheckResponse,
    TokenResponse,
)
from schemas.user import UserOut
from services.user_service import UserService, is_valid_dev_email

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post("/check-registration", response_model=RegistrationCheckResponse)
async def check_registration(data: RegistrationCheckRequest):
    email = data.email.strip()
    if not email:
        raise ValidationError("Email is required")

    return {
        "allowed": await UserService.is_registration_open(email),
        "remaining_slots": await UserService.remaining_slots(),
        "max_users": settings.MAX_USERS,
    }


@router.post("/dev-login", response_model=TokenResponse)
async def dev_login(data: DevLoginRequest):
    if not settings.ENABLE_DEV_AUTH:
        raise FeatureDisabledError("Development login is disabled")

    if not is_valid_dev_email(data.email):
        raise ValidationError("Dev login requires a <user>@garden-optimus.local email")

    if not await UserService.is_registration_open(data.email):
        raise PermissionDeniedError("Registration is closed")

    user = await UserService.get_or_create_user(data.email, data.name)
    token = create_access_token(user.id)

    return {
        "access_token": token,
        "token_type": "bearer",
        "user": UserOut.model_validate(user),
    }
