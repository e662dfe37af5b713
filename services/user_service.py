from typing import Optional

from core.config import settings
from models.user import User

DEV_EMAIL_DOMAIN = "garden-optimus.local"


def is_admin_email(email: str) -> bool:
    return email.strip().lower() in settings.ADMIN_EMAILS


def is_valid_dev_email(email: Optional[str]) -> bool:
    """Development logins are limited to ``<user>@garden-optimus.local``."""
    if not email or not isinstance(email, str):
        return False

    parts = email.split("@")
    if len(parts) != 2:
        return False

    user, domain = parts
    return bool(user) and domain == DEV_EMAIL_DOMAIN


class UserService:
    @staticmethod
    async def get_by_email(email: str) -> Optional[User]:
        return await User.filter(email__iexact=email.strip()).first()

    @staticmethod
    async def get_or_create_user(email: str, name: Optional[str] = None):
        user = await UserService.get_by_email(email)
        if user is None:
            user = await User.create(email=email.strip().lower(), name=name)
        return user

    @staticmethod
    async def remaining_slots() -> int:
        return max(0, settings.MAX_USERS - await User.all().count())

    @staticmethod
    async def is_registration_open(email: str) -> bool:
        """
        Admin emails can always register and existing users can always sign
        in; anyone else only while the user count is below MAX_USERS.
        """
        if is_admin_email(email):
            return True

        if await UserService.get_by_email(email) is not None:
            return True

        return await User.all().count() < settings.MAX_USERS
