"""
Input checks shared by the garden, plant and care services.

Every function here is pure: no database or network access. Garden checks
return messages (or a list of FieldError) instead of raising, so callers can
report every problem at once.
"""
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from models.care import CareType
from models.garden import GardenRole, MEMBER_ROLES
from models.plant import PlantLocation

GARDEN_NAME_MIN_LENGTH = 1
GARDEN_NAME_MAX_LENGTH = 40
GARDEN_NAME_PATTERN = re.compile(r"^[A-Za-z0-9 ]+$")

GARDEN_DESCRIPTION_MAX_LENGTH = 500

INTERVAL_MIN_DAYS = 1
INTERVAL_MAX_DAYS = 365


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


def validate_garden_name(name: Optional[str]) -> Optional[str]:
    """Return an error message for an invalid garden name, or None."""
    trimmed = (name or "").strip()

    if len(trimmed) < GARDEN_NAME_MIN_LENGTH:
        return "Garden name is required"

    if len(trimmed) > GARDEN_NAME_MAX_LENGTH:
        return f"Garden name must be {GARDEN_NAME_MAX_LENGTH} characters or less"

    if not GARDEN_NAME_PATTERN.match(trimmed):
        return "Garden name can only contain letters, numbers, and spaces"

    return None


def validate_garden_description(description: Optional[str]) -> Optional[str]:
    """Descriptions are optional; only the untrimmed length is checked."""
    if not description:
        return None

    if len(description) > GARDEN_DESCRIPTION_MAX_LENGTH:
        return f"Description must be {GARDEN_DESCRIPTION_MAX_LENGTH} characters or less"

    return None


_UNSET = object()


def validate_garden_data(name: Any = _UNSET, description: Any = _UNSET) -> List[FieldError]:
    """
    Validate the fields present in a garden create/update payload.

    Fields left unset are not checked, which lets partial updates through.
    """
    errors = []

    if name is not _UNSET:
        message = validate_garden_name(name)
        if message:
            errors.append(FieldError("name", message))

    if description is not _UNSET:
        message = validate_garden_description(description)
        if message:
            errors.append(FieldError("description", message))

    return errors


def validate_care_type(care_type: Any) -> Optional[str]:
    values = [c.value for c in CareType]
    if isinstance(care_type, CareType) or care_type in values:
        return None
    return f"Invalid careType. Must be one of: {', '.join(values)}"


def validate_interval_days(interval_days: Any) -> Optional[str]:
    # bool is an int subclass; reject it explicitly
    if isinstance(interval_days, bool) or not isinstance(interval_days, int):
        return f"intervalDays must be a whole number between {INTERVAL_MIN_DAYS} and {INTERVAL_MAX_DAYS}"
    if interval_days < INTERVAL_MIN_DAYS or interval_days > INTERVAL_MAX_DAYS:
        return f"intervalDays must be between {INTERVAL_MIN_DAYS} and {INTERVAL_MAX_DAYS}"
    return None


def validate_location(location: Any) -> Optional[str]:
    values = [loc.value for loc in PlantLocation]
    if isinstance(location, PlantLocation) or location in values:
        return None
    return "Invalid location. Must be INDOOR or OUTDOOR"


def validate_member_role(role: Any) -> Optional[str]:
    values = [r.value for r in MEMBER_ROLES]
    if role in MEMBER_ROLES or role in values:
        return None
    return "Invalid role. Must be VIEWER or ADMIN"


def validate_coordinates(latitude: Any, longitude: Any) -> List[FieldError]:
    errors = []
    numeric = (int, float)

    if isinstance(latitude, bool) or not isinstance(latitude, numeric):
        errors.append(FieldError("latitude", "Latitude is required"))
    elif latitude < -90 or latitude > 90:
        errors.append(FieldError("latitude", "Invalid latitude (must be between -90 and 90)"))

    if isinstance(longitude, bool) or not isinstance(longitude, numeric):
        errors.append(FieldError("longitude", "Longitude is required"))
    elif longitude < -180 or longitude > 180:
        errors.append(FieldError("longitude", "Invalid longitude (must be between -180 and 180)"))

    return errors


def to_member_role(role: Any) -> GardenRole:
    return role if isinstance(role, GardenRole) else GardenRole(role)
