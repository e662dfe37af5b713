"""
Garden permission checks.

| Capability                      | VIEWER | ADMIN | OWNER |
|---------------------------------|--------|-------|-------|
| view                            | yes    | yes   | yes   |
| add_plants / remove_plants      | no     | yes   | yes   |
| edit_garden                     | no     | yes   | yes   |
| manage_members                  | no     | no    | yes   |
| delete_garden                   | no     | no    | yes   |

OWNER is never stored. It is derived from ``Garden.owner`` at lookup time;
everyone else gets the role on their ``GardenMember`` row, or nothing.
"""
from enum import Enum
from typing import List, Optional

from tortoise.query_utils import Prefetch

from models.garden import Garden, GardenMember, GardenRole


class Capability(str, Enum):
    VIEW = "view"
    ADD_PLANTS = "add_plants"
    REMOVE_PLANTS = "remove_plants"
    EDIT_GARDEN = "edit_garden"
    MANAGE_MEMBERS = "manage_members"
    DELETE_GARDEN = "delete_garden"


ROLE_CAPABILITIES = {
    GardenRole.VIEWER: (Capability.VIEW,),
    GardenRole.ADMIN: (
        Capability.VIEW,
        Capability.ADD_PLANTS,
        Capability.REMOVE_PLANTS,
        Capability.EDIT_GARDEN,
    ),
    GardenRole.OWNER: tuple(Capability),
}


def has_capability(role: Optional[GardenRole], capability: Capability) -> bool:
    if role is None:
        return False
    return capability in ROLE_CAPABILITIES.get(GardenRole(role), ())


def get_capabilities(role: Optional[GardenRole]) -> List[Capability]:
    if role is None:
        return []
    return list(ROLE_CAPABILITIES[GardenRole(role)])


async def resolve_role(user_id: int, garden_id: int) -> Optional[GardenRole]:
    """
    Return the user's role in the garden, or None.

    None covers both "garden does not exist" and "user has no access"; callers
    must not be able to tell the two apart. The owner id and the user's own
    membership row come back from the same lookup.
    """
    garden = await Garden.get_or_none(id=garden_id).prefetch_related(
        Prefetch("members", queryset=GardenMember.filter(user_id=user_id))
    )
    if garden is None:
        return None

    if garden.owner_id == user_id:
        return GardenRole.OWNER

    membership = next(iter(garden.members), None)
    return membership.role if membership else None


async def user_has_capability(user_id: int, garden_id: int, capability: Capability) -> bool:
    role = await resolve_role(user_id, garden_id)
    return has_capability(role, capability)


async def can_view_garden(user_id: int, garden_id: int) -> bool:
    return await user_has_capability(user_id, garden_id, Capability.VIEW)


async def can_add_plants(user_id: int, garden_id: int) -> bool:
    return await user_has_capability(user_id, garden_id, Capability.ADD_PLANTS)


async def can_remove_plants(user_id: int, garden_id: int) -> bool:
    return await user_has_capability(user_id, garden_id, Capability.REMOVE_PLANTS)


async def can_edit_garden(user_id: int, garden_id: int) -> bool:
    return await user_has_capability(user_id, garden_id, Capability.EDIT_GARDEN)


async def can_manage_members(user_id: int, garden_id: int) -> bool:
    return await user_has_capability(user_id, garden_id, Capability.MANAGE_MEMBERS)


async def can_delete_garden(user_id: int, garden_id: int) -> bool:
    return await user_has_capability(user_id, garden_id, Capability.DELETE_GARDEN)
