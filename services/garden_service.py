import asyncio
from typing import Any, Dict, Iterable, Optional

from tortoise.exceptions import IntegrityError
from tortoise.functions import Count
from tortoise.transactions import in_transaction

from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.logger import db_logger
from models.garden import Garden, GardenMember, GardenRole
from models.plant import Plant
from models.user import User
from services.permissions import Capability, get_capabilities, has_capability, resolve_role
from services.plant_service import serialize_plant
from services.validation import (
    FieldError,
    to_member_role,
    validate_garden_data,
    validate_member_role,
)

ALREADY_MEMBER = "This user is already a member of this garden"


def serialize_member(member: GardenMember) -> Dict[str, Any]:
    return {
        "id": member.id,
        "garden_id": member.garden_id,
        "user_id": member.user_id,
        "role": member.role.value,
        "invited_at": member.invited_at,
        "user": member.user.to_dict(),
    }


def serialize_garden(garden: Garden, role: GardenRole, counts: Dict[str, int] = None) -> Dict[str, Any]:
    data = {
        "id": garden.id,
        "name": garden.name,
        "description": garden.description,
        "owner_id": garden.owner_id,
        "owner": garden.owner.to_dict(),
        "created_at": garden.created_at,
        "updated_at": garden.updated_at,
        "role": role.value,
        "capabilities": [c.value for c in get_capabilities(role)],
    }
    if counts is not None:
        data["plant_count"] = counts.get("plants", 0)
        data["member_count"] = counts.get("members", 0)
    return data


class GardenService:

    @staticmethod
    async def _require(user: User, garden_id: int, capability: Capability, message: str) -> GardenRole:
        """
        Resolve the user's role and check one capability.

        Failing to *see* a garden is reported as 404 so its existence is not
        revealed; failing any other capability is a 403.
        """
        role = await resolve_role(user.id, garden_id)

        if capability == Capability.VIEW:
            if role is None:
                raise NotFoundError("Garden not found")
            return role

        if not has_capability(role, capability):
            raise PermissionDeniedError(message)
        return role

    @staticmethod
    async def _counts(garden_ids: Iterable[int]) -> Dict[int, Dict[str, int]]:
        garden_ids = list(garden_ids)
        if not garden_ids:
            return {}

        plant_rows, member_rows = await asyncio.gather(
            Plant.filter(garden_id__in=garden_ids, deleted_at__isnull=True)
            .annotate(total=Count("id"))
            .group_by("garden_id")
            .values("garden_id", "total"),
            GardenMember.filter(garden_id__in=garden_ids)
            .annotate(total=Count("id"))
            .group_by("garden_id")
            .values("garden_id", "total"),
        )

        counts = {gid: {"plants": 0, "members": 0} for gid in garden_ids}
        for row in plant_rows:
            counts[row["garden_id"]]["plants"] = row["total"]
        for row in member_rows:
            counts[row["garden_id"]]["members"] = row["total"]
        return counts

    @staticmethod
    async def list_gardens(user: User):
        """Owned gardens first (newest activity first), then gardens the user joined."""
        owned, memberships = await asyncio.gather(
            Garden.filter(owner_id=user.id).prefetch_related("owner").order_by("-updated_at"),
            GardenMember.filter(user_id=user.id).prefetch_related("garden__owner").order_by("-invited_at"),
        )

        pairs = [(g, GardenRole.OWNER) for g in owned]
        pairs += [(m.garden, m.role) for m in memberships]

        counts = await GardenService._counts(g.id for g, _ in pairs)
        return [serialize_garden(g, role, counts[g.id]) for g, role in pairs]

    @staticmethod
    async def create_garden(user: User, name: Optional[str], description: Optional[str] = None):
        errors = validate_garden_data(name=name, description=description)
        if errors:
            raise ValidationError(errors=errors)

        garden = await Garden.create(
            name=name.strip(),
            description=(description or "").strip() or None,
            owner=user,
        )

        db_logger.log_create("Garden", {
            "id": garden.id,
            "name": garden.name,
            "owner_id": user.id
        })

        return serialize_garden(garden, GardenRole.OWNER, {"plants": 0, "members": 0})

    @staticmethod
    async def get_garden(user: User, garden_id: int):
        role = await GardenService._require(user, garden_id, Capability.VIEW, "")

        garden = await Garden.get_or_none(id=garden_id).prefetch_related("owner")
        if garden is None:
            raise NotFoundError("Garden not found")

        members, plants = await asyncio.gather(
            GardenMember.filter(garden_id=garden_id).prefetch_related("user").order_by("invited_at", "id"),
            Plant.filter(garden_id=garden_id, deleted_at__isnull=True)
            .prefetch_related("species", "user")
            .order_by("-updated_at"),
        )

        data = serialize_garden(garden, role, {"plants": len(plants), "members": len(members)})
        data["members"] = [serialize_member(m) for m in members]
        data["plants"] = []
        for plant in plants:
            item = serialize_plant(plant, include_species=True)
            item["owner"] = {"id": plant.user.id, "name": plant.user.name}
            data["plants"].append(item)
        return data

    @staticmethod
    async def update_garden(user: User, garden_id: int, changes: Dict[str, Any]):
        """Apply a partial update; only keys present in ``changes`` are touched."""
        role = await GardenService._require(
            user, garden_id, Capability.EDIT_GARDEN,
            "You don't have permission to edit this garden"
        )

        fields = {k: v for k, v in changes.items() if k in ("name", "description")}
        errors = validate_garden_data(**fields)
        if errors:
            raise ValidationError(errors=errors)

        garden = await Garden.get(id=garden_id).prefetch_related("owner")
        if "name" in fields:
            garden.name = fields["name"].strip()
        if "description" in fields:
            garden.description = (fields["description"] or "").strip() or None
        await garden.save()

        db_logger.log_update("Garden", garden.id, fields)

        counts = await GardenService._counts([garden.id])
        return serialize_garden(garden, role, counts[garden.id])

    @staticmethod
    async def delete_garden(user: User, garden_id: int):
        """
        Delete a garden owned by ``user``.

        Members are dropped and plants are detached (garden cleared), never
        deleted. All three steps share one transaction.
        """
        await GardenService._require(
            user, garden_id, Capability.DELETE_GARDEN,
            "Only the garden owner can delete the garden"
        )

        async with in_transaction() as conn:
            removed = await GardenMember.filter(garden_id=garden_id).using_db(conn).delete()
            detached = await Plant.filter(garden_id=garden_id).using_db(conn).update(garden_id=None)
            await Garden.filter(id=garden_id).using_db(conn).delete()

        db_logger.log_delete("Garden", garden_id)
        db_logger.logger.info(f"Garden {garden_id}: removed {removed} members, detached {detached} plants")

        return {"success": True}

    @staticmethod
    async def list_members(user: User, garden_id: int):
        await GardenService._require(user, garden_id, Capability.VIEW, "")

        garden, members = await asyncio.gather(
            Garden.get(id=garden_id).prefetch_related("owner"),
            GardenMember.filter(garden_id=garden_id).prefetch_related("user").order_by("invited_at", "id"),
        )

        return {
            "owner": garden.owner.to_dict(),
            "members": [serialize_member(m) for m in members],
        }

    @staticmethod
    async def invite_member(user: User, garden_id: int, email: Optional[str], member_role: Any = GardenRole.VIEWER):
        await GardenService._require(
            user, garden_id, Capability.MANAGE_MEMBERS,
            "Only the garden owner can invite members"
        )

        email = (email or "").strip()
        if not email:
            raise ValidationError(errors=[FieldError("email", "Email is required")])

        if member_role is None:
            member_role = GardenRole.VIEWER
        message = validate_member_role(member_role)
        if message:
            raise ValidationError(errors=[FieldError("member_role", message)])
        role = to_member_role(member_role)

        target = await User.filter(email__iexact=email).first()
        if target is None:
            raise NotFoundError("No user found with this email address")

        # only the owner gets this far, so the acting user is the owner
        if target.id == user.id:
            raise ConflictError("This user is already the owner of this garden")

        if await GardenMember.exists(garden_id=garden_id, user_id=target.id):
            raise ConflictError(ALREADY_MEMBER)

        try:
            member = await GardenMember.create(garden_id=garden_id, user=target, role=role)
        except IntegrityError:
            # a concurrent invite won the unique (garden, user) constraint
            raise ConflictError(ALREADY_MEMBER)

        db_logger.log_create("GardenMember", {
            "id": member.id,
            "garden_id": garden_id,
            "user_id": target.id,
            "role": role.value
        })

        return serialize_member(member)

    @staticmethod
    async def update_member_role(user: User, garden_id: int, member_id: int, new_role: Any):
        await GardenService._require(
            user, garden_id, Capability.MANAGE_MEMBERS,
            "Only the garden owner can manage members"
        )

        message = validate_member_role(new_role)
        if message:
            raise ValidationError(errors=[FieldError("role", message)])

        member = await GardenMember.get_or_none(id=member_id, garden_id=garden_id).prefetch_related("user")
        if member is None:
            raise NotFoundError("Member not found in this garden")

        member.role = to_member_role(new_role)
        await member.save(update_fields=["role"])

        db_logger.log_update("GardenMember", member.id, {"role": member.role.value})
        return serialize_member(member)

    @staticmethod
    async def remove_member(user: User, garden_id: int, member_id: int):
        """The owner may remove anyone; a member may only remove themself."""
        role = await resolve_role(user.id, garden_id)
        if role is None:
            raise PermissionDeniedError("Only the garden owner can remove members")

        member = await GardenMember.get_or_none(id=member_id, garden_id=garden_id)
        is_self = member is not None and member.user_id == user.id

        if not is_self and not has_capability(role, Capability.MANAGE_MEMBERS):
            raise PermissionDeniedError("Only the garden owner can remove members")
        if member is None:
            raise NotFoundError("Member not found in this garden")

        await member.delete()
        db_logger.log_delete("GardenMember", member_id)

        return {"success": True}

    @staticmethod
    async def leave_garden(user: User, garden_id: int):
        garden = await Garden.get_or_none(id=garden_id)
        if garden is None:
            raise NotFoundError("Garden not found")

        if garden.owner_id == user.id:
            raise ConflictError(
                "As the owner, you cannot leave the garden. Delete it instead."
            )

        membership = await GardenMember.get_or_none(garden_id=garden_id, user_id=user.id)
        if membership is None:
            raise NotFoundError("You are not a member of this garden")

        await membership.delete()
        db_logger.log_delete("GardenMember", membership.id)

        return {"success": True}

    @staticmethod
    async def add_plant(user: User, garden_id: int, plant_id: Optional[int]):
        """
        Put one of the user's own plants into the garden.

        ADMIN members may add plants, but only plants they own; a plant that
        already sits in another garden is moved.
        """
        await GardenService._require(
            user, garden_id, Capability.ADD_PLANTS,
            "You don't have permission to add plants to this garden"
        )

        if plant_id is None:
            raise ValidationError(errors=[FieldError("plant_id", "Plant ID is required")])

        plant = await Plant.get_or_none(id=plant_id, user_id=user.id, deleted_at__isnull=True)
        if plant is None:
            raise NotFoundError("Plant not found or you don't own it")

        previous = plant.garden_id
        plant.garden_id = garden_id
        await plant.save(update_fields=["garden_id", "updated_at"])

        db_logger.log_update("Plant", plant.id, {"garden_id": [previous, garden_id]})
        return serialize_plant(plant)

    @staticmethod
    async def remove_plant(user: User, garden_id: int, plant_id: Optional[int]):
        await GardenService._require(
            user, garden_id, Capability.REMOVE_PLANTS,
            "You don't have permission to remove plants from this garden"
        )

        if plant_id is None:
            raise ValidationError(errors=[FieldError("plant_id", "Plant ID is required")])

        plant = await Plant.get_or_none(id=plant_id, garden_id=garden_id, deleted_at__isnull=True)
        if plant is None:
            raise NotFoundError("Plant not found in this garden")

        plant.garden_id = None
        await plant.save(update_fields=["garden_id", "updated_at"])

        db_logger.log_update("Plant", plant.id, {"garden_id": [garden_id, None]})
        return {"success": True}
