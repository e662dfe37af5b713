from enum import Enum

from tortoise import fields, models


class GardenRole(str, Enum):
    VIEWER = "VIEWER"
    ADMIN = "ADMIN"
    # never stored; derived from Garden.owner
    OWNER = "OWNER"


MEMBER_ROLES = (GardenRole.VIEWER, GardenRole.ADMIN)


class Garden(models.Model):
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=40)
    description = fields.CharField(max_length=500, null=True)
    owner = fields.ForeignKeyField("models.User", related_name="owned_gardens", on_delete=fields.CASCADE)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    members: fields.ReverseRelation["GardenMember"]
    plants: fields.ReverseRelation["Plant"]

    class Meta:
        table = "gardens"

    def __str__(self):
        return self.name


class GardenMember(models.Model):
    id = fields.IntField(pk=True)
    garden = fields.ForeignKeyField("models.Garden", related_name="members", on_delete=fields.CASCADE)
    user = fields.ForeignKeyField("models.User", related_name="garden_memberships", on_delete=fields.CASCADE)
    role = fields.CharEnumField(GardenRole, max_length=10, default=GardenRole.VIEWER)

    invited_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "garden_members"
        unique_together = (("garden", "user"),)
        ordering = ["invited_at"]
