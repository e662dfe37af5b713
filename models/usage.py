from enum import Enum

from tortoise import fields, models


class ToolType(str, Enum):
    PLANT_IDENTIFY = "plant_identify"
    HEALTH_ASSESSMENT = "health_assessment"


class UsageLog(models.Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="usage_logs", on_delete=fields.CASCADE)
    tool_type = fields.CharEnumField(ToolType, max_length=20)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "usage_logs"
