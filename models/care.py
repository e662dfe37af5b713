from enum import Enum

from tortoise import fields, models


class CareType(str, Enum):
    WATERING = "WATERING"
    FERTILIZING = "FERTILIZING"
    REPOTTING = "REPOTTING"
    PRUNING = "PRUNING"
    PEST_TREATMENT = "PEST_TREATMENT"
    OTHER = "OTHER"


class CareSchedule(models.Model):
    id = fields.IntField(pk=True)
    plant = fields.ForeignKeyField("models.Plant", related_name="care_schedules", on_delete=fields.CASCADE)
    care_type = fields.CharEnumField(CareType, max_length=20)

    interval_days = fields.IntField()
    next_due_date = fields.DatetimeField()
    last_cared_at = fields.DatetimeField(null=True)
    enabled = fields.BooleanField(default=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "care_schedules"
        unique_together = (("plant", "care_type"),)


class CareLog(models.Model):
    id = fields.IntField(pk=True)
    plant = fields.ForeignKeyField("models.Plant", related_name="care_logs", on_delete=fields.CASCADE)
    type = fields.CharEnumField(CareType, max_length=20)

    amount = fields.CharField(max_length=255, null=True)
    notes = fields.TextField(null=True)

    logged_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "care_logs"
